"""Tests for persistence safety features (backups, atomic writes, corruption handling)."""

import json
from pathlib import Path

import pytest

from mixbridge.exceptions import ConfigFileInvalidError, ConfigValidationError, MappingValidationError
from mixbridge.models import AppConfig, MappingPreset
from mixbridge.utils import PydanticPersistence


@pytest.mark.unit
class TestPersistenceSafety:
    """Test safety features of PydanticPersistence."""

    def test_save_creates_backup(self, tmp_path: Path):
        """Test that save_json creates a .bak file before overwriting."""
        path = tmp_path / "preset.json"
        PydanticPersistence.save_json(MappingPreset(name="original"), path, backup=False)
        PydanticPersistence.save_json(MappingPreset(name="modified"), path)

        backup_path = path.with_suffix(".json.bak")
        assert backup_path.exists()
        assert PydanticPersistence.load_json(backup_path, MappingPreset).name == "original"
        assert PydanticPersistence.load_json(path, MappingPreset).name == "modified"

    def test_no_temp_file_left(self, tmp_path: Path):
        path = tmp_path / "preset.json"
        PydanticPersistence.save_json(MappingPreset(name="x"), path)
        assert not path.with_suffix(".json.tmp").exists()

    def test_saved_with_camel_case_keys(self, tmp_path: Path):
        path = tmp_path / "preset.json"
        PydanticPersistence.save_json(MappingPreset(name="x", mixer_ip="10.0.0.1"), path)
        data = json.loads(path.read_text())
        assert data["mixerIp"] == "10.0.0.1"
        assert "mixer_ip" not in data

    def test_creates_parent_directories(self, tmp_path: Path):
        path = tmp_path / "nested" / "dir" / "config.json"
        PydanticPersistence.save_json(AppConfig(), path)
        assert path.exists()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            PydanticPersistence.load_json(tmp_path / "missing.json", MappingPreset)

    def test_load_or_default_missing(self, tmp_path: Path):
        config = PydanticPersistence.load_or_default(tmp_path / "missing.json", AppConfig)
        assert config == AppConfig()

    def test_corrupt_file_not_replaced(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text('{"mixer_port": 53000,}')
        with pytest.raises(ConfigFileInvalidError):
            PydanticPersistence.load_or_default(path, AppConfig)
        assert path.read_text() == '{"mixer_port": 53000,}'

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("   ")
        with pytest.raises(ConfigFileInvalidError) as exc_info:
            PydanticPersistence.load_json(path, AppConfig)
        assert exc_info.value.user_message == "Configuration file is empty"

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"mixer_port": 0}))
        with pytest.raises(ConfigValidationError) as exc_info:
            PydanticPersistence.load_json(path, AppConfig)
        assert exc_info.value.field == "mixer_port"

    def test_broken_rule_rejects_preset(self, tmp_path: Path):
        path = tmp_path / "preset.json"
        path.write_text(json.dumps({
            "name": "Live",
            "mappings": [
                {"midi": {"type": "cc", "channel": 1, "controller": 7},
                 "mixer": {"action": "volume", "channel": {"type": "LINE", "channel": 1}}},
                {"midi": {"type": "cc", "channel": 1},
                 "mixer": {"action": "volume", "channel": {"type": "LINE", "channel": 2}}},
            ],
        }))
        with pytest.raises(MappingValidationError) as exc_info:
            PydanticPersistence.load_json(path, MappingPreset)
        assert len(exc_info.value.errors) == 1
        assert exc_info.value.errors[0].startswith("mappings.1.midi")
