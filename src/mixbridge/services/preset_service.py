"""Service for loading, saving and auto-saving mapping presets."""

import logging
from pathlib import Path

from mixbridge.exceptions import ErrorContext
from mixbridge.mapping import MappingEngine
from mixbridge.models import MappingPreset, MappingRule
from mixbridge.models.config import DEFAULT_CONFIG_DIR
from mixbridge.utils import PydanticPersistence

logger = logging.getLogger(__name__)

DEFAULT_PRESETS_DIR = DEFAULT_CONFIG_DIR / "presets"


class PresetStore:
    """
    Moves presets between JSON files and a MappingEngine.

    With auto-save enabled the store observes the engine and writes the
    current preset back to its file after every rule or preference change.
    Nothing is written until a preset path is known (loaded or saved once).
    """

    def __init__(self, engine: MappingEngine, presets_dir: Path = DEFAULT_PRESETS_DIR, autosave: bool = True):
        """
        Initialize the PresetStore.

        Args:
            engine: Engine whose rules and preferences are persisted
            presets_dir: Directory used to resolve presets given by name
            autosave: Save after every change once a preset path is known
        """
        self._engine = engine
        self.presets_dir = presets_dir
        self._current_path: Path | None = None
        self._autosave = autosave
        self._loading = False
        engine.register_observer(self)

    @property
    def current_path(self) -> Path | None:
        return self._current_path

    def resolve(self, name_or_path: str | Path) -> Path:
        """A path as-is if it exists, otherwise ``<presets_dir>/<name>.json``."""
        path = Path(name_or_path).expanduser()
        if path.exists() or path.suffix == ".json":
            return path
        return self.presets_dir / f"{path.name}.json"

    def list_presets(self) -> list[Path]:
        if not self.presets_dir.exists():
            return []
        return sorted(self.presets_dir.glob("*.json"))

    @staticmethod
    def read(path: Path) -> MappingPreset:
        """
        Load and validate a preset file without applying it.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigFileInvalidError: If the JSON syntax is invalid
            MappingValidationError: If any mapping rule is malformed
            ConfigValidationError: If any other field is invalid
        """
        return PydanticPersistence.load_json(path, MappingPreset)

    def load(self, name_or_path: str | Path) -> MappingPreset:
        """
        Load a preset into the engine. A rejected preset leaves the engine untouched.

        Raises:
            Same as ``read``
        """
        path = self.resolve(name_or_path)
        preset = self.read(path)
        self._loading = True
        try:
            self._engine.load_preset(preset)
        finally:
            self._loading = False
        self._current_path = path
        logger.info(f"Loaded preset '{preset.name}' from {path}")
        return preset

    def save(self, path: Path | None = None, name: str | None = None) -> Path:
        """
        Save the engine's state as a preset.

        Raises:
            ValueError: If no path is given and no preset was loaded
        """
        target = path or self._current_path
        if target is None:
            raise ValueError("No preset path: load a preset or pass a path")
        preset = self._engine.to_preset(name=name)
        PydanticPersistence.save_json(preset, target)
        self._current_path = target
        logger.info(f"Saved preset '{preset.name}' to {target}")
        return target

    def _autosave_now(self) -> None:
        if not self._autosave or self._loading or self._current_path is None:
            return
        with ErrorContext(f"auto-save preset to {self._current_path}", logger, re_raise=False):
            self.save()

    # MappingObserver

    def on_mappings_changed(self, rules: list[MappingRule]) -> None:
        self._autosave_now()

    def on_preferences_changed(self) -> None:
        self._autosave_now()
