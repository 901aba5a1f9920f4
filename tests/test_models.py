"""Tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from mixbridge.models import (
    AppConfig,
    ChannelRef,
    DiscoveredMixer,
    GroupRef,
    MappingPreset,
    MappingRule,
    MidiEvent,
    MidiEventKind,
    MidiTrigger,
    MixerAction,
    MixerTarget,
    TriggerType,
)


@pytest.mark.unit
class TestMidiTrigger:
    """Test MidiTrigger validation."""

    def test_cc_requires_controller(self):
        with pytest.raises(ValidationError, match="controller"):
            MidiTrigger(type=TriggerType.CC, channel=1)

    def test_note_requires_note(self):
        with pytest.raises(ValidationError, match="note"):
            MidiTrigger(type=TriggerType.NOTE, channel=1)

    def test_note_value_requires_ordered_range(self):
        with pytest.raises(ValidationError):
            MidiTrigger(type=TriggerType.NOTE_VALUE, channel=1, note_min=60, note_max=48)

        trigger = MidiTrigger.model_validate({"type": "note-value", "channel": 2, "noteMin": 36, "noteMax": 48})
        assert trigger.note_min == 36
        assert trigger.note_max == 48

    def test_channel_range(self):
        with pytest.raises(ValidationError):
            MidiTrigger(type=TriggerType.CC, channel=0, controller=7)
        with pytest.raises(ValidationError):
            MidiTrigger(type=TriggerType.CC, channel=17, controller=7)

    def test_default_threshold(self):
        trigger = MidiTrigger(type=TriggerType.CC, channel=1, controller=64)
        assert trigger.effective_threshold == 64
        assert MidiTrigger(type=TriggerType.CC, channel=1, controller=64, threshold=10).effective_threshold == 10


@pytest.mark.unit
class TestMixerTarget:
    """Test MixerTarget parsing."""

    def test_channel_alias(self):
        target = MixerTarget.model_validate({"action": "volume", "channel": {"type": "AUX", "channel": 3}})
        assert target.target == ChannelRef(type="AUX", channel=3)
        assert target.effective_range == (0.0, 100.0)

    def test_mute_group_targets_group(self):
        target = MixerTarget.model_validate({"action": "mutegroup", "channel": {"channel": 4}})
        assert isinstance(target.target, GroupRef)
        assert target.target.channel == 4

    def test_mute_group_rejects_channel(self):
        with pytest.raises(ValidationError):
            MixerTarget.model_validate({"action": "mutegroup", "channel": {"type": "LINE", "channel": 1}})

    def test_mute_group_number_bounded(self):
        with pytest.raises(ValidationError):
            MixerTarget.model_validate({"action": "mutegroup", "channel": {"channel": 9}})

    def test_volume_rejects_group(self):
        with pytest.raises(ValidationError):
            MixerTarget.model_validate({"action": "volume", "channel": {"channel": 1}})

    def test_custom_range(self):
        target = MixerTarget.model_validate(
            {"action": "pan", "channel": {"type": "LINE", "channel": 1}, "range": [-50, 50]}
        )
        assert target.effective_range == (-50.0, 50.0)
        assert target.action.is_continuous


@pytest.mark.unit
class TestMappingRule:
    """Test MappingRule index keys."""

    def test_cc_index_key(self, volume_rule):
        assert volume_rule.index_key == "cc--1-7"

    def test_device_specific_key(self):
        rule = MappingRule.model_validate({
            "midi": {"type": "note", "channel": 10, "note": 36, "device": "Pads"},
            "mixer": {"action": "mute", "channel": {"type": "LINE", "channel": 5}},
        })
        assert rule.index_key == "note-Pads-10-36"

    def test_note_value_has_no_key(self):
        rule = MappingRule.model_validate({
            "midi": {"type": "note-value", "channel": 1, "noteMin": 0, "noteMax": 10},
            "mixer": {"action": "volume", "channel": {"type": "LINE", "channel": 1}},
        })
        assert rule.index_key is None

    def test_rule_is_immutable(self, volume_rule):
        with pytest.raises(ValidationError):
            volume_rule.midi = None


@pytest.mark.unit
class TestMidiEvent:
    """Test MidiEvent shape checks."""

    def test_factories(self):
        event = MidiEvent.cc(1, 7, 100, "Surface")
        assert event.kind == MidiEventKind.CC
        assert not event.is_note
        assert MidiEvent.note_on(1, 60, 100, "Surface").is_note
        assert MidiEvent.note_off(1, 60, 0, "Surface").is_note

    def test_cc_requires_controller(self):
        with pytest.raises(ValidationError):
            MidiEvent(kind=MidiEventKind.CC, channel=1, value=1, source_device="x")

    def test_seven_bit_values(self):
        with pytest.raises(ValidationError):
            MidiEvent.cc(1, 7, 200, "Surface")
        bend = MidiEvent(kind=MidiEventKind.PITCH_BEND, channel=1, value=16383, source_device="x")
        assert bend.value == 16383


@pytest.mark.unit
class TestMixerModels:
    """Test mixer-side models."""

    def test_channel_key_is_uppercase(self):
        assert ChannelRef(type="line", channel=3).key == "LINE-3"

    def test_discovered_from_dict(self):
        mixer = DiscoveredMixer.from_announcement(
            {"ip": "10.0.0.5", "model": "Mixer32", "serial": "ABC", "device_name": "FOH"}
        )
        assert mixer.metadata.display_name == "FOH"
        assert mixer.metadata.serial == "ABC"

    def test_discovered_from_object(self):
        class Packet:
            ip = "10.0.0.6"
            name = "Desk"
            model = ""
            serial = ""
            port = 53000
            device_name = None

        mixer = DiscoveredMixer.from_announcement(Packet())
        assert mixer.ip == "10.0.0.6"
        assert mixer.metadata.model == "Desk"
        assert mixer.metadata.serial is None


@pytest.mark.unit
class TestMappingPreset:
    """Test preset parsing."""

    def test_camel_case_keys(self):
        preset = MappingPreset.model_validate({
            "name": "Live",
            "mixerIp": "192.168.1.50",
            "midiDevices": ["Surface"],
            "midiFeedbackEnabled": False,
            "mappings": [],
        })
        assert preset.mixer_ip == "192.168.1.50"
        assert preset.midi_feedback_enabled is False
        assert preset.preferred_midi_devices == ["Surface"]

    def test_legacy_single_device(self):
        preset = MappingPreset(name="Old", midi_device="Keyboard")
        assert preset.preferred_midi_devices == ["Keyboard"]

    def test_no_devices(self):
        assert MappingPreset(name="Empty").preferred_midi_devices == []

    def test_dump_uses_aliases(self, volume_rule):
        preset = MappingPreset(name="Live", mixer_ip="10.0.0.1", mappings=[volume_rule])
        data = preset.model_dump(by_alias=True)
        assert data["mixerIp"] == "10.0.0.1"
        assert data["mappings"][0]["mixer"]["action"] == MixerAction.VOLUME


@pytest.mark.unit
class TestAppConfig:
    """Test AppConfig defaults and validation."""

    def test_defaults(self):
        config = AppConfig()
        assert config.mixer_port == 53000
        assert config.midi_reconnect_interval == 3.0
        assert config.mixer_client is None

    def test_thresholds_must_ascend(self):
        with pytest.raises(ValidationError):
            AppConfig(input_source_thresholds=(0.5, 0.2, 0.9))

    def test_last_preset_serialized_as_string(self, tmp_path):
        config = AppConfig(last_preset=tmp_path / "live.json")
        assert config.model_dump()["last_preset"] == str(tmp_path / "live.json")
