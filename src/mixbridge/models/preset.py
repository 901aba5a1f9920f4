"""Mapping preset: the rule set plus the preferences stored with it."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import FaderFilter, LevelVisibility
from .mapping import MappingRule


class MappingPreset(BaseModel):
    """A named, persisted rule set with connection preferences."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1, description="Preset name")
    version: str = Field(default="1.0", description="Preset format version")
    description: str | None = None

    # Preferred mixer
    mixer_ip: str | None = Field(default=None, description="Preferred mixer address")
    mixer_model: str | None = Field(default=None, description="Remembered mixer model")
    mixer_device_name: str | None = Field(default=None, description="Remembered user-assigned mixer name")
    mixer_serial: str | None = Field(default=None, description="Remembered mixer serial number")

    # Preferred MIDI devices
    midi_device: str | None = Field(default=None, description="Legacy single preferred MIDI device")
    midi_devices: list[str] | None = Field(default=None, description="Preferred MIDI device names")
    midi_device_colors: dict[str, str] = Field(default_factory=dict, description="Per-device colors")

    # Surface preferences
    fader_filter: FaderFilter = FaderFilter.ALL
    midi_feedback_enabled: bool = True
    level_visibility: LevelVisibility = LevelVisibility.NONE
    peak_hold: bool = False

    mappings: list[MappingRule] = Field(default_factory=list)

    @property
    def preferred_midi_devices(self) -> list[str]:
        """Device list, falling back to the legacy single-device field."""
        if self.midi_devices:
            return list(self.midi_devices)
        if self.midi_device:
            return [self.midi_device]
        return []
