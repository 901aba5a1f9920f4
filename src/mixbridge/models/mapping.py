"""Mapping rule model binding one MIDI trigger to one mixer action."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .enums import MixerAction, TriggerType
from .mixer import ChannelRef, GroupRef

DEFAULT_THRESHOLD = 64
DEFAULT_RANGE: tuple[float, float] = (0.0, 100.0)


class MidiTrigger(BaseModel):
    """MIDI side of a rule."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: TriggerType = Field(description="cc, note or note-value")
    channel: int = Field(ge=1, le=16, description="MIDI channel (1-16)")
    controller: int | None = Field(default=None, ge=0, le=127, description="CC number (cc)")
    note: int | None = Field(default=None, ge=0, le=127, description="Note number (note)")
    note_min: int | None = Field(default=None, ge=0, le=127, description="Lowest note (note-value)")
    note_max: int | None = Field(default=None, ge=0, le=127, description="Highest note (note-value)")
    threshold: int | None = Field(default=None, ge=0, le=127, description="CC on/off threshold")
    invert: bool = Field(default=False, description="Invert boolean controls")
    device: str | None = Field(default=None, description="Only match this input device (None = any)")

    @model_validator(mode="after")
    def check_required_fields(self) -> "MidiTrigger":
        """Each trigger type needs its own addressing fields."""
        if self.type == TriggerType.CC and self.controller is None:
            raise ValueError("cc triggers require 'controller'")
        if self.type == TriggerType.NOTE and self.note is None:
            raise ValueError("note triggers require 'note'")
        if self.type == TriggerType.NOTE_VALUE:
            if self.note_min is None or self.note_max is None:
                raise ValueError("note-value triggers require 'noteMin' and 'noteMax'")
            if self.note_min > self.note_max:
                raise ValueError("'noteMin' must not exceed 'noteMax'")
        return self

    @property
    def effective_threshold(self) -> int:
        return DEFAULT_THRESHOLD if self.threshold is None else self.threshold

    @property
    def device_key(self) -> str:
        """Device part of an index key; empty for device-agnostic rules."""
        return self.device or ""


class MixerTarget(BaseModel):
    """Mixer side of a rule."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    action: MixerAction
    target: ChannelRef | GroupRef = Field(
        validation_alias=AliasChoices("target", "channel"),
        description="Channel, or mute group for mutegroup",
    )
    range: tuple[float, float] | None = Field(default=None, description="[min, max] for scaling")

    @model_validator(mode="after")
    def check_target_shape(self) -> "MixerTarget":
        """Mute groups address a GroupRef, every other action a ChannelRef."""
        if self.action == MixerAction.MUTE_GROUP and not isinstance(self.target, GroupRef):
            raise ValueError("mutegroup actions target a group: {\"channel\": 1-8}")
        if self.action != MixerAction.MUTE_GROUP and not isinstance(self.target, ChannelRef):
            raise ValueError(f"{self.action.value} actions target a channel: {{\"type\", \"channel\"}}")
        return self

    @property
    def effective_range(self) -> tuple[float, float]:
        return DEFAULT_RANGE if self.range is None else self.range


class MappingRule(BaseModel):
    """Binds one MIDI trigger shape to one mixer action."""

    model_config = ConfigDict(frozen=True)

    midi: MidiTrigger
    mixer: MixerTarget

    @property
    def index_key(self) -> str | None:
        """Exact-match index key, or None for range-based note-value rules."""
        trigger = self.midi
        if trigger.type == TriggerType.CC:
            return f"cc-{trigger.device_key}-{trigger.channel}-{trigger.controller}"
        if trigger.type == TriggerType.NOTE:
            return f"note-{trigger.device_key}-{trigger.channel}-{trigger.note}"
        return None
