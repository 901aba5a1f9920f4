"""Mixer-side models: channel references, commands and discovery results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import MixerAction


class ChannelRef(BaseModel):
    """Addresses one mixer channel, e.g. ``LINE 3`` or ``DCA 1``."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1, description="Channel type (LINE, AUX, DCA, ...)")
    channel: int = Field(ge=1, description="1-based channel number")

    @property
    def key(self) -> str:
        """Case-insensitive lookup key, e.g. ``LINE-3``."""
        return f"{self.type.upper()}-{self.channel}"


class GroupRef(BaseModel):
    """Addresses a mute group. Not a channel: it has no type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    channel: int = Field(ge=1, le=8, description="Mute group number (1-8)")


class MixerCommand(BaseModel):
    """A translated command ready for the mixer."""

    model_config = ConfigDict(frozen=True)

    action: MixerAction
    target: ChannelRef | GroupRef
    value: float | None = Field(default=None, description="Scaled value for volume/pan")
    toggle: bool | None = Field(default=None, description="Desired state for mute/solo/mutegroup")


class CommandResult(BaseModel):
    """Outcome of executing a command against the mixer."""

    model_config = ConfigDict(frozen=True)

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "CommandResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "CommandResult":
        return cls(success=False, error=error)


class MixerMetadata(BaseModel):
    """Descriptive information remembered about a mixer."""

    model: str | None = None
    device_name: str | None = None
    serial: str | None = None

    @property
    def display_name(self) -> str | None:
        """User-assigned name when known, otherwise the model."""
        return self.device_name or self.model


class DiscoveredMixer(BaseModel):
    """A mixer announcement seen during a discovery scan."""

    model_config = ConfigDict(frozen=True)

    ip: str
    port: int | None = None
    name: str = ""
    model: str = ""
    serial: str = ""
    device_name: str | None = None

    @property
    def metadata(self) -> MixerMetadata:
        return MixerMetadata(model=self.model or self.name or None,
                             device_name=self.device_name, serial=self.serial or None)

    @classmethod
    def from_announcement(cls, packet: Any) -> "DiscoveredMixer":
        """Build from whatever the discovery backend delivers (mapping or object)."""
        if isinstance(packet, DiscoveredMixer):
            return packet
        if isinstance(packet, dict):
            return cls.model_validate(packet)
        return cls.model_validate(packet, from_attributes=True)


class LevelChange(BaseModel):
    """A channel level reported by the mixer, 0-100."""

    model_config = ConfigDict(frozen=True)

    target: ChannelRef
    value: float = Field(description="Level 0-100")
