"""Enumerations for the MIDI/mixer bridge."""

from enum import Enum


class MidiEventKind(str, Enum):
    """Kinds of inbound MIDI messages the bridge understands."""

    CC = "cc"
    NOTE_ON = "note_on"
    NOTE_OFF = "note_off"
    PITCH_BEND = "pitch_bend"


class TriggerType(str, Enum):
    """Shape of the MIDI trigger a mapping rule listens for."""

    CC = "cc"  # Control change on channel/controller
    NOTE = "note"  # Single note, NoteOn/NoteOff
    NOTE_VALUE = "note-value"  # Note number within a range encodes a value


class MixerAction(str, Enum):
    """Mixer operations a rule can drive."""

    VOLUME = "volume"
    MUTE = "mute"
    SOLO = "solo"
    PAN = "pan"
    MUTE_GROUP = "mutegroup"

    @property
    def is_continuous(self) -> bool:
        """True for actions that carry a scaled value rather than a boolean."""
        return self in (MixerAction.VOLUME, MixerAction.PAN)


class ConnectionState(str, Enum):
    """Lifecycle of the single logical mixer connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class FaderFilter(str, Enum):
    """Which faders a surface shows."""

    ALL = "all"
    ADDED = "added"
    MAPPED = "mapped"


class LevelVisibility(str, Enum):
    """How channel levels are displayed."""

    NONE = "none"
    INDICATOR = "indicator"
    METER = "meter"
