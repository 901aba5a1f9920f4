"""Inbound MIDI event model."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import MidiEventKind


class MidiEvent(BaseModel):
    """A normalized MIDI message from one input device.

    Channels are 1-based (1-16). ``value`` is the CC value or note velocity
    (0-127), or the 14-bit pitch bend value (0-16383).
    """

    model_config = ConfigDict(frozen=True)

    kind: MidiEventKind = Field(description="Message kind")
    channel: int = Field(ge=1, le=16, description="MIDI channel (1-16)")
    controller: int | None = Field(default=None, ge=0, le=127, description="CC number")
    note: int | None = Field(default=None, ge=0, le=127, description="Note number")
    value: int = Field(ge=0, le=16383, description="CC value, velocity or pitch bend")
    source_device: str = Field(description="Name of the input device the message came from")

    @model_validator(mode="after")
    def check_shape(self) -> "MidiEvent":
        """Ensure each kind carries the fields it needs."""
        if self.kind == MidiEventKind.CC and self.controller is None:
            raise ValueError("cc events require a controller number")
        if self.kind in (MidiEventKind.NOTE_ON, MidiEventKind.NOTE_OFF) and self.note is None:
            raise ValueError(f"{self.kind.value} events require a note number")
        if self.kind != MidiEventKind.PITCH_BEND and self.value > 127:
            raise ValueError(f"{self.kind.value} value must be 0-127")
        return self

    @property
    def is_note(self) -> bool:
        """True for NoteOn and NoteOff."""
        return self.kind in (MidiEventKind.NOTE_ON, MidiEventKind.NOTE_OFF)

    @classmethod
    def cc(cls, channel: int, controller: int, value: int, source_device: str) -> "MidiEvent":
        """Create a Control Change event."""
        return cls(kind=MidiEventKind.CC, channel=channel, controller=controller,
                   value=value, source_device=source_device)

    @classmethod
    def note_on(cls, channel: int, note: int, velocity: int, source_device: str) -> "MidiEvent":
        """Create a NoteOn event."""
        return cls(kind=MidiEventKind.NOTE_ON, channel=channel, note=note,
                   value=velocity, source_device=source_device)

    @classmethod
    def note_off(cls, channel: int, note: int, velocity: int, source_device: str) -> "MidiEvent":
        """Create a NoteOff event."""
        return cls(kind=MidiEventKind.NOTE_OFF, channel=channel, note=note,
                   value=velocity, source_device=source_device)
