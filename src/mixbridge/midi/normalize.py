"""Conversion between mido messages and MidiEvent."""

import mido

from mixbridge.models import MidiEvent, MidiEventKind

PITCHWHEEL_OFFSET = 8192


def normalize_message(msg: mido.Message, source_device: str) -> MidiEvent | None:
    """
    Convert a raw mido message into a MidiEvent.

    Channels become 1-based, NoteOn with velocity 0 becomes NoteOff and
    pitch bend is shifted to 0-16383. Other message types (clock, sysex,
    aftertouch, ...) return None.
    """
    msg_type = msg.type
    if msg_type == "control_change":
        return MidiEvent.cc(msg.channel + 1, msg.control, msg.value, source_device)
    if msg_type == "note_on":
        if msg.velocity == 0:
            return MidiEvent.note_off(msg.channel + 1, msg.note, 0, source_device)
        return MidiEvent.note_on(msg.channel + 1, msg.note, msg.velocity, source_device)
    if msg_type == "note_off":
        return MidiEvent.note_off(msg.channel + 1, msg.note, msg.velocity, source_device)
    if msg_type == "pitchwheel":
        return MidiEvent(
            kind=MidiEventKind.PITCH_BEND,
            channel=msg.channel + 1,
            value=msg.pitch + PITCHWHEEL_OFFSET,
            source_device=source_device,
        )
    return None


def build_message(kind: str, channel: int, number: int, value: int) -> mido.Message:
    """Build an outgoing message from a 1-based channel."""
    if kind == "cc":
        return mido.Message("control_change", channel=channel - 1, control=number, value=value)
    if kind in ("note_on", "note_off"):
        return mido.Message(kind, channel=channel - 1, note=number, velocity=value)
    raise ValueError(f"Unsupported MIDI message kind: {kind}")
