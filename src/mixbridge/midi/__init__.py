"""MIDI transport: mido ports, normalization and multi-device management."""

from .backend import MidoBackend
from .multiplexer import MidiMultiplexer
from .normalize import build_message, normalize_message

__all__ = ["MidiMultiplexer", "MidoBackend", "build_message", "normalize_message"]
