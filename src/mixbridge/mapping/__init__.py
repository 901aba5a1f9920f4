"""Rule matching and value scaling between MIDI and the mixer."""

from .engine import MappingEngine, scale_midi_value, scale_note_value
from .feedback import FEEDBACK_VELOCITY, FeedbackMessage, level_to_feedback

__all__ = [
    "FEEDBACK_VELOCITY",
    "FeedbackMessage",
    "MappingEngine",
    "level_to_feedback",
    "scale_midi_value",
    "scale_note_value",
]
