"""Mixer level -> MIDI feedback scaling."""

from dataclasses import dataclass

from mixbridge.models import MappingRule, TriggerType
from mixbridge.utils import clamp

FEEDBACK_VELOCITY = 100


@dataclass(frozen=True)
class FeedbackMessage:
    """One outgoing MIDI message that reflects a mixer level on a control surface."""

    kind: str  # "cc" or "note_on"
    channel: int  # 1-based
    number: int  # controller or note
    value: int  # CC value or velocity


def level_to_feedback(rule: MappingRule, level: float) -> FeedbackMessage | None:
    """
    Build the feedback message for ``rule`` at ``level`` (0-100).

    CC rules send ``round(level / 100 * 127)``. note-value rules send the
    note at the same relative position in their note range. Single-note
    rules have no continuous feedback and return None.
    """
    pct = clamp(level, 0.0, 100.0) / 100.0
    trigger = rule.midi

    if trigger.type == TriggerType.CC:
        return FeedbackMessage("cc", trigger.channel, trigger.controller, round(pct * 127))

    if trigger.type == TriggerType.NOTE_VALUE:
        note = round(pct * (trigger.note_max - trigger.note_min)) + trigger.note_min
        return FeedbackMessage("note_on", trigger.channel, note, FEEDBACK_VELOCITY)

    return None
