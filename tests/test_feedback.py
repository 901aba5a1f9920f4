"""Tests for mixer level -> MIDI feedback scaling."""

import pytest

from mixbridge.mapping import FEEDBACK_VELOCITY, level_to_feedback
from mixbridge.models import MappingRule


def make_rule(midi: dict) -> MappingRule:
    return MappingRule.model_validate({
        "midi": midi,
        "mixer": {"action": "volume", "channel": {"type": "LINE", "channel": 1}},
    })


@pytest.mark.unit
class TestLevelToFeedback:
    """Test level_to_feedback."""

    def test_cc_scaling(self):
        rule = make_rule({"type": "cc", "channel": 2, "controller": 7})
        message = level_to_feedback(rule, 100.0)
        assert (message.kind, message.channel, message.number, message.value) == ("cc", 2, 7, 127)
        assert level_to_feedback(rule, 0.0).value == 0
        assert level_to_feedback(rule, 50.0).value == 64

    def test_level_clamped(self):
        rule = make_rule({"type": "cc", "channel": 1, "controller": 7})
        assert level_to_feedback(rule, 150.0).value == 127
        assert level_to_feedback(rule, -5.0).value == 0

    def test_note_value_position(self):
        rule = make_rule({"type": "note-value", "channel": 1, "noteMin": 36, "noteMax": 48})
        message = level_to_feedback(rule, 50.0)
        assert message.kind == "note_on"
        assert message.number == 42
        assert message.value == FEEDBACK_VELOCITY
        assert level_to_feedback(rule, 100.0).number == 48
        assert level_to_feedback(rule, 0.0).number == 36

    def test_single_note_has_no_feedback(self):
        rule = make_rule({"type": "note", "channel": 1, "note": 60})
        assert level_to_feedback(rule, 75.0) is None
