"""CLI commands for mixbridge."""

from .midi import midi_group
from .mixer import mixer_group
from .preset import preset_group
from .run import run

__all__ = ["midi_group", "mixer_group", "preset_group", "run"]
