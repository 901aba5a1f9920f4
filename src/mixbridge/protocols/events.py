"""Domain events for observer pattern.

This module defines events that can occur within the bridge:
- Mixer push events: what the mixer client reports on its own
- Connection events: which side of the bridge a connection notice is about
"""

from enum import Enum


class MixerEvent(str, Enum):
    """Push events delivered by a mixer client."""

    LEVEL = "level"                      # Channel fader moved
    MUTE = "mute"                        # Channel mute changed
    SOLO = "solo"                        # Channel solo changed
    PROPERTY_CHANGE = "propertyChange"   # Any other state path changed
    STATE_READY = "state-ready"          # Full state dump received
    CLOSED = "closed"                    # Session closed by the remote side


class ConnectionKind(str, Enum):
    """Side of the bridge a connection notification refers to."""

    MIDI = "midi"
    MIXER = "mixer"
