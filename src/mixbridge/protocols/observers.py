"""Observer protocol definitions.

Observers implement any subset of a protocol's methods; ObserverManager
skips callbacks an observer doesn't define.

- MIDI observers: react to normalized MIDI input and device changes
- Mixer observers: react to mixer state changes
- Connection observers: react to restored and lost connections
- Mapping observers: react to rule set and preference changes
- Bridge observers: react to translated activity flowing through the bridge
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mixbridge.models import ChannelRef, LevelChange, MappingRule, MidiEvent, MixerCommand

from .events import ConnectionKind


@runtime_checkable
class MidiObserver(Protocol):
    """
    Observer that receives MIDI input and device notifications.

    Note:
        Called from mido's I/O thread (messages) or the availability poll
        thread (device changes). Keep implementations fast and thread-safe.
    """

    def on_midi_message(self, event: "MidiEvent") -> None:
        """Handle a normalized inbound MIDI message."""
        ...

    def on_midi_device_connected(self, device_name: str) -> None:
        """Handle a MIDI device being opened."""
        ...

    def on_midi_device_disconnected(self, device_name: str) -> None:
        """Handle a MIDI device being closed on request."""
        ...

    def on_midi_device_lost(self, device_name: str) -> None:
        """Handle a MIDI device that vanished from enumeration (fires once per eviction)."""
        ...


@runtime_checkable
class MixerObserver(Protocol):
    """
    Observer that receives mixer state changes.

    Note:
        Called from the mixer client's thread or from a poller thread.
    """

    def on_mixer_connected(self, address: str) -> None:
        ...

    def on_mixer_disconnected(self, address: str | None) -> None:
        """Handle a session closed on request."""
        ...

    def on_mixer_lost(self, address: str | None) -> None:
        """Handle a session closed by the remote side."""
        ...

    def on_mixer_level(self, change: "LevelChange") -> None:
        """Handle a channel level change (0-100), including DCA levels found by polling."""
        ...

    def on_mixer_mute(self, channel: "ChannelRef", muted: bool) -> None:
        ...

    def on_mixer_solo(self, channel: "ChannelRef", soloed: bool) -> None:
        ...

    def on_mixer_property(self, path: str, value: Any) -> None:
        """Handle any other state path change (main assign, input source, ...)."""
        ...

    def on_mute_group_changed(self, group: int, active: bool) -> None:
        """Handle a mute group toggled, typically at the physical mixer."""
        ...

    def on_mixer_state_ready(self) -> None:
        ...


@runtime_checkable
class ConnectionObserver(Protocol):
    """Observer that receives connection restored/lost notifications."""

    def on_connection_restored(self, kind: ConnectionKind, name: str) -> None:
        """
        Handle a connection coming (back) up.

        Args:
            kind: MIDI or MIXER
            name: Device name (MIDI) or address (mixer)
        """
        ...

    def on_device_lost(self, device_name: str) -> None:
        ...

    def on_mixer_lost(self, address: str | None) -> None:
        ...


@runtime_checkable
class MappingObserver(Protocol):
    """
    Observer that receives rule set and preference changes.

    Used by the preset service to persist after every mutation.
    """

    def on_mappings_changed(self, rules: list["MappingRule"]) -> None:
        """Handle any add/remove/update/clear/load of the rule set."""
        ...

    def on_preferences_changed(self) -> None:
        """Handle a change of preferred devices, mixer address or surface settings."""
        ...


@runtime_checkable
class BridgeObserver(Protocol):
    """Observer that receives activity flowing through the bridge."""

    def on_midi_activity(self, event: "MidiEvent") -> None:
        ...

    def on_mixer_activity(self, command: "MixerCommand") -> None:
        ...
