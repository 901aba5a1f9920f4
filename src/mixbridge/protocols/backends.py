"""Narrow interfaces to the external MIDI transport and mixer protocol.

The bridge never speaks a wire protocol itself. It calls through these
protocols; mido ports satisfy the MIDI ones directly, and a mixer vendor
library is adapted to MixerClient/DiscoveryBackend.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import mido

if TYPE_CHECKING:
    from mixbridge.models import ChannelRef


@runtime_checkable
class MidiInputPort(Protocol):
    """An open MIDI input. Messages arrive via the callback given at open time."""

    name: str

    def close(self) -> None: ...


@runtime_checkable
class MidiOutputPort(Protocol):
    """An open MIDI output."""

    name: str

    def send(self, msg: mido.Message) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class MidiBackend(Protocol):
    """Enumerates and opens MIDI ports."""

    def get_input_names(self) -> list[str]: ...

    def get_output_names(self) -> list[str]: ...

    def open_input(self, name: str, callback: Callable[[mido.Message], None]) -> MidiInputPort: ...

    def open_output(self, name: str) -> MidiOutputPort: ...


@runtime_checkable
class MixerClient(Protocol):
    """
    One session to a networked mixer.

    ``connect`` blocks until the session is up or ``timeout`` elapses.
    Push events are delivered to the callback registered with ``on_event``
    as ``(event_name, payload)``; see MixerEvent for names.
    """

    def connect(self, timeout: float) -> None: ...

    def close(self) -> None: ...

    def on_event(self, callback: Callable[[str, dict[str, Any]], None]) -> None: ...

    def set_channel_volume_linear(self, channel: "ChannelRef", value: float) -> None: ...

    def toggle_mute(self, channel: "ChannelRef") -> None: ...

    def set_mute(self, channel: "ChannelRef", muted: bool) -> None: ...

    def toggle_solo(self, channel: "ChannelRef") -> None: ...

    def set_solo(self, channel: "ChannelRef", soloed: bool) -> None: ...

    def set_pan(self, channel: "ChannelRef", value: float) -> None: ...

    def get_level(self, channel: "ChannelRef") -> float | None: ...

    def read_state(self, path: str) -> Any: ...

    def write_state(self, path: str, value: Any) -> None:
        """Update the client's local state cache without sending anything."""
        ...

    def send_parameter(self, path: str, value: float) -> None:
        """Send a raw parameter-write packet (used where no typed setter exists)."""
        ...

    def meter_subscribe(self) -> None: ...


MixerClientFactory = Callable[[str, int], MixerClient]
"""Creates a client for ``(host, port)``."""


@runtime_checkable
class DiscoveryBackend(Protocol):
    """Listens for mixer broadcast announcements."""

    def scan(self, timeout: float, on_packet: Callable[[Any], None]) -> None:
        """Deliver every announcement seen within ``timeout`` seconds, then return."""
        ...
