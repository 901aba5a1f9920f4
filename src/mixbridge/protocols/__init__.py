"""Protocol definitions for observers, events and external collaborators."""

from .backends import (
    DiscoveryBackend,
    MidiBackend,
    MidiInputPort,
    MidiOutputPort,
    MixerClient,
    MixerClientFactory,
)
from .events import ConnectionKind, MixerEvent
from .observers import (
    BridgeObserver,
    ConnectionObserver,
    MappingObserver,
    MidiObserver,
    MixerObserver,
)

__all__ = [
    # Events
    "ConnectionKind",
    "MixerEvent",
    # Observers
    "BridgeObserver",
    "ConnectionObserver",
    "MappingObserver",
    "MidiObserver",
    "MixerObserver",
    # Collaborators
    "DiscoveryBackend",
    "MidiBackend",
    "MidiInputPort",
    "MidiOutputPort",
    "MixerClient",
    "MixerClientFactory",
]
