"""mixbridge: MIDI control surfaces for networked digital mixers."""

__version__ = "0.1.0"

from .mapping import MappingEngine
from .midi import MidiMultiplexer
from .mixer import DiscoveryService, MixerSupervisor

__all__ = [
    "DiscoveryService",
    "MappingEngine",
    "MidiMultiplexer",
    "MixerSupervisor",
]
