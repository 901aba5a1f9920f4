"""Mixer side of the bridge: connection supervision, polling and discovery."""

from .discovery import DiscoveryService
from .network import local_addresses
from .pollers import DcaLevelPoller, MuteGroupPoller
from .supervisor import MixerSupervisor

__all__ = [
    "DcaLevelPoller",
    "DiscoveryService",
    "MixerSupervisor",
    "MuteGroupPoller",
    "local_addresses",
]
