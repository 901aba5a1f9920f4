"""Utility modules."""

from .imports import load_object
from .observer import ObserverManager
from .persistence import PydanticPersistence
from .timers import PeriodicTask
from .validation import MAX_CHANNEL_COUNT, clamp, clamp_count

__all__ = [
    "MAX_CHANNEL_COUNT",
    "ObserverManager",
    "PeriodicTask",
    "PydanticPersistence",
    "clamp",
    "clamp_count",
    "load_object",
]
