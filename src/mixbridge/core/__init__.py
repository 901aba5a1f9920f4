"""Core orchestration: reconnection and the bridge facade."""

from .bridge import Bridge
from .reconnect import ReconnectionSupervisor

__all__ = ["Bridge", "ReconnectionSupervisor"]
