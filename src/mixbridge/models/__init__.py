"""Data models for the MIDI/mixer bridge."""

from .config import AppConfig
from .enums import (
    ConnectionState,
    FaderFilter,
    LevelVisibility,
    MidiEventKind,
    MixerAction,
    TriggerType,
)
from .mapping import MappingRule, MidiTrigger, MixerTarget
from .midi import MidiEvent
from .mixer import (
    ChannelRef,
    CommandResult,
    DiscoveredMixer,
    GroupRef,
    LevelChange,
    MixerCommand,
    MixerMetadata,
)
from .preset import MappingPreset

__all__ = [
    "AppConfig",
    # Models
    "ChannelRef",
    "CommandResult",
    "DiscoveredMixer",
    "GroupRef",
    "LevelChange",
    "MappingPreset",
    "MappingRule",
    "MidiEvent",
    "MidiTrigger",
    "MixerCommand",
    "MixerMetadata",
    "MixerTarget",
    # Enums
    "ConnectionState",
    "FaderFilter",
    "LevelVisibility",
    "MidiEventKind",
    "MixerAction",
    "TriggerType",
]
