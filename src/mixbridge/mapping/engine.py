"""Mapping engine: translates MIDI events into mixer commands.

The engine owns the rule set and rebuilds four lookup structures on every
mutation:

- ``cc`` index: ``"cc-{device}-{channel}-{controller}"`` plus the
  device-agnostic ``"cc--{channel}-{controller}"``
- ``note`` index: same pattern for note triggers
- ``note-value`` list: range-based rules, scanned linearly
- reverse index: ``"{TYPE}-{channel}"`` of volume rules, for MIDI feedback

A device-specific key is always tried before the device-agnostic key, so a
rule pinned to a device wins over a global rule for the same trigger.
Within one key, the earlier rule in the set wins.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from pydantic import ValidationError

from mixbridge.exceptions import MappingValidationError
from mixbridge.models import (
    ChannelRef,
    FaderFilter,
    LevelVisibility,
    MappingPreset,
    MappingRule,
    MidiEvent,
    MidiEventKind,
    MixerAction,
    MixerCommand,
    MixerMetadata,
    TriggerType,
)
from mixbridge.protocols import MappingObserver
from mixbridge.utils import ObserverManager, clamp

logger = logging.getLogger(__name__)

MIDI_MAX = 127
PERCENT_MAX = 100.0


def scale_midi_value(raw: int, value_range: tuple[float, float]) -> float:
    """
    Scale a 0-127 MIDI value linearly into ``value_range``.

    The endpoints map exactly: 0 gives the range minimum and 127 the maximum.
    """
    low, high = value_range
    if raw <= 0:
        return float(low)
    if raw >= MIDI_MAX:
        return float(high)
    return clamp(low + (raw / MIDI_MAX) * (high - low), low, high)


def scale_note_value(note: int, note_min: int, note_max: int) -> float | None:
    """Position of ``note`` within ``[note_min, note_max]`` as 0-100, or None for an empty span."""
    span = note_max - note_min
    if span <= 0:
        return None
    return clamp((note - note_min) / span * PERCENT_MAX, 0.0, PERCENT_MAX)


@dataclass(frozen=True)
class _Indexes:
    """Immutable lookup snapshot; replaced wholesale on rebuild."""

    cc: dict[str, MappingRule] = field(default_factory=dict)
    note: dict[str, MappingRule] = field(default_factory=dict)
    note_value: tuple[MappingRule, ...] = ()
    reverse: dict[str, MappingRule] = field(default_factory=dict)
    has_dca: bool = False


def _build_indexes(rules: Iterable[MappingRule]) -> _Indexes:
    cc: dict[str, MappingRule] = {}
    note: dict[str, MappingRule] = {}
    note_value: list[MappingRule] = []
    reverse: dict[str, MappingRule] = {}
    has_dca = False

    for rule in rules:
        trigger_type = rule.midi.type
        if trigger_type == TriggerType.CC:
            cc.setdefault(rule.index_key, rule)
        elif trigger_type == TriggerType.NOTE:
            note.setdefault(rule.index_key, rule)
        else:
            note_value.append(rule)

        target = rule.mixer.target
        if isinstance(target, ChannelRef):
            if rule.mixer.action == MixerAction.VOLUME:
                reverse.setdefault(target.key, rule)
            if target.type.upper() == "DCA":
                has_dca = True

    # Device-specific range rules are scanned before global ones
    note_value.sort(key=lambda r: r.midi.device is None)

    return _Indexes(cc=cc, note=note, note_value=tuple(note_value), reverse=reverse, has_dca=has_dca)


class MappingEngine:
    """
    Owns the rule set and translates MIDI events into mixer commands.

    Also holds the preferences persisted alongside the rules (preferred
    mixer and MIDI devices, feedback and surface settings).

    Threading:
        Mutations are serialized by a lock and publish a new index snapshot.
        ``translate`` and ``find_reverse_mapping`` read the current snapshot
        without blocking, so they are safe to call from mido's I/O thread.
    """

    def __init__(self, rules: Iterable[MappingRule] | None = None):
        self._lock = Lock()
        self._rules: list[MappingRule] = list(rules or [])
        self._indexes = _build_indexes(self._rules)

        self._preset_name: str | None = None
        self._preset_description: str | None = None
        self._preferred_mixer_ip: str | None = None
        self._preferred_mixer_metadata = MixerMetadata()
        self._preferred_midi_devices: list[str] = []
        self._device_colors: dict[str, str] = {}
        self._fader_filter = FaderFilter.ALL
        self._midi_feedback_enabled = True
        self._level_visibility = LevelVisibility.NONE
        self._peak_hold = False

        self._observers = ObserverManager[MappingObserver](observer_type_name="mapping")

    # =================================================================
    # Observers
    # =================================================================

    def register_observer(self, observer: MappingObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: MappingObserver) -> None:
        self._observers.unregister(observer)

    def _notify_mappings_changed(self) -> None:
        self._observers.notify("on_mappings_changed", self.get_mappings())

    def _notify_preferences_changed(self) -> None:
        self._observers.notify("on_preferences_changed")

    # =================================================================
    # Rule set mutation
    # =================================================================

    @staticmethod
    def validate_rules(raw_rules: Iterable[MappingRule | dict[str, Any]], source: str | None = None) -> list[MappingRule]:
        """
        Validate a rule set as a whole.

        Raises:
            MappingValidationError: Listing every malformed rule; nothing is returned partially
        """
        rules: list[MappingRule] = []
        errors: list[str] = []
        for index, raw in enumerate(raw_rules):
            if isinstance(raw, MappingRule):
                rules.append(raw)
                continue
            try:
                rules.append(MappingRule.model_validate(raw))
            except ValidationError as e:
                for err in e.errors():
                    loc = ".".join(str(part) for part in err.get("loc", ()))
                    errors.append(f"mappings.{index}.{loc}: {err.get('msg', 'invalid')}")
        if errors:
            raise MappingValidationError(errors, source=source)
        return rules

    def _replace_rules(self, rules: list[MappingRule]) -> None:
        """Install a new rule list and its indexes. Caller holds the lock."""
        self._rules = rules
        self._indexes = _build_indexes(rules)

    def load_rules(self, raw_rules: Iterable[MappingRule | dict[str, Any]], source: str | None = None) -> None:
        """
        Replace the whole rule set atomically.

        Raises:
            MappingValidationError: If any rule is malformed; the current rules stay active
        """
        rules = self.validate_rules(list(raw_rules), source=source)
        with self._lock:
            self._replace_rules(rules)
        logger.info(f"Loaded {len(rules)} mapping rule(s)")
        self._notify_mappings_changed()

    def add_mapping(self, rule: MappingRule | dict[str, Any]) -> MappingRule:
        """Append a rule. Raises MappingValidationError for malformed input."""
        (validated,) = self.validate_rules([rule], source="add_mapping")
        with self._lock:
            self._replace_rules([*self._rules, validated])
        logger.debug(f"Added mapping: {validated}")
        self._notify_mappings_changed()
        return validated

    def remove_mapping(self, index: int) -> MappingRule | None:
        """Remove the rule at ``index``; out-of-range indexes are ignored."""
        with self._lock:
            if not 0 <= index < len(self._rules):
                return None
            rules = list(self._rules)
            removed = rules.pop(index)
            self._replace_rules(rules)
        logger.debug(f"Removed mapping {index}: {removed}")
        self._notify_mappings_changed()
        return removed

    def update_mapping(self, index: int, rule: MappingRule | dict[str, Any]) -> MappingRule | None:
        """Replace the rule at ``index``; out-of-range indexes are ignored."""
        (validated,) = self.validate_rules([rule], source="update_mapping")
        with self._lock:
            if not 0 <= index < len(self._rules):
                return None
            rules = list(self._rules)
            rules[index] = validated
            self._replace_rules(rules)
        logger.debug(f"Updated mapping {index}: {validated}")
        self._notify_mappings_changed()
        return validated

    def clear_mappings(self) -> None:
        with self._lock:
            self._replace_rules([])
        self._notify_mappings_changed()

    def get_mappings(self) -> list[MappingRule]:
        """Copy of the current rule list (rules themselves are immutable)."""
        with self._lock:
            return list(self._rules)

    def has_dca_mappings(self) -> bool:
        """True if any rule targets a DCA channel. Gates the DCA level poller."""
        return self._indexes.has_dca

    # =================================================================
    # Translation
    # =================================================================

    def translate(self, event: MidiEvent) -> MixerCommand | None:
        """
        Translate a MIDI event into at most one mixer command.

        Returns None when no rule matches. Never raises: any failure while
        building the command is logged and treated as no match.
        """
        try:
            indexes = self._indexes
            rule = self._match(indexes, event)
            if rule is None:
                return None
            return self._build_command(rule, event)
        except Exception as e:
            logger.error(f"Failed to translate {event}: {e}", exc_info=True)
            return None

    @staticmethod
    def _match(indexes: _Indexes, event: MidiEvent) -> MappingRule | None:
        if event.kind == MidiEventKind.CC:
            index, prefix, number = indexes.cc, "cc", event.controller
        elif event.is_note:
            index, prefix, number = indexes.note, "note", event.note
        else:
            return None

        rule = index.get(f"{prefix}-{event.source_device}-{event.channel}-{number}")
        if rule is None:
            rule = index.get(f"{prefix}--{event.channel}-{number}")
        if rule is not None or not event.is_note:
            return rule

        for candidate in indexes.note_value:
            trigger = candidate.midi
            if trigger.device is not None and trigger.device != event.source_device:
                continue
            if trigger.channel != event.channel:
                continue
            if trigger.note_min <= event.note <= trigger.note_max:
                return candidate
        return None

    @staticmethod
    def _build_command(rule: MappingRule, event: MidiEvent) -> MixerCommand | None:
        action = rule.mixer.action
        trigger = rule.midi

        if action.is_continuous:
            if trigger.type == TriggerType.NOTE_VALUE:
                value = scale_note_value(event.note, trigger.note_min, trigger.note_max)
                if value is None:
                    logger.debug(f"note-value rule with empty note span ignored: {rule}")
                    return None
            else:
                value = scale_midi_value(event.value, rule.mixer.effective_range)
            return MixerCommand(action=action, target=rule.mixer.target, value=value)

        if trigger.type == TriggerType.CC:
            active = event.value >= trigger.effective_threshold
        else:
            active = event.kind == MidiEventKind.NOTE_ON
        if trigger.invert:
            active = not active
        return MixerCommand(action=action, target=rule.mixer.target, toggle=active)

    def find_reverse_mapping(self, channel_type: str, channel: int) -> MappingRule | None:
        """
        Volume rule driving ``channel_type``/``channel``, for MIDI feedback.

        Case-insensitive on the channel type; a single dict lookup.
        """
        return self._indexes.reverse.get(f"{channel_type.upper()}-{channel}")

    # =================================================================
    # Presets and preferences
    # =================================================================

    def load_preset(self, preset: MappingPreset) -> None:
        """Install the rules and preferences carried by ``preset``."""
        rules = self.validate_rules(preset.mappings, source=preset.name)
        with self._lock:
            self._replace_rules(rules)
            self._preset_name = preset.name
            self._preset_description = preset.description
            self._preferred_mixer_ip = preset.mixer_ip
            self._preferred_mixer_metadata = MixerMetadata(
                model=preset.mixer_model,
                device_name=preset.mixer_device_name,
                serial=preset.mixer_serial,
            )
            self._preferred_midi_devices = preset.preferred_midi_devices
            self._device_colors = dict(preset.midi_device_colors)
            self._fader_filter = preset.fader_filter
            self._midi_feedback_enabled = preset.midi_feedback_enabled
            self._level_visibility = preset.level_visibility
            self._peak_hold = preset.peak_hold
        logger.info(f"Loaded preset '{preset.name}' with {len(rules)} mapping(s)")
        self._notify_mappings_changed()

    def to_preset(self, name: str | None = None, description: str | None = None) -> MappingPreset:
        """Snapshot rules and preferences as a preset."""
        with self._lock:
            return MappingPreset(
                name=name or self._preset_name or "Untitled",
                description=description or self._preset_description,
                mixer_ip=self._preferred_mixer_ip,
                mixer_model=self._preferred_mixer_metadata.model,
                mixer_device_name=self._preferred_mixer_metadata.device_name,
                mixer_serial=self._preferred_mixer_metadata.serial,
                midi_devices=list(self._preferred_midi_devices),
                midi_device_colors=dict(self._device_colors),
                fader_filter=self._fader_filter,
                midi_feedback_enabled=self._midi_feedback_enabled,
                level_visibility=self._level_visibility,
                peak_hold=self._peak_hold,
                mappings=list(self._rules),
            )

    @property
    def preset_name(self) -> str | None:
        return self._preset_name

    @property
    def preferred_mixer_ip(self) -> str | None:
        return self._preferred_mixer_ip

    @property
    def preferred_mixer_metadata(self) -> MixerMetadata:
        return self._preferred_mixer_metadata.model_copy()

    def set_preferred_mixer_ip(self, address: str | None, metadata: MixerMetadata | None = None) -> None:
        """Remember the mixer to reconnect to; metadata is kept for display and presets."""
        with self._lock:
            self._preferred_mixer_ip = address
            if metadata is not None:
                self._preferred_mixer_metadata = metadata.model_copy()
        logger.info(f"Set preferred mixer address: {address}")
        self._notify_preferences_changed()

    def get_preferred_midi_devices(self) -> list[str]:
        with self._lock:
            return list(self._preferred_midi_devices)

    def add_preferred_midi_device(self, device_name: str) -> None:
        with self._lock:
            if device_name in self._preferred_midi_devices:
                return
            self._preferred_midi_devices.append(device_name)
        logger.info(f"Added preferred MIDI device: {device_name}")
        self._notify_preferences_changed()

    def remove_preferred_midi_device(self, device_name: str) -> None:
        with self._lock:
            if device_name not in self._preferred_midi_devices:
                return
            self._preferred_midi_devices.remove(device_name)
        logger.info(f"Removed preferred MIDI device: {device_name}")
        self._notify_preferences_changed()

    def get_device_colors(self) -> dict[str, str]:
        """Copy of the per-device color map."""
        with self._lock:
            return dict(self._device_colors)

    def set_device_color(self, device_name: str, color: str) -> None:
        """Set a device color; an empty string removes the entry."""
        with self._lock:
            if color:
                self._device_colors[device_name] = color
            else:
                self._device_colors.pop(device_name, None)
        self._notify_preferences_changed()

    @property
    def fader_filter(self) -> FaderFilter:
        return self._fader_filter

    def set_fader_filter(self, fader_filter: FaderFilter | str) -> None:
        self._fader_filter = FaderFilter(fader_filter)
        self._notify_preferences_changed()

    @property
    def midi_feedback_enabled(self) -> bool:
        return self._midi_feedback_enabled

    def set_midi_feedback_enabled(self, enabled: bool) -> None:
        self._midi_feedback_enabled = enabled
        logger.info(f"MIDI feedback {'enabled' if enabled else 'disabled'}")
        self._notify_preferences_changed()

    @property
    def level_visibility(self) -> LevelVisibility:
        return self._level_visibility

    def set_level_visibility(self, visibility: LevelVisibility | str) -> None:
        self._level_visibility = LevelVisibility(visibility)
        self._notify_preferences_changed()

    @property
    def peak_hold(self) -> bool:
        return self._peak_hold

    def set_peak_hold(self, enabled: bool) -> None:
        self._peak_hold = enabled
        self._notify_preferences_changed()
