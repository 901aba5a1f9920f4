"""Change-detection pollers for mixer state the push-event stream doesn't report.

- MuteGroupPoller: mute groups toggled at the physical mixer
- DcaLevelPoller: DCA fader levels
"""

import logging
from collections.abc import Callable

from mixbridge.utils.timers import PeriodicTask

from .paths import DCA_COUNT, MUTE_GROUP_COUNT, normalize_dca_level

logger = logging.getLogger(__name__)

DEFAULT_MUTE_GROUP_INTERVAL = 0.2
DEFAULT_DCA_INTERVAL = 0.1
DEFAULT_DCA_TOLERANCE = 0.1


class MuteGroupPoller:
    """
    Emits ``on_change(group, active)`` when a mute group's state flips.

    The last observed states are seeded on ``start()`` so the state found
    at connect time never produces an event.
    """

    def __init__(
        self,
        read_state: Callable[[int], bool | None],
        on_change: Callable[[int, bool], None],
        interval: float = DEFAULT_MUTE_GROUP_INTERVAL,
        group_count: int = MUTE_GROUP_COUNT,
    ):
        self._read_state = read_state
        self._on_change = on_change
        self._group_count = group_count
        self._last: dict[int, bool] = {}
        self._task = PeriodicTask("mute-group-poller", interval, self.poll)

    def seed(self) -> None:
        self._last.clear()
        for group in range(1, self._group_count + 1):
            try:
                state = self._read_state(group)
            except Exception as e:
                logger.debug(f"Could not seed mute group {group}: {e}")
                continue
            if state is not None:
                self._last[group] = state

    def poll(self) -> None:
        for group in range(1, self._group_count + 1):
            try:
                state = self._read_state(group)
                if state is None:
                    continue
                previous = self._last.get(group)
                self._last[group] = state
                if previous is not None and previous != state:
                    logger.debug(f"Mute group {group} changed: {'on' if state else 'off'}")
                    self._on_change(group, state)
            except Exception as e:
                logger.error(f"Error polling mute group {group}: {e}")

    def start(self) -> None:
        self.seed()
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
        self._last.clear()

    @property
    def is_running(self) -> bool:
        return self._task.is_running


class DcaLevelPoller:
    """
    Emits ``on_change(dca, level)`` when a DCA level moves by more than ``tolerance``.

    Levels are normalized to 0-100. The whole tick is skipped while
    ``is_enabled()`` is False (no DCA channel mapped).
    """

    def __init__(
        self,
        read_level: Callable[[int], float | None],
        on_change: Callable[[int, float], None],
        is_enabled: Callable[[], bool] = lambda: True,
        interval: float = DEFAULT_DCA_INTERVAL,
        tolerance: float = DEFAULT_DCA_TOLERANCE,
        dca_count: int = DCA_COUNT,
    ):
        self._read_level = read_level
        self._on_change = on_change
        self._is_enabled = is_enabled
        self._tolerance = tolerance
        self._dca_count = dca_count
        self._last: dict[int, float] = {}
        self._task = PeriodicTask("dca-level-poller", interval, self.poll)

    def set_enabled_check(self, is_enabled: Callable[[], bool]) -> None:
        self._is_enabled = is_enabled

    def poll(self) -> None:
        if not self._is_enabled():
            return
        for dca in range(1, self._dca_count + 1):
            try:
                raw = self._read_level(dca)
                if raw is None:
                    continue
                level = normalize_dca_level(raw)
                previous = self._last.get(dca)
                if previous is None:
                    self._last[dca] = level
                    continue
                # Rounded so a 0.1 step between one-decimal readings is not "above" 0.1
                if round(abs(level - previous), 6) > self._tolerance:
                    self._last[dca] = level
                    self._on_change(dca, level)
            except Exception as e:
                logger.error(f"Error polling DCA {dca}: {e}")

    def start(self) -> None:
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
        self._last.clear()

    @property
    def is_running(self) -> bool:
        return self._task.is_running
