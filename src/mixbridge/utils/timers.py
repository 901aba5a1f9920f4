"""Periodic background tasks."""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs ``func`` every ``interval`` seconds on a daemon thread.

    An exception in one tick is logged and the next tick still runs.
    ``run_once()`` executes a single tick synchronously (used by tests
    and for an immediate first pass).
    """

    def __init__(self, name: str, interval: float, func: Callable[[], None]):
        self.name = name
        self.interval = interval
        self._func = func
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            logger.warning(f"{self.name} is already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.debug(f"{self.name} started (every {self.interval}s)")

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.debug(f"{self.name} stopped")

    def run_once(self) -> None:
        try:
            self._func()
        except Exception as e:
            logger.error(f"Error in {self.name}: {e}", exc_info=True)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.run_once()
