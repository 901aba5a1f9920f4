"""Reconnection supervisor for the MIDI and mixer sides of the bridge.

Three timers run independently:

- MIDI loop: opens preferred devices that are enumerable but not connected
- Mixer loop: retries the preferred mixer while disconnected, one attempt
  at a time
- Availability poll: evicts MIDI devices that were unplugged

Mixer connects are arbitrated by a generation counter. Every user request
increments it; every attempt remembers the value it started with and may
only adopt its session (and announce it) if that value is still current.
A slow automatic retry therefore can't overwrite a newer user choice.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from mixbridge.exceptions import MidiError, MixerConnectionError
from mixbridge.midi import MidiMultiplexer
from mixbridge.mixer import MixerSupervisor
from mixbridge.models import ConnectionState, MixerMetadata
from mixbridge.protocols import ConnectionKind, ConnectionObserver
from mixbridge.utils import ObserverManager, PeriodicTask

logger = logging.getLogger(__name__)

DEFAULT_MIDI_INTERVAL = 3.0
DEFAULT_MIXER_INTERVAL = 3.0
DEFAULT_AVAILABILITY_INTERVAL = 2.0


class ReconnectionSupervisor:
    """Keeps both sides connected without either blocking the other."""

    def __init__(
        self,
        midi: MidiMultiplexer,
        mixer: MixerSupervisor,
        preferred_midi_devices: Callable[[], list[str]],
        preferred_mixer_address: Callable[[], str | None],
        preferred_mixer_metadata: Callable[[], MixerMetadata | None] = lambda: None,
        midi_interval: float = DEFAULT_MIDI_INTERVAL,
        mixer_interval: float = DEFAULT_MIXER_INTERVAL,
        availability_interval: float = DEFAULT_AVAILABILITY_INTERVAL,
        connect_timeout: float | None = None,
    ):
        self._midi = midi
        self._mixer = mixer
        self._preferred_midi_devices = preferred_midi_devices
        self._preferred_mixer_address = preferred_mixer_address
        self._preferred_mixer_metadata = preferred_mixer_metadata
        self._connect_timeout = connect_timeout

        self._lock = threading.Lock()
        self._generation = 0
        self._mixer_busy = False

        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="mixer-reconnect")
        self._observers = ObserverManager[ConnectionObserver](observer_type_name="connection")

        self._midi_task = PeriodicTask("midi-reconnect", midi_interval, self.tick_midi)
        self._mixer_task = PeriodicTask("mixer-reconnect", mixer_interval, self.tick_mixer)
        self._availability_task = PeriodicTask(
            "midi-availability", availability_interval, self.check_midi_availability
        )

        midi.register_observer(self)
        mixer.register_observer(self)

    def register_observer(self, observer: ConnectionObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: ConnectionObserver) -> None:
        self._observers.unregister(observer)

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def mixer_attempt_in_flight(self) -> bool:
        with self._lock:
            return self._mixer_busy

    # =================================================================
    # Lifecycle
    # =================================================================

    def _tasks(self) -> tuple[PeriodicTask, ...]:
        return (self._midi_task, self._mixer_task, self._availability_task)

    @property
    def is_running(self) -> bool:
        return all(task.is_running for task in self._tasks())

    def start(self) -> None:
        """Start all timers."""
        for task in self._tasks():
            task.start()
        logger.info("Reconnection supervisor started")

    def stop(self) -> None:
        """Stop all timers together."""
        for task in self._tasks():
            task.stop()
        logger.info("Reconnection supervisor stopped")

    def shutdown(self) -> None:
        self.stop()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # =================================================================
    # MIDI side
    # =================================================================

    def tick_midi(self) -> None:
        """Connect every preferred device that is enumerable and not yet open."""
        preferred = self._preferred_midi_devices()
        if not preferred:
            return
        available = set(self._midi.available_inputs())
        connected = set(self._midi.connected_devices())

        for name in preferred:
            if name in connected or name not in available:
                continue
            self.connect_midi_device(name)

    def connect_midi_device(self, device_name: str) -> bool:
        """Open a device and announce it; failures are logged and left for the next tick."""
        try:
            self._midi.connect_device(device_name)
        except MidiError as e:
            logger.debug(f"MIDI connect to {device_name} failed, retrying later: {e.technical_message}")
            return False
        logger.info(f"MIDI device restored: {device_name}")
        self._observers.notify("on_connection_restored", ConnectionKind.MIDI, device_name)
        return True

    def check_midi_availability(self) -> None:
        """Evict unplugged devices (reported through ``on_midi_device_lost``)."""
        self._midi.check_availability()

    # =================================================================
    # Mixer side
    # =================================================================

    def tick_mixer(self) -> None:
        """Start one automatic attempt if disconnected, configured and idle."""
        if not self._mixer.is_configured or self._mixer.state != ConnectionState.DISCONNECTED:
            return
        address = self._preferred_mixer_address()
        if not address:
            return

        with self._lock:
            if self._mixer_busy:
                logger.debug("Mixer reconnect already in flight, skipping tick")
                return
            self._mixer_busy = True
            generation = self._generation
        metadata = self._preferred_mixer_metadata()

        def attempt() -> None:
            try:
                self._attempt(address, metadata, generation, automatic=True)
            except MixerConnectionError as e:
                logger.debug(f"Mixer reconnect to {address} failed, retrying later: {e.user_message}")
            except Exception as e:
                logger.error(f"Unexpected error reconnecting to mixer: {e}", exc_info=True)
            finally:
                with self._lock:
                    self._mixer_busy = False

        try:
            self._executor.submit(attempt)
        except RuntimeError as e:
            # Executor already shut down
            logger.debug(f"Mixer reconnect not scheduled: {e}")
            with self._lock:
                self._mixer_busy = False

    def connect_mixer(
        self,
        address: str,
        metadata: MixerMetadata | None = None,
        on_adopted: Callable[[], None] | None = None,
    ) -> "Future[bool]":
        """
        User-initiated connect. Proceeds immediately, ignoring the busy guard.

        Args:
            address: Mixer host
            metadata: Model/name/serial to remember for this session
            on_adopted: Runs once the session is adopted, only while this
                request is still the newest one (e.g. to store the preference)

        Returns:
            Future resolving to True if this attempt became the current
            connection, False if a newer request superseded it; it raises
            MixerConnectionError if the connect itself failed
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
        logger.info(f"Connecting to mixer at {address} (request {generation})")
        return self._executor.submit(self._attempt, address, metadata, generation, on_adopted=on_adopted)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _attempt(
        self,
        address: str,
        metadata: MixerMetadata | None,
        generation: int,
        automatic: bool = False,
        on_adopted: Callable[[], None] | None = None,
    ) -> bool:
        try:
            adopted = self._mixer.connect(
                address,
                metadata,
                timeout=self._connect_timeout,
                should_adopt=lambda: self._is_current(generation),
                replace_existing=not automatic,
            )
        except MixerConnectionError:
            if not self._is_current(generation):
                logger.debug(f"Ignoring failure of superseded mixer attempt to {address}")
                return False
            raise

        if not adopted:
            return False
        # Held across the hook so a newer request can't slip in before it runs
        with self._lock:
            if generation != self._generation:
                return False
            if on_adopted is not None:
                try:
                    on_adopted()
                except Exception as e:
                    logger.error(f"Error after adopting mixer at {address}: {e}", exc_info=True)
        self._observers.notify("on_connection_restored", ConnectionKind.MIXER, address)
        return True

    # =================================================================
    # Observer callbacks (MIDI multiplexer and mixer supervisor)
    # =================================================================

    def on_midi_device_lost(self, device_name: str) -> None:
        self._observers.notify("on_device_lost", device_name)

    def on_mixer_lost(self, address: str | None) -> None:
        self._observers.notify("on_mixer_lost", address)
