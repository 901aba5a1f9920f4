"""Multi-device MIDI input/output multiplexer."""

import logging
import threading
from collections.abc import Callable

import mido

from mixbridge.exceptions import MidiPortError
from mixbridge.models import MidiEvent
from mixbridge.protocols import MidiBackend, MidiInputPort, MidiObserver, MidiOutputPort
from mixbridge.utils import ObserverManager

from .backend import MidoBackend
from .normalize import build_message, normalize_message

logger = logging.getLogger(__name__)

SCAN_CLEANUP_WAIT = 2.0


class _InputHandle:
    """
    An open input port plus the listeners receiving its raw messages.

    mido allows a single callback per port, so extra listeners (scan mode)
    attach here instead of re-opening the port.
    """

    def __init__(self, name: str):
        self.name = name
        self.port: MidiInputPort | None = None
        self._listeners: list[Callable[[mido.Message], None]] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: Callable[[mido.Message], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[mido.Message], None]) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def dispatch(self, msg: mido.Message) -> None:
        """Port callback; runs in mido's I/O thread."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(msg)
            except Exception as e:
                logger.error(f"Error in MIDI listener for {self.name}: {e}", exc_info=True)

    def close(self) -> None:
        if self.port is None:
            return
        try:
            self.port.close()
        except Exception as e:
            logger.debug(f"Error closing MIDI input {self.name}: {e}")
        self.port = None


class MidiMultiplexer:
    """
    Manages any number of simultaneously open MIDI devices.

    Inputs and outputs are keyed by device name. Every open input forwards
    normalized MidiEvents, tagged with the device name, to registered
    MidiObservers.

    Threading:
        Port maps are guarded by a lock. Observer callbacks fire outside
        the lock from mido's I/O thread (messages) or from whichever
        thread triggered a connect, disconnect or eviction.
    """

    def __init__(self, backend: MidiBackend | None = None):
        self._backend = backend or MidoBackend()
        self._inputs: dict[str, _InputHandle] = {}
        self._outputs: dict[str, MidiOutputPort] = {}
        self._lock = threading.Lock()
        self._observers = ObserverManager[MidiObserver](observer_type_name="MIDI")

    def register_observer(self, observer: MidiObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: MidiObserver) -> None:
        self._observers.unregister(observer)

    # =================================================================
    # Enumeration
    # =================================================================

    def available_inputs(self) -> list[str]:
        """Input names the OS currently enumerates (empty if enumeration fails)."""
        try:
            return list(self._backend.get_input_names())
        except Exception as e:
            logger.error(f"Failed to enumerate MIDI inputs: {e}")
            return []

    def available_outputs(self) -> list[str]:
        """Output names the OS currently enumerates (empty if enumeration fails)."""
        try:
            return list(self._backend.get_output_names())
        except Exception as e:
            logger.error(f"Failed to enumerate MIDI outputs: {e}")
            return []

    # =================================================================
    # Connection
    # =================================================================

    def connect_device(self, device_name: str) -> None:
        """
        Open the input named ``device_name`` and, if possible, the output of the same name.

        Idempotent: connecting an open device does nothing. Other open
        devices are unaffected.

        Raises:
            MidiPortError: If the input cannot be opened
        """
        with self._lock:
            if device_name in self._inputs:
                logger.debug(f"MIDI device already connected: {device_name}")
                return

            handle = _InputHandle(device_name)
            handle.add_listener(lambda msg: self._forward(device_name, msg))
            try:
                handle.port = self._backend.open_input(device_name, handle.dispatch)
            except Exception as e:
                raise MidiPortError(device_name, str(e)) from e
            self._inputs[device_name] = handle

            if device_name not in self._outputs:
                try:
                    self._outputs[device_name] = self._backend.open_output(device_name)
                except Exception as e:
                    logger.debug(f"No MIDI output for {device_name}: {e}")

        logger.info(f"Connected MIDI device: {device_name}")
        self._observers.notify("on_midi_device_connected", device_name)

    def disconnect_device(self, device_name: str) -> None:
        """Close input and output of ``device_name``; unknown names are ignored."""
        if self._remove(device_name):
            logger.info(f"Disconnected MIDI device: {device_name}")
            self._observers.notify("on_midi_device_disconnected", device_name)

    def disconnect_all(self) -> None:
        with self._lock:
            names = list(self._inputs)
        for name in names:
            self.disconnect_device(name)
        # Outputs that never had a matching input
        with self._lock:
            outputs = list(self._outputs.items())
            self._outputs.clear()
        for name, port in outputs:
            self._close_output(name, port)

    def _remove(self, device_name: str) -> bool:
        """Drop and close a device's ports. True if an input was removed."""
        with self._lock:
            handle = self._inputs.pop(device_name, None)
            output = self._outputs.pop(device_name, None)
        if handle is not None:
            handle.close()
        if output is not None:
            self._close_output(device_name, output)
        return handle is not None

    @staticmethod
    def _close_output(name: str, port: MidiOutputPort) -> None:
        try:
            port.close()
        except Exception as e:
            logger.debug(f"Error closing MIDI output {name}: {e}")

    # =================================================================
    # Status and stale detection
    # =================================================================

    def check_availability(self) -> list[str]:
        """
        Evict connected devices that vanished from OS enumeration.

        Each evicted device gets exactly one ``on_midi_device_lost``
        notification.

        Returns:
            Names of evicted devices
        """
        try:
            available = set(self._backend.get_input_names())
        except Exception as e:
            logger.error(f"Failed to enumerate MIDI inputs, skipping availability check: {e}")
            return []

        with self._lock:
            stale = [name for name in self._inputs if name not in available]

        evicted = []
        for name in stale:
            # Another thread may have evicted it in between
            if self._remove(name):
                evicted.append(name)
                logger.warning(f"MIDI device disappeared: {name}")
                self._observers.notify("on_midi_device_lost", name)
        return evicted

    def connected_devices(self) -> list[str]:
        """Names of open input devices, after evicting stale ones."""
        self.check_availability()
        with self._lock:
            return list(self._inputs)

    def is_device_connected(self, device_name: str) -> bool:
        return device_name in self.connected_devices()

    def has_output(self) -> bool:
        with self._lock:
            return bool(self._outputs)

    # =================================================================
    # Input
    # =================================================================

    def _forward(self, device_name: str, msg: mido.Message) -> None:
        """Normalize a raw message and notify observers."""
        try:
            event = normalize_message(msg, device_name)
        except Exception as e:
            logger.error(f"Failed to normalize MIDI message {msg} from {device_name}: {e}")
            return
        if event is None:
            return
        self._observers.notify("on_midi_message", event)

    def scan_all_inputs(self, callback: Callable[[MidiEvent], None]) -> Callable[[], None]:
        """
        Listen on every enumerable input until the first message arrives.

        Already open devices get a temporary listener on their existing
        handle; other ports are opened scan-only and closed again on
        cleanup. The first normalized message from any port fires
        ``callback`` once and ends the scan.

        Returns:
            Cleanup function; safe to call any number of times
        """
        state_lock = threading.Lock()
        fired = False
        cleaned = False
        attached: list[tuple[_InputHandle, Callable[[mido.Message], None]]] = []
        scan_handles: list[_InputHandle] = []
        stopped = threading.Event()

        def cleanup() -> None:
            nonlocal cleaned
            with state_lock:
                already_cleaned = cleaned
                cleaned = True
                to_detach = list(attached)
                to_close = list(scan_handles)
                attached.clear()
                scan_handles.clear()
            if already_cleaned:
                # Another caller is closing the ports; return once it is done
                stopped.wait(SCAN_CLEANUP_WAIT)
                return
            for handle, listener in to_detach:
                handle.remove_listener(listener)
            for handle in to_close:
                handle.close()
            stopped.set()
            logger.debug("MIDI scan stopped")

        def make_listener(device_name: str) -> Callable[[mido.Message], None]:
            def on_scan_message(msg: mido.Message) -> None:
                nonlocal fired
                event = normalize_message(msg, device_name)
                if event is None:
                    return
                with state_lock:
                    if fired or cleaned:
                        return
                    fired = True
                logger.info(f"MIDI scan captured {event.kind.value} from {device_name}")
                try:
                    callback(event)
                finally:
                    # Closing a port from its own callback thread can deadlock
                    threading.Thread(target=cleanup, daemon=True).start()

            return on_scan_message

        for name in self.available_inputs():
            with state_lock:
                if cleaned:
                    break
            listener = make_listener(name)
            with self._lock:
                existing = self._inputs.get(name)
            if existing is not None:
                existing.add_listener(listener)
                with state_lock:
                    if not cleaned:
                        attached.append((existing, listener))
                        continue
                # The scan ended while ports were still being attached
                existing.remove_listener(listener)
                break

            handle = _InputHandle(name)
            handle.add_listener(listener)
            try:
                handle.port = self._backend.open_input(name, handle.dispatch)
            except Exception as e:
                logger.warning(f"Could not open {name} for scanning: {e}")
                continue
            with state_lock:
                if not cleaned:
                    scan_handles.append(handle)
                    continue
            handle.close()
            break

        with state_lock:
            count = len(attached) + len(scan_handles)
        logger.debug(f"MIDI scan listening on {count} port(s)")
        return cleanup

    # =================================================================
    # Output
    # =================================================================

    def send_cc(self, channel: int, controller: int, value: int, device_name: str | None = None) -> None:
        """Send a Control Change (1-based channel) to one device or all outputs."""
        self._send(build_message("cc", channel, controller, value), device_name)

    def send_note_on(self, channel: int, note: int, velocity: int, device_name: str | None = None) -> None:
        self._send(build_message("note_on", channel, note, velocity), device_name)

    def send_note_off(self, channel: int, note: int, velocity: int = 0, device_name: str | None = None) -> None:
        self._send(build_message("note_off", channel, note, velocity), device_name)

    def _send(self, msg: mido.Message, device_name: str | None) -> None:
        """Best-effort send; unknown devices and send errors are ignored."""
        with self._lock:
            if device_name is None:
                targets = list(self._outputs.items())
            elif device_name in self._outputs:
                targets = [(device_name, self._outputs[device_name])]
            else:
                targets = []

        for name, port in targets:
            try:
                port.send(msg)
            except Exception as e:
                logger.debug(f"MIDI send to {name} failed: {e}")
