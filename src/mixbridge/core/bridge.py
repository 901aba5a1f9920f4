"""High-level bridge facade wiring MIDI, mapping and the mixer together."""

import logging
from concurrent.futures import Future

from mixbridge.exceptions import MixBridgeError, handle_errors
from mixbridge.mapping import MappingEngine, level_to_feedback
from mixbridge.midi import MidiMultiplexer
from mixbridge.mixer import DiscoveryService, MixerSupervisor
from mixbridge.models import (
    AppConfig,
    ChannelRef,
    CommandResult,
    DiscoveredMixer,
    LevelChange,
    MidiEvent,
    MixerAction,
    MixerCommand,
    MixerMetadata,
)
from mixbridge.protocols import BridgeObserver, ConnectionObserver, MidiBackend, MixerObserver
from mixbridge.utils import ObserverManager, load_object

from .reconnect import ReconnectionSupervisor

logger = logging.getLogger(__name__)

FALLBACK_DEVICE_HINT = "logic"


class Bridge:
    """
    Coordinates the mapping engine, the MIDI multiplexer and the mixer supervisor.

    Forward path: MIDI event -> ``on_midi_activity`` -> translate ->
    ``on_mixer_activity`` -> execute. Reverse path: mixer level change ->
    reverse lookup -> MIDI feedback (when enabled).

    Both paths contain their own errors: a failed command or feedback send
    is logged and never reaches the MIDI I/O thread or the mixer client.
    """

    def __init__(
        self,
        engine: MappingEngine,
        midi: MidiMultiplexer,
        mixer: MixerSupervisor,
        discovery: DiscoveryService,
        config: AppConfig | None = None,
    ):
        self.config = config or AppConfig()
        self.engine = engine
        self.midi = midi
        self.mixer = mixer
        self.discovery = discovery

        self.mixer.set_dca_mappings_check(engine.has_dca_mappings)
        self.reconnect = ReconnectionSupervisor(
            midi,
            mixer,
            preferred_midi_devices=engine.get_preferred_midi_devices,
            preferred_mixer_address=lambda: engine.preferred_mixer_ip,
            preferred_mixer_metadata=lambda: engine.preferred_mixer_metadata,
            midi_interval=self.config.midi_reconnect_interval,
            mixer_interval=self.config.mixer_reconnect_interval,
            availability_interval=self.config.midi_availability_interval,
            connect_timeout=self.config.connect_timeout,
        )

        self._observers = ObserverManager[BridgeObserver](observer_type_name="bridge")
        self._is_running = False

        midi.register_observer(self)
        mixer.register_observer(self)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        engine: MappingEngine | None = None,
        midi_backend: MidiBackend | None = None,
    ) -> "Bridge":
        """
        Build a bridge from configuration.

        The mixer client and discovery backend are resolved from their
        configured import paths; without them the bridge runs MIDI-only.

        Raises:
            ConfigValidationError: If a configured import path cannot be resolved
        """
        client_factory = None
        if config.mixer_client:
            client_factory = load_object(config.mixer_client, "mixer_client")
        else:
            logger.warning("No mixer client configured (mixer_client); mixer control is disabled")

        discovery_backend = None
        if config.discovery_backend:
            discovery_backend = load_object(config.discovery_backend, "discovery_backend")()

        engine = engine or MappingEngine()
        mixer = MixerSupervisor(
            client_factory,
            port=config.mixer_port,
            connect_timeout=config.connect_timeout,
            input_source_thresholds=config.input_source_thresholds,
            mute_group_interval=config.mute_group_poll_interval,
            dca_interval=config.dca_poll_interval,
            dca_tolerance=config.dca_change_tolerance,
        )
        return cls(
            engine=engine,
            midi=MidiMultiplexer(midi_backend),
            mixer=mixer,
            discovery=DiscoveryService(discovery_backend),
            config=config,
        )

    # =================================================================
    # Observers
    # =================================================================

    def register_observer(self, observer: BridgeObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: BridgeObserver) -> None:
        self._observers.unregister(observer)

    def register_connection_observer(self, observer: ConnectionObserver) -> None:
        self.reconnect.register_observer(observer)

    def register_mixer_observer(self, observer: MixerObserver) -> None:
        self.mixer.register_observer(observer)

    # =================================================================
    # Lifecycle
    # =================================================================

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self, discover: bool = True) -> None:
        """
        Bring both sides up.

        MIDI first (preferred devices, else a fallback device), then the
        reconnection timers, then the mixer: preferred address first,
        otherwise the first mixer found by discovery. The mixer step may
        block for the connect or discovery timeout.
        """
        if self._is_running:
            logger.warning("Bridge is already running")
            return
        self._is_running = True

        self._connect_initial_midi()
        self.reconnect.start()

        if not self.mixer.is_configured:
            return

        address = self.engine.preferred_mixer_ip
        if address and self._wait_for_mixer(self.connect_mixer(address, self.engine.preferred_mixer_metadata)):
            return

        if discover and not self.mixer.is_connected:
            found = self.discovery.discover(self.config.discovery_timeout)
            if found:
                mixer = found[0]
                self._wait_for_mixer(self.connect_mixer(mixer.ip, mixer.metadata))
            else:
                logger.info("No mixer found; will keep retrying the preferred address")

    def _connect_initial_midi(self) -> None:
        available = self.midi.available_inputs()
        connected_any = False
        for name in self.engine.get_preferred_midi_devices():
            if name in available and self.reconnect.connect_midi_device(name):
                connected_any = True

        if connected_any or not available:
            return

        fallback = next((d for d in available if FALLBACK_DEVICE_HINT in d.lower()), available[0])
        logger.info(f"No preferred MIDI device available, falling back to {fallback}")
        self.reconnect.connect_midi_device(fallback)

    @staticmethod
    def _wait_for_mixer(future: "Future[bool]") -> bool:
        try:
            return future.result()
        except MixBridgeError as e:
            logger.warning(e.user_message)
            return False

    def stop(self) -> None:
        """Stop timers, close the mixer session and every MIDI port."""
        if not self._is_running:
            return
        self._is_running = False
        self.reconnect.shutdown()
        self.mixer.shutdown()
        self.midi.disconnect_all()
        logger.info("Bridge stopped")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    # =================================================================
    # User actions
    # =================================================================

    def connect_mixer(self, address: str, metadata: MixerMetadata | None = None) -> "Future[bool]":
        """
        Connect to a mixer chosen by the user and remember it as preferred once adopted.

        Returns:
            Future resolving to True if this request became the current connection
        """
        return self.reconnect.connect_mixer(
            address,
            metadata,
            on_adopted=lambda: self.engine.set_preferred_mixer_ip(address, metadata),
        )

    def connect_discovered(self, mixer: DiscoveredMixer) -> "Future[bool]":
        return self.connect_mixer(mixer.ip, mixer.metadata)

    def set_mixer_volume(self, channel: ChannelRef, value: float) -> CommandResult:
        """Move a fader by hand; mapped controllers receive feedback."""
        result = self.mixer.execute(MixerCommand(action=MixerAction.VOLUME, target=channel, value=value))
        if result.success:
            self._send_feedback(LevelChange(target=channel, value=value))
        return result

    # =================================================================
    # MidiObserver
    # =================================================================

    def on_midi_message(self, event: MidiEvent) -> None:
        """Translate and execute synchronously, preserving per-device order."""
        self._observers.notify("on_midi_activity", event)

        command = self.engine.translate(event)
        if command is None:
            return

        self._observers.notify("on_mixer_activity", command)
        result = self.mixer.execute(command)
        if not result.success:
            logger.debug(f"Mixer command dropped: {result.error}")

    # =================================================================
    # MixerObserver
    # =================================================================

    def on_mixer_level(self, change: LevelChange) -> None:
        self._send_feedback(change)

    @handle_errors(operation_name="send MIDI feedback", re_raise=False, log_level=logging.DEBUG)
    def _send_feedback(self, change: LevelChange) -> None:
        if not self.engine.midi_feedback_enabled:
            return
        rule = self.engine.find_reverse_mapping(change.target.type, change.target.channel)
        if rule is None or not self.midi.has_output():
            return
        message = level_to_feedback(rule, change.value)
        if message is None:
            return
        if message.kind == "cc":
            self.midi.send_cc(message.channel, message.number, message.value)
        else:
            self.midi.send_note_on(message.channel, message.number, message.value)
