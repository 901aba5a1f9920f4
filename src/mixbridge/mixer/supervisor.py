"""Mixer connection supervisor: the single logical session to a mixer."""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from mixbridge.exceptions import (
    MixBridgeError,
    MixerConnectionError,
    MixerNotConnectedError,
    wrap_mixer_error,
)
from mixbridge.models import (
    ChannelRef,
    CommandResult,
    ConnectionState,
    GroupRef,
    LevelChange,
    MixerAction,
    MixerCommand,
    MixerMetadata,
)
from mixbridge.protocols import MixerClient, MixerClientFactory, MixerEvent, MixerObserver
from mixbridge.utils import ObserverManager, clamp, clamp_count

from . import paths
from .pollers import (
    DEFAULT_DCA_INTERVAL,
    DEFAULT_DCA_TOLERANCE,
    DEFAULT_MUTE_GROUP_INTERVAL,
    DcaLevelPoller,
    MuteGroupPoller,
)

logger = logging.getLogger(__name__)

DEFAULT_MIXER_PORT = 53000
DEFAULT_CONNECT_TIMEOUT = 10.0


class MixerSupervisor:
    """
    Owns at most one mixer session and everything read or written through it.

    Writes against a disconnected supervisor raise MixerNotConnectedError;
    reads return None, False or an empty list instead.

    Threading:
        The session handle is guarded by a lock; commands and reads take a
        snapshot of it and call the client outside the lock. Connects run
        on a small thread pool so their timeout can be enforced. Observers
        are notified from the client's event thread or a poller thread.
    """

    def __init__(
        self,
        client_factory: MixerClientFactory | None,
        port: int = DEFAULT_MIXER_PORT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        input_source_thresholds: tuple[float, float, float] = paths.DEFAULT_INPUT_SOURCE_THRESHOLDS,
        mute_group_interval: float = DEFAULT_MUTE_GROUP_INTERVAL,
        dca_interval: float = DEFAULT_DCA_INTERVAL,
        dca_tolerance: float = DEFAULT_DCA_TOLERANCE,
        has_dca_mappings: Callable[[], bool] = lambda: False,
    ):
        self._client_factory = client_factory
        self._port = port
        self._connect_timeout = connect_timeout
        self._input_source_thresholds = input_source_thresholds

        self._lock = threading.Lock()
        self._client: MixerClient | None = None
        self._address: str | None = None
        self._metadata = MixerMetadata()
        self._pending_connects = 0

        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="mixer-connect")
        self._observers = ObserverManager[MixerObserver](observer_type_name="mixer")

        self._mute_group_poller = MuteGroupPoller(
            read_state=self._poll_mute_group_state,
            on_change=lambda group, active: self._observers.notify("on_mute_group_changed", group, active),
            interval=mute_group_interval,
        )
        self._dca_poller = DcaLevelPoller(
            read_level=self._poll_dca_level,
            on_change=self._emit_dca_level,
            is_enabled=has_dca_mappings,
            interval=dca_interval,
            tolerance=dca_tolerance,
        )

    def register_observer(self, observer: MixerObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: MixerObserver) -> None:
        self._observers.unregister(observer)

    def set_dca_mappings_check(self, has_dca_mappings: Callable[[], bool]) -> None:
        """Predicate gating the DCA level poller."""
        self._dca_poller.set_enabled_check(has_dca_mappings)

    # =================================================================
    # State
    # =================================================================

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            if self._client is not None:
                return ConnectionState.CONNECTED
            if self._pending_connects:
                return ConnectionState.CONNECTING
            return ConnectionState.DISCONNECTED

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._client is not None

    @property
    def address(self) -> str | None:
        with self._lock:
            return self._address

    @property
    def metadata(self) -> MixerMetadata:
        with self._lock:
            return self._metadata.model_copy()

    @property
    def is_configured(self) -> bool:
        """False when no mixer client factory is available."""
        return self._client_factory is not None

    # =================================================================
    # Connection
    # =================================================================

    def connect(
        self,
        address: str,
        metadata: MixerMetadata | None = None,
        timeout: float | None = None,
        should_adopt: Callable[[], bool] | None = None,
        replace_existing: bool = True,
    ) -> bool:
        """
        Open a session to ``address``, closing any previous one first.

        Args:
            address: Mixer host
            metadata: Model/name/serial to remember for this session
            timeout: Connect timeout in seconds (default from construction)
            should_adopt: Checked once the session is up; when it returns
                False the new session is closed and nothing else changes
            replace_existing: When False, an open session is left alone and
                the new one is discarded if another connect got there first

        Returns:
            True if the session was adopted, False if it was discarded

        Raises:
            MixerConnectionError: If the client fails or times out; the
                supervisor is left disconnected
        """
        if self._client_factory is None:
            raise MixerConnectionError(address, "No mixer client configured")

        timeout = self._connect_timeout if timeout is None else timeout

        if replace_existing and (should_adopt is None or should_adopt()):
            self.disconnect()

        with self._lock:
            self._pending_connects += 1
        try:
            client = self._open_session(address, timeout)
        finally:
            with self._lock:
                self._pending_connects -= 1

        with self._lock:
            if (should_adopt is not None and not should_adopt()) or (
                not replace_existing and self._client is not None
            ):
                superseded = True
                previous, previous_address = None, None
            else:
                superseded = False
                previous, previous_address = self._client, self._address
                self._client = client
                self._address = address
                self._metadata = metadata.model_copy() if metadata else MixerMetadata()

        if superseded:
            self._close_client(client)
            logger.info(f"Discarded superseded mixer session to {address}")
            return False

        if previous is not None:
            # A concurrent connect won in between; replace its session
            self._mute_group_poller.stop()
            self._dca_poller.stop()
            self._close_client(previous)
            self._observers.notify("on_mixer_disconnected", previous_address)

        client.on_event(lambda name, payload: self._on_client_event(client, name, payload))
        try:
            client.meter_subscribe()
        except Exception as e:
            logger.warning(f"Meter subscription failed (continuing without meters): {e}")

        self._mute_group_poller.start()
        self._dca_poller.start()

        logger.info(f"Connected to mixer at {address}")
        self._observers.notify("on_mixer_connected", address)
        return True

    def _open_session(self, address: str, timeout: float) -> MixerClient:
        """Create a client and connect it within ``timeout``."""
        try:
            client = self._client_factory(address, self._port)
        except Exception as e:
            self._raise_connection_error(e, address)

        future = self._executor.submit(client.connect, timeout)
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError as e:
            future.cancel()
            self._close_client(client)
            raise MixerConnectionError(address, f"no response within {timeout}s", timed_out=True) from e
        except Exception as e:
            self._close_client(client)
            self._raise_connection_error(e, address)
        return client

    @staticmethod
    def _raise_connection_error(error: Exception, address: str) -> None:
        wrapped = wrap_mixer_error(error, address)
        if wrapped is error:
            raise wrapped
        raise wrapped from error

    def disconnect(self) -> None:
        """Close the session if one is open."""
        address = self._drop_session()
        if address is not None:
            logger.info(f"Disconnected from mixer at {address}")
            self._observers.notify("on_mixer_disconnected", address)

    def _drop_session(self, only: MixerClient | None = None) -> str | None:
        """
        Stop pollers, close and forget the session.

        Returns:
            The address of the dropped session, or None if there was none
            (or it was not ``only``)
        """
        with self._lock:
            client = self._client
            if client is None or (only is not None and client is not only):
                return None
            address = self._address
            self._client = None
            self._address = None
            self._metadata = MixerMetadata()

        self._mute_group_poller.stop()
        self._dca_poller.stop()
        self._close_client(client)
        return address

    @staticmethod
    def _close_client(client: MixerClient) -> None:
        try:
            client.close()
        except Exception as e:
            logger.debug(f"Error closing mixer client: {e}")

    def shutdown(self) -> None:
        """Disconnect and release the connect thread pool."""
        self.disconnect()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # =================================================================
    # Push events
    # =================================================================

    def _on_client_event(self, client: MixerClient, name: str, payload: dict[str, Any] | None) -> None:
        with self._lock:
            if client is not self._client:
                return
        payload = payload or {}
        try:
            if name == MixerEvent.CLOSED:
                address = self._drop_session(only=client)
                if address is not None:
                    logger.warning(f"Mixer at {address} closed the connection")
                    self._observers.notify("on_mixer_lost", address)
            elif name == MixerEvent.LEVEL:
                channel = ChannelRef.model_validate(payload["channel"])
                # Push levels are 0-1
                value = clamp(float(payload["value"]) * 100.0, 0.0, 100.0)
                self._observers.notify("on_mixer_level", LevelChange(target=channel, value=value))
            elif name == MixerEvent.MUTE:
                channel = ChannelRef.model_validate(payload["channel"])
                self._observers.notify("on_mixer_mute", channel, bool(payload["value"]))
            elif name == MixerEvent.SOLO:
                channel = ChannelRef.model_validate(payload["channel"])
                self._observers.notify("on_mixer_solo", channel, bool(payload["value"]))
            elif name == MixerEvent.PROPERTY_CHANGE:
                self._observers.notify("on_mixer_property", payload.get("path"), payload.get("value"))
            elif name == MixerEvent.STATE_READY:
                self._observers.notify("on_mixer_state_ready")
            else:
                logger.debug(f"Ignoring mixer event {name!r}")
        except Exception as e:
            logger.error(f"Malformed mixer event {name!r}: {payload!r} ({e})")

    # =================================================================
    # Commands
    # =================================================================

    def _require_client(self, operation: str) -> MixerClient:
        with self._lock:
            client = self._client
        if client is None:
            raise MixerNotConnectedError(operation)
        return client

    def set_volume(self, channel: ChannelRef, value: float) -> None:
        """
        Set a channel fader (0-100 linear).

        If the channel is the left side of a linked stereo pair the same
        value is written to ``channel + 1``. Link lookup failures are
        treated as unlinked.
        """
        client = self._require_client("set_volume")
        client.set_channel_volume_linear(channel, value)

        try:
            linked = self.get_channel_link(channel.type, channel.channel)
            if linked:
                partner = ChannelRef(type=channel.type, channel=channel.channel + 1)
                client.set_channel_volume_linear(partner, value)
        except Exception as e:
            logger.debug(f"Stereo link propagation skipped for {channel.key}: {e}")

    def toggle_mute(self, channel: ChannelRef) -> None:
        self._require_client("toggle_mute").toggle_mute(channel)

    def set_mute(self, channel: ChannelRef, muted: bool) -> None:
        self._require_client("set_mute").set_mute(channel, muted)

    def toggle_solo(self, channel: ChannelRef) -> None:
        self._require_client("toggle_solo").toggle_solo(channel)

    def set_solo(self, channel: ChannelRef, soloed: bool) -> None:
        self._require_client("set_solo").set_solo(channel, soloed)

    def set_pan(self, channel: ChannelRef, value: float) -> None:
        self._require_client("set_pan").set_pan(channel, value)

    def set_mute_group_state(self, group: int, active: bool) -> None:
        """
        Activate or release a mute group.

        There is no typed setter, so a raw parameter is sent and the
        client's local state updated to match.

        Raises:
            ValueError: If ``group`` is outside 1-8
            MixerNotConnectedError: If disconnected
        """
        if not 1 <= group <= paths.MUTE_GROUP_COUNT:
            raise ValueError(f"Mute group must be 1-{paths.MUTE_GROUP_COUNT}, got {group}")
        client = self._require_client("set_mute_group_state")
        path = paths.mute_group_state_path(group)
        value = 1.0 if active else 0.0
        client.send_parameter(path, value)
        client.write_state(path, value)

    def toggle_mute_group(self, group: int) -> None:
        self._require_client("toggle_mute_group")
        self.set_mute_group_state(group, not self.get_mute_group_state(group))

    def execute(self, command: MixerCommand) -> CommandResult:
        """
        Apply a translated command.

        Mute and solo toggle the channel when the command's state is
        active and do nothing otherwise, so a button toggles on press.
        Mute groups are set to the command's state.
        """
        try:
            action = command.action
            target = command.target
            if action == MixerAction.MUTE_GROUP:
                if not isinstance(target, GroupRef) or command.toggle is None:
                    return CommandResult.failed("mutegroup commands need a group and a state")
                self.set_mute_group_state(target.channel, command.toggle)
                return CommandResult.ok()

            if not isinstance(target, ChannelRef):
                return CommandResult.failed(f"{action.value} commands need a channel target")

            if action == MixerAction.VOLUME:
                if command.value is None:
                    return CommandResult.failed("volume commands need a value")
                self.set_volume(target, command.value)
            elif action == MixerAction.PAN:
                if command.value is None:
                    return CommandResult.failed("pan commands need a value")
                self.set_pan(target, command.value)
            elif action == MixerAction.MUTE:
                if command.toggle:
                    self.toggle_mute(target)
            elif action == MixerAction.SOLO:
                if command.toggle:
                    self.toggle_solo(target)
            return CommandResult.ok()

        except MixBridgeError as e:
            logger.debug(f"Command {command} failed: {e.technical_message}")
            return CommandResult.failed(e.user_message)
        except Exception as e:
            logger.error(f"Command {command} failed: {e}", exc_info=True)
            return CommandResult.failed(str(e))

    # =================================================================
    # Reads (soft)
    # =================================================================

    def _read(self, path: str) -> Any:
        """Raw state value, or None while disconnected or on read errors."""
        with self._lock:
            client = self._client
        if client is None:
            return None
        try:
            return client.read_state(path)
        except Exception as e:
            logger.debug(f"State read failed for {path}: {e}")
            return None

    def get_level(self, channel: ChannelRef) -> float | None:
        with self._lock:
            client = self._client
        if client is None:
            return None
        try:
            return client.get_level(channel)
        except Exception as e:
            logger.debug(f"Level read failed for {channel.key}: {e}")
            return None

    def get_channel_name(self, channel_type: str, channel: int) -> str | None:
        """User-assigned name (``"Ch N"`` if unnamed); None while disconnected."""
        if not self.is_connected:
            return None
        raw = self._read(paths.name_path(channel_type, channel))
        return paths.clean_name(raw, channel_type, channel)

    def get_channel_color(self, channel_type: str, channel: int) -> str | None:
        return paths.format_color(self._read(paths.channel_path(channel_type, channel, "color")))

    def get_channel_icon(self, channel_type: str, channel: int) -> str | None:
        raw = self._read(paths.channel_path(channel_type, channel, "iconid"))
        return str(raw) if raw not in (None, "") else None

    def get_channel_mute(self, channel_type: str, channel: int) -> bool | None:
        return paths.decode_bool(self._read(paths.channel_path(channel_type, channel, "mute")))

    def get_channel_solo(self, channel_type: str, channel: int) -> bool | None:
        return paths.decode_bool(self._read(paths.channel_path(channel_type, channel, "solo")))

    def get_channel_link(self, channel_type: str, channel: int) -> bool | None:
        """
        Whether a LINE channel is the left side of a stereo pair.

        Other channel types are never linked (False); None when unknown.
        """
        if not self.is_connected:
            return None
        if channel_type.lower() != "line":
            return False
        return paths.decode_bool(self._read(paths.channel_path("line", channel, "link")))

    def get_channel_input_source(self, channel_type: str, channel: int) -> int | None:
        raw = self._read(paths.channel_path(channel_type, channel, "inputsrc"))
        return paths.classify_input_source(raw, self._input_source_thresholds)

    def get_mute_group_state(self, group: int) -> bool:
        if not 1 <= group <= paths.MUTE_GROUP_COUNT:
            return False
        return bool(paths.decode_bool(self._read(paths.mute_group_state_path(group))))

    def get_mute_group_name(self, group: int) -> str:
        raw = self._read(paths.mute_group_name_path(group)) if 1 <= group <= paths.MUTE_GROUP_COUNT else None
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
        return f"M{group}"

    def get_mute_group_assignments(self, group: int) -> list[ChannelRef]:
        """LINE channels muted by ``group``."""
        if not 1 <= group <= paths.MUTE_GROUP_COUNT:
            return []
        return self._assigned_lines(paths.mute_group_mutes_path(group))

    def get_dca_group_assignments(self, dca: int) -> list[ChannelRef]:
        if not 1 <= dca <= paths.DCA_COUNT:
            return []
        return self._assigned_lines(paths.dca_assign_path(dca))

    def get_auto_filter_group_assignments(self, group: int) -> list[ChannelRef]:
        if group < 1:
            return []
        return self._assigned_lines(paths.auto_filter_assign_path(group))

    def _assigned_lines(self, path: str) -> list[ChannelRef]:
        return [ChannelRef(type="LINE", channel=n) for n in paths.parse_assignments(self._read(path))]

    def get_dca_level(self, dca: int) -> float | None:
        """DCA level normalized to 0-100."""
        raw = self.get_level(ChannelRef(type="DCA", channel=dca))
        if raw is None:
            return None
        return paths.normalize_dca_level(float(raw))

    # Bulk reads

    def get_all_channel_names(self, channel_type: str, count: Any) -> list[str]:
        if not self.is_connected:
            return []
        return [self.get_channel_name(channel_type, n) for n in range(1, clamp_count(count) + 1)]

    def get_all_mute_group_names(self) -> list[tuple[int, str]]:
        return [(group, self.get_mute_group_name(group)) for group in range(1, paths.MUTE_GROUP_COUNT + 1)]

    def get_auto_filter_group_names(self, count: Any = 8) -> list[str]:
        if not self.is_connected:
            return []
        return [self.get_channel_name("autofilter", n) for n in range(1, clamp_count(count, 64) + 1)]

    # =================================================================
    # Poller plumbing
    # =================================================================

    def _poll_mute_group_state(self, group: int) -> bool | None:
        return paths.decode_bool(self._read(paths.mute_group_state_path(group)))

    def _poll_dca_level(self, dca: int) -> float | None:
        raw = self.get_level(ChannelRef(type="DCA", channel=dca))
        return None if raw is None else float(raw)

    def _emit_dca_level(self, dca: int, level: float) -> None:
        change = LevelChange(target=ChannelRef(type="DCA", channel=dca), value=level)
        self._observers.notify("on_mixer_level", change)
