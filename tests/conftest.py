"""Pytest fixtures for tests."""

import threading
import time
from collections.abc import Callable
from typing import Any

import mido
import pytest

from mixbridge.mapping import MappingEngine
from mixbridge.midi import MidiMultiplexer
from mixbridge.mixer import MixerSupervisor
from mixbridge.models import ChannelRef, MappingRule


# =================================================================
# MIDI fakes
# =================================================================


class FakeInputPort:
    """Input port that delivers messages when the test calls ``receive``."""

    def __init__(self, name: str, callback: Callable[[mido.Message], None]):
        self.name = name
        self.callback = callback
        self.closed = False

    def receive(self, msg: mido.Message) -> None:
        if not self.closed:
            self.callback(msg)

    def close(self) -> None:
        self.closed = True


class FakeOutputPort:
    """Output port that records what was sent."""

    def __init__(self, name: str, fail: bool = False):
        self.name = name
        self.sent: list[mido.Message] = []
        self.closed = False
        self.fail = fail

    def send(self, msg: mido.Message) -> None:
        if self.fail:
            raise OSError("device unplugged")
        self.sent.append(msg)

    def close(self) -> None:
        self.closed = True


class FakeMidiBackend:
    """In-memory MidiBackend. Tests edit ``inputs``/``outputs`` to plug and unplug devices."""

    def __init__(self, inputs: list[str] | None = None, outputs: list[str] | None = None):
        self.inputs = list(inputs or [])
        self.outputs = list(outputs if outputs is not None else self.inputs)
        self.failing_inputs: set[str] = set()
        self.opened_inputs: dict[str, FakeInputPort] = {}
        self.opened_outputs: dict[str, FakeOutputPort] = {}
        self.open_input_calls: list[str] = []

    def get_input_names(self) -> list[str]:
        return list(self.inputs)

    def get_output_names(self) -> list[str]:
        return list(self.outputs)

    def open_input(self, name: str, callback: Callable[[mido.Message], None]) -> FakeInputPort:
        self.open_input_calls.append(name)
        if name in self.failing_inputs or name not in self.inputs:
            raise OSError(f"cannot open {name}")
        port = FakeInputPort(name, callback)
        self.opened_inputs[name] = port
        return port

    def open_output(self, name: str) -> FakeOutputPort:
        if name not in self.outputs:
            raise OSError(f"no output named {name}")
        port = FakeOutputPort(name)
        self.opened_outputs[name] = port
        return port


# =================================================================
# Mixer fakes
# =================================================================


class FakeMixerClient:
    """
    MixerClient with a dict state tree.

    ``connect`` fails when ``connect_error`` is set and blocks until
    ``release`` is set when ``block`` is True.
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.state: dict[str, Any] = {}
        self.levels: dict[str, float] = {}
        self.calls: list[tuple] = []
        self.connect_error: Exception | None = None
        self.block = False
        self.release = threading.Event()
        self.closed = False
        self.callback: Callable[[str, dict[str, Any]], None] | None = None

    def connect(self, timeout: float) -> None:
        if self.block:
            self.release.wait(5)
        if self.connect_error is not None:
            raise self.connect_error

    def close(self) -> None:
        self.closed = True

    def on_event(self, callback: Callable[[str, dict[str, Any]], None]) -> None:
        self.callback = callback

    def emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        self.callback(name, payload)

    def set_channel_volume_linear(self, channel: ChannelRef, value: float) -> None:
        self.calls.append(("volume", channel.key, value))

    def toggle_mute(self, channel: ChannelRef) -> None:
        self.calls.append(("toggle_mute", channel.key))

    def set_mute(self, channel: ChannelRef, muted: bool) -> None:
        self.calls.append(("set_mute", channel.key, muted))

    def toggle_solo(self, channel: ChannelRef) -> None:
        self.calls.append(("toggle_solo", channel.key))

    def set_solo(self, channel: ChannelRef, soloed: bool) -> None:
        self.calls.append(("set_solo", channel.key, soloed))

    def set_pan(self, channel: ChannelRef, value: float) -> None:
        self.calls.append(("pan", channel.key, value))

    def get_level(self, channel: ChannelRef) -> float | None:
        return self.levels.get(channel.key)

    def read_state(self, path: str) -> Any:
        return self.state.get(path)

    def write_state(self, path: str, value: Any) -> None:
        self.state[path] = value

    def send_parameter(self, path: str, value: float) -> None:
        self.calls.append(("parameter", path, value))

    def meter_subscribe(self) -> None:
        self.calls.append(("meter_subscribe",))


class FakeMixerFactory:
    """Client factory recording every client it creates.

    ``prepare`` runs on each new client before it is returned, so tests can
    make a specific connect block or fail.
    """

    def __init__(self):
        self.clients: list[FakeMixerClient] = []
        self.prepare: Callable[[FakeMixerClient], None] | None = None

    def __call__(self, host: str, port: int) -> FakeMixerClient:
        client = FakeMixerClient(host, port)
        if self.prepare is not None:
            self.prepare(client)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeMixerClient:
        return self.clients[-1]

    def release_all(self) -> None:
        for client in self.clients:
            client.release.set()


class FakeDiscoveryBackend:
    """Delivers a fixed list of announcements."""

    def __init__(self, packets: list[Any] | None = None):
        self.packets = list(packets or [])
        self.scans: list[float] = []

    def scan(self, timeout: float, on_packet: Callable[[Any], None]) -> None:
        self.scans.append(timeout)
        for packet in self.packets:
            on_packet(packet)


# =================================================================
# Fixtures
# =================================================================


@pytest.fixture
def midi_backend():
    """Backend with a control surface and a keyboard plugged in."""
    return FakeMidiBackend(inputs=["Surface", "Keyboard"])


@pytest.fixture
def multiplexer(midi_backend):
    mux = MidiMultiplexer(midi_backend)
    yield mux
    mux.disconnect_all()


@pytest.fixture
def mixer_factory():
    factory = FakeMixerFactory()
    yield factory
    factory.release_all()


@pytest.fixture
def supervisor(mixer_factory):
    """Mixer supervisor with slow pollers so they never interfere with assertions."""
    sup = MixerSupervisor(mixer_factory, connect_timeout=2.0, mute_group_interval=60, dca_interval=60)
    yield sup
    mixer_factory.release_all()
    sup.shutdown()


@pytest.fixture
def engine():
    return MappingEngine()


@pytest.fixture
def volume_rule():
    """CC 7 on channel 1 drives LINE 1 volume."""
    return MappingRule.model_validate({
        "midi": {"type": "cc", "channel": 1, "controller": 7},
        "mixer": {"action": "volume", "channel": {"type": "LINE", "channel": 1}},
    })


@pytest.fixture
def wait_until():
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""

    def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.01)
        return predicate()

    return _wait
