"""Tests for the mixer connection supervisor."""

from unittest.mock import Mock

import pytest

from mixbridge.exceptions import MixerConnectionError, MixerNotConnectedError
from mixbridge.mixer import MixerSupervisor
from mixbridge.models import (
    ChannelRef,
    ConnectionState,
    GroupRef,
    LevelChange,
    MixerAction,
    MixerCommand,
    MixerMetadata,
)

LINE1 = ChannelRef(type="LINE", channel=1)


@pytest.mark.unit
class TestConnect:
    """Test session lifecycle."""

    def test_connect(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)

        assert supervisor.connect("10.0.0.5", MixerMetadata(model="Mixer32")) is True

        assert supervisor.state == ConnectionState.CONNECTED
        assert supervisor.address == "10.0.0.5"
        assert supervisor.metadata.model == "Mixer32"
        assert mixer_factory.last.host == "10.0.0.5"
        assert mixer_factory.last.port == 53000
        assert ("meter_subscribe",) in mixer_factory.last.calls
        observer.on_mixer_connected.assert_called_once_with("10.0.0.5")

    def test_no_client_configured(self):
        supervisor = MixerSupervisor(None)
        assert not supervisor.is_configured
        with pytest.raises(MixerConnectionError):
            supervisor.connect("10.0.0.5")

    def test_connect_failure(self, supervisor, mixer_factory):
        mixer_factory.prepare = lambda client: setattr(client, "connect_error", OSError("refused"))

        with pytest.raises(MixerConnectionError) as exc_info:
            supervisor.connect("10.0.0.5")

        assert "refused" in exc_info.value.technical_message
        assert not exc_info.value.timed_out
        assert supervisor.state == ConnectionState.DISCONNECTED
        assert mixer_factory.last.closed

    def test_connect_timeout(self, supervisor, mixer_factory):
        mixer_factory.prepare = lambda client: setattr(client, "block", True)

        with pytest.raises(MixerConnectionError) as exc_info:
            supervisor.connect("10.0.0.5", timeout=0.05)

        assert exc_info.value.timed_out
        assert not supervisor.is_connected
        assert mixer_factory.last.closed

    def test_connect_replaces_previous_session(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)

        supervisor.connect("10.0.0.5")
        first = mixer_factory.last
        supervisor.connect("10.0.0.6")

        assert first.closed
        assert supervisor.address == "10.0.0.6"
        observer.on_mixer_disconnected.assert_called_once_with("10.0.0.5")

    def test_superseded_session_discarded(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)

        adopted = supervisor.connect("10.0.0.5", should_adopt=lambda: False)

        assert adopted is False
        assert mixer_factory.last.closed
        assert not supervisor.is_connected
        observer.on_mixer_connected.assert_not_called()

    def test_keep_existing_session(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.connect("10.0.0.2")
        current = mixer_factory.last
        supervisor.register_observer(observer)

        adopted = supervisor.connect("10.0.0.1", replace_existing=False)

        assert adopted is False
        assert supervisor.address == "10.0.0.2"
        assert not current.closed
        assert mixer_factory.last.closed
        observer.on_mixer_disconnected.assert_not_called()
        observer.on_mixer_connected.assert_not_called()

    def test_keep_existing_when_disconnected(self, supervisor):
        assert supervisor.connect("10.0.0.1", replace_existing=False) is True
        assert supervisor.address == "10.0.0.1"

    def test_disconnect(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)
        supervisor.connect("10.0.0.5")

        supervisor.disconnect()
        supervisor.disconnect()

        assert mixer_factory.last.closed
        assert supervisor.address is None
        observer.on_mixer_disconnected.assert_called_once_with("10.0.0.5")
        with pytest.raises(MixerNotConnectedError):
            supervisor.set_volume(LINE1, 50)

    def test_meter_subscribe_failure_is_not_fatal(self, supervisor, mixer_factory):
        def prepare(client):
            client.meter_subscribe = Mock(side_effect=RuntimeError("no meters"))

        mixer_factory.prepare = prepare
        assert supervisor.connect("10.0.0.5") is True
        assert supervisor.is_connected


@pytest.mark.unit
class TestPushEvents:
    """Test events pushed by the client."""

    def test_remote_close(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)
        supervisor.connect("10.0.0.5")

        mixer_factory.last.emit("closed")

        assert not supervisor.is_connected
        observer.on_mixer_lost.assert_called_once_with("10.0.0.5")
        observer.on_mixer_disconnected.assert_not_called()

    def test_level_scaled_to_percent(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)
        supervisor.connect("10.0.0.5")

        mixer_factory.last.emit("level", {"channel": {"type": "LINE", "channel": 2}, "value": 0.5})

        observer.on_mixer_level.assert_called_once_with(
            LevelChange(target=ChannelRef(type="LINE", channel=2), value=50.0)
        )

    def test_mute_solo_property_events(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)
        supervisor.connect("10.0.0.5")
        client = mixer_factory.last

        client.emit("mute", {"channel": {"type": "LINE", "channel": 1}, "value": 1})
        client.emit("solo", {"channel": {"type": "AUX", "channel": 1}, "value": 0})
        client.emit("propertyChange", {"path": "line.ch1.inputsrc", "value": 0.3})
        client.emit("state-ready")

        observer.on_mixer_mute.assert_called_once_with(LINE1, True)
        observer.on_mixer_solo.assert_called_once_with(ChannelRef(type="AUX", channel=1), False)
        observer.on_mixer_property.assert_called_once_with("line.ch1.inputsrc", 0.3)
        observer.on_mixer_state_ready.assert_called_once()

    def test_malformed_event_ignored(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)
        supervisor.connect("10.0.0.5")

        mixer_factory.last.emit("level", {"value": 0.5})

        observer.on_mixer_level.assert_not_called()
        assert supervisor.is_connected

    def test_events_from_old_session_ignored(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)
        supervisor.connect("10.0.0.5")
        old = mixer_factory.last
        supervisor.connect("10.0.0.6")

        old.emit("closed")
        old.emit("level", {"channel": {"type": "LINE", "channel": 1}, "value": 1.0})

        assert supervisor.address == "10.0.0.6"
        observer.on_mixer_lost.assert_not_called()
        observer.on_mixer_level.assert_not_called()


@pytest.mark.unit
class TestCommands:
    """Test writes."""

    def test_volume_follows_stereo_link(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        client = mixer_factory.last
        client.state["line.ch1.link"] = 1

        supervisor.set_volume(LINE1, 70.0)

        assert client.calls[-2:] == [("volume", "LINE-1", 70.0), ("volume", "LINE-2", 70.0)]

    def test_volume_unlinked(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        client = mixer_factory.last
        client.state["aux.ch1.link"] = 1

        supervisor.set_volume(ChannelRef(type="AUX", channel=1), 70.0)

        assert [c for c in client.calls if c[0] == "volume"] == [("volume", "AUX-1", 70.0)]

    def test_execute_mute_toggles_on_press_only(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        client = mixer_factory.last

        supervisor.execute(MixerCommand(action=MixerAction.MUTE, target=LINE1, toggle=True))
        supervisor.execute(MixerCommand(action=MixerAction.MUTE, target=LINE1, toggle=False))
        supervisor.execute(MixerCommand(action=MixerAction.SOLO, target=LINE1, toggle=True))

        assert [c for c in client.calls if c[0].startswith("toggle")] == [
            ("toggle_mute", "LINE-1"),
            ("toggle_solo", "LINE-1"),
        ]

    def test_execute_pan(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        result = supervisor.execute(MixerCommand(action=MixerAction.PAN, target=LINE1, value=-20.0))
        assert result.success
        assert ("pan", "LINE-1", -20.0) in mixer_factory.last.calls

    def test_execute_mute_group(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        client = mixer_factory.last

        result = supervisor.execute(MixerCommand(action=MixerAction.MUTE_GROUP, target=GroupRef(channel=2), toggle=True))

        assert result.success
        assert ("parameter", "mutegroup/mutegroup2", 1.0) in client.calls
        assert supervisor.get_mute_group_state(2) is True

    def test_toggle_mute_group(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        supervisor.toggle_mute_group(3)
        assert supervisor.get_mute_group_state(3) is True
        supervisor.toggle_mute_group(3)
        assert supervisor.get_mute_group_state(3) is False

    def test_mute_group_bounds(self, supervisor):
        supervisor.connect("10.0.0.5")
        with pytest.raises(ValueError):
            supervisor.set_mute_group_state(9, True)
        with pytest.raises(ValueError):
            supervisor.set_mute_group_state(0, True)

    def test_execute_while_disconnected(self, supervisor):
        result = supervisor.execute(MixerCommand(action=MixerAction.VOLUME, target=LINE1, value=50.0))
        assert not result.success
        assert result.error == "Not connected to mixer"

    def test_execute_client_error(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        mixer_factory.last.set_pan = Mock(side_effect=RuntimeError("socket closed"))
        result = supervisor.execute(MixerCommand(action=MixerAction.PAN, target=LINE1, value=0.0))
        assert not result.success
        assert "socket closed" in result.error


@pytest.mark.unit
class TestReads:
    """Test soft reads."""

    def test_reads_while_disconnected(self, supervisor):
        assert supervisor.get_channel_name("LINE", 1) is None
        assert supervisor.get_channel_link("LINE", 1) is None
        assert supervisor.get_level(LINE1) is None
        assert supervisor.get_mute_group_state(1) is False
        assert supervisor.get_mute_group_name(1) == "M1"
        assert supervisor.get_all_channel_names("LINE", 4) == []
        assert supervisor.get_mute_group_assignments(1) == []

    def test_channel_properties(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        mixer_factory.last.state.update({
            "line.ch1.username": "1:Kick",
            "line.ch1.color": 0x00FF00,
            "line.ch1.iconid": 12,
            "line.ch1.mute": 1,
            "line.ch1.solo": 0,
            "line.ch1.inputsrc": 0.6,
        })

        assert supervisor.get_channel_name("line", 1) == "Kick"
        assert supervisor.get_channel_name("LINE", 2) == "Ch 2"
        assert supervisor.get_channel_color("LINE", 1) == "#00ff00"
        assert supervisor.get_channel_icon("LINE", 1) == "12"
        assert supervisor.get_channel_mute("LINE", 1) is True
        assert supervisor.get_channel_solo("LINE", 1) is False
        assert supervisor.get_channel_input_source("LINE", 1) == 2

    def test_link_is_line_only(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        mixer_factory.last.state["line.ch3.link"] = 1.0
        assert supervisor.get_channel_link("LINE", 3) is True
        assert supervisor.get_channel_link("AUX", 3) is False
        assert supervisor.get_channel_link("LINE", 4) is None

    def test_dca_name_and_level(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        client = mixer_factory.last
        client.state["filtergroup.ch1.name"] = "~Drums"
        client.levels["DCA-1"] = 0.5

        assert supervisor.get_channel_name("DCA", 1) == "Drums"
        assert supervisor.get_dca_level(1) == 50.0

    def test_group_assignments(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        client = mixer_factory.last
        client.state["mutegroup.mutegroup1mutes"] = "101"
        client.state["filtergroup.ch2.assign"] = "01"
        client.state["autofiltergroup.ch1.assign"] = "1"

        assert supervisor.get_mute_group_assignments(1) == [
            ChannelRef(type="LINE", channel=1),
            ChannelRef(type="LINE", channel=3),
        ]
        assert supervisor.get_dca_group_assignments(2) == [ChannelRef(type="LINE", channel=2)]
        assert supervisor.get_auto_filter_group_assignments(1) == [LINE1]
        assert supervisor.get_dca_group_assignments(9) == []

    def test_mute_group_names(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        mixer_factory.last.state["mutegroup.mutegroup2username"] = " Band "

        names = supervisor.get_all_mute_group_names()

        assert len(names) == 8
        assert names[0] == (1, "M1")
        assert names[1] == (2, "Band")

    def test_bulk_counts_are_clamped(self, supervisor):
        supervisor.connect("10.0.0.5")
        assert supervisor.get_all_channel_names("LINE", float("nan")) == []
        assert supervisor.get_all_channel_names("LINE", -3) == []
        assert supervisor.get_all_channel_names("LINE", 2.9) == ["Ch 1", "Ch 2"]
        assert len(supervisor.get_all_channel_names("LINE", float("inf"))) == 256
        assert len(supervisor.get_auto_filter_group_names(100)) == 64

    def test_read_errors_are_soft(self, supervisor, mixer_factory):
        supervisor.connect("10.0.0.5")
        mixer_factory.last.read_state = Mock(side_effect=RuntimeError("state not ready"))
        assert supervisor.get_channel_mute("LINE", 1) is None
        assert supervisor.get_channel_name("LINE", 1) == "Ch 1"


@pytest.mark.unit
class TestPollerWiring:
    """Test that poller output reaches observers."""

    def test_dca_poll_only_with_dca_mappings(self, mixer_factory):
        has_dca = Mock(return_value=False)
        supervisor = MixerSupervisor(mixer_factory, mute_group_interval=60, dca_interval=60, has_dca_mappings=has_dca)
        observer = Mock()
        supervisor.register_observer(observer)
        try:
            supervisor.connect("10.0.0.5")
            client = mixer_factory.last
            client.levels["DCA-1"] = 0.2

            supervisor._dca_poller.poll()
            has_dca.return_value = True
            supervisor._dca_poller.poll()
            client.levels["DCA-1"] = 0.6
            supervisor._dca_poller.poll()

            observer.on_mixer_level.assert_called_once_with(
                LevelChange(target=ChannelRef(type="DCA", channel=1), value=60.0)
            )
        finally:
            supervisor.shutdown()

    def test_mute_group_change_reported(self, supervisor, mixer_factory):
        observer = Mock()
        supervisor.register_observer(observer)
        mixer_factory.prepare = lambda client: client.state.update({"mutegroup/mutegroup4": 0.0})
        supervisor.connect("10.0.0.5")
        supervisor._mute_group_poller.poll()
        observer.on_mute_group_changed.assert_not_called()

        mixer_factory.last.state["mutegroup/mutegroup4"] = 1.0
        supervisor._mute_group_poller.poll()

        observer.on_mute_group_changed.assert_called_once_with(4, True)
