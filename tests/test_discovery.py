"""Tests for mixer discovery."""

import socket
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from conftest import FakeDiscoveryBackend
from mixbridge.mixer import DiscoveryService, local_addresses


def service(packets, local=()):
    return DiscoveryService(FakeDiscoveryBackend(packets), local_addresses_fn=lambda: set(local))


@pytest.mark.unit
class TestDiscover:
    """Test DiscoveryService.discover."""

    def test_dedup_by_serial(self):
        found = service([
            {"ip": "10.0.0.5", "serial": "A1", "model": "Mixer32"},
            {"ip": "10.0.0.6", "serial": "A1", "model": "Mixer32"},
            {"ip": "10.0.0.7", "serial": "B2", "model": "Mixer16"},
        ]).discover(timeout=1)
        assert [m.ip for m in found] == ["10.0.0.5", "10.0.0.7"]

    def test_dedup_by_ip_without_serial(self):
        found = service([
            {"ip": "10.0.0.5", "name": "Desk"},
            {"ip": "10.0.0.5", "name": "Desk"},
            {"ip": "10.0.0.8", "name": "Stage"},
        ]).discover(timeout=1)
        assert [m.ip for m in found] == ["10.0.0.5", "10.0.0.8"]

    def test_local_announcements_dropped(self):
        found = service(
            [{"ip": "192.168.1.10", "serial": "SELF"}, {"ip": "192.168.1.20", "serial": "DESK"}],
            local={"192.168.1.10"},
        ).discover(timeout=1)
        assert [m.serial for m in found] == ["DESK"]

    def test_local_addresses_read_for_each_packet(self):
        # 10.0.0.6 becomes a local address after the first packet
        local_fn = Mock(side_effect=[set(), {"10.0.0.6"}, set()])
        discovery = DiscoveryService(
            FakeDiscoveryBackend([{"ip": "10.0.0.5"}, {"ip": "10.0.0.6"}, {"ip": "10.0.0.7"}]),
            local_addresses_fn=local_fn,
        )

        found = discovery.discover(timeout=1)

        assert [m.ip for m in found] == ["10.0.0.5", "10.0.0.7"]
        assert local_fn.call_count == 3

    def test_malformed_packet_ignored(self):
        found = service([{"name": "no address"}, {"ip": "10.0.0.9"}]).discover(timeout=1)
        assert [m.ip for m in found] == ["10.0.0.9"]

    def test_on_found_streams_unique_mixers(self):
        on_found = Mock()
        service([{"ip": "10.0.0.5", "serial": "A"}, {"ip": "10.0.0.5", "serial": "A"}]).discover(
            timeout=1, on_found=on_found
        )
        on_found.assert_called_once()
        assert on_found.call_args[0][0].serial == "A"

    def test_callback_errors_contained(self):
        on_found = Mock(side_effect=RuntimeError("ui gone"))
        found = service([{"ip": "10.0.0.5"}, {"ip": "10.0.0.6"}]).discover(timeout=1, on_found=on_found)
        assert len(found) == 2
        assert on_found.call_count == 2

    def test_backend_failure_returns_partial(self):
        backend = Mock()
        backend.scan.side_effect = OSError("socket in use")
        assert DiscoveryService(backend, local_addresses_fn=set).discover(timeout=0.1) == []

    def test_no_backend(self):
        discovery = DiscoveryService(None)
        assert not discovery.is_available
        assert discovery.discover(timeout=0.1) == []


@pytest.mark.unit
class TestLocalAddresses:
    """Test local interface lookup."""

    def test_collects_ipv4_and_ipv6(self):
        interfaces = {
            "lo": [SimpleNamespace(family=socket.AF_INET, address="127.0.0.1")],
            "en0": [
                SimpleNamespace(family=socket.AF_INET, address="192.168.1.10"),
                SimpleNamespace(family=socket.AF_INET6, address="fe80::1%en0"),
                SimpleNamespace(family=-1, address="aa:bb:cc:dd:ee:ff"),
            ],
        }
        with patch("mixbridge.mixer.network.psutil.net_if_addrs", return_value=interfaces):
            assert local_addresses() == {"127.0.0.1", "192.168.1.10", "fe80::1"}

    def test_enumeration_failure(self):
        with patch("mixbridge.mixer.network.psutil.net_if_addrs", side_effect=OSError("denied")):
            assert local_addresses() == set()
