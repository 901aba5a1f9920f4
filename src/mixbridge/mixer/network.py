"""Local network interface lookup."""

import logging
import socket

import psutil

logger = logging.getLogger(__name__)


def local_addresses() -> set[str]:
    """IPv4/IPv6 addresses of every local interface, loopback included."""
    addresses: set[str] = set()
    try:
        interfaces = psutil.net_if_addrs()
    except Exception as e:
        logger.warning(f"Could not enumerate network interfaces: {e}")
        return addresses

    for entries in interfaces.values():
        for entry in entries:
            if entry.family in (socket.AF_INET, socket.AF_INET6):
                # Drop IPv6 zone suffix ("fe80::1%en0")
                addresses.add(entry.address.split("%", 1)[0])
    return addresses
