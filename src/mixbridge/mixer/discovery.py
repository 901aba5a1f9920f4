"""Mixer discovery on the local network."""

import logging
import threading
from collections.abc import Callable

from pydantic import ValidationError

from mixbridge.models import DiscoveredMixer
from mixbridge.protocols import DiscoveryBackend

from .network import local_addresses

logger = logging.getLogger(__name__)

DEFAULT_DISCOVERY_TIMEOUT = 10.0
# Extra time granted to the backend to return after its own timeout
SCAN_GRACE_PERIOD = 1.0


class DiscoveryService:
    """
    Bounded-time scan for mixers broadcasting on the local network.

    Each unique mixer is streamed to ``on_found`` as soon as its first
    announcement arrives. Announcements are deduplicated by serial number,
    or by IP address when the serial is empty, and announcements from the
    host's own interface addresses are dropped.
    """

    def __init__(
        self,
        backend: DiscoveryBackend | None,
        local_addresses_fn: Callable[[], set[str]] = local_addresses,
    ):
        self._backend = backend
        self._local_addresses = local_addresses_fn

    @property
    def is_available(self) -> bool:
        return self._backend is not None

    def discover(
        self,
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
        on_found: Callable[[DiscoveredMixer], None] | None = None,
    ) -> list[DiscoveredMixer]:
        """
        Scan for ``timeout`` seconds.

        Returns:
            Unique mixers in arrival order (empty if no backend is configured)
        """
        if self._backend is None:
            logger.warning("No discovery backend configured, skipping mixer discovery")
            return []

        lock = threading.Lock()
        results: list[DiscoveredMixer] = []
        seen_serials: set[str] = set()
        seen_ips: set[str] = set()
        finished = False

        def on_packet(packet) -> None:
            try:
                mixer = DiscoveredMixer.from_announcement(packet)
            except ValidationError as e:
                logger.debug(f"Ignoring malformed discovery packet: {e}")
                return

            # Interfaces can change mid-scan (VPN, adapters), so recompute per packet
            if mixer.ip in self._local_addresses():
                logger.debug(f"Ignoring announcement from local address {mixer.ip}")
                return

            with lock:
                if finished:
                    return
                if mixer.serial:
                    if mixer.serial in seen_serials:
                        return
                    seen_serials.add(mixer.serial)
                elif mixer.ip in seen_ips:
                    return
                seen_ips.add(mixer.ip)
                results.append(mixer)

            logger.info(f"Discovered mixer: {mixer.name or mixer.model} at {mixer.ip}")
            if on_found is not None:
                try:
                    on_found(mixer)
                except Exception as e:
                    logger.error(f"Error in discovery callback: {e}", exc_info=True)

        def scan() -> None:
            try:
                self._backend.scan(timeout, on_packet)
            except Exception as e:
                logger.error(f"Mixer discovery failed: {e}")

        logger.debug(f"Scanning for mixers ({timeout}s)")
        thread = threading.Thread(target=scan, name="mixer-discovery", daemon=True)
        thread.start()
        thread.join(timeout + SCAN_GRACE_PERIOD)
        if thread.is_alive():
            logger.warning("Discovery backend did not return in time, using results so far")

        with lock:
            finished = True
            found = list(results)
        logger.debug(f"Discovery finished: {len(found)} mixer(s)")
        return found
