"""mDNS/Zeroconf discovery for KEF speakers.

KEF W2 speakers do not announce a service of their own, but they all
advertise AirPlay. The AirPlay TXT record carries ``manufacturer`` and
``model``, which is enough to pick the KEF speakers out of every AirPlay
receiver on the network.
"""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from zeroconf import ServiceBrowser, ServiceInfo, ServiceListener, Zeroconf

logger = logging.getLogger(__name__)

AIRPLAY_SERVICE_TYPE = "_airplay._tcp.local."
KEF_MANUFACTURER = "kef"
DEFAULT_DISCOVERY_TIMEOUT = 5.0


@dataclass
class DiscoveredSpeaker:
    """A KEF speaker found on the local network."""

    name: str
    host: str
    addresses: list[str]
    model: str = ""

    @property
    def display_name(self) -> str:
        """Return a display-friendly name."""
        name = self.name
        if name.endswith(f".{AIRPLAY_SERVICE_TYPE}"):
            name = name[: -len(f".{AIRPLAY_SERVICE_TYPE}")]
        return name or self.host


def _txt(properties: Mapping[bytes, bytes | None], key: str) -> str:
    value = properties.get(key.encode())
    if not value:
        return ""
    return value.decode("utf-8", errors="replace")


def is_kef_service(name: str, properties: Mapping[bytes, bytes | None]) -> bool:
    """Return True if an AirPlay announcement comes from a KEF speaker."""
    manufacturer = _txt(properties, "manufacturer").casefold()
    if manufacturer:
        return manufacturer.startswith(KEF_MANUFACTURER)
    return KEF_MANUFACTURER in name.casefold()


def speaker_from_info(name: str, info: ServiceInfo) -> DiscoveredSpeaker | None:
    """Build a DiscoveredSpeaker from resolved service info.

    Returns:
        The speaker, or None if the service is not a KEF speaker or has no
        usable address.
    """
    properties = info.properties or {}
    if not is_kef_service(name, properties):
        logger.debug("Ignoring non-KEF AirPlay service: %s", name)
        return None

    addresses: list[str] = []
    for addr in info.addresses:
        try:
            addresses.append(socket.inet_ntoa(addr))
        except OSError:
            try:
                addresses.append(socket.inet_ntop(socket.AF_INET6, addr))
            except (OSError, ValueError) as e:
                logger.debug("Could not parse address for %s: %s", name, e)

    if not addresses:
        logger.debug("No addresses found for service: %s", name)
        return None

    return DiscoveredSpeaker(
        name=name,
        host=addresses[0],
        addresses=addresses,
        model=_txt(properties, "model"),
    )


class KefServiceListener(ServiceListener):
    """Collects KEF speakers from AirPlay announcements."""

    def __init__(self, on_found: Callable[[DiscoveredSpeaker], None] | None = None) -> None:
        """Initialize the listener.

        Args:
            on_found: Callback when a speaker is discovered.
        """
        self._on_found = on_found
        self._speakers: dict[str, DiscoveredSpeaker] = {}
        self._lock = threading.Lock()

    @property
    def speakers(self) -> list[DiscoveredSpeaker]:
        """Return the speakers discovered so far."""
        with self._lock:
            return list(self._speakers.values())

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Handle service discovery."""
        info = zc.get_service_info(type_, name)
        if info is None:
            logger.debug("Could not get info for service: %s", name)
            return

        speaker = speaker_from_info(name, info)
        if speaker is None:
            return

        logger.info("Discovered KEF speaker: %s at %s", speaker.display_name, speaker.host)
        with self._lock:
            self._speakers[name] = speaker
        if self._on_found:
            self._on_found(speaker)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:  # noqa: ARG002
        """Handle service removal."""
        with self._lock:
            removed = self._speakers.pop(name, None)
        if removed is not None:
            logger.info("KEF speaker removed: %s", removed.display_name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Handle service update (re-add to refresh info)."""
        self.add_service(zc, type_, name)


class SpeakerDiscovery:
    """Discovers KEF speakers on the local network via mDNS.

    Example:
        for speaker in SpeakerDiscovery.discover_all(timeout=3.0):
            print(speaker.display_name, speaker.host)
    """

    def __init__(self) -> None:
        """Initialize the discovery service."""
        self._zeroconf: Zeroconf | None = None
        self._browser: ServiceBrowser | None = None
        self._listener: KefServiceListener | None = None

    @property
    def speakers(self) -> list[DiscoveredSpeaker]:
        """Return the speakers currently known."""
        if self._listener:
            return self._listener.speakers
        return []

    def start(self, on_found: Callable[[DiscoveredSpeaker], None] | None = None) -> None:
        """Start background discovery.

        Args:
            on_found: Callback when a speaker is discovered.
        """
        if self._zeroconf is not None:
            return

        self._zeroconf = Zeroconf()
        self._listener = KefServiceListener(on_found=on_found)
        self._browser = ServiceBrowser(self._zeroconf, AIRPLAY_SERVICE_TYPE, self._listener)
        logger.debug("Started mDNS discovery for KEF speakers")

    def stop(self) -> None:
        """Stop background discovery."""
        if self._browser:
            self._browser.cancel()
            self._browser = None

        if self._zeroconf:
            self._zeroconf.close()
            self._zeroconf = None

        self._listener = None
        logger.debug("Stopped mDNS discovery")

    @staticmethod
    def discover_all(timeout: float = DEFAULT_DISCOVERY_TIMEOUT) -> list[DiscoveredSpeaker]:
        """Browse for ``timeout`` seconds and return every KEF speaker found.

        Args:
            timeout: Time to wait for announcements in seconds.

        Returns:
            Discovered speakers, sorted by name.
        """
        discovery = SpeakerDiscovery()
        discovery.start()

        try:
            threading.Event().wait(timeout=timeout)
        finally:
            speakers = discovery.speakers
            discovery.stop()

        return sorted(speakers, key=lambda s: s.display_name.casefold())
