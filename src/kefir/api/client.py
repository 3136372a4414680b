"""Async HTTP client for the KEF speaker API.

KEF W2-platform speakers (LS50 Wireless II, LSX II, LS60) serve a small
HTTP API on port 80. Reads go through ``getData``, writes through
``setData`` and state changes are pushed through a long-polled event queue.

Example:
    async with KefClient("192.168.1.50") as speaker:
        volume = await speaker.get_volume()
        await speaker.set_volume(volume + 5)
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Self

import httpx

from kefir.api.protocol import (
    CONTROL_NEXT,
    CONTROL_PAUSE,
    CONTROL_PREVIOUS,
    EVENT_PATHS,
    PATH_DEVICE_NAME,
    PATH_MAC_ADDRESS,
    PATH_MUTE,
    PATH_PLAY_TIME,
    PATH_PLAYER_CONTROL,
    PATH_PLAYER_DATA,
    PATH_RELEASE_TEXT,
    PATH_SOURCE,
    PATH_SPEAKER_STATUS,
    PATH_VOLUME,
    SOURCE_POWER_ON,
    SOURCE_STANDBY,
    FirmwareInfo,
    KefConnectionError,
    KefProtocolError,
    encode_value,
    parse_duration,
    parse_events,
    parse_playback,
    parse_power,
    parse_source,
    parse_track,
    subscription_payload,
    typed_value,
    unwrap_response,
)
from kefir.models.speaker import (
    MAX_VOLUME,
    MIN_VOLUME,
    PlaybackState,
    PowerStatus,
    Source,
    TrackInfo,
    UpdateEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 10
# Extra seconds the HTTP timeout allows beyond a long-poll's own timeout
POLL_TIMEOUT_MARGIN = 5.0
# Pause before re-subscribing after the speaker dropped the event queue
RESUBSCRIBE_DELAY = 0.5


class KefClient:
    """Async client for one KEF speaker.

    Attributes:
        host: Speaker hostname or IP address.
    """

    def __init__(
        self,
        host: str,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            host: Speaker hostname or IP address.
            timeout: Request timeout in seconds.
            http_client: Optional preconfigured httpx client (not closed by us).
        """
        self.host = host
        self._timeout = timeout
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._base_url = f"http://{host}"

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self._owns_http:
            await self._http.aclose()

    # -- transport -----------------------------------------------------------

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            KefConnectionError: On network failure, timeout or HTTP error.
            KefProtocolError: If the body is not JSON.
        """
        url = f"{self._base_url}/api/{endpoint}"
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=json_body,
                timeout=timeout if timeout is not None else self._timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise KefConnectionError(f"Request to {self.host} timed out") from e
        except httpx.HTTPStatusError as e:
            raise KefConnectionError(
                f"Speaker {self.host} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise KefConnectionError(f"Failed to reach {self.host}: {e}") from e
        except httpx.InvalidURL as e:
            # Not an HTTPError subclass
            raise KefConnectionError(f"Invalid speaker address {self.host!r}: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise KefProtocolError(f"Invalid JSON from {self.host}: {e}") from e

    async def get_data(self, path: str) -> Any:
        """Read the value stored at ``path``."""
        data = await self._request("GET", "getData", params={"path": path, "roles": "value"})
        return unwrap_response(data)

    async def set_data(self, path: str, value: dict[str, Any], roles: str = "value") -> None:
        """Write a typed value (or an activation) to ``path``."""
        logger.debug("setData %s <- %s", path, value)
        await self._request(
            "GET",
            "setData",
            params={"path": path, "roles": roles, "value": encode_value(value)},
        )

    async def _control(self, verb: str) -> None:
        await self.set_data(PATH_PLAYER_CONTROL, {"control": verb}, roles="activate")

    async def _player_data(self) -> dict[str, Any]:
        data = await self.get_data(PATH_PLAYER_DATA)
        if not isinstance(data, dict):
            raise KefProtocolError(f"Unexpected player data: {data!r}")
        return data

    # -- volume --------------------------------------------------------------

    async def get_volume(self) -> int:
        """Return the volume level (0-100)."""
        value = await self.get_data(PATH_VOLUME)
        if not isinstance(value, int):
            raise KefProtocolError(f"Unexpected volume value: {value!r}")
        return value

    async def set_volume(self, volume: int) -> None:
        """Set the volume level, clamped to 0-100."""
        volume = max(MIN_VOLUME, min(MAX_VOLUME, volume))
        await self.set_data(PATH_VOLUME, typed_value("i32_", volume))

    async def is_muted(self) -> bool:
        """Return True if the speaker is muted."""
        return bool(await self.get_data(PATH_MUTE))

    async def mute(self) -> None:
        """Mute the speaker."""
        await self.set_data(PATH_MUTE, typed_value("bool_", True))

    async def unmute(self) -> None:
        """Unmute the speaker."""
        await self.set_data(PATH_MUTE, typed_value("bool_", False))

    # -- source and power ----------------------------------------------------

    async def get_source(self) -> Source:
        """Return the current physical input.

        Raises:
            KefProtocolError: If the speaker is in standby or reports an
                unknown source.
        """
        value = await self.get_data(PATH_SOURCE)
        source, _ = parse_source(value)
        if source is None:
            raise KefProtocolError(f"No input source while speaker reports {value!r}")
        return source

    async def set_source(self, source: Source) -> None:
        """Switch the physical input (this also wakes the speaker)."""
        await self.set_data(PATH_SOURCE, typed_value("kefPhysicalSource", source.value))

    async def get_status(self) -> PowerStatus:
        """Return the power state."""
        value = await self.get_data(PATH_SPEAKER_STATUS)
        status = parse_power(value)
        if status is None:
            raise KefProtocolError(f"Unexpected speaker status: {value!r}")
        return status

    async def power_on(self) -> None:
        """Wake the speaker from standby."""
        await self.set_data(PATH_SOURCE, typed_value("kefPhysicalSource", SOURCE_POWER_ON))

    async def shutdown(self) -> None:
        """Put the speaker into standby."""
        await self.set_data(PATH_SOURCE, typed_value("kefPhysicalSource", SOURCE_STANDBY))

    # -- playback ------------------------------------------------------------

    async def is_playing(self) -> bool:
        """Return True if the streaming player is playing."""
        return parse_playback(await self._player_data()) is PlaybackState.PLAYING

    async def get_song_information(self) -> TrackInfo:
        """Return metadata of the current track."""
        return parse_track(await self._player_data())

    async def get_song_position(self) -> int:
        """Return the playback position in milliseconds."""
        value = await self.get_data(PATH_PLAY_TIME)
        if not isinstance(value, int):
            raise KefProtocolError(f"Unexpected play time: {value!r}")
        return value

    async def get_song_duration(self) -> int:
        """Return the current track duration in milliseconds (0 if unknown)."""
        return parse_duration(await self._player_data()) or 0

    async def toggle_play_pause(self) -> None:
        """Toggle between play and pause."""
        await self._control(CONTROL_PAUSE)

    async def next_track(self) -> None:
        """Skip to the next track."""
        await self._control(CONTROL_NEXT)

    async def previous_track(self) -> None:
        """Go back to the previous track."""
        await self._control(CONTROL_PREVIOUS)

    # -- device info ---------------------------------------------------------

    async def get_speaker_name(self) -> str:
        """Return the device name set in the KEF Connect app."""
        return str(await self.get_data(PATH_DEVICE_NAME))

    async def get_mac_address(self) -> str:
        """Return the primary MAC address."""
        return str(await self.get_data(PATH_MAC_ADDRESS))

    async def get_firmware_version(self) -> FirmwareInfo:
        """Return model and firmware version."""
        return FirmwareInfo.from_release_text(str(await self.get_data(PATH_RELEASE_TEXT)))

    # -- event stream --------------------------------------------------------

    async def _subscribe(self, paths: tuple[str, ...]) -> str:
        """Create an event queue for ``paths`` and return its id."""
        queue_id = await self._request(
            "POST", "event/modifyQueue", json_body=subscription_payload(paths)
        )
        if not isinstance(queue_id, str) or not queue_id:
            raise KefProtocolError(f"Unexpected queue id: {queue_id!r}")
        logger.debug("Subscribed to %d paths, queue %s", len(paths), queue_id)
        return queue_id

    async def start_polling(
        self,
        poll_interval: int = DEFAULT_POLL_INTERVAL,
        poll_song_status: bool = False,
    ) -> AsyncIterator[UpdateEvent]:
        """Yield state changes as they happen.

        Each long-poll waits up to ``poll_interval`` seconds for the speaker
        to report a change. The generator runs until cancelled; it raises
        KefError when the speaker becomes unreachable.

        Args:
            poll_interval: Long-poll timeout in seconds.
            poll_song_status: Also subscribe to the playback position.

        Yields:
            One merged UpdateEvent per poll that reported changes.
        """
        paths = EVENT_PATHS + ((PATH_PLAY_TIME,) if poll_song_status else ())
        queue_id = await self._subscribe(paths)
        resubscribed = False
        while True:
            try:
                entries = await self._request(
                    "GET",
                    "event/pollQueue",
                    params={"queueId": queue_id, "timeout": poll_interval},
                    timeout=poll_interval + POLL_TIMEOUT_MARGIN,
                )
            except KefConnectionError as e:
                # An expired queue answers with an HTTP error. Re-subscribe
                # once; a second failure in a row ends the stream.
                if resubscribed:
                    raise
                logger.debug("Event queue %s failed (%s), re-subscribing", queue_id, e)
                await asyncio.sleep(RESUBSCRIBE_DELAY)
                queue_id = await self._subscribe(paths)
                resubscribed = True
                continue

            resubscribed = False
            event = parse_events(entries)
            if not event.is_empty:
                yield event
