"""KEF speaker HTTP API paths and typed value encoding.

The speaker exposes a settings tree under ``/api/getData`` and
``/api/setData``. Every value travels as a typed JSON object such as
``{"type": "i32_", "i32_": 35}``. Changes are delivered through an event
queue (``/api/event/modifyQueue`` + ``/api/event/pollQueue``) as a list of
``{"path": ..., "itemValue": {...}}`` entries.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from kefir.models.speaker import (
    PlaybackState,
    PowerStatus,
    Source,
    TrackInfo,
    UpdateEvent,
)

logger = logging.getLogger(__name__)

# Settings paths
PATH_VOLUME = "player:volume"
PATH_MUTE = "settings:/mediaPlayer/mute"
PATH_SOURCE = "settings:/kef/play/physicalSource"
PATH_SPEAKER_STATUS = "settings:/kef/host/speakerStatus"
PATH_PLAYER_DATA = "player:player/data"
PATH_PLAY_TIME = "player:player/data/playTime"
PATH_PLAYER_CONTROL = "player:player/control"
PATH_DEVICE_NAME = "settings:/deviceName"
PATH_MAC_ADDRESS = "settings:/system/primaryMacAddress"
PATH_RELEASE_TEXT = "settings:/releasetext"

# Paths subscribed for the event stream
EVENT_PATHS: tuple[str, ...] = (
    PATH_VOLUME,
    PATH_MUTE,
    PATH_SOURCE,
    PATH_SPEAKER_STATUS,
    PATH_PLAYER_DATA,
)

# Physical source values that are power commands, not inputs
SOURCE_POWER_ON = "powerOn"
SOURCE_STANDBY = "standby"

# Player control verbs
CONTROL_PAUSE = "pause"
CONTROL_NEXT = "next"
CONTROL_PREVIOUS = "previous"

MODEL_NAMES: dict[str, str] = {
    "LS50W2": "KEF LS50 Wireless II",
    "LSXII": "KEF LSX II",
    "LSXIILT": "KEF LSX II LT",
    "LS60": "KEF LS60",
    "XIO": "KEF XIO",
}


class KefError(Exception):
    """Base error for speaker communication failures."""


class KefConnectionError(KefError, ConnectionError):
    """Speaker unreachable, timed out, or answered with an HTTP error."""


class KefProtocolError(KefError):
    """Speaker answered with a payload we could not interpret."""


@dataclass(frozen=True)
class FirmwareInfo:
    """Model and firmware version parsed from the release text.

    Attributes:
        model: Human-readable model name.
        version: Firmware version string.
        release_text: Raw release text as reported by the speaker.
    """

    model: str
    version: str
    release_text: str = ""

    @classmethod
    def from_release_text(cls, text: str) -> "FirmwareInfo":
        """Parse a release text like ``LSXII_V25120.1.2``."""
        code, _, version = text.partition("_")
        model = MODEL_NAMES.get(code, code or "Unknown")
        return cls(model=model, version=version or text, release_text=text)


def typed_value(value_type: str, value: Any) -> dict[str, Any]:
    """Build a typed value object, e.g. ``{"type": "i32_", "i32_": 30}``."""
    return {"type": value_type, value_type: value}


def encode_value(value: dict[str, Any]) -> str:
    """Serialize a value object for the ``value`` query parameter."""
    return json.dumps(value, separators=(",", ":"))


def unwrap_value(item: Any) -> Any:
    """Return the payload of a typed value object.

    Objects without a ``type`` key (such as player data) are returned as-is.

    Raises:
        KefProtocolError: If the object names a type it does not carry.
    """
    if not isinstance(item, dict):
        return item
    value_type = item.get("type")
    if not isinstance(value_type, str):
        return item
    if value_type not in item:
        raise KefProtocolError(f"Value of type {value_type!r} has no payload")
    return item[value_type]


def unwrap_response(data: Any) -> Any:
    """Return the value carried by a ``getData`` response.

    ``getData`` answers with a one-element list holding the value object.

    Raises:
        KefProtocolError: If the response is not a non-empty list.
    """
    if not isinstance(data, list) or not data:
        raise KefProtocolError(f"Unexpected getData response: {data!r}")
    return unwrap_value(data[0])


def parse_track(player_data: dict[str, Any]) -> TrackInfo:
    """Extract track metadata from a player data object."""
    roles = player_data.get("trackRoles")
    if not isinstance(roles, dict):
        return TrackInfo()
    meta: dict[str, Any] = {}
    media_data = roles.get("mediaData")
    if isinstance(media_data, dict) and isinstance(media_data.get("metaData"), dict):
        meta = media_data["metaData"]
    return TrackInfo(
        title=_optional_str(roles.get("title")),
        artist=_optional_str(meta.get("artist")),
        album=_optional_str(meta.get("album")),
    )


def parse_duration(player_data: dict[str, Any]) -> int | None:
    """Extract the track duration in milliseconds, if reported."""
    status = player_data.get("status")
    if isinstance(status, dict):
        duration = status.get("duration")
        if isinstance(duration, int) and duration > 0:
            return duration
    return None


def parse_playback(player_data: dict[str, Any]) -> PlaybackState:
    """Extract the player state from a player data object."""
    return PlaybackState.parse(str(player_data.get("state", "")))


def parse_source(value: Any) -> tuple[Source | None, PowerStatus | None]:
    """Interpret a physical source value.

    The physical source doubles as the power switch: ``standby`` means the
    speaker is off, ``powerOn`` is transient while it wakes up.

    Returns:
        Tuple of (input source or None, power status or None).
    """
    if value == SOURCE_STANDBY:
        return None, PowerStatus.STANDBY
    if value == SOURCE_POWER_ON:
        return None, PowerStatus.POWER_ON
    try:
        return Source(value), PowerStatus.POWER_ON
    except ValueError:
        logger.debug("Ignoring unknown physical source %r", value)
        return None, None


def parse_power(value: Any) -> PowerStatus | None:
    """Interpret a speaker status value."""
    try:
        return PowerStatus(value)
    except ValueError:
        logger.debug("Ignoring unknown speaker status %r", value)
        return None


def parse_event(path: str, item_value: Any) -> UpdateEvent:
    """Translate one queue entry into an UpdateEvent.

    Unknown paths and malformed values yield an empty event.
    """
    try:
        value = unwrap_value(item_value)
    except KefProtocolError as e:
        logger.debug("Dropping event for %s: %s", path, e)
        return UpdateEvent()

    if path == PATH_VOLUME and isinstance(value, int):
        return UpdateEvent(volume=value)
    if path == PATH_MUTE and isinstance(value, bool):
        return UpdateEvent(muted=value)
    if path == PATH_SOURCE:
        source, power = parse_source(value)
        return UpdateEvent(source=source, power=power)
    if path == PATH_SPEAKER_STATUS:
        return UpdateEvent(power=parse_power(value))
    if path == PATH_PLAY_TIME and isinstance(value, int):
        return UpdateEvent(position_ms=value)
    if path == PATH_PLAYER_DATA and isinstance(value, dict):
        playback = parse_playback(value)
        if playback is not PlaybackState.PLAYING:
            return UpdateEvent(playback=playback)
        return UpdateEvent(
            playback=playback,
            track=parse_track(value),
            duration_ms=parse_duration(value),
        )

    logger.debug("Ignoring event for %s", path)
    return UpdateEvent()


def parse_events(entries: Any) -> UpdateEvent:
    """Merge a pollQueue response into one UpdateEvent, in arrival order."""
    merged = UpdateEvent()
    if not isinstance(entries, list):
        return merged
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        path = entry.get("path")
        if not isinstance(path, str):
            continue
        merged = merged.merged(parse_event(path, entry.get("itemValue")))
    return merged


def subscription_payload(paths: tuple[str, ...]) -> dict[str, Any]:
    """Build the modifyQueue body subscribing to ``paths``."""
    return {
        "subscribe": [{"path": path, "type": "itemWithValue"} for path in paths],
        "unsubscribe": [],
    }


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None
