"""Speaker state models: the rendered snapshot and sparse update events.

A SpeakerSnapshot is the complete view of one speaker at one instant.
UpdateEvents are the partial deltas produced by the polling stream and by
local commands; apply_event() merges one into a snapshot.
"""

import logging
from dataclasses import dataclass, fields, replace
from enum import Enum

logger = logging.getLogger(__name__)

MIN_VOLUME = 0
MAX_VOLUME = 100


class Source(Enum):
    """Physical input source of a KEF speaker."""

    WIFI = "wifi"
    BLUETOOTH = "bluetooth"
    TV = "tv"
    OPTIC = "optic"
    COAXIAL = "coaxial"
    ANALOG = "analog"
    USB = "usb"

    @classmethod
    def parse(cls, name: str) -> "Source":
        """Return the source matching ``name`` (case-insensitive).

        Raises:
            ValueError: If the name is not a known source.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            choices = ", ".join(s.value for s in SOURCES)
            raise ValueError(f"Invalid source '{name}'. Available sources: {choices}") from None

    @property
    def label(self) -> str:
        """Return the capitalized name used on screen."""
        if self is Source.TV:
            return "TV"
        if self is Source.USB:
            return "USB"
        return self.value.capitalize()


# Menu order for source selection
SOURCES: list[Source] = list(Source)


class PowerStatus(Enum):
    """Speaker power state as reported by the speaker."""

    POWER_ON = "powerOn"
    STANDBY = "standby"


class PlaybackState(Enum):
    """Player state of the streaming service."""

    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"

    @classmethod
    def parse(cls, value: str) -> "PlaybackState":
        """Map a player state string onto a PlaybackState.

        Anything the speaker reports besides playing/paused counts as stopped.
        """
        if value == "playing":
            return cls.PLAYING
        if value == "paused":
            return cls.PAUSED
        return cls.STOPPED


@dataclass(frozen=True, slots=True)
class TrackInfo:
    """Metadata of the current track.

    Attributes:
        title: Track title, if reported.
        artist: Artist name, if reported.
        album: Album name, if reported.
    """

    title: str | None = None
    artist: str | None = None
    album: str | None = None

    @property
    def is_empty(self) -> bool:
        """Return True if no metadata is present."""
        return not (self.title or self.artist or self.album)


@dataclass(frozen=True, slots=True)
class SpeakerSnapshot:
    """Complete, self-consistent view of the speaker at one instant.

    Attributes:
        volume: Volume level 0-100.
        muted: Whether the speaker is muted. Independent of volume.
        source: Current physical input.
        playing: Whether the streaming player is playing.
        track: Current track metadata while playing.
        position_ms: Playback position in milliseconds.
        duration_ms: Track duration in milliseconds.
        power_on: Whether the speaker is powered on (False in standby).
    """

    volume: int = 0
    muted: bool = False
    source: Source = Source.WIFI
    playing: bool = False
    track: TrackInfo | None = None
    position_ms: int | None = None
    duration_ms: int | None = None
    power_on: bool = True

    def __post_init__(self) -> None:
        """Clamp volume to the 0-100 range."""
        if self.volume < MIN_VOLUME or self.volume > MAX_VOLUME:
            clamped = max(MIN_VOLUME, min(MAX_VOLUME, self.volume))
            logger.warning("Volume %d out of range, clamped to %d", self.volume, clamped)
            object.__setattr__(self, "volume", clamped)

    @property
    def progress(self) -> float | None:
        """Return playback progress as a fraction, or None if unknown."""
        if self.position_ms is None or not self.duration_ms or self.duration_ms <= 0:
            return None
        return min(1.0, max(0.0, self.position_ms / self.duration_ms))


@dataclass(frozen=True, slots=True)
class UpdateEvent:
    """Sparse partial snapshot. A field left as None means "unchanged".

    Attributes:
        volume: New volume level.
        muted: New mute flag.
        source: New physical input.
        power: New power state.
        playback: New player state. A non-playing state clears track info.
        track: New track metadata.
        position_ms: New playback position.
        duration_ms: New track duration.
        clears_track: Track info is cleared before this event applies. Set
            when merged() folds in a non-playing state that a later playing
            state superseded.
    """

    volume: int | None = None
    muted: bool | None = None
    source: Source | None = None
    power: PowerStatus | None = None
    playback: PlaybackState | None = None
    track: TrackInfo | None = None
    position_ms: int | None = None
    duration_ms: int | None = None
    clears_track: bool = False

    @property
    def is_empty(self) -> bool:
        """Return True if the event carries no field."""
        return all(
            value is None
            for value in (
                self.volume,
                self.muted,
                self.source,
                self.power,
                self.playback,
                self.track,
                self.position_ms,
                self.duration_ms,
            )
        ) and not self.clears_track

    def merged(self, other: "UpdateEvent") -> "UpdateEvent":
        """Return an event with ``other``'s present fields taking precedence.

        A non-playing playback state in ``other`` drops the track fields this
        event carried and marks the result as clearing track info, so that
        applying the result matches applying both events in order.
        """
        base = self
        if other.clears_track or (
            other.playback is not None and other.playback is not PlaybackState.PLAYING
        ):
            base = replace(
                base, track=None, position_ms=None, duration_ms=None, clears_track=True
            )
        changes = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if f.name != "clears_track" and getattr(other, f.name) is not None
        }
        return replace(base, **changes)


def apply_event(
    snapshot: SpeakerSnapshot, event: UpdateEvent
) -> tuple[SpeakerSnapshot, bool]:
    """Merge an update event into a snapshot.

    Every field present in the event overwrites the snapshot. A playback
    state other than playing, or the clears_track flag, clears track, position
    and duration before the event's own track fields are applied.

    Args:
        snapshot: The current snapshot.
        event: The partial update.

    Returns:
        Tuple of (new snapshot, whether it differs from the old one).
    """
    changes: dict[str, object] = {}

    if event.clears_track:
        changes["track"] = None
        changes["position_ms"] = None
        changes["duration_ms"] = None
    if event.volume is not None:
        changes["volume"] = max(MIN_VOLUME, min(MAX_VOLUME, event.volume))
    if event.muted is not None:
        changes["muted"] = event.muted
    if event.source is not None:
        changes["source"] = event.source
    if event.power is not None:
        changes["power_on"] = event.power is PowerStatus.POWER_ON
    if event.playback is not None:
        playing = event.playback is PlaybackState.PLAYING
        changes["playing"] = playing
        if not playing:
            changes["track"] = None
            changes["position_ms"] = None
            changes["duration_ms"] = None
    if event.track is not None:
        changes["track"] = event.track
    if event.position_ms is not None:
        changes["position_ms"] = event.position_ms
    if event.duration_ms is not None:
        changes["duration_ms"] = event.duration_ms

    if not changes:
        return snapshot, False

    updated = replace(snapshot, **changes)
    return updated, updated != snapshot
