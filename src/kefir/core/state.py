"""Authoritative speaker state for interactive mode, with change detection.

Every update, whether pushed by the event stream, fetched by the fallback
poll or produced locally by a command, goes through StateStore.apply(). The
store remembers which snapshot was last drawn so callers only redraw when
something visible changed.
"""

import logging
import time
from collections.abc import Awaitable
from typing import TypeVar

from kefir.api.client import KefClient
from kefir.api.protocol import KefError
from kefir.models.speaker import (
    PlaybackState,
    SpeakerSnapshot,
    UpdateEvent,
    apply_event,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _fetch(label: str, call: Awaitable[T]) -> T | None:
    """Await one client call, returning None instead of raising on failure."""
    try:
        return await call
    except KefError as e:
        logger.debug("Refreshing %s failed: %s", label, e)
        return None


class StateStore:
    """Holds the current snapshot and the last one rendered.

    Example:
        store = StateStore()
        if store.apply(UpdateEvent(volume=40)) and store.needs_redraw:
            draw(store.snapshot)
            store.mark_rendered(store.snapshot)
    """

    def __init__(self, snapshot: SpeakerSnapshot | None = None) -> None:
        """Initialize with an optional starting snapshot."""
        self._snapshot = snapshot or SpeakerSnapshot()
        self._rendered: SpeakerSnapshot | None = None
        self._last_event_time = time.monotonic()
        self._update_count = 0

    @property
    def snapshot(self) -> SpeakerSnapshot:
        """Return the current snapshot."""
        return self._snapshot

    @property
    def rendered(self) -> SpeakerSnapshot | None:
        """Return the snapshot drawn last, or None before the first frame."""
        return self._rendered

    @property
    def last_event_time(self) -> float:
        """Return the monotonic time of the last non-empty update."""
        return self._last_event_time

    @property
    def update_count(self) -> int:
        """Return how many non-empty updates were applied."""
        return self._update_count

    @property
    def needs_redraw(self) -> bool:
        """Return True if the current snapshot differs from the one on screen."""
        return self._rendered is None or self._rendered != self._snapshot

    def apply(self, event: UpdateEvent) -> bool:
        """Merge an update into the snapshot.

        Returns:
            True if the snapshot changed.
        """
        if event.is_empty:
            return False
        self._last_event_time = time.monotonic()
        self._update_count += 1
        self._snapshot, changed = apply_event(self._snapshot, event)
        if changed:
            logger.debug("State updated: %s", event)
        return changed

    def count_update(self) -> None:
        """Record an update that did not come through apply()."""
        self._last_event_time = time.monotonic()
        self._update_count += 1

    def mark_rendered(self, snapshot: SpeakerSnapshot) -> None:
        """Record ``snapshot`` as the one currently on screen."""
        self._rendered = snapshot

    def seconds_since_event(self) -> float:
        """Return seconds elapsed since the last update."""
        return time.monotonic() - self._last_event_time

    async def refresh(self, client: KefClient) -> bool:
        """Re-fetch the full state from the speaker.

        Each value is fetched on its own; one that fails keeps its previous
        value.

        Returns:
            True if the snapshot changed.
        """
        volume = await _fetch("volume", client.get_volume())
        muted = await _fetch("mute", client.is_muted())
        power = await _fetch("power", client.get_status())
        source = await _fetch("source", client.get_source())
        playing = await _fetch("playback", client.is_playing())

        track = None
        if playing:
            track = await _fetch("track", client.get_song_information())

        playback = None
        if playing is not None:
            playback = PlaybackState.PLAYING if playing else PlaybackState.STOPPED

        return self.apply(
            UpdateEvent(
                volume=volume,
                muted=muted,
                source=source,
                power=power,
                playback=playback,
                track=track,
            )
        )

    async def refresh_progress(self, client: KefClient) -> bool:
        """Fetch playback position and duration while playing.

        Returns:
            True if the snapshot changed.
        """
        if not self._snapshot.playing:
            return False
        position = await _fetch("position", client.get_song_position())
        duration = await _fetch("duration", client.get_song_duration())
        return self.apply(UpdateEvent(position_ms=position, duration_ms=duration))
