"""Data models for speaker state, saved profiles and theme settings."""

from kefir.models.profile import SpeakerProfile, create_profile
from kefir.models.speaker import (
    SOURCES,
    PlaybackState,
    PowerStatus,
    Source,
    SpeakerSnapshot,
    TrackInfo,
    UpdateEvent,
    apply_event,
)
from kefir.models.theme import Theme

__all__ = [
    "SOURCES",
    "PlaybackState",
    "PowerStatus",
    "Source",
    "SpeakerSnapshot",
    "TrackInfo",
    "UpdateEvent",
    "apply_event",
    "SpeakerProfile",
    "create_profile",
    "Theme",
]
