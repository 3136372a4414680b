"""Tests for speaker state models."""

from functools import reduce

import pytest

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


class TestSource:
    """Tests for the Source enum."""

    def test_menu_order(self) -> None:
        """Test the seven sources in menu order."""
        assert [s.value for s in SOURCES] == [
            "wifi",
            "bluetooth",
            "tv",
            "optic",
            "coaxial",
            "analog",
            "usb",
        ]

    def test_parse_case_insensitive(self) -> None:
        """Test parsing ignores case and whitespace."""
        assert Source.parse(" Optic ") is Source.OPTIC

    def test_parse_invalid_lists_choices(self) -> None:
        """Test invalid names report the available sources."""
        with pytest.raises(ValueError, match="Available sources: wifi, bluetooth"):
            Source.parse("radio")

    def test_labels(self) -> None:
        """Test display labels."""
        assert Source.WIFI.label == "Wifi"
        assert Source.TV.label == "TV"
        assert Source.USB.label == "USB"


class TestSnapshot:
    """Tests for SpeakerSnapshot."""

    def test_defaults(self) -> None:
        """Test a default snapshot is a powered-on idle speaker."""
        snapshot = SpeakerSnapshot()
        assert snapshot.volume == 0
        assert snapshot.muted is False
        assert snapshot.power_on is True
        assert snapshot.track is None

    @pytest.mark.parametrize(("volume", "expected"), [(-5, 0), (150, 100), (42, 42)])
    def test_volume_clamped(self, volume: int, expected: int) -> None:
        """Test volume is clamped to 0-100."""
        assert SpeakerSnapshot(volume=volume).volume == expected

    def test_progress(self) -> None:
        """Test progress fraction."""
        assert SpeakerSnapshot(position_ms=30000, duration_ms=120000).progress == 0.25
        assert SpeakerSnapshot(position_ms=30000, duration_ms=0).progress is None
        assert SpeakerSnapshot(position_ms=None, duration_ms=1000).progress is None
        assert SpeakerSnapshot(position_ms=5000, duration_ms=1000).progress == 1.0


class TestApplyEvent:
    """Tests for apply_event."""

    def test_empty_event(self) -> None:
        """Test an empty event leaves the snapshot as is."""
        snapshot = SpeakerSnapshot(volume=10)
        result, changed = apply_event(snapshot, UpdateEvent())
        assert result is snapshot
        assert changed is False

    def test_present_fields_overwrite(self) -> None:
        """Test every present field replaces the snapshot value."""
        result, changed = apply_event(
            SpeakerSnapshot(),
            UpdateEvent(volume=35, muted=True, source=Source.TV, power=PowerStatus.STANDBY),
        )
        assert changed is True
        assert result.volume == 35
        assert result.muted is True
        assert result.source is Source.TV
        assert result.power_on is False

    def test_mute_independent_of_volume(self) -> None:
        """Test volume 0 does not imply mute and mute keeps the volume."""
        result, _ = apply_event(SpeakerSnapshot(volume=20), UpdateEvent(volume=0))
        assert result.muted is False
        result, _ = apply_event(SpeakerSnapshot(volume=20), UpdateEvent(muted=True))
        assert result.volume == 20

    def test_same_values_not_changed(self) -> None:
        """Test an event repeating the current values reports no change."""
        snapshot = SpeakerSnapshot(volume=35)
        _, changed = apply_event(snapshot, UpdateEvent(volume=35))
        assert changed is False

    def test_non_playing_clears_track(self) -> None:
        """Test pausing clears track, position and duration."""
        snapshot = SpeakerSnapshot(
            playing=True, track=TrackInfo(title="Song"), position_ms=1000, duration_ms=2000
        )
        result, changed = apply_event(snapshot, UpdateEvent(playback=PlaybackState.PAUSED))
        assert changed is True
        assert result.playing is False
        assert result.track is None
        assert result.position_ms is None
        assert result.duration_ms is None

    def test_playing_with_track(self) -> None:
        """Test a playing event carries its own track."""
        result, _ = apply_event(
            SpeakerSnapshot(),
            UpdateEvent(playback=PlaybackState.PLAYING, track=TrackInfo(artist="Band")),
        )
        assert result.playing is True
        assert result.track == TrackInfo(artist="Band")

    def test_volume_clamped(self) -> None:
        """Test event volume is clamped."""
        result, _ = apply_event(SpeakerSnapshot(), UpdateEvent(volume=130))
        assert result.volume == 100


class TestUpdateEvent:
    """Tests for UpdateEvent."""

    def test_is_empty(self) -> None:
        """Test is_empty."""
        assert UpdateEvent().is_empty
        assert not UpdateEvent(muted=False).is_empty

    def test_merged_later_wins(self) -> None:
        """Test the later event's fields take precedence."""
        merged = UpdateEvent(volume=10, muted=True).merged(UpdateEvent(volume=20))
        assert merged == UpdateEvent(volume=20, muted=True)

    def test_merged_stop_drops_track(self) -> None:
        """Test a later stop removes an earlier track."""
        first = UpdateEvent(playback=PlaybackState.PLAYING, track=TrackInfo(title="x"))
        merged = first.merged(UpdateEvent(playback=PlaybackState.STOPPED))
        assert merged.track is None
        assert merged.playback is PlaybackState.STOPPED

    def test_playback_parse(self) -> None:
        """Test unknown player states count as stopped."""
        assert PlaybackState.parse("playing") is PlaybackState.PLAYING
        assert PlaybackState.parse("paused") is PlaybackState.PAUSED
        assert PlaybackState.parse("buffering") is PlaybackState.STOPPED


OLD_TRACK = TrackInfo(title="Old Song", artist="Band")
NEW_TRACK = TrackInfo(title="New Song", artist="Band")
PLAYING_SNAPSHOT = SpeakerSnapshot(
    volume=30, playing=True, track=OLD_TRACK, position_ms=5000, duration_ms=200000
)

EVENT_SEQUENCES = {
    "overlapping_volume": [
        UpdateEvent(volume=10),
        UpdateEvent(volume=20, muted=True),
        UpdateEvent(volume=30),
    ],
    "track_then_stop": [
        UpdateEvent(playback=PlaybackState.PLAYING, track=NEW_TRACK, duration_ms=180000),
        UpdateEvent(volume=40),
        UpdateEvent(playback=PlaybackState.STOPPED),
    ],
    "stop_then_track": [
        UpdateEvent(playback=PlaybackState.PLAYING, track=NEW_TRACK),
        UpdateEvent(playback=PlaybackState.STOPPED),
        UpdateEvent(track=NEW_TRACK),
    ],
    "stop_then_play": [
        UpdateEvent(playback=PlaybackState.STOPPED),
        UpdateEvent(playback=PlaybackState.PLAYING, track=NEW_TRACK),
        UpdateEvent(position_ms=1000),
    ],
    "pause_then_play_without_track": [
        UpdateEvent(playback=PlaybackState.PAUSED),
        UpdateEvent(playback=PlaybackState.PLAYING),
        UpdateEvent(volume=5),
    ],
    "position_overlaps": [
        UpdateEvent(position_ms=1000, duration_ms=200000),
        UpdateEvent(position_ms=2000, duration_ms=210000),
        UpdateEvent(playback=PlaybackState.PAUSED),
        UpdateEvent(position_ms=0),
    ],
}


class TestMergeMatchesSequentialApply:
    """Applying a merged event equals applying its parts in order."""

    @pytest.mark.parametrize(
        "start", [SpeakerSnapshot(), PLAYING_SNAPSHOT], ids=["idle", "playing"]
    )
    @pytest.mark.parametrize(
        "events", list(EVENT_SEQUENCES.values()), ids=list(EVENT_SEQUENCES)
    )
    def test_same_snapshot(self, start: SpeakerSnapshot, events: list[UpdateEvent]) -> None:
        """Test one merged event leaves the same snapshot as each event in turn."""
        expected = start
        for event in events:
            expected, _ = apply_event(expected, event)

        result, _ = apply_event(start, reduce(UpdateEvent.merged, events))

        assert result == expected

    def test_stop_then_play_drops_stale_position(self) -> None:
        """Test a stop folded before a play still clears the old position."""
        merged = UpdateEvent(playback=PlaybackState.STOPPED).merged(
            UpdateEvent(playback=PlaybackState.PLAYING)
        )
        result, _ = apply_event(PLAYING_SNAPSHOT, merged)

        assert result.playing is True
        assert result.track is None
        assert result.position_ms is None
        assert result.duration_ms is None


class TestTrackInfo:
    """Tests for TrackInfo."""

    def test_is_empty(self) -> None:
        """Test empty metadata detection."""
        assert TrackInfo().is_empty
        assert not TrackInfo(album="Record").is_empty
