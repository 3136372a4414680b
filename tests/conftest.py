"""Shared fixtures for kefir tests."""

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from kefir.api.client import KefClient
from kefir.core.config import ConfigManager
from kefir.models.speaker import PowerStatus, Source, TrackInfo, UpdateEvent
from kefir.models.theme import PLAIN
from kefir.ui.render import strip_ansi
from kefir.ui.style import Style


async def idle_stream(*_args: object, **_kwargs: object) -> AsyncIterator[UpdateEvent]:
    """Event stream that never reports anything."""
    await asyncio.Event().wait()
    yield UpdateEvent()


class FakeTerminal:
    """In-memory stand-in for Terminal that replays scripted key presses."""

    def __init__(self, keys: str = "") -> None:
        self.keys: deque[str] = deque(keys)
        self.frames: list[list[str]] = []
        self.output: list[str] = []
        self.sessions_entered = 0
        self.restore_count = 0

    def press(self, keys: str) -> None:
        """Queue more key presses."""
        self.keys.extend(keys)

    @contextmanager
    def raw_session(self) -> Iterator["FakeTerminal"]:
        self.sessions_entered += 1
        try:
            yield self
        finally:
            self.restore_count += 1

    def read_char(self) -> str | None:
        if self.keys:
            return self.keys.popleft()
        return None

    def write(self, text: str) -> None:
        self.output.append(text)

    def draw(self, lines: list[str]) -> None:
        self.frames.append(list(lines))

    @property
    def last_frame(self) -> str:
        """Return the last drawn frame as plain text."""
        if not self.frames:
            return ""
        return strip_ansi("\n".join(self.frames[-1]))


@pytest.fixture
def speaker() -> MagicMock:
    """Mock KefClient for a powered-on, idle speaker at volume 50."""
    client = MagicMock(spec=KefClient)
    client.host = "192.168.1.50"
    client.get_volume.return_value = 50
    client.is_muted.return_value = False
    client.get_status.return_value = PowerStatus.POWER_ON
    client.get_source.return_value = Source.WIFI
    client.is_playing.return_value = False
    client.get_song_information.return_value = TrackInfo()
    client.get_song_position.return_value = 0
    client.get_song_duration.return_value = 0
    client.start_polling.side_effect = idle_stream
    return client


@pytest.fixture
def terminal() -> FakeTerminal:
    """Fake terminal with no pending input."""
    return FakeTerminal()


@pytest.fixture
def plain_style() -> Style:
    """Style without colors or emojis."""
    return Style(PLAIN)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Path of a config file inside a temporary directory."""
    return tmp_path / "kefir" / "config.json"


@pytest.fixture
def config(config_path: Path) -> ConfigManager:
    """ConfigManager backed by a temporary file."""
    return ConfigManager(config_path)
