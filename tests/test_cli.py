"""Tests for the kefir command line."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kefir.__main__ import (
    EXIT_ERROR,
    EXIT_OK,
    EXIT_USAGE,
    UsageError,
    main,
    resolve_speaker,
)
from kefir.api.protocol import FirmwareInfo, KefConnectionError, KefProtocolError
from kefir.core.config import ConfigManager
from kefir.models.speaker import PowerStatus, Source, TrackInfo
from kefir.ui.render import strip_ansi


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a temporary config directory."""
    monkeypatch.setenv("KEFIR_CONFIG_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def saved_config(config_dir: Path) -> ConfigManager:
    """Config with one default speaker."""
    config = ConfigManager(config_dir / "config.json")
    config.add_speaker("Office", "192.168.1.50", set_default=True)
    return config


@pytest.fixture
def client() -> Iterator[tuple[MagicMock, AsyncMock]]:
    """Patch KefClient; yield the class mock and the speaker it opens."""
    speaker = AsyncMock()
    speaker.get_status.return_value = PowerStatus.POWER_ON
    speaker.get_source.return_value = Source.WIFI
    speaker.get_volume.return_value = 35
    speaker.is_playing.return_value = False
    with patch("kefir.__main__.KefClient") as client_cls:
        client_cls.return_value.__aenter__.return_value = speaker
        client_cls.return_value.__aexit__.return_value = False
        yield client_cls, speaker


def output(capsys: pytest.CaptureFixture[str]) -> tuple[str, str]:
    """Return captured stdout and stderr without ANSI codes."""
    captured = capsys.readouterr()
    return strip_ansi(captured.out), strip_ansi(captured.err)


class TestResolveSpeaker:
    """Tests for turning a SPEAKER argument into a host."""

    def test_profile_name(self, config: ConfigManager) -> None:
        """Test a saved profile name resolves to its host."""
        config.add_speaker("Office", "10.0.0.5")
        assert resolve_speaker(config, "office") == ("10.0.0.5", "Office")

    def test_raw_host(self, config: ConfigManager) -> None:
        """Test an unknown name is used as a host."""
        assert resolve_speaker(config, "10.0.0.9") == ("10.0.0.9", "10.0.0.9")

    def test_default(self, config: ConfigManager) -> None:
        """Test the default speaker is used without an argument."""
        config.add_speaker("Office", "10.0.0.5", set_default=True)
        assert resolve_speaker(config, None) == ("10.0.0.5", "Office")

    def test_no_default(self, config: ConfigManager) -> None:
        """Test a missing default is a usage error."""
        with pytest.raises(UsageError, match="No speaker specified"):
            resolve_speaker(config, None)


class TestArguments:
    """Tests for argument validation."""

    @pytest.mark.parametrize("level", ["101", "-1", "loud"])
    def test_invalid_volume(self, config_dir: Path, level: str) -> None:
        """Test out-of-range and non-numeric volume levels are rejected."""
        with pytest.raises(SystemExit) as exc_info:
            main(["volume", "set", level])
        assert exc_info.value.code == EXIT_USAGE

    def test_invalid_source(
        self, config_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test an unknown source lists the available ones."""
        with pytest.raises(SystemExit):
            main(["source", "set", "radio"])
        _, err = output(capsys)
        assert "Available sources: wifi, bluetooth, tv, optic, coaxial, analog, usb" in err

    def test_no_default_speaker(
        self, config_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test control commands without any speaker exit with a usage error."""
        assert main(["volume", "get"]) == EXIT_USAGE
        _, err = output(capsys)
        assert "kefir speaker add" in err


class TestControlCommands:
    """Tests for commands that talk to a speaker."""

    def test_volume_set_on_profile(
        self,
        saved_config: ConfigManager,
        client: tuple[MagicMock, AsyncMock],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test volume set resolves the profile and prints a bar."""
        client_cls, speaker = client

        assert main(["volume", "set", "40", "Office"]) == EXIT_OK

        client_cls.assert_called_once_with("192.168.1.50")
        speaker.set_volume.assert_awaited_once_with(40)
        out, _ = output(capsys)
        assert "Volume set to 40" in out
        assert " 40%" in out

    def test_mute_and_unmute(
        self, saved_config: ConfigManager, client: tuple[MagicMock, AsyncMock]
    ) -> None:
        """Test mute and unmute call the matching client methods."""
        _, speaker = client

        assert main(["volume", "mute"]) == EXIT_OK
        assert main(["volume", "unmute"]) == EXIT_OK

        speaker.mute.assert_awaited_once()
        speaker.unmute.assert_awaited_once()

    def test_power(
        self, saved_config: ConfigManager, client: tuple[MagicMock, AsyncMock]
    ) -> None:
        """Test power on and off."""
        _, speaker = client

        assert main(["power", "on"]) == EXIT_OK
        assert main(["power", "off"]) == EXIT_OK

        speaker.power_on.assert_awaited_once()
        speaker.shutdown.assert_awaited_once()

    def test_source_set(
        self,
        saved_config: ConfigManager,
        client: tuple[MagicMock, AsyncMock],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test source names are case-insensitive."""
        _, speaker = client

        assert main(["source", "set", "TV"]) == EXIT_OK

        speaker.set_source.assert_awaited_once_with(Source.TV)
        out, _ = output(capsys)
        assert "Source set to tv" in out

    def test_play_info(
        self,
        saved_config: ConfigManager,
        client: tuple[MagicMock, AsyncMock],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test the now playing box."""
        _, speaker = client
        speaker.is_playing.return_value = True
        speaker.get_song_information.return_value = TrackInfo(title="Song", artist="Band")

        assert main(["play", "info"]) == EXIT_OK

        out, _ = output(capsys)
        assert "Now Playing" in out
        assert "Title: Song" in out
        assert "Artist: Band" in out

    def test_speaker_error(
        self,
        saved_config: ConfigManager,
        client: tuple[MagicMock, AsyncMock],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test speaker failures exit with status 1."""
        _, speaker = client
        speaker.get_volume.side_effect = KefConnectionError("Failed to reach 192.168.1.50")

        assert main(["volume", "get"]) == EXIT_ERROR

        _, err = output(capsys)
        assert "Failed to reach 192.168.1.50" in err

    def test_malformed_host(
        self, config_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test a host that is not a valid address exits with status 1."""
        assert main(["volume", "get", "speaker:80x"]) == EXIT_ERROR

        _, err = output(capsys)
        assert "Invalid speaker address 'speaker:80x'" in err

    def test_add_malformed_host(
        self, config_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test speaker add rejects an invalid address without saving it."""
        assert main(["speaker", "add", "Office", "speaker:80x"]) == EXIT_ERROR

        assert ConfigManager(config_dir / "config.json").get_speakers() == []
        out, _ = output(capsys)
        assert "Failed to connect" in out

    def test_status_marks_unavailable(
        self,
        saved_config: ConfigManager,
        client: tuple[MagicMock, AsyncMock],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test failed fields are shown as unavailable."""
        _, speaker = client
        speaker.get_source.side_effect = KefProtocolError("standby")

        assert main(["status"]) == EXIT_OK

        out, _ = output(capsys)
        assert "Power: ON" in out
        assert "Source: (unavailable)" in out
        assert "Volume: 35%" in out
        assert "Playing: No" in out

    def test_info(
        self,
        saved_config: ConfigManager,
        client: tuple[MagicMock, AsyncMock],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test device information."""
        _, speaker = client
        speaker.get_speaker_name.return_value = "Office LSX"
        speaker.get_mac_address.side_effect = KefProtocolError("missing")
        speaker.get_firmware_version.return_value = FirmwareInfo.from_release_text(
            "LSXII_V25120"
        )

        assert main(["info"]) == EXIT_OK

        out, _ = output(capsys)
        assert "Device Name: Office LSX" in out
        assert "MAC Address: (unavailable)" in out
        assert "Model: KEF LSX II" in out


class TestSpeakerCommands:
    """Tests for speaker profile management."""

    def test_add(
        self, config_dir: Path, client: tuple[MagicMock, AsyncMock]
    ) -> None:
        """Test add tests the connection and saves the profile."""
        _, speaker = client

        assert main(["speaker", "add", "Office", "10.0.0.5", "--set-default"]) == EXIT_OK

        speaker.get_status.assert_awaited_once()
        profile = ConfigManager(config_dir / "config.json").get_default_speaker()
        assert profile is not None
        assert profile.host == "10.0.0.5"

    def test_add_unreachable(
        self,
        config_dir: Path,
        client: tuple[MagicMock, AsyncMock],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test an unreachable speaker is not saved."""
        _, speaker = client
        speaker.get_status.side_effect = KefConnectionError("timed out")

        assert main(["speaker", "add", "Office", "10.0.0.5"]) == EXIT_ERROR

        assert ConfigManager(config_dir / "config.json").get_speakers() == []
        out, _ = output(capsys)
        assert "Failed to connect" in out

    def test_remove_unknown(self, saved_config: ConfigManager) -> None:
        """Test removing an unknown profile is a usage error."""
        assert main(["speaker", "remove", "Kitchen"]) == EXIT_USAGE

    def test_remove(self, saved_config: ConfigManager, config_dir: Path) -> None:
        """Test removing a profile."""
        assert main(["speaker", "remove", "office"]) == EXIT_OK
        assert ConfigManager(config_dir / "config.json").get_speakers() == []

    def test_list(
        self, saved_config: ConfigManager, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test the profile table."""
        assert main(["speaker", "list"]) == EXIT_OK
        out, _ = output(capsys)
        assert "Configured Speakers:" in out
        assert "Office" in out
        assert "192.168.1.50" in out

    def test_discover_add(self, config_dir: Path) -> None:
        """Test discovered speakers are saved, the first as default."""
        found = [
            MagicMock(display_name="Kitchen", host="10.0.0.1", model="LS60"),
            MagicMock(display_name="Office", host="10.0.0.2", model="LSXII"),
        ]
        with patch("kefir.__main__.SpeakerDiscovery.discover_all", return_value=found):
            assert main(["speaker", "discover", "--timeout", "0", "--add"]) == EXIT_OK

        config = ConfigManager(config_dir / "config.json")
        assert [p.name for p in config.get_speakers()] == ["Kitchen", "Office"]
        default = config.get_default_speaker()
        assert default is not None
        assert default.name == "Kitchen"


class TestConfigCommands:
    """Tests for the config command."""

    def test_theme_update(self, config_dir: Path) -> None:
        """Test disabling colors persists."""
        assert main(["config", "theme", "--disable-colors"]) == EXIT_OK

        theme = ConfigManager(config_dir / "config.json").get_theme()
        assert theme.use_colors is False
        assert theme.use_emojis is True

    def test_theme_show(
        self, config_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test showing the current theme."""
        assert main(["config", "theme"]) == EXIT_OK
        out, _ = output(capsys)
        assert "Colors: enabled" in out
        assert "Emojis: enabled" in out

    def test_source_list_plain(
        self, config_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test disabled emojis are left out of the source list."""
        main(["config", "theme", "--disable-emojis"])
        capsys.readouterr()

        assert main(["source", "list"]) == EXIT_OK

        out, _ = output(capsys)
        assert out.splitlines()[1:] == [
            "  wifi",
            "  bluetooth",
            "  tv",
            "  optic",
            "  coaxial",
            "  analog",
            "  usb",
        ]

    def test_corrupt_config(
        self, config_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test an unreadable config file exits with status 1."""
        (config_dir / "config.json").write_text("{broken")

        assert main(["speaker", "list"]) == EXIT_ERROR


class TestFirstRun:
    """Tests for first-time setup."""

    def test_setup_saves_default(
        self,
        config_dir: Path,
        client: tuple[MagicMock, AsyncMock],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test setup asks for name and host and saves a default speaker."""
        answers = iter(["Living Room", "10.0.0.7"])
        monkeypatch.setattr("builtins.input", lambda _prompt="": next(answers))

        assert main([]) == EXIT_OK

        profile = ConfigManager(config_dir / "config.json").get_default_speaker()
        assert profile is not None
        assert profile.name == "Living Room"

    def test_setup_empty_name(
        self, config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test an empty name aborts setup."""
        monkeypatch.setattr("builtins.input", lambda _prompt="": "  ")
        assert main([]) == EXIT_USAGE

    def test_help_when_configured(
        self, saved_config: ConfigManager, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test help is printed once a speaker exists."""
        assert main([]) == EXIT_OK
        out, _ = output(capsys)
        assert "usage: kefir" in out
