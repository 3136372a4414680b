"""Tests for ConfigManager."""

import json
from pathlib import Path

import pytest

from kefir.core.config import ConfigError, ConfigManager, default_config_dir
from kefir.models.theme import Theme


class TestConfigFile:
    """Tests for loading and saving the file."""

    def test_created_with_defaults(self, config: ConfigManager, config_path: Path) -> None:
        """Test a missing file is created with defaults."""
        assert config.exists
        data = json.loads(config_path.read_text())
        assert data == {
            "last_used_speaker_id": None,
            "speakers": [],
            "theme": {"use_colors": True, "use_emojis": True},
        }

    def test_persists_across_instances(self, config: ConfigManager, config_path: Path) -> None:
        """Test saved speakers and theme are loaded by a new instance."""
        profile = config.add_speaker("Office", "192.168.1.50", set_default=True)
        config.update_last_used(profile.id)
        config.update_theme(use_emojis=False)

        reloaded = ConfigManager(config_path)
        assert reloaded.get_speakers()[0].id == profile.id
        assert reloaded.get_default_speaker() is not None
        assert reloaded.get_last_used_speaker_id() == profile.id
        assert reloaded.get_theme() == Theme(use_colors=True, use_emojis=False)

    def test_invalid_json_raises(self, config_path: Path) -> None:
        """Test a corrupt file raises instead of being overwritten."""
        config_path.parent.mkdir(parents=True)
        config_path.write_text("{not json")

        with pytest.raises(ConfigError):
            ConfigManager(config_path)
        assert config_path.read_text() == "{not json"

    def test_invalid_entries_skipped(self, config_path: Path) -> None:
        """Test broken profile entries are skipped."""
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            json.dumps(
                {
                    "speakers": [
                        {"id": "a", "name": "Office", "host": "10.0.0.1"},
                        {"id": "b", "name": "No host"},
                        "garbage",
                    ]
                }
            )
        )

        config = ConfigManager(config_path)
        assert [p.name for p in config.get_speakers()] == ["Office"]

    def test_default_dir_env_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test KEFIR_CONFIG_DIR moves the config directory."""
        monkeypatch.setenv("KEFIR_CONFIG_DIR", str(tmp_path))
        assert default_config_dir() == tmp_path

    def test_default_dir(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the default directory under ~/.config."""
        monkeypatch.delenv("KEFIR_CONFIG_DIR", raising=False)
        assert default_config_dir() == Path.home() / ".config" / "kefir"


class TestSpeakers:
    """Tests for speaker profile management."""

    def test_add_and_lookup(self, config: ConfigManager) -> None:
        """Test adding a speaker and finding it by name and ID."""
        profile = config.add_speaker("Living Room", "10.0.0.2")

        assert config.get_speaker_by_name("living room") == profile
        assert config.get_speaker_by_id(profile.id) == profile
        assert config.get_speaker_by_name("Kitchen") is None

    def test_single_default(self, config: ConfigManager) -> None:
        """Test only one profile is ever the default."""
        first = config.add_speaker("A", "10.0.0.1", set_default=True)
        second = config.add_speaker("B", "10.0.0.2", set_default=True)

        defaults = [p for p in config.get_speakers() if p.is_default]
        assert [p.id for p in defaults] == [second.id]

        config.set_default_speaker(first.id)
        defaults = [p for p in config.get_speakers() if p.is_default]
        assert [p.id for p in defaults] == [first.id]

    def test_set_default_unknown(self, config: ConfigManager) -> None:
        """Test setting an unknown default raises KeyError."""
        with pytest.raises(KeyError):
            config.set_default_speaker("missing")

    def test_same_host_updates_in_place(self, config: ConfigManager) -> None:
        """Test adding an existing host refreshes that profile."""
        first = config.add_speaker("A", "10.0.0.1")
        config.add_speaker("B", "10.0.0.2")
        again = config.add_speaker("A again", "10.0.0.1", set_default=True)

        speakers = config.get_speakers()
        assert len(speakers) == 2
        assert speakers[0].id == first.id
        assert again.is_default
        assert again.last_seen >= first.last_seen

    def test_remove_clears_last_used(self, config: ConfigManager) -> None:
        """Test removing the last used speaker clears it."""
        profile = config.add_speaker("A", "10.0.0.1")
        config.update_last_used(profile.id)

        assert config.remove_speaker(profile.id) is True
        assert config.get_speakers() == []
        assert config.get_last_used_speaker_id() is None
        assert config.remove_speaker(profile.id) is False


class TestTheme:
    """Tests for theme settings."""

    def test_update_theme(self, config: ConfigManager) -> None:
        """Test None leaves a flag unchanged."""
        assert config.update_theme(use_colors=False) == Theme(use_colors=False)
        assert config.update_theme(use_emojis=False) == Theme(
            use_colors=False, use_emojis=False
        )
