"""Configuration manager persisting speaker profiles and theme as JSON.

The file lives at ``~/.config/kefir/config.json``; set ``KEFIR_CONFIG_DIR``
to use another directory. Layout::

    {
      "speakers": [{"id": ..., "name": ..., "host": ...,
                    "is_default": false, "last_seen": 1700000000.0}],
      "last_used_speaker_id": null,
      "theme": {"use_colors": true, "use_emojis": true}
    }
"""

import json
import logging
import os
import tempfile
import time
from dataclasses import replace
from pathlib import Path
from typing import Any, cast

from kefir.models.profile import SpeakerProfile, create_profile
from kefir.models.theme import Theme

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "KEFIR_CONFIG_DIR"
CONFIG_FILENAME = "config.json"

# Settings keys
_KEY_SPEAKERS = "speakers"
_KEY_LAST_USED = "last_used_speaker_id"
_KEY_THEME = "theme"


class ConfigError(Exception):
    """The configuration file exists but cannot be read or written."""


def default_config_dir() -> Path:
    """Return the per-user configuration directory."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "kefir"


class ConfigManager:
    """Type-safe access to the kefir configuration file.

    Every mutating call rewrites the file atomically, so one call is one save.

    Example:
        config = ConfigManager()
        profile = config.add_speaker("Office", "192.168.1.50", set_default=True)
        assert config.get_default_speaker() == profile
    """

    def __init__(self, path: Path | None = None) -> None:
        """Load the configuration, creating the file with defaults if missing.

        Args:
            path: Config file path. Defaults to ``default_config_dir()/config.json``.

        Raises:
            ConfigError: If the file exists but is not valid JSON.
        """
        self._path = path or default_config_dir() / CONFIG_FILENAME
        self._speakers: list[SpeakerProfile] = []
        self._last_used_id: str | None = None
        self._theme = Theme()

        if self._path.exists():
            self._load()
        else:
            self._save()

    @property
    def config_path(self) -> Path:
        """Return the path of the configuration file."""
        return self._path

    @property
    def exists(self) -> bool:
        """Return True if the configuration file is on disk."""
        return self._path.exists()

    # -- persistence -----------------------------------------------------------

    def _load(self) -> None:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read {self._path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"Unexpected content in {self._path}")
        data = cast(dict[str, Any], raw)

        speakers: list[SpeakerProfile] = []
        raw_speakers = data.get(_KEY_SPEAKERS, [])
        if isinstance(raw_speakers, list):
            for item in cast(list[object], raw_speakers):
                if not isinstance(item, dict):
                    continue
                try:
                    speakers.append(SpeakerProfile.from_dict(cast(dict[str, Any], item)))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping invalid speaker profile entry: %s", e)
        self._speakers = speakers

        last_used = data.get(_KEY_LAST_USED)
        self._last_used_id = str(last_used) if last_used else None
        self._theme = Theme.from_dict(data.get(_KEY_THEME))

    def _save(self) -> None:
        data = {
            _KEY_SPEAKERS: [p.to_dict() for p in self._speakers],
            _KEY_LAST_USED: self._last_used_id,
            _KEY_THEME: self._theme.to_dict(),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".config-", suffix=".json", dir=self._path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
                handle.write("\n")
            os.replace(tmp_name, self._path)
        except OSError as e:
            raise ConfigError(f"Cannot write {self._path}: {e}") from e
        logger.debug("Saved configuration to %s", self._path)

    # -- speaker management ----------------------------------------------------

    def get_speakers(self) -> list[SpeakerProfile]:
        """Return all saved speaker profiles."""
        return list(self._speakers)

    def add_speaker(self, name: str, host: str, set_default: bool = False) -> SpeakerProfile:
        """Add a speaker profile, or refresh the one already saved for ``host``.

        Args:
            name: Human-readable name.
            host: Speaker hostname or IP.
            set_default: Make this the (only) default speaker.

        Returns:
            The stored profile.
        """
        existing = next((p for p in self._speakers if p.host == host), None)
        if existing is not None:
            profile = existing.touched()
            if set_default:
                profile = profile.with_default(True)
            logger.info("Updating existing speaker %s at %s", profile.name, host)
        else:
            profile = create_profile(name, host, is_default=set_default)
            logger.info("Adding speaker %s at %s", name, host)

        speakers = [p for p in self._speakers if p.id != profile.id]
        if profile.is_default:
            speakers = [p.with_default(False) for p in speakers]
        if existing is not None:
            index = self._speakers.index(existing)
            speakers.insert(index, profile)
        else:
            speakers.append(profile)

        self._speakers = speakers
        self._save()
        return profile

    def remove_speaker(self, speaker_id: str) -> bool:
        """Remove a speaker profile by ID.

        Args:
            speaker_id: ID of the profile to remove.

        Returns:
            True if the profile was removed, False if not found.
        """
        remaining = [p for p in self._speakers if p.id != speaker_id]
        if len(remaining) == len(self._speakers):
            return False
        self._speakers = remaining
        if self._last_used_id == speaker_id:
            self._last_used_id = None
        self._save()
        return True

    def get_speaker_by_name(self, name: str) -> SpeakerProfile | None:
        """Return the profile whose name matches ``name`` (case-insensitive)."""
        wanted = name.casefold()
        return next((p for p in self._speakers if p.name.casefold() == wanted), None)

    def get_speaker_by_id(self, speaker_id: str) -> SpeakerProfile | None:
        """Return the profile with the given ID, or None."""
        return next((p for p in self._speakers if p.id == speaker_id), None)

    def get_default_speaker(self) -> SpeakerProfile | None:
        """Return the default speaker profile, or None."""
        return next((p for p in self._speakers if p.is_default), None)

    def set_default_speaker(self, speaker_id: str) -> None:
        """Make one profile the default and clear the flag on all others.

        Raises:
            KeyError: If no profile has the given ID.
        """
        if self.get_speaker_by_id(speaker_id) is None:
            raise KeyError(speaker_id)
        self._speakers = [p.with_default(p.id == speaker_id) for p in self._speakers]
        self._save()

    def update_last_used(self, speaker_id: str) -> None:
        """Record ``speaker_id`` as last used and refresh its last_seen time."""
        self._last_used_id = speaker_id
        now = time.time()
        self._speakers = [
            replace(p, last_seen=now) if p.id == speaker_id else p for p in self._speakers
        ]
        self._save()

    def get_last_used_speaker_id(self) -> str | None:
        """Return the ID of the last used speaker, or None."""
        return self._last_used_id

    # -- theme -------------------------------------------------------------------

    def get_theme(self) -> Theme:
        """Return the saved theme."""
        return self._theme

    def update_theme(self, use_colors: bool | None = None, use_emojis: bool | None = None) -> Theme:
        """Change theme flags; None leaves a flag as it is.

        Returns:
            The updated theme.
        """
        self._theme = self._theme.updated(use_colors=use_colors, use_emojis=use_emojis)
        self._save()
        return self._theme
