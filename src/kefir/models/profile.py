"""Speaker profile data model for saved speakers."""

import logging
import time
import uuid
from dataclasses import dataclass, replace
from typing import Any, Self

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeakerProfile:
    """Saved connection profile for a KEF speaker.

    Attributes:
        id: Unique identifier for the profile.
        name: Human-readable name (e.g., "Living Room", "Office").
        host: Speaker hostname or IP address.
        is_default: Whether this is the default speaker.
        last_seen: Unix timestamp of the last successful use.
    """

    id: str
    name: str
    host: str
    is_default: bool = False
    last_seen: float = 0.0

    def with_default(self, is_default: bool) -> Self:
        """Return a copy with is_default changed.

        Args:
            is_default: New is_default value.

        Returns:
            New SpeakerProfile with updated is_default.
        """
        return replace(self, is_default=is_default)

    def touched(self, now: float | None = None) -> Self:
        """Return a copy with last_seen set to ``now`` (default: current time)."""
        return replace(self, last_seen=time.time() if now is None else now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "host": self.host,
            "is_default": self.is_default,
            "last_seen": self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create a profile from a dict loaded from the config file.

        Raises:
            KeyError: If id, name or host is missing.
            TypeError: If a field has the wrong type.
            ValueError: If a field cannot be converted.
        """
        name = data["name"]
        host = data["host"]
        if not isinstance(name, str) or not isinstance(host, str):
            raise TypeError("name and host must be strings")
        last_seen = data.get("last_seen", 0.0)
        if not isinstance(last_seen, (int, float)):
            raise TypeError("last_seen must be a number")
        return cls(
            id=str(data["id"]),
            name=name,
            host=host,
            is_default=bool(data.get("is_default", False)),
            last_seen=float(last_seen),
        )


def create_profile(name: str, host: str, is_default: bool = False) -> SpeakerProfile:
    """Create a new SpeakerProfile with a generated ID.

    Args:
        name: Human-readable name.
        host: Speaker hostname or IP.
        is_default: Whether to mark it as the default speaker.

    Returns:
        New SpeakerProfile with a random unique ID, last seen now.
    """
    return SpeakerProfile(
        id=uuid.uuid4().hex,
        name=name,
        host=host,
        is_default=is_default,
        last_seen=time.time(),
    )
