"""Render theme settings."""

from dataclasses import dataclass, replace
from typing import Any, Self


@dataclass(frozen=True, slots=True)
class Theme:
    """Output styling preferences.

    Attributes:
        use_colors: Emit ANSI color and text attributes.
        use_emojis: Prefix status messages with emoji.
    """

    use_colors: bool = True
    use_emojis: bool = True

    def updated(self, use_colors: bool | None = None, use_emojis: bool | None = None) -> Self:
        """Return a copy with the given flags changed; None keeps a flag."""
        return replace(
            self,
            use_colors=self.use_colors if use_colors is None else use_colors,
            use_emojis=self.use_emojis if use_emojis is None else use_emojis,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {"use_colors": self.use_colors, "use_emojis": self.use_emojis}

    @classmethod
    def from_dict(cls, data: object) -> Self:
        """Create a theme from config data, defaulting missing flags to True."""
        if not isinstance(data, dict):
            return cls()
        return cls(
            use_colors=bool(data.get("use_colors", True)),
            use_emojis=bool(data.get("use_emojis", True)),
        )


PLAIN = Theme(use_colors=False, use_emojis=False)
