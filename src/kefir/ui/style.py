"""ANSI text styling gated by the user's theme.

A Style is built once per invocation from the saved Theme and passed to every
render function, so nothing reads global formatting flags.

Usage:
    style = Style(config.get_theme())
    print(style.success("Volume set to 40"))
    print(style.color("wifi", AnsiColor.BLUE))
"""

from enum import Enum

from kefir.models.theme import Theme


class AnsiColor(Enum):
    """SGR escape sequences for colors and text attributes."""

    BLACK = "\x1b[30m"
    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    BLUE = "\x1b[34m"
    MAGENTA = "\x1b[35m"
    CYAN = "\x1b[36m"
    WHITE = "\x1b[37m"
    BRIGHT_BLACK = "\x1b[90m"
    BRIGHT_RED = "\x1b[91m"
    BRIGHT_GREEN = "\x1b[92m"
    BRIGHT_YELLOW = "\x1b[93m"
    BRIGHT_BLUE = "\x1b[94m"
    BRIGHT_MAGENTA = "\x1b[95m"
    BRIGHT_CYAN = "\x1b[96m"
    BRIGHT_WHITE = "\x1b[97m"
    RESET = "\x1b[0m"
    BOLD = "\x1b[1m"
    DIM = "\x1b[2m"
    UNDERLINE = "\x1b[4m"


class Style:
    """Formats text according to a Theme."""

    def __init__(self, theme: Theme | None = None) -> None:
        """Initialize with a theme (default: colors and emojis on)."""
        self.theme = theme or Theme()

    @property
    def use_colors(self) -> bool:
        """Return True if escape sequences are emitted."""
        return self.theme.use_colors

    @property
    def use_emojis(self) -> bool:
        """Return True if emoji decorations are emitted."""
        return self.theme.use_emojis

    def _wrap(self, text: str, code: AnsiColor) -> str:
        if not self.theme.use_colors:
            return text
        return f"{code.value}{text}{AnsiColor.RESET.value}"

    def color(self, text: str, color: AnsiColor) -> str:
        """Return ``text`` in the given color."""
        return self._wrap(text, color)

    def bold(self, text: str) -> str:
        """Return ``text`` in bold."""
        return self._wrap(text, AnsiColor.BOLD)

    def dim(self, text: str) -> str:
        """Return ``text`` dimmed."""
        return self._wrap(text, AnsiColor.DIM)

    def underline(self, text: str) -> str:
        """Return ``text`` underlined."""
        return self._wrap(text, AnsiColor.UNDERLINE)

    def emoji(self, symbol: str, fallback: str = "") -> str:
        """Return ``symbol`` when emojis are enabled, else ``fallback``."""
        return symbol if self.theme.use_emojis else fallback

    def success(self, text: str) -> str:
        """Format a success message."""
        return f"{self.emoji('✅ ')}{self.color(text, AnsiColor.GREEN)}"

    def error(self, text: str) -> str:
        """Format an error message."""
        return f"{self.emoji('❌ ')}{self.color(text, AnsiColor.RED)}"

    def warning(self, text: str) -> str:
        """Format a warning message."""
        return f"{self.emoji('⚠️  ')}{self.color(text, AnsiColor.YELLOW)}"

    def info(self, text: str) -> str:
        """Format an informational message."""
        return f"{self.emoji('ℹ️  ')}{self.color(text, AnsiColor.CYAN)}"
