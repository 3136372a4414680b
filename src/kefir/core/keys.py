"""Keyboard input decoding for interactive mode.

Raw mode delivers one character at a time, so arrow keys arrive as a
three-byte sequence (ESC [ A) and Shift+arrows as six bytes (ESC [ 1 ; 2 A).
KeyDecoder consumes characters one by one and emits a Command once a key is
complete.
"""

from enum import Enum, auto

VOLUME_STEP = 5
VOLUME_FINE_STEP = 1

ESC = "\x1b"
CTRL_C = "\x03"


class Command(Enum):
    """Actions the interactive session can perform."""

    VOLUME_UP = auto()
    VOLUME_DOWN = auto()
    VOLUME_UP_FINE = auto()
    VOLUME_DOWN_FINE = auto()
    TOGGLE_MUTE = auto()
    PLAY_PAUSE = auto()
    NEXT = auto()
    PREVIOUS = auto()
    CHANGE_SOURCE = auto()
    POWER_TOGGLE = auto()
    REFRESH = auto()
    HELP = auto()
    QUIT = auto()


# Volume delta per command
VOLUME_DELTAS: dict[Command, int] = {
    Command.VOLUME_UP: VOLUME_STEP,
    Command.VOLUME_DOWN: -VOLUME_STEP,
    Command.VOLUME_UP_FINE: VOLUME_FINE_STEP,
    Command.VOLUME_DOWN_FINE: -VOLUME_FINE_STEP,
}

_PLAIN_KEYS: dict[str, Command] = {
    " ": Command.PLAY_PAUSE,
    "m": Command.TOGGLE_MUTE,
    "s": Command.CHANGE_SOURCE,
    "p": Command.POWER_TOGGLE,
    "r": Command.REFRESH,
    "h": Command.HELP,
    "?": Command.HELP,
    "q": Command.QUIT,
    CTRL_C: Command.QUIT,
    "+": Command.VOLUME_UP,
    "=": Command.VOLUME_UP,
    "-": Command.VOLUME_DOWN,
    "_": Command.VOLUME_DOWN,
}

# Final byte of ESC [ X
_ARROW_KEYS: dict[str, Command] = {
    "A": Command.VOLUME_UP,
    "B": Command.VOLUME_DOWN,
    "C": Command.NEXT,
    "D": Command.PREVIOUS,
}

# Final byte of ESC [ 1 ; 2 X (Shift modifier)
_SHIFT_ARROW_KEYS: dict[str, Command] = {
    "A": Command.VOLUME_UP_FINE,
    "B": Command.VOLUME_DOWN_FINE,
}

_SHIFT_PREFIX = "1;2"


class KeyDecoder:
    """Character-level state machine turning key presses into Commands.

    Example:
        decoder = KeyDecoder()
        for char in "\\x1b[A":
            command = decoder.feed(char)
        assert command is Command.VOLUME_UP
    """

    def __init__(self) -> None:
        """Initialize with no sequence in progress."""
        # Characters of an escape sequence consumed so far, ESC excluded
        self._buffer: str | None = None

    @property
    def pending(self) -> bool:
        """Return True while an escape sequence is incomplete."""
        return self._buffer is not None

    def reset(self) -> None:
        """Abandon any partial escape sequence."""
        self._buffer = None

    def feed(self, char: str) -> Command | None:
        """Consume one character.

        Returns:
            The completed command, or None if the key is unknown or a
            sequence is still in progress.
        """
        if self._buffer is None:
            if char == ESC:
                self._buffer = ""
                return None
            return _PLAIN_KEYS.get(char.lower())
        return self._feed_sequence(char)

    def _feed_sequence(self, char: str) -> Command | None:
        buffer = self._buffer or ""

        if not buffer:
            if char == "[":
                self._buffer = "["
            else:
                self.reset()
            return None

        body = buffer[1:]
        if not body and char in _ARROW_KEYS:
            self.reset()
            return _ARROW_KEYS[char]

        if len(body) < len(_SHIFT_PREFIX):
            if _SHIFT_PREFIX.startswith(body + char):
                self._buffer = buffer + char
            else:
                self.reset()
            return None

        self.reset()
        return _SHIFT_ARROW_KEYS.get(char)

    def decode(self, chars: str) -> list[Command]:
        """Feed every character of ``chars`` and return the completed commands."""
        commands = []
        for char in chars:
            command = self.feed(char)
            if command is not None:
                commands.append(command)
        return commands
