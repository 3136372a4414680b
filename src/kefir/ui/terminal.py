"""Terminal I/O: raw keyboard mode, non-blocking reads and cursor control.

Raw mode here means canonical input, echo and signal keys are off, so every
key press (including Ctrl+C) arrives as a byte. When stdin is not a TTY the
mode switches do nothing and reads simply find no input.
"""

import logging
import os
import select
import sys
import termios
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

logger = logging.getLogger(__name__)

# Escape sequences
CLEAR_SCREEN = "\x1b[2J\x1b[H"
CURSOR_HOME = "\x1b[H"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
ERASE_LINE_END = "\x1b[K"
ERASE_BELOW = "\x1b[J"

# termios attribute list index of the local flags
_LFLAG = 3


class Terminal:
    """Thin wrapper over a pair of terminal streams.

    Example:
        terminal = Terminal()
        with terminal.raw_session():
            char = terminal.read_char()
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """Initialize with input/output streams (default: sys.stdin/sys.stdout)."""
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._saved_attrs: list[object] | None = None

    def _input_fd(self) -> int | None:
        try:
            return self._stdin.fileno()
        except (AttributeError, OSError, ValueError):
            # io.UnsupportedOperation derives from OSError and ValueError
            return None

    @property
    def is_tty(self) -> bool:
        """Return True if the input stream is an interactive terminal."""
        fd = self._input_fd()
        return fd is not None and os.isatty(fd)

    @property
    def in_raw_mode(self) -> bool:
        """Return True while raw mode is active."""
        return self._saved_attrs is not None

    # -- mode switching ----------------------------------------------------------

    def enable_raw_mode(self) -> None:
        """Switch input to unbuffered, no-echo mode. No-op if not a TTY."""
        if self._saved_attrs is not None:
            return
        fd = self._input_fd()
        if fd is None or not os.isatty(fd):
            logger.debug("stdin is not a TTY, raw mode skipped")
            return
        try:
            saved = termios.tcgetattr(fd)
            raw = termios.tcgetattr(fd)
            raw[_LFLAG] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
            termios.tcsetattr(fd, termios.TCSAFLUSH, raw)
        except termios.error as e:
            logger.warning("Could not enable raw mode: %s", e)
            return
        self._saved_attrs = saved

    def disable_raw_mode(self) -> None:
        """Restore the terminal mode saved by enable_raw_mode().

        Safe to call any number of times; only the first call after
        enable_raw_mode() touches the terminal.
        """
        saved = self._saved_attrs
        if saved is None:
            return
        self._saved_attrs = None
        fd = self._input_fd()
        if fd is None:
            return
        try:
            termios.tcsetattr(fd, termios.TCSAFLUSH, saved)
        except termios.error as e:
            logger.warning("Could not restore terminal mode: %s", e)

    @contextmanager
    def raw_session(self) -> Iterator["Terminal"]:
        """Hold raw mode and a hidden cursor for the duration of a block.

        The terminal is restored and the cursor shown on every exit path,
        including exceptions and task cancellation.
        """
        self.enable_raw_mode()
        self.hide_cursor()
        self.clear_screen()
        try:
            yield self
        finally:
            self.disable_raw_mode()
            self.show_cursor()

    # -- input ---------------------------------------------------------------------

    def read_char(self) -> str | None:
        """Return one pending input character, or None if none is ready.

        Never blocks.
        """
        fd = self._input_fd()
        if fd is None:
            return None
        try:
            ready, _, _ = select.select([fd], [], [], 0)
            if not ready:
                return None
            data = os.read(fd, 1)
        except (OSError, ValueError) as e:
            logger.debug("Input read failed: %s", e)
            return None
        if not data:
            return None
        return chr(data[0])

    # -- output --------------------------------------------------------------------

    def write(self, text: str) -> None:
        """Write text and flush immediately."""
        self._stdout.write(text)
        self._stdout.flush()

    def clear_screen(self) -> None:
        """Clear the screen and home the cursor."""
        self.write(CLEAR_SCREEN)

    def move_cursor(self, row: int, column: int) -> None:
        """Move the cursor to a 1-based row and column."""
        self.write(f"\x1b[{row};{column}H")

    def hide_cursor(self) -> None:
        """Hide the cursor."""
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        """Show the cursor."""
        self.write(SHOW_CURSOR)

    def draw(self, lines: list[str]) -> None:
        """Repaint the screen from the top with ``lines`` in a single write.

        Each line clears its own tail and everything below the frame is
        erased, so a shorter frame leaves no leftovers and the screen is
        never blank between frames.
        """
        body = "".join(f"{line}{ERASE_LINE_END}\r\n" for line in lines)
        self.write(f"{CURSOR_HOME}{body}{ERASE_BELOW}")
