"""Interactive mode: a live dashboard driven by keys and speaker events.

One asyncio loop runs three activities:

* the foreground loop reading keys and running commands,
* the stream task consuming speaker events (falling back to periodic
  polling when the event stream fails),
* the ticker task keeping an idle dashboard fresh.

All of them mutate state only on the loop thread, between awaits, so no
locks are needed. Every redraw renders the latest snapshot in the store.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum, auto

from kefir.api.client import DEFAULT_POLL_INTERVAL, KefClient
from kefir.api.protocol import KefError
from kefir.core.keys import ESC, VOLUME_DELTAS, Command, KeyDecoder
from kefir.core.state import StateStore
from kefir.models.speaker import (
    MAX_VOLUME,
    MIN_VOLUME,
    SOURCES,
    PlaybackState,
    PowerStatus,
    UpdateEvent,
)
from kefir.ui.render import render_dashboard, render_help, render_source_menu
from kefir.ui.style import Style
from kefir.ui.terminal import Terminal

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0
STALE_AFTER = 2.0
FALLBACK_POLL_INTERVAL = 5.0
ERROR_DISPLAY_SECONDS = 2.0
INPUT_DELAY = 0.05


class Phase(Enum):
    """Lifecycle of an interactive session."""

    INITIALIZING = auto()
    RUNNING = auto()
    HELP = auto()
    SOURCE_MENU = auto()
    TERMINATING = auto()


MODAL_PHASES = frozenset({Phase.HELP, Phase.SOURCE_MENU})

# Status line prefix per failing command
_ERROR_PREFIXES: dict[Command, str] = {
    Command.VOLUME_UP: "Failed to adjust volume",
    Command.VOLUME_DOWN: "Failed to adjust volume",
    Command.VOLUME_UP_FINE: "Failed to adjust volume",
    Command.VOLUME_DOWN_FINE: "Failed to adjust volume",
    Command.TOGGLE_MUTE: "Failed to toggle mute",
    Command.PLAY_PAUSE: "Failed to toggle playback",
    Command.NEXT: "Failed to skip track",
    Command.PREVIOUS: "Failed to go to previous track",
    Command.CHANGE_SOURCE: "Failed to change source",
    Command.POWER_TOGGLE: "Failed to toggle power",
    Command.REFRESH: "Failed to refresh",
}


class InteractiveSession:
    """Runs the interactive dashboard for one speaker until the user quits.

    Example:
        async with KefClient(host) as speaker:
            await InteractiveSession(speaker, "Office").run()
    """

    def __init__(
        self,
        client: KefClient,
        speaker_name: str,
        terminal: Terminal | None = None,
        style: Style | None = None,
        *,
        poll_interval: int = DEFAULT_POLL_INTERVAL,
        tick_interval: float = TICK_INTERVAL,
        stale_after: float = STALE_AFTER,
        fallback_interval: float = FALLBACK_POLL_INTERVAL,
        error_display: float = ERROR_DISPLAY_SECONDS,
        input_delay: float = INPUT_DELAY,
    ) -> None:
        """Initialize the session.

        Args:
            client: Connected speaker client.
            speaker_name: Name shown in the header.
            terminal: Terminal to draw on (default: stdin/stdout).
            style: Output style (default: colors and emojis).
            poll_interval: Long-poll timeout of the event stream in seconds.
            tick_interval: Seconds between staleness checks.
            stale_after: Seconds without events before an idle redraw.
            fallback_interval: Seconds between polls when the stream failed.
            error_display: Seconds an error stays on screen.
            input_delay: Sleep between empty keyboard reads.
        """
        self.client = client
        self.speaker_name = speaker_name
        self.terminal = terminal or Terminal()
        self.style = style or Style()
        self.store = StateStore()
        self.phase = Phase.INITIALIZING

        self.poll_interval = poll_interval
        self.tick_interval = tick_interval
        self.stale_after = stale_after
        self.fallback_interval = fallback_interval
        self.error_display = error_display
        self.input_delay = input_delay

        self._decoder = KeyDecoder()
        self._handling = False
        self._error: str | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._dismiss_task: asyncio.Task[None] | None = None
        self._handlers: dict[Command, Callable[[], Awaitable[None]]] = {
            Command.TOGGLE_MUTE: self._toggle_mute,
            Command.PLAY_PAUSE: self._play_pause,
            Command.NEXT: self.client.next_track,
            Command.PREVIOUS: self.client.previous_track,
            Command.CHANGE_SOURCE: self._source_menu,
            Command.POWER_TOGGLE: self._power_toggle,
            Command.REFRESH: self._refresh,
            Command.HELP: self._help,
        }

    @property
    def is_modal(self) -> bool:
        """Return True while the help screen or source menu is shown."""
        return self.phase in MODAL_PHASES

    @property
    def error_message(self) -> str | None:
        """Return the error currently shown, if any."""
        return self._error

    # -- lifecycle -----------------------------------------------------------

    async def run(self) -> None:
        """Run the session until quit, power off or cancellation.

        The terminal is restored and background tasks are stopped on every
        exit path.
        """
        with self.terminal.raw_session():
            try:
                await self.store.refresh(self.client)
                await self.store.refresh_progress(self.client)
                self.phase = Phase.RUNNING
                self.redraw(force=True)

                self._tasks = [
                    asyncio.create_task(self._stream_loop()),
                    asyncio.create_task(self._ticker_loop()),
                ]
                await self._input_loop()
            finally:
                self.phase = Phase.TERMINATING
                await self._cancel_tasks()
        logger.info("Interactive session for %s ended", self.speaker_name)

    def stop(self) -> None:
        """Ask the session to end after the current step."""
        self.phase = Phase.TERMINATING

    async def _cancel_tasks(self) -> None:
        tasks = list(self._tasks)
        if self._dismiss_task is not None:
            tasks.append(self._dismiss_task)
        self._tasks = []
        self._dismiss_task = None

        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:  # noqa: BLE001
                logger.warning("Background task failed: %s", e)

    # -- drawing -------------------------------------------------------------

    def redraw(self, force: bool = False) -> bool:
        """Draw the dashboard from the latest snapshot.

        Nothing is drawn while a modal screen is up, or when the snapshot is
        unchanged and ``force`` is False.

        Returns:
            True if a frame was drawn.
        """
        if self.phase is not Phase.RUNNING:
            return False
        if not force and not self.store.needs_redraw:
            return False
        snapshot = self.store.snapshot
        lines = render_dashboard(snapshot, self.speaker_name, self.style)
        if self._error:
            lines += ["", self.style.error(self._error)]
        self.terminal.draw(lines)
        self.store.mark_rendered(snapshot)
        return True

    def show_error(self, message: str) -> None:
        """Show ``message`` on a status line for a few seconds.

        A newer error replaces the one on screen and restarts the timer.
        """
        logger.warning("%s", message)
        self._error = message
        if self._dismiss_task is not None:
            self._dismiss_task.cancel()
        self._dismiss_task = asyncio.create_task(self._dismiss_error())
        self.redraw(force=True)

    async def _dismiss_error(self) -> None:
        await asyncio.sleep(self.error_display)
        self._error = None
        self._dismiss_task = None
        self.redraw(force=True)

    # -- speaker events ------------------------------------------------------

    def handle_update(self, event: UpdateEvent) -> bool:
        """Apply one event from the speaker and redraw if it changed anything.

        Returns:
            True if the snapshot changed.
        """
        changed = self.store.apply(event)
        if changed and not self.is_modal:
            self.redraw()
        return changed

    async def _stream_loop(self) -> None:
        try:
            async for event in self.client.start_polling(
                self.poll_interval, poll_song_status=True
            ):
                self.handle_update(event)
        except Exception as e:  # noqa: BLE001
            logger.warning("Event stream for %s failed: %s", self.client.host, e)
            self.show_error(f"Polling error: {e}")
        await self._fallback_loop()

    async def _fallback_loop(self) -> None:
        logger.info("Falling back to polling every %.1fs", self.fallback_interval)
        while self.phase is not Phase.TERMINATING:
            await asyncio.sleep(self.fallback_interval)
            changed = await self.store.refresh(self.client)
            changed = await self.store.refresh_progress(self.client) or changed
            if changed and not self.is_modal:
                self.redraw()

    async def _ticker_loop(self) -> None:
        while self.phase is not Phase.TERMINATING:
            await asyncio.sleep(self.tick_interval)
            if self.is_modal or self._handling:
                continue
            if (
                self.store.seconds_since_event() > self.stale_after
                and not self.store.snapshot.playing
            ):
                self.redraw(force=True)

    # -- keyboard --------------------------------------------------------------

    async def _input_loop(self) -> None:
        while self.phase is not Phase.TERMINATING:
            char = self.terminal.read_char()
            if char is None:
                # Sequence bytes arrive together; a gap means a lone ESC
                if self._decoder.pending:
                    self._decoder.reset()
                await asyncio.sleep(self.input_delay)
                continue
            command = self._decoder.feed(char)
            if command is not None:
                await self.handle_command(command)

    async def _read_key(self) -> str:
        """Wait for the next character while a modal screen is up."""
        while self.phase is not Phase.TERMINATING:
            char = self.terminal.read_char()
            if char is not None:
                return char
            await asyncio.sleep(self.input_delay)
        return ""

    async def handle_command(self, command: Command) -> None:
        """Run one command. Speaker errors end up on the status line."""
        if command is Command.QUIT:
            self.stop()
            return

        self._handling = True
        try:
            if command in VOLUME_DELTAS:
                await self._adjust_volume(VOLUME_DELTAS[command])
            else:
                await self._handlers[command]()
                if command in (Command.NEXT, Command.PREVIOUS):
                    self.redraw(force=True)
        except KefError as e:
            self.show_error(f"{_ERROR_PREFIXES.get(command, 'Command failed')}: {e}")
        finally:
            self._handling = False

    async def _adjust_volume(self, delta: int) -> None:
        current = self.store.snapshot.volume
        volume = max(MIN_VOLUME, min(MAX_VOLUME, current + delta))
        await self.client.set_volume(volume)
        self.store.apply(UpdateEvent(volume=volume))
        self.redraw()

    async def _toggle_mute(self) -> None:
        muted = self.store.snapshot.muted
        if muted:
            await self.client.unmute()
        else:
            await self.client.mute()
        self.store.apply(UpdateEvent(muted=not muted))
        self.redraw()

    async def _play_pause(self) -> None:
        playing = self.store.snapshot.playing
        await self.client.toggle_play_pause()
        playback = PlaybackState.PAUSED if playing else PlaybackState.PLAYING
        self.store.apply(UpdateEvent(playback=playback))
        self.redraw()

    async def _power_toggle(self) -> None:
        status = await self.client.get_status()
        if status is PowerStatus.POWER_ON:
            await self.client.shutdown()
            logger.info("Speaker %s put into standby", self.client.host)
            self.stop()
            return
        await self.client.power_on()
        self.store.apply(UpdateEvent(power=PowerStatus.POWER_ON))
        self.redraw()

    async def _refresh(self) -> None:
        await self.store.refresh(self.client)
        await self.store.refresh_progress(self.client)
        self.store.count_update()
        self.redraw(force=True)

    async def _help(self) -> None:
        self.phase = Phase.HELP
        self.terminal.draw(render_help(self.style))
        await self._read_key()
        self._leave_modal()

    async def _source_menu(self) -> None:
        self.phase = Phase.SOURCE_MENU
        self.terminal.draw(render_source_menu(self.store.snapshot.source, self.style))
        try:
            while self.phase is Phase.SOURCE_MENU:
                char = await self._read_key()
                if char == ESC or not char:
                    return
                # Raw reads deliver single bytes; only ASCII digits select
                if char.isascii() and char.isdigit() and 1 <= int(char) <= len(SOURCES):
                    source = SOURCES[int(char) - 1]
                    await self.client.set_source(source)
                    self.store.apply(UpdateEvent(source=source, power=PowerStatus.POWER_ON))
                    return
        finally:
            self._leave_modal()

    def _leave_modal(self) -> None:
        if self.phase in MODAL_PHASES:
            self.phase = Phase.RUNNING
        self.redraw(force=True)
