"""Render engine: pure functions turning speaker state into lines of text.

Nothing here writes to the terminal. Every width computation uses the
*visible* width of a string, i.e. after stripping SGR escape sequences and
counting wide glyphs (emoji, CJK) as two cells.
"""

import re

from wcwidth import wcswidth, wcwidth

from kefir.models.speaker import SOURCES, Source, SpeakerSnapshot, TrackInfo
from kefir.ui.style import AnsiColor, Style

ANSI_PATTERN = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

BAR_FILLED = "█"
BAR_EMPTY = "░"
ELLIPSIS = "…"

DASHBOARD_WIDTH = 80
# Left column of the status box; the logo takes the rest
STATUS_COLUMN_WIDTH = 62
TRACK_WRAP_WIDTH = 50
SONG_BAR_WIDTH = 30

KEFIR_LOGO: tuple[str, ...] = (
    "   ╭─╮   ",
    "  ╱   ╲  ",
    " │ ≈≈≈ │ ",
    " │     │ ",
    " │     │ ",
    " │KEFIR│ ",
    " ╰─────╯ ",
)

CONTROLS_TIP = "↑/↓ volume • space play/pause • →/← tracks • h help"


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences from ``text``."""
    return ANSI_PATTERN.sub("", text)


def visible_length(text: str) -> int:
    """Return the number of terminal cells ``text`` occupies."""
    plain = strip_ansi(text)
    width = wcswidth(plain)
    return width if width >= 0 else len(plain)


def pad_visible(text: str, width: int) -> str:
    """Right-pad ``text`` with spaces to ``width`` visible cells."""
    return text + " " * max(0, width - visible_length(text))


def center_visible(text: str, width: int) -> str:
    """Center ``text`` within ``width`` visible cells (left-biased)."""
    padding = max(0, (width - visible_length(text)) // 2)
    return " " * padding + text


def clip_visible(text: str, width: int) -> str:
    """Cut ``text`` to at most ``width`` visible cells, ending with an ellipsis.

    Text that fits is returned unchanged. Clipped text loses its escape
    sequences.
    """
    if visible_length(text) <= width:
        return text
    result = ""
    used = 0
    for char in strip_ansi(text):
        cells = max(0, wcwidth(char))
        if used + cells > width - 1:
            break
        result += char
        used += cells
    return result + ELLIPSIS


def progress_bar(
    value: int,
    maximum: int = 100,
    width: int = 30,
    label: str = "",
    style: Style | None = None,
    color: AnsiColor = AnsiColor.CYAN,
) -> str:
    """Render a horizontal bar with a percentage, e.g. ``[████░░]  65%``.

    The filled cell count is ``floor(width * value / maximum)``; value is
    clamped to ``[0, maximum]``.
    """
    style = style or Style()
    if maximum <= 0:
        value, maximum = 0, 1
    value = max(0, min(maximum, value))
    filled = width * value // maximum
    bar = BAR_FILLED * filled + BAR_EMPTY * (width - filled)
    percent = f"{value * 100 // maximum:3d}%"
    rendered = f"[{style.color(bar, color)}] {percent}"
    return f"{label}: {rendered}" if label else rendered


def draw_box(
    title: str,
    lines: list[str],
    width: int = 60,
    style: Style | None = None,
) -> list[str]:
    """Render ``lines`` inside a fixed-width bordered box.

    Content is padded on visible width so styled text lines up with plain text.
    """
    style = style or Style()
    horizontal = "─" * (width - 2)
    result = [f"┌{horizontal}┐"]

    if title:
        padded_title = f" {title} "
        title_length = visible_length(padded_title)
        left = (width - title_length) // 2
        right = width - title_length - left
        result.append(
            f"│{' ' * max(0, left - 1)}{style.bold(padded_title)}{' ' * max(0, right - 1)}│"
        )
        result.append(f"├{horizontal}┤")

    for line in lines:
        result.append(f"│ {pad_visible(line, width - 4)} │")

    result.append(f"└{horizontal}┘")
    return result


def wrap_text(text: str, width: int, indent: int = 0) -> list[str]:
    """Greedy word wrap that never splits a word.

    Continuation lines start with ``indent`` spaces. Text that already fits
    is returned unchanged as a single line.
    """
    if len(text) <= width:
        return [text]

    lines: list[str] = []
    current = ""
    prefix = " " * indent
    for word in text.split():
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current += " " + word
        else:
            lines.append(current)
            current = prefix + word
    if current:
        lines.append(current)
    return lines or [""]


def format_table(
    headers: list[str],
    rows: list[list[str]],
    style: Style | None = None,
) -> list[str]:
    """Render a table with a bold header and a separator row."""
    if not headers:
        return []
    style = style or Style()

    widths = [visible_length(h) for h in headers]
    for row in rows:
        for index, cell in enumerate(row[: len(widths)]):
            widths[index] = max(widths[index], visible_length(cell))

    def format_row(cells: list[str]) -> str:
        return " │ ".join(
            pad_visible(cell, widths[index]) if index < len(widths) else cell
            for index, cell in enumerate(cells)
        )

    result = [style.bold(format_row(headers))]
    result.append("─┼─".join("─" * w for w in widths))
    result.extend(format_row(row) for row in rows)
    return result


def format_duration(milliseconds: int) -> str:
    """Format milliseconds as ``m:ss``."""
    seconds = max(0, milliseconds) // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


def _labelled(label: str, text: str | None, width: int) -> list[str]:
    """Render ``label value`` with continuation lines aligned under the value."""
    if not text:
        return []
    wrapped = wrap_text(text, width, indent=2)
    head = f"  {label} "
    lines = [head + wrapped[0]]
    lines.extend(" " * (len(head) - 2) + line for line in wrapped[1:])
    return lines


def _now_playing(snapshot: SpeakerSnapshot, track: TrackInfo, style: Style) -> list[str]:
    lines = ["", style.bold("Now Playing:")]
    lines += _labelled("Title:", track.title, TRACK_WRAP_WIDTH)
    lines += _labelled("Artist:", track.artist, TRACK_WRAP_WIDTH)
    lines += _labelled("Album:", track.album, TRACK_WRAP_WIDTH)

    progress = snapshot.progress
    if progress is not None and snapshot.position_ms is not None and snapshot.duration_ms:
        elapsed = format_duration(snapshot.position_ms)
        total = format_duration(snapshot.duration_ms)
        filled = int(SONG_BAR_WIDTH * progress)
        bar = BAR_FILLED * filled + BAR_EMPTY * (SONG_BAR_WIDTH - filled)
        lines += ["", f"  Progress: {elapsed} / {total}", "  " + style.color(bar, AnsiColor.CYAN)]
    return lines


def status_lines(snapshot: SpeakerSnapshot, style: Style) -> list[str]:
    """Return the left column of the status box."""
    power = style.color("ON", AnsiColor.GREEN) if snapshot.power_on else style.color("OFF", AnsiColor.RED)
    volume = f"Volume: {snapshot.volume}%"
    if snapshot.muted:
        volume += " " + style.color(f"{style.emoji('🔇 ')}MUTED", AnsiColor.RED)
    lines = [
        f"Power: {power}",
        f"Source: {style.color(snapshot.source.label, AnsiColor.BLUE)}",
        volume,
    ]
    if snapshot.playing and snapshot.track is not None:
        lines += _now_playing(snapshot, snapshot.track, style)
    else:
        lines += ["", style.dim("Not playing")]
    return lines


def render_dashboard(
    snapshot: SpeakerSnapshot,
    speaker_name: str,
    style: Style,
    width: int = DASHBOARD_WIDTH,
) -> list[str]:
    """Compose the full interactive screen for one snapshot.

    Regions, top to bottom: header, volume bar, status box with the logo in a
    right-hand column, controls tip.
    """
    header = style.bold(style.color(f"{style.emoji('🎵 ')}KefirCLI - {speaker_name}", AnsiColor.CYAN))
    lines = [header, style.dim("─" * width), ""]

    bar_color = AnsiColor.BRIGHT_BLACK if snapshot.muted else AnsiColor.CYAN
    # "[" + bar + "] " + "100%" fills the dashboard width
    lines.append(progress_bar(snapshot.volume, 100, width - 7, style=style, color=bar_color))

    inner = width - 4
    left = status_lines(snapshot, style)
    logo_width = max(len(row) for row in KEFIR_LOGO)
    horizontal = "─" * (width - 2)
    lines.append(f"┌{horizontal}┐")
    title = " Status "
    title_left = (width - len(title)) // 2
    title_right = width - len(title) - title_left
    lines.append(f"│{' ' * (title_left - 1)}{style.bold(title)}{' ' * (title_right - 1)}│")
    lines.append(f"├{horizontal}┤")
    for index in range(max(len(left), len(KEFIR_LOGO))):
        left_text = clip_visible(left[index], STATUS_COLUMN_WIDTH) if index < len(left) else ""
        left_cell = pad_visible(left_text, STATUS_COLUMN_WIDTH)
        if index < len(KEFIR_LOGO):
            right_cell = style.color(KEFIR_LOGO[index], AnsiColor.CYAN)
        else:
            right_cell = " " * logo_width
        gap = max(0, inner - visible_length(left_cell) - visible_length(right_cell))
        lines.append(f"│ {left_cell}{' ' * gap}{right_cell} │")
    lines.append(f"└{horizontal}┘")

    lines.append(center_visible(style.dim(CONTROLS_TIP), width))
    return lines


def render_help(style: Style) -> list[str]:
    """Return the help screen shown in the help modal."""
    return [
        style.bold("KefirCLI Interactive Mode Help"),
        "",
        style.underline("Volume Control:"),
        "  ↑/↓ or +/-  : Adjust volume (5% steps)",
        "  Shift+↑/↓   : Adjust volume (1% steps)",
        "  m           : Mute/Unmute",
        "",
        style.underline("Playback Control:"),
        "  SPACE       : Play/Pause",
        "  →/←         : Next/Previous track",
        "",
        style.underline("Other Controls:"),
        "  s           : Change input source",
        "  p           : Toggle power",
        "  r           : Force refresh display",
        "  h or ?      : Show this help",
        "  q or Ctrl+C : Quit interactive mode",
        "",
        style.dim("Press any key to return..."),
    ]


def render_source_menu(current: Source, style: Style) -> list[str]:
    """Return the numbered source selection screen."""
    lines = [style.bold("Select Input Source:"), ""]
    for number, source in enumerate(SOURCES, start=1):
        marker = "▶" if source is current else " "
        lines.append(f"{marker} {number}. {source.label}")
    lines += ["", style.dim("Press number to select, or ESC to cancel")]
    return lines
