"""Main entry point for the kefir command line."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from kefir import __version__
from kefir.api.client import DEFAULT_POLL_INTERVAL, KefClient
from kefir.api.protocol import KefError
from kefir.core.config import ConfigError, ConfigManager, default_config_dir
from kefir.core.discovery import DEFAULT_DISCOVERY_TIMEOUT, SpeakerDiscovery
from kefir.core.session import InteractiveSession
from kefir.models.speaker import MAX_VOLUME, MIN_VOLUME, SOURCES, PowerStatus, Source
from kefir.ui.render import draw_box, format_table, progress_bar
from kefir.ui.style import AnsiColor, Style

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
INTERACTIVE_LOG_FILENAME = "kefir.log"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2

CLI_BAR_WIDTH = 40

SOURCE_EMOJI: dict[Source, str] = {
    Source.WIFI: "📶",
    Source.BLUETOOTH: "🔷",
    Source.TV: "📺",
    Source.OPTIC: "💿",
    Source.COAXIAL: "🔌",
    Source.ANALOG: "🎚️",
    Source.USB: "🔌",
}


class UsageError(Exception):
    """The command line names something that does not exist."""


@dataclass
class CliContext:
    """Shared state of one command invocation."""

    config: ConfigManager
    style: Style


Handler = Callable[[argparse.Namespace, CliContext], Awaitable[None]]


# -- helpers -------------------------------------------------------------------


def resolve_speaker(config: ConfigManager, speaker: str | None) -> tuple[str, str]:
    """Turn a SPEAKER argument into ``(host, display name)``.

    A saved profile name wins; anything else is taken as a host. Without an
    argument the default speaker is used.

    Raises:
        UsageError: If no speaker is given and none is the default.
    """
    if speaker:
        profile = config.get_speaker_by_name(speaker)
        if profile is not None:
            return profile.host, profile.name
        return speaker, speaker

    default = config.get_default_speaker()
    if default is not None:
        return default.host, default.name
    raise UsageError(
        "No speaker specified and no default configured. "
        "Use 'kefir speaker add' to configure a speaker."
    )


def volume_level(value: str) -> int:
    """argparse type for a 0-100 volume level."""
    try:
        level = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid volume level: '{value}'") from None
    if not MIN_VOLUME <= level <= MAX_VOLUME:
        raise argparse.ArgumentTypeError("Volume must be between 0 and 100")
    return level


def source_name(value: str) -> Source:
    """argparse type for a source name."""
    try:
        return Source.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def print_lines(lines: Sequence[str]) -> None:
    """Print rendered lines."""
    for line in lines:
        print(line)


def _label(style: Style, text: str) -> str:
    return style.bold(f"{text}:")


def _unavailable(style: Style) -> str:
    return style.dim("(unavailable)")


async def _add_tested_speaker(
    ctx: CliContext, name: str, host: str, set_default: bool
) -> None:
    """Check that ``host`` answers, then save it as a profile."""
    style = ctx.style
    print(f"Testing connection to {host}...")
    async with KefClient(host) as speaker:
        try:
            await speaker.get_status()
        except KefError:
            print(style.error("Failed to connect"))
            raise
    print(style.success("Connection successful!"))
    ctx.config.add_speaker(name, host, set_default=set_default)


# -- speaker management ----------------------------------------------------------


async def cmd_speaker_add(args: argparse.Namespace, ctx: CliContext) -> None:
    """Add a speaker profile after testing the connection."""
    await _add_tested_speaker(ctx, args.name, args.host, args.set_default)
    print(ctx.style.success(f"Added speaker '{args.name}' at {args.host}"))
    if args.set_default:
        print(ctx.style.info("Set as default speaker"))


async def cmd_speaker_list(args: argparse.Namespace, ctx: CliContext) -> None:  # noqa: ARG001
    """List saved speaker profiles."""
    style = ctx.style
    speakers = ctx.config.get_speakers()
    if not speakers:
        print(style.warning("No speakers configured"))
        print(style.dim("Use 'kefir speaker add <name> <host>' to add a speaker"))
        return

    print(style.bold("Configured Speakers:"))
    print()
    rows = [
        [
            p.name,
            p.host,
            "✓" if p.is_default else "",
            datetime.fromtimestamp(p.last_seen).strftime("%Y-%m-%d %H:%M"),
        ]
        for p in speakers
    ]
    print_lines(format_table(["Name", "Host", "Default", "Last Seen"], rows, style))


async def cmd_speaker_remove(args: argparse.Namespace, ctx: CliContext) -> None:
    """Remove a speaker profile by name."""
    profile = ctx.config.get_speaker_by_name(args.name)
    if profile is None:
        raise UsageError(f"Speaker '{args.name}' not found")
    ctx.config.remove_speaker(profile.id)
    print(ctx.style.success(f"Removed speaker '{profile.name}'"))


async def cmd_speaker_set_default(args: argparse.Namespace, ctx: CliContext) -> None:
    """Make a saved speaker the default."""
    profile = ctx.config.get_speaker_by_name(args.name)
    if profile is None:
        raise UsageError(f"Speaker '{args.name}' not found")
    ctx.config.set_default_speaker(profile.id)
    print(ctx.style.success(f"Set '{profile.name}' as default speaker"))


async def cmd_speaker_discover(args: argparse.Namespace, ctx: CliContext) -> None:
    """Browse the local network for KEF speakers."""
    style = ctx.style
    print(f"Searching for KEF speakers ({args.timeout:g}s)...")
    found = await asyncio.to_thread(SpeakerDiscovery.discover_all, args.timeout)
    if not found:
        print(style.warning("No KEF speakers found"))
        return

    rows = [[s.display_name, s.host, s.model] for s in found]
    print_lines(format_table(["Name", "Host", "Model"], rows, style))

    if args.add:
        for speaker in found:
            set_default = ctx.config.get_default_speaker() is None
            ctx.config.add_speaker(speaker.display_name, speaker.host, set_default=set_default)
            print(style.success(f"Added speaker '{speaker.display_name}' at {speaker.host}"))


# -- direct control ----------------------------------------------------------------


async def cmd_power(args: argparse.Namespace, ctx: CliContext) -> None:
    """Turn a speaker on or put it into standby."""
    host, name = resolve_speaker(ctx.config, args.speaker)
    async with KefClient(host) as speaker:
        if args.action == "on":
            print(f"Turning on {name}...")
            await speaker.power_on()
            print(ctx.style.success("Speaker powered on"))
        else:
            print(f"Turning off {name}...")
            await speaker.shutdown()
            print(ctx.style.success("Speaker powered off"))


async def cmd_volume_set(args: argparse.Namespace, ctx: CliContext) -> None:
    """Set the volume level."""
    host, _ = resolve_speaker(ctx.config, args.speaker)
    async with KefClient(host) as speaker:
        await speaker.set_volume(args.level)
    print(ctx.style.success(f"Volume set to {args.level}"))
    print(progress_bar(args.level, MAX_VOLUME, CLI_BAR_WIDTH, style=ctx.style))


async def cmd_volume_get(args: argparse.Namespace, ctx: CliContext) -> None:
    """Print the volume level."""
    host, _ = resolve_speaker(ctx.config, args.speaker)
    async with KefClient(host) as speaker:
        volume = await speaker.get_volume()
    print(f"Current volume: {volume}")
    print(progress_bar(volume, MAX_VOLUME, CLI_BAR_WIDTH, style=ctx.style))


async def cmd_volume_mute(args: argparse.Namespace, ctx: CliContext) -> None:
    """Mute or unmute the speaker."""
    host, _ = resolve_speaker(ctx.config, args.speaker)
    style = ctx.style
    async with KefClient(host) as speaker:
        if args.action == "mute":
            await speaker.mute()
            print(style.success(f"Speaker muted{style.emoji(' 🔇')}"))
        else:
            await speaker.unmute()
            print(style.success(f"Speaker unmuted{style.emoji(' 🔊')}"))


async def cmd_source_set(args: argparse.Namespace, ctx: CliContext) -> None:
    """Switch the input source."""
    host, _ = resolve_speaker(ctx.config, args.speaker)
    source: Source = args.source
    async with KefClient(host) as speaker:
        await speaker.set_source(source)
    emoji = ctx.style.emoji(f" {SOURCE_EMOJI[source]}")
    print(ctx.style.success(f"Source set to {source.value}{emoji}"))


async def cmd_source_get(args: argparse.Namespace, ctx: CliContext) -> None:
    """Print the input source."""
    host, _ = resolve_speaker(ctx.config, args.speaker)
    async with KefClient(host) as speaker:
        source = await speaker.get_source()
    print(f"Current source: {ctx.style.color(source.value, AnsiColor.BLUE)}")


async def cmd_source_list(args: argparse.Namespace, ctx: CliContext) -> None:  # noqa: ARG001
    """List the input sources."""
    style = ctx.style
    print(style.bold("Available sources:"))
    for source in SOURCES:
        print(f"  {style.emoji(SOURCE_EMOJI[source] + ' ')}{source.value}")


async def cmd_play(args: argparse.Namespace, ctx: CliContext) -> None:
    """Control playback of the streaming player."""
    host, _ = resolve_speaker(ctx.config, args.speaker)
    style = ctx.style
    async with KefClient(host) as speaker:
        if args.action == "pause":
            await speaker.toggle_play_pause()
            print(style.success(f"Play/pause toggled{style.emoji(' ⏯️')}"))
        elif args.action == "next":
            await speaker.next_track()
            print(style.success(f"Skipped to next track{style.emoji(' ⏭️')}"))
        elif args.action == "previous":
            await speaker.previous_track()
            print(style.success(f"Went to previous track{style.emoji(' ⏮️')}"))
        else:
            await _print_track(speaker, style)


async def _print_track(speaker: KefClient, style: Style) -> None:
    if not await speaker.is_playing():
        print(style.info("Nothing is currently playing"))
        return

    track = await speaker.get_song_information()
    content = []
    if track.title:
        content.append(f"{_label(style, 'Title')} {track.title}")
    if track.artist:
        content.append(f"{_label(style, 'Artist')} {track.artist}")
    if track.album:
        content.append(f"{_label(style, 'Album')} {track.album}")
    if not content:
        content.append(style.dim("No track information available"))
    print_lines(draw_box(f"{style.emoji('🎵 ')}Now Playing", content, style=style))


# -- info --------------------------------------------------------------------------


async def cmd_info(args: argparse.Namespace, ctx: CliContext) -> None:
    """Print device information; unavailable fields are marked, not fatal."""
    host, name = resolve_speaker(ctx.config, args.speaker)
    style = ctx.style
    content = [f"{_label(style, 'Profile')} {name}", f"{_label(style, 'IP Address')} {host}"]

    async with KefClient(host) as speaker:
        try:
            content.append(f"{_label(style, 'Device Name')} {await speaker.get_speaker_name()}")
        except KefError as e:
            logger.debug("Device name unavailable: %s", e)
            content.append(f"{_label(style, 'Device Name')} {_unavailable(style)}")

        try:
            content.append(f"{_label(style, 'MAC Address')} {await speaker.get_mac_address()}")
        except KefError as e:
            logger.debug("MAC address unavailable: %s", e)
            content.append(f"{_label(style, 'MAC Address')} {_unavailable(style)}")

        try:
            firmware = await speaker.get_firmware_version()
            content.append(f"{_label(style, 'Model')} {firmware.model}")
            content.append(f"{_label(style, 'Firmware')} {firmware.version}")
        except KefError as e:
            logger.debug("Firmware unavailable: %s", e)
            content.append(f"{_label(style, 'Model/Firmware')} {_unavailable(style)}")

    print_lines(draw_box("Speaker Information", content, style=style))


async def cmd_status(args: argparse.Namespace, ctx: CliContext) -> None:
    """Print power, source, volume and playback in one box."""
    host, name = resolve_speaker(ctx.config, args.speaker)
    style = ctx.style
    content = [f"{_label(style, 'Speaker')} {name}"]

    async with KefClient(host) as speaker:
        try:
            status = await speaker.get_status()
            on = status is PowerStatus.POWER_ON
            power = style.color("ON", AnsiColor.GREEN) if on else style.color("OFF", AnsiColor.RED)
            content.append(f"{_label(style, 'Power')} {power}")
        except KefError:
            content.append(f"{_label(style, 'Power')} {_unavailable(style)}")

        try:
            source = await speaker.get_source()
            content.append(f"{_label(style, 'Source')} {style.color(source.value, AnsiColor.BLUE)}")
        except KefError:
            content.append(f"{_label(style, 'Source')} {_unavailable(style)}")

        try:
            volume = await speaker.get_volume()
            content.append(f"{_label(style, 'Volume')} {volume}%")
            content.append(progress_bar(volume, MAX_VOLUME, CLI_BAR_WIDTH, style=style))
        except KefError:
            content.append(f"{_label(style, 'Volume')} {_unavailable(style)}")

        content.append("")
        try:
            playing = await speaker.is_playing()
        except KefError:
            content.append(f"{_label(style, 'Playing')} {_unavailable(style)}")
        else:
            if playing:
                content.append(f"{_label(style, 'Playing')} {style.color('Yes', AnsiColor.GREEN)}")
                try:
                    track = await speaker.get_song_information()
                except KefError as e:
                    logger.debug("Track information unavailable: %s", e)
                else:
                    if track.title:
                        content.append(f"  {style.dim('Title:')} {track.title}")
                    if track.artist:
                        content.append(f"  {style.dim('Artist:')} {track.artist}")
            else:
                content.append(f"{_label(style, 'Playing')} No")

    print_lines(draw_box("Speaker Status", content, style=style))


# -- interactive -------------------------------------------------------------------


async def cmd_interactive(args: argparse.Namespace, ctx: CliContext) -> None:
    """Run the live dashboard."""
    host, name = resolve_speaker(ctx.config, args.speaker)
    profile = ctx.config.get_speaker_by_name(name)
    if profile is not None:
        ctx.config.update_last_used(profile.id)

    style = ctx.style
    print(style.info(f"Entering interactive mode for {name}..."))
    print(style.dim("Press 'h' for help, 'q' to quit"))
    print()

    async with KefClient(host) as speaker:
        session = InteractiveSession(speaker, name, style=style, poll_interval=args.poll_interval)
        await session.run()

    print()
    print(style.info("Exited interactive mode"))


# -- config ------------------------------------------------------------------------


async def cmd_config_theme(args: argparse.Namespace, ctx: CliContext) -> None:
    """Show or change the theme."""
    if args.use_colors is None and args.use_emojis is None:
        theme = ctx.config.get_theme()
        print("Current theme settings:")
        print(f"  Colors: {'enabled' if theme.use_colors else 'disabled'}")
        print(f"  Emojis: {'enabled' if theme.use_emojis else 'disabled'}")
        return

    theme = ctx.config.update_theme(use_colors=args.use_colors, use_emojis=args.use_emojis)
    print(Style(theme).success("Theme updated"))


async def cmd_config_show(args: argparse.Namespace, ctx: CliContext) -> None:  # noqa: ARG001
    """Print where the configuration file lives."""
    print(f"Configuration file: {ctx.config.config_path}")
    if ctx.config.exists:
        print(ctx.style.success("File exists"))
    else:
        print(ctx.style.warning("File does not exist yet"))


# -- first run ---------------------------------------------------------------------


def run_first_time_setup(ctx: CliContext) -> int:
    """Ask for the first speaker and save it as the default.

    Returns:
        Exit code.
    """
    style = ctx.style
    print(style.bold(f"Welcome to KefirCLI!{style.emoji(' 🎵')}"))
    print()
    print("It looks like this is your first time using KefirCLI.")
    print("Let's set up your first KEF speaker.")
    print()

    print('What would you like to name this speaker? (e.g., "Living Room", "Office")')
    name = input(style.dim("Speaker name: ")).strip()
    if not name:
        print(style.error("Speaker name cannot be empty"))
        return EXIT_USAGE

    print()
    print("What is the IP address or hostname of your KEF speaker?")
    host = input(style.dim("IP address: ")).strip()
    if not host:
        print(style.error("IP address cannot be empty"))
        return EXIT_USAGE
    print()

    try:
        asyncio.run(_add_tested_speaker(ctx, name, host, set_default=True))
    except KefError as e:
        logger.debug("First-time setup connection failed: %s", e)
        print()
        print(style.error(f"Could not connect to speaker at {host}"))
        print(style.dim("Please check the IP address and ensure the speaker is powered on."))
        print()
        print("You can manually add a speaker later with:")
        print(style.dim('  kefir speaker add "<name>" <ip-address>'))
        return EXIT_ERROR

    print()
    print(style.success(f"Successfully added '{name}' as your default speaker!"))
    print()
    print("You can now use commands like:")
    print(style.dim("  kefir status              # Check speaker status"))
    print(style.dim("  kefir volume set 50       # Set volume to 50%"))
    print(style.dim("  kefir interactive         # Enter interactive mode"))
    print()
    print(f"To see all available commands, run: {style.bold('kefir --help')}")
    return EXIT_OK


# -- parser ------------------------------------------------------------------------


def _add_speaker_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "speaker", nargs="?", default=None, help="speaker profile name or IP address",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every subcommand."""
    parser = argparse.ArgumentParser(
        prog="kefir",
        description="A rich CLI for controlling KEF wireless speakers",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--log-file", type=Path, default=None, help="write logs to this file")
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    # speaker
    speaker = commands.add_parser("speaker", help="manage speaker profiles")
    speaker_commands = speaker.add_subparsers(dest="speaker_command", metavar="ACTION", required=True)

    add = speaker_commands.add_parser("add", help="add a new speaker profile")
    add.add_argument("name", help="name for the speaker profile")
    add.add_argument("host", help="IP address or hostname of the speaker")
    add.add_argument("-d", "--set-default", action="store_true", help="set as default speaker")
    add.set_defaults(handler=cmd_speaker_add)

    speaker_commands.add_parser("list", help="list all configured speakers").set_defaults(
        handler=cmd_speaker_list
    )

    remove = speaker_commands.add_parser("remove", help="remove a speaker profile")
    remove.add_argument("name", help="name of the speaker to remove")
    remove.set_defaults(handler=cmd_speaker_remove)

    set_default = speaker_commands.add_parser("set-default", help="set the default speaker")
    set_default.add_argument("name", help="name of the speaker to set as default")
    set_default.set_defaults(handler=cmd_speaker_set_default)

    discover = speaker_commands.add_parser("discover", help="find KEF speakers on the network")
    discover.add_argument(
        "--timeout", type=float, default=DEFAULT_DISCOVERY_TIMEOUT, help="seconds to search",
    )
    discover.add_argument("--add", action="store_true", help="save every speaker found")
    discover.set_defaults(handler=cmd_speaker_discover)

    # power
    power = commands.add_parser("power", help="control speaker power")
    power.add_argument("action", choices=["on", "off"])
    _add_speaker_argument(power)
    power.set_defaults(handler=cmd_power)

    # volume
    volume = commands.add_parser("volume", help="control speaker volume")
    volume_commands = volume.add_subparsers(dest="volume_command", metavar="ACTION", required=True)
    volume_set = volume_commands.add_parser("set", help="set speaker volume (0-100)")
    volume_set.add_argument("level", type=volume_level, help="volume level (0-100)")
    _add_speaker_argument(volume_set)
    volume_set.set_defaults(handler=cmd_volume_set)
    volume_get = volume_commands.add_parser("get", help="get current volume level")
    _add_speaker_argument(volume_get)
    volume_get.set_defaults(handler=cmd_volume_get)
    for action, text in (("mute", "mute the speaker"), ("unmute", "unmute the speaker")):
        mute = volume_commands.add_parser(action, help=text)
        _add_speaker_argument(mute)
        mute.set_defaults(handler=cmd_volume_mute, action=action)

    # source
    source = commands.add_parser("source", help="control input source")
    source_commands = source.add_subparsers(dest="source_command", metavar="ACTION", required=True)
    source_set = source_commands.add_parser("set", help="set input source")
    source_set.add_argument(
        "source", type=source_name, help=f"source name ({', '.join(s.value for s in SOURCES)})",
    )
    _add_speaker_argument(source_set)
    source_set.set_defaults(handler=cmd_source_set)
    source_get = source_commands.add_parser("get", help="get current input source")
    _add_speaker_argument(source_get)
    source_get.set_defaults(handler=cmd_source_get)
    source_commands.add_parser("list", help="list available input sources").set_defaults(
        handler=cmd_source_list
    )

    # play
    play = commands.add_parser("play", help="control playback")
    play.add_argument("action", choices=["pause", "next", "previous", "info"])
    _add_speaker_argument(play)
    play.set_defaults(handler=cmd_play)

    # info / status / interactive
    info = commands.add_parser("info", help="get speaker information")
    _add_speaker_argument(info)
    info.set_defaults(handler=cmd_info)

    status = commands.add_parser("status", help="get speaker status")
    _add_speaker_argument(status)
    status.set_defaults(handler=cmd_status)

    interactive = commands.add_parser("interactive", help="enter interactive control mode")
    _add_speaker_argument(interactive)
    interactive.add_argument(
        "--poll-interval",
        type=int,
        default=DEFAULT_POLL_INTERVAL,
        help=f"event long-poll timeout in seconds (default: {DEFAULT_POLL_INTERVAL})",
    )
    interactive.set_defaults(handler=cmd_interactive)

    # config
    config = commands.add_parser("config", help="configure KefirCLI settings")
    config_commands = config.add_subparsers(dest="config_command", metavar="ACTION", required=True)
    theme = config_commands.add_parser("theme", help="configure theme settings")
    colors = theme.add_mutually_exclusive_group()
    colors.add_argument("--enable-colors", dest="use_colors", action="store_true", default=None)
    colors.add_argument("--disable-colors", dest="use_colors", action="store_false")
    emojis = theme.add_mutually_exclusive_group()
    emojis.add_argument("--enable-emojis", dest="use_emojis", action="store_true", default=None)
    emojis.add_argument("--disable-emojis", dest="use_emojis", action="store_false")
    theme.set_defaults(handler=cmd_config_theme)
    config_commands.add_parser("show", help="show configuration file location").set_defaults(
        handler=cmd_config_show
    )

    return parser


def setup_logging(debug: bool, log_file: Path | None) -> None:
    """Configure the root logger for one invocation."""
    level = logging.DEBUG if debug else logging.WARNING
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=str(log_file))
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    # Request-level logs are too chatty even in debug mode
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the kefir command line.

    Returns:
        Exit code (0 success, 1 speaker or config error, 2 usage error).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    log_file: Path | None = args.log_file
    if log_file is None and args.command == "interactive":
        # Log lines would tear the dashboard
        log_file = default_config_dir() / INTERACTIVE_LOG_FILENAME
    setup_logging(args.debug, log_file)

    try:
        config = ConfigManager()
    except ConfigError as e:
        print(Style().error(str(e)), file=sys.stderr)
        return EXIT_ERROR
    ctx = CliContext(config=config, style=Style(config.get_theme()))

    handler: Handler | None = getattr(args, "handler", None)
    if handler is None:
        if not config.get_speakers():
            return run_first_time_setup(ctx)
        parser.print_help()
        return EXIT_OK

    try:
        asyncio.run(handler(args, ctx))
    except UsageError as e:
        print(ctx.style.error(str(e)), file=sys.stderr)
        return EXIT_USAGE
    except KefError as e:
        logger.debug("Command failed", exc_info=True)
        print(ctx.style.error(str(e)), file=sys.stderr)
        return EXIT_ERROR
    except ConfigError as e:
        print(ctx.style.error(str(e)), file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
