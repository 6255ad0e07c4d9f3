"""Command line handling for ftptop."""

import argparse
import sys
from typing import NoReturn

from ftptop.models import DisplayFilter, RunConfig

PROGRAM = "ftptop"
VERSION = "ftptop/0.8.2"

USAGE = """usage: ftptop [options]
\t-D      \t\tshow only downloading sessions
\t-d <num>\t\trefresh delay in whole seconds (0 or more)
\t-f      \t\tconfigures the ScoreboardFile to use
\t-h      \t\tdisplays this message
\t-I      \t\tshow only idle sessions
\t-i      \t\tignores idle connections when listing
\t-U      \t\tshow only uploading sessions
\t-V      \t\tshows version
"""

SHORT_FLAGS = "DhIiUV"
SHORT_VALUE_OPTIONS = "df"
LONG_VALUE_OPTIONS = ("--refresh-delay", "--scoreboard-path", "--log-file")


class ConfigurationError(ValueError):
    """Raised when a command line option carries a bad value."""


class OptionParser(argparse.ArgumentParser):
    """ArgumentParser that reports problems as ConfigurationError."""

    def error(self, message: str) -> NoReturn:
        raise ConfigurationError(message)

    def format_help(self) -> str:
        return USAGE


class ShowOnly(argparse.Action):
    """Replace the display filter with a single category."""

    def __init__(self, option_strings, dest, show: DisplayFilter, **kwargs) -> None:
        super().__init__(option_strings, dest, nargs=0, **kwargs)
        self.show = show

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        setattr(namespace, self.dest, self.show)


class ExcludeIdle(argparse.Action):
    """Clear the idle bit, leaving the rest of the filter alone."""

    def __init__(self, option_strings, dest, **kwargs) -> None:
        super().__init__(option_strings, dest, nargs=0, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        setattr(namespace, self.dest, getattr(namespace, self.dest) & ~DisplayFilter.IDLE)


def refresh_delay(value: str) -> int:
    """Parse a refresh delay, rejecting negative values."""
    try:
        delay = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid delay: {value!r}") from None
    if delay < 0:
        raise argparse.ArgumentTypeError(f"negative delay illegal: {delay}")
    return delay


def build_parser() -> OptionParser:
    """Build the ftptop argument parser."""
    parser = OptionParser(prog=PROGRAM, add_help=False, allow_abbrev=False)
    parser.add_argument("-h", "--help", action="help")
    parser.add_argument("-V", "--version", action="version", version=VERSION)
    parser.add_argument(
        "-D",
        "--show-only-downloading",
        dest="display_filter",
        action=ShowOnly,
        show=DisplayFilter.DOWNLOAD,
    )
    parser.add_argument(
        "-U",
        "--show-only-uploading",
        dest="display_filter",
        action=ShowOnly,
        show=DisplayFilter.UPLOAD,
    )
    parser.add_argument(
        "-I",
        "--show-only-idle",
        dest="display_filter",
        action=ShowOnly,
        show=DisplayFilter.IDLE,
    )
    parser.add_argument("-i", "--exclude-idle", dest="display_filter", action=ExcludeIdle)
    parser.add_argument("-d", "--refresh-delay", type=refresh_delay, default=2)
    parser.add_argument("-f", "--scoreboard-path", default=None)
    parser.add_argument("--log-file", default=None)
    # Applied to every filter action added above.
    parser.set_defaults(display_filter=DisplayFilter.ALL)
    return parser


def split_short_options(argv: list[str]) -> list[str]:
    """
    Rewrite the command line the way getopt reads it.

    Bundles are split into single flags and unknown letters are dropped, so
    ``-Dix`` becomes ``-D -i``. An option taking a value consumes the rest of
    its bundle, or else the next word, even when that word starts with '-'.
    """
    expanded: list[str] = []
    words = iter(argv)
    for word in words:
        if word == "--":
            expanded.append(word)
            expanded.extend(words)
            break

        if word in LONG_VALUE_OPTIONS:
            value = next(words, None)
            expanded.append(word if value is None else f"{word}={value}")
            continue

        if word == "-" or not word.startswith("-") or word.startswith("--"):
            expanded.append(word)
            continue

        for i, letter in enumerate(word[1:], start=1):
            if letter in SHORT_FLAGS:
                expanded.append(f"-{letter}")
            elif letter in SHORT_VALUE_OPTIONS:
                value = word[i + 1 :] or next(words, None)
                expanded.append(f"-{letter}" if value is None else f"-{letter}{value}")
                break
    return expanded


def parse_options(argv: list[str] | None = None) -> RunConfig:
    """
    Parse the command line into a RunConfig.

    Options are applied in order, so a later show-only flag replaces an
    earlier one while --exclude-idle composes with whatever came before.
    Unrecognized options are ignored.

    Raises:
        ConfigurationError: If an option value is invalid.
        SystemExit: With code 0, for --help and --version.
    """
    words = split_short_options(sys.argv[1:] if argv is None else argv)
    args, _unknown = build_parser().parse_known_args(words)
    return RunConfig(
        refresh_delay=args.refresh_delay,
        display_filter=args.display_filter,
        scoreboard_path=args.scoreboard_path,
        log_file=args.log_file,
    )
