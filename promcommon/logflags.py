"""Command-line flags for the log level and log format."""

from __future__ import annotations

import argparse

from .promlog import FORMAT_FLAG_OPTIONS, LEVEL_FLAG_OPTIONS, AllowedFormat, AllowedLevel, Config

LEVEL_FLAG_NAME = "log.level"
LEVEL_FLAG_HELP = (
    "Only log messages with the given severity or above. One of: ["
    + ", ".join(LEVEL_FLAG_OPTIONS)
    + "]"
)
FORMAT_FLAG_NAME = "log.format"
FORMAT_FLAG_HELP = (
    "Output format of log messages. One of: [" + ", ".join(FORMAT_FLAG_OPTIONS) + "]"
)


def _checked(setter):
    def convert(value: str) -> str:
        try:
            setter(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from None
        return value

    return convert


def add_flags(parser: argparse.ArgumentParser, config: Config) -> None:
    """Add ``--log.level`` and ``--log.format`` to ``parser``."""
    config.level = AllowedLevel()
    config.format = AllowedFormat()
    parser.add_argument(
        f"--{LEVEL_FLAG_NAME}",
        dest="log_level",
        default="info",
        metavar="|".join(LEVEL_FLAG_OPTIONS),
        type=_checked(lambda s: AllowedLevel().set(s)),
        help=LEVEL_FLAG_HELP,
    )
    parser.add_argument(
        f"--{FORMAT_FLAG_NAME}",
        dest="log_format",
        default="logfmt",
        metavar="|".join(FORMAT_FLAG_OPTIONS),
        type=_checked(lambda s: AllowedFormat().set(s)),
        help=FORMAT_FLAG_HELP,
    )


def apply_args(args: argparse.Namespace, config: Config) -> None:
    """Store the parsed level and format in ``config``."""
    if config.level is None:
        config.level = AllowedLevel()
    if config.format is None:
        config.format = AllowedFormat()
    config.level.set(args.log_level)
    config.format.set(args.log_format)