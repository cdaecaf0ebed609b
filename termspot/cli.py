"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from importlib import metadata
from pathlib import Path

import platformdirs

from termspot.config import (
    APP_NAME,
    CONFIGURATION_FILE_NAME,
    Config,
    ConfigError,
    set_configuration_base_path,
    user_cache_directory,
    user_configuration_directory,
)

log = logging.getLogger(__name__)

BIN_NAME = APP_NAME

try:
    VERSION = metadata.version(APP_NAME)
except metadata.PackageNotFoundError:
    VERSION = "0.0.0"


def _describe(path: Path | None) -> str:
    return "not found" if path is None else str(path)


def _runtime_directory() -> Path | None:
    try:
        return platformdirs.user_runtime_path(APP_NAME)
    except (RuntimeError, KeyError, OSError):
        return None


def info() -> None:
    """Print the platform directories that are used."""
    print(f"USER_CONFIGURATION_PATH {_describe(user_configuration_directory())}")
    print(f"USER_CACHE_PATH {_describe(user_cache_directory())}")
    if os.name == "posix":
        print(f"USER_RUNTIME_PATH {_describe(_runtime_directory())}")


def program_arguments() -> argparse.ArgumentParser:
    """Return the parser for the program's command-line arguments."""
    parser = argparse.ArgumentParser(
        prog=BIN_NAME, description="cross-platform terminal Spotify client"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "-d",
        "--debug",
        metavar="FILE",
        type=Path,
        help="Enable debug logging to the specified file",
    )
    parser.add_argument(
        "-b",
        "--basepath",
        metavar="PATH",
        type=Path,
        help="custom basepath to config/cache files",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        default=CONFIGURATION_FILE_NAME,
        help="Filename of config file in basepath",
    )
    subcommands = parser.add_subparsers(dest="subcommand")
    subcommands.add_parser("info", help="Print platform information like paths")
    return parser


def setup_logging(filename: str | os.PathLike[str]) -> logging.Handler:
    """Send all log records to filename (appending) and return the handler."""
    handler = logging.FileHandler(filename, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(name)s] [%(levelname)s] %(message)s",
            datefmt="[%Y-%m-%d][%H:%M:%S]",
        )
    )
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    return handler


def main(argv: list[str] | None = None) -> int:
    """Run the program; without a subcommand the configuration is loaded and checked."""
    args = program_arguments().parse_args(argv)
    if args.debug is not None:
        setup_logging(args.debug)
    set_configuration_base_path(args.basepath)

    if args.subcommand == "info":
        info()
        return 0

    try:
        Config(args.config)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())