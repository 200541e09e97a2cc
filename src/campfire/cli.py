"""Command line entry point.

Usage::

    campfire [-b DIR] [-c FILE] [-v | -q] build
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from campfire.build import build
from campfire.config import default_config_path, load_config
from campfire.errors import CampfireError

logger = logging.getLogger("campfire")


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campfire",
        description="Build a static site from a directory of markdown posts.",
    )
    parser.add_argument(
        "-b", "--base-directory",
        type=Path,
        default=Path("."),
        help="Directory to build site from (default: %(default)s)",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Configuration file (default: <base-directory>/.campfire/campfire.yaml)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)
    commands.add_parser("build", help="Builds the site")
    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)-7s %(message)s")


def main(argv: list[str] | None = None) -> int:
    args = make_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    base_dir: Path = args.base_directory
    config_path = args.config or default_config_path(base_dir)
    try:
        config = load_config(config_path)
        if args.command == "build":
            result = build(base_dir, config)
            logger.info(
                "Built %d posts (%d assets, %d unresolved links)",
                len(result.posts), result.assets_copied, len(result.unresolved),
            )
    except CampfireError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
