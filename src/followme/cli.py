"""Command-line interface for followme."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import NoReturn

from .engine import FollowFile
from .exceptions import OpenError

USAGE = "Usage: followme FILE"


async def run_follow(path: str) -> int:
    """Follow ``path`` and print every item until cancelled."""
    try:
        stream = await FollowFile.open(path)
    except OpenError as e:
        cause = e.__cause__
        detail = f" ({cause.strerror})" if isinstance(cause, OSError) and cause.strerror else ""
        print(f"Error: {e}{detail}", file=sys.stderr)
        return 1

    async with stream:
        async for item in stream:
            print(repr(item), flush=True)
    return 0


def cmd_follow(args: argparse.Namespace) -> int:
    """Handle ``followme FILE``."""
    if args.file is None:
        print(USAGE)
        return 0

    try:
        return asyncio.run(run_follow(args.file))
    except KeyboardInterrupt:
        return 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="followme",
        description="Print lines appended to FILE as they arrive, surviving truncation",
    )
    parser.add_argument("file", nargs="?", help="File to follow")
    parser.set_defaults(func=cmd_follow)
    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for CLI."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    parser = create_parser()
    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
