"""Main CLI entry point for streampack."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import BinaryIO

from .. import __version__
from ..config import UnpackerConfig
from ..exceptions import StreampackError
from ..logging import setup_logging
from .dump import dump_stream


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the streampack CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        prog="streampack",
        description="streampack: Streaming MessagePack Decoder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  streampack --dump values.bin              Print every value in a file
  streampack --dump - --raw-as-str < dump   Read from stdin, show raw as text
  streampack --version                      Show version
        """,
    )

    parser.add_argument(
        "--dump",
        metavar="FILE",
        type=str,
        help="Decode every value in FILE ('-' for stdin) and print one per line",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Require valid UTF-8 when showing raw values as text",
    )
    parser.add_argument(
        "--raw-as-str",
        action="store_true",
        help="Show raw values as text instead of bytes",
    )
    parser.add_argument(
        "--max-depth",
        metavar="N",
        type=int,
        default=256,
        help="Maximum container nesting (default: 256)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"streampack {__version__}",
    )

    args = parser.parse_args(argv)

    if args.dump:
        try:
            setup_logging()
            config = UnpackerConfig(
                strict=args.strict,
                raw_as_str=args.raw_as_str,
                max_depth=args.max_depth,
            )
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if args.dump == "-":
            return _dump(sys.stdin.buffer, config)

        file_path = Path(args.dump)
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            return 1

        with file_path.open("rb") as stream:
            return _dump(stream, config)

    # If no command specified, show help
    parser.print_help()
    return 0


def _dump(stream: BinaryIO, config: UnpackerConfig) -> int:
    try:
        dump_stream(stream, config)
    except StreampackError as e:
        print(f"Error decoding stream: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
