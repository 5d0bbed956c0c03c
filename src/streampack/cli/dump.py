"""Stream dump CLI command."""

from __future__ import annotations

import sys
from typing import Any, TextIO

import structlog

from ..codec.unpacker import Unpacker
from ..config import UnpackerConfig

logger = structlog.get_logger()


def dump_stream(stream: Any, config: UnpackerConfig, out: TextIO | None = None) -> int:
    """Decode every value in a stream and print one repr per line.

    Decoding stops at a clean end of stream. A stream that ends inside a value
    raises EndOfStreamError after the complete values have been printed.

    Args:
        stream: Anything Unpacker accepts (file object, fd, socket, bytes)
        config: Decoder configuration
        out: Text stream to print to (defaults to sys.stdout)

    Returns:
        Number of values decoded
    """
    out = out if out is not None else sys.stdout
    unpacker = Unpacker(stream, config)

    count = 0
    for value in unpacker:
        print(repr(value), file=out)
        count += 1

    logger.info("stream dumped", values=count, bytes=unpacker.position)
    return count
