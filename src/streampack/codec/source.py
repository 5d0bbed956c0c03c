"""Blocking byte source with one byte of lookahead.

ByteSource wraps an already-open stream and hands out exact byte counts. It
never opens, closes, seeks or flushes the stream.

Lookahead transitions:
    empty --peek()--> full      one underlying read of a single byte
    full  --peek()--> full      no read, same byte returned
    full  --read_exact(n)--> empty   byte is the first of the n returned

At most one byte is ever buffered ahead of the logical position.
"""

from __future__ import annotations

import io
import os
import struct
from functools import lru_cache
from typing import Any, Callable, Optional, Union

import structlog

from ..exceptions import EndOfStreamError, StreamError

logger = structlog.get_logger()

ReadFn = Callable[[int], Optional[bytes]]
StreamLike = Union[int, bytes, bytearray, memoryview, Any]


@lru_cache(maxsize=64)
def _compile(fmt: str) -> struct.Struct:
    return struct.Struct(fmt)


def _reader_for(stream: StreamLike) -> ReadFn:
    """Pick the read primitive for a supported stream type.

    Args:
        stream: File descriptor, socket, file-like object or bytes-like buffer

    Returns:
        Callable reading up to n bytes

    Raises:
        TypeError: If the stream type is not supported
    """
    if isinstance(stream, bool):
        raise TypeError("bool is not a file descriptor")
    if isinstance(stream, int):
        fd = stream
        return lambda n: os.read(fd, n)
    if isinstance(stream, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(stream)).read
    if hasattr(stream, "recv"):
        return stream.recv
    if hasattr(stream, "read"):
        return stream.read
    raise TypeError(
        f"Unsupported stream type {type(stream).__name__}: expected a file descriptor, "
        f"socket, readable file object or bytes-like buffer"
    )


class ByteSource:
    """Reads raw bytes from a stream without interpreting them.

    Example:
        >>> source = ByteSource(b"\\x92\\x01\\x02")
        >>> source.peek()
        146
        >>> source.read_exact(3)
        b'\\x92\\x01\\x02'
    """

    def __init__(self, stream: StreamLike) -> None:
        """Wrap a stream.

        Args:
            stream: File descriptor, socket, file-like object or bytes-like buffer
        """
        self._read = _reader_for(stream)
        self._lookahead: int | None = None
        self._position = 0

    @property
    def position(self) -> int:
        """Number of bytes consumed so far (a peeked byte is not consumed)."""
        return self._position

    def peek(self) -> int:
        """Return the next unread byte without consuming it.

        Returns:
            Next byte value (0-255)

        Raises:
            StreamError: If the underlying read fails
            EndOfStreamError: If the stream has ended
        """
        if self._lookahead is None:
            self._lookahead = self._fill(1)[0]
        return self._lookahead

    def read_exact(self, n: int) -> bytes:
        """Read exactly n bytes, draining the lookahead byte first.

        Args:
            n: Number of bytes to read

        Returns:
            The n bytes read

        Raises:
            ValueError: If n is negative
            StreamError: If the underlying read fails
            EndOfStreamError: If the stream ends before n bytes arrived
        """
        if n < 0:
            raise ValueError(f"read_exact requires non-negative count, got {n}")
        if n == 0:
            return b""

        buf = bytearray()
        if self._lookahead is not None:
            buf.append(self._lookahead)
            self._lookahead = None
        if len(buf) < n:
            try:
                buf += self._fill(n - len(buf))
            except EndOfStreamError as e:
                # Nothing was read past the lookahead byte, so keep it unread
                if buf and e.needed == n - len(buf):
                    self._lookahead = buf[0]
                raise

        self._position += n
        return bytes(buf)

    def read_fixed(self, fmt: str | struct.Struct) -> Any:
        """Read a fixed-width value and unpack it with fmt as given.

        No byte-order conversion is added. A format without a byte-order prefix
        uses the platform's native layout; pass ``">H"`` and friends to decode
        big-endian wire values.

        Args:
            fmt: struct format string or precompiled struct.Struct

        Returns:
            The single unpacked value, or a tuple for multi-field formats
        """
        codec = fmt if isinstance(fmt, struct.Struct) else _compile(fmt)
        values = codec.unpack(self.read_exact(codec.size))
        return values[0] if len(values) == 1 else values

    def at_eof(self) -> bool:
        """Check for a clean end of stream without losing data.

        A byte read while probing is kept as the lookahead byte.
        """
        if self._lookahead is not None:
            return False
        try:
            self.peek()
        except EndOfStreamError:
            return True
        return False

    def _fill(self, n: int) -> bytes:
        """Issue underlying reads until n bytes have been collected."""
        chunks = bytearray()
        while len(chunks) < n:
            try:
                chunk = self._read(n - len(chunks))
            except InterruptedError:
                logger.debug("stream read interrupted, retrying", pending=n - len(chunks))
                continue
            except OSError as e:
                raise StreamError(f"Read from stream failed: {e.strerror or e}") from e

            if chunk is None:
                raise StreamError("Read from stream failed: stream is in non-blocking mode")
            if not chunk:
                needed = n - len(chunks)
                logger.debug("end of stream", needed=needed, position=self._position)
                raise EndOfStreamError(
                    f"Stream ended with {needed} of {n} requested bytes outstanding",
                    needed=needed,
                )
            chunks += chunk
        return bytes(chunks)
