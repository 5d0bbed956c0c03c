"""Exception hierarchy for streampack.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from StreampackError for easy catching of any
streampack-specific error.

Any exception raised while decoding invalidates the Unpacker that raised it:
the offending tag has already been consumed and the stream may be positioned
in the middle of a value.
"""

from __future__ import annotations


class StreampackError(Exception):
    """Base exception for all streampack errors."""

    pass


class DecodeError(StreampackError):
    """Raised when the next value cannot be decoded as the requested type.

    Examples:
        - Tag byte does not belong to a family the target type accepts
        - Reserved tag byte (0xC1, 0xC4-0xC9, 0xD4-0xD9)
        - Length prefix above the configured maximum
        - Strict-mode overflow or precision loss

    Attributes:
        tag: Offending tag byte, if the failure was caused by one
        expected: Name of the requested type or family, if known
    """

    def __init__(self, message: str, *, tag: int | None = None, expected: str | None = None):
        super().__init__(message)
        self.tag = tag
        self.expected = expected


class StreamError(DecodeError):
    """Raised when the byte source cannot satisfy a read.

    Interrupted reads are retried and never surface here. The underlying
    OSError, when there is one, is available as ``__cause__``.
    """

    pass


class EndOfStreamError(StreamError):
    """Raised when the stream ends before the requested bytes arrived.

    Attributes:
        needed: Number of bytes that were still outstanding
    """

    def __init__(self, message: str, *, needed: int = 0):
        super().__init__(message)
        self.needed = needed
