"""streampack: Streaming MessagePack Decoder

A Python library for pulling typed values out of a MessagePack byte stream
(the older raw/fixraw generation of the format). Values are decoded one at
a time from file descriptors, sockets, file objects or in-memory buffers,
reading only the bytes each value needs.

Key Features:
- Pull-based, blocking decoding with one byte of lookahead
- Typed decoding: ``next(Int32)``, ``next(list[str])``, ``next(dict[str, float])``
- Permissive numeric narrowing by default, strict checking on request
- Dynamic decoding into plain Python objects

Quick Start:
    >>> from streampack import Unpacker
    >>>
    >>> unpacker = Unpacker(b"\\x81\\xa1k\\x01\\x92\\x01\\x02")
    >>> unpacker.next(dict[str, int])
    {'k': 1}
    >>> unpacker.next(list[int])
    [1, 2]
"""

from __future__ import annotations

from .codec import (
    ByteSource,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Numeric,
    TagFamily,
    TagInfo,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    Unpacker,
    classify,
)
from .config import UnpackerConfig
from .exceptions import DecodeError, EndOfStreamError, StreamError, StreampackError

__version__ = "0.1.0"

__all__ = [
    # Core API
    "Unpacker",
    "UnpackerConfig",
    "ByteSource",
    # Numeric target types
    "Numeric",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
    # Tag classification
    "TagFamily",
    "TagInfo",
    "classify",
    # Exceptions
    "StreampackError",
    "DecodeError",
    "StreamError",
    "EndOfStreamError",
    # Version
    "__version__",
]
