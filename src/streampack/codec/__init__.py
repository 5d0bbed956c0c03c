"""Streaming decoder for the MessagePack wire format.

This package provides the decoding layers: tag classification, the byte
source, scalar and raw payloads, containers, and the Unpacker that ties them
together.
"""

from __future__ import annotations

from .scalars import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Numeric,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)
from .source import ByteSource
from .tags import TagFamily, TagInfo, classify
from .targets import Reader, resolve
from .unpacker import Unpacker

__all__ = [
    "Unpacker",
    "ByteSource",
    "TagFamily",
    "TagInfo",
    "classify",
    "Reader",
    "resolve",
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
]
