"""Tag byte classification.

Every encoded value starts with a single tag byte. The byte either carries the
whole value (fixnums, nil, booleans), carries a short length in its low bits
(fixraw, fixarray, fixmap), or announces a fixed number of trailing bytes
holding the payload or a big-endian length prefix.

The 256 possible tag values are classified once at import time, so every byte
maps to exactly one TagFamily and lookups never fall through.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import structlog

from ..exceptions import DecodeError

logger = structlog.get_logger()

# Single-byte opcodes
NIL = 0xC0
FALSE = 0xC2
TRUE = 0xC3
FLOAT32 = 0xCA
FLOAT64 = 0xCB
UINT8 = 0xCC
UINT16 = 0xCD
UINT32 = 0xCE
UINT64 = 0xCF
INT8 = 0xD0
INT16 = 0xD1
INT32 = 0xD2
INT64 = 0xD3
RAW16 = 0xDA
RAW32 = 0xDB
ARRAY16 = 0xDC
ARRAY32 = 0xDD
MAP16 = 0xDE
MAP32 = 0xDF

# Inclusive tag ranges
POSITIVE_FIXNUM_MIN, POSITIVE_FIXNUM_MAX = 0x00, 0x7F
FIXMAP_MIN, FIXMAP_MAX = 0x80, 0x8F
FIXARRAY_MIN, FIXARRAY_MAX = 0x90, 0x9F
FIXRAW_MIN, FIXRAW_MAX = 0xA0, 0xBF
NEGATIVE_FIXNUM_MIN, NEGATIVE_FIXNUM_MAX = 0xE0, 0xFF


class TagFamily(enum.Enum):
    """Value family announced by a tag byte."""

    POSITIVE_FIXNUM = "positive fixnum"
    NEGATIVE_FIXNUM = "negative fixnum"
    NIL = "nil"
    BOOL = "bool"
    FLOAT = "float"
    UINT = "uint"
    INT = "int"
    RAW = "raw"
    ARRAY = "array"
    MAP = "map"
    RESERVED = "reserved"


NUMERIC_FAMILIES = frozenset(
    {
        TagFamily.POSITIVE_FIXNUM,
        TagFamily.NEGATIVE_FIXNUM,
        TagFamily.BOOL,
        TagFamily.FLOAT,
        TagFamily.UINT,
        TagFamily.INT,
    }
)

LENGTH_FAMILIES = frozenset({TagFamily.RAW, TagFamily.ARRAY, TagFamily.MAP})


@dataclass(frozen=True)
class TagInfo:
    """Classification of a single tag byte.

    Attributes:
        tag: The tag byte itself (0-255)
        family: Value family the tag belongs to
        inline: Value or length carried inside the tag, None if it follows
        width: Number of trailing bytes holding the payload or length prefix
        struct_format: Big-endian struct format for the trailing bytes
    """

    tag: int
    family: TagFamily
    inline: int | None = None
    width: int = 0
    struct_format: str | None = None

    def describe(self) -> str:
        return f"{self.tag} (0x{self.tag:02X}, {self.family.value})"

    def mismatch(self, expected: str) -> DecodeError:
        """Build the error for a tag the requested type does not accept.

        Args:
            expected: Name of the requested type or family

        Returns:
            DecodeError naming the tag value and the expected type
        """
        logger.debug("decode failure", tag=self.tag, family=self.family.value, expected=expected)
        return DecodeError(
            f"Cannot convert tag {self.describe()} to {expected}",
            tag=self.tag,
            expected=expected,
        )


_FIXED_OPCODES: dict[int, tuple[TagFamily, int, str]] = {
    FLOAT32: (TagFamily.FLOAT, 4, ">f"),
    FLOAT64: (TagFamily.FLOAT, 8, ">d"),
    UINT8: (TagFamily.UINT, 1, ">B"),
    UINT16: (TagFamily.UINT, 2, ">H"),
    UINT32: (TagFamily.UINT, 4, ">I"),
    UINT64: (TagFamily.UINT, 8, ">Q"),
    INT8: (TagFamily.INT, 1, ">b"),
    INT16: (TagFamily.INT, 2, ">h"),
    INT32: (TagFamily.INT, 4, ">i"),
    INT64: (TagFamily.INT, 8, ">q"),
    RAW16: (TagFamily.RAW, 2, ">H"),
    RAW32: (TagFamily.RAW, 4, ">I"),
    ARRAY16: (TagFamily.ARRAY, 2, ">H"),
    ARRAY32: (TagFamily.ARRAY, 4, ">I"),
    MAP16: (TagFamily.MAP, 2, ">H"),
    MAP32: (TagFamily.MAP, 4, ">I"),
}


def _build(tag: int) -> TagInfo:
    if POSITIVE_FIXNUM_MIN <= tag <= POSITIVE_FIXNUM_MAX:
        return TagInfo(tag, TagFamily.POSITIVE_FIXNUM, inline=tag)
    if NEGATIVE_FIXNUM_MIN <= tag <= NEGATIVE_FIXNUM_MAX:
        return TagInfo(tag, TagFamily.NEGATIVE_FIXNUM, inline=tag - 0x100)
    if FIXRAW_MIN <= tag <= FIXRAW_MAX:
        return TagInfo(tag, TagFamily.RAW, inline=tag & 0x1F)
    if FIXARRAY_MIN <= tag <= FIXARRAY_MAX:
        return TagInfo(tag, TagFamily.ARRAY, inline=tag & 0x0F)
    if FIXMAP_MIN <= tag <= FIXMAP_MAX:
        return TagInfo(tag, TagFamily.MAP, inline=tag & 0x0F)
    if tag == NIL:
        return TagInfo(tag, TagFamily.NIL)
    if tag in (FALSE, TRUE):
        return TagInfo(tag, TagFamily.BOOL, inline=int(tag == TRUE))
    if tag in _FIXED_OPCODES:
        family, width, fmt = _FIXED_OPCODES[tag]
        return TagInfo(tag, family, width=width, struct_format=fmt)
    return TagInfo(tag, TagFamily.RESERVED)


_TABLE: tuple[TagInfo, ...] = tuple(_build(tag) for tag in range(256))


def classify(tag: int) -> TagInfo:
    """Classify a tag byte into its value family.

    Args:
        tag: Tag byte value (0-255)

    Returns:
        TagInfo describing the family and how the payload follows

    Raises:
        ValueError: If tag is not a byte value

    Example:
        >>> classify(0x92).family
        <TagFamily.ARRAY: 'array'>
        >>> classify(0x92).inline
        2
    """
    if not 0 <= tag <= 0xFF:
        raise ValueError(f"tag must be 0-255, got {tag}")
    return _TABLE[tag]
