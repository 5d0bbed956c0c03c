"""Numeric and raw payload decoding.

Numeric values are read in the width the wire announces and then coerced into
the width the caller asked for. Coercion is permissive by default: integers
wrap in two's complement, floats truncate toward zero, float32 rounds and
overflows to infinity. Strict mode turns each of those into a DecodeError.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Literal, Union

from ..exceptions import DecodeError
from .source import ByteSource
from .tags import TagFamily, TagInfo

Number = Union[int, float, bool]

_FLOAT32 = struct.Struct(">f")


@dataclass(frozen=True)
class Numeric:
    """A numeric target type with a fixed width and signedness.

    Attributes:
        name: Type name used in error messages
        kind: "int", "float" or "bool"
        bits: Width in bits, 0 for an unbounded Python int
        signed: Whether the integer type is signed
    """

    name: str
    kind: Literal["int", "float", "bool"]
    bits: int = 0
    signed: bool = True

    def __repr__(self) -> str:
        return f"Numeric({self.name})"

    @property
    def min_value(self) -> int | None:
        if self.kind != "int" or not self.bits:
            return None
        return self._bounds()[0]

    @property
    def max_value(self) -> int | None:
        if self.kind != "int" or not self.bits:
            return None
        return self._bounds()[1]

    def _bounds(self) -> tuple[int, int]:
        if self.signed:
            return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1
        return 0, (1 << self.bits) - 1

    def coerce(self, value: Number, *, strict: bool = False) -> Number:
        """Narrow or widen a decoded number into this type.

        Args:
            value: Number as read from the wire
            strict: Raise instead of silently wrapping, truncating or rounding

        Returns:
            Value converted to this type

        Raises:
            DecodeError: On a non-finite float into an integer type, or on any
                lossy conversion in strict mode
        """
        if self.kind == "bool":
            if strict and value not in (0, 1):
                raise DecodeError(f"Value {value!r} is not a valid bool", expected=self.name)
            return bool(value)

        if self.kind == "float":
            return self._coerce_float(value, strict)

        return self._coerce_int(value, strict)

    def _coerce_int(self, value: Number, strict: bool) -> int:
        if isinstance(value, float):
            if not math.isfinite(value):
                raise DecodeError(
                    f"Cannot convert non-finite float {value!r} to {self.name}",
                    expected=self.name,
                )
            if strict and not value.is_integer():
                raise DecodeError(
                    f"Float {value!r} has a fractional part, cannot convert to {self.name}",
                    expected=self.name,
                )
        result = int(value)

        if not self.bits:
            return result

        lo, hi = self._bounds()
        if lo <= result <= hi:
            return result
        if strict:
            raise DecodeError(
                f"Value {result} out of range for {self.name} ({lo} to {hi})",
                expected=self.name,
            )

        # Two's complement wrap, same as a C cast
        result &= (1 << self.bits) - 1
        if self.signed and result > hi:
            result -= 1 << self.bits
        return result

    def _coerce_float(self, value: Number, strict: bool) -> float:
        try:
            result = float(value)
        except OverflowError as e:
            raise DecodeError(f"Value {value} too large for {self.name}", expected=self.name) from e

        if strict and not isinstance(value, float) and int(result) != value:
            raise DecodeError(
                f"Value {value} cannot be represented exactly as {self.name}",
                expected=self.name,
            )

        if self.bits != 32:
            return result

        try:
            narrowed: float = _FLOAT32.unpack(_FLOAT32.pack(result))[0]
        except OverflowError:
            if strict:
                raise DecodeError(
                    f"Value {result!r} overflows {self.name}", expected=self.name
                ) from None
            return math.copysign(math.inf, result)

        if strict and narrowed != result and not math.isnan(result):
            raise DecodeError(
                f"Value {result!r} loses precision as {self.name}", expected=self.name
            )
        return narrowed


Int8 = Numeric("int8", "int", 8, signed=True)
Int16 = Numeric("int16", "int", 16, signed=True)
Int32 = Numeric("int32", "int", 32, signed=True)
Int64 = Numeric("int64", "int", 64, signed=True)
UInt8 = Numeric("uint8", "int", 8, signed=False)
UInt16 = Numeric("uint16", "int", 16, signed=False)
UInt32 = Numeric("uint32", "int", 32, signed=False)
UInt64 = Numeric("uint64", "int", 64, signed=False)
Float32 = Numeric("float32", "float", 32)
Float64 = Numeric("float64", "float", 64)

# Targets for the builtin types
INT = Numeric("int", "int")
BOOL = Numeric("bool", "bool")

BUILTIN_NUMERICS: dict[type, Numeric] = {int: INT, float: Float64, bool: BOOL}


def read_number(source: ByteSource, info: TagInfo) -> Number:
    """Read the numeric value introduced by a tag.

    Fixnums and booleans are taken from the tag itself; the other numeric
    opcodes read their big-endian payload from the source.

    Args:
        source: Byte source positioned just after the tag
        info: Classified tag, which must belong to a numeric family

    Returns:
        The value at the width the wire announced
    """
    if info.family is TagFamily.BOOL:
        return bool(info.inline)
    if info.inline is not None:
        return info.inline
    if info.struct_format is None:
        raise ValueError(f"Tag {info.describe()} carries no numeric payload")

    value: Number = source.read_fixed(info.struct_format)
    return value


def read_length(source: ByteSource, info: TagInfo) -> int:
    """Read the element or byte count of a raw, array or map value.

    Args:
        source: Byte source positioned just after the tag
        info: Classified tag of the raw, array or map family

    Returns:
        Inline length for the fix* tags, otherwise the 16/32-bit prefix
    """
    if info.inline is not None:
        return info.inline
    if info.struct_format is None:
        raise ValueError(f"Tag {info.describe()} carries no length")

    length: int = source.read_fixed(info.struct_format)
    return length


def decode_text(data: bytes, *, strict: bool = False) -> str:
    """Turn raw bytes into a str.

    Permissive decoding uses surrogateescape so arbitrary bytes survive
    unchanged; strict decoding requires valid UTF-8.

    Raises:
        DecodeError: If strict and data is not valid UTF-8
    """
    if not strict:
        return data.decode("utf-8", errors="surrogateescape")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Invalid UTF-8 in raw value: {e}", expected="str") from e
