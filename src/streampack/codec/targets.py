"""Target type resolution.

This module turns the type a caller asks for (``int``, ``Int16``,
``list[str]``, ``dict[bytes, Optional[float]]``, ...) into a Reader that
decodes exactly that shape. Resolution inspects the type once and is cached;
decoding itself never looks at type annotations again.
"""

from __future__ import annotations

import types
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin

from .containers import hashable, read_array, read_map
from .scalars import BUILTIN_NUMERICS, Numeric, decode_text, read_number
from .tags import NUMERIC_FAMILIES

if TYPE_CHECKING:
    from .unpacker import Unpacker

_UNION_TYPES: tuple[Any, ...] = (Union, types.UnionType)


class Reader(ABC):
    """Decodes the next value from an Unpacker into one target type."""

    name: str = "value"

    @abstractmethod
    def read(self, unpacker: Unpacker) -> Any:
        """Decode one value.

        Raises:
            DecodeError: If the next value cannot be decoded as this type
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


class NilReader(Reader):
    name = "nil"

    def read(self, unpacker: Unpacker) -> None:
        unpacker.consume_nil()


class NumericReader(Reader):
    """Fixnums, booleans, integers and floats coerced into one Numeric type."""

    def __init__(self, numeric: Numeric) -> None:
        self.numeric = numeric
        self.name = numeric.name

    def read(self, unpacker: Unpacker) -> Any:
        info = unpacker.read_tag()
        if info.family not in NUMERIC_FAMILIES:
            raise info.mismatch(self.name)
        value = read_number(unpacker.source, info)
        return self.numeric.coerce(value, strict=unpacker.config.strict)


class BytesReader(Reader):
    name = "bytes"

    def read(self, unpacker: Unpacker) -> bytes:
        return unpacker.read_raw(self.name)


class StrReader(Reader):
    name = "str"

    def read(self, unpacker: Unpacker) -> str:
        return decode_text(unpacker.read_raw(self.name), strict=unpacker.config.strict)


class ListReader(Reader):
    def __init__(self, element: Reader, *, as_tuple: bool = False) -> None:
        self.element = element
        self.as_tuple = as_tuple
        container = "tuple" if as_tuple else "list"
        self.name = f"{container}[{element.name}]"

    def read(self, unpacker: Unpacker) -> Any:
        length = unpacker.array_length()
        items = read_array(length, lambda: self.element.read(unpacker))
        return tuple(items) if self.as_tuple else items


class DictReader(Reader):
    def __init__(self, key: Reader, value: Reader) -> None:
        self.key = key
        self.value = value
        self.name = f"dict[{key.name}, {value.name}]"

    def read(self, unpacker: Unpacker) -> dict[Any, Any]:
        length = unpacker.map_length()
        return read_map(
            length,
            lambda: self._read_key(unpacker),
            lambda: self.value.read(unpacker),
        )

    def _read_key(self, unpacker: Unpacker) -> Any:
        key = self.key.read(unpacker)
        return hashable(key) if isinstance(self.key, AnyReader) else key


class OptionalReader(Reader):
    """Nil decodes to None; anything else goes to the wrapped reader."""

    def __init__(self, inner: Reader) -> None:
        self.inner = inner
        self.name = f"Optional[{inner.name}]"

    def read(self, unpacker: Unpacker) -> Any:
        if unpacker.is_nil():
            unpacker.consume_nil()
            return None
        return self.inner.read(unpacker)


class AnyReader(Reader):
    name = "any"

    def read(self, unpacker: Unpacker) -> Any:
        return unpacker.unpack()


def _is_hashable(reader: Reader) -> bool:
    if isinstance(reader, DictReader):
        return False
    if isinstance(reader, ListReader):
        return reader.as_tuple and _is_hashable(reader.element)
    if isinstance(reader, OptionalReader):
        return _is_hashable(reader.inner)
    return True


@lru_cache(maxsize=None)
def resolve(target: Any) -> Reader:
    """Resolve a target type into a cached Reader.

    Args:
        target: Requested type (see module docstring)

    Returns:
        Reader decoding values of that type

    Raises:
        TypeError: If the target type is not supported

    Example:
        >>> resolve(dict[str, list[int]])
        DictReader(dict[str, list[int]])
    """
    if target is None or target is type(None):
        return NilReader()
    if target is Any or target is object:
        return AnyReader()
    if isinstance(target, Numeric):
        return NumericReader(target)
    if target in BUILTIN_NUMERICS:
        return NumericReader(BUILTIN_NUMERICS[target])
    if target is bytes:
        return BytesReader()
    if target is str:
        return StrReader()
    if target is list:
        return ListReader(AnyReader())
    if target is tuple:
        return ListReader(AnyReader(), as_tuple=True)
    if target is dict:
        return DictReader(AnyReader(), AnyReader())

    origin = get_origin(target)
    args = get_args(target)

    if origin in _UNION_TYPES:
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1 and len(members) < len(args):
            return OptionalReader(resolve(members[0]))
        raise TypeError(f"Only Optional[T] unions are supported, got {target!r}")

    if origin is list and len(args) == 1:
        return ListReader(resolve(args[0]))

    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return ListReader(resolve(args[0]), as_tuple=True)

    if origin is dict and len(args) == 2:
        key = resolve(args[0])
        if not _is_hashable(key):
            raise TypeError(f"Map key type {key.name} is not hashable")
        return DictReader(key, resolve(args[1]))

    raise TypeError(f"Unsupported target type {target!r}")

