"""Array and map decoding.

Containers are a length prefix followed by that many encoded elements (or
key/value pairs). Elements are decoded by re-entering the unpacker, so these
helpers only take zero-argument callables that decode one value each.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from ..exceptions import DecodeError
from .scalars import read_length
from .source import ByteSource
from .tags import TagFamily, TagInfo

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


def check_length(length: int, max_length: int | None, info: TagInfo) -> int:
    """Reject a length prefix above the configured maximum.

    Raises:
        DecodeError: If max_length is set and length exceeds it
    """
    if max_length is not None and length > max_length:
        raise DecodeError(
            f"Length {length} of tag {info.describe()} exceeds maximum {max_length}",
            tag=info.tag,
            expected=info.family.value,
        )
    return length


def container_length(
    source: ByteSource, info: TagInfo, family: TagFamily, max_length: int | None = None
) -> int:
    """Read the length of a raw, array or map value whose tag was already read.

    Args:
        source: Byte source positioned just after the tag
        info: Classified tag
        family: Family the caller expects
        max_length: Optional upper bound for the decoded length

    Returns:
        Number of bytes, elements or key/value pairs that follow

    Raises:
        DecodeError: If the tag is not of the expected family or the length
            exceeds max_length
    """
    if info.family is not family:
        raise info.mismatch(family.value)
    return check_length(read_length(source, info), max_length, info)


def read_array(length: int, read_element: Callable[[], T]) -> list[T]:
    """Decode length elements in wire order."""
    items: list[T] = []
    for _ in range(length):
        items.append(read_element())
    return items


def read_map(length: int, read_key: Callable[[], K], read_value: Callable[[], V]) -> dict[K, V]:
    """Decode length key/value pairs.

    Each key is decoded before its value. A repeated key overwrites the earlier
    entry.
    """
    entries: dict[K, V] = {}
    for _ in range(length):
        # Key must be read first: the right-hand side of an item assignment
        # is evaluated before the subscript.
        key = read_key()
        entries[key] = read_value()
    return entries


def hashable(value: Any) -> Any:
    """Make a dynamically decoded map key usable as a dict key.

    Lists become tuples and dicts become tuples of their items, recursively.
    """
    if isinstance(value, list):
        return tuple(hashable(item) for item in value)
    if isinstance(value, dict):
        return tuple((hashable(k), hashable(v)) for k, v in value.items())
    return value
