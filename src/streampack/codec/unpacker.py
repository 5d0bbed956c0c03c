"""Streaming decoder handle.

The Unpacker owns a ByteSource and decodes one value per call, pulling only
the bytes that value needs. It is synchronous and blocking, and it is not
thread-safe: use one Unpacker per reader.

Any exception raised while decoding leaves the stream at an undefined point
inside the current value. Discard the Unpacker (and normally the stream)
after a failure. TypeError and ValueError raised for bad arguments are checked
before any byte is read and leave the Unpacker usable.
"""

from __future__ import annotations

import struct
from typing import Any, Iterator

from ..config import UnpackerConfig
from ..exceptions import DecodeError
from .containers import check_length, container_length, hashable
from .scalars import decode_text, read_length, read_number
from .source import ByteSource, StreamLike
from .tags import NIL, NUMERIC_FAMILIES, TagFamily, TagInfo, classify
from .targets import resolve


class Unpacker:
    """Decodes typed values from a byte stream.

    Attributes:
        config: Decoder configuration

    Examples:
        ```python
        from streampack import Int16, Unpacker

        unpacker = Unpacker(b"\\x92\\x01\\x02\\xa3foo\\xd1\\xff\\x9c")
        unpacker.next(list[int])   # [1, 2]
        unpacker.next(str)         # "foo"
        unpacker.next(Int16)       # -100
        ```

        ```python
        # Optional values
        if unpacker.is_nil():
            unpacker.consume_nil()
        else:
            depth = unpacker.next(float)
        ```
    """

    def __init__(self, stream: StreamLike | ByteSource, config: UnpackerConfig | None = None):
        """Create an Unpacker.

        Args:
            stream: ByteSource, file descriptor, socket, readable file object or
                bytes-like buffer. The Unpacker never closes it.
            config: Decoder configuration (defaults to UnpackerConfig())
        """
        self._source = stream if isinstance(stream, ByteSource) else ByteSource(stream)
        self.config = config if config is not None else UnpackerConfig()

    @property
    def source(self) -> ByteSource:
        return self._source

    @property
    def position(self) -> int:
        """Number of bytes consumed from the stream."""
        return self._source.position

    def is_nil(self) -> bool:
        """Check whether the next value is nil without consuming it.

        Call consume_nil() afterwards to get past the nil.
        """
        return self._source.peek() == NIL

    def consume_nil(self) -> None:
        """Read the next value, which must be nil.

        Raises:
            DecodeError: If the next tag is not nil
        """
        info = self.read_tag()
        if info.family is not TagFamily.NIL:
            raise info.mismatch("nil")

    def next(self, target: Any = Any) -> Any:
        """Decode the next value as the given type.

        Args:
            target: bool, int, float, a Numeric type (Int8 ... UInt64, Float32,
                Float64), bytes, str, None, list[T], tuple[T, ...], dict[K, V],
                Optional[T], or Any for dynamic decoding

        Returns:
            The decoded value converted to target

        Raises:
            TypeError: If target is not a supported type
            DecodeError: If the next value cannot be decoded as target
            StreamError: If the stream fails or ends mid-value
        """
        return resolve(target).read(self)

    def array_length(self) -> int:
        """Read an array tag and return its element count.

        Raises:
            DecodeError: If the next value is not an array
        """
        info = self.read_tag()
        return container_length(self._source, info, TagFamily.ARRAY, self.config.max_length)

    def map_length(self) -> int:
        """Read a map tag and return its key/value pair count.

        Raises:
            DecodeError: If the next value is not a map
        """
        info = self.read_tag()
        return container_length(self._source, info, TagFamily.MAP, self.config.max_length)

    def read_raw(self, expected: str = "raw") -> bytes:
        """Read a raw value and return its bytes verbatim.

        Args:
            expected: Type name reported if the next value is not raw
        """
        info = self.read_tag()
        if info.family is not TagFamily.RAW:
            raise info.mismatch(expected)
        length = check_length(read_length(self._source, info), self.config.max_length, info)
        return self._source.read_exact(length)

    def unpack(self) -> Any:
        """Decode the next value into plain Python objects.

        Nil becomes None, numbers become bool/int/float, raw values become
        bytes (str with ``raw_as_str``), arrays become lists and maps become
        dicts. Map keys that decode to lists are converted to tuples.

        Raises:
            DecodeError: On a reserved tag or nesting deeper than max_depth
        """
        return self._unpack_top()

    def __iter__(self) -> Iterator[Any]:
        """Yield dynamically decoded values until the stream ends cleanly.

        A stream ending in the middle of a value still raises EndOfStreamError.
        """
        while not self._source.at_eof():
            yield self._unpack_top()

    def _unpack(self, depth: int) -> Any:
        info = self.read_tag()
        family = info.family

        if family is TagFamily.NIL:
            return None

        if family in NUMERIC_FAMILIES:
            return read_number(self._source, info)

        if family is TagFamily.RAW:
            length = check_length(read_length(self._source, info), self.config.max_length, info)
            data = self._source.read_exact(length)
            if self.config.raw_as_str:
                return decode_text(data, strict=self.config.strict)
            return data

        if family is TagFamily.ARRAY or family is TagFamily.MAP:
            if depth >= self.config.max_depth:
                raise DecodeError(
                    f"Nesting deeper than {self.config.max_depth} at tag {info.describe()}",
                    tag=info.tag,
                    expected=family.value,
                )
            length = check_length(read_length(self._source, info), self.config.max_length, info)
            # One frame per nesting level, so max_depth bounds the recursion
            if family is TagFamily.ARRAY:
                items = []
                for _ in range(length):
                    items.append(self._unpack(depth + 1))
                return items
            entries = {}
            for _ in range(length):
                key = hashable(self._unpack(depth + 1))
                entries[key] = self._unpack(depth + 1)
            return entries

        raise info.mismatch("any value")

    def _unpack_top(self) -> Any:
        try:
            return self._unpack(0)
        except RecursionError as e:
            # Only reachable when the caller's own stack is already deep
            raise DecodeError(f"Nesting too deep to decode at position {self.position}") from e

    # Raw passthroughs, for callers implementing their own value types

    def read_tag(self) -> TagInfo:
        """Consume and classify the next tag byte."""
        return classify(self._source.read_fixed("B"))

    def peek(self) -> int:
        """Return the next byte without consuming it."""
        return self._source.peek()

    def read_exact(self, n: int) -> bytes:
        """Read exactly n bytes without interpreting them."""
        return self._source.read_exact(n)

    def read_fixed(self, fmt: str | struct.Struct) -> Any:
        """Read a fixed-width value with a struct format, no byte-order conversion added."""
        return self._source.read_fixed(fmt)
