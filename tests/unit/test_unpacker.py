"""Unit tests for the Unpacker decoding API."""

from __future__ import annotations

import struct
from typing import Any, Optional

import pytest
from streams import ChunkedStream

from streampack import (
    DecodeError,
    EndOfStreamError,
    Float32,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    Unpacker,
    UnpackerConfig,
)
from streampack.config import MAX_DEPTH_LIMIT


class TestSpecExamples:
    """Decoding the canonical example byte sequences."""

    def test_positive_fixnum_boundary(self) -> None:
        """0x7F is the largest positive fixnum."""
        assert Unpacker(b"\x7f").next(int) == 127

    def test_fixmap_tag_is_not_a_number(self) -> None:
        """0x80 is rejected as a number but accepted as an empty map."""
        with pytest.raises(DecodeError) as exc_info:
            Unpacker(b"\x80").next(int)
        assert exc_info.value.tag == 0x80

        unpacker = Unpacker(b"\x80")
        assert unpacker.map_length() == 0
        assert Unpacker(b"\x80").next(dict[str, int]) == {}

    def test_array_of_integers(self) -> None:
        assert Unpacker(b"\x92\x01\x02").next(list[int]) == [1, 2]

    def test_string(self) -> None:
        """A fixraw string consumes exactly its length after the tag."""
        unpacker = Unpacker(b"\xa3foo\x01")

        assert unpacker.next(str) == "foo"
        assert unpacker.position == 4
        assert unpacker.next(int) == 1

    def test_map_of_string_to_int(self) -> None:
        assert Unpacker(b"\x81\xa1k\x01").next(dict[str, int]) == {"k": 1}

    def test_nil_peek_and_consume(self) -> None:
        """is_nil() consumes nothing; consume_nil() consumes one byte."""
        unpacker = Unpacker(b"\xc0\x05")

        assert unpacker.is_nil() is True
        assert unpacker.is_nil() is True
        assert unpacker.position == 0

        unpacker.consume_nil()
        assert unpacker.position == 1
        assert unpacker.is_nil() is False
        assert unpacker.next(int) == 5

    @pytest.mark.parametrize(
        "target",
        [int, bool, float, Int8, UInt64, Float32, bytes, str, None, list[int], dict[str, int], Any],
    )
    def test_reserved_tag_fails_for_every_target(self, target: Any) -> None:
        """0xC1 is never a valid value."""
        with pytest.raises(DecodeError, match="193") as exc_info:
            Unpacker(b"\xc1").next(target)

        assert exc_info.value.tag == 193

    def test_reserved_tag_for_lengths(self) -> None:
        with pytest.raises(DecodeError, match="193"):
            Unpacker(b"\xc1").array_length()

        with pytest.raises(DecodeError, match="193"):
            Unpacker(b"\xc1").map_length()

        with pytest.raises(DecodeError, match="193"):
            Unpacker(b"\xc1").consume_nil()


class TestNumbers:
    """Test numeric decoding."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b"\xcc\xff", 255),
            (b"\xcd\x01\x00", 256),
            (b"\xce\x00\x01\x00\x00", 65536),
            (b"\xcf" + struct.pack(">Q", 2**64 - 1), 2**64 - 1),
            (b"\xd0\x80", -128),
            (b"\xd1\xff\x9c", -100),
            (b"\xd2" + struct.pack(">i", -(2**31)), -(2**31)),
            (b"\xd3" + struct.pack(">q", -(2**63)), -(2**63)),
        ],
    )
    def test_integer_opcodes(self, data: bytes, expected: int) -> None:
        """Multi-byte integers are big-endian on the wire."""
        unpacker = Unpacker(data)

        assert unpacker.next(int) == expected
        assert unpacker.position == len(data)

    def test_negative_fixnum(self) -> None:
        assert Unpacker(b"\xff").next(int) == -1
        assert Unpacker(b"\xe0").next(Int8) == -32

    def test_floats(self) -> None:
        """Floats are big-endian IEEE 754."""
        assert Unpacker(b"\xca" + struct.pack(">f", 1.5)).next(float) == 1.5
        assert Unpacker(b"\xcb" + struct.pack(">d", -0.1)).next(float) == -0.1

    def test_float_into_integer(self) -> None:
        assert Unpacker(b"\xcb" + struct.pack(">d", 7.9)).next(Int32) == 7

    def test_integer_into_float(self) -> None:
        value = Unpacker(b"\xcd\x01\x00").next(float)
        assert value == 256.0
        assert isinstance(value, float)

    def test_booleans(self) -> None:
        """Boolean tags decode as bool or as 0/1 numbers."""
        assert Unpacker(b"\xc3").next(bool) is True
        assert Unpacker(b"\xc2").next(bool) is False
        assert Unpacker(b"\xc3").next(int) == 1
        assert Unpacker(b"\xc3").next(UInt8) == 1
        assert Unpacker(b"\xc2").next(float) == 0.0

    def test_number_into_bool(self) -> None:
        assert Unpacker(b"\x05").next(bool) is True
        assert Unpacker(b"\x00").next(bool) is False

    def test_silent_narrowing(self) -> None:
        """Values wider than the target wrap by default."""
        assert Unpacker(b"\xcd\x01\x2c").next(UInt8) == 44
        assert Unpacker(b"\xcc\xff").next(Int8) == -1
        assert Unpacker(b"\xff").next(UInt16) == 65535
        assert Unpacker(b"\xcf" + struct.pack(">Q", 2**63)).next(Int64) == -(2**63)

    def test_strict_narrowing(self) -> None:
        """Strict mode refuses lossy conversions."""
        config = UnpackerConfig(strict=True)

        with pytest.raises(DecodeError, match="out of range"):
            Unpacker(b"\xcd\x01\x2c", config).next(UInt8)

        with pytest.raises(DecodeError, match="out of range"):
            Unpacker(b"\xff", config).next(UInt32)

        assert Unpacker(b"\xcd\x01\x2c", config).next(Int16) == 300

    def test_non_numeric_tags(self) -> None:
        """Raw, array, map and nil tags are not numbers."""
        for data in (b"\xa1x", b"\x90", b"\x80", b"\xc0"):
            with pytest.raises(DecodeError, match="int16"):
                Unpacker(data).next(Int16)

    def test_mismatch_consumes_tag(self) -> None:
        """The offending tag is consumed, nothing after it."""
        unpacker = Unpacker(b"\xa1x")

        with pytest.raises(DecodeError):
            unpacker.next(int)
        assert unpacker.position == 1


class TestRaw:
    """Test raw byte strings."""

    def test_bytes_verbatim(self) -> None:
        assert Unpacker(b"\xa2\xff\x00").next(bytes) == b"\xff\x00"

    def test_empty(self) -> None:
        assert Unpacker(b"\xa0").next(bytes) == b""
        assert Unpacker(b"\xa0").next(str) == ""

    def test_raw16(self) -> None:
        payload = b"x" * 300
        data = b"\xda" + struct.pack(">H", 300) + payload

        assert Unpacker(data).next(bytes) == payload

    def test_raw32(self) -> None:
        payload = b"y" * 70000
        data = b"\xdb" + struct.pack(">I", 70000) + payload

        assert Unpacker(data).next(bytes) == payload

    def test_str_without_validation(self) -> None:
        """Invalid UTF-8 is passed through by default."""
        text = Unpacker(b"\xa2\xc3\x28").next(str)
        assert text.encode("utf-8", errors="surrogateescape") == b"\xc3\x28"

    def test_str_strict(self) -> None:
        with pytest.raises(DecodeError, match="UTF-8"):
            Unpacker(b"\xa2\xc3\x28", UnpackerConfig(strict=True)).next(str)

    def test_numbers_are_not_strings(self) -> None:
        with pytest.raises(DecodeError, match="to str"):
            Unpacker(b"\x01").next(str)

    def test_truncated_payload(self) -> None:
        with pytest.raises(EndOfStreamError):
            Unpacker(b"\xa5ab").next(bytes)

    def test_read_raw(self) -> None:
        assert Unpacker(b"\xa3abc").read_raw() == b"abc"


class TestContainers:
    """Test arrays and maps."""

    def test_array_lengths(self) -> None:
        assert Unpacker(b"\x9f").array_length() == 15
        assert Unpacker(b"\xdc\x01\x00").array_length() == 256
        assert Unpacker(b"\xdd\x00\x01\x00\x00").array_length() == 65536

    def test_map_lengths(self) -> None:
        assert Unpacker(b"\x8f").map_length() == 15
        assert Unpacker(b"\xde\x01\x00").map_length() == 256
        assert Unpacker(b"\xdf\x00\x01\x00\x00").map_length() == 65536

    def test_wrong_container(self) -> None:
        with pytest.raises(DecodeError, match="to array"):
            Unpacker(b"\x81").array_length()

        with pytest.raises(DecodeError, match="to map"):
            Unpacker(b"\x91").map_length()

    def test_array16(self) -> None:
        data = b"\xdc\x00\x14" + bytes(range(20))
        assert Unpacker(data).next(list[int]) == list(range(20))

    def test_preserves_order(self) -> None:
        assert Unpacker(b"\x93\x03\x01\x02").next(list[int]) == [3, 1, 2]

    def test_tuple(self) -> None:
        assert Unpacker(b"\x92\x01\x02").next(tuple[int, ...]) == (1, 2)

    def test_nested(self) -> None:
        data = b"\x82\xa1a\x92\x01\x02\xa1b\x90"
        assert Unpacker(data).next(dict[str, list[int]]) == {"a": [1, 2], "b": []}

    def test_map16(self) -> None:
        data = b"\xde\x00\x02\x01\xa1x\x02\xa1y"
        assert Unpacker(data).next(dict[int, bytes]) == {1: b"x", 2: b"y"}

    def test_duplicate_keys_last_wins(self) -> None:
        data = b"\x82\xa1k\x01\xa1k\x02"
        assert Unpacker(data).next(dict[str, int]) == {"k": 2}

    def test_element_type_mismatch(self) -> None:
        with pytest.raises(DecodeError, match="193"):
            Unpacker(b"\x92\x01\xc1").next(list[int])

    def test_typed_then_untyped(self) -> None:
        """Bare list and dict targets decode their elements dynamically."""
        assert Unpacker(b"\x92\x01\xa1x").next(list) == [1, b"x"]
        assert Unpacker(b"\x81\x01\xc3").next(dict) == {1: True}
        assert Unpacker(b"\x92\x01\x02").next(tuple) == (1, 2)

    def test_any_keys_made_hashable(self) -> None:
        data = b"\x81\x92\x01\x02\xc0"
        assert Unpacker(data).next(dict[Any, Any]) == {(1, 2): None}

    def test_max_length(self) -> None:
        config = UnpackerConfig(max_length=4)

        with pytest.raises(DecodeError, match="exceeds maximum 4"):
            Unpacker(b"\xdc\x00\x05", config).array_length()

        with pytest.raises(DecodeError, match="exceeds maximum 4"):
            Unpacker(b"\xa5hello", config).next(bytes)

        assert Unpacker(b"\x94\x01\x02\x03\x04", config).next(list[int]) == [1, 2, 3, 4]


class TestOptional:
    """Test nil handling in typed decoding."""

    def test_optional(self) -> None:
        unpacker = Unpacker(b"\xc0\x07")

        assert unpacker.next(Optional[int]) is None
        assert unpacker.next(Optional[int]) == 7

    def test_optional_elements(self) -> None:
        data = b"\x93\xa1a\xc0\xa1c"
        assert Unpacker(data).next(list[Optional[str]]) == ["a", None, "c"]

    def test_none_target(self) -> None:
        assert Unpacker(b"\xc0").next(None) is None

        with pytest.raises(DecodeError, match="to nil"):
            Unpacker(b"\x00").next(None)

    def test_nil_is_not_a_number(self) -> None:
        with pytest.raises(DecodeError, match="192"):
            Unpacker(b"\xc0").next(int)


class TestTargets:
    """Test target type validation."""

    @pytest.mark.parametrize("target", [set, complex, list[int, str], dict[list[int], int]])
    def test_unsupported(self, target: Any) -> None:
        """Unsupported targets fail before reading anything."""
        unpacker = Unpacker(b"\x01")

        with pytest.raises(TypeError):
            unpacker.next(target)
        assert unpacker.next(int) == 1

    @pytest.mark.parametrize(
        "target",
        [
            dict[Optional[list[int]], int],
            dict[Optional[dict[str, int]], int],
            dict[tuple[Optional[list[int]], ...], int],
        ],
    )
    def test_unhashable_keys_rejected_before_reading(self, target: Any) -> None:
        """Optional does not hide an unhashable key type."""
        unpacker = Unpacker(b"\x81\x91\x01\x02")

        with pytest.raises(TypeError, match="not hashable"):
            unpacker.next(target)
        assert unpacker.position == 0
        assert unpacker.next(dict[tuple[int, ...], int]) == {(1,): 2}

    def test_optional_hashable_key(self) -> None:
        data = b"\x82\xc0\x01\x91\x05\x02"
        assert Unpacker(data).next(dict[Optional[tuple[int, ...]], int]) == {None: 1, (5,): 2}

    def test_general_union(self) -> None:
        with pytest.raises(TypeError, match="Optional"):
            Unpacker(b"\x01").next(Optional[int] | str)


class TestDynamic:
    """Test dynamic decoding into plain Python objects."""

    def test_scalars(self) -> None:
        unpacker = Unpacker(b"\xc0\xc3\x05\xff\xcb" + struct.pack(">d", 2.5) + b"\xa2hi")

        assert unpacker.unpack() is None
        assert unpacker.unpack() is True
        assert unpacker.unpack() == 5
        assert unpacker.unpack() == -1
        assert unpacker.unpack() == 2.5
        assert unpacker.unpack() == b"hi"

    def test_default_target_is_dynamic(self) -> None:
        assert Unpacker(b"\x91\xa1x").next() == [b"x"]

    def test_raw_as_str(self) -> None:
        config = UnpackerConfig(raw_as_str=True)
        assert Unpacker(b"\x81\xa1k\x92\x01\xa1v", config).unpack() == {"k": [1, "v"]}

    def test_list_keys_become_tuples(self) -> None:
        assert Unpacker(b"\x81\x91\x01\x02").unpack() == {(1,): 2}

    def test_max_depth(self) -> None:
        config = UnpackerConfig(max_depth=2)

        assert Unpacker(b"\x91\x91\x01", config).unpack() == [[1]]
        with pytest.raises(DecodeError, match="Nesting deeper than 2"):
            Unpacker(b"\x91\x91\x91\x01", config).unpack()

    def test_deepest_allowed_nesting(self) -> None:
        """The largest accepted max_depth decodes without exhausting the stack."""
        config = UnpackerConfig(max_depth=MAX_DEPTH_LIMIT)
        data = b"\x91" * MAX_DEPTH_LIMIT + b"\x81\x01\x02"

        value = Unpacker(data, config).unpack()
        for _ in range(MAX_DEPTH_LIMIT):
            assert isinstance(value, list)
            value = value[0]
        assert value == {1: 2}

        with pytest.raises(DecodeError, match="Nesting deeper than 512"):
            Unpacker(b"\x91" + data, config).unpack()

    def test_recursion_error_becomes_decode_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Running out of stack is reported as a DecodeError."""

        def exhausted(self: Unpacker, depth: int) -> None:
            raise RecursionError("maximum recursion depth exceeded")

        monkeypatch.setattr(Unpacker, "_unpack", exhausted)

        with pytest.raises(DecodeError, match="too deep") as exc_info:
            Unpacker(b"\x91\x01").unpack()
        assert isinstance(exc_info.value.__cause__, RecursionError)

        with pytest.raises(DecodeError, match="too deep"):
            list(Unpacker(b"\x01"))

    def test_iteration(self, sample_stream: bytes) -> None:
        assert list(Unpacker(sample_stream)) == [[1, 2], b"foo", {b"k": 1}]

    def test_iteration_stops_only_between_values(self) -> None:
        """A value cut short still raises."""
        with pytest.raises(EndOfStreamError):
            list(Unpacker(b"\x01\x92\x01"))

    def test_interrupted_stream(self, flaky_stream: ChunkedStream) -> None:
        """Interruptions and one-byte reads do not change the result."""
        unpacker = Unpacker(flaky_stream)

        assert unpacker.next(list[int]) == [1, 2]
        assert unpacker.next(str) == "foo"
        assert unpacker.next(dict[str, int]) == {"k": 1}
        assert flaky_stream.interrupts > 0


class TestPassthroughs:
    """Test the raw access methods."""

    def test_read_tag(self) -> None:
        unpacker = Unpacker(b"\xd4\x01\x02")

        info = unpacker.read_tag()
        assert info.tag == 0xD4
        assert unpacker.read_exact(2) == b"\x01\x02"

    def test_read_fixed(self) -> None:
        unpacker = Unpacker(b"\x00\x2a")

        assert unpacker.peek() == 0
        assert unpacker.read_fixed(">H") == 42
