#!/usr/bin/env python3
"""Basic usage example for streampack.

This example demonstrates:
1. Decoding typed values one at a time from a stream
2. Handling optional (nil) values
3. Walking a map field by field
4. Dynamic decoding and strict mode
"""

from __future__ import annotations

import io
import struct

from streampack import DecodeError, Float32, Int16, UInt8, Unpacker, UnpackerConfig

# A telemetry stream as a sender would write it:
#   uint8 vehicle id, int16 temperature, float32 depth, nil battery,
#   array of three readings, map {"mode": "survey", "leg": 3}
TELEMETRY = (
    b"\x2a"
    + b"\xd1" + struct.pack(">h", -12)
    + b"\xca" + struct.pack(">f", 25.5)
    + b"\xc0"
    + b"\x93\x01\xcd\x01\x00\xff"
    + b"\x82\xa4mode\xa6survey\xa3leg\x03"
)


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("streampack Basic Usage Example")
    print("=" * 60)
    print()

    unpacker = Unpacker(io.BytesIO(TELEMETRY))

    # Typed scalars
    print("1. Decoding typed scalars...")
    vehicle_id = unpacker.next(UInt8)
    temperature = unpacker.next(Int16)
    depth = unpacker.next(Float32)
    print(f"   Vehicle ID: {vehicle_id}")
    print(f"   Temperature: {temperature} C")
    print(f"   Depth: {depth} m")
    print()

    # Optional values
    print("2. Checking for nil...")
    if unpacker.is_nil():
        unpacker.consume_nil()
        print("   Battery: not reported")
    else:
        print(f"   Battery: {unpacker.next(int)}%")
    print()

    # Containers
    print("3. Decoding containers...")
    readings = unpacker.next(list[int])
    print(f"   Readings: {readings}")

    fields = {}
    for _ in range(unpacker.map_length()):
        key = unpacker.next(str)
        fields[key] = unpacker.next(str) if key == "mode" else unpacker.next(int)
    print(f"   Fields: {fields}")
    print(f"   Consumed {unpacker.position} of {len(TELEMETRY)} bytes")
    print()

    # Dynamic decoding
    print("4. Decoding without a target type...")
    for value in Unpacker(TELEMETRY, UnpackerConfig(raw_as_str=True)):
        print(f"   {value!r}")
    print()

    # Strict mode
    print("5. Narrowing 256 into uint8...")
    data = b"\xcd\x01\x00"
    print(f"   Permissive: {Unpacker(data).next(UInt8)}")
    try:
        Unpacker(data, UnpackerConfig(strict=True)).next(UInt8)
    except DecodeError as e:
        print(f"   Strict: {e}")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
