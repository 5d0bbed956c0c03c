"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest
from streams import ChunkedStream


@pytest.fixture
def sample_stream() -> bytes:
    """Three values back to back: [1, 2], "foo", {"k": 1}."""
    return b"\x92\x01\x02" + b"\xa3foo" + b"\x81\xa1k\x01"


@pytest.fixture
def flaky_stream(sample_stream: bytes) -> ChunkedStream:
    """sample_stream delivered one byte at a time with every other read interrupted."""
    return ChunkedStream(sample_stream, chunk_size=1, interrupt_every=2)
