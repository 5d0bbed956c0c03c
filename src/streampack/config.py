"""Decoder configuration.

UnpackerConfig collects the few knobs an Unpacker has. The defaults reproduce
the permissive behaviour of the wire format's reference decoders: numbers are
narrowed silently, raw bytes are passed through without validation and length
prefixes are trusted.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Dynamic decoding recurses once per nesting level
MAX_DEPTH_LIMIT = 512


class UnpackerConfig(BaseModel):
    """Configuration for an Unpacker.

    Attributes:
        strict: Raise DecodeError instead of silently wrapping, truncating or
            rounding numbers, and require valid UTF-8 for ``str`` targets.
        max_length: Largest raw, array or map length accepted, None for no limit.
            Use this when reading from untrusted streams so a corrupt length
            prefix fails fast instead of blocking on a huge read.
        max_depth: Deepest container nesting accepted by dynamic decoding,
            at most MAX_DEPTH_LIMIT.
        raw_as_str: Dynamic decoding returns raw values as ``str`` instead of
            ``bytes``.

    Examples:
        ```python
        from streampack import Unpacker, UnpackerConfig

        # Defaults: permissive
        unpacker = Unpacker(sock)

        # Untrusted input
        config = UnpackerConfig(strict=True, max_length=1 << 20, max_depth=32)
        unpacker = Unpacker(sock, config)
        ```
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strict: bool = False
    max_length: Optional[int] = Field(default=None, ge=0)
    max_depth: int = Field(default=256, ge=1, le=MAX_DEPTH_LIMIT)
    raw_as_str: bool = False
