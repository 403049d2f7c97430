"""Exception hierarchy raised while decoding binary chunks."""

from __future__ import annotations

from typing import Any


class ChunkDecodeError(Exception):
    """Base class for all chunk decoding errors.

    ``offset`` is the byte position at which the failing field starts.
    """

    kind = "DecodeError"

    def __init__(self, message: str, *, offset: int) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset

    def describe(self) -> str:
        return f"{self.kind} at offset 0x{self.offset:x}: {self.message}"


class TruncatedInputError(ChunkDecodeError):
    """Raised when the buffer ends before a field is complete."""

    kind = "TruncatedInput"

    def __init__(self, *, offset: int, needed: int, available: int) -> None:
        super().__init__(
            f"needed {needed} byte(s) but only {available} remain", offset=offset
        )
        self.needed = needed
        self.available = available


class InvalidTextError(ChunkDecodeError):
    """Raised when a string field is not valid UTF-8."""

    kind = "InvalidText"


class MalformedHeaderError(ChunkDecodeError):
    """Raised when a header field does not hold the expected value."""

    kind = "MalformedHeader"

    def __init__(self, field: str, expected: Any, actual: Any, *, offset: int) -> None:
        super().__init__(
            f"header field {field!r} expected {expected!r}, found {actual!r}",
            offset=offset,
        )
        self.field = field
        self.expected = expected
        self.actual = actual


class UnsupportedPlatformError(MalformedHeaderError):
    """Raised when a size descriptor names a width this decoder cannot read."""

    kind = "UnsupportedPlatform"


class UnknownConstantTagError(ChunkDecodeError):
    """Raised for a constant tag outside the defined tag domain."""

    kind = "UnknownConstantTag"

    def __init__(self, tag: int, *, offset: int) -> None:
        super().__init__(f"unknown constant tag 0x{tag:02x}", offset=offset)
        self.tag = tag


class NestingTooDeepError(ChunkDecodeError):
    """Raised when prototypes nest deeper than the configured limit."""

    kind = "NestingTooDeep"

    def __init__(self, limit: int, *, offset: int) -> None:
        super().__init__(f"prototype nesting exceeds {limit} levels", offset=offset)
        self.limit = limit


class LayoutError(ValueError):
    """Raised for unknown layout names or malformed layout configuration."""


__all__ = [
    "ChunkDecodeError",
    "TruncatedInputError",
    "InvalidTextError",
    "MalformedHeaderError",
    "UnsupportedPlatformError",
    "UnknownConstantTagError",
    "NestingTooDeepError",
    "LayoutError",
]
