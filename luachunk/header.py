"""Validation of the fixed chunk header.

The header is checked field by field in stream order and the first mismatch
aborts the decode.  Multi-byte fields are read in full before they are
compared, so a short buffer is reported as truncation rather than as a bogus
mismatch.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from .cursor import ByteCursor
from .exceptions import MalformedHeaderError, UnsupportedPlatformError
from .layouts import ChunkLayout
from .model import (
    LUA_SIGNATURE,
    LUAC_DATA,
    LUAC_FORMAT,
    LUAC_INT,
    LUAC_NUM,
    LUAC_VERSION,
    SIZEOF_INSTRUCTION,
    SIZEOF_INT,
    SIZEOF_INTEGER,
    SIZEOF_NUMBER,
    SIZEOF_SIZE_T,
    Header,
)

LOG = logging.getLogger(__name__)

SIZE_DESCRIPTORS = (
    ("int_size", SIZEOF_INT),
    ("size_t_size", SIZEOF_SIZE_T),
    ("instruction_size", SIZEOF_INSTRUCTION),
    ("integer_size", SIZEOF_INTEGER),
    ("number_size", SIZEOF_NUMBER),
)


def _expect(field: str, expected: Any, actual: Any, offset: int) -> None:
    if actual != expected:
        raise MalformedHeaderError(field, expected, actual, offset=offset)


def read_header(cursor: ByteCursor, layout: ChunkLayout) -> Header:
    """Consume and validate the header at the cursor's position."""

    offset = cursor.position
    signature = cursor.read_bytes(len(LUA_SIGNATURE))
    _expect("signature", LUA_SIGNATURE, signature, offset)

    offset = cursor.position
    version = cursor.read_byte()
    _expect("version", LUAC_VERSION, version, offset)

    offset = cursor.position
    fmt = cursor.read_byte()
    _expect("format", LUAC_FORMAT, fmt, offset)

    offset = cursor.position
    platform_data = cursor.read_bytes(len(LUAC_DATA))
    _expect("platform_data", LUAC_DATA, platform_data, offset)

    sizes: Dict[str, int] = {}
    for name, expected in SIZE_DESCRIPTORS:
        offset = cursor.position
        actual = cursor.read_byte()
        if actual != expected:
            raise UnsupportedPlatformError(name, expected, actual, offset=offset)
        sizes[name] = actual

    sentinels: Dict[str, Any] = {}
    for which in layout.sentinel_order:
        offset = cursor.position
        if which == "integer":
            value: Any = cursor.read_i64()
            _expect("sentinel_integer", LUAC_INT, value, offset)
        else:
            value = cursor.read_f64()
            _expect("sentinel_number", LUAC_NUM, value, offset)
        sentinels[which] = value

    LOG.debug("header accepted (layout=%s, %d bytes)", layout.name, cursor.position)
    return Header(
        signature=signature,
        version=version,
        format=fmt,
        platform_data=platform_data,
        sentinel_integer=sentinels["integer"],
        sentinel_number=sentinels["number"],
        **sizes,
    )


__all__ = ["read_header", "SIZE_DESCRIPTORS"]
