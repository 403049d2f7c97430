"""Loader for precompiled Lua 5.3 chunks.

``decode`` turns the bytes produced by an external compiler into a tree of
:class:`Prototype` records; ``encode`` writes such a tree back out.
"""

from __future__ import annotations

from .cursor import ByteCursor
from .exceptions import (
    ChunkDecodeError,
    InvalidTextError,
    LayoutError,
    MalformedHeaderError,
    NestingTooDeepError,
    TruncatedInputError,
    UnknownConstantTagError,
    UnsupportedPlatformError,
)
from .layouts import ChunkLayout, available_layouts, get_layout
from .loader import decode, load_file
from .model import (
    Chunk,
    Constant,
    ConstantTag,
    Header,
    LocalVarDebugEntry,
    Prototype,
    UpValueDescriptor,
)
from .verify import ConsistencyIssue, check_chunk
from .writer import ChunkWriter, encode

__version__ = "0.1.0"

__all__ = [
    "ByteCursor",
    "Chunk",
    "ChunkDecodeError",
    "ChunkLayout",
    "ChunkWriter",
    "ConsistencyIssue",
    "Constant",
    "ConstantTag",
    "Header",
    "InvalidTextError",
    "LayoutError",
    "LocalVarDebugEntry",
    "MalformedHeaderError",
    "NestingTooDeepError",
    "Prototype",
    "TruncatedInputError",
    "UnknownConstantTagError",
    "UnsupportedPlatformError",
    "UpValueDescriptor",
    "available_layouts",
    "check_chunk",
    "decode",
    "encode",
    "get_layout",
    "load_file",
]
