"""Per-prototype debug arrays.

Each array is prefixed by a 32-bit count.  Stripped chunks carry zero counts
for all three, which is valid.  No cross-checks against the instruction
count happen here; see :mod:`luachunk.verify`.
"""

from __future__ import annotations

import struct
from typing import List, Tuple

from .cursor import ByteCursor
from .layouts import ChunkLayout
from .model import LocalVarDebugEntry


def read_u32_array(cursor: ByteCursor) -> List[int]:
    """Read a count-prefixed array of little-endian 32-bit words."""

    count = cursor.read_u32()
    if not count:
        return []
    payload = cursor.read_bytes(4 * count)
    return list(struct.unpack(f"<{count}I", payload))


def read_line_info(cursor: ByteCursor) -> List[int]:
    return read_u32_array(cursor)


def read_local_vars(cursor: ByteCursor, layout: ChunkLayout) -> List[LocalVarDebugEntry]:
    count = cursor.read_u32()
    entries: List[LocalVarDebugEntry] = []
    for _ in range(count):
        name = layout.read_string(cursor)
        start = cursor.read_u32()
        end = cursor.read_u32()
        entries.append(LocalVarDebugEntry(name, start, end))
    return entries


def read_upvalue_names(cursor: ByteCursor, layout: ChunkLayout) -> List[str]:
    count = cursor.read_u32()
    return [layout.read_string(cursor) for _ in range(count)]


def read_debug_info(
    cursor: ByteCursor, layout: ChunkLayout
) -> Tuple[List[int], List[LocalVarDebugEntry], List[str]]:
    """Return ``(line_info, local_vars, upvalue_names)`` in stream order."""

    line_info = read_line_info(cursor)
    local_vars = read_local_vars(cursor, layout)
    upvalue_names = read_upvalue_names(cursor, layout)
    return line_info, local_vars, upvalue_names


__all__ = [
    "read_u32_array",
    "read_line_info",
    "read_local_vars",
    "read_upvalue_names",
    "read_debug_info",
]
