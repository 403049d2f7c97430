"""Recursive decoding of function prototypes."""

from __future__ import annotations

import logging
from typing import List

from .constants import read_constants
from .cursor import ByteCursor
from .debuginfo import read_debug_info, read_u32_array
from .exceptions import NestingTooDeepError
from .layouts import ChunkLayout
from .model import Prototype, UpValueDescriptor

LOG = logging.getLogger(__name__)


def read_upvalues(cursor: ByteCursor) -> List[UpValueDescriptor]:
    """Read the upvalue descriptor table.

    The count travels as its own 4-byte block which is reinterpreted through a
    separate cursor before the ``(in_stack, index)`` pairs are consumed.
    """

    count = ByteCursor(cursor.read_bytes(4)).read_u32()
    upvalues: List[UpValueDescriptor] = []
    for _ in range(count):
        in_stack = cursor.read_byte()
        index = cursor.read_byte()
        upvalues.append(UpValueDescriptor(in_stack, index))
    return upvalues


def read_prototype(
    cursor: ByteCursor,
    parent_source: str,
    layout: ChunkLayout,
    *,
    depth: int = 0,
) -> Prototype:
    """Decode one prototype and, recursively, all of its children.

    A missing source name means the prototype shares its parent's name.  The
    remaining fields are always decoded so the cursor stays in step with the
    stream.
    """

    if depth >= layout.max_nesting:
        raise NestingTooDeepError(layout.max_nesting, offset=cursor.position)

    source = layout.read_source(cursor)
    inherited = source is None
    if source is None:
        source = parent_source

    line_defined = cursor.read_u32()
    last_line_defined = cursor.read_u32()
    num_params = cursor.read_byte()
    is_vararg = cursor.read_byte()
    max_stack_size = cursor.read_byte()

    instructions = read_u32_array(cursor)
    constants = read_constants(cursor, layout)
    upvalues = read_upvalues(cursor)

    child_count = cursor.read_u32()
    children = [
        read_prototype(cursor, source, layout, depth=depth + 1)
        for _ in range(child_count)
    ]

    line_info, local_vars, upvalue_names = read_debug_info(cursor, layout)

    LOG.debug(
        "prototype %s:%d depth=%d code=%d constants=%d upvalues=%d children=%d",
        source or "?",
        line_defined,
        depth,
        len(instructions),
        len(constants),
        len(upvalues),
        len(children),
    )
    return Prototype(
        source=source,
        line_defined=line_defined,
        last_line_defined=last_line_defined,
        num_params=num_params,
        is_vararg=is_vararg,
        max_stack_size=max_stack_size,
        instructions=instructions,
        constants=constants,
        upvalues=upvalues,
        children=children,
        line_info=line_info,
        local_vars=local_vars,
        upvalue_names=upvalue_names,
        source_inherited=inherited,
    )


__all__ = ["read_prototype", "read_upvalues"]
