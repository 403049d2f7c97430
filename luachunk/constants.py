"""Decoding of constant pool entries."""

from __future__ import annotations

from typing import List

from .cursor import ByteCursor
from .exceptions import UnknownConstantTagError
from .layouts import ChunkLayout
from .model import Constant, ConstantTag

_DEFINED_TAGS = frozenset(int(tag) for tag in ConstantTag)


def read_constant(cursor: ByteCursor, layout: ChunkLayout) -> Constant:
    """Read one tag byte and the payload it selects."""

    offset = cursor.position
    raw_tag = cursor.read_byte()
    if raw_tag not in _DEFINED_TAGS:
        raise UnknownConstantTagError(raw_tag, offset=offset)
    tag = ConstantTag(raw_tag)
    if tag is ConstantTag.NIL:
        return Constant.nil()
    if tag is ConstantTag.BOOLEAN:
        return Constant.boolean(cursor.read_byte() != 0)
    if tag is ConstantTag.NUMBER:
        return Constant.number(cursor.read_f64())
    if tag is ConstantTag.INTEGER:
        return Constant.integer(cursor.read_i64())
    return Constant.string(layout.read_string(cursor), long=tag is ConstantTag.LONG_STRING)


def read_constants(cursor: ByteCursor, layout: ChunkLayout) -> List[Constant]:
    count = cursor.read_u32()
    return [read_constant(cursor, layout) for _ in range(count)]


__all__ = ["read_constant", "read_constants"]
