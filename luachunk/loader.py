"""Top-level entry points turning chunk bytes into a :class:`Chunk` tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

from .cursor import ByteCursor, BytesLike
from .header import read_header
from .layouts import ChunkLayout, get_layout
from .model import Chunk
from .prototype import read_prototype

LOG = logging.getLogger(__name__)

LayoutSpec = Union[str, ChunkLayout, None]


def decode(buffer: BytesLike, *, layout: LayoutSpec = None) -> Chunk:
    """Decode ``buffer`` into a :class:`Chunk`.

    Any malformed input raises a :class:`~luachunk.exceptions.ChunkDecodeError`
    subclass carrying the byte offset of the offending field; no partially
    populated tree is ever returned.
    """

    resolved = get_layout(layout)
    cursor = ByteCursor(buffer)
    header = read_header(cursor, resolved)
    main_upvalue_count = cursor.read_byte()
    root = read_prototype(cursor, "", resolved)
    if not cursor.at_end:
        LOG.warning(
            "%d trailing byte(s) after the root prototype at offset 0x%x",
            cursor.remaining,
            cursor.position,
        )
    LOG.debug(
        "decoded chunk: %d byte(s), main upvalues=%d, root=%s",
        len(cursor),
        main_upvalue_count,
        root.source or "?",
    )
    return Chunk(header=header, main_upvalue_count=main_upvalue_count, root=root)


def load_file(path: Union[str, os.PathLike], *, layout: LayoutSpec = None) -> Chunk:
    """Read ``path`` and decode its contents."""

    target = Path(path)
    data = target.read_bytes()
    LOG.debug("loaded %s (%d bytes)", target, len(data))
    return decode(data, layout=layout)


__all__ = ["decode", "load_file", "LayoutSpec"]
