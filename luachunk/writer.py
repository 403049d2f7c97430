"""Chunk encoder mirroring the decoder field by field.

:class:`ChunkWriter` appends one primitive at a time and records what it
wrote (operation, offset, size, label) so a produced buffer can be annotated
or compared against a decoder trace.  :func:`encode` is the inverse of
:func:`luachunk.loader.decode` for a given layout.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .layouts import ChunkLayout, get_layout
from .loader import LayoutSpec
from .model import Chunk, Constant, ConstantTag, Header, Prototype

_U32_MAX = 0xFFFFFFFF
_LONG_STRING_MARKER = 0xFF


class WriterLogEntry(dict):
    """Typed alias for log entries captured by :class:`ChunkWriter`."""


@dataclass
class ChunkWriter:
    layout: ChunkLayout = field(default_factory=get_layout)
    buf: bytearray = field(default_factory=bytearray)
    log: List[WriterLogEntry] = field(default_factory=list)

    def write_u8(self, value: int, *, label: Optional[str] = None) -> None:
        if value < 0 or value > 0xFF:
            raise ValueError(f"write_u8 expects an unsigned byte, got {value!r}")
        self._record_write(op="u8", label=label, payload=value, data=bytes([value]))

    def write_u32(self, value: int, *, label: Optional[str] = None) -> None:
        if value < 0 or value > _U32_MAX:
            raise ValueError(f"write_u32 expects an unsigned 32-bit value, got {value!r}")
        self._record_write(
            op="u32", label=label, payload=value, data=value.to_bytes(4, "little")
        )

    def write_u64(self, value: int, *, label: Optional[str] = None) -> None:
        if value < 0 or value >= 1 << 64:
            raise ValueError(f"write_u64 expects an unsigned 64-bit value, got {value!r}")
        self._record_write(
            op="u64", label=label, payload=value, data=value.to_bytes(8, "little")
        )

    def write_i64(self, value: int, *, label: Optional[str] = None) -> None:
        if not -(1 << 63) <= value < (1 << 63):
            raise ValueError(f"write_i64 expects a signed 64-bit value, got {value!r}")
        self._record_write(
            op="i64",
            label=label,
            payload=value,
            data=value.to_bytes(8, "little", signed=True),
        )

    def write_f64(self, value: float, *, label: Optional[str] = None) -> None:
        self._record_write(
            op="f64", label=label, payload=value, data=struct.pack("<d", value)
        )

    def write_bytes(self, data: bytes, *, label: Optional[str] = None) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("data must provide the buffer protocol")
        payload = bytes(data)
        self._record_write(op="bytes", label=label, payload=payload, data=payload)

    def write_string(
        self, value: str, *, absent: bool = False, label: Optional[str] = None
    ) -> None:
        """Write ``value`` using the layout's string encoding.

        ``absent`` marks a missing string (an inherited source name); sized
        layouts distinguish it from an empty one.
        """

        if absent:
            value = ""
        encoded = value.encode("utf-8")
        if self.layout.string_encoding == "sized":
            self._write_sized(encoded, absent=absent, label=label)
            return
        if b"\x00" in encoded:
            raise ValueError("zero-terminated strings cannot contain NUL bytes")
        self._record_write(op="cstring", label=label, payload=value, data=encoded + b"\x00")

    def _write_sized(self, encoded: bytes, *, absent: bool, label: Optional[str]) -> None:
        if absent:
            self.write_u8(0, label=f"{label}.size" if label else None)
            return
        size = len(encoded) + 1
        if size < _LONG_STRING_MARKER:
            self.write_u8(size, label=f"{label}.size" if label else None)
        else:
            self.write_u8(_LONG_STRING_MARKER, label=f"{label}.size_marker" if label else None)
            self.write_u64(size, label=f"{label}.size" if label else None)
        self.write_bytes(encoded, label=f"{label}.data" if label else None)

    def _record_write(
        self,
        *,
        op: str,
        payload: Any,
        data: bytes,
        label: Optional[str] = None,
    ) -> None:
        offset = len(self.buf)
        self.buf.extend(data)
        entry = WriterLogEntry(
            op=op, offset=offset, size=len(data), label=label, value=payload
        )
        self.log.append(entry)

    # -- structures ---------------------------------------------------

    def write_header(self, header: Header) -> None:
        self.write_bytes(header.signature, label="header.signature")
        self.write_u8(header.version, label="header.version")
        self.write_u8(header.format, label="header.format")
        self.write_bytes(header.platform_data, label="header.platform_data")
        self.write_u8(header.int_size, label="header.int_size")
        self.write_u8(header.size_t_size, label="header.size_t_size")
        self.write_u8(header.instruction_size, label="header.instruction_size")
        self.write_u8(header.integer_size, label="header.integer_size")
        self.write_u8(header.number_size, label="header.number_size")
        for which in self.layout.sentinel_order:
            if which == "integer":
                self.write_i64(header.sentinel_integer, label="header.sentinel_integer")
            else:
                self.write_f64(header.sentinel_number, label="header.sentinel_number")

    def write_constant(self, constant: Constant, *, label: str) -> None:
        tag = constant.tag
        self.write_u8(int(tag), label=f"{label}.tag")
        if tag is ConstantTag.NIL:
            return
        if tag is ConstantTag.BOOLEAN:
            self.write_u8(1 if constant.value else 0, label=f"{label}.bool")
        elif tag is ConstantTag.NUMBER:
            self.write_f64(float(constant.value), label=f"{label}.number")
        elif tag is ConstantTag.INTEGER:
            self.write_i64(int(constant.value), label=f"{label}.integer")
        else:
            self.write_string(str(constant.value), label=f"{label}.string")

    def write_prototype(self, proto: Prototype, *, label: str = "root") -> None:
        if (
            not proto.source
            and not proto.source_inherited
            and self.layout.string_encoding == "cstring"
        ):
            raise ValueError(
                f"{label}: zero-terminated layouts cannot encode an empty source "
                "that is not inherited"
            )
        self.write_string(
            proto.source, absent=proto.source_inherited, label=f"{label}.source"
        )
        self.write_u32(proto.line_defined, label=f"{label}.line_defined")
        self.write_u32(proto.last_line_defined, label=f"{label}.last_line_defined")
        self.write_u8(proto.num_params, label=f"{label}.num_params")
        self.write_u8(proto.is_vararg, label=f"{label}.is_vararg")
        self.write_u8(proto.max_stack_size, label=f"{label}.max_stack_size")

        self.write_u32(len(proto.instructions), label=f"{label}.code_count")
        for pc, word in enumerate(proto.instructions):
            self.write_u32(word, label=f"{label}.code[{pc}]")

        self.write_u32(len(proto.constants), label=f"{label}.constant_count")
        for index, constant in enumerate(proto.constants):
            self.write_constant(constant, label=f"{label}.const[{index}]")

        self.write_u32(len(proto.upvalues), label=f"{label}.upvalue_count")
        for index, upvalue in enumerate(proto.upvalues):
            self.write_u8(upvalue.in_stack, label=f"{label}.upvalue[{index}].in_stack")
            self.write_u8(upvalue.index, label=f"{label}.upvalue[{index}].index")

        self.write_u32(len(proto.children), label=f"{label}.child_count")
        for index, child in enumerate(proto.children):
            self.write_prototype(child, label=f"{label}/{index}")

        self.write_u32(len(proto.line_info), label=f"{label}.line_info_count")
        for pc, line in enumerate(proto.line_info):
            self.write_u32(line, label=f"{label}.line_info[{pc}]")

        self.write_u32(len(proto.local_vars), label=f"{label}.local_var_count")
        for index, entry in enumerate(proto.local_vars):
            self.write_string(entry.name, label=f"{label}.local_var[{index}].name")
            self.write_u32(entry.start_instruction, label=f"{label}.local_var[{index}].start")
            self.write_u32(entry.end_instruction, label=f"{label}.local_var[{index}].end")

        self.write_u32(len(proto.upvalue_names), label=f"{label}.upvalue_name_count")
        for index, name in enumerate(proto.upvalue_names):
            self.write_string(name, label=f"{label}.upvalue_name[{index}]")

    def write_chunk(self, chunk: Chunk) -> None:
        self.write_header(chunk.header)
        self.write_u8(chunk.main_upvalue_count, label="main_upvalue_count")
        self.write_prototype(chunk.root)

    def snapshot(self) -> Dict[str, Any]:
        """Return a copy of the current buffer/log for analysis."""

        return {"buf": bytes(self.buf), "log": list(self.log)}


def encode(chunk: Chunk, *, layout: LayoutSpec = None) -> bytes:
    """Serialise ``chunk`` with ``layout`` (the default layout when omitted)."""

    writer = ChunkWriter(layout=get_layout(layout))
    writer.write_chunk(chunk)
    return bytes(writer.buf)


__all__ = ["ChunkWriter", "WriterLogEntry", "encode"]
