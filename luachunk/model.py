"""Plain containers describing a decoded chunk."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Optional, Tuple

LUA_SIGNATURE = b"\x1bLua"
LUAC_VERSION = 0x53
LUAC_FORMAT = 0
LUAC_DATA = b"\x19\x93\r\n\x1a\n"
LUAC_INT = 0x5678
LUAC_NUM = 370.5

SIZEOF_INT = 4
SIZEOF_SIZE_T = 8
SIZEOF_INSTRUCTION = 4
SIZEOF_INTEGER = 8
SIZEOF_NUMBER = 8


class ConstantTag(IntEnum):
    """Wire tags of the constant pool entries."""

    NIL = 0x00
    BOOLEAN = 0x01
    NUMBER = 0x03
    SHORT_STRING = 0x04
    INTEGER = 0x13
    LONG_STRING = 0x14


_KIND_BY_TAG = {
    ConstantTag.NIL: "nil",
    ConstantTag.BOOLEAN: "boolean",
    ConstantTag.NUMBER: "number",
    ConstantTag.INTEGER: "integer",
    ConstantTag.SHORT_STRING: "string",
    ConstantTag.LONG_STRING: "string",
}


@dataclass(frozen=True)
class Header:
    """Fixed-layout chunk header."""

    signature: bytes = LUA_SIGNATURE
    version: int = LUAC_VERSION
    format: int = LUAC_FORMAT
    platform_data: bytes = LUAC_DATA
    int_size: int = SIZEOF_INT
    size_t_size: int = SIZEOF_SIZE_T
    instruction_size: int = SIZEOF_INSTRUCTION
    integer_size: int = SIZEOF_INTEGER
    number_size: int = SIZEOF_NUMBER
    sentinel_integer: int = LUAC_INT
    sentinel_number: float = LUAC_NUM

    def as_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature.hex(),
            "version": self.version,
            "format": self.format,
            "platform_data": self.platform_data.hex(),
            "sizes": {
                "int": self.int_size,
                "size_t": self.size_t_size,
                "instruction": self.instruction_size,
                "integer": self.integer_size,
                "number": self.number_size,
            },
            "sentinel_integer": self.sentinel_integer,
            "sentinel_number": self.sentinel_number,
        }


@dataclass(frozen=True)
class Constant:
    """One constant pool entry.

    ``tag`` keeps the wire tag so short and long strings re-encode exactly;
    ``kind`` is the value category consumers should dispatch on.
    """

    tag: ConstantTag
    value: Any = None

    @classmethod
    def nil(cls) -> "Constant":
        return cls(ConstantTag.NIL, None)

    @classmethod
    def boolean(cls, value: bool) -> "Constant":
        return cls(ConstantTag.BOOLEAN, bool(value))

    @classmethod
    def integer(cls, value: int) -> "Constant":
        return cls(ConstantTag.INTEGER, int(value))

    @classmethod
    def number(cls, value: float) -> "Constant":
        return cls(ConstantTag.NUMBER, float(value))

    @classmethod
    def string(cls, value: str, *, long: bool = False) -> "Constant":
        tag = ConstantTag.LONG_STRING if long else ConstantTag.SHORT_STRING
        return cls(tag, value)

    @property
    def kind(self) -> str:
        return _KIND_BY_TAG[self.tag]

    def as_dict(self) -> Dict[str, Any]:
        value = self.value
        if self.kind == "number" and not math.isfinite(value):
            value = repr(value)
        return {"kind": self.kind, "tag": int(self.tag), "value": value}

    def __str__(self) -> str:
        if self.kind == "nil":
            return "nil"
        if self.kind == "boolean":
            return "true" if self.value else "false"
        if self.kind == "string":
            return '"' + self.value.replace("\\", "\\\\").replace('"', '\\"') + '"'
        return repr(self.value)


@dataclass(frozen=True)
class UpValueDescriptor:
    """Where a closure's captured variable lives in the enclosing frame."""

    in_stack: int
    index: int

    def as_dict(self) -> Dict[str, int]:
        return {"in_stack": self.in_stack, "index": self.index}


@dataclass(frozen=True)
class LocalVarDebugEntry:
    name: str
    start_instruction: int
    end_instruction: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "start_instruction": self.start_instruction,
            "end_instruction": self.end_instruction,
        }


@dataclass
class Prototype:
    """Decoded function prototype and its nested children.

    When the stream omits the source name ``source`` holds the name inherited
    from the enclosing prototype and ``source_inherited`` is set.  Left
    unspecified, ``source_inherited`` follows whether ``source`` is empty.
    """

    source: str = ""
    line_defined: int = 0
    last_line_defined: int = 0
    num_params: int = 0
    is_vararg: int = 0
    max_stack_size: int = 0
    instructions: List[int] = field(default_factory=list)
    constants: List[Constant] = field(default_factory=list)
    upvalues: List[UpValueDescriptor] = field(default_factory=list)
    children: List["Prototype"] = field(default_factory=list)
    line_info: List[int] = field(default_factory=list)
    local_vars: List[LocalVarDebugEntry] = field(default_factory=list)
    upvalue_names: List[str] = field(default_factory=list)
    source_inherited: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.source_inherited is None:
            self.source_inherited = not self.source

    def walk(self, path: Tuple[int, ...] = ()) -> Iterator[Tuple[Tuple[int, ...], "Prototype"]]:
        """Yield ``(path, prototype)`` pairs depth-first in stream order."""

        yield path, self
        for index, child in enumerate(self.children):
            yield from child.walk(path + (index,))

    @property
    def has_debug_info(self) -> bool:
        return bool(self.line_info or self.local_vars or self.upvalue_names)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "source_inherited": self.source_inherited,
            "line_defined": self.line_defined,
            "last_line_defined": self.last_line_defined,
            "num_params": self.num_params,
            "is_vararg": self.is_vararg,
            "max_stack_size": self.max_stack_size,
            "instructions": list(self.instructions),
            "constants": [constant.as_dict() for constant in self.constants],
            "upvalues": [upvalue.as_dict() for upvalue in self.upvalues],
            "children": [child.as_dict() for child in self.children],
            "line_info": list(self.line_info),
            "local_vars": [entry.as_dict() for entry in self.local_vars],
            "upvalue_names": list(self.upvalue_names),
        }


@dataclass
class Chunk:
    header: Header
    main_upvalue_count: int
    root: Prototype

    def prototype_count(self) -> int:
        return sum(1 for _ in self.root.walk())

    def as_dict(self) -> Dict[str, Any]:
        return {
            "header": self.header.as_dict(),
            "main_upvalue_count": self.main_upvalue_count,
            "root": self.root.as_dict(),
        }


def format_path(path: Tuple[int, ...]) -> str:
    return "/".join(["root", *(str(index) for index in path)])


__all__ = [
    "LUA_SIGNATURE",
    "LUAC_VERSION",
    "LUAC_FORMAT",
    "LUAC_DATA",
    "LUAC_INT",
    "LUAC_NUM",
    "SIZEOF_INT",
    "SIZEOF_SIZE_T",
    "SIZEOF_INSTRUCTION",
    "SIZEOF_INTEGER",
    "SIZEOF_NUMBER",
    "ConstantTag",
    "Header",
    "Constant",
    "UpValueDescriptor",
    "LocalVarDebugEntry",
    "Prototype",
    "Chunk",
    "format_path",
]
