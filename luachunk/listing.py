"""Instruction field splitting and ``luac -l`` style listings.

Instruction words use the Lua 5.3 encoding: a 6-bit opcode in the low bits
followed by ``A`` (8 bits), ``C`` (9 bits) and ``B`` (9 bits).  ``Bx`` spans
the ``B`` and ``C`` fields, ``sBx`` is ``Bx`` with an excess-K bias and ``Ax``
covers everything above the opcode.  This is presentation only; nothing here
interprets what an instruction does.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .model import Chunk, Prototype, format_path


@dataclass(frozen=True)
class FieldConfig:
    """Describe how a single operand field is encoded within a word."""

    mask: int
    shift: int

    def extract(self, word: int) -> int:
        return (word >> self.shift) & self.mask


FIELDS: Dict[str, FieldConfig] = {
    "opcode": FieldConfig(mask=0x3F, shift=0),
    "a": FieldConfig(mask=0xFF, shift=6),
    "c": FieldConfig(mask=0x1FF, shift=14),
    "b": FieldConfig(mask=0x1FF, shift=23),
    "bx": FieldConfig(mask=0x3FFFF, shift=14),
    "ax": FieldConfig(mask=0x3FFFFFF, shift=6),
}

MAXARG_SBX = 0x3FFFF >> 1
RK_CONSTANT_BIT = 1 << 8

# (name, mode) indexed by opcode number.
OPCODES: Tuple[Tuple[str, str], ...] = (
    ("MOVE", "iABC"),
    ("LOADK", "iABx"),
    ("LOADKX", "iABx"),
    ("LOADBOOL", "iABC"),
    ("LOADNIL", "iABC"),
    ("GETUPVAL", "iABC"),
    ("GETTABUP", "iABC"),
    ("GETTABLE", "iABC"),
    ("SETTABUP", "iABC"),
    ("SETUPVAL", "iABC"),
    ("SETTABLE", "iABC"),
    ("NEWTABLE", "iABC"),
    ("SELF", "iABC"),
    ("ADD", "iABC"),
    ("SUB", "iABC"),
    ("MUL", "iABC"),
    ("MOD", "iABC"),
    ("POW", "iABC"),
    ("DIV", "iABC"),
    ("IDIV", "iABC"),
    ("BAND", "iABC"),
    ("BOR", "iABC"),
    ("BXOR", "iABC"),
    ("SHL", "iABC"),
    ("SHR", "iABC"),
    ("UNM", "iABC"),
    ("BNOT", "iABC"),
    ("NOT", "iABC"),
    ("LEN", "iABC"),
    ("CONCAT", "iABC"),
    ("JMP", "iAsBx"),
    ("EQ", "iABC"),
    ("LT", "iABC"),
    ("LE", "iABC"),
    ("TEST", "iABC"),
    ("TESTSET", "iABC"),
    ("CALL", "iABC"),
    ("TAILCALL", "iABC"),
    ("RETURN", "iABC"),
    ("FORLOOP", "iAsBx"),
    ("FORPREP", "iAsBx"),
    ("TFORCALL", "iABC"),
    ("TFORLOOP", "iAsBx"),
    ("SETLIST", "iABC"),
    ("CLOSURE", "iABx"),
    ("VARARG", "iABC"),
    ("EXTRAARG", "iAx"),
)

# Opcodes whose B and/or C operand may name a constant (RK encoding).
_RK_OPERANDS = {
    "GETTABUP": "c",
    "GETTABLE": "c",
    "SETTABUP": "bc",
    "SETTABLE": "bc",
    "SELF": "c",
    "ADD": "bc",
    "SUB": "bc",
    "MUL": "bc",
    "MOD": "bc",
    "POW": "bc",
    "DIV": "bc",
    "IDIV": "bc",
    "BAND": "bc",
    "BOR": "bc",
    "BXOR": "bc",
    "SHL": "bc",
    "SHR": "bc",
    "EQ": "bc",
    "LT": "bc",
    "LE": "bc",
}


@dataclass(frozen=True)
class Instruction:
    """A split instruction word."""

    pc: int
    raw: int
    opcode: int
    name: str
    mode: str
    a: int
    b: int
    c: int
    bx: int
    sbx: int
    ax: int

    def operands(self) -> Tuple[int, ...]:
        """Operands in the order ``luac -l`` prints them.

        RK operands that name a constant are shown as ``-1 - index``.
        """

        if self.mode == "iABx":
            return (self.a, -1 - self.bx) if self.name in ("LOADK", "LOADKX") else (self.a, self.bx)
        if self.mode == "iAsBx":
            return (self.a, self.sbx)
        if self.mode == "iAx":
            return (-1 - self.ax,)
        rk = _RK_OPERANDS.get(self.name, "")
        b = _rk(self.b) if "b" in rk else self.b
        c = _rk(self.c) if "c" in rk else self.c
        return (self.a, b, c)

    def as_dict(self) -> Dict[str, object]:
        return {
            "pc": self.pc,
            "raw": self.raw,
            "opcode": self.opcode,
            "name": self.name,
            "mode": self.mode,
            "operands": list(self.operands()),
        }


def _rk(value: int) -> int:
    if value & RK_CONSTANT_BIT:
        return -1 - (value & ~RK_CONSTANT_BIT)
    return value


def opcode_info(opcode: int) -> Tuple[str, str]:
    if 0 <= opcode < len(OPCODES):
        return OPCODES[opcode]
    return f"OP_{opcode}", "iABC"


def split_instruction(word: int, pc: int = 0) -> Instruction:
    opcode = FIELDS["opcode"].extract(word)
    name, mode = opcode_info(opcode)
    bx = FIELDS["bx"].extract(word)
    return Instruction(
        pc=pc,
        raw=word,
        opcode=opcode,
        name=name,
        mode=mode,
        a=FIELDS["a"].extract(word),
        b=FIELDS["b"].extract(word),
        c=FIELDS["c"].extract(word),
        bx=bx,
        sbx=bx - MAXARG_SBX,
        ax=FIELDS["ax"].extract(word),
    )


def disassemble(proto: Prototype) -> List[Instruction]:
    return [split_instruction(word, pc) for pc, word in enumerate(proto.instructions)]


def _comment(proto: Prototype, inst: Instruction) -> Optional[str]:
    if inst.name == "LOADK" and inst.bx < len(proto.constants):
        return str(proto.constants[inst.bx])
    if inst.name == "CLOSURE":
        return f"function #{inst.bx}"
    if inst.name in ("GETUPVAL", "SETUPVAL") and inst.b < len(proto.upvalue_names):
        return proto.upvalue_names[inst.b]
    if inst.mode == "iAsBx":
        return f"to {inst.pc + inst.sbx + 2}"
    refs = [value for value in inst.operands()[1:] if value < 0 and inst.mode == "iABC"]
    shown = [str(proto.constants[-1 - ref]) for ref in refs if -1 - ref < len(proto.constants)]
    return " ".join(shown) or None


def format_prototype(proto: Prototype, path: Tuple[int, ...] = ()) -> List[str]:
    kind = "main" if not path else "function"
    vararg = "+" if proto.is_vararg else ""
    lines = [
        f"{kind} <{proto.source or '?'}:{proto.line_defined},{proto.last_line_defined}> "
        f"({len(proto.instructions)} instructions) [{format_path(path)}]",
        f"{proto.num_params}{vararg} params, {proto.max_stack_size} slots, "
        f"{len(proto.upvalues)} upvalues, {len(proto.local_vars)} locals, "
        f"{len(proto.constants)} constants, {len(proto.children)} functions",
    ]
    for inst in disassemble(proto):
        line = proto.line_info[inst.pc] if inst.pc < len(proto.line_info) else None
        operands = " ".join(str(value) for value in inst.operands())
        text = f"\t{inst.pc + 1}\t[{line if line is not None else '-'}]\t{inst.name:<9}\t{operands}"
        comment = _comment(proto, inst)
        if comment:
            text += f"\t; {comment}"
        lines.append(text)
    return lines


def format_listing(chunk: Chunk) -> str:
    """Render every prototype of ``chunk`` depth-first in stream order."""

    blocks: List[str] = []
    for path, proto in chunk.root.walk():
        blocks.append("\n".join(format_prototype(proto, path)))
    return "\n\n".join(blocks) + "\n"


__all__ = [
    "FIELDS",
    "OPCODES",
    "FieldConfig",
    "Instruction",
    "disassemble",
    "format_listing",
    "format_prototype",
    "opcode_info",
    "split_instruction",
]
