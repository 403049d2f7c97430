"""Cross-field consistency checks over a decoded chunk.

The decoder only guarantees that every array was well formed on the wire.
These checks look at how the arrays relate to each other and report
problems as :class:`ConsistencyIssue` records instead of raising, so a caller
can decide whether a chunk is fit to run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .listing import disassemble
from .model import Chunk, Prototype, format_path

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsistencyIssue:
    path: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def check_prototype(proto: Prototype, path: Tuple[int, ...] = ()) -> List[ConsistencyIssue]:
    """Check a single prototype (not its children)."""

    where = format_path(path)
    issues: List[ConsistencyIssue] = []

    def report(message: str) -> None:
        issues.append(ConsistencyIssue(where, message))

    code_size = len(proto.instructions)
    if proto.line_info and len(proto.line_info) != code_size:
        report(f"line_info has {len(proto.line_info)} entries for {code_size} instructions")
    if proto.upvalue_names and len(proto.upvalue_names) != len(proto.upvalues):
        report(
            f"{len(proto.upvalue_names)} upvalue names for {len(proto.upvalues)} upvalues"
        )
    for index, entry in enumerate(proto.local_vars):
        if entry.start_instruction > entry.end_instruction:
            report(f"local {index} ({entry.name!r}) ends before it starts")
        elif entry.end_instruction > code_size:
            report(f"local {index} ({entry.name!r}) extends past the last instruction")
    if proto.num_params > proto.max_stack_size:
        report(
            f"{proto.num_params} parameters exceed max stack size {proto.max_stack_size}"
        )
    for upvalue in proto.upvalues:
        if upvalue.in_stack not in (0, 1):
            report(f"upvalue in_stack flag {upvalue.in_stack} is not 0 or 1")
            break

    for inst in disassemble(proto):
        if inst.name == "LOADK" and inst.bx >= len(proto.constants):
            report(f"pc {inst.pc}: LOADK references missing constant {inst.bx}")
        elif inst.name == "CLOSURE" and inst.bx >= len(proto.children):
            report(f"pc {inst.pc}: CLOSURE references missing function {inst.bx}")
    return issues


def check_chunk(chunk: Chunk) -> List[ConsistencyIssue]:
    """Return every issue found in ``chunk``; an empty list means consistent."""

    issues: List[ConsistencyIssue] = []
    if chunk.main_upvalue_count != len(chunk.root.upvalues):
        issues.append(
            ConsistencyIssue(
                "root",
                f"chunk declares {chunk.main_upvalue_count} main upvalues, "
                f"root prototype has {len(chunk.root.upvalues)}",
            )
        )
    for path, proto in chunk.root.walk():
        issues.extend(check_prototype(proto, path))
    LOG.debug("consistency check found %d issue(s)", len(issues))
    return issues


__all__ = ["ConsistencyIssue", "check_chunk", "check_prototype"]
