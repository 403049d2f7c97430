"""Command line entry point for inspecting compiled chunks."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .exceptions import ChunkDecodeError, LayoutError
from .layouts import available_layouts, get_layout
from .listing import format_listing
from .loader import load_file
from .logging_config import configure_logging
from .model import Chunk
from .verify import check_chunk

LOG = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_DECODE_ERROR = 2


def _summary(chunk: Chunk, path: Path) -> List[str]:
    header = chunk.header
    lines = [
        f"file: {path}",
        f"version: 0x{header.version:02x} format: {header.format}",
        "sizes: int={int_size} size_t={size_t_size} instruction={instruction_size} "
        "integer={integer_size} number={number_size}".format(
            int_size=header.int_size,
            size_t_size=header.size_t_size,
            instruction_size=header.instruction_size,
            integer_size=header.integer_size,
            number_size=header.number_size,
        ),
        f"main upvalues: {chunk.main_upvalue_count}",
        f"prototypes: {chunk.prototype_count()}",
    ]
    for proto_path, proto in chunk.root.walk():
        indent = "  " * len(proto_path)
        label = "main" if not proto_path else f"function {'/'.join(str(i) for i in proto_path)}"
        lines.append(
            f"{indent}{label} <{proto.source or '?'}:{proto.line_defined}> "
            f"code={len(proto.instructions)} constants={len(proto.constants)} "
            f"upvalues={len(proto.upvalues)} children={len(proto.children)}"
            + ("" if proto.has_debug_info else " (stripped)")
        )
    return lines


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="luachunk", description="Decode and inspect compiled Lua chunks"
    )
    parser.add_argument(
        "--layout",
        choices=available_layouts(),
        default=None,
        help=f"Chunk layout (default: {get_layout().name})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Print a header and prototype summary")
    info.add_argument("input", type=Path)

    listing = sub.add_parser("list", help="Print an instruction listing")
    listing.add_argument("input", type=Path)

    dump = sub.add_parser("json", help="Dump the decoded tree as JSON")
    dump.add_argument("input", type=Path)
    dump.add_argument("--out", type=Path, default=None, help="Write JSON to this path")
    dump.add_argument("--indent", type=int, default=2)

    verify = sub.add_parser("verify", help="Run cross-field consistency checks")
    verify.add_argument("input", type=Path)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    try:
        chunk = load_file(args.input, layout=args.layout)
    except ChunkDecodeError as exc:
        print(f"error: {exc.describe()}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except (OSError, LayoutError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_DECODE_ERROR

    if args.command == "info":
        print("\n".join(_summary(chunk, args.input)))
        return EXIT_OK

    if args.command == "list":
        sys.stdout.write(format_listing(chunk))
        return EXIT_OK

    if args.command == "json":
        text = json.dumps(chunk.as_dict(), indent=args.indent, ensure_ascii=False)
        if args.out is None:
            print(text)
        else:
            args.out.parent.mkdir(parents=True, exist_ok=True)
            args.out.write_text(text + "\n", encoding="utf-8")
            LOG.info("wrote %s", args.out)
        return EXIT_OK

    if args.command == "verify":
        issues = check_chunk(chunk)
        for issue in issues:
            print(issue)
        if issues:
            return EXIT_ISSUES
        print("ok")
        return EXIT_OK

    parser.error("Unhandled command")


if __name__ == "__main__":  # pragma: no cover - CLI wrapper
    raise SystemExit(main())
