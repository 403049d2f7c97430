"""Named chunk layouts loaded from ``layouts.json``.

A layout captures the parts of the wire format that differ between chunk
producers: how strings are delimited and in which order the two header
sentinels appear.  Everything else (field order, widths, tags) is fixed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .cursor import ByteCursor
from .exceptions import LayoutError

_CONFIG_PATH = Path(__file__).with_name("layouts.json")

STRING_ENCODINGS = ("cstring", "sized")
SENTINELS = ("number", "integer")


@dataclass(frozen=True)
class ChunkLayout:
    name: str
    string_encoding: str = "cstring"
    sentinel_order: Tuple[str, ...] = SENTINELS
    max_nesting: int = 200
    description: str = ""

    def __post_init__(self) -> None:
        if self.string_encoding not in STRING_ENCODINGS:
            raise LayoutError(
                f"layout {self.name!r}: unknown string encoding {self.string_encoding!r}"
            )
        if sorted(self.sentinel_order) != sorted(SENTINELS):
            raise LayoutError(
                f"layout {self.name!r}: sentinel_order must list {SENTINELS} once each"
            )
        if self.max_nesting < 1:
            raise LayoutError(f"layout {self.name!r}: max_nesting must be positive")

    def read_string(self, cursor: ByteCursor) -> str:
        if self.string_encoding == "sized":
            return cursor.read_sized_string() or ""
        return cursor.read_cstring()

    def read_source(self, cursor: ByteCursor) -> Optional[str]:
        """Read a prototype source name; ``None`` when the stream omits it.

        Zero-terminated layouts cannot tell an empty name from a missing one,
        so an empty name is treated as missing there.
        """

        if self.string_encoding == "sized":
            return cursor.read_sized_string()
        return cursor.read_cstring() or None

    @classmethod
    def from_mapping(cls, name: str, payload: Mapping[str, Any]) -> "ChunkLayout":
        if not isinstance(payload, Mapping):
            raise LayoutError(f"layout {name!r} must be a mapping")
        order = payload.get("sentinel_order", SENTINELS)
        if isinstance(order, str) or not isinstance(order, (list, tuple)):
            raise LayoutError(f"layout {name!r}: sentinel_order must be a list")
        try:
            max_nesting = int(payload.get("max_nesting", 200))
        except (TypeError, ValueError) as exc:
            raise LayoutError(f"layout {name!r}: max_nesting must be an integer") from exc
        return cls(
            name=name,
            string_encoding=str(payload.get("string_encoding", "cstring")),
            sentinel_order=tuple(str(item) for item in order),
            max_nesting=max_nesting,
            description=str(payload.get("description", "")),
        )


def load_layouts(path: Optional[Path] = None) -> Tuple[str, Dict[str, ChunkLayout]]:
    """Return ``(default_name, layouts)`` parsed from ``path``."""

    source = path or _CONFIG_PATH
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise LayoutError(f"malformed layout configuration {source}: {exc}") from exc
    entries = data.get("layouts") if isinstance(data, Mapping) else None
    if not isinstance(entries, Mapping) or not entries:
        raise LayoutError(f"layout configuration {source} declares no layouts")
    layouts = {
        str(name): ChunkLayout.from_mapping(str(name), payload)
        for name, payload in entries.items()
    }
    default = str(data.get("default", next(iter(layouts))))
    if default not in layouts:
        raise LayoutError(f"default layout {default!r} is not declared in {source}")
    return default, layouts


_DEFAULT_NAME, _LAYOUTS = load_layouts()


def available_layouts() -> List[str]:
    return sorted(_LAYOUTS)


def get_layout(layout: Union[str, ChunkLayout, None] = None) -> ChunkLayout:
    """Resolve ``layout`` (a name, an instance or ``None`` for the default)."""

    if isinstance(layout, ChunkLayout):
        return layout
    name = _DEFAULT_NAME if layout is None else layout
    try:
        return _LAYOUTS[name]
    except KeyError:
        raise LayoutError(
            f"unknown layout {name!r}; expected one of {', '.join(available_layouts())}"
        ) from None


__all__ = [
    "ChunkLayout",
    "available_layouts",
    "get_layout",
    "load_layouts",
]
