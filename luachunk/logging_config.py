"""Logging helpers for the command line interface."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

__all__ = [
    "configure_logging",
    "colorize_text",
]

_COLOR_CODES = {
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
}


def colorize_text(text: str, color: str) -> str:
    """Return *text* wrapped in ANSI color codes."""
    code = _COLOR_CODES.get(color, "0")
    return f"\033[{code}m{text}\033[0m"


class _ColourFormatter(logging.Formatter):
    COLOURS = {
        logging.DEBUG: "blue",
        logging.INFO: "green",
        logging.WARNING: "yellow",
        logging.ERROR: "red",
        logging.CRITICAL: "magenta",
    }

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - trivial wrapper
        message = super().format(record)
        colour = self.COLOURS.get(record.levelno, "green")
        return colorize_text(message, colour)


def configure_logging(verbose: bool, log_file: Optional[Path] = None) -> None:
    """Configure root logging handlers.

    Existing root handlers are removed so repeated invocations (tests, nested
    CLI calls) do not stack duplicate output.  Warnings always reach stderr;
    ``verbose`` lowers the threshold to DEBUG.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    level = logging.DEBUG if verbose else logging.WARNING
    root.setLevel(level)

    stream = logging.StreamHandler()
    stream.setFormatter(_ColourFormatter("%(levelname)s: %(message)s"))
    root.addHandler(stream)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
