"""Coloured status lines for warnings and successes."""

from __future__ import annotations

import os

from rich.console import Console
from rich.text import Text


def _no_emoji() -> bool:
    return "NO_EMOJI" in os.environ


def _emit(symbol: str, fallback: str, message: str, color: str) -> str:
    mark = fallback if _no_emoji() else symbol
    line = f"{mark} {message}"
    console = Console(highlight=False, soft_wrap=True)
    console.print(Text(line, style=color))
    return line


def warn(message: str) -> str:
    """Print a red warning line and return its plain text."""
    return _emit("⚠️ ", "!", message, "red")


def success(message: str) -> str:
    """Print a green success line and return its plain text."""
    return _emit("✅", "✓", message, "green")