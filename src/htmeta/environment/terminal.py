"""Terminal color utilities for diagnostics.

ANSI colors with automatic TTY detection and NO_COLOR / FORCE_COLOR support.
"""

from __future__ import annotations

import os
import sys
from typing import Literal

_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "bright_red": "\033[91m",
}

ColorName = Literal["reset", "bold", "dim", "cyan", "green", "bright_red"]


def _should_use_colors() -> bool:
    """Check whether diagnostics should be colored.

    Respects:
        - FORCE_COLOR (overrides everything)
        - NO_COLOR (https://no-color.org/)
        - ``sys.stderr.isatty()``, since diagnostics go to stderr
    """
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stderr.isatty()


_USE_COLORS = _should_use_colors()


def colorize(text: str, *colors: ColorName) -> str:
    """Apply ANSI color codes to text, or return it unchanged when colors are off.

    Example:
        >>> colorize("Error", "bright_red", "bold")
        '\033[91m\033[1mError\033[0m'  # if colors supported
        'Error'  # if colors not supported
    """
    if not _USE_COLORS or not colors:
        return text
    prefix = "".join(_COLORS.get(color, "") for color in colors)
    if not prefix:
        return text
    return f"{prefix}{text}{_COLORS['reset']}"


def error_code(text: str) -> str:
    return colorize(text, "bright_red", "bold")


def location(text: str) -> str:
    return colorize(text, "cyan")


def hint(text: str) -> str:
    return colorize(text, "green")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def format_error_header(code: str | None, message: str) -> str:
    """Format an error header with an optional code.

    Example:
        >>> format_error_header("H-USR-001", "br: Void tags cannot have children")
        '\033[91m\033[1mH-USR-001\033[0m: br: Void tags cannot have children'
    """
    if code:
        return f"{error_code(code)}: {message}"
    return message
