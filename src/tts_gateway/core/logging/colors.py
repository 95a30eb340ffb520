"""
ANSI Color Utilities for Console Output.

Colors are disabled when stdout is not a TTY, when ``NO_COLOR`` is set
(https://no-color.org/), or when ``TTS_GW_NO_COLOR=1``.

Besides tag colors this module knows how to color the two values operators
scan for in gateway logs: HTTP statuses and credential time-to-expiry.
"""
from __future__ import annotations

import os
import sys
from typing import Optional


class Colors:
    """ANSI escape codes. Always close colored text with RESET."""
    RESET = "\033[0m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


_TAG_COLORS = {
    "SUCCESS": Colors.BRIGHT_GREEN,
    "FAIL": Colors.BRIGHT_RED,
    "ERROR": Colors.BRIGHT_RED,
    "WARN": Colors.BRIGHT_YELLOW,
    "WARNING": Colors.BRIGHT_YELLOW,
    "INFO": Colors.BRIGHT_CYAN,
    "DEBUG": Colors.GRAY,
}


def _enable_windows_ansi() -> bool:
    try:
        import ctypes
        kernel32 = ctypes.windll.kernel32
        # STD_OUTPUT_HANDLE=-11, mode 7 includes ENABLE_VIRTUAL_TERMINAL_PROCESSING
        kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
    except (AttributeError, OSError):
        return False
    return True


def supports_color() -> bool:
    """Return True if ANSI colors should be emitted on stdout."""
    if os.getenv("TTS_GW_NO_COLOR", "0") == "1" or os.getenv("NO_COLOR"):
        return False

    isatty = getattr(sys.stdout, "isatty", None)
    if isatty is None or not isatty():
        return False

    if sys.platform == "win32":
        return _enable_windows_ansi()
    return True


# Evaluated at import; configure_logging() re-checks it.
USE_COLORS = supports_color()


def colorize(text: str, color: str) -> str:
    """Wrap text in a color code if colors are enabled."""
    if not USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


def get_tag_color(tag: str) -> str:
    """Color for a log tag such as INFO, WARN or FAIL."""
    return _TAG_COLORS.get(tag.upper(), Colors.WHITE)


def status_color(status: int) -> str:
    """red for 5xx, yellow for 4xx, green otherwise."""
    if status >= 500:
        return Colors.RED
    if status >= 400:
        return Colors.YELLOW
    return Colors.GREEN


def expiry_color(seconds_remaining: float) -> str:
    """red under a minute, yellow under five, green otherwise."""
    if seconds_remaining < 60:
        return Colors.RED
    if seconds_remaining < 300:
        return Colors.YELLOW
    return Colors.GREEN


def duration_color(seconds: Optional[float]) -> str:
    if seconds is None or seconds < 0.5:
        return Colors.GREEN
    if seconds < 2.0:
        return Colors.YELLOW
    return Colors.RED
