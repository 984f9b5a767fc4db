"""Terminal output helpers.

Diagnostics are single lines on stderr, `error: ...` or `warning: ...`.
The prefix is colored only on an interactive stream and only when
NO_COLOR is unset.
"""

from __future__ import annotations

import os
import sys
from typing import TextIO

RED = "31"
YELLOW = "33"


def use_color(stream: TextIO = sys.stderr) -> bool:
    """Whether ANSI escapes may be written to stream."""
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def colorize(text: str, code: str, enabled: bool) -> str:
    return f"\033[{code}m{text}\033[0m" if enabled else text


def _diagnostic(prefix: str, code: str, message: str, stream: TextIO | None) -> None:
    stream = stream or sys.stderr
    print(f"{colorize(prefix, code, use_color(stream))} {message}", file=stream)


def print_error(message: str, stream: TextIO | None = None) -> None:
    """Print 'error: message', the prefix in red on a terminal."""
    _diagnostic("error:", RED, message, stream)


def print_warning(message: str, stream: TextIO | None = None) -> None:
    _diagnostic("warning:", YELLOW, message, stream)
