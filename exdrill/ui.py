"""Terminal styling and the warning and success messages."""

from __future__ import annotations

import os

_COLORS = {
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
}
_BOLD = "\x1b[1m"
_RESET = "\x1b[0m"


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def style(text: object, color: str | None = None, bold: bool = False) -> str:
    """Wrap ``text`` in ANSI escape codes for the given color and weight."""
    codes = []
    if color is not None:
        try:
            codes.append(f"\x1b[{_COLORS[color]}m")
        except KeyError:
            raise ValueError(f"unknown color: {color!r}") from None
    if bold:
        codes.append(_BOLD)
    if not codes:
        return str(text)
    return "".join(codes) + str(text) + _RESET


def warn(message: str) -> None:
    """Print a message in red, preceded by a warning sign."""
    symbol = "!" if no_emoji() else "⚠️ "
    print(f"{style(symbol, 'red')} {style(message, 'red')}")


def success(message: str) -> None:
    """Print a message in green, preceded by a check mark."""
    symbol = "✓" if no_emoji() else "✅"
    print(f"{style(symbol, 'green')} {style(message, 'green')}")