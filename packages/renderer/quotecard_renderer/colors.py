"""Color literal parsing for theme documents."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

_FUNCTIONAL_RE = re.compile(r"rgba?\((\d+),\s*(\d+),\s*(\d+)(?:,\s*([\d.]+))?\)")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


@dataclass(frozen=True)
class Color:
    """RGBA color with every channel in the unit range."""

    red: float
    green: float
    blue: float
    alpha: float = 1.0

    def with_alpha(self, alpha: float) -> "Color":
        return Color(self.red, self.green, self.blue, max(0.0, min(1.0, alpha)))

    def to_rgb8(self) -> tuple[int, int, int]:
        return (_to_byte(self.red), _to_byte(self.green), _to_byte(self.blue))

    def to_rgba8(self) -> tuple[int, int, int, int]:
        return (*self.to_rgb8(), _to_byte(self.alpha))


WHITE = Color(1.0, 1.0, 1.0, 1.0)
BLACK = Color(0.0, 0.0, 0.0, 1.0)
GRAY = Color(0.5, 0.5, 0.5, 1.0)


def _to_byte(value: float) -> int:
    return int(round(max(0.0, min(1.0, value)) * 255))


def parse_functional(text: str | None) -> Color | None:
    """Parse ``rgb(r, g, b)`` or ``rgba(r, g, b, a)``; alpha defaults to 1.0."""
    if not text:
        return None
    match = _FUNCTIONAL_RE.search(text)
    if match is None:
        return None

    r, g, b = (int(match.group(i)) for i in (1, 2, 3))
    try:
        alpha = float(match.group(4)) if match.group(4) is not None else 1.0
    except ValueError:
        return None
    return Color(red=r / 255.0, green=g / 255.0, blue=b / 255.0, alpha=alpha)


def parse_hex(text: str | None) -> Color | None:
    """Parse ``#RRGGBB`` or ``#RRGGBBAA``; the leading ``#`` is optional."""
    if not text:
        return None
    digits = text.strip().replace("#", "")
    if len(digits) not in (6, 8) or not set(digits) <= _HEX_DIGITS:
        return None

    value = int(digits, 16)
    if len(digits) == 6:
        r = (value & 0xFF0000) >> 16
        g = (value & 0x00FF00) >> 8
        b = value & 0x0000FF
        a = 255
    else:
        r = (value & 0xFF000000) >> 24
        g = (value & 0x00FF0000) >> 16
        b = (value & 0x0000FF00) >> 8
        a = value & 0x000000FF
    return Color(red=r / 255.0, green=g / 255.0, blue=b / 255.0, alpha=a / 255.0)


def parse_gradient_list(hex_colors: Iterable[str] | None) -> list[Color] | None:
    """Parse gradient stops, skipping bad entries. ``None`` when no stop survives."""
    if not hex_colors:
        return None
    colors = [c for c in (parse_hex(h) for h in hex_colors) if c is not None]
    return colors or None


def color_from_hex(text: str | None, default: Color = BLACK) -> Color:
    color = parse_hex(text)
    return color if color is not None else default


def parse_any(text: str | None) -> Color | None:
    """Functional notation first, then hex."""
    return parse_functional(text) or parse_hex(text)
