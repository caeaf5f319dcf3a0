"""Named font lookup with the bold/italic fallback chain used for styled runs."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from PIL import ImageFont

from .models import FontSpec

logger = logging.getLogger("quotecard.fonts")

_FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")
_GENERIC_REGULAR = ("DejaVuSans", "LiberationSans-Regular", "Arial", "Helvetica")
_GENERIC_BOLD = ("DejaVuSans-Bold", "LiberationSans-Bold", "Arial Bold", "Helvetica-Bold")
_BOLD_WEIGHT = 600

# Shared across resolvers and threads. Entries are never mutated once stored.
_cache_lock = threading.Lock()
_font_cache: dict[tuple[str, int], ImageFont.FreeTypeFont | None] = {}


@dataclass(frozen=True)
class ResolvedFont:
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont
    name: str
    synthetic_italic: bool = False
    generic: bool = False


def _is_italic_face(font) -> bool:
    try:
        _family, style = font.getname()
    except (AttributeError, OSError):
        return False
    style = (style or "").lower()
    return "italic" in style or "oblique" in style


class FontResolver:
    """Resolves a :class:`FontSpec` to a loaded Pillow font.

    Names are tried as ``{name}.ttf``/``.otf``/``.ttc`` in ``search_dirs`` first and
    then through Pillow's own system font lookup.
    """

    def __init__(self, search_dirs: Sequence[Path] = ()) -> None:
        self.search_dirs = tuple(Path(d) for d in search_dirs if d)

    def candidates(self, spec: FontSpec) -> list[tuple[str, bool]]:
        """Ordered ``(font name, synthesize italic)`` attempts before the generic font."""
        family = spec.family
        if not family:
            return []
        chain: list[tuple[str, bool]] = []
        if spec.bold and spec.italic:
            chain = [(f"{family}-BoldItalic", False), (f"{family}-Bold", True)]
        elif spec.bold:
            chain = [(f"{family}-Bold", False), (f"{family}-Semibold", False)]
        elif spec.italic:
            chain = [(f"{family}-Italic", True)]
        chain.append((family, False))
        return chain

    def resolve(self, spec: FontSpec, size: float) -> ResolvedFont:
        px = max(1, int(round(size)))
        for name, synthesize in self.candidates(spec):
            font = self.load_named(name, px)
            if font is not None:
                return ResolvedFont(
                    font=font,
                    name=name,
                    synthetic_italic=synthesize and not _is_italic_face(font),
                )
        return self.generic(px, bold=spec.bold or spec.weight >= _BOLD_WEIGHT)

    def generic(self, size: int, bold: bool = False) -> ResolvedFont:
        for name in _GENERIC_BOLD if bold else _GENERIC_REGULAR:
            font = self.load_named(name, size)
            if font is not None:
                return ResolvedFont(font=font, name=name, generic=True)
        logger.debug("no system font found, using Pillow default", extra={"event": "font_default"})
        return ResolvedFont(font=ImageFont.load_default(size=size), name="default", generic=True)

    def load_named(self, name: str, size: int) -> ImageFont.FreeTypeFont | None:
        key = (self._cache_scope() + name, size)
        with _cache_lock:
            if key in _font_cache:
                return _font_cache[key]

        font = self._open(name, size)
        with _cache_lock:
            _font_cache.setdefault(key, font)
            return _font_cache[key]

    def _cache_scope(self) -> str:
        return "|".join(str(d) for d in self.search_dirs) + "::"

    def _open(self, name: str, size: int) -> ImageFont.FreeTypeFont | None:
        for directory in self.search_dirs:
            for ext in _FONT_EXTENSIONS:
                candidate = directory / f"{name}{ext}"
                if candidate.is_file():
                    try:
                        return ImageFont.truetype(str(candidate), size)
                    except OSError:
                        continue
        for ext in _FONT_EXTENSIONS:
            try:
                return ImageFont.truetype(f"{name}{ext}", size)
            except OSError:
                continue
        return None


def clear_font_cache() -> None:
    with _cache_lock:
        _font_cache.clear()
