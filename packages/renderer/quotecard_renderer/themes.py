"""Theme document parsing and the read-only theme registry."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from .models import (
    Background,
    FooterStyle,
    Glow,
    GradientBackground,
    GradientDirection,
    ImageBackground,
    SolidBackground,
    TextStyle,
    Theme,
)

logger = logging.getLogger("quotecard.themes")

DEFAULT_THEME_ID = "scholarly"
DEFAULT_FONT_WEIGHT = 500

FALLBACK_THEME = Theme(
    id="soft-sand",
    name="Soft Sand",
    font_family=("Inter",),
    font_weight=DEFAULT_FONT_WEIGHT,
    background=SolidBackground(color="#F7F1E8"),
    text=TextStyle(color="#171615", font_size=40, line_height=1.35),
    footer=FooterStyle(enabled=True, color="#6F6254", opacity=0.75),
    padding=64,
    description="Warm paper tone with dark ink.",
)


@dataclass(frozen=True)
class ThemeParseResult:
    theme: Theme | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.theme is not None


class _Invalid(ValueError):
    pass


def _obj(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if not isinstance(value, Mapping):
        raise _Invalid(f"missing object '{key}'")
    return value


def _str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise _Invalid(f"missing string '{key}'")
    return value


def _num(raw: Mapping[str, Any], key: str) -> float:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _Invalid(f"missing number '{key}'")
    return float(value)


def _bool(raw: Mapping[str, Any], key: str) -> bool:
    value = raw.get(key)
    if not isinstance(value, bool):
        raise _Invalid(f"missing boolean '{key}'")
    return value


def _font_family(font: Mapping[str, Any]) -> tuple[str, ...]:
    names = [n.strip() for n in _str(font, "family").split(",")]
    fallback = font.get("fallback")
    if isinstance(fallback, str):
        names.extend(n.strip() for n in fallback.split(","))
    family = tuple(n.strip("'\"") for n in names if n)
    if not family:
        raise _Invalid("empty font family")
    return family


def _font_weight(font: Mapping[str, Any]) -> int:
    value = font.get("weight")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_FONT_WEIGHT
    return int(max(100, min(900, value)))


def _background(raw: Mapping[str, Any]) -> Background:
    kind = raw.get("type")
    color = raw.get("color") if isinstance(raw.get("color"), str) else None

    image = raw.get("image")
    if kind == "image" and isinstance(image, Mapping) and isinstance(image.get("url"), str):
        overlay = image.get("overlay")
        return ImageBackground(
            url=image["url"],
            overlay=overlay if isinstance(overlay, str) else None,
            fallback_color=color,
        )

    gradient = raw.get("gradient")
    if isinstance(gradient, Mapping):
        colors = gradient.get("colors")
        if isinstance(colors, list) and all(isinstance(c, str) for c in colors):
            direction = (
                GradientDirection.HORIZONTAL
                if gradient.get("direction") == GradientDirection.HORIZONTAL.value
                else GradientDirection.VERTICAL
            )
            return GradientBackground(colors=tuple(colors), direction=direction)

    if color is not None:
        return SolidBackground(color=color)
    raise _Invalid("background has no image, gradient or color")


def _glow(text: Mapping[str, Any]) -> Glow | None:
    raw = text.get("glow")
    if not isinstance(raw, Mapping):
        return None
    try:
        return Glow(color=_str(raw, "color"), radius=_num(raw, "radius"), opacity=_num(raw, "opacity"))
    except _Invalid:
        return None


def parse_theme(entry: Any) -> ThemeParseResult:
    """Validate one theme entry. Incomplete entries are rejected whole."""
    if not isinstance(entry, Mapping):
        return ThemeParseResult(error="entry is not an object")
    try:
        theme_id = _str(entry, "id")
        name = _str(entry, "name")
        font = _obj(entry, "font")
        background = _background(_obj(entry, "background"))
        text = _obj(entry, "text")
        footer = _obj(entry, "footer")
        layout = _obj(entry, "layout")

        theme = Theme(
            id=theme_id,
            name=name,
            font_family=_font_family(font),
            font_weight=_font_weight(font),
            background=background,
            text=TextStyle(
                color=_str(text, "color"),
                font_size=_num(text, "fontSize"),
                line_height=_num(text, "lineHeight"),
                glow=_glow(text),
            ),
            footer=FooterStyle(
                enabled=_bool(footer, "enabled"),
                color=_str(footer, "color"),
                opacity=_num(footer, "opacity"),
            ),
            padding=_num(layout, "padding"),
            description=entry.get("description") if isinstance(entry.get("description"), str) else "",
        )
    except _Invalid as exc:
        return ThemeParseResult(error=str(exc))
    return ThemeParseResult(theme=theme)


class ThemeRegistry:
    """Theme lookup by id. Built once; never empty; never mutated."""

    def __init__(self, themes: Mapping[str, Theme]) -> None:
        if not themes:
            themes = {FALLBACK_THEME.id: FALLBACK_THEME}
        self._themes: Mapping[str, Theme] = MappingProxyType(dict(themes))

    @classmethod
    def load(cls, document: Any) -> "ThemeRegistry":
        entries = document.get("themes") if isinstance(document, Mapping) else None
        if not isinstance(entries, list):
            logger.warning("theme document invalid, using fallback theme", extra={"event": "themes_fallback"})
            return cls.fallback()

        themes: dict[str, Theme] = {}
        for index, entry in enumerate(entries):
            result = parse_theme(entry)
            if result.theme is None:
                logger.warning(
                    f"skipping theme entry {index}: {result.error}",
                    extra={"event": "theme_skipped"},
                )
                continue
            themes[result.theme.id] = result.theme

        if not themes:
            logger.warning("theme document had no usable themes, using fallback", extra={"event": "themes_fallback"})
            return cls.fallback()
        logger.info(f"loaded {len(themes)} themes", extra={"event": "themes_loaded"})
        return cls(themes)

    @classmethod
    def from_path(cls, path: Path) -> "ThemeRegistry":
        try:
            document = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"failed to read themes from {path}: {exc}", extra={"event": "themes_fallback"})
            return cls.fallback()
        return cls.load(document)

    @classmethod
    def bundled(cls) -> "ThemeRegistry":
        try:
            raw = resources.files(__package__).joinpath("data/themes.json").read_text(encoding="utf-8")
            document = json.loads(raw)
        except (OSError, ValueError) as exc:
            logger.warning(f"failed to read bundled themes: {exc}", extra={"event": "themes_fallback"})
            return cls.fallback()
        return cls.load(document)

    @classmethod
    def fallback(cls) -> "ThemeRegistry":
        return cls({FALLBACK_THEME.id: FALLBACK_THEME})

    def lookup(self, theme_id: str | None) -> Theme | None:
        if not theme_id:
            return None
        theme = self._themes.get(theme_id)
        if theme is None:
            logger.debug(
                f"theme '{theme_id}' not found; available: {self.ids()}",
                extra={"event": "theme_lookup_miss"},
            )
        return theme

    def ids(self) -> list[str]:
        return sorted(self._themes.keys())

    def themes(self) -> list[Theme]:
        return [self._themes[k] for k in self.ids()]

    def __contains__(self, theme_id: object) -> bool:
        return theme_id in self._themes

    def __iter__(self) -> Iterator[Theme]:
        return iter(self.themes())

    def __len__(self) -> int:
        return len(self._themes)
