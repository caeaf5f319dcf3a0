"""Sanitized markup to styled text runs."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace

from bs4 import BeautifulSoup, NavigableString, Tag

from .colors import BLACK, Color, color_from_hex
from .models import FontSpec, StyledRun, Theme

logger = logging.getLogger("quotecard.richtext")

_WS_RE = re.compile(r"\s+")
_BLOCK_TAGS = frozenset({"p", "li", "ul", "ol", "blockquote"})
_LIST_TAGS = frozenset({"ul", "ol"})
_BULLET = "• "

# Closing tag -> spacing inserted before every occurrence but the last.
_SPACING_RULES: tuple[tuple[str, str], ...] = (
    ("</p>", "<br><br>"),
    ("</li>", "<br>"),
)

# Tag -> typography changes applied to its descendants.
STYLE_BLOCK: dict[str, dict[str, object]] = {
    "strong": {"weight_step": 100, "bold": True},
    "b": {"weight_step": 100, "bold": True},
    "em": {"italic": True},
    "i": {"italic": True},
    "blockquote": {"indent": 1},
    "ul": {"indent": 1},
    "ol": {"indent": 1},
}


@dataclass(frozen=True)
class _Style:
    weight: int
    bold: bool = False
    italic: bool = False
    indent: int = 0

    def apply(self, rule: dict[str, object]) -> "_Style":
        return replace(
            self,
            weight=min(900, self.weight + int(rule.get("weight_step", 0))),
            bold=self.bold or bool(rule.get("bold", False)),
            italic=self.italic or bool(rule.get("italic", False)),
            indent=self.indent + int(rule.get("indent", 0)),
        )


def add_spacing_before_tags(html: str, tag: str, spacing: str) -> str:
    """Insert ``spacing`` before each occurrence of ``tag`` except the last."""
    positions = [m.start() for m in re.finditer(re.escape(tag), html)]
    result = html
    # Back to front so earlier offsets stay valid.
    for pos in reversed(positions[:-1]):
        result = result[:pos] + spacing + result[pos:]
    return result


def preprocess(html: str) -> str:
    for tag, spacing in _SPACING_RULES:
        html = add_spacing_before_tags(html, tag, spacing)
    return html


class _RunBuilder:
    def __init__(self) -> None:
        self.pieces: list[tuple[str, _Style]] = []
        self.at_line_start = True

    def _ends_with_space(self) -> bool:
        return bool(self.pieces) and self.pieces[-1][0].endswith(" ")

    def text(self, raw: str, style: _Style) -> None:
        text = _WS_RE.sub(" ", raw)
        if self.at_line_start or self._ends_with_space():
            text = text.lstrip(" ")
        if not text:
            return
        self.pieces.append((text, style))
        self.at_line_start = False

    def marker(self, text: str, style: _Style) -> None:
        self.pieces.append((text, replace(style, bold=False, italic=False)))
        self.at_line_start = False

    def newline(self, style: _Style) -> None:
        if self.pieces and self.pieces[-1][0].endswith(" "):
            last_text, last_style = self.pieces[-1]
            self.pieces[-1] = (last_text.rstrip(" "), last_style)
        self.pieces.append(("\n", style))
        self.at_line_start = True

    def ensure_line_start(self, style: _Style) -> None:
        if not self.at_line_start:
            self.newline(style)


def _walk(node, style: _Style, builder: _RunBuilder, lists: list[list]) -> None:
    if isinstance(node, NavigableString):
        if type(node) is NavigableString:
            builder.text(str(node), style)
        return
    if not isinstance(node, Tag):
        return

    name = (node.name or "").lower()
    if name == "br":
        builder.newline(style)
        return

    child_style = style.apply(STYLE_BLOCK.get(name, {}))
    if name in _BLOCK_TAGS:
        builder.ensure_line_start(style)
    if name in _LIST_TAGS:
        lists.append([name, 0])
    if name == "li":
        if lists and lists[-1][0] == "ol":
            lists[-1][1] += 1
            builder.marker(f"{lists[-1][1]}. ", child_style)
        else:
            builder.marker(_BULLET, child_style)

    for child in node.children:
        _walk(child, child_style, builder, lists)

    if name in _LIST_TAGS:
        lists.pop()
    if name in _BLOCK_TAGS:
        builder.ensure_line_start(style)


def _trim(pieces: list[tuple[str, _Style]]) -> list[tuple[str, _Style]]:
    out = list(pieces)
    while out and not out[0][0].strip():
        out.pop(0)
    while out and not out[-1][0].strip():
        out.pop()
    if out:
        out[0] = (out[0][0].lstrip(), out[0][1])
        out[-1] = (out[-1][0].rstrip(), out[-1][1])
    return out


class RichTextComposer:
    """Builds styled runs for one theme. Stateless across calls."""

    def __init__(self, theme: Theme, base_font_size: float) -> None:
        self.theme = theme
        self.base_font_size = base_font_size
        self.color: Color = color_from_hex(theme.text.color, BLACK)

    def compose(self, html: str | None, plain_text: str) -> list[StyledRun]:
        if not html:
            return self.plain(plain_text)
        try:
            runs = self._compose_markup(html)
        except Exception as exc:
            logger.debug(f"markup parse failed, using plain text: {exc}", extra={"event": "sanitize_fallback"})
            return self.plain(plain_text)
        if not runs:
            logger.debug("markup produced no text, using plain text", extra={"event": "sanitize_fallback"})
            return self.plain(plain_text)
        return runs

    def plain(self, text: str) -> list[StyledRun]:
        text = (text or "").strip()
        if not text:
            return []
        font = FontSpec(family=self.theme.base_family, weight=self.theme.font_weight)
        return [StyledRun(text=text, font=font, size=self.base_font_size, color=self.color)]

    def _compose_markup(self, html: str) -> list[StyledRun]:
        soup = BeautifulSoup(preprocess(html), "html.parser")
        builder = _RunBuilder()
        base = _Style(weight=self.theme.font_weight)
        lists: list[list] = []
        for child in soup.children:
            _walk(child, base, builder, lists)

        runs: list[StyledRun] = []
        for text, style in _trim(builder.pieces):
            if not text:
                continue
            font = FontSpec(
                family=self.theme.base_family,
                weight=style.weight,
                bold=style.bold,
                italic=style.italic,
            )
            # Markup colors never survive; every run takes the theme text color.
            if runs and runs[-1].font == font and runs[-1].indent == style.indent:
                prev = runs[-1]
                runs[-1] = replace(prev, text=prev.text + text)
                continue
            runs.append(StyledRun(text=text, font=font, size=self.base_font_size, color=self.color, indent=style.indent))
        return runs


def compose(html: str | None, plain_text: str, theme: Theme, base_font_size: float) -> list[StyledRun]:
    return RichTextComposer(theme, base_font_size).compose(html, plain_text)
