"""Wrapping, shrink-to-fit and drawing for styled runs."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence

from PIL import Image, ImageDraw, ImageFilter

from .colors import Color, parse_hex
from .fonts import FontResolver, ResolvedFont
from .models import Glow, StyledRun

_TOKEN_RE = re.compile(r"\n|[^\S\n]+|\S+")
_ITALIC_SHEAR = 0.2
_INDENT_EM = 0.8
_FIT_ITERATIONS = 8


@dataclass
class Fragment:
    text: str
    font: ResolvedFont
    color: tuple[int, int, int, int]
    x: float
    width: float


@dataclass
class Line:
    fragments: list[Fragment] = field(default_factory=list)
    ascent: int = 0
    descent: int = 0
    top: float = 0.0

    @property
    def height(self) -> int:
        return self.ascent + self.descent


@dataclass
class TextLayout:
    lines: list[Line]
    width: float
    height: float
    scale: float
    fits: bool


def _metrics(font: ResolvedFont) -> tuple[int, int]:
    try:
        ascent, descent = font.font.getmetrics()
    except AttributeError:
        bbox = font.font.getbbox("Hg")
        ascent, descent = bbox[3], 0
    return int(ascent), int(descent)


def _length(font: ResolvedFont, text: str) -> float:
    width = float(font.font.getlength(text))
    if font.synthetic_italic and text.strip():
        width += _metrics(font)[0] * _ITALIC_SHEAR
    return width


class _LineBuilder:
    def __init__(self, max_width: float) -> None:
        self.max_width = max_width
        self.lines: list[Line] = []
        self.current = Line()
        self.x = 0.0
        self.pending_space = 0.0
        self.line_indent = 0.0

    def start_line(self, indent: float) -> None:
        self.current = Line()
        self.x = indent
        self.line_indent = indent
        self.pending_space = 0.0

    def finish_line(self, font: ResolvedFont) -> None:
        if not self.current.fragments:
            self.current.ascent, self.current.descent = _metrics(font)
        self.lines.append(self.current)

    def add(self, text: str, font: ResolvedFont, color: tuple[int, int, int, int], width: float) -> None:
        self.x += self.pending_space
        self.pending_space = 0.0
        self.current.fragments.append(Fragment(text=text, font=font, color=color, x=self.x, width=width))
        ascent, descent = _metrics(font)
        self.current.ascent = max(self.current.ascent, ascent)
        self.current.descent = max(self.current.descent, descent)
        self.x += width

    def room_for(self, width: float) -> bool:
        return self.x + self.pending_space + width <= self.max_width + 0.5


def _split_word(word: str, font: ResolvedFont, max_width: float) -> list[str]:
    pieces: list[str] = []
    current = ""
    for ch in word:
        if current and _length(font, current + ch) > max_width:
            pieces.append(current)
            current = ch
        else:
            current += ch
    if current:
        pieces.append(current)
    return pieces


def _wrap(
    runs: Sequence[StyledRun],
    resolver: FontResolver,
    max_width: float,
    scale: float,
) -> list[Line]:
    builder = _LineBuilder(max_width)
    font: ResolvedFont | None = None
    indent = 0.0
    line_open = False

    for run in runs:
        size = run.size * scale
        font = resolver.resolve(run.font, size)
        color = run.color.to_rgba8()
        run_indent = run.indent * size * _INDENT_EM

        for token in _TOKEN_RE.findall(run.text):
            if not line_open:
                indent = run_indent
                builder.start_line(indent)
                line_open = True

            if token == "\n":
                builder.finish_line(font)
                line_open = False
                continue
            if token.isspace():
                if builder.current.fragments:
                    builder.pending_space = _length(font, " ")
                continue

            width = _length(font, token)
            if not builder.room_for(width) and builder.current.fragments:
                builder.finish_line(font)
                builder.start_line(indent)
            if width > max_width - indent:
                parts = _split_word(token, font, max(1.0, max_width - indent))
                for i, part in enumerate(parts):
                    if i:
                        builder.finish_line(font)
                        builder.start_line(indent)
                    builder.add(part, font, color, _length(font, part))
                continue
            builder.add(token, font, color, width)

    if line_open and font is not None:
        builder.finish_line(font)
    return builder.lines


def measure(
    runs: Sequence[StyledRun],
    resolver: FontResolver,
    max_width: float,
    line_spacing: float,
    scale: float,
) -> TextLayout:
    lines = _wrap(runs, resolver, max_width, scale)
    y = 0.0
    width = 0.0
    spacing = line_spacing * scale
    for i, line in enumerate(lines):
        if i:
            y += spacing
        line.top = y
        y += line.height
        if line.fragments:
            last = line.fragments[-1]
            width = max(width, last.x + last.width)
    return TextLayout(lines=lines, width=width, height=y, scale=scale, fits=True)


def fit_text(
    runs: Sequence[StyledRun],
    resolver: FontResolver,
    box: tuple[float, float],
    line_spacing: float,
    min_scale: float = 0.2,
) -> TextLayout:
    """Largest scale in ``[min_scale, 1]`` whose layout fits ``box``.

    When even ``min_scale`` overflows, that layout is returned with ``fits`` off
    and the caller clips it.
    """
    box_w, box_h = box
    full = measure(runs, resolver, box_w, line_spacing, 1.0)
    if full.height <= box_h:
        return full

    floor = measure(runs, resolver, box_w, line_spacing, min_scale)
    if floor.height > box_h:
        floor.fits = False
        return floor

    lo, hi, best = min_scale, 1.0, floor
    for _ in range(_FIT_ITERATIONS):
        mid = (lo + hi) / 2
        candidate = measure(runs, resolver, box_w, line_spacing, mid)
        if candidate.height <= box_h:
            lo, best = mid, candidate
        else:
            hi = mid
    return best


def _draw_synthetic_italic(layer: Image.Image, frag: Fragment, x: int, y: int) -> None:
    ascent, descent = _metrics(frag.font)
    h = ascent + descent
    slant = int(round(h * _ITALIC_SHEAR))
    w = int(frag.font.font.getlength(frag.text)) + slant + 2
    glyphs = Image.new("RGBA", (max(1, w), max(1, h)), (0, 0, 0, 0))
    ImageDraw.Draw(glyphs).text((0, 0), frag.text, font=frag.font.font, fill=frag.color)
    sheared = glyphs.transform(
        glyphs.size,
        Image.Transform.AFFINE,
        (1, _ITALIC_SHEAR, -_ITALIC_SHEAR * h, 0, 1, 0),
        resample=Image.Resampling.BICUBIC,
    )
    layer.alpha_composite(sheared, dest=(max(0, x), max(0, y)))


def render_text_layer(
    size: tuple[int, int],
    layout: TextLayout,
    box: tuple[int, int, int, int],
) -> Image.Image:
    """Draw ``layout`` at the top-left of ``box`` on a transparent layer, clipped to ``box``."""
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    left, top = box[0], box[1]

    for line in layout.lines:
        for frag in line.fragments:
            ascent, _descent = _metrics(frag.font)
            x = int(round(left + frag.x))
            y = int(round(top + line.top + (line.ascent - ascent)))
            if frag.font.synthetic_italic:
                _draw_synthetic_italic(layer, frag, x, y)
            else:
                draw.text((x, y), frag.text, font=frag.font.font, fill=frag.color)

    clipped = Image.new("RGBA", size, (0, 0, 0, 0))
    clipped.paste(layer.crop(box), box[:2])
    return clipped


def glow_layer(text_layer: Image.Image, glow: Glow, scale: float) -> Image.Image | None:
    """Zero-offset soft shadow in the glow color around the text alpha."""
    color: Color | None = parse_hex(glow.color)
    if color is None or glow.radius <= 0 or glow.opacity <= 0:
        return None
    strength = max(0.0, min(1.0, glow.opacity * color.alpha))
    blurred = text_layer.getchannel("A").filter(ImageFilter.GaussianBlur(radius=glow.radius * scale / 2))
    alpha = blurred.point(lambda v: int(v * strength))
    layer = Image.new("RGBA", text_layer.size, (*color.to_rgb8(), 0))
    layer.putalpha(alpha)
    return layer
