"""Quote card composer: theme background, fitted rich text, attribution footer."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
import urllib.parse
from concurrent.futures import Future
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageDraw, ImageOps

from .background import compose_background
from .colors import GRAY, color_from_hex
from .errors import EncodeFailure, RenderError, ThemeNotFound
from .fonts import FontResolver, ResolvedFont
from .graphics import GraphicsContext
from .layout import fit_text, glow_layer, render_text_layer
from .models import AspectRatio, ExportFormat, FontSpec, RenderRequest, RenderResult, RenderSettings, StyledRun, Theme
from .richtext import RichTextComposer
from .themes import ThemeRegistry

logger = logging.getLogger("quotecard.renderer")

BASE_CANVAS: dict[AspectRatio, tuple[int, int]] = {
    AspectRatio.SQUARE: (1080, 1080),
    AspectRatio.PORTRAIT: (1080, 1350),
    AspectRatio.LANDSCAPE: (1920, 1080),
}
_ELLIPSIS = "…"


@dataclass(frozen=True)
class RendererOptions:
    scale: float = 1.0
    jpeg_quality: int = 80
    base_font_size: float = 160.0
    min_scale_factor: float = 0.2
    footer_font_size: float = 42.0
    footer_min_scale: float = 0.5
    line_spacing: float = 16.0
    block_spacing: float = 32.0
    queue_size: int = 8
    font_dirs: tuple[Path, ...] = ()
    background_dirs: tuple[Path, ...] = ()
    defaults: RenderSettings = field(default_factory=RenderSettings)


@dataclass(frozen=True)
class Scene:
    """Everything rasterization needs, resolved before the graphics context runs."""

    size: tuple[int, int]
    scale: float
    theme: Theme
    settings: RenderSettings
    runs: list[StyledRun]
    footer_title: str | None = None
    favicon: Image.Image | None = None


def canvas_size(aspect_ratio: AspectRatio, scale: float = 1.0) -> tuple[int, int]:
    width, height = BASE_CANVAS[AspectRatio(aspect_ratio)]
    return int(round(width * scale)), int(round(height * scale))


def decode_data_uri(uri: str | None) -> bytes | None:
    if not uri or not uri.startswith("data:"):
        return None
    header, sep, payload = uri.partition(",")
    if not sep:
        return None
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return None
    return urllib.parse.unquote_to_bytes(payload)


def decode_favicon(uri: str | None) -> Image.Image | None:
    """Decoded favicon, or ``None`` when the payload is absent or unreadable."""
    data = decode_data_uri(uri)
    if not data:
        return None
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.debug(f"favicon decode failed: {exc}", extra={"event": "favicon_decode_failed"})
        return None


def encode_image(image: Image.Image, fmt: ExportFormat, quality: int = 80) -> bytes:
    buf = BytesIO()
    try:
        rgb = image.convert("RGB")
        if ExportFormat(fmt) is ExportFormat.JPEG:
            rgb.save(buf, format="JPEG", quality=quality)
        else:
            rgb.save(buf, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodeFailure(str(exc)) from exc
    data = buf.getvalue()
    if not data:
        raise EncodeFailure("encoder produced no bytes")
    return data


def to_data_url(payload: bytes, fmt: ExportFormat) -> str:
    b64 = base64.b64encode(payload).decode("ascii")
    return f"data:{ExportFormat(fmt).mime_type};base64,{b64}"


class CardRenderer:
    """Renders quote cards. ``render`` never raises; failures come back as results."""

    def __init__(
        self,
        registry: ThemeRegistry,
        options: RendererOptions | None = None,
        graphics: GraphicsContext | None = None,
    ) -> None:
        self.registry = registry
        self.options = options or RendererOptions()
        self.fonts = FontResolver(self.options.font_dirs)
        self._owns_graphics = graphics is None
        self.graphics = graphics or GraphicsContext(queue_size=self.options.queue_size)

    def close(self) -> None:
        if self._owns_graphics:
            self.graphics.close()

    def __enter__(self) -> "CardRenderer":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # Entry points

    def render(self, request: RenderRequest) -> RenderResult:
        started = time.perf_counter()
        try:
            scene = self.prepare(request)
            payload = self.graphics.submit(self._rasterize_and_encode, scene).result()
        except Exception as exc:
            return self._failure(request, exc)
        return self._success(request, scene, payload, started)

    async def render_async(self, request: RenderRequest) -> RenderResult:
        started = time.perf_counter()
        try:
            # prepare decodes the favicon and submit waits for queue space; both block.
            scene = await asyncio.to_thread(self.prepare, request)
            future: Future = await asyncio.to_thread(self.graphics.submit, self._rasterize_and_encode, scene)
            payload = await asyncio.wrap_future(future)
        except Exception as exc:
            return self._failure(request, exc)
        return self._success(request, scene, payload, started)

    # Pipeline

    def prepare(self, request: RenderRequest) -> Scene:
        settings = self.options.defaults.merged(request.settings_override)
        theme = self.registry.lookup(settings.theme_id)
        if theme is None:
            raise ThemeNotFound(settings.theme_id)

        scale = self.options.scale
        composer = RichTextComposer(theme, self.options.base_font_size * scale)
        runs = composer.compose(request.html, request.text)

        show_footer = bool(settings.include_attribution and theme.footer.enabled and request.source_title)
        return Scene(
            size=canvas_size(settings.aspect_ratio, scale),
            scale=scale,
            theme=theme,
            settings=settings,
            runs=runs,
            footer_title=request.source_title if show_footer else None,
            favicon=decode_favicon(request.favicon_data_uri) if show_footer else None,
        )

    def rasterize(self, scene: Scene) -> Image.Image:
        width, height = scene.size
        s = scene.scale
        theme = scene.theme
        canvas = compose_background(scene.size, theme.background, self.options.background_dirs)

        pad = int(round(theme.padding * s))
        content = (pad, pad, max(pad + 1, width - pad), max(pad + 1, height - pad))

        text_bottom = content[3]
        footer = None
        if scene.footer_title:
            footer = self._footer_layer(scene, content)
            text_bottom = max(pad + 1, content[3] - footer[1] - int(round(self.options.block_spacing * s)))

        box = (content[0], content[1], content[2], text_bottom)
        if scene.runs:
            layout = fit_text(
                scene.runs,
                self.fonts,
                (box[2] - box[0], box[3] - box[1]),
                self.options.line_spacing * s,
                self.options.min_scale_factor,
            )
            text_layer = render_text_layer(scene.size, layout, box)
            if theme.text.glow is not None:
                glow = glow_layer(text_layer, theme.text.glow, s)
                if glow is not None:
                    canvas.alpha_composite(glow)
            canvas.alpha_composite(text_layer)

        if footer is not None:
            canvas.alpha_composite(footer[0])
        return canvas.convert("RGB")

    def _rasterize_and_encode(self, scene: Scene) -> bytes:
        image = self.rasterize(scene)
        return encode_image(image, scene.settings.export_format, self.options.jpeg_quality)

    # Footer

    def _fit_footer_font(self, title: str, spec: FontSpec, base_size: float, max_width: float) -> tuple[ResolvedFont, str]:
        font = self.fonts.resolve(spec, base_size)
        width = font.font.getlength(title)
        if width <= max_width:
            return font, title

        ratio = max(self.options.footer_min_scale, min(1.0, max_width / max(width, 1.0)))
        font = self.fonts.resolve(spec, base_size * ratio)
        while ratio > self.options.footer_min_scale and font.font.getlength(title) > max_width:
            ratio = max(self.options.footer_min_scale, ratio - 0.05)
            font = self.fonts.resolve(spec, base_size * ratio)
        if font.font.getlength(title) <= max_width:
            return font, title

        truncated = title
        while truncated and font.font.getlength(truncated + _ELLIPSIS) > max_width:
            truncated = truncated[:-1]
        return font, (truncated.rstrip() + _ELLIPSIS) if truncated else _ELLIPSIS

    def _footer_layer(self, scene: Scene, content: tuple[int, int, int, int]) -> tuple[Image.Image, int]:
        s = scene.scale
        theme = scene.theme
        title = scene.footer_title or ""
        font_size = self.options.footer_font_size * s
        icon_size = int(round(font_size * 1.2))
        gap = int(round(font_size * 0.4))

        left, _top, right, bottom = content
        text_x = left + (icon_size + gap if scene.favicon is not None else 0)
        spec = FontSpec(family=theme.base_family, weight=theme.font_weight)
        font, shown = self._fit_footer_font(title, spec, font_size, max(1, right - text_x))

        ascent, descent = font.font.getmetrics() if hasattr(font.font, "getmetrics") else (int(font_size), 0)
        row_h = max(icon_size if scene.favicon is not None else 0, ascent + descent)
        row_top = bottom - row_h

        layer = Image.new("RGBA", scene.size, (0, 0, 0, 0))
        if scene.favicon is not None:
            icon = ImageOps.contain(scene.favicon, (icon_size, icon_size), Image.Resampling.LANCZOS)
            ix = left + (icon_size - icon.width) // 2
            iy = row_top + (row_h - icon.height) // 2
            layer.alpha_composite(icon, dest=(ix, iy))

        color = color_from_hex(theme.footer.color, GRAY)
        color = color.with_alpha(color.alpha * max(0.0, min(1.0, theme.footer.opacity)))
        ty = row_top + (row_h - (ascent + descent)) // 2
        text = Image.new("RGBA", scene.size, (0, 0, 0, 0))
        ImageDraw.Draw(text).text((text_x, ty), shown, font=font.font, fill=(*color.to_rgb8(), 255))
        # Opacity applies to the rendered title as a whole.
        text.putalpha(text.getchannel("A").point(lambda v: int(v * color.alpha)))
        layer.alpha_composite(text)
        return layer, row_h

    # Results

    def _success(self, request: RenderRequest, scene: Scene, payload: bytes, started: float) -> RenderResult:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info(
            f"rendered card id={request.id} theme={scene.theme.id} size={scene.size[0]}x{scene.size[1]} "
            f"format={scene.settings.export_format.value} bytes={len(payload)} ms={elapsed_ms:.1f}",
            extra={"event": "render_ok"},
        )
        return RenderResult.ok(request.id, to_data_url(payload, scene.settings.export_format))

    def _failure(self, request: RenderRequest, exc: Exception) -> RenderResult:
        if isinstance(exc, RenderError):
            logger.warning(f"render failed id={request.id}: {exc}", extra={"event": "render_failed"})
            return RenderResult.failed(request.id, str(exc))
        logger.exception(f"render crashed id={request.id}", extra={"event": "render_failed"})
        return RenderResult.failed(request.id, f"Rendering failed: {exc}")
