"""Theme-driven quote card renderer."""

from .card import (
    BASE_CANVAS,
    CardRenderer,
    RendererOptions,
    Scene,
    canvas_size,
    decode_data_uri,
    decode_favicon,
    encode_image,
    to_data_url,
)
from .colors import Color, color_from_hex, parse_functional, parse_gradient_list, parse_hex
from .errors import EncodeFailure, GraphicsContextFailure, RenderError, ThemeNotFound
from .fonts import FontResolver, ResolvedFont, clear_font_cache
from .graphics import GraphicsContext
from .models import (
    AspectRatio,
    ExportFormat,
    FontSpec,
    GradientBackground,
    GradientDirection,
    ImageBackground,
    RenderRequest,
    RenderResult,
    RenderSettings,
    SolidBackground,
    StyledRun,
    Theme,
)
from .richtext import RichTextComposer, compose
from .themes import DEFAULT_THEME_ID, FALLBACK_THEME, ThemeParseResult, ThemeRegistry, parse_theme

__all__ = [
    "AspectRatio",
    "BASE_CANVAS",
    "CardRenderer",
    "Color",
    "DEFAULT_THEME_ID",
    "EncodeFailure",
    "ExportFormat",
    "FALLBACK_THEME",
    "FontResolver",
    "FontSpec",
    "GradientBackground",
    "GradientDirection",
    "GraphicsContext",
    "GraphicsContextFailure",
    "ImageBackground",
    "RenderError",
    "RenderRequest",
    "RenderResult",
    "RenderSettings",
    "RendererOptions",
    "ResolvedFont",
    "RichTextComposer",
    "Scene",
    "SolidBackground",
    "StyledRun",
    "Theme",
    "ThemeNotFound",
    "ThemeParseResult",
    "ThemeRegistry",
    "canvas_size",
    "clear_font_cache",
    "color_from_hex",
    "compose",
    "decode_data_uri",
    "decode_favicon",
    "encode_image",
    "parse_functional",
    "parse_gradient_list",
    "parse_hex",
    "parse_theme",
    "to_data_url",
]
