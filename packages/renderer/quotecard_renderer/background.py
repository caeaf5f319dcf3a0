"""Card background composition: solid, gradient, or image with overlay."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image, ImageOps

from .colors import WHITE, Color, parse_any, parse_gradient_list, parse_hex
from .models import Background, GradientBackground, GradientDirection, ImageBackground, SolidBackground

logger = logging.getLogger("quotecard.background")

_IMAGE_EXTENSIONS = ("", ".jpg", ".jpeg", ".png", ".webp")


def _flatten(color: Color) -> tuple[int, int, int, int]:
    return color.to_rgba8()


def solid(size: tuple[int, int], color: Color) -> Image.Image:
    base = Image.new("RGBA", size, _flatten(WHITE))
    base.alpha_composite(Image.new("RGBA", size, _flatten(color)))
    return base


def linear_gradient(size: tuple[int, int], colors: Sequence[Color], direction: GradientDirection) -> Image.Image:
    """Evenly spaced stops from top to bottom (vertical) or left to right (horizontal)."""
    width, height = size
    stops = np.array([_flatten(c) for c in colors], dtype=np.float64)
    if len(stops) == 1:
        return solid(size, colors[0])

    length = width if direction is GradientDirection.HORIZONTAL else height
    t = np.linspace(0.0, 1.0, num=max(length, 1))
    positions = np.linspace(0.0, 1.0, num=len(stops))
    ramp = np.stack([np.interp(t, positions, stops[:, ch]) for ch in range(4)], axis=-1)
    ramp = np.clip(np.rint(ramp), 0, 255).astype(np.uint8)

    if direction is GradientDirection.HORIZONTAL:
        pixels = np.broadcast_to(ramp[np.newaxis, :, :], (height, width, 4))
    else:
        pixels = np.broadcast_to(ramp[:, np.newaxis, :], (height, width, 4))

    base = Image.new("RGBA", size, _flatten(WHITE))
    base.alpha_composite(Image.fromarray(np.ascontiguousarray(pixels)))
    return base


def _find_image(name: str, search_dirs: Sequence[Path]) -> Path | None:
    stem = Path(name).name
    for directory in search_dirs:
        for ext in _IMAGE_EXTENSIONS:
            candidate = Path(directory) / f"{stem}{ext}"
            if candidate.is_file():
                return candidate
    return None


def load_background_image(name: str, search_dirs: Sequence[Path]) -> Image.Image | None:
    path = _find_image(name, search_dirs)
    if path is None:
        logger.debug(f"background image '{name}' not found", extra={"event": "background_missing"})
        return None
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGBA")
    except OSError as exc:
        logger.warning(f"unreadable background image {path}: {exc}", extra={"event": "background_unreadable"})
        return None


def cover(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    """Scale to fill ``size`` keeping aspect, center-cropping the excess."""
    return ImageOps.fit(image, size, method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))


def _image_background(size: tuple[int, int], bg: ImageBackground, search_dirs: Sequence[Path]) -> Image.Image:
    source = load_background_image(bg.url, search_dirs)
    if source is not None:
        base = solid(size, WHITE)
        base.alpha_composite(cover(source, size))
    else:
        base = solid(size, parse_hex(bg.fallback_color) or WHITE)

    overlay = parse_any(bg.overlay)
    if overlay is not None:
        base.alpha_composite(Image.new("RGBA", size, _flatten(overlay)))
    return base


def compose_background(
    size: tuple[int, int],
    background: Background | None,
    search_dirs: Sequence[Path] = (),
) -> Image.Image:
    """Opaque RGBA canvas painted with ``background``; white when nothing resolves."""
    match background:
        case ImageBackground():
            return _image_background(size, background, search_dirs)
        case GradientBackground(colors=colors, direction=direction):
            parsed = parse_gradient_list(colors)
            if parsed is not None:
                return linear_gradient(size, parsed, direction)
        case SolidBackground(color=color):
            parsed_color = parse_hex(color)
            if parsed_color is not None:
                return solid(size, parsed_color)
    return solid(size, WHITE)
