"""Per-call render failures. None of these escape ``CardRenderer.render``."""

from __future__ import annotations


class RenderError(Exception):
    """Terminal failure for one render call; ``str(exc)`` is the user-facing message."""


class ThemeNotFound(RenderError):
    def __init__(self, theme_id: str) -> None:
        super().__init__(f"Theme '{theme_id}' not found")
        self.theme_id = theme_id


class EncodeFailure(RenderError):
    def __init__(self, reason: str | None = None) -> None:
        super().__init__("Failed to encode image")
        self.reason = reason


class GraphicsContextFailure(RenderError):
    pass
