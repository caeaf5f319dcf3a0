"""Typed renderer models: themes, render requests/results and styled text runs."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

from .colors import Color


class AspectRatio(str, Enum):
    SQUARE = "square"
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class ExportFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"

    @property
    def mime_type(self) -> str:
        return "image/jpeg" if self is ExportFormat.JPEG else "image/png"


class GradientDirection(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


# Background variants. Dispatch with ``match``.


@dataclass(frozen=True)
class SolidBackground:
    color: str


@dataclass(frozen=True)
class GradientBackground:
    colors: tuple[str, ...]
    direction: GradientDirection = GradientDirection.VERTICAL


@dataclass(frozen=True)
class ImageBackground:
    url: str
    overlay: str | None = None
    fallback_color: str | None = None


Background = Union[SolidBackground, GradientBackground, ImageBackground]


@dataclass(frozen=True)
class Glow:
    color: str
    radius: float
    opacity: float


@dataclass(frozen=True)
class TextStyle:
    color: str
    font_size: float
    line_height: float
    glow: Glow | None = None


@dataclass(frozen=True)
class FooterStyle:
    enabled: bool
    color: str
    opacity: float


@dataclass(frozen=True)
class Theme:
    id: str
    name: str
    font_family: tuple[str, ...]
    font_weight: int
    background: Background
    text: TextStyle
    footer: FooterStyle
    padding: float
    description: str = ""

    @property
    def base_family(self) -> str:
        return self.font_family[0] if self.font_family else ""

    @property
    def background_kind(self) -> str:
        match self.background:
            case ImageBackground():
                return "image"
            case GradientBackground():
                return "gradient"
            case _:
                return "solid"


@dataclass(frozen=True)
class RenderSettings:
    theme_id: str = "scholarly"
    aspect_ratio: AspectRatio = AspectRatio.PORTRAIT
    export_format: ExportFormat = ExportFormat.PNG
    include_attribution: bool = True

    def merged(self, override: dict[str, Any] | None) -> "RenderSettings":
        """Apply a partial wire-form override (camelCase keys) on top of these settings."""
        if not override:
            return self
        changes: dict[str, Any] = {}
        if override.get("themeId"):
            changes["theme_id"] = str(override["themeId"])
        if override.get("aspectRatio") is not None:
            changes["aspect_ratio"] = AspectRatio(override["aspectRatio"])
        if override.get("exportFormat") is not None:
            changes["export_format"] = ExportFormat(override["exportFormat"])
        if override.get("includeAttribution") is not None:
            changes["include_attribution"] = bool(override["includeAttribution"])
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "themeId": self.theme_id,
            "aspectRatio": self.aspect_ratio.value,
            "exportFormat": self.export_format.value,
            "includeAttribution": self.include_attribution,
        }


@dataclass(frozen=True)
class RenderRequest:
    id: str
    text: str
    html: str | None = None
    source_title: str | None = None
    source_url: str | None = None
    favicon_data_uri: str | None = None
    created_at: int = 0
    settings_override: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RenderRequest":
        override = raw.get("settingsOverride")
        return cls(
            id=str(raw.get("id", "")),
            text=str(raw.get("text") or ""),
            html=raw.get("html") or None,
            source_title=raw.get("sourceTitle") or None,
            source_url=raw.get("sourceUrl") or None,
            favicon_data_uri=raw.get("faviconDataUri") or raw.get("faviconUrl") or None,
            created_at=int(raw.get("createdAt") or 0),
            settings_override=dict(override) if isinstance(override, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "text": self.text, "createdAt": self.created_at}
        for key, value in (
            ("html", self.html),
            ("sourceTitle", self.source_title),
            ("sourceUrl", self.source_url),
            ("faviconDataUri", self.favicon_data_uri),
            ("settingsOverride", self.settings_override),
        ):
            if value is not None:
                out[key] = value
        return out


@dataclass(frozen=True)
class RenderResult:
    id: str
    success: bool
    error_message: str | None = None
    data_url: str | None = None

    @classmethod
    def ok(cls, request_id: str, data_url: str) -> "RenderResult":
        return cls(id=request_id, success=True, data_url=data_url)

    @classmethod
    def failed(cls, request_id: str, message: str) -> "RenderResult":
        return cls(id=request_id, success=False, error_message=message)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.error_message is not None:
            out["errorMessage"] = self.error_message
        if self.data_url is not None:
            out["dataUrl"] = self.data_url
        return out


@dataclass(frozen=True)
class FontSpec:
    family: str
    weight: int = 500
    bold: bool = False
    italic: bool = False


@dataclass(frozen=True)
class StyledRun:
    text: str
    font: FontSpec
    size: float
    color: Color
    indent: int = 0
