"""Persistent renderer settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from quotecard_renderer import DEFAULT_THEME_ID, AspectRatio, ExportFormat, RendererOptions, RenderSettings

CONFIG_VERSION = 1


@dataclass
class RenderConfig:
    scale: float = 1.0
    jpeg_quality: int = 80
    base_font_size: float = 160.0
    min_scale_factor: float = 0.2
    footer_font_size: float = 42.0
    footer_min_scale: float = 0.5
    line_spacing: float = 16.0
    block_spacing: float = 32.0
    queue_size: int = 8


@dataclass
class DefaultsConfig:
    theme_id: str = DEFAULT_THEME_ID
    aspect_ratio: str = "portrait"
    export_format: str = "png"
    include_attribution: bool = True

    def settings(self) -> RenderSettings:
        return RenderSettings(
            theme_id=self.theme_id,
            aspect_ratio=AspectRatio(self.aspect_ratio),
            export_format=ExportFormat(self.export_format),
            include_attribution=self.include_attribution,
        )


@dataclass
class AssetsConfig:
    themes_path: str | None = None
    fonts_dir: str | None = None
    backgrounds_dir: str | None = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    keep_log_files: int = 7
    console: bool = False


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    render: RenderConfig = field(default_factory=RenderConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    assets: AssetsConfig = field(default_factory=AssetsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def renderer_options(self) -> RendererOptions:
        r = self.render
        return RendererOptions(
            scale=r.scale,
            jpeg_quality=r.jpeg_quality,
            base_font_size=r.base_font_size,
            min_scale_factor=r.min_scale_factor,
            footer_font_size=r.footer_font_size,
            footer_min_scale=r.footer_min_scale,
            line_spacing=r.line_spacing,
            block_spacing=r.block_spacing,
            queue_size=r.queue_size,
            font_dirs=tuple(_expand(p) for p in (self.assets.fonts_dir,) if p),
            background_dirs=tuple(_expand(p) for p in (self.assets.backgrounds_dir,) if p),
            defaults=self.defaults.settings(),
        )


def _expand(path: str) -> Path:
    return Path(path).expanduser()


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "QuoteCard"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "QuoteCard"
    return Path.home() / ".config" / "quotecard"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_render(cfg: AppConfig) -> None:
    r = cfg.render
    r.scale = float(max(0.25, min(4.0, float(r.scale))))
    r.jpeg_quality = int(max(1, min(100, int(r.jpeg_quality))))
    r.base_font_size = float(max(8.0, float(r.base_font_size)))
    r.min_scale_factor = float(max(0.05, min(1.0, float(r.min_scale_factor))))
    r.footer_font_size = float(max(8.0, float(r.footer_font_size)))
    r.footer_min_scale = float(max(0.1, min(1.0, float(r.footer_min_scale))))
    r.line_spacing = float(max(0.0, float(r.line_spacing)))
    r.block_spacing = float(max(0.0, float(r.block_spacing)))
    r.queue_size = int(max(1, min(256, int(r.queue_size))))


def _normalize_defaults(cfg: AppConfig) -> None:
    d = cfg.defaults
    if d.aspect_ratio not in {a.value for a in AspectRatio}:
        d.aspect_ratio = AspectRatio.PORTRAIT.value
    if d.export_format not in {f.value for f in ExportFormat}:
        d.export_format = ExportFormat.PNG.value
    if not isinstance(d.theme_id, str) or not d.theme_id:
        d.theme_id = DefaultsConfig.theme_id
    d.include_attribution = bool(d.include_attribution)


def _normalize_logging(cfg: AppConfig) -> None:
    level = str(cfg.logging.level).upper()
    cfg.logging.level = level if level in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"
    cfg.logging.keep_log_files = int(max(2, int(cfg.logging.keep_log_files)))
    cfg.logging.console = bool(cfg.logging.console)


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    cfg = AppConfig(
        config_version=CONFIG_VERSION,
        render=_merge(RenderConfig, raw.get("render", {})),
        defaults=_merge(DefaultsConfig, raw.get("defaults", {})),
        assets=_merge(AssetsConfig, raw.get("assets", {})),
        logging=_merge(LoggingConfig, raw.get("logging", {})),
    )

    try:
        _normalize_render(cfg)
    except (TypeError, ValueError):
        cfg.render = RenderConfig()
    _normalize_defaults(cfg)
    try:
        _normalize_logging(cfg)
    except (TypeError, ValueError):
        cfg.logging = LoggingConfig()
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
