"""CLI entrypoints for QuoteCard rendering, sanitizing, and diagnostics."""

from __future__ import annotations

import argparse
import json
import platform
import sys
from dataclasses import asdict
from pathlib import Path

import PIL

from quotecard_core import config_path, load_config, suggest_filename
from quotecard_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from quotecard_renderer import (
    AspectRatio,
    CardRenderer,
    ExportFormat,
    FontResolver,
    FontSpec,
    RenderRequest,
    ThemeRegistry,
    decode_data_uri,
)
from quotecard_sanitizer import sanitize

logger = get_logger("cli")


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _read_input(source: str | None) -> str:
    if not source or source == "-":
        return sys.stdin.read()
    return Path(source).expanduser().read_text(encoding="utf-8")


def _load_registry(cfg) -> ThemeRegistry:
    if cfg.assets.themes_path:
        return ThemeRegistry.from_path(Path(cfg.assets.themes_path).expanduser())
    return ThemeRegistry.bundled()


def _cli_override(args: argparse.Namespace) -> dict:
    override: dict = {}
    if args.theme:
        override["themeId"] = args.theme
    if args.aspect:
        override["aspectRatio"] = args.aspect
    if args.format:
        override["exportFormat"] = args.format
    if args.no_attribution:
        override["includeAttribution"] = False
    return override


def _write_output(out: str, data_url: str, source_title: str | None) -> Path:
    target = Path(out).expanduser()
    if target.is_dir():
        target = target / suggest_filename(data_url, source_title)
    payload = decode_data_uri(data_url) or b""
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(payload)
    logger.info(f"wrote {len(payload)} bytes to {target}", extra={"event": "card_written"})
    return target


def _request_error(message: str) -> int:
    logger.warning(f"rejected render request: {message}", extra={"event": "request_invalid"})
    _print_json({"success": False, "errorMessage": message})
    return 2


def cmd_render(args: argparse.Namespace) -> int:
    cfg = load_config()
    try:
        raw = json.loads(_read_input(args.request))
    except ValueError as exc:
        return _request_error(f"Invalid render request: {exc}")
    if not isinstance(raw, dict):
        return _request_error("Render request must be a JSON object")

    override = _cli_override(args)
    if override:
        merged = dict(raw.get("settingsOverride") or {})
        merged.update(override)
        raw["settingsOverride"] = merged
    try:
        request = RenderRequest.from_dict(raw)
    except (TypeError, ValueError) as exc:
        return _request_error(f"Invalid render request: {exc}")

    with CardRenderer(_load_registry(cfg), cfg.renderer_options()) as renderer:
        result = renderer.render(request)

    payload = result.to_dict()
    if result.success and args.out and result.data_url:
        written = _write_output(args.out, result.data_url, request.source_title)
        payload["path"] = str(written)
        payload.pop("dataUrl", None)
    _print_json(payload)
    return 0 if result.success else 2


def cmd_sanitize(args: argparse.Namespace) -> int:
    document = sanitize(_read_input(args.source))
    if args.json:
        _print_json(asdict(document))
    else:
        print(document.html)
    return 0


def cmd_themes(_args: argparse.Namespace) -> int:
    registry = _load_registry(load_config())
    _print_json(
        [
            {
                "id": theme.id,
                "name": theme.name,
                "background": theme.background_kind,
                "font": theme.base_family,
            }
            for theme in registry
        ]
    )
    return 0


def cmd_doctor(_args: argparse.Namespace) -> int:
    cfg = load_config()
    registry = _load_registry(cfg)
    options = cfg.renderer_options()
    resolver = FontResolver(options.font_dirs)

    fonts = {}
    for theme in registry:
        resolved = resolver.resolve(FontSpec(family=theme.base_family, weight=theme.font_weight), 32)
        fonts[theme.id] = {"family": theme.base_family, "resolved": resolved.name, "generic": resolved.generic}

    _print_json(
        {
            "platform": platform.platform(),
            "python": platform.python_version(),
            "pillow": PIL.__version__,
            "config_path": str(config_path()),
            "config": asdict(cfg),
            "defaults": options.defaults.to_dict(),
            "theme_count": len(registry),
            "themes": registry.ids(),
            "fonts": fonts,
        }
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quotecard", description="Render text selections into quote card images")
    sub = parser.add_subparsers(dest="command", required=True)

    render_cmd = sub.add_parser("render", help="Render a quote card from a JSON request")
    render_cmd.add_argument("--request", required=True, help="Path to a JSON render request, or - for stdin")
    render_cmd.add_argument("--out", default=None, help="Write the image to this file or directory")
    render_cmd.add_argument("--theme", default=None, help="Theme id override")
    render_cmd.add_argument("--aspect", default=None, choices=[a.value for a in AspectRatio])
    render_cmd.add_argument("--format", default=None, choices=[f.value for f in ExportFormat])
    render_cmd.add_argument("--no-attribution", action="store_true", help="Hide the source footer")
    render_cmd.set_defaults(func=cmd_render)

    sanitize_cmd = sub.add_parser("sanitize", help="Sanitize an HTML fragment")
    sanitize_cmd.add_argument("source", nargs="?", default="-", help="HTML file, or - for stdin")
    sanitize_cmd.add_argument("--json", action="store_true", help="Print markup and plain text as JSON")
    sanitize_cmd.set_defaults(func=cmd_sanitize)

    themes_cmd = sub.add_parser("themes", help="List available themes")
    themes_cmd.set_defaults(func=cmd_themes)

    doctor_cmd = sub.add_parser("doctor", help="Print configuration, themes and font resolution")
    doctor_cmd.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> int:
    cfg = load_config()
    configure_logging(keep_files=cfg.logging.keep_log_files, console=cfg.logging.console, level=cfg.logging.level)
    install_crash_hooks()
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
