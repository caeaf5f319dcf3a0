"""Core app services for settings, logging, and export naming."""

from .config import AppConfig, config_path, load_config, save_config
from .filenames import suggest_filename, title_slug
from .logging_setup import configure_logging, get_logger, install_crash_hooks

__all__ = [
    "AppConfig",
    "config_path",
    "configure_logging",
    "get_logger",
    "install_crash_hooks",
    "load_config",
    "save_config",
    "suggest_filename",
    "title_slug",
]
