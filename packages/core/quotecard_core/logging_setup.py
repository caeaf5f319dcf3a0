"""Structured local logging and crash hook setup."""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import config_root

ROOT_LOGGER = "quotecard"
LOG_FILE = "quotecard.log"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}
_fault_file = None


def log_dir(root: Path | None = None) -> Path:
    path = (root or config_root()) / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields are carried through as keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(
    keep_files: int = 7,
    console: bool = False,
    level: str = "INFO",
    directory: Path | None = None,
) -> logging.Logger:
    """Attach the rotating JSON file handler once; later calls return the same logger."""
    logger = logging.getLogger(ROOT_LOGGER)
    if logger.handlers:
        return logger

    level_no = getattr(logging, str(level).upper(), None)
    logger.setLevel(level_no if isinstance(level_no, int) else logging.INFO)
    target = Path(directory) if directory else log_dir()
    target.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(target / LOG_FILE),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    if console:
        stderr = logging.StreamHandler(sys.stderr)
        stderr.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(stderr)

    logger.debug(f"logging to {target / LOG_FILE}", extra={"event": "logging_configured"})
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def _enable_fault_log(logger: logging.Logger) -> None:
    global _fault_file
    if _fault_file is None:
        _fault_file = (log_dir() / "fault.log").open("a", encoding="utf-8")
    faulthandler.enable(file=_fault_file, all_threads=True)
    logger.debug("fault handler enabled", extra={"event": "fault_handler_enabled"})


def install_crash_hooks() -> None:
    """Route uncaught exceptions from the main and worker threads into the log."""
    logger = get_logger()

    def _report(kind: str, exc_info) -> None:
        crash_id = uuid.uuid4().hex
        logger.critical(f"{kind} crash_id={crash_id}", exc_info=exc_info, extra={"event": kind, "crash_id": crash_id})

    sys.excepthook = lambda exc_type, exc, tb: _report("uncaught_exception", (exc_type, exc, tb))
    threading.excepthook = lambda args: _report(
        "thread_exception", (args.exc_type, args.exc_value, args.exc_traceback)
    )
    _enable_fault_log(logger)
