"""Logging for the delivery loop, HID layer, and screen producers.

Records go to a daily JSON-lines file under the config root. Headless runs also
echo to stderr; the tray app has no console, so it writes the file only and
sends interpreter faults to ``fault.log``.
"""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import os
import platform
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any


_LOGGER_NAME = "keyscreen"

# keyscreen_hid and keyscreen_telemetry log under these names without importing this module.
COMPONENT_LOGGERS = (
    "keyscreen.session",
    "keyscreen.hid",
    "keyscreen.producers",
    "keyscreen.scheduler",
    "keyscreen.failure",
)

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_fault_file: IO[str] | None = None
_hooks_installed = False


def config_root() -> Path:
    if platform.system() == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "KeyScreen"
    if platform.system() == "Darwin":
        return Path.home() / "Library" / "Application Support" / "KeyScreen"
    return Path.home() / ".config" / "keyscreen"


def log_dir() -> Path:
    path = config_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with every ``extra=`` field kept."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(
    keep_files: int = 7,
    console: bool = True,
    verbose: bool = False,
    directory: Path | None = None,
) -> logging.Logger:
    logger = get_logger()
    if logger.handlers:
        return logger

    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    for name in COMPONENT_LOGGERS:
        logging.getLogger(name).setLevel(level)

    path = (directory or log_dir()) / "keyscreen.log"
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(path),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(stream_handler)

    logger.info("logging configured", extra={"event": "logging_configured", "verbose": verbose, "console": console})
    return logger


def get_logger(component: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{_LOGGER_NAME}.{component}" if component else _LOGGER_NAME)


def _enable_fault_handler(headless: bool, directory: Path | None) -> None:
    global _fault_file
    if headless:
        # A service manager captures stderr for headless runs.
        faulthandler.enable(file=sys.stderr, all_threads=True)
        return
    if _fault_file is None:
        _fault_file = ((directory or log_dir()) / "fault.log").open("a", encoding="utf-8")
    faulthandler.enable(file=_fault_file, all_threads=True)


def install_crash_hooks(headless: bool = False, directory: Path | None = None) -> None:
    """Route uncaught exceptions from any thread into the log, once per process."""
    global _hooks_installed
    if _hooks_installed:
        return
    logger = get_logger()

    def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        crash_id = str(uuid.uuid4())
        logger.critical(
            f"uncaught exception crash_id={crash_id}",
            exc_info=(exc_type, exc_value, exc_tb),
            extra={"event": "uncaught_exception", "crash_id": crash_id},
        )

    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        crash_id = str(uuid.uuid4())
        thread_name = getattr(args.thread, "name", "?")
        logger.critical(
            f"thread exception crash_id={crash_id} thread={thread_name}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            extra={"event": "thread_exception", "crash_id": crash_id, "crashed_thread": thread_name},
        )

    sys.excepthook = _log_uncaught
    threading.excepthook = _thread_hook
    _enable_fault_handler(headless, directory)
    _hooks_installed = True
    logger.info("crash hooks installed", extra={"event": "crash_hooks_installed", "headless": headless})
