"""Logging utilities for PolicyChat."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
import threading
from pathlib import Path
from typing import Any

from .util.time import utc_now_iso

LOG_DIR_ENV = "POLICYCHAT_LOG_DIR"
_DEFAULT_HOME_DIR = ".policychat"
_DEFAULT_LOG_SUBDIR = "logs"
_TEXT_LOG_NAME = "policychat.log"
_JSON_LOG_NAME = "policychat.jsonl"
_ROTATION_BACKUPS = 5
_TEXT_LOG_MAX_BYTES = 5 * 1024 * 1024
_JSON_LOG_MAX_BYTES = 5 * 1024 * 1024

logger = logging.getLogger("policychat")

_log_dir: Path | None = None


class ConsoleFormatter(logging.Formatter):
    """Console formatter that surfaces structured payloads when available."""

    def __init__(self) -> None:
        super().__init__("%(levelname)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* optionally appending the structured payload."""
        base = super().format(record)
        payload = _extract_console_payload(record)
        if payload is None:
            return base
        try:
            payload_text = json.dumps(payload, ensure_ascii=False)
        except TypeError:  # pragma: no cover - payloads are pre-sanitised
            payload_text = json.dumps(str(payload), ensure_ascii=False)
        return f"{base} {payload_text}"


def _extract_console_payload(record: logging.LogRecord) -> Any | None:
    """Return the event payload for records emitted by :func:`log_event`."""
    extra_json = getattr(record, "json", None)
    if not isinstance(extra_json, dict):
        return None
    event_name = extra_json.get("event")
    raw_message = record.msg
    if not (isinstance(raw_message, str) and isinstance(event_name, str)):
        return None
    if raw_message.strip() != event_name.strip():
        return None
    return extra_json.get("payload")


class JsonFormatter(logging.Formatter):
    """Convert log records into JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        payload: Any = getattr(record, "json", None)
        if payload is None:
            data: dict[str, Any] = {
                "message": record.message,
                "level": record.levelname,
                "logger": record.name,
            }
        elif isinstance(payload, dict):
            data = dict(payload)
            data.setdefault("message", record.message)
            data.setdefault("level", record.levelname)
        else:
            data = {
                "message": record.message,
                "level": record.levelname,
                "data": payload,
            }
        data.setdefault("timestamp", utc_now_iso())
        if record.exc_info and "exc_info" not in data:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


class JsonlHandler(RotatingFileHandler):
    """Write log records as JSON lines with built-in rotation."""

    def __init__(
        self,
        filename: Path | str,
        *,
        max_bytes: int = _JSON_LOG_MAX_BYTES,
        backup_count: int = _ROTATION_BACKUPS,
        encoding: str = "utf-8",
    ) -> None:
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding=encoding,
        )
        self.setFormatter(JsonFormatter())


def _resolve_log_dir(log_dir: str | Path | None) -> Path:
    """Resolve effective log directory creating it if necessary."""
    if log_dir is not None:
        path = Path(log_dir).expanduser()
    else:
        env_dir = os.environ.get(LOG_DIR_ENV)
        if env_dir:
            path = Path(env_dir).expanduser()
        else:
            path = Path.home() / _DEFAULT_HOME_DIR / _DEFAULT_LOG_SUBDIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(level: int = logging.INFO, *, log_dir: str | Path | None = None) -> None:
    """Attach console, text and JSONL handlers to the application logger once.

    The console handler honours *level*; both file handlers always record
    ``DEBUG`` so request/response payloads end up in the JSONL log.
    """
    global _log_dir

    if logger.handlers:
        if _log_dir is None:
            _log_dir = _resolve_log_dir(log_dir).resolve()
        return

    resolved_dir = _resolve_log_dir(log_dir).resolve()
    _log_dir = resolved_dir

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(stream_handler)

    file_handler = RotatingFileHandler(
        resolved_dir / _TEXT_LOG_NAME,
        encoding="utf-8",
        maxBytes=_TEXT_LOG_MAX_BYTES,
        backupCount=_ROTATION_BACKUPS,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(file_handler)

    json_handler = JsonlHandler(resolved_dir / _JSON_LOG_NAME)
    json_handler.setLevel(logging.DEBUG)
    logger.addHandler(json_handler)

    logger.setLevel(logging.DEBUG)


def install_exception_hooks() -> None:
    """Route uncaught exceptions from the main and worker threads to the log."""

    def _excepthook(exc_type, exc_value, exc_traceback):
        logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback),
        )

    sys.excepthook = _excepthook

    def _thread_excepthook(args: threading.ExceptHookArgs) -> None:
        logger.critical(
            "Uncaught thread exception (thread=%s)",
            getattr(args, "thread", None),
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    threading.excepthook = _thread_excepthook


def get_log_file_paths() -> tuple[Path, Path]:
    """Return paths to text and JSONL log files, configuring logging if needed."""
    if _log_dir is None:
        configure_logging()
    assert _log_dir is not None
    return _log_dir / _TEXT_LOG_NAME, _log_dir / _JSON_LOG_NAME


__all__ = [
    "ConsoleFormatter",
    "JsonlHandler",
    "LOG_DIR_ENV",
    "configure_logging",
    "get_log_file_paths",
    "install_exception_hooks",
    "logger",
]
