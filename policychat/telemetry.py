"""Structured events describing chat rounds and backend traffic."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from .log import logger
from .util.json import make_json_safe


class Event(StrEnum):
    """Names of the events written to the JSONL log."""

    CHAT_REQUEST = "CHAT_REQUEST"
    CHAT_RESPONSE = "CHAT_RESPONSE"
    SUBMISSION_REJECTED = "SUBMISSION_REJECTED"
    SUBMISSION_STARTED = "SUBMISSION_STARTED"
    ROUND_COMPLETED = "ROUND_COMPLETED"
    ROUND_FAILED = "ROUND_FAILED"
    ROUND_STALE = "ROUND_STALE"
    SESSION_RESET = "SESSION_RESET"


# Header and settings names that may carry the backend credentials.
SENSITIVE_KEYS = frozenset({"authorization", "api_key", "token", "cookie", "password", "secret"})

REDACTED = "[REDACTED]"

# Questions, answers and passages are user content; cap them in the log files.
MAX_LOGGED_TEXT = 2000


def sanitize(data: Any) -> Any:
    """Return a copy of *data* with credential-bearing keys replaced by ``[REDACTED]``."""
    if isinstance(data, Mapping):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else sanitize(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize(item) for item in data]
    return data


def _scrub(payload: Any) -> Any:
    return make_json_safe(sanitize(payload), max_string_length=MAX_LOGGED_TEXT)


def elapsed_ms(start_time: float) -> int:
    """Milliseconds since the monotonic *start_time*."""
    return int((time.monotonic() - start_time) * 1000)


def log_event(
    event: Event | str,
    payload: Mapping[str, Any] | None = None,
    *,
    start_time: float | None = None,
    level: int = logging.INFO,
) -> None:
    """Write *event* with its redacted *payload* to the application logger.

    The record carries the payload size in bytes and, when *start_time* is
    given, the round-trip duration as ``duration_ms``.
    """
    body = _scrub(dict(payload)) if payload else {}
    record: dict[str, Any] = {
        "event": str(event),
        "payload": body,
        "size_bytes": len(json.dumps(body, ensure_ascii=False).encode("utf-8")) if body else 0,
    }
    if start_time is not None:
        record["duration_ms"] = elapsed_ms(start_time)
    logger.log(level, str(event), extra={"json": record})


def log_debug_payload(event: Event | str, payload: Any = None) -> None:
    """Write the full request/response *payload* when debug logging is on."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    name = str(event)
    record: dict[str, Any] = {"event": name, "level": "DEBUG"}
    if payload is None:
        logger.debug(name, extra={"json": record})
        return
    record["payload"] = _scrub(payload)
    logger.debug(
        "%s %s", name, json.dumps(record["payload"], ensure_ascii=False), extra={"json": record}
    )


__all__ = [
    "Event",
    "MAX_LOGGED_TEXT",
    "REDACTED",
    "elapsed_ms",
    "log_debug_payload",
    "log_event",
    "sanitize",
]
