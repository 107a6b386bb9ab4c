import json
import logging

from policychat.log import JsonlHandler, configure_logging, get_log_file_paths, logger
from policychat.telemetry import REDACTED, Event, log_debug_payload, log_event, sanitize


def _capture(tmp_path):
    handler = JsonlHandler(tmp_path / "events.jsonl")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return handler


def _entries(handler):
    handler.flush()
    path = handler.baseFilename
    with open(path, encoding="utf-8") as fh:
        return [json.loads(line) for line in fh if line.strip()]


def test_sanitize_redacts_nested_keys():
    data = {
        "headers": {"Authorization": "Bearer x"},
        "items": [{"api_key": "k", "question": "q"}],
    }
    cleaned = sanitize(data)
    assert cleaned["headers"]["Authorization"] == REDACTED
    assert cleaned["items"][0] == {"api_key": REDACTED, "question": "q"}
    assert data["headers"]["Authorization"] == "Bearer x"


def test_log_event_writes_structured_record(tmp_path):
    handler = _capture(tmp_path)
    log_event("CHAT_REQUEST", {"token": "abc", "history_pairs": 2}, start_time=0.0)
    record = _entries(handler)[-1]
    assert record["event"] == "CHAT_REQUEST"
    assert record["level"] == "INFO"
    assert record["payload"] == {"token": REDACTED, "history_pairs": 2}
    assert record["size_bytes"] > 0
    assert record["duration_ms"] >= 0


def test_log_debug_payload_truncates_long_strings(tmp_path):
    handler = _capture(tmp_path)
    log_debug_payload("CHAT_RESPONSE", {"body": "x" * 5000})
    record = _entries(handler)[-1]
    assert record["level"] == "DEBUG"
    assert len(record["payload"]["body"]) < 5000


def test_log_debug_payload_skipped_when_debug_disabled(tmp_path):
    handler = _capture(tmp_path)
    logger.setLevel(logging.INFO)
    log_debug_payload("CHAT_RESPONSE", {"body": "hidden"})
    assert _entries(handler) == []


def test_configure_logging_creates_files(tmp_path):
    configure_logging(logging.WARNING, log_dir=tmp_path)
    log_event("SESSION_RESET", {"epoch": 1})
    text_path, json_path = get_log_file_paths()
    for handler in logger.handlers:
        handler.flush()
    assert text_path.parent == tmp_path.resolve()
    assert "SESSION_RESET" in text_path.read_text(encoding="utf-8")
    assert json.loads(json_path.read_text(encoding="utf-8").splitlines()[-1])["event"] == (
        "SESSION_RESET"
    )


def test_event_names_are_written_as_plain_strings(tmp_path):
    handler = _capture(tmp_path)
    log_event(Event.ROUND_FAILED, {"kind": "transport"}, level=logging.WARNING)
    log_event(Event.SESSION_RESET)
    failed, reset = _entries(handler)[-2:]
    assert failed["event"] == "ROUND_FAILED"
    assert failed["level"] == "WARNING"
    assert reset["event"] == "SESSION_RESET"
    assert reset["payload"] == {}
    assert reset["size_bytes"] == 0
