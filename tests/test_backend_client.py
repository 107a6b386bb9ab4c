"""Tests for the HTTP question-answering client."""

import asyncio
import json
import logging

import httpx
import pytest

from policychat.backend import BackendLogicalError, BackendTransportError
from policychat.backend.client import QAClient
from policychat.log import JsonlHandler, logger
from policychat.settings import BackendSettings
from tests.backend_utils import make_json_transport


def _client(responder, *, requests=None, **settings) -> QAClient:
    backend = BackendSettings(api_base="http://backend.test", **settings)
    return QAClient(backend, transport=make_json_transport(responder, requests=requests))


def test_ask_posts_question_and_history_and_parses_sources():
    requests: list[httpx.Request] = []
    client = _client(
        lambda body: (
            200,
            {
                "text": "Policy X says...",
                "sourceDocuments": [
                    {"pageContent": "passage", "metadata": {"source": "doc1", "page": 2}}
                ],
            },
        ),
        requests=requests,
    )

    answer = asyncio.run(client.ask("What is X?", [("q0", "a0")]))

    assert answer.text == "Policy X says..."
    assert [doc.metadata.source for doc in answer.sources] == ["doc1"]
    assert answer.sources[0].page_content == "passage"
    assert answer.sources[0].metadata.extras() == {"page": 2}
    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == "http://backend.test/api/chat"
    assert json.loads(request.content) == {
        "question": "What is X?",
        "history": [["q0", "a0"]],
    }
    assert "authorization" not in request.headers


def test_ask_sends_bearer_token_when_configured():
    requests: list[httpx.Request] = []
    client = _client(lambda body: (200, {"text": "ok"}), requests=requests, api_key="secret")

    asyncio.run(client.ask("q", []))

    assert requests[0].headers["authorization"] == "Bearer secret"


def test_missing_sources_yield_empty_tuple():
    client = _client(lambda body: (200, {"text": "plain", "sourceDocuments": None}))
    answer = asyncio.run(client.ask("q", []))
    assert answer.sources == ()


def test_error_field_in_success_body_is_logical_error():
    client = _client(lambda body: (200, {"error": "rate limited"}))
    with pytest.raises(BackendLogicalError) as excinfo:
        asyncio.run(client.ask("q", []))
    assert excinfo.value.message == "rate limited"
    assert excinfo.value.status_code == 200


def test_error_field_in_failure_body_is_passed_through():
    client = _client(lambda body: (500, {"error": {"message": "index unavailable"}}))
    with pytest.raises(BackendLogicalError) as excinfo:
        asyncio.run(client.ask("q", []))
    assert excinfo.value.message == "index unavailable"
    assert excinfo.value.status_code == 500


@pytest.mark.parametrize(
    ("status", "body"),
    [
        (502, {"text": "gateway page"}),
        (200, "<html>not json</html>"),
        (200, ["not", "an", "object"]),
        (200, {"sourceDocuments": []}),
        (200, {"text": "x", "sourceDocuments": "bogus"}),
    ],
)
def test_unusable_responses_are_transport_errors(status, body):
    client = _client(lambda _body: (status, body))
    with pytest.raises(BackendTransportError):
        asyncio.run(client.ask("q", []))


def test_network_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = QAClient(
        BackendSettings(api_base="http://backend.test"),
        transport=httpx.MockTransport(handler),
    )
    with pytest.raises(BackendTransportError) as excinfo:
        asyncio.run(client.ask("q", []))
    assert "connection refused" in str(excinfo.value)


def test_requests_are_logged_with_redacted_token(tmp_path):
    client = _client(lambda body: (200, {"text": "ok"}), api_key="secret")
    log_file = tmp_path / "chat.jsonl"
    handler = JsonlHandler(log_file)
    logger.addHandler(handler)
    prev_level = logger.level
    logger.setLevel(logging.DEBUG)
    try:
        asyncio.run(client.ask("q", [("a", "b")]))
    finally:
        logger.setLevel(prev_level)
        logger.removeHandler(handler)
        handler.close()
    entries = [json.loads(line) for line in log_file.read_text().splitlines()]
    req = next(e for e in entries if e.get("event") == "CHAT_REQUEST" and e.get("level") == "INFO")
    res = next(e for e in entries if e.get("event") == "CHAT_RESPONSE" and e.get("level") == "INFO")
    assert req["payload"]["history_pairs"] == 1
    assert res["payload"]["ok"] is True
    assert "duration_ms" in res
    assert "secret" not in log_file.read_text()


def test_null_passage_content_keeps_the_answer():
    client = _client(
        lambda body: (
            200,
            {
                "text": "real answer",
                "sourceDocuments": [
                    {"pageContent": None, "metadata": {"source": "doc1"}},
                    {"pageContent": "passage", "metadata": None},
                ],
            },
        )
    )

    answer = asyncio.run(client.ask("q", []))

    assert answer.text == "real answer"
    assert [doc.page_content for doc in answer.sources] == ["", "passage"]
    assert [doc.metadata.source for doc in answer.sources] == ["doc1", ""]
