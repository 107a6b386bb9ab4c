"""HTTP client for the question-answering backend."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from ..settings import BackendSettings
from ..telemetry import Event, log_debug_payload, log_event
from .errors import BackendLogicalError, BackendTransportError
from .types import Answer, ChatRequest, ChatResponse


class QAClient:
    """Send questions with conversational memory to ``POST /api/chat``."""

    def __init__(
        self,
        settings: BackendSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client with backend ``settings``.

        ``transport`` replaces the network layer, which tests use to plug in
        :class:`httpx.MockTransport`.
        """
        self.settings = settings
        self._transport = transport
        self._timeout = httpx.Timeout(settings.timeout_seconds)

    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    async def _post(self, body: Mapping[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            return await client.post(
                self.settings.chat_path, json=dict(body), headers=self._headers()
            )

    # ------------------------------------------------------------------
    async def ask(self, question: str, history: Sequence[tuple[str, str]]) -> Answer:
        """Return the backend's answer to *question* given prior *history*.

        Raises :class:`BackendLogicalError` when the body carries an ``error``
        field (whatever the HTTP status) and :class:`BackendTransportError` for
        network failures, other non-2xx statuses and unreadable bodies.
        """
        request = ChatRequest(question=question, history=tuple(history))
        body = request.to_payload()
        start = time.monotonic()
        log_event(
            Event.CHAT_REQUEST,
            {"url": self.settings.chat_url, "history_pairs": len(request.history)},
        )
        log_debug_payload(Event.CHAT_REQUEST, {"direction": "outbound", "body": body})
        try:
            response = await self._post(body)
        except httpx.HTTPError as exc:
            log_event(
                Event.CHAT_RESPONSE,
                {"ok": False, "error": {"type": type(exc).__name__, "message": str(exc)}},
                start_time=start,
                level=logging.WARNING,
            )
            raise BackendTransportError(str(exc) or type(exc).__name__) from exc

        log_debug_payload(
            Event.CHAT_RESPONSE,
            {"direction": "inbound", "status": response.status_code, "body": response.text},
        )
        try:
            answer = self._parse(response)
        except (BackendLogicalError, BackendTransportError) as exc:
            log_event(
                Event.CHAT_RESPONSE,
                {
                    "ok": False,
                    "status": response.status_code,
                    "error": {"type": type(exc).__name__, "message": str(exc)},
                },
                start_time=start,
                level=logging.WARNING,
            )
            raise
        log_event(
            Event.CHAT_RESPONSE,
            {
                "ok": True,
                "status": response.status_code,
                "sources": len(answer.sources),
            },
            start_time=start,
        )
        return answer

    # ------------------------------------------------------------------
    @staticmethod
    def _parse(response: httpx.Response) -> Answer:
        status = response.status_code
        try:
            data = json.loads(response.text or "null")
        except ValueError as exc:
            raise BackendTransportError(
                f"Unreadable response body (HTTP {status})", status_code=status
            ) from exc

        if isinstance(data, Mapping) and data.get("error"):
            try:
                error = ChatResponse.model_validate({"error": data["error"]}).error
            except ValidationError:  # pragma: no cover - error is coerced to text
                error = str(data["error"])
            raise BackendLogicalError(str(error), status_code=status)

        if not response.is_success:
            raise BackendTransportError(f"HTTP {status}", status_code=status)
        if not isinstance(data, Mapping):
            raise BackendTransportError("Response body is not a JSON object", status_code=status)
        try:
            parsed = ChatResponse.model_validate(data)
        except ValidationError as exc:
            raise BackendTransportError(
                f"Malformed response body: {exc.error_count()} validation error(s)",
                status_code=status,
            ) from exc
        if parsed.text is None:
            raise BackendTransportError("Response body has no 'text' field", status_code=status)
        return Answer(text=parsed.text, sources=parsed.source_documents)


__all__ = ["QAClient"]
