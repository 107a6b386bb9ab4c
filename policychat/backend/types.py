"""Wire models exchanged with the question-answering backend."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""

    model_config = ConfigDict(frozen=True)

    question: str
    history: tuple[tuple[str, str], ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body with history pairs as two-item lists."""
        return {
            "question": self.question,
            "history": [[question, answer] for question, answer in self.history],
        }


class SourceMetadata(BaseModel):
    """Metadata of a retrieved passage; only ``source`` is interpreted."""

    model_config = ConfigDict(extra="allow")

    source: str = ""

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    def extras(self) -> dict[str, Any]:
        """Return metadata keys other than ``source``."""
        return dict(self.model_extra or {})


class SourceDocument(BaseModel):
    """One retrieved passage supporting an answer."""

    model_config = ConfigDict(populate_by_name=True)

    page_content: str = Field("", alias="pageContent")
    metadata: SourceMetadata = Field(default_factory=SourceMetadata)

    @field_validator("page_content", mode="before")
    @classmethod
    def _default_page_content(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class ChatResponse(BaseModel):
    """Decoded response body.

    A body either carries ``error`` (logical failure) or ``text`` with optional
    ``sourceDocuments``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str | None = None
    source_documents: tuple[SourceDocument, ...] = Field((), alias="sourceDocuments")
    error: str | None = None

    @field_validator("source_documents", mode="before")
    @classmethod
    def _default_sources(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("error", mode="before")
    @classmethod
    def _coerce_error(cls, value: Any) -> str | None:
        """Flatten ``{"message": ...}`` objects and drop empty values."""
        if not value:
            return None
        if isinstance(value, dict):
            message = value.get("message")
            return str(message) if message else str(value)
        return str(value)


@dataclass(frozen=True, slots=True)
class Answer:
    """Successful backend answer."""

    text: str
    sources: tuple[SourceDocument, ...] = ()


class QuestionAnswerer(Protocol):
    """Collaborator answering a question given prior ``(question, answer)`` pairs."""

    async def ask(
        self, question: str, history: Sequence[tuple[str, str]]
    ) -> Answer:  # pragma: no cover - protocol
        """Return the answer or raise :class:`~policychat.backend.errors.BackendError`."""


__all__ = [
    "Answer",
    "ChatRequest",
    "ChatResponse",
    "QuestionAnswerer",
    "SourceDocument",
    "SourceMetadata",
]
