"""Boundary to the retrieval-augmented question-answering service."""

from typing import TYPE_CHECKING, Any

from .errors import BackendError, BackendLogicalError, BackendTransportError
from .types import Answer, ChatRequest, ChatResponse, QuestionAnswerer, SourceDocument

__all__ = [
    "Answer",
    "BackendError",
    "BackendLogicalError",
    "BackendTransportError",
    "ChatRequest",
    "ChatResponse",
    "QAClient",
    "QuestionAnswerer",
    "SourceDocument",
]

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .client import QAClient


def __getattr__(name: str) -> Any:
    """Import the HTTP client lazily so the session core does not pull in httpx."""
    if name == "QAClient":
        from .client import QAClient

        return QAClient
    raise AttributeError(f"module 'policychat.backend' has no attribute {name!r}")
