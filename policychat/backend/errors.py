"""Exceptions raised by the question-answering backend client."""

from __future__ import annotations


class BackendError(RuntimeError):
    """Base class for failures of a backend round-trip."""


class BackendLogicalError(BackendError):
    """The backend answered but reported an explicit ``error`` field."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BackendTransportError(BackendError):
    """The request failed in transit or the response could not be understood."""

    def __init__(self, reason: str, *, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


__all__ = ["BackendError", "BackendLogicalError", "BackendTransportError"]
