"""Errors raised while validating user submissions."""

from __future__ import annotations

from enum import StrEnum


class RejectionReason(StrEnum):
    """Why a submission was refused before any state change."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    BUSY = "busy"


class ValidationError(ValueError):
    """Submission refused; ``message`` is the notice shown to the user."""

    def __init__(self, reason: RejectionReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


__all__ = ["RejectionReason", "ValidationError"]
