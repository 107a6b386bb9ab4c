"""Conversation session: transcript, context projection and submission control."""

from .controller import SubmissionController, SubmissionOutcome
from .errors import RejectionReason, ValidationError
from .history import ContextPair, HistoryProjector
from .state import SessionEvent, SessionEvents, SessionState
from .transcript import Citation, Role, Turn, TranscriptStore
from .view import SessionSnapshot

__all__ = [
    "Citation",
    "ContextPair",
    "HistoryProjector",
    "RejectionReason",
    "Role",
    "SessionEvent",
    "SessionEvents",
    "SessionSnapshot",
    "SessionState",
    "SubmissionController",
    "SubmissionOutcome",
    "TranscriptStore",
    "Turn",
    "ValidationError",
]
