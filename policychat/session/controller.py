"""Submission controller running one question/answer round at a time."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from ..backend import Answer, BackendError, BackendLogicalError, QuestionAnswerer, SourceDocument
from ..i18n import _
from ..settings import SessionSettings
from ..telemetry import Event, log_debug_payload, log_event
from .errors import RejectionReason, ValidationError
from .history import ContextPair
from .state import SessionEvents, SessionState
from .transcript import Citation, Turn
from .view import SessionSnapshot

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Please input a question"
TOO_LONG_MESSAGE = "Questions are limited to %(limit)d characters."
BUSY_MESSAGE = "Waiting for response..."
GENERIC_ERROR_MESSAGE = "An error occurred while fetching the data. Please try again."
CANCELLED_MESSAGE = "The request was cancelled."


class SubmissionOutcome(StrEnum):
    """Terminal result of :meth:`SubmissionController.submit`."""

    ANSWERED = "answered"
    FAILED = "failed"
    REJECTED = "rejected"
    STALE = "stale"


@dataclass(slots=True)
class _PendingRound:
    """Book-keeping for the single outstanding backend call."""

    round_id: int
    state: SessionState
    question: str
    history: tuple[ContextPair, ...]
    started_at: float
    request: asyncio.Future[Answer] | None = None
    cancel_requested: bool = False

    def cancel(self) -> None:
        self.cancel_requested = True
        request = self.request
        if request is not None and not request.done():
            request.cancel()


def citations_from_sources(sources: Iterable[SourceDocument]) -> tuple[Citation, ...]:
    """Convert backend source documents into citations, keeping their order."""
    return tuple(
        Citation(
            content=document.page_content,
            origin=document.metadata.source,
            metadata=document.metadata.extras(),
        )
        for document in sources
    )


class SubmissionController:
    """Own the session state and run question/answer rounds against a backend.

    ``submit`` must be awaited on the event loop that owns the session.  At most
    one round is outstanding at any time: the busy flag is checked and set
    before the first suspension point, so a second ``submit`` issued while the
    first awaits its answer is rejected instead of racing it.
    """

    def __init__(
        self,
        backend: QuestionAnswerer,
        *,
        settings: SessionSettings | None = None,
        events: SessionEvents | None = None,
    ) -> None:
        self._backend = backend
        self._settings = settings if settings is not None else SessionSettings()
        self.events = events if events is not None else SessionEvents.create()
        self._state = SessionState(
            greeting=self._settings.greeting, epoch=0, events=self.events
        )
        self._round_counter = 0
        self._pending: _PendingRound | None = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    # ------------------------------------------------------------------
    @property
    def is_awaiting_response(self) -> bool:
        return self._state.is_awaiting_response

    # ------------------------------------------------------------------
    def snapshot(self) -> SessionSnapshot:
        """Return the renderer view of the current session."""
        return SessionSnapshot.capture(self._state)

    # ------------------------------------------------------------------
    def update_draft(self, text: str) -> None:
        """Store the user's unsent input."""
        self._state.set_pending_input(text)

    # ------------------------------------------------------------------
    def validate(self, raw_input: str) -> str:
        """Return the trimmed question or raise :class:`ValidationError`."""
        question = (raw_input or "").strip()
        if not question:
            raise ValidationError(RejectionReason.EMPTY, _(EMPTY_INPUT_MESSAGE))
        limit = self._settings.max_input_length
        if len(question) > limit:
            raise ValidationError(
                RejectionReason.TOO_LONG, _(TOO_LONG_MESSAGE) % {"limit": limit}
            )
        if self._state.is_awaiting_response:
            raise ValidationError(RejectionReason.BUSY, _(BUSY_MESSAGE))
        return question

    # ------------------------------------------------------------------
    async def submit(self, raw_input: str) -> SubmissionOutcome:
        """Ask *raw_input* and merge the result into the transcript.

        Failures never escape: validation problems are reported through the
        ``notice`` event, backend problems through ``last_error``.  An
        exception raised by an event listener propagates to the caller, but
        the session is left idle and ready for the next question.
        """
        state = self._state
        try:
            question = self.validate(raw_input)
        except ValidationError as exc:
            log_event(
                Event.SUBMISSION_REJECTED,
                {"reason": exc.reason.value, "epoch": state.epoch},
                level=logging.DEBUG,
            )
            state.events.notice.emit(exc.message)
            return SubmissionOutcome.REJECTED

        history = state.history.snapshot()
        log_debug_payload(
            Event.SUBMISSION_STARTED,
            {"question": question, "history": state.history.as_payload()},
        )
        self._round_counter += 1
        pending = _PendingRound(
            round_id=self._round_counter,
            state=state,
            question=question,
            history=history,
            started_at=time.monotonic(),
        )
        self._pending = pending
        # Listeners run from here on; the busy flag is released on every exit.
        try:
            state.set_error(None)
            state.append_turn(Turn.user(question))
            state.begin_request()
            return await self._run(pending)
        finally:
            if state.is_awaiting_response:
                state.finish_request()
            if self._pending is pending:
                self._pending = None

    # ------------------------------------------------------------------
    def cancel(self) -> bool:
        """Abort the outstanding request; return ``True`` if one was aborted."""
        pending = self._pending
        if pending is None or pending.request is None or pending.request.done():
            return False
        pending.cancel()
        return True

    # ------------------------------------------------------------------
    def reset(self) -> SessionState:
        """Start a fresh session; an answer still in flight is dropped."""
        pending = self._pending
        if pending is not None:
            pending.cancel()
            self._pending = None
        previous = self._state
        previous.detach()
        self._state = SessionState(
            greeting=self._settings.greeting,
            epoch=previous.epoch + 1,
            events=self.events,
        )
        log_event(
            Event.SESSION_RESET,
            {"epoch": self._state.epoch, "dropped_round": pending is not None},
        )
        self.events.session_reset.emit(self._state)
        return self._state

    # ------------------------------------------------------------------
    async def _run(self, pending: _PendingRound) -> SubmissionOutcome:
        try:
            pending.request = asyncio.ensure_future(
                self._backend.ask(pending.question, pending.history)
            )
            answer = await pending.request
        except asyncio.CancelledError:
            if not pending.cancel_requested:
                raise
            return self._fail(pending, _(CANCELLED_MESSAGE), kind="cancelled")
        except BackendLogicalError as exc:
            return self._fail(pending, exc.message, kind="logical")
        except BackendError as exc:
            return self._fail(pending, _(GENERIC_ERROR_MESSAGE), kind="transport", detail=str(exc))
        except Exception as exc:
            logger.exception("Question-answering backend failed unexpectedly")
            return self._fail(
                pending, _(GENERIC_ERROR_MESSAGE), kind="unexpected", detail=repr(exc)
            )
        return self._complete(pending, answer)

    # ------------------------------------------------------------------
    def _complete(self, pending: _PendingRound, answer: Answer) -> SubmissionOutcome:
        state = pending.state
        if not state.attached:
            return self._discard_stale(pending, "answered")
        turn = Turn.assistant(answer.text, citations_from_sources(answer.sources))
        state.commit_answer(pending.question, turn)
        log_event(
            Event.ROUND_COMPLETED,
            {
                "round": pending.round_id,
                "epoch": state.epoch,
                "citations": len(turn.citations or ()),
                "context_pairs": len(state.history),
            },
            start_time=pending.started_at,
        )
        return SubmissionOutcome.ANSWERED

    # ------------------------------------------------------------------
    def _fail(
        self,
        pending: _PendingRound,
        message: str,
        *,
        kind: str,
        detail: str | None = None,
    ) -> SubmissionOutcome:
        state = pending.state
        if not state.attached:
            return self._discard_stale(pending, kind)
        payload = {"round": pending.round_id, "epoch": state.epoch, "kind": kind}
        if detail:
            payload["detail"] = detail
        log_event(
            Event.ROUND_FAILED,
            payload,
            start_time=pending.started_at,
            level=logging.WARNING,
        )
        state.set_error(message)
        return SubmissionOutcome.FAILED

    # ------------------------------------------------------------------
    def _discard_stale(self, pending: _PendingRound, result: str) -> SubmissionOutcome:
        log_event(
            Event.ROUND_STALE,
            {
                "round": pending.round_id,
                "epoch": pending.state.epoch,
                "current_epoch": self._state.epoch,
                "result": result,
            },
            start_time=pending.started_at,
        )
        return SubmissionOutcome.STALE


__all__ = [
    "BUSY_MESSAGE",
    "CANCELLED_MESSAGE",
    "EMPTY_INPUT_MESSAGE",
    "GENERIC_ERROR_MESSAGE",
    "SubmissionController",
    "SubmissionOutcome",
    "citations_from_sources",
]
