"""Session state of a single active conversation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Generic, TypeVar

from .history import ContextPair, HistoryProjector
from .transcript import Turn, TranscriptStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionEvent(Generic[T]):
    """Simple signal implementation for the session model."""

    __slots__ = ("_listeners",)

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], None]] = []

    def connect(self, callback: Callable[[T], None]) -> None:
        self._listeners.append(callback)

    def disconnect(self, callback: Callable[[T], None]) -> None:
        with suppress(ValueError):
            self._listeners.remove(callback)

    def emit(self, payload: T) -> None:
        for listener in list(self._listeners):
            listener(payload)


@dataclass(slots=True)
class SessionEvents:
    """Observable hooks a renderer subscribes to."""

    turn_appended: SessionEvent[Turn]
    awaiting_changed: SessionEvent[bool]
    error_changed: SessionEvent[str | None]
    notice: SessionEvent[str]
    draft_changed: SessionEvent[str]
    session_reset: SessionEvent[SessionState]

    @classmethod
    def create(cls) -> SessionEvents:
        return cls(
            turn_appended=SessionEvent(),
            awaiting_changed=SessionEvent(),
            error_changed=SessionEvent(),
            notice=SessionEvent(),
            draft_changed=SessionEvent(),
            session_reset=SessionEvent(),
        )


class SessionState:
    """Aggregate root of one conversation.

    Only :class:`~policychat.session.controller.SubmissionController` calls the
    mutating methods.  A state starts with the greeting as its single turn.
    """

    def __init__(
        self,
        *,
        greeting: str,
        epoch: int = 0,
        events: SessionEvents | None = None,
    ) -> None:
        self.epoch = epoch
        self.events = events if events is not None else SessionEvents.create()
        self.transcript = TranscriptStore([Turn.assistant(greeting)])
        self.history = HistoryProjector()
        self._pending_input = ""
        self._is_awaiting_response = False
        self._last_error: str | None = None
        self._attached = True

    # ------------------------------------------------------------------
    @property
    def pending_input(self) -> str:
        return self._pending_input

    # ------------------------------------------------------------------
    @property
    def is_awaiting_response(self) -> bool:
        return self._is_awaiting_response

    # ------------------------------------------------------------------
    @property
    def last_error(self) -> str | None:
        return self._last_error

    # ------------------------------------------------------------------
    @property
    def context_pairs(self) -> tuple[ContextPair, ...]:
        return self.history.snapshot()

    # ------------------------------------------------------------------
    @property
    def attached(self) -> bool:
        """Return ``False`` once the session was replaced by a reset."""
        return self._attached

    # ------------------------------------------------------------------
    def set_pending_input(self, text: str) -> None:
        if text == self._pending_input:
            return
        self._pending_input = text
        self.events.draft_changed.emit(text)

    # ------------------------------------------------------------------
    def set_error(self, message: str | None) -> None:
        if message == self._last_error:
            return
        self._last_error = message
        self.events.error_changed.emit(message)

    # ------------------------------------------------------------------
    def append_turn(self, turn: Turn) -> int:
        """Append *turn* and notify listeners so they can scroll to it."""
        index = self.transcript.append(turn)
        self.events.turn_appended.emit(turn)
        return index

    # ------------------------------------------------------------------
    def begin_request(self) -> None:
        """Enter the awaiting state and clear the draft."""
        if self._is_awaiting_response:
            raise RuntimeError("a request is already outstanding for this session")
        self._is_awaiting_response = True
        self.events.awaiting_changed.emit(True)
        self.set_pending_input("")

    # ------------------------------------------------------------------
    def finish_request(self) -> None:
        """Leave the awaiting state."""
        if not self._is_awaiting_response:
            logger.warning("finish_request called without an outstanding request")
            return
        self._is_awaiting_response = False
        self.events.awaiting_changed.emit(False)

    # ------------------------------------------------------------------
    def commit_answer(self, question: str, turn: Turn) -> None:
        """Record a successful round: the answer turn and its context pair together."""
        self.transcript.append(turn)
        self.history.record(question, turn.text)
        self.events.turn_appended.emit(turn)

    # ------------------------------------------------------------------
    def detach(self) -> None:
        """Silence this state after it has been replaced by a newer epoch."""
        self._attached = False
        self.events = SessionEvents.create()


__all__ = ["SessionEvent", "SessionEvents", "SessionState"]
