"""Read-only view of a session handed to presentation layers."""

from __future__ import annotations

from dataclasses import dataclass

from ..i18n import _
from .history import ContextPair
from .state import SessionState
from .transcript import Role, Turn


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Everything a renderer needs without reaching into the session."""

    turns: tuple[Turn, ...]
    context_pairs: tuple[ContextPair, ...]
    is_awaiting_response: bool
    last_error: str | None
    pending_input: str
    epoch: int

    @classmethod
    def capture(cls, state: SessionState) -> SessionSnapshot:
        return cls(
            turns=state.transcript.current(),
            context_pairs=state.context_pairs,
            is_awaiting_response=state.is_awaiting_response,
            last_error=state.last_error,
            pending_input=state.pending_input,
            epoch=state.epoch,
        )

    @property
    def input_enabled(self) -> bool:
        return not self.is_awaiting_response

    @property
    def input_placeholder(self) -> str:
        if self.is_awaiting_response:
            return _("Waiting for response...")
        return _("Type a question")

    @property
    def awaiting_turn_index(self) -> int | None:
        """Index of the user turn whose answer is pending, if any."""
        if not self.is_awaiting_response or not self.turns:
            return None
        index = len(self.turns) - 1
        if self.turns[index].role is not Role.USER:
            return None
        return index


__all__ = ["SessionSnapshot"]
