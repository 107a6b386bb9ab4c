"""Append-only transcript of conversational turns."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from ..util.time import utc_now_iso


class Role(StrEnum):
    """Author of a turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Citation:
    """Source passage attached to an assistant answer."""

    content: str
    origin: str
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True, slots=True)
class Turn:
    """One message of the conversation.

    ``citations`` is ``None`` when the answer used no retrieved context and a
    non-empty tuple otherwise; user turns never carry citations.
    """

    role: Role
    text: str
    citations: tuple[Citation, ...] | None = None
    created_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        if self.citations is not None:
            citations = tuple(self.citations)
            if self.role is not Role.ASSISTANT and citations:
                raise ValueError("only assistant turns may carry citations")
            object.__setattr__(self, "citations", citations or None)

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(role=Role.USER, text=text)

    @classmethod
    def assistant(
        cls, text: str, citations: Iterable[Citation] | None = None
    ) -> Turn:
        return cls(
            role=Role.ASSISTANT,
            text=text,
            citations=tuple(citations) if citations is not None else None,
        )

    @property
    def has_citations(self) -> bool:
        return self.citations is not None


class TranscriptStore:
    """Ordered log of turns; entries are only ever appended."""

    __slots__ = ("_turns",)

    def __init__(self, seed: Iterable[Turn] = ()) -> None:
        self._turns: list[Turn] = []
        for turn in seed:
            self.append(turn)

    def append(self, turn: Turn) -> int:
        """Add *turn* at the end and return its index."""
        if not isinstance(turn, Turn):
            raise TypeError(f"expected Turn, got {type(turn).__name__}")
        self._turns.append(turn)
        return len(self._turns) - 1

    def current(self) -> tuple[Turn, ...]:
        """Return the full ordered transcript."""
        return tuple(self._turns)

    def last(self) -> Turn | None:
        return self._turns[-1] if self._turns else None

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))


__all__ = ["Citation", "Role", "Turn", "TranscriptStore"]
