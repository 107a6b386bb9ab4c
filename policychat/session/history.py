"""Conversational memory derived from completed question/answer rounds."""

from __future__ import annotations

ContextPair = tuple[str, str]


class HistoryProjector:
    """Keep the ``(question, answer)`` pairs sent to the backend as context.

    Pairs are recorded one per successful round, in the order the rounds
    completed.  The greeting and failed rounds never produce a pair, so the
    projection is never rebuilt from the transcript.
    """

    __slots__ = ("_pairs",)

    def __init__(self) -> None:
        self._pairs: list[ContextPair] = []

    def record(self, question: str, answer: str) -> None:
        """Append the pair of a round that produced an answer."""
        self._pairs.append((question, answer))

    def snapshot(self) -> tuple[ContextPair, ...]:
        """Return the pairs accumulated so far."""
        return tuple(self._pairs)

    def as_payload(self) -> list[list[str]]:
        """Return the pairs in their JSON wire shape."""
        return [[question, answer] for question, answer in self._pairs]

    def __len__(self) -> int:
        return len(self._pairs)


__all__ = ["ContextPair", "HistoryProjector"]
