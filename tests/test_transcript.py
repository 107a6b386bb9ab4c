"""Tests for the append-only transcript and the history projector."""

import pytest

from policychat.session import Citation, HistoryProjector, Role, Turn, TranscriptStore


def test_append_preserves_order_and_returns_index():
    store = TranscriptStore([Turn.assistant("hello")])
    assert store.append(Turn.user("q1")) == 1
    assert store.append(Turn.assistant("a1")) == 2
    assert [turn.text for turn in store.current()] == ["hello", "q1", "a1"]
    assert store.last().text == "a1"
    assert len(store) == 3


def test_current_is_a_snapshot():
    store = TranscriptStore()
    snapshot = store.current()
    store.append(Turn.user("later"))
    assert snapshot == ()
    assert len(store.current()) == 1


def test_append_rejects_non_turns():
    store = TranscriptStore()
    with pytest.raises(TypeError):
        store.append({"role": "user", "text": "nope"})
    assert len(store) == 0


def test_turns_are_immutable():
    turn = Turn.user("question")
    with pytest.raises(AttributeError):
        turn.text = "changed"


def test_empty_citation_list_means_no_citations():
    turn = Turn.assistant("answer", [])
    assert turn.citations is None
    assert not turn.has_citations


def test_citations_are_kept_in_order():
    citations = [Citation("one", "a.pdf"), Citation("two", "b.pdf")]
    turn = Turn.assistant("answer", citations)
    assert turn.role is Role.ASSISTANT
    assert [c.origin for c in turn.citations] == ["a.pdf", "b.pdf"]


def test_user_turn_cannot_carry_citations():
    with pytest.raises(ValueError):
        Turn(role=Role.USER, text="q", citations=(Citation("x", "y"),))


def test_citation_metadata_is_read_only():
    citation = Citation("passage", "doc1", {"page": 3})
    with pytest.raises(TypeError):
        citation.metadata["page"] = 4
    assert hash(citation) == hash(Citation("passage", "doc1", {"page": 9}))


def test_history_projector_records_pairs_incrementally():
    history = HistoryProjector()
    before = history.snapshot()
    history.record("q1", "a1")
    history.record("q2", "a2")
    assert before == ()
    assert history.snapshot() == (("q1", "a1"), ("q2", "a2"))
    assert history.as_payload() == [["q1", "a1"], ["q2", "a2"]]
    assert len(history) == 2
