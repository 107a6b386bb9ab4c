"""Plain-text renderer for a conversation session."""

from __future__ import annotations

import sys
import textwrap
from typing import TextIO

from ..i18n import _
from ..session import Role, SessionEvents, SessionSnapshot, SessionState, Turn


class TerminalRenderer:
    """Write turns, notices and errors to a text stream as they happen.

    Markdown bodies are printed verbatim.
    """

    def __init__(self, stream: TextIO | None = None, *, show_sources: bool = True) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._show_sources = show_sources

    # ------------------------------------------------------------------
    def attach(self, events: SessionEvents) -> None:
        """Subscribe to the session *events*."""
        events.turn_appended.connect(self.render_turn)
        events.awaiting_changed.connect(self._on_awaiting)
        events.error_changed.connect(self._on_error)
        events.notice.connect(self._on_notice)
        events.session_reset.connect(self._on_reset)

    # ------------------------------------------------------------------
    def render_snapshot(self, snapshot: SessionSnapshot) -> None:
        for turn in snapshot.turns:
            self.render_turn(turn)
        if snapshot.last_error:
            self._on_error(snapshot.last_error)

    # ------------------------------------------------------------------
    def render_turn(self, turn: Turn) -> None:
        label = _("You") if turn.role is Role.USER else _("Assistant")
        self._write(f"{label}: {turn.text}")
        if not (self._show_sources and turn.citations):
            return
        for index, citation in enumerate(turn.citations, start=1):
            self._write(_("  Source %(number)d") % {"number": index})
            self._write(textwrap.indent(citation.content.strip(), "    "))
            self._write("    " + _("Source: %(origin)s") % {"origin": citation.origin})

    # ------------------------------------------------------------------
    def _on_awaiting(self, awaiting: bool) -> None:
        if awaiting:
            self._write(_("Waiting for response..."))

    def _on_error(self, message: str | None) -> None:
        if message:
            self._write(_("Error: %(message)s") % {"message": message})

    def _on_notice(self, message: str) -> None:
        self._write(f"! {message}")

    def _on_reset(self, state: SessionState) -> None:
        self._write(_("-- new conversation --"))
        self.render_snapshot(SessionSnapshot.capture(state))

    def _write(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()


__all__ = ["TerminalRenderer"]
