"""Command implementations for the CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from policychat.backend import QuestionAnswerer
from policychat.i18n import _
from policychat.session import Role, SessionSnapshot, SubmissionController, SubmissionOutcome
from policychat.settings import AppSettings
from policychat.util.json import make_json_safe

from .render import TerminalRenderer

QUIT_COMMANDS = frozenset({"/quit", "/exit"})
RESET_COMMAND = "/reset"


@dataclass
class Command:
    """Describe a CLI command and its argument handler."""

    func: Callable[[argparse.Namespace], int | None]
    help: str
    add_arguments: Callable[[argparse.ArgumentParser], None]


def build_backend(settings: AppSettings) -> QuestionAnswerer:
    """Return the HTTP question-answering client for *settings*."""
    from policychat.backend.client import QAClient

    return QAClient(settings.backend)


def _build_controller(settings: AppSettings) -> SubmissionController:
    return SubmissionController(build_backend(settings), settings=settings.session)


async def run_chat_loop(
    controller: SubmissionController,
    read_line: Callable[[str], str] | None = None,
) -> None:
    """Read questions until EOF or ``/quit`` and submit them one at a time.

    Each question is awaited before the next prompt is shown.
    """
    if read_line is None:
        read_line = input
    while True:
        try:
            line = await asyncio.to_thread(read_line, "> ")
        except EOFError:
            return
        command = line.strip()
        if command in QUIT_COMMANDS:
            return
        if command == RESET_COMMAND:
            controller.reset()
            continue
        controller.update_draft(line)
        await controller.submit(line)


def cmd_chat(args: argparse.Namespace, *, stream: TextIO | None = None) -> int:
    """Start an interactive conversation in the terminal."""
    settings: AppSettings = args.app_settings
    controller = _build_controller(settings)
    renderer = TerminalRenderer(stream, show_sources=settings.ui.show_sources)
    renderer.render_snapshot(controller.snapshot())
    renderer.attach(controller.events)
    asyncio.run(run_chat_loop(controller))
    return 0


def add_chat_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``chat`` command."""


def _snapshot_payload(snapshot: SessionSnapshot) -> dict[str, object]:
    last = snapshot.turns[-1]
    answer = last if len(snapshot.turns) > 1 and last.role is Role.ASSISTANT else None
    citations = answer.citations if answer is not None else None
    return make_json_safe(
        {
            "answer": answer.text if answer is not None else None,
            "citations": [
                {"origin": citation.origin, "content": citation.content}
                for citation in citations or ()
            ],
            "error": snapshot.last_error,
        }
    )


def cmd_ask(args: argparse.Namespace) -> int:
    """Ask a single question and print the answer with its sources."""
    settings: AppSettings = args.app_settings
    controller = _build_controller(settings)
    notices: list[str] = []
    controller.events.notice.connect(notices.append)
    outcome = asyncio.run(controller.submit(args.question))
    snapshot = controller.snapshot()

    if args.json:
        sys.stdout.write(
            json.dumps(_snapshot_payload(snapshot), ensure_ascii=False, indent=2) + "\n"
        )
    elif outcome is SubmissionOutcome.ANSWERED:
        renderer = TerminalRenderer(sys.stdout, show_sources=settings.ui.show_sources)
        renderer.render_turn(snapshot.turns[-1])

    if outcome is SubmissionOutcome.ANSWERED:
        return 0
    message = snapshot.last_error or "; ".join(notices)
    if message and not args.json:
        sys.stderr.write(_("Error: %(message)s") % {"message": message} + "\n")
    return 2 if outcome is SubmissionOutcome.REJECTED else 1


def add_ask_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``ask`` command."""
    p.add_argument("question", help=_("question to ask"))
    p.add_argument("--json", action="store_true", help=_("print the result as JSON"))


COMMANDS: dict[str, Command] = {
    "chat": Command(cmd_chat, _("start an interactive conversation"), add_chat_arguments),
    "ask": Command(cmd_ask, _("ask a single question"), add_ask_arguments),
}
