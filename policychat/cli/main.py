"""Entry point for the command-line interface."""

from __future__ import annotations

import argparse
import logging

from policychat import i18n
from policychat.i18n import _
from policychat.log import configure_logging, install_exception_hooks
from policychat.settings import AppSettings, apply_environment, load_app_settings

from .commands import COMMANDS


def build_parser() -> argparse.ArgumentParser:
    """Construct argument parser for CLI commands."""
    parser = argparse.ArgumentParser(
        prog="policychat",
        description=_("Ask questions about the policy documents"),
    )
    parser.add_argument(
        "--settings",
        help=_("path to JSON/TOML settings"),
    )
    parser.add_argument(
        "--api-base",
        help=_("base URL of the question-answering backend"),
    )
    parser.add_argument(
        "--log-dir",
        help=_("directory for log files"),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help=_("print debug logging to the console"),
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name, cmd in COMMANDS.items():
        p = sub.add_parser(name, help=cmd.help)
        cmd.add_arguments(p)
        p.set_defaults(func=cmd.func)
    return parser


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    """Combine the settings file, environment and command-line overrides."""
    settings = load_app_settings(args.settings) if args.settings else AppSettings()
    settings = apply_environment(settings)
    if args.api_base:
        backend = settings.backend.model_copy()
        backend.base_url = args.api_base
        settings.backend = backend
    return settings


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = resolve_settings(args)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))
    level = logging.DEBUG if args.verbose else settings.ui.log_level
    configure_logging(level, log_dir=args.log_dir)
    install_exception_hooks()
    i18n.install([settings.ui.language] if settings.ui.language else None)
    args.app_settings = settings
    return args.func(args) or 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
