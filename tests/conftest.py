"""Pytest configuration for the PolicyChat test suite."""

from __future__ import annotations

from gettext import NullTranslations

import pytest

from policychat import i18n
from policychat import log as log_module
from policychat.log import LOG_DIR_ENV, logger
from policychat.session import SubmissionController
from policychat.settings import SessionSettings
from tests.backend_utils import GREETING, ScriptedBackend


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path_factory, monkeypatch):
    """Keep log files and translations out of the user's environment."""
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path_factory.mktemp("logs")))
    monkeypatch.delenv("POLICYCHAT_API_BASE", raising=False)
    monkeypatch.delenv("POLICYCHAT_API_KEY", raising=False)
    for name in ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(i18n, "_TRANSLATION", NullTranslations())


@pytest.fixture(autouse=True)
def _restore_logger(monkeypatch):
    """Drop handlers installed by ``configure_logging`` during a test."""
    monkeypatch.setattr(log_module, "_log_dir", None)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def controller(backend: ScriptedBackend) -> SubmissionController:
    return SubmissionController(
        backend, settings=SessionSettings(greeting=GREETING, max_input_length=512)
    )
