"""Typed application settings with Pydantic validation."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

API_BASE_ENV = "POLICYCHAT_API_BASE"
API_KEY_ENV = "POLICYCHAT_API_KEY"

DEFAULT_API_BASE = "http://127.0.0.1:3000"
DEFAULT_CHAT_PATH = "/api/chat"
DEFAULT_MAX_INPUT_LENGTH = 512
DEFAULT_GREETING = (
    "Hey, I'm here to answer your questions about the policy documents. "
    "What would you like to know about first?"
)


class BackendSettings(BaseModel):
    """Settings for reaching the question-answering backend."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    base_url: str = Field(DEFAULT_API_BASE, alias="api_base")
    chat_path: str = DEFAULT_CHAT_PATH
    api_key: str | None = None
    # ``None`` leaves backend latency unbounded.
    timeout_seconds: float | None = Field(None, gt=0)

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: str | None) -> str:
        """Strip whitespace and trailing slashes from the configured URL."""
        text = str(value or "").strip().rstrip("/")
        if not text:
            raise ValueError("backend base URL must not be empty")
        return text

    @field_validator("chat_path", mode="before")
    @classmethod
    def _normalize_chat_path(cls, value: str | None) -> str:
        text = str(value or "").strip()
        if not text:
            return DEFAULT_CHAT_PATH
        return text if text.startswith("/") else f"/{text}"

    @field_validator("api_key", mode="before")
    @classmethod
    def _normalize_api_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("timeout_seconds", mode="before")
    @classmethod
    def _normalize_timeout(cls, value: float | str | None) -> float | None:
        """Treat blanks and non-positive numbers as "no timeout"."""
        if value is None:
            return None
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return None
            try:
                value = float(raw)
            except ValueError:  # pragma: no cover - delegated to Pydantic
                return value
        if isinstance(value, bool):
            raise TypeError("Boolean is not a valid timeout value")
        numeric = float(value)
        if numeric <= 0:
            return None
        return numeric

    @property
    def chat_url(self) -> str:
        """Return the absolute URL of the chat endpoint."""
        return f"{self.base_url}{self.chat_path}"


class SessionSettings(BaseModel):
    """Settings shaping a single conversation session."""

    model_config = ConfigDict(validate_assignment=True)

    greeting: str = DEFAULT_GREETING
    max_input_length: int = Field(DEFAULT_MAX_INPUT_LENGTH, ge=1)

    @field_validator("greeting", mode="before")
    @classmethod
    def _normalize_greeting(cls, value: str | None) -> str:
        text = str(value or "").strip()
        return text or DEFAULT_GREETING

    @field_validator("max_input_length", mode="before")
    @classmethod
    def _normalize_max_input_length(cls, value: int | str | None) -> int:
        if value is None:
            return DEFAULT_MAX_INPUT_LENGTH
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return DEFAULT_MAX_INPUT_LENGTH
            try:
                return int(raw)
            except ValueError:  # pragma: no cover - delegated to Pydantic
                return value
        if isinstance(value, bool):
            raise TypeError("Boolean is not a valid max_input_length value")
        return int(value)


class UISettings(BaseModel):
    """Settings for the console front-end."""

    model_config = ConfigDict(validate_assignment=True)

    language: str | None = None
    log_level: int = Field(default=logging.WARNING)
    show_sources: bool = True

    @field_validator("language", mode="before")
    @classmethod
    def _normalise_language(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: int | str | None) -> int:
        """Accept numeric levels as well as names such as ``"debug"``."""
        if value is None:
            return logging.WARNING
        if isinstance(value, str):
            raw = value.strip()
            if raw.isdigit():
                return int(raw)
            level = logging.getLevelName(raw.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {value}")
            return level
        return value


class AppSettings(BaseModel):
    """Aggregate settings for the application."""

    model_config = ConfigDict(validate_assignment=True)

    backend: BackendSettings = Field(default_factory=BackendSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    ui: UISettings = Field(default_factory=UISettings)

    def to_dict(self) -> dict:
        """Return settings as a plain dictionary."""
        return self.model_dump()


def load_app_settings(path: str | Path) -> AppSettings:
    """Load :class:`AppSettings` from *path* with validation.

    Format is detected by file extension: ``.toml`` uses :mod:`tomllib`,
    everything else is treated as JSON.  Any validation errors are wrapped into
    :class:`ValueError` with a human-friendly message.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    try:
        return AppSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def apply_environment(
    settings: AppSettings, environ: Mapping[str, str] | None = None
) -> AppSettings:
    """Return a copy of *settings* with backend overrides from *environ*."""
    env = os.environ if environ is None else environ
    updates: dict[str, str] = {}
    api_base = env.get(API_BASE_ENV, "").strip()
    if api_base:
        updates["base_url"] = api_base
    api_key = env.get(API_KEY_ENV, "").strip()
    if api_key:
        updates["api_key"] = api_key
    if not updates:
        return settings
    backend = BackendSettings.model_validate(
        settings.backend.model_dump() | updates
    )
    return settings.model_copy(update={"backend": backend})


__all__ = [
    "API_BASE_ENV",
    "API_KEY_ENV",
    "AppSettings",
    "BackendSettings",
    "SessionSettings",
    "UISettings",
    "apply_environment",
    "load_app_settings",
]
