import json
import logging

import pytest

from policychat.settings import (
    API_BASE_ENV,
    API_KEY_ENV,
    AppSettings,
    BackendSettings,
    SessionSettings,
    UISettings,
    apply_environment,
    load_app_settings,
)


def test_defaults():
    settings = AppSettings()
    assert settings.backend.chat_url == "http://127.0.0.1:3000/api/chat"
    assert settings.backend.timeout_seconds is None
    assert settings.backend.api_key is None
    assert settings.session.max_input_length == 512
    assert settings.session.greeting.startswith("Hey, I'm here to answer")
    assert settings.ui.log_level == logging.WARNING
    assert settings.ui.show_sources is True


def test_backend_url_is_normalised():
    backend = BackendSettings(api_base="  https://qa.example.org/  ", chat_path="chat")
    assert backend.base_url == "https://qa.example.org"
    assert backend.chat_url == "https://qa.example.org/chat"


def test_blank_backend_url_is_rejected():
    with pytest.raises(ValueError):
        BackendSettings(api_base="   ")


@pytest.mark.parametrize("raw", [None, "", "0", -5, 0])
def test_non_positive_timeout_means_unbounded(raw):
    assert BackendSettings(timeout_seconds=raw).timeout_seconds is None


def test_timeout_parses_strings():
    assert BackendSettings(timeout_seconds="2.5").timeout_seconds == 2.5


def test_blank_greeting_falls_back_to_default():
    assert SessionSettings(greeting="  ").greeting == SessionSettings().greeting


def test_max_input_length_must_be_positive():
    with pytest.raises(ValueError):
        SessionSettings(max_input_length=0)


def test_log_level_accepts_names():
    assert UISettings(log_level="debug").log_level == logging.DEBUG
    assert UISettings(log_level="20").log_level == logging.INFO
    with pytest.raises(ValueError):
        UISettings(log_level="chatty")


def test_load_toml(tmp_path):
    path = tmp_path / "settings.toml"
    path.write_text(
        '[backend]\napi_base = "http://qa.local:8080/"\ntimeout_seconds = 30\n'
        '[session]\nmax_input_length = 200\n'
        '[ui]\nlanguage = "fr"\nshow_sources = false\n',
        encoding="utf-8",
    )
    settings = load_app_settings(path)
    assert settings.backend.base_url == "http://qa.local:8080"
    assert settings.backend.timeout_seconds == 30
    assert settings.session.max_input_length == 200
    assert settings.ui.language == "fr"
    assert settings.ui.show_sources is False


def test_load_json_round_trips_to_dict(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"session": {"greeting": "Hi"}}), encoding="utf-8")
    settings = load_app_settings(path)
    assert settings.to_dict()["session"]["greeting"] == "Hi"


def test_invalid_settings_raise_value_error(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"session": {"max_input_length": -1}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_app_settings(path)


def test_environment_overrides_backend():
    settings = AppSettings(backend=BackendSettings(timeout_seconds=10))
    updated = apply_environment(
        settings, {API_BASE_ENV: "http://env.example/", API_KEY_ENV: " token "}
    )
    assert updated.backend.base_url == "http://env.example"
    assert updated.backend.api_key == "token"
    assert updated.backend.timeout_seconds == 10
    assert settings.backend.base_url == "http://127.0.0.1:3000"


def test_environment_without_overrides_keeps_settings():
    settings = AppSettings()
    assert apply_environment(settings, {}) is settings
