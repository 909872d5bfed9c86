import logging
from unittest.mock import patch

from rich.logging import RichHandler

from rightstudy.config import (
    DEFAULT_CHAT_MODEL, DEFAULT_VOICE_MODEL, DEFAULT_VOICE_NAME, Settings, configure_logging,
)

ENV_VARS = (
    "GEMINI_API_KEY", "API_KEY", "RIGHTSTUDY_CHAT_MODEL", "RIGHTSTUDY_VOICE_MODEL",
    "RIGHTSTUDY_VOICE_NAME", "RIGHTSTUDY_LOG_LEVEL",
)


def _clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear_env(monkeypatch)
    s = Settings()
    assert s.api_key is None
    assert not s.ai_enabled
    assert s.chat_model == DEFAULT_CHAT_MODEL
    assert s.voice_model == DEFAULT_VOICE_MODEL
    assert s.voice_name == DEFAULT_VOICE_NAME
    assert s.log_level == "WARNING"


def test_env_overrides(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("GEMINI_API_KEY", "abc")
    monkeypatch.setenv("RIGHTSTUDY_CHAT_MODEL", "other-model")
    monkeypatch.setenv("RIGHTSTUDY_LOG_LEVEL", "debug")
    s = Settings()
    assert s.ai_enabled
    assert s.chat_model == "other-model"
    assert s.log_level == "DEBUG"


def test_api_key_fallback(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("API_KEY", "fallback")
    assert Settings().api_key == "fallback"


def test_configure_logging_uses_rich():
    with patch("rightstudy.config.logging.basicConfig") as basic:
        configure_logging("INFO")
    kwargs = basic.call_args.kwargs
    assert kwargs["level"] == "INFO"
    assert isinstance(kwargs["handlers"][0], RichHandler)
    assert logging.getLogger("rightstudy.store") is not None
