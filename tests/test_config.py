import logging

import pytest
from pydantic import ValidationError

from voice_companion.config import Settings, get_settings
from voice_companion.main import build_parser, log_level_for


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    monkeypatch.delenv("VOICE_COMPANION_REPLY_DELAY_MS", raising=False)
    settings = Settings(_env_file=None)
    assert settings.reply_delay_ms == 500
    assert settings.greeting_delay_ms == 1000
    assert settings.speech_rate == 0.9
    assert settings.speech_volume == 0.8
    assert settings.preferred_voice_markers[0] == "female"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("VOICE_COMPANION_REPLY_DELAY_MS", "250")
    monkeypatch.setenv("VOICE_COMPANION_DEFAULT_LANGUAGE", "fr")
    monkeypatch.setenv("VOICE_COMPANION_PREFERRED_VOICE_MARKERS", '["amelie"]')

    settings = get_settings()
    assert settings.reply_delay_ms == 250
    assert settings.default_language == "fr"
    assert settings.preferred_voice_markers == ["amelie"]


def test_out_of_range_volume_is_rejected(monkeypatch):
    monkeypatch.setenv("VOICE_COMPANION_SPEECH_VOLUME", "2")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_cli_platform_defaults_to_console(monkeypatch):
    monkeypatch.delenv("VOICE_COMPANION_PLATFORM", raising=False)
    args = build_parser().parse_args([])
    assert args.platform == "console"
    assert args.mode is None


def test_cli_platform_from_env(monkeypatch):
    monkeypatch.setenv("VOICE_COMPANION_PLATFORM", "local")
    args = build_parser().parse_args(["guide"])
    assert args.platform == "local"
    assert args.mode == "guide"


def test_log_level_from_settings(monkeypatch):
    monkeypatch.setenv("VOICE_COMPANION_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("VOICE_COMPANION_DEBUG", raising=False)
    assert log_level_for(Settings(_env_file=None)) == logging.WARNING


def test_debug_forces_debug_logging(monkeypatch):
    monkeypatch.setenv("VOICE_COMPANION_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("VOICE_COMPANION_DEBUG", "true")
    assert log_level_for(Settings(_env_file=None)) == logging.DEBUG
