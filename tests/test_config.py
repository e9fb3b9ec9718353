"""Tests for configuration helpers."""

from datetime import timedelta

import pytest

import gamelogin.config as config_module
from gamelogin.config import Settings, get_secret_key, get_settings, parse_duration


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("30d", timedelta(days=30)),
        ("12h", timedelta(hours=12)),
        ("90m", timedelta(minutes=90)),
        ("45s", timedelta(seconds=45)),
        ("2w", timedelta(weeks=2)),
        ("1500", timedelta(milliseconds=1500)),
        ("250ms", timedelta(milliseconds=250)),
        (" 7D ", timedelta(days=7)),
    ],
)
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "thirty days", "30x", "d"])
def test_parse_duration_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.session_lifetime == "30d"
    assert settings.is_production is False


def test_secret_key_required_in_production(monkeypatch):
    monkeypatch.setattr(
        config_module, "get_settings", lambda: Settings(env="prod", secret_key=None)
    )
    with pytest.raises(RuntimeError):
        get_secret_key()


def test_secret_key_generated_once_outside_production(monkeypatch):
    monkeypatch.setattr(
        config_module, "get_settings", lambda: Settings(env="local", secret_key=None)
    )
    monkeypatch.setattr(config_module, "_dev_secret_key", None)

    first = get_secret_key()
    assert first
    assert get_secret_key() == first


def test_secret_key_from_environment():
    assert get_settings().secret_key == "test-secret-key"
    assert get_secret_key() == "test-secret-key"
