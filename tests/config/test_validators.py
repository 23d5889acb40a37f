import pytest

from config.settings import settings
from config.validators import validate_lease_settings, validate_telegram
from src.exceptions import ConfigError


def test_missing_telegram_token(monkeypatch):
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "")
    monkeypatch.setattr(settings, "TELEGRAM_CHAT_ID", "-100")
    with pytest.raises(ConfigError, match="TELEGRAM_BOT_TOKEN"):
        validate_telegram()


def test_missing_telegram_chat(monkeypatch):
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "token")
    monkeypatch.setattr(settings, "TELEGRAM_CHAT_ID", "")
    with pytest.raises(ConfigError, match="TELEGRAM_CHAT_ID"):
        validate_telegram()


def test_valid_lease_settings(monkeypatch):
    monkeypatch.setattr(settings, "SLOT_COUNT", 24)
    monkeypatch.setattr(settings, "LEASE_HOURS", 8.0)
    monkeypatch.setattr(settings, "REFRESH_INTERVAL_SECONDS", 60.0)
    monkeypatch.setattr(settings, "RELEASE_POLICY", "single")
    monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
    validate_lease_settings()


@pytest.mark.parametrize(
    "field,value",
    [
        ("SLOT_COUNT", 0),
        ("LEASE_HOURS", 0.0),
        ("REFRESH_INTERVAL_SECONDS", -1.0),
        ("RELEASE_POLICY", "both"),
        ("LOG_LEVEL", "BOGUS"),
    ],
)
def test_invalid_lease_settings(monkeypatch, field, value):
    monkeypatch.setattr(settings, "SLOT_COUNT", 24)
    monkeypatch.setattr(settings, "LEASE_HOURS", 8.0)
    monkeypatch.setattr(settings, "REFRESH_INTERVAL_SECONDS", 60.0)
    monkeypatch.setattr(settings, "RELEASE_POLICY", "choose")
    monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
    monkeypatch.setattr(settings, field, value)
    with pytest.raises(ConfigError):
        validate_lease_settings()


def test_log_level_is_case_insensitive(monkeypatch):
    monkeypatch.setattr(settings, "SLOT_COUNT", 24)
    monkeypatch.setattr(settings, "LEASE_HOURS", 8.0)
    monkeypatch.setattr(settings, "REFRESH_INTERVAL_SECONDS", 60.0)
    monkeypatch.setattr(settings, "RELEASE_POLICY", "choose")
    monkeypatch.setattr(settings, "LOG_LEVEL", "debug")
    validate_lease_settings()
