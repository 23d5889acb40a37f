"""Credential and configuration validators."""

from src.exceptions import ConfigError

VALID_RELEASE_POLICIES = ("choose", "single")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def validate_telegram() -> None:
    """Raise ConfigError if Telegram credentials are missing."""
    from config.settings import settings
    if not settings.TELEGRAM_BOT_TOKEN:
        raise ConfigError("TELEGRAM_BOT_TOKEN is required")
    if not settings.TELEGRAM_CHAT_ID:
        raise ConfigError("TELEGRAM_CHAT_ID is required")


def validate_lease_settings() -> None:
    """Raise ConfigError if a lease, panel or logging setting is unusable."""
    from config.settings import settings
    if settings.SLOT_COUNT < 1:
        raise ConfigError("SLOT_COUNT must be at least 1")
    if settings.LEASE_HOURS <= 0:
        raise ConfigError("LEASE_HOURS must be positive")
    if settings.REFRESH_INTERVAL_SECONDS <= 0:
        raise ConfigError("REFRESH_INTERVAL_SECONDS must be positive")
    if settings.RELEASE_POLICY not in VALID_RELEASE_POLICIES:
        raise ConfigError(
            f"RELEASE_POLICY must be one of {', '.join(VALID_RELEASE_POLICIES)}, "
            f"got {settings.RELEASE_POLICY!r}"
        )
    if settings.LOG_LEVEL.upper() not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}, got {settings.LOG_LEVEL!r}"
        )
