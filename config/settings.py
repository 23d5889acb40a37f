"""Runtime configuration for the slot lease panel."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # === Telegram ===
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""  # Chat that hosts the status panel

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///data/slots.db"

    # === Leases ===
    SLOT_COUNT: int = 24
    LEASE_HOURS: float = 8.0
    RELEASE_POLICY: str = "choose"  # "choose" (many per user) or "single" (one per user)

    # === Panel ===
    REFRESH_INTERVAL_SECONDS: float = 60.0
    PANEL_TITLE: str = "Slot Status Panel"

    # === Logging ===
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
