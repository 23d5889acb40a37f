#!/usr/bin/env python3
# scripts/run_slot_panel.py
"""
Slot Panel Bot - Main Entry Point

Usage:
    python scripts/run_slot_panel.py

This script:
1. Validates Telegram credentials and lease settings
2. Creates the slot tables and the fixed slot rows
3. Publishes (or re-attaches to) the panel message in TELEGRAM_CHAT_ID
4. Refreshes the panel every REFRESH_INTERVAL_SECONDS
5. Serves the reserve / release / refresh buttons until stopped
"""

import os
import sys
from pathlib import Path

import structlog

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import settings
from src.utils.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
logger = structlog.get_logger()

from telegram import Update
from telegram.ext import Application

from config.validators import validate_lease_settings, validate_telegram
from src.bot.slot_handlers import SlotPanelHandler, panel_keyboard, register_handlers
from src.bot.telegram_surface import TelegramPanelSurface
from src.db.database import close_db_async, init_db_async
from src.db.slot_store import SlotStore
from src.exceptions import ConfigError
from src.leases.manager import LeaseManager
from src.leases.models import ReleasePolicy
from src.panel.controller import PanelController


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    prefix = "sqlite+aiosqlite:///"
    if database_url.startswith(prefix):
        path = database_url[len(prefix):]
        if path and path != ":memory:":
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)


def build_application() -> Application:
    """Wire settings, store, lease manager, panel and Telegram handlers."""
    db_url = settings.DATABASE_URL
    leases = LeaseManager(
        SlotStore(db_url),
        slot_count=settings.SLOT_COUNT,
        lease_hours=settings.LEASE_HOURS,
        policy=ReleasePolicy(settings.RELEASE_POLICY),
    )

    async def on_startup(app: Application) -> None:
        _ensure_sqlite_dir(db_url)
        await init_db_async(db_url)
        await leases.initialize()
        if not await panel.refresh_once():
            logger.warning("initial_panel_publish_failed")
        panel.start()
        logger.info("slot_panel_started", slots=leases.slot_count, policy=leases.policy.value)

    async def on_shutdown(app: Application) -> None:
        await panel.stop()
        await close_db_async()
        logger.info("slot_panel_stopped")

    application = (
        Application.builder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .post_init(on_startup)
        .post_shutdown(on_shutdown)
        .build()
    )
    surface = TelegramPanelSurface(
        bot=application.bot,
        chat_id=settings.TELEGRAM_CHAT_ID,
        reply_markup=panel_keyboard(settings.LEASE_HOURS),
    )
    panel = PanelController(
        leases,
        surface,
        refresh_interval=settings.REFRESH_INTERVAL_SECONDS,
        title=settings.PANEL_TITLE,
        db_url=db_url,
    )
    register_handlers(application, SlotPanelHandler(leases, panel))
    return application


def main() -> None:
    try:
        validate_telegram()
        validate_lease_settings()
    except ConfigError as e:
        logger.critical("invalid_configuration", error=str(e))
        sys.exit(1)

    application = build_application()
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
