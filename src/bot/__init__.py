# src/bot/__init__.py
"""Telegram adapter for the slot panel."""

from .slot_handlers import SlotPanelHandler, panel_keyboard, register_handlers
from .telegram_surface import TelegramPanelSurface

__all__ = [
    "SlotPanelHandler",
    "TelegramPanelSurface",
    "panel_keyboard",
    "register_handlers",
]
