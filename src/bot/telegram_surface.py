# src/bot/telegram_surface.py
"""Telegram message used as the panel display surface."""

from __future__ import annotations

import html
from typing import Any, Optional

import structlog
from telegram.error import BadRequest

from src.exceptions import DisplayError
from src.leases.render import PanelDocument

logger = structlog.get_logger()

_NOT_MODIFIED = "message is not modified"
_GONE = ("message to edit not found", "message_id_invalid", "message can't be edited")


def format_panel_message(document: PanelDocument) -> str:
    """HTML body for the panel: bold title, slot lines in a monospace block."""
    body = "\n".join([*document.header, *document.lines, "", document.summary])
    return f"<b>{html.escape(document.title)}</b>\n<pre>{html.escape(body)}</pre>"


class TelegramPanelSurface:
    """Posts and edits the panel message in one chat.

    Artifact ids are Telegram message ids rendered as strings.
    """

    def __init__(self, bot: Any, chat_id: str, reply_markup: Optional[Any] = None) -> None:
        """Initialize the surface.

        Args:
            bot: telegram.Bot instance.
            chat_id: Chat hosting the panel.
            reply_markup: Buttons attached to the panel message.
        """
        self.bot = bot
        self.chat_id = chat_id
        self.reply_markup = reply_markup

    async def create(self, document: PanelDocument) -> str:
        message = await self.bot.send_message(
            chat_id=self.chat_id,
            text=format_panel_message(document),
            parse_mode="HTML",
            reply_markup=self.reply_markup,
        )
        return str(message.message_id)

    async def update(self, artifact_id: str, document: PanelDocument) -> bool:
        try:
            await self.bot.edit_message_text(
                chat_id=self.chat_id,
                message_id=int(artifact_id),
                text=format_panel_message(document),
                parse_mode="HTML",
                reply_markup=self.reply_markup,
            )
        except BadRequest as e:
            reason = str(e).lower()
            if _NOT_MODIFIED in reason:
                return True
            if any(marker in reason for marker in _GONE):
                logger.warning("panel_message_gone", message_id=artifact_id, error=str(e))
                return False
            raise DisplayError(f"panel edit rejected: {e}") from e
        return True

    async def fetch(self, artifact_id: str) -> bool:
        # The Bot API has no message lookup; a deleted message shows up as a
        # failed edit in update().
        return artifact_id.isdigit()
