# src/bot/slot_handlers.py
"""Telegram handlers for the slot panel buttons and menus.

The panel message carries three buttons: reserve, release and refresh.
Reserve and (under the "choose" policy) release answer with a menu of slot
buttons; picking one calls the lease manager and re-publishes the panel.
"""

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from telegram import InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import TelegramError
from telegram.ext import CallbackQueryHandler, CommandHandler

from src.exceptions import InvalidSlotError
from src.leases.manager import LeaseManager
from src.leases.models import ClaimStatus, ReleasePolicy, Slot
from src.panel.controller import PanelController

logger = structlog.get_logger()

CB_REFRESH = "slot_refresh"
CB_CLAIM = "slot_claim"
CB_RELEASE = "slot_release"
CB_PICK = "slot_pick"  # slot_pick:<n>:<owner>  reserve slot n
CB_DROP = "slot_drop"  # slot_drop:<n>:<owner>  release slot n

SETUP_COMMAND = "setup_panel"
BUTTONS_PER_ROW = 4
GENERIC_FAILURE = "Something went wrong. Please try again."
NOT_YOUR_MENU = "This menu belongs to someone else. Use the panel buttons to open your own."


@dataclass
class HandlerReply:
    """What to show the user after an interaction."""

    text: str
    reply_markup: Optional[InlineKeyboardMarkup] = None

    @property
    def is_menu(self) -> bool:
        return self.reply_markup is not None


def panel_keyboard(lease_hours: float) -> InlineKeyboardMarkup:
    """Buttons attached to the panel message."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(f"Reserve ({lease_hours:g}h)", callback_data=CB_CLAIM),
                InlineKeyboardButton("Release", callback_data=CB_RELEASE),
                InlineKeyboardButton("Refresh", callback_data=CB_REFRESH),
            ]
        ]
    )


def slot_menu(
    slots: list[Slot], action: str, owner_id: Optional[str] = None
) -> InlineKeyboardMarkup:
    """One button per slot, ``BUTTONS_PER_ROW`` to a row.

    When ``owner_id`` is given it is appended to every button's callback data,
    so presses by other chat members can be turned away.
    """
    suffix = f":{owner_id}" if owner_id else ""
    buttons = [
        InlineKeyboardButton(f"Slot {s.slot_no:02d}", callback_data=f"{action}:{s.slot_no}{suffix}")
        for s in slots
    ]
    rows = [buttons[i:i + BUTTONS_PER_ROW] for i in range(0, len(buttons), BUTTONS_PER_ROW)]
    return InlineKeyboardMarkup(rows)


def caller_identity(user: Any) -> tuple[str, str]:
    """Stable user id plus a best-effort display label."""
    user_id = str(user.id)
    label = getattr(user, "full_name", None) or getattr(user, "username", None) or user_id
    return user_id, label


class SlotPanelHandler:
    """Turns panel interactions into lease manager calls."""

    def __init__(self, leases: LeaseManager, panel: PanelController) -> None:
        self.leases = leases
        self.panel = panel

    # ==================== Interaction logic ====================

    async def handle_refresh(self) -> None:
        await self.panel.publish()

    async def handle_claim_request(self, user_id: str) -> HandlerReply:
        free = await self.leases.list_free()
        if not free:
            return HandlerReply("No free slots right now.")
        return HandlerReply(
            f"Pick the slot you want to reserve ({self.leases.lease_hours:g} hours):",
            slot_menu(free, CB_PICK, user_id),
        )

    async def handle_claim_pick(self, raw_slot: str, user_id: str, label: str) -> HandlerReply:
        try:
            slot_no = self.leases.validate_slot_no(raw_slot)
        except InvalidSlotError:
            return HandlerReply("Invalid slot.")

        result = await self.leases.claim(slot_no, user_id, label)
        if result.status is ClaimStatus.ALREADY_HELD:
            return HandlerReply(
                f"Slot {slot_no:02d} was already taken. Refresh and pick another one."
            )
        if result.status is ClaimStatus.LIMIT_REACHED:
            return HandlerReply("You already hold a slot. Release it before reserving another.")

        await self.panel.publish()
        return HandlerReply(
            f"You reserved slot {slot_no:02d} for {self.leases.lease_hours:g} hours."
        )

    async def handle_release_request(self, user_id: str) -> HandlerReply:
        if self.leases.policy is ReleasePolicy.SINGLE:
            result = await self.leases.release_any_held_by(user_id)
            if not result.released:
                return HandlerReply("You have no reserved slot.")
            await self.panel.publish()
            return HandlerReply(f"You released slot {result.slot_no:02d}.")

        mine = await self.leases.list_held_by(user_id)
        if not mine:
            return HandlerReply("You have no reserved slots.")
        return HandlerReply("Pick the slot you want to release:", slot_menu(mine, CB_DROP, user_id))

    async def handle_release_pick(self, raw_slot: str, user_id: str) -> HandlerReply:
        try:
            slot_no = self.leases.validate_slot_no(raw_slot)
        except InvalidSlotError:
            return HandlerReply("Invalid slot.")

        result = await self.leases.release(slot_no, user_id)
        if not result.released:
            return HandlerReply(
                f"You cannot release slot {slot_no:02d}: it is not reserved by you or is already free."
            )
        await self.panel.publish()
        return HandlerReply(f"You released slot {slot_no:02d}.")

    # ==================== Telegram callbacks ====================

    async def on_setup_command(self, update: Any, context: Any) -> None:
        """/setup_panel: post or refresh the panel message."""
        try:
            await self.panel.publish()
            await update.effective_message.reply_text("Panel updated.")
        except Exception as e:
            logger.error("panel_setup_failed", error=str(e), exc_info=True)
            await self._safe_reply(update.effective_message, GENERIC_FAILURE)

    async def on_callback(self, update: Any, context: Any) -> None:
        """Dispatch a button press from the panel or from a slot menu."""
        query = update.callback_query
        user_id, label = caller_identity(query.from_user)
        action, _, arg = (query.data or "").partition(":")

        try:
            if action == CB_REFRESH:
                await self.handle_refresh()
                await query.answer()
                return

            if action == CB_CLAIM:
                reply = await self.handle_claim_request(user_id)
            elif action == CB_RELEASE:
                reply = await self.handle_release_request(user_id)
            elif action in (CB_PICK, CB_DROP):
                raw_slot, _, owner_id = arg.partition(":")
                if owner_id and owner_id != user_id:
                    logger.info("foreign_menu_press", action=action, owner_id=owner_id, user_id=user_id)
                    await query.answer(NOT_YOUR_MENU, show_alert=True)
                    return
                if action == CB_PICK:
                    reply = await self.handle_claim_pick(raw_slot, user_id, label)
                else:
                    reply = await self.handle_release_pick(raw_slot, user_id)
                await query.answer()
                await query.edit_message_text(reply.text)
                return
            else:
                logger.warning("unknown_callback", data=query.data, user_id=user_id)
                await query.answer()
                return

            await query.answer()
            await query.message.reply_text(reply.text, reply_markup=reply.reply_markup)

        except Exception as e:
            logger.error(
                "slot_interaction_failed",
                action=action,
                user_id=user_id,
                error=str(e),
                exc_info=True,
            )
            await self._safe_answer(query, GENERIC_FAILURE)

    async def _safe_answer(self, query: Any, text: str) -> None:
        try:
            await query.answer(text, show_alert=True)
        except TelegramError as e:
            logger.warning("callback_answer_failed", error=str(e))

    async def _safe_reply(self, message: Any, text: str) -> None:
        try:
            await message.reply_text(text)
        except TelegramError as e:
            logger.warning("reply_failed", error=str(e))


def register_handlers(application: Any, handler: SlotPanelHandler) -> None:
    """Attach the setup command and the panel callbacks to a telegram Application."""
    application.add_handler(CommandHandler(SETUP_COMMAND, handler.on_setup_command))
    application.add_handler(CallbackQueryHandler(handler.on_callback, pattern=r"^slot_"))
