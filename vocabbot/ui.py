"""Single-message navigation.

Every screen is rendered into the chat's last UI message. A card flip or a
grade edits that message in place; a fresh message is sent only when the old
one can no longer be edited.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import InlineKeyboardMarkup

from vocabbot.db import get_ui_state, set_ui_state

logger = logging.getLogger(__name__)

SCREEN_MENU = "menu"
SCREEN_REVIEW = "review"
SCREEN_READING = "reading"
SCREEN_STATS = "stats"
SCREEN_IMPORT = "import"


@dataclass(frozen=True)
class Screen:
    screen_id: str
    text: str
    reply_markup: InlineKeyboardMarkup | None = None


def _not_modified(err: TelegramBadRequest) -> bool:
    return "message is not modified" in str(err).lower()


async def _last_message_id(user_id: int) -> int | None:
    state = await get_ui_state(user_id)
    if state is None or not state["last_ui_message_id"]:
        return None
    return int(state["last_ui_message_id"])


async def show_screen(bot: Bot, user_id: int, screen: Screen) -> int:
    """Render `screen` for the user and return the id of the message showing it."""
    message_id = await _last_message_id(user_id)
    if message_id is not None:
        try:
            await bot.edit_message_text(
                chat_id=user_id,
                message_id=message_id,
                text=screen.text,
                reply_markup=screen.reply_markup,
            )
        except TelegramBadRequest as e:
            if not _not_modified(e):
                logger.debug("User %s: cannot edit message %s (%s), resending", user_id, message_id, e)
                try:
                    await bot.delete_message(user_id, message_id)
                except TelegramBadRequest:
                    pass
                message_id = None
    if message_id is None:
        msg = await bot.send_message(user_id, screen.text, reply_markup=screen.reply_markup)
        message_id = msg.message_id
    await set_ui_state(user_id, last_ui_message_id=message_id, current_screen=screen.screen_id)
    return message_id
