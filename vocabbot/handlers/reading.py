from __future__ import annotations

import logging

from aiogram import Bot, F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from vocabbot.content_client import ContentClientError, generate_reading
from vocabbot.daily import now_ms
from vocabbot.formatters import format_reading_error_html, format_reading_html, format_reading_loading_html
from vocabbot.keyboards import kb_back_to_menu, kb_reading_done
from vocabbot.session import store
from vocabbot.ui import SCREEN_READING, Screen, show_screen

logger = logging.getLogger(__name__)

router = Router()


async def _show_reading(bot: Bot, user_id: int) -> None:
    learner = (await store.get(user_id)).learner
    await show_screen(bot, user_id, Screen(SCREEN_READING, format_reading_loading_html(), None))
    words = learner.target_words(now_ms())
    try:
        passage = await generate_reading(words, learner.profile.effective_level)
    except ContentClientError as e:
        logger.warning("User %s: reading generation failed: %s", user_id, e)
        await show_screen(bot, user_id, Screen(SCREEN_READING, format_reading_error_html(), kb_back_to_menu()))
        return
    await show_screen(bot, user_id, Screen(SCREEN_READING, format_reading_html(passage), kb_reading_done()))


@router.message(Command("reading"))
async def cmd_reading(message: Message) -> None:
    assert message.from_user
    await _show_reading(message.bot, message.from_user.id)  # type: ignore[arg-type]


@router.callback_query(F.data == "ui:reading")
async def on_reading_open(cb: CallbackQuery) -> None:
    assert cb.from_user
    await cb.answer()
    await _show_reading(cb.message.bot, cb.from_user.id)  # type: ignore[union-attr]


@router.callback_query(F.data == "ui:reading.done")
async def on_reading_done(cb: CallbackQuery) -> None:
    assert cb.from_user
    learner = (await store.get(cb.from_user.id)).learner
    before = learner.profile.xp
    profile = learner.complete_reading(now_ms())
    gained = profile.xp - before
    await cb.answer(f"Reading done! +{gained} XP" if gained else "Reading done!")
    screen = Screen(SCREEN_READING, "<b>Reading</b>\nNice work. See /stats for today's goals.", kb_back_to_menu())
    await show_screen(cb.message.bot, cb.from_user.id, screen)  # type: ignore[union-attr]
