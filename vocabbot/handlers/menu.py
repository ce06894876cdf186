from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from vocabbot.daily import now_ms
from vocabbot.formatters import format_menu
from vocabbot.importer import REQUIRED_HEADER
from vocabbot.keyboards import kb_back_to_menu, kb_main_menu
from vocabbot.orchestrator import Learner
from vocabbot.progression import xp_rank
from vocabbot.queue import count_due
from vocabbot.session import store
from vocabbot.ui import SCREEN_MENU, Screen, show_screen


router = Router()

HELP_TEXT = (
    "<b>How it works</b>\n"
    "Rate each card Again, Hard, Good or Easy. Cards you know well come back later, "
    "missed ones come back within a minute.\n"
    "\n"
    "/review - flashcards due now\n"
    "/reading - a short story with today's words\n"
    "/stats - level, rank and streak\n"
    "\n"
    "To add words, send a .csv file with the header:\n"
    f"<code>{','.join(REQUIRED_HEADER)}</code>"
)


def menu_screen(learner: Learner, now: int) -> Screen:
    profile = learner.profile
    reviews_due, new_due = count_due(learner.review_states, now)
    text = format_menu(
        rank=xp_rank(profile.xp),
        level=profile.effective_level,
        streak_days=learner.current_streak(now),
        progress=learner.today_progress(now),
        reviews_due=reviews_due,
        new_due=new_due,
    )
    return Screen(SCREEN_MENU, text, kb_main_menu())


@router.message(Command("menu"))
async def cmd_menu(message: Message) -> None:
    assert message.from_user
    user_id = message.from_user.id
    learner = (await store.get(user_id)).learner
    await show_screen(message.bot, user_id, menu_screen(learner, now_ms()))  # type: ignore[arg-type]


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT, reply_markup=kb_back_to_menu())


@router.callback_query(F.data == "ui:menu")
async def on_menu(cb: CallbackQuery) -> None:
    assert cb.from_user
    user_id = cb.from_user.id
    learner = (await store.get(user_id)).learner
    await show_screen(cb.message.bot, user_id, menu_screen(learner, now_ms()))  # type: ignore[union-attr]
    await cb.answer()
