from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from vocabbot.daily import now_ms
from vocabbot.formatters import format_stats
from vocabbot.keyboards import kb_back_to_menu
from vocabbot.orchestrator import Learner
from vocabbot.progression import level_stats, xp_rank
from vocabbot.queue import count_due
from vocabbot.session import store
from vocabbot.ui import SCREEN_STATS, Screen, show_screen


router = Router()


def build_stats_text(learner: Learner, now: int) -> str:
    profile = learner.profile
    reviews_due, new_due = count_due(learner.review_states, now)
    return format_stats(
        stats=level_stats(profile.effective_level, learner.vocab, learner.review_states),
        rank=xp_rank(profile.xp),
        xp=profile.xp,
        streak_days=learner.current_streak(now),
        progress=learner.today_progress(now),
        reviews_due=reviews_due,
        new_due=new_due,
    )


@router.message(Command("stats"))
async def cmd_stats(message: Message) -> None:
    assert message.from_user
    user_id = message.from_user.id
    learner = (await store.get(user_id)).learner
    screen = Screen(SCREEN_STATS, build_stats_text(learner, now_ms()), kb_back_to_menu())
    await show_screen(message.bot, user_id, screen)  # type: ignore[arg-type]


@router.callback_query(F.data == "ui:stats")
async def on_stats_open(cb: CallbackQuery) -> None:
    assert cb.from_user
    user_id = cb.from_user.id
    learner = (await store.get(user_id)).learner
    screen = Screen(SCREEN_STATS, build_stats_text(learner, now_ms()), kb_back_to_menu())
    await show_screen(cb.message.bot, user_id, screen)  # type: ignore[union-attr]
    await cb.answer()
