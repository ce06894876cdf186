from __future__ import annotations

import logging

from aiogram import Bot, F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from vocabbot.config import DAILY_NEW_CARD_LIMIT, SESSION_BATCH_SIZE
from vocabbot.daily import now_ms
from vocabbot.formatters import format_round_complete, html_card_back, html_card_front
from vocabbot.keyboards import kb_card_front, kb_main_menu, kb_rating, round_end_keyboard
from vocabbot.orchestrator import MissingReviewStateError
from vocabbot.queue import build_round
from vocabbot.session import SessionData, store
from vocabbot.srs import InvalidRatingError, parse_rating
from vocabbot.ui import SCREEN_MENU, SCREEN_REVIEW, Screen, show_screen

logger = logging.getLogger(__name__)

router = Router()


def _new_round(s: SessionData, now: int) -> None:
    s.reset_round(build_round(s.learner.review_states, now, DAILY_NEW_CARD_LIMIT, SESSION_BATCH_SIZE))


async def _show_next(bot: Bot, user_id: int, s: SessionData) -> None:
    """Show the next card front, or the round summary when nothing is left."""
    learner = s.learner
    now = now_ms()
    while (item_id := s.next_item(now)) is not None:
        item = learner.item(item_id)
        if item is None:
            logger.error("User %s: review state %s has no vocabulary item, skipping", user_id, item_id)
            continue
        state = next((st for st in learner.review_states if st.item_id == item_id), None)
        is_new = state is not None and state.review_count == 0
        screen = Screen(SCREEN_REVIEW, html_card_front(item, is_new=is_new), kb_card_front(item_id))
        await show_screen(bot, user_id, screen)
        return

    s.current = None
    if s.shown == 0:
        text = "Nothing due right now 🎉"
    else:
        progress = learner.today_progress(now)
        text = format_round_complete(s.shown, s.xp_gained, progress.reviews_completed_today, s.mastered)
    await show_screen(bot, user_id, Screen(SCREEN_REVIEW, text, round_end_keyboard()))


@router.message(Command("review"))
async def cmd_review(message: Message) -> None:
    assert message.from_user
    user_id = message.from_user.id
    s = await store.get(user_id)
    if not s.queue and not s.relearn:
        _new_round(s, now_ms())
    await _show_next(message.bot, user_id, s)  # type: ignore[arg-type]


@router.callback_query(F.data.in_({"ui:review", "round:repeat"}))
async def on_review_open(cb: CallbackQuery) -> None:
    assert cb.from_user
    user_id = cb.from_user.id
    s = await store.get(user_id)
    if cb.data == "round:repeat" or (not s.queue and not s.relearn):
        _new_round(s, now_ms())
    await _show_next(cb.message.bot, user_id, s)  # type: ignore[union-attr]
    await cb.answer()


@router.callback_query(F.data.startswith("flip:"))
async def on_flip(cb: CallbackQuery) -> None:
    assert cb.from_user and cb.data
    user_id = cb.from_user.id
    item_id = cb.data.split(":", 1)[1]
    s = await store.get(user_id)
    item = s.learner.item(item_id)
    if item is None or s.current != item_id:
        await cb.answer("This card is no longer active.")
        return
    state = next((st for st in s.learner.review_states if st.item_id == item_id), None)
    screen = Screen(SCREEN_REVIEW, html_card_back(item, state), kb_rating(item_id))
    await show_screen(cb.message.bot, user_id, screen)  # type: ignore[union-attr]
    await cb.answer()


@router.callback_query(F.data.startswith("ans:"))
async def on_ans(cb: CallbackQuery) -> None:
    assert cb.from_user and cb.data
    user_id = cb.from_user.id
    _, raw_rating, item_id = cb.data.split(":", 2)
    s = await store.get(user_id)
    try:
        rating = parse_rating(raw_rating)
    except InvalidRatingError as e:
        logger.warning("User %s: rejected rating %r for %s", user_id, raw_rating, item_id)
        await cb.answer(str(e), show_alert=True)
        return
    if not s.take_current(item_id):
        await cb.answer("Already graded.")
        return
    try:
        result = s.learner.grade(item_id, rating, now_ms())
    except MissingReviewStateError as e:
        logger.warning("User %s: rejected grading of %s: %s", user_id, item_id, e)
        await cb.answer(str(e), show_alert=True)
        return

    s.record(item_id, rating, result)
    if result.mastered:
        await cb.answer(f"🏆 Mastered! +{result.xp_gained} XP")
    else:
        await cb.answer()
    await _show_next(cb.message.bot, user_id, s)  # type: ignore[union-attr]


@router.callback_query(F.data == "ui:review.finish")
async def on_finish(cb: CallbackQuery) -> None:
    assert cb.from_user
    user_id = cb.from_user.id
    s = await store.get(user_id)
    summary = format_round_complete(
        s.shown,
        s.xp_gained,
        s.learner.today_progress(now_ms()).reviews_completed_today,
        s.mastered,
    )
    screen = Screen(SCREEN_MENU, f"{summary}\n\n/menu for today's goals", kb_main_menu())
    await show_screen(cb.message.bot, user_id, screen)  # type: ignore[union-attr]
    await store.clear(user_id)
    await cb.answer()
