from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from ..session import store


router = Router()


@router.message(Command("start"))
async def cmd_start(message: Message) -> None:
    assert message.from_user
    await store.get(message.from_user.id)
    await message.answer(
        "Welcome! Review your vocabulary with spaced repetition, then read a short story built from today's words.\n"
        "Use /review to start flashcards, /reading for a passage and /stats for your progress."
    )
