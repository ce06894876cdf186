from __future__ import annotations

import logging

import aiosqlite
from aiogram import Bot, F, Router
from aiogram.types import Message

from vocabbot.daily import now_ms
from vocabbot.formatters import escape_html, format_import_result
from vocabbot.importer import VocabImportError, parse_vocab_bytes
from vocabbot.orchestrator import Learner
from vocabbot.session import store

logger = logging.getLogger(__name__)

router = Router()


async def import_csv(learner: Learner, data: bytes, now: int) -> str:
    """Import an uploaded CSV into the learner's collection and return the reply text."""
    try:
        items = parse_vocab_bytes(data)
    except VocabImportError as e:
        return f"Import failed: {escape_html(str(e))}"
    try:
        seeded = await learner.import_vocabulary(items, now)
    except (aiosqlite.Error, OSError):
        logger.exception("Vocabulary import of %d items failed", len(items))
        return "Import failed: the words could not be saved. Please try again later."
    return format_import_result(len(seeded), len(items))


@router.message(F.document)
async def on_document(message: Message, bot: Bot) -> None:
    assert message.from_user and message.document
    doc = message.document
    if not (doc.file_name or "").lower().endswith(".csv"):
        await message.answer("Send your words as a .csv file. See /help for the format.")
        return
    buf = await bot.download(doc)
    assert buf is not None
    learner = (await store.get(message.from_user.id)).learner
    await message.answer(await import_csv(learner, buf.read(), now_ms()))
