from __future__ import annotations

import contextlib
import logging
from datetime import date, tzinfo
from typing import AsyncIterator, Sequence

import aiosqlite

from vocabbot.config import DB_PATH
from vocabbot.daily import fresh_progress, local_day
from vocabbot.models import DailyProgress, LearnerProfile, ReviewState, VocabularyItem

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    db = await aiosqlite.connect(DB_PATH.as_posix())
    db.row_factory = aiosqlite.Row
    try:
        yield db
    finally:
        await db.close()


async def init_db() -> None:
    async with get_db() as db:
        await db.executescript(
            """
            PRAGMA journal_mode=WAL;

            CREATE TABLE IF NOT EXISTS vocabulary (
                user_id INTEGER NOT NULL,
                id TEXT NOT NULL,
                text TEXT NOT NULL,
                reading TEXT NOT NULL DEFAULT '',
                meaning TEXT NOT NULL,
                level INTEGER NOT NULL DEFAULT 1,
                tags TEXT,
                seq INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY(user_id, id)
            );

            CREATE TABLE IF NOT EXISTS review_state (
                user_id INTEGER NOT NULL,
                item_id TEXT NOT NULL,
                ease REAL NOT NULL DEFAULT 2.5 CHECK(ease >= 1.3),
                interval REAL NOT NULL DEFAULT 0,
                due_at INTEGER NOT NULL,
                review_count INTEGER NOT NULL DEFAULT 0,
                lapse_count INTEGER NOT NULL DEFAULT 0,
                last_reviewed_at INTEGER,
                PRIMARY KEY(user_id, item_id)
            );

            CREATE INDEX IF NOT EXISTS idx_review_state_user_due ON review_state(user_id, due_at);

            CREATE TABLE IF NOT EXISTS profile (
                user_id INTEGER PRIMARY KEY,
                effective_level INTEGER NOT NULL DEFAULT 1,
                xp INTEGER NOT NULL DEFAULT 0,
                streak_days INTEGER NOT NULL DEFAULT 0,
                last_activity_at INTEGER NOT NULL DEFAULT 0,
                progress_day TEXT NOT NULL,
                flashcards_done INTEGER NOT NULL DEFAULT 0,
                reading_done INTEGER NOT NULL DEFAULT 0,
                speaking_done INTEGER NOT NULL DEFAULT 0,
                reviews_today INTEGER NOT NULL DEFAULT 0
            );

            -- UI state for inline navigation and message cleanup
            CREATE TABLE IF NOT EXISTS user_ui_state (
                user_id INTEGER PRIMARY KEY,
                last_ui_message_id INTEGER,
                current_screen TEXT
            );
            """
        )
        await db.commit()


def _profile_from_row(row: aiosqlite.Row) -> LearnerProfile:
    return LearnerProfile(
        effective_level=int(row["effective_level"]),
        xp=int(row["xp"]),
        streak_days=int(row["streak_days"]),
        last_activity_at=int(row["last_activity_at"]),
        daily_progress=DailyProgress(
            day=date.fromisoformat(row["progress_day"]),
            flashcards_done=bool(row["flashcards_done"]),
            reading_done=bool(row["reading_done"]),
            speaking_done=bool(row["speaking_done"]),
            reviews_completed_today=int(row["reviews_today"]),
        ),
    )


def _state_from_row(row: aiosqlite.Row) -> ReviewState:
    return ReviewState(
        item_id=str(row["item_id"]),
        ease=float(row["ease"]),
        interval=float(row["interval"]),
        due_at=int(row["due_at"]),
        review_count=int(row["review_count"]),
        lapse_count=int(row["lapse_count"]),
        last_reviewed_at=int(row["last_reviewed_at"]) if row["last_reviewed_at"] is not None else None,
    )


def _item_from_row(row: aiosqlite.Row) -> VocabularyItem:
    return VocabularyItem(
        id=str(row["id"]),
        text=str(row["text"]),
        reading=str(row["reading"] or ""),
        meaning=str(row["meaning"]),
        level=int(row["level"]),
        tags=tuple(t for t in str(row["tags"] or "").split(",") if t),
    )


async def load_profile(user_id: int, now: int, tz: tzinfo) -> LearnerProfile:
    """Return the stored profile, or a zeroed one anchored at today."""
    async with get_db() as db:
        cur = await db.execute("SELECT * FROM profile WHERE user_id=?", (user_id,))
        row = await cur.fetchone()
    if row is None:
        return LearnerProfile(daily_progress=fresh_progress(local_day(now, tz)))
    return _profile_from_row(row)


async def save_profile(user_id: int, profile: LearnerProfile) -> None:
    dp = profile.daily_progress
    async with get_db() as db:
        await db.execute(
            """
            INSERT INTO profile(user_id, effective_level, xp, streak_days, last_activity_at, progress_day,
                                flashcards_done, reading_done, speaking_done, reviews_today)
            VALUES(?,?,?,?,?,?,?,?,?,?)
            ON CONFLICT(user_id) DO UPDATE SET
                effective_level=excluded.effective_level,
                xp=excluded.xp,
                streak_days=excluded.streak_days,
                last_activity_at=excluded.last_activity_at,
                progress_day=excluded.progress_day,
                flashcards_done=excluded.flashcards_done,
                reading_done=excluded.reading_done,
                speaking_done=excluded.speaking_done,
                reviews_today=excluded.reviews_today
            """,
            (
                user_id,
                profile.effective_level,
                profile.xp,
                profile.streak_days,
                profile.last_activity_at,
                dp.day.isoformat(),
                1 if dp.flashcards_done else 0,
                1 if dp.reading_done else 0,
                1 if dp.speaking_done else 0,
                dp.reviews_completed_today,
            ),
        )
        await db.commit()


async def load_vocab_and_review_states(user_id: int) -> tuple[list[VocabularyItem], list[ReviewState]]:
    async with get_db() as db:
        cur = await db.execute(
            "SELECT * FROM vocabulary WHERE user_id=? ORDER BY seq ASC",
            (user_id,),
        )
        vocab = [_item_from_row(r) for r in await cur.fetchall()]
        cur = await db.execute(
            """
            SELECT r.* FROM review_state r
            LEFT JOIN vocabulary v ON v.user_id=r.user_id AND v.id=r.item_id
            WHERE r.user_id=?
            ORDER BY v.seq ASC
            """,
            (user_id,),
        )
        states = [_state_from_row(r) for r in await cur.fetchall()]
    return vocab, states


async def save_review_state(user_id: int, state: ReviewState) -> None:
    async with get_db() as db:
        await db.execute(
            """
            INSERT INTO review_state(user_id, item_id, ease, interval, due_at, review_count, lapse_count, last_reviewed_at)
            VALUES(?,?,?,?,?,?,?,?)
            ON CONFLICT(user_id, item_id) DO UPDATE SET
                ease=excluded.ease,
                interval=excluded.interval,
                due_at=excluded.due_at,
                review_count=excluded.review_count,
                lapse_count=excluded.lapse_count,
                last_reviewed_at=excluded.last_reviewed_at
            """,
            (
                user_id,
                state.item_id,
                state.ease,
                state.interval,
                state.due_at,
                state.review_count,
                state.lapse_count,
                state.last_reviewed_at,
            ),
        )
        await db.commit()


async def import_vocabulary(user_id: int, items: Sequence[VocabularyItem], now: int) -> list[ReviewState]:
    """Insert new items and seed their review states.

    Items already stored (same id) are skipped. The n-th imported item is due
    at now + n ms, so the due queue serves a batch in file order.
    """
    seeded: list[ReviewState] = []
    async with get_db() as db:
        cur = await db.execute("SELECT id FROM vocabulary WHERE user_id=?", (user_id,))
        existing = {str(r[0]) for r in await cur.fetchall()}
        cur = await db.execute("SELECT COALESCE(MAX(seq), 0) FROM vocabulary WHERE user_id=?", (user_id,))
        row = await cur.fetchone()
        seq = int(row[0]) if row else 0
        for item in items:
            if item.id in existing:
                continue
            existing.add(item.id)
            seq += 1
            state = ReviewState(item_id=item.id, due_at=now + len(seeded))
            await db.execute(
                "INSERT INTO vocabulary(user_id, id, text, reading, meaning, level, tags, seq) VALUES(?,?,?,?,?,?,?,?)",
                (user_id, item.id, item.text, item.reading, item.meaning, item.level, ",".join(item.tags), seq),
            )
            await db.execute(
                "INSERT INTO review_state(user_id, item_id, ease, interval, due_at, review_count, lapse_count) VALUES(?,?,?,?,?,0,0)",
                (user_id, state.item_id, state.ease, state.interval, state.due_at),
            )
            seeded.append(state)
        await db.commit()
    logger.info("User %s: imported %d new items (%d skipped)", user_id, len(seeded), len(items) - len(seeded))
    return seeded


class SqliteStore:
    """Store bound to one Telegram user."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id

    async def load_profile(self, now: int, tz: tzinfo) -> LearnerProfile:
        return await load_profile(self.user_id, now, tz)

    async def save_profile(self, profile: LearnerProfile) -> None:
        await save_profile(self.user_id, profile)

    async def load_vocab_and_review_states(self) -> tuple[list[VocabularyItem], list[ReviewState]]:
        return await load_vocab_and_review_states(self.user_id)

    async def save_review_state(self, state: ReviewState) -> None:
        await save_review_state(self.user_id, state)

    async def import_vocabulary(self, items: Sequence[VocabularyItem], now: int) -> list[ReviewState]:
        return await import_vocabulary(self.user_id, items, now)


async def get_ui_state(user_id: int) -> aiosqlite.Row | None:
    """Return UI state row for a user if exists."""
    async with get_db() as db:
        cur = await db.execute(
            "SELECT user_id, last_ui_message_id, current_screen FROM user_ui_state WHERE user_id=?",
            (user_id,),
        )
        return await cur.fetchone()


async def set_ui_state(
    user_id: int,
    last_ui_message_id: int | None = None,
    current_screen: str | None = None,
) -> None:
    """Upsert UI state fields for the user, keeping unset ones."""
    row = await get_ui_state(user_id)
    new_msg_id = last_ui_message_id if last_ui_message_id is not None else (
        int(row["last_ui_message_id"]) if row and row["last_ui_message_id"] is not None else None
    )
    new_screen = current_screen if current_screen is not None else (
        str(row["current_screen"]) if row and row["current_screen"] is not None else None
    )
    async with get_db() as db:
        await db.execute(
            "INSERT INTO user_ui_state(user_id, last_ui_message_id, current_screen) VALUES(?,?,?) "
            "ON CONFLICT(user_id) DO UPDATE SET last_ui_message_id=excluded.last_ui_message_id, current_screen=excluded.current_screen",
            (user_id, new_msg_id, new_screen),
        )
        await db.commit()
