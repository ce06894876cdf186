"""Learner state transitions: grading, daily activities and persistence.

Pure functions compute the next profile/review states. `Learner` owns the
in-memory copy for one learner, swaps new values in first and then hands
them to the store in background tasks. The in-memory value stays
authoritative when a write fails.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import tzinfo
from typing import Any, Coroutine, Optional, Protocol, Sequence

from vocabbot.config import (
    COMPLETE_READING_XP,
    DAILY_NEW_CARD_LIMIT,
    DAILY_REVIEW_GOAL,
    REVIEW_CARD_XP,
    SPEAKING_DEFAULT_XP,
    TARGET_WORDS_LIMIT,
)
from vocabbot.daily import apply_streak, local_day, roll_daily_progress, streak_broken
from vocabbot.models import (
    TASKS,
    DailyProgress,
    LearnerProfile,
    Rating,
    ReviewState,
    Task,
    VocabularyItem,
)
from vocabbot.progression import effective_level, mastery_bonus, missing_review_states
from vocabbot.queue import select_due, target_item_ids
from vocabbot.srs import grade, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class MissingReviewStateError(Exception):
    item_id: str

    def __str__(self) -> str:
        return f"No review state for vocabulary item {self.item_id!r}"


class Store(Protocol):
    async def load_profile(self, now: int, tz: tzinfo) -> LearnerProfile: ...

    async def save_profile(self, profile: LearnerProfile) -> None: ...

    async def load_vocab_and_review_states(self) -> tuple[list[VocabularyItem], list[ReviewState]]: ...

    async def save_review_state(self, state: ReviewState) -> None: ...

    async def import_vocabulary(self, items: Sequence[VocabularyItem], now: int) -> list[ReviewState]: ...


@dataclass(frozen=True)
class GradingResult:
    profile: LearnerProfile
    review_states: tuple[ReviewState, ...]
    review_state: ReviewState
    xp_gained: int
    mastered: bool


def roll_over(profile: LearnerProfile, now: int, tz: tzinfo) -> LearnerProfile:
    """Load-time housekeeping: reset stale daily flags and a broken streak.

    A zeroed streak restarts at 1 on the next qualifying action.
    """
    if streak_broken(profile, now, tz):
        logger.info("Streak of %d days broken, resetting", profile.streak_days)
        profile = replace(profile, streak_days=0)
    return roll_daily_progress(profile, now, tz)


def apply_grading(
    profile: LearnerProfile,
    vocab: Sequence[VocabularyItem],
    states: Sequence[ReviewState],
    item_id: str,
    rating: Rating,
    now: int,
    tz: tzinfo,
) -> GradingResult:
    """Grade one item and return the updated profile and review states."""
    old = next((s for s in states if s.item_id == item_id), None)
    if old is None:
        raise MissingReviewStateError(item_id)

    new = grade(old, rating, now)
    new_states = tuple(new if s.item_id == item_id else s for s in states)

    item = next((v for v in vocab if v.id == item_id), None)
    bonus = mastery_bonus(old.interval, new.interval, item.level) if item is not None else 0
    if bonus:
        logger.info("Item %s mastered (interval %s -> %s), +%d XP", item_id, old.interval, new.interval, bonus)

    p = roll_daily_progress(profile, now, tz)
    p, streak_xp = apply_streak(p, now, tz)
    reviews_today = p.daily_progress.reviews_completed_today + 1
    progress = replace(
        p.daily_progress,
        reviews_completed_today=reviews_today,
        flashcards_done=p.daily_progress.flashcards_done or reviews_today >= DAILY_REVIEW_GOAL,
    )
    xp_gained = bonus + REVIEW_CARD_XP + streak_xp
    p = replace(
        p,
        effective_level=effective_level(vocab, new_states),
        xp=p.xp + xp_gained,
        last_activity_at=now,
        daily_progress=progress,
    )
    return GradingResult(
        profile=p,
        review_states=new_states,
        review_state=new,
        xp_gained=xp_gained,
        mastered=bonus > 0,
    )


def activity_xp(task: Task, already_done: bool, score: Optional[float]) -> int:
    """XP for a completed task, before any streak bonus."""
    if task == "reading":
        return 0 if already_done else COMPLETE_READING_XP
    if task == "speaking":
        return SPEAKING_DEFAULT_XP if score is None else round_half_up(score)
    return 0


def complete_activity(
    profile: LearnerProfile,
    task: Task,
    now: int,
    tz: tzinfo,
    score: Optional[float] = None,
) -> LearnerProfile:
    """Record a completed flashcards/reading/speaking task.

    Reading pays once per day. Speaking pays every session, `score` being the
    measured accuracy (0..100) when available.
    """
    if task not in TASKS:
        raise ValueError(f"Unknown task: {task!r}")

    p = roll_daily_progress(profile, now, tz)
    flag = f"{task}_done"
    xp = activity_xp(task, getattr(p.daily_progress, flag), score)
    p, streak_xp = apply_streak(p, now, tz)
    return replace(
        p,
        xp=p.xp + xp + streak_xp,
        last_activity_at=now,
        daily_progress=replace(p.daily_progress, **{flag: True}),
    )


class Learner:
    """In-memory learner state bound to a store."""

    def __init__(
        self,
        store: Store,
        profile: LearnerProfile,
        vocab: Sequence[VocabularyItem],
        review_states: Sequence[ReviewState],
        tz: tzinfo,
    ) -> None:
        self.store = store
        self.profile = profile
        self.vocab: tuple[VocabularyItem, ...] = tuple(vocab)
        self.review_states: tuple[ReviewState, ...] = tuple(review_states)
        self.tz = tz
        self._pending: set[asyncio.Task[None]] = set()

    @classmethod
    async def load(cls, store: Store, now: int, tz: tzinfo) -> "Learner":
        profile = await store.load_profile(now, tz)
        vocab, states = await store.load_vocab_and_review_states()
        missing = missing_review_states(vocab, states)
        if missing:
            logger.error("Vocabulary items without review state (ignored): %s", ", ".join(missing))
        rolled = roll_over(profile, now, tz)
        learner = cls(store, rolled, vocab, states, tz)
        if rolled != profile:
            logger.info("Daily progress rolled over to %s", rolled.daily_progress.day)
            learner._persist(store.save_profile(rolled))
        return learner

    def item(self, item_id: str) -> Optional[VocabularyItem]:
        return next((v for v in self.vocab if v.id == item_id), None)

    def due(self, now: int, new_item_cap: Optional[int] = DAILY_NEW_CARD_LIMIT) -> list[ReviewState]:
        return select_due(self.review_states, now, new_item_cap)

    def target_words(self, now: int, limit: int = TARGET_WORDS_LIMIT) -> list[VocabularyItem]:
        ids = target_item_ids(self.review_states, now, limit)
        return [v for v in (self.item(i) for i in ids) if v is not None]

    def today_progress(self, now: int) -> DailyProgress:
        """Return daily progress as seen today (a stale anchor reads as zeros)."""
        return roll_daily_progress(self.profile, now, self.tz).daily_progress

    def current_streak(self, now: int) -> int:
        return 0 if streak_broken(self.profile, now, self.tz) else self.profile.streak_days

    def grade(self, item_id: str, rating: Rating, now: int) -> GradingResult:
        result = apply_grading(self.profile, self.vocab, self.review_states, item_id, rating, now, self.tz)
        self.profile = result.profile
        self.review_states = result.review_states
        self._persist(self.store.save_review_state(result.review_state))
        self._persist(self.store.save_profile(result.profile))
        return result

    def complete_reading(self, now: int) -> LearnerProfile:
        return self._complete("reading", now)

    def complete_speaking(self, now: int, score: Optional[float] = None) -> LearnerProfile:
        return self._complete("speaking", now, score)

    def _complete(self, task: Task, now: int, score: Optional[float] = None) -> LearnerProfile:
        before = self.profile.xp
        self.profile = complete_activity(self.profile, task, now, self.tz, score)
        logger.info("Task %s completed on %s, +%d XP", task, local_day(now, self.tz), self.profile.xp - before)
        self._persist(self.store.save_profile(self.profile))
        return self.profile

    async def import_vocabulary(self, items: Sequence[VocabularyItem], now: int) -> list[ReviewState]:
        """Import items through the store and merge the seeded states.

        Unlike grading this awaits the store: a failed import is reported to the caller.
        """
        seeded = await self.store.import_vocabulary(items, now)
        seeded_ids = {s.item_id for s in seeded}
        self.vocab = self.vocab + tuple(v for v in items if v.id in seeded_ids)
        self.review_states = self.review_states + tuple(seeded)
        logger.info("Imported %d of %d vocabulary items", len(seeded), len(items))
        return seeded

    def _persist(self, write: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(write)
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background store write failed", exc_info=exc)

    async def flush(self) -> None:
        """Wait for outstanding store writes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
