from __future__ import annotations

import asyncio
import logging
from datetime import date, tzinfo
from typing import Sequence
from zoneinfo import ZoneInfo

import pytest

from vocabbot.config import DAY_MS
from vocabbot.models import DailyProgress, LearnerProfile, ReviewState, VocabularyItem
from vocabbot.orchestrator import Learner, MissingReviewStateError

UTC = ZoneInfo("UTC")
NOW = 1_704_110_400_000  # 2024-01-01 12:00 UTC


def word(item_id: str, level: int = 1) -> VocabularyItem:
    return VocabularyItem(id=item_id, text=f"text-{item_id}", reading="", meaning="m", level=level)


class FakeStore:
    def __init__(
        self,
        profile: LearnerProfile | None = None,
        vocab: Sequence[VocabularyItem] = (),
        states: Sequence[ReviewState] = (),
        fail_writes: bool = False,
    ) -> None:
        self.profile = profile
        self.vocab = list(vocab)
        self.states = {s.item_id: s for s in states}
        self.fail_writes = fail_writes
        self.saved_profiles: list[LearnerProfile] = []
        self.saved_states: list[ReviewState] = []

    async def load_profile(self, now: int, tz: tzinfo) -> LearnerProfile:
        return self.profile or LearnerProfile(daily_progress=DailyProgress(day=date(2024, 1, 1)))

    async def save_profile(self, profile: LearnerProfile) -> None:
        await asyncio.sleep(0)
        if self.fail_writes:
            raise OSError("disk full")
        self.saved_profiles.append(profile)
        self.profile = profile

    async def load_vocab_and_review_states(self) -> tuple[list[VocabularyItem], list[ReviewState]]:
        return list(self.vocab), list(self.states.values())

    async def save_review_state(self, state: ReviewState) -> None:
        await asyncio.sleep(0)
        if self.fail_writes:
            raise OSError("disk full")
        self.saved_states.append(state)
        self.states[state.item_id] = state

    async def import_vocabulary(self, items: Sequence[VocabularyItem], now: int) -> list[ReviewState]:
        known = {v.id for v in self.vocab}
        fresh = [v for v in items if v.id not in known]
        self.vocab += fresh
        seeded = [ReviewState(item_id=v.id, due_at=now + i) for i, v in enumerate(fresh)]
        self.states.update({s.item_id: s for s in seeded})
        return seeded


@pytest.mark.asyncio
async def test_load_rolls_over_stale_profile_and_persists():
    stale = LearnerProfile(
        daily_progress=DailyProgress(day=date(2023, 12, 25), reading_done=True),
        streak_days=4,
        last_activity_at=NOW - 7 * DAY_MS,
    )
    store = FakeStore(profile=stale)
    learner = await Learner.load(store, NOW, UTC)
    await learner.flush()
    assert learner.profile.streak_days == 0
    assert learner.profile.daily_progress == DailyProgress(day=date(2024, 1, 1))
    assert store.saved_profiles == [learner.profile]


@pytest.mark.asyncio
async def test_load_logs_items_without_review_state(caplog):
    store = FakeStore(vocab=[word("a"), word("b")], states=[ReviewState(item_id="a", due_at=NOW)])
    with caplog.at_level(logging.ERROR, logger="vocabbot.orchestrator"):
        learner = await Learner.load(store, NOW, UTC)
    assert "b" in caplog.text
    assert [s.item_id for s in learner.due(NOW)] == ["a"]


@pytest.mark.asyncio
async def test_grade_updates_memory_before_store():
    store = FakeStore(vocab=[word("a")], states=[ReviewState(item_id="a", due_at=NOW)])
    learner = await Learner.load(store, NOW, UTC)

    result = learner.grade("a", "good", NOW)
    assert learner.review_states[0].interval == 1
    assert learner.profile is result.profile
    assert store.saved_states == []

    await learner.flush()
    assert store.saved_states == [result.review_state]
    assert store.saved_profiles[-1] == result.profile


@pytest.mark.asyncio
async def test_failed_write_keeps_memory_and_is_logged(caplog):
    store = FakeStore(vocab=[word("a")], states=[ReviewState(item_id="a", due_at=NOW)], fail_writes=True)
    learner = await Learner.load(store, NOW, UTC)
    with caplog.at_level(logging.ERROR, logger="vocabbot.orchestrator"):
        learner.grade("a", "easy", NOW)
        await learner.flush()
    assert learner.review_states[0].interval == 4
    assert learner.profile.xp > 0
    assert "Background store write failed" in caplog.text


@pytest.mark.asyncio
async def test_unknown_item_leaves_state_untouched():
    store = FakeStore(vocab=[word("a")], states=[ReviewState(item_id="a", due_at=NOW)])
    learner = await Learner.load(store, NOW, UTC)
    before = (learner.profile, learner.review_states)
    with pytest.raises(MissingReviewStateError):
        learner.grade("zzz", "good", NOW)
    assert (learner.profile, learner.review_states) == before


@pytest.mark.asyncio
async def test_import_three_words_are_due_in_file_order():
    learner = await Learner.load(FakeStore(), NOW, UTC)
    seeded = await learner.import_vocabulary([word("x"), word("y"), word("z")], NOW)
    assert [s.due_at for s in seeded] == [NOW, NOW + 1, NOW + 2]
    assert [s.item_id for s in learner.due(NOW + 2)] == ["x", "y", "z"]
    assert [w.id for w in learner.target_words(NOW + 2, limit=2)] == ["x", "y"]


@pytest.mark.asyncio
async def test_due_caps_new_items():
    vocab = [word(f"w{i}") for i in range(20)]
    states = [ReviewState(item_id=f"w{i}", due_at=NOW - 20 + i) for i in range(20)]
    states[10] = ReviewState(item_id="w10", due_at=NOW - 10, review_count=2)
    learner = await Learner.load(FakeStore(vocab=vocab, states=states), NOW, UTC)
    due = learner.due(NOW, new_item_cap=15)
    assert len(due) == 16
    assert due[0].item_id == "w10"
    assert len(learner.due(NOW, new_item_cap=None)) == 20


@pytest.mark.asyncio
async def test_complete_reading_and_speaking():
    learner = await Learner.load(FakeStore(), NOW, UTC)
    learner.complete_reading(NOW)
    learner.complete_speaking(NOW + 1, score=70)
    await learner.flush()
    progress = learner.today_progress(NOW + 2)
    assert progress.reading_done and progress.speaking_done
    assert learner.profile.xp == 100 + 50 + 70
    # Next day the flags read as cleared
    assert not learner.today_progress(NOW + DAY_MS).reading_done
