"""Proficiency level gating, mastery rewards and XP ranks."""
from __future__ import annotations

import bisect
from typing import Iterable, Mapping, Sequence

from vocabbot.config import (
    DEFAULT_LEVEL_WORD_COUNT,
    DEFAULT_MASTERY_XP,
    LEVEL_PASS_PERCENT,
    LEVEL_WORD_COUNTS,
    MASTERY_THRESHOLD_DAYS,
    MASTERY_XP,
    MAX_LEVEL,
)
from vocabbot.models import LevelStats, ReviewState, VocabularyItem
from vocabbot.srs import round_half_up

# Upper bounds (exclusive) of each rank; past the last bound is the top rank
RANK_BOUNDS: tuple[int, ...] = (500, 1500, 3500, 7000, 15000)
RANK_TITLES: tuple[str, ...] = ("Novice", "Apprentice", "Scholar", "Master", "Grandmaster", "Sage")


def is_mastered(state: ReviewState) -> bool:
    return state.interval > MASTERY_THRESHOLD_DAYS


def level_stats(
    level: int,
    vocab: Iterable[VocabularyItem],
    states: Iterable[ReviewState],
    required_counts: Mapping[int, int] = LEVEL_WORD_COUNTS,
) -> LevelStats:
    """Return mastery coverage for one level.

    The denominator is the curriculum size for the level, not the number of
    words the learner imported, so a small import can't reach 100%.
    Items without a review state count as not mastered.
    """
    by_id = {s.item_id: s for s in states}
    mastered = 0
    for item in vocab:
        if item.level != level:
            continue
        st = by_id.get(item.id)
        if st is not None and is_mastered(st):
            mastered += 1
    total = required_counts.get(level, DEFAULT_LEVEL_WORD_COUNT)
    percentage = min(100, round_half_up(mastered * 100 / total))
    return LevelStats(level=level, mastered_count=mastered, total_required=total, percentage=percentage)


def effective_level(
    vocab: Sequence[VocabularyItem],
    states: Sequence[ReviewState],
    required_counts: Mapping[int, int] = LEVEL_WORD_COUNTS,
) -> int:
    """Return the lowest level whose coverage is below the pass mark.

    Levels are gated: clearing level 3 does nothing while level 2 is below 80%.
    If every level up to MAX_LEVEL - 1 clears, the learner is at MAX_LEVEL.
    """
    for level in range(1, MAX_LEVEL):
        stats = level_stats(level, vocab, states, required_counts)
        if stats.percentage < LEVEL_PASS_PERCENT:
            return level
    return MAX_LEVEL


def mastery_bonus(old_interval: float, new_interval: float, item_level: int) -> int:
    """Return XP for crossing the mastery threshold on this grading, else 0.

    Only the upward crossing pays; the caller passes the true before/after
    intervals once per grading event.
    """
    if old_interval <= MASTERY_THRESHOLD_DAYS < new_interval:
        return MASTERY_XP.get(item_level, DEFAULT_MASTERY_XP)
    return 0


def rank_index(xp: int) -> int:
    return bisect.bisect_right(RANK_BOUNDS, xp)


def xp_rank(xp: int) -> str:
    return RANK_TITLES[rank_index(xp)]


def missing_review_states(
    vocab: Iterable[VocabularyItem],
    states: Iterable[ReviewState],
) -> list[str]:
    """Return ids of vocabulary items that have no review state."""
    known = {s.item_id for s in states}
    return [v.id for v in vocab if v.id not in known]
