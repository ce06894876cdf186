from __future__ import annotations

from vocabbot.models import ReviewState, VocabularyItem
from vocabbot.progression import (
    RANK_TITLES,
    effective_level,
    is_mastered,
    level_stats,
    mastery_bonus,
    missing_review_states,
    rank_index,
    xp_rank,
)

NOW = 1_704_110_400_000
SMALL_CURRICULUM = {1: 10, 2: 100, 3: 10, 4: 10, 5: 10, 6: 10}


def build(level_counts: dict[int, tuple[int, int]]) -> tuple[list[VocabularyItem], list[ReviewState]]:
    """level -> (mastered, not mastered) item counts."""
    vocab: list[VocabularyItem] = []
    states: list[ReviewState] = []
    for level, (mastered, learning) in level_counts.items():
        for i in range(mastered + learning):
            item_id = f"L{level}-{i}"
            vocab.append(VocabularyItem(id=item_id, text=item_id, reading="", meaning="m", level=level))
            states.append(ReviewState(item_id=item_id, due_at=NOW, interval=30 if i < mastered else 6))
    return vocab, states


def test_mastery_threshold():
    assert not is_mastered(ReviewState(item_id="a", due_at=NOW, interval=21))
    assert is_mastered(ReviewState(item_id="a", due_at=NOW, interval=22))


def test_level_stats_uses_curriculum_denominator():
    vocab, states = build({1: (10, 0)})
    stats = level_stats(1, vocab, states)
    assert stats.mastered_count == 10
    assert stats.total_required == 150
    assert stats.percentage == 7


def test_gate_stops_at_first_level_below_threshold():
    # 90%, 79%, 100%
    vocab, states = build({1: (9, 1), 2: (79, 21), 3: (10, 0)})
    assert effective_level(vocab, states, SMALL_CURRICULUM) == 2


def test_all_levels_cleared_reaches_max():
    vocab, states = build({lvl: (SMALL_CURRICULUM[lvl], 0) for lvl in range(1, 6)})
    assert effective_level(vocab, states, SMALL_CURRICULUM) == 6


def test_empty_collection_is_level_one():
    assert effective_level([], []) == 1


def test_items_without_review_state_count_as_not_mastered():
    vocab, states = build({1: (8, 0)})
    vocab.append(VocabularyItem(id="orphan", text="x", reading="", meaning="m", level=1))
    assert level_stats(1, vocab, states, SMALL_CURRICULUM).mastered_count == 8
    assert missing_review_states(vocab, states) == ["orphan"]


def test_mastery_bonus_fires_on_crossing_only():
    assert mastery_bonus(20, 22, 1) > 0
    assert mastery_bonus(21, 22, 1) == 10
    assert mastery_bonus(22, 25, 1) == 0
    assert mastery_bonus(25, 20, 1) == 0
    assert mastery_bonus(15, 38, 4) == 80
    assert mastery_bonus(15, 38, 6) > mastery_bonus(15, 38, 5)
    assert mastery_bonus(15, 38, 9) == 10


def test_xp_rank_table():
    assert xp_rank(0) == "Novice"
    assert xp_rank(499) == "Novice"
    assert xp_rank(500) == "Apprentice"
    assert xp_rank(3499) == "Scholar"
    assert xp_rank(7000) == "Grandmaster"
    assert xp_rank(15000) == "Sage"
    assert xp_rank(10**7) == "Sage"


def test_xp_rank_is_monotonic():
    prev = 0
    for xp in range(0, 20000, 37):
        idx = rank_index(xp)
        assert idx >= prev
        assert RANK_TITLES[idx] == xp_rank(xp)
        prev = idx
