from __future__ import annotations

from typing import Iterable, Optional, Sequence

from vocabbot.config import SESSION_BATCH_SIZE, TARGET_WORDS_LIMIT
from vocabbot.models import ReviewState


def select_due(
    states: Iterable[ReviewState],
    now: int,
    new_item_cap: Optional[int] = None,
) -> list[ReviewState]:
    """Return due items, struggling first, then oldest due.

    Ordering is (lapse_count desc, due_at asc); `sorted` is stable so equal
    keys keep their incoming order. With a cap, every already-reviewed item is
    returned followed by at most `new_item_cap` never-reviewed ones.
    """
    if new_item_cap is not None and new_item_cap < 0:
        raise ValueError(f"new_item_cap must be >= 0, got {new_item_cap}")

    due = [s for s in states if s.due_at <= now]
    ordered = sorted(due, key=lambda s: (-s.lapse_count, s.due_at))
    if new_item_cap is None:
        return ordered

    seen = [s for s in ordered if s.review_count > 0]
    new = [s for s in ordered if s.review_count == 0]
    return seen + new[:new_item_cap]


def target_item_ids(
    states: Iterable[ReviewState],
    now: int,
    limit: int = TARGET_WORDS_LIMIT,
) -> list[str]:
    """Return ids of the most pressing due items, used as target words for generated content."""
    return [s.item_id for s in select_due(states, now)[:limit]]


def build_round(
    states: Sequence[ReviewState],
    now: int,
    new_item_cap: Optional[int],
    batch_size: int = SESSION_BATCH_SIZE,
) -> list[str]:
    """Return item ids for one flashcard round, at most `batch_size` long."""
    return [s.item_id for s in select_due(states, now, new_item_cap)[: max(0, batch_size)]]


def count_due(states: Iterable[ReviewState], now: int) -> tuple[int, int]:
    """Return (reviews_due, new_due) counts without any cap."""
    reviews = new = 0
    for s in states:
        if s.due_at > now:
            continue
        if s.review_count > 0:
            reviews += 1
        else:
            new += 1
    return reviews, new
