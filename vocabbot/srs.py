from __future__ import annotations

import math
from dataclasses import dataclass, replace

from vocabbot.config import DAY_MS, MIN_EASE, RELEARN_DELAY_MS
from vocabbot.models import RATINGS, Rating, ReviewState


@dataclass
class InvalidRatingError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def parse_rating(value: object) -> Rating:
    """Return a Rating for a name ("good") or grade index (0..3).

    Anything else raises InvalidRatingError; nothing is coerced.
    """
    if isinstance(value, str):
        s = value.strip().lower()
        if s in RATINGS:
            return s  # type: ignore[return-value]
        if s.isdigit():
            value = int(s)
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < len(RATINGS):
        return RATINGS[value]
    raise InvalidRatingError(f"Unknown rating: {value!r}. Expected one of {', '.join(RATINGS)}.")


def next_due_at(interval: float, now: int) -> int:
    """Return the due timestamp (ms) for an interval in days.

    A zero interval is a short-term relearn: due again in one minute.
    """
    if interval == 0:
        return now + RELEARN_DELAY_MS
    return now + round_half_up(interval * DAY_MS)


def grade(state: ReviewState, rating: Rating, now: int) -> ReviewState:
    """Return the review state after grading, leaving `state` untouched.

    Again: interval 0, lapse +1, ease -0.2
    Hard:  interval x1.2 (at least 1 day), ease -0.15
    Good:  0 -> 1 -> 6 -> interval x ease
    Easy:  0 -> 4, 1 -> 10, else interval x ease x 1.3; ease +0.15
    Ease never drops below 1.3.
    """
    if rating not in RATINGS:
        raise InvalidRatingError(f"Unknown rating: {rating!r}")

    ease = state.ease
    interval = state.interval
    lapses = state.lapse_count

    if rating == "again":
        interval = 0
        lapses += 1
        ease = max(MIN_EASE, ease - 0.2)
    elif rating == "hard":
        interval = max(1, interval * 1.2)
        ease = max(MIN_EASE, ease - 0.15)
    elif rating == "good":
        if interval == 0:
            interval = 1
        elif interval == 1:
            interval = 6
        else:
            interval = round_half_up(interval * ease)
    else:
        if interval == 0:
            interval = 4
        elif interval == 1:
            interval = 10
        else:
            interval = round_half_up(interval * ease * 1.3)
        ease += 0.15

    return replace(
        state,
        ease=ease,
        interval=interval,
        due_at=next_due_at(interval, now),
        review_count=state.review_count + 1,
        lapse_count=lapses,
        last_reviewed_at=now,
    )
