from __future__ import annotations

import random
from dataclasses import replace

import pytest

from vocabbot.config import DAY_MS, RELEARN_DELAY_MS
from vocabbot.models import RATINGS, ReviewState
from vocabbot.srs import InvalidRatingError, grade, parse_rating, round_half_up

NOW = 1_704_110_400_000  # 2024-01-01 12:00 UTC


def make_state(interval: float = 0, ease: float = 2.5, reviews: int = 0, lapses: int = 0) -> ReviewState:
    return ReviewState(
        item_id="w1",
        due_at=NOW,
        ease=ease,
        interval=interval,
        review_count=reviews,
        lapse_count=lapses,
    )


def test_good_four_times_from_fresh():
    s = make_state()
    intervals = []
    for i in range(4):
        s = grade(s, "good", NOW + i)
        intervals.append(s.interval)
    assert intervals == [1, 6, 15, 38]
    assert s.ease == 2.5
    assert s.review_count == 4
    assert s.lapse_count == 0


def test_again_resets_and_relearns_in_a_minute():
    s = make_state(interval=38, ease=2.5, reviews=4)
    out = grade(s, "again", NOW)
    assert out.interval == 0
    assert out.lapse_count == 1
    assert out.ease == pytest.approx(2.3)
    assert out.due_at == NOW + RELEARN_DELAY_MS
    assert out.last_reviewed_at == NOW


def test_again_ease_floor():
    out = grade(make_state(ease=1.4), "again", NOW)
    assert out.ease == pytest.approx(1.3)
    out = grade(out, "again", NOW)
    assert out.ease == pytest.approx(1.3)


def test_hard_grows_slowly_with_one_day_floor():
    out = grade(make_state(interval=0), "hard", NOW)
    assert out.interval == 1
    assert out.ease == pytest.approx(2.35)
    out = grade(make_state(interval=10), "hard", NOW)
    assert out.interval == pytest.approx(12)
    assert abs(out.due_at - (NOW + 12 * DAY_MS)) <= 1


def test_easy_steps_and_bonus():
    assert grade(make_state(interval=0), "easy", NOW).interval == 4
    assert grade(make_state(interval=1), "easy", NOW).interval == 10
    out = grade(make_state(interval=10), "easy", NOW)
    # 10 * 2.5 * 1.3 = 32.5, rounded half-up
    assert out.interval == 33
    assert out.ease == pytest.approx(2.65)


def test_due_projection_for_positive_interval():
    out = grade(make_state(), "good", NOW)
    assert out.due_at == NOW + DAY_MS


def test_grade_does_not_touch_input():
    s = make_state(interval=6, reviews=2)
    before = replace(s)
    grade(s, "again", NOW)
    assert s == before


def test_random_sequences_keep_invariants():
    rng = random.Random(7)
    for _ in range(50):
        s = make_state()
        for step in range(30):
            prev = s
            s = grade(s, rng.choice(RATINGS), NOW + step)
            assert s.ease >= 1.3
            assert s.interval >= 0
            assert s.review_count == prev.review_count + 1
            assert s.lapse_count >= prev.lapse_count


def test_unknown_rating_rejected():
    with pytest.raises(InvalidRatingError):
        grade(make_state(), "perfect", NOW)  # type: ignore[arg-type]


def test_parse_rating():
    assert parse_rating("Good") == "good"
    assert parse_rating(" easy ") == "easy"
    assert parse_rating(0) == "again"
    assert parse_rating("1") == "hard"
    for bad in ("5", 4, -1, True, None, "okay"):
        with pytest.raises(InvalidRatingError):
            parse_rating(bad)


def test_round_half_up():
    assert round_half_up(37.5) == 38
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
