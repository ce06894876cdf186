"""Calendar-day bookkeeping: daily progress rollover and streaks.

Days are local calendar dates in the learner's timezone. Day distance is the
difference of date ordinals, so a 23 or 25 hour DST day still counts as one.
"""
from __future__ import annotations

import time
from dataclasses import replace
from datetime import date, datetime, timezone, tzinfo

from vocabbot.config import DAILY_STREAK_XP
from vocabbot.models import DailyProgress, LearnerProfile


def now_ms() -> int:
    return int(time.time() * 1000)


def local_day(ts: int, tz: tzinfo) -> date:
    """Return the local calendar date of a millisecond timestamp."""
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).astimezone(tz).date()


def days_between(earlier: int, later: int, tz: tzinfo) -> int:
    """Return the number of calendar days from `earlier` to `later`."""
    return local_day(later, tz).toordinal() - local_day(earlier, tz).toordinal()


def fresh_progress(day: date) -> DailyProgress:
    return DailyProgress(day=day)


def roll_daily_progress(profile: LearnerProfile, now: int, tz: tzinfo) -> LearnerProfile:
    """Reset daily flags when the anchor day is not today."""
    today = local_day(now, tz)
    if profile.daily_progress.day == today:
        return profile
    return replace(profile, daily_progress=fresh_progress(today))


def is_first_action_today(profile: LearnerProfile, now: int, tz: tzinfo) -> bool:
    return days_between(profile.last_activity_at, now, tz) > 0


def apply_streak(profile: LearnerProfile, now: int, tz: tzinfo) -> tuple[LearnerProfile, int]:
    """Advance the streak on the first qualifying action of a day.

    Returns (profile, bonus_xp). Yesterday's activity (or an empty streak)
    extends the streak; a longer gap restarts it at 1. The bonus is paid on
    every first action of a day. XP is not added here.
    """
    if not is_first_action_today(profile, now, tz):
        return profile, 0
    gap = days_between(profile.last_activity_at, now, tz)
    if gap <= 1 or profile.streak_days == 0:
        streak = profile.streak_days + 1
    else:
        streak = 1
    return replace(profile, streak_days=streak), DAILY_STREAK_XP


def streak_broken(profile: LearnerProfile, now: int, tz: tzinfo) -> bool:
    """True when more than one calendar day passed since the last activity."""
    if profile.streak_days == 0:
        return False
    return days_between(profile.last_activity_at, now, tz) > 1
