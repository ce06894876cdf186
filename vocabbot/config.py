from __future__ import annotations

import os
from pathlib import Path
from typing import Final
from zoneinfo import ZoneInfo

from dotenv import load_dotenv


load_dotenv()

ROOT_DIR: Final[Path] = Path(__file__).resolve().parents[1]
DATA_DIR: Final[Path] = Path(os.getenv("DATA_DIR", str(ROOT_DIR / "data")))
DATA_DIR.mkdir(parents=True, exist_ok=True)
DB_PATH: Final[Path] = DATA_DIR / "vocab.db"

BOT_TOKEN: Final[str] = os.getenv("BOT_TOKEN", "")
DEFAULT_TZ: Final[str] = os.getenv("TZ", "UTC")
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")

# Content generation (reading passages)
CONTENT_API_BASE: Final[str] = os.getenv("CONTENT_API_BASE", "")
CONTENT_API_KEY: Final[str] | None = os.getenv("CONTENT_API_KEY") or "no-key"
CONTENT_MODEL: Final[str] = os.getenv("CONTENT_MODEL", "gpt-4o-mini")
CONTENT_TIMEOUT_SECONDS: Final[int] = int(os.getenv("CONTENT_TIMEOUT_SECONDS", "30"))

DAY_MS: Final[int] = 24 * 60 * 60 * 1000
RELEARN_DELAY_MS: Final[int] = 60_000

DEFAULT_EASE: Final[float] = 2.5
MIN_EASE: Final[float] = 1.3

MAX_LEVEL: Final[int] = 6
# Interval (days) an item must exceed to count as mastered
MASTERY_THRESHOLD_DAYS: Final[int] = 21
LEVEL_PASS_PERCENT: Final[int] = 80

# Curriculum size per level (new words introduced at that level)
LEVEL_WORD_COUNTS: Final[dict[int, int]] = {
    1: 150,
    2: 150,
    3: 300,
    4: 600,
    5: 1300,
    6: 2500,
}
DEFAULT_LEVEL_WORD_COUNT: Final[int] = 150

# XP for mastering a word of the given level
MASTERY_XP: Final[dict[int, int]] = {
    1: 10,
    2: 20,
    3: 40,
    4: 80,
    5: 160,
    6: 320,
}
DEFAULT_MASTERY_XP: Final[int] = 10

REVIEW_CARD_XP: Final[int] = 1
COMPLETE_READING_XP: Final[int] = 50
DAILY_STREAK_XP: Final[int] = 100
SPEAKING_DEFAULT_XP: Final[int] = 20

DAILY_REVIEW_GOAL: Final[int] = 20
DAILY_NEW_CARD_LIMIT: Final[int] = 15
SESSION_BATCH_SIZE: Final[int] = 20
TARGET_WORDS_LIMIT: Final[int] = 5


def learner_tz(name: str | None = None) -> ZoneInfo:
    return ZoneInfo(name or DEFAULT_TZ)
