from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional

from vocabbot.config import DEFAULT_EASE

Rating = Literal["again", "hard", "good", "easy"]
Task = Literal["flashcards", "reading", "speaking"]

RATINGS: tuple[Rating, ...] = ("again", "hard", "good", "easy")
TASKS: tuple[Task, ...] = ("flashcards", "reading", "speaking")


@dataclass(frozen=True)
class VocabularyItem:
    id: str
    text: str
    reading: str
    meaning: str
    level: int
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReviewState:
    item_id: str
    due_at: int
    ease: float = DEFAULT_EASE
    interval: float = 0
    review_count: int = 0
    lapse_count: int = 0
    last_reviewed_at: Optional[int] = None


@dataclass(frozen=True)
class DailyProgress:
    day: date
    flashcards_done: bool = False
    reading_done: bool = False
    speaking_done: bool = False
    reviews_completed_today: int = 0


@dataclass(frozen=True)
class LearnerProfile:
    daily_progress: DailyProgress
    effective_level: int = 1
    xp: int = 0
    streak_days: int = 0
    last_activity_at: int = 0


@dataclass(frozen=True)
class LevelStats:
    level: int
    mastered_count: int
    total_required: int
    percentage: int


@dataclass(frozen=True)
class ReadingPassage:
    title: str
    content: str
    reading: str
    translation: str
    target_ids: tuple[str, ...]
    questions: list[dict] = field(default_factory=list)
