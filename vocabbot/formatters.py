from __future__ import annotations

import html
import re
from typing import Sequence

from vocabbot.config import DAILY_REVIEW_GOAL
from vocabbot.models import DailyProgress, LevelStats, ReadingPassage, ReviewState, VocabularyItem


def escape_html(s: str) -> str:
    """Escape text for safe HTML rendering in Telegram."""
    return html.escape(s, quote=True)


def normalize_tag(s: str) -> str:
    """Normalize a tag to lowercase with non-word chars replaced by underscores."""
    tag = re.sub(r"[^\w]+", "_", s.lower()).strip("_")
    return tag


def format_interval(days: float) -> str:
    if days == 0:
        return "1 min"
    if days == int(days):
        n = int(days)
        return f"{n} day" if n == 1 else f"{n} days"
    return f"{days:.1f} days"


def html_card_front(item: VocabularyItem, *, is_new: bool) -> str:
    """Card front: optional 🆕 badge and the word in bold."""
    parts: list[str] = []
    if is_new:
        parts.append("🆕")
    parts.append(f"<b>{escape_html(item.text)}</b>")
    return "\n".join(parts)


def html_card_back(item: VocabularyItem, state: ReviewState | None = None) -> str:
    """Card back: word, reading, meaning, tags and the current interval."""
    tags_norm = [t for t in (normalize_tag(t) for t in item.tags) if t]
    parts = [f"<b>{escape_html(item.text)}</b>"]
    if item.reading:
        parts.append(escape_html(item.reading))
    parts.append("")
    parts.append(f"<i>{escape_html(item.meaning)}</i>")
    parts.append("")
    line = f"Level {item.level}"
    if tags_norm:
        line += " · " + " ".join(f"#{t}" for t in tags_norm)
    parts.append(line)
    if state is not None and state.review_count > 0:
        parts.append(f"Interval: {format_interval(state.interval)}, lapses: {state.lapse_count}")
    return "\n".join(parts)


def _check(done: bool) -> str:
    return "✅" if done else "⬜️"


def format_stats(
    *,
    stats: LevelStats,
    rank: str,
    xp: int,
    streak_days: int,
    progress: DailyProgress,
    reviews_due: int,
    new_due: int,
) -> str:
    """Dashboard: level coverage, rank and XP, streak, daily goals and due counts."""
    return (
        "<b>Your progress</b>\n"
        f"Level {stats.level}: {stats.mastered_count}/{stats.total_required} mastered ({stats.percentage}%)\n"
        f"Rank: {escape_html(rank)} · {xp:,} XP\n"
        f"Streak: 🔥 {streak_days} day{'s' if streak_days != 1 else ''}\n"
        "\n"
        "<b>Today</b>\n"
        f"{_check(progress.flashcards_done)} Review flashcards ({progress.reviews_completed_today}/{DAILY_REVIEW_GOAL})\n"
        f"{_check(progress.reading_done)} Daily reading\n"
        f"{_check(progress.speaking_done)} Speaking practice\n"
        "\n"
        f"Due now: {reviews_due} reviews + {new_due} new"
    )


def format_round_complete(shown: int, xp_gained: int, reviews_today: int, mastered: Sequence[str]) -> str:
    lines = [
        "<b>Round complete</b>",
        f"Cards: {shown}, XP: +{xp_gained}",
        f"Reviews today: {reviews_today}/{DAILY_REVIEW_GOAL}",
    ]
    if mastered:
        lines.append("🏆 Mastered: " + ", ".join(escape_html(m) for m in mastered))
    return "\n".join(lines)


def format_reading_html(passage: ReadingPassage) -> str:
    parts = [f"<b>{escape_html(passage.title)}</b>", "", escape_html(passage.content)]
    if passage.reading:
        parts += ["", f"<i>{escape_html(passage.reading)}</i>"]
    parts += ["", f"<tg-spoiler>{escape_html(passage.translation)}</tg-spoiler>"]
    for i, q in enumerate(passage.questions, start=1):
        parts += ["", f"{i}. {escape_html(str(q['question']))}"]
        for opt in q["options"]:
            parts.append(f"- {escape_html(str(opt))}")
    return "\n".join(parts)


def format_reading_loading_html() -> str:
    return "<b>Reading</b>\nGenerating a passage with your due words…"


def format_reading_error_html() -> str:
    return "<b>Reading</b>\nSorry, the passage could not be generated. Try again later."


def format_menu(
    *,
    rank: str,
    level: int,
    streak_days: int,
    progress: DailyProgress,
    reviews_due: int,
    new_due: int,
) -> str:
    """Home screen: rank line, today's goals and what is waiting for review."""
    if reviews_due or new_due:
        waiting = f"{reviews_due} reviews and {new_due} new words are waiting."
    else:
        waiting = "All caught up. Send a .csv file to add words."
    return (
        f"<b>{escape_html(rank)}</b> · Level {level} · 🔥 {streak_days}\n"
        "\n"
        f"{_check(progress.flashcards_done)} Flashcards ({progress.reviews_completed_today}/{DAILY_REVIEW_GOAL})\n"
        f"{_check(progress.reading_done)} Reading\n"
        f"{_check(progress.speaking_done)} Speaking\n"
        "\n"
        f"{waiting}"
    )


def format_import_result(imported: int, total: int) -> str:
    skipped = total - imported
    text = f"<b>Import complete</b>\nAdded {imported} new word{'s' if imported != 1 else ''}."
    if skipped:
        text += f" {skipped} already in your collection."
    return text
