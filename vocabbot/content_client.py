"""Reading passage generation over an OpenAI-compatible API."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Sequence

from openai import AsyncOpenAI, OpenAIError

from vocabbot.config import (
    CONTENT_API_BASE,
    CONTENT_API_KEY,
    CONTENT_MODEL,
    CONTENT_TIMEOUT_SECONDS,
)
from vocabbot.models import ReadingPassage, VocabularyItem

logger = logging.getLogger(__name__)

DEMO_WORD = VocabularyItem(id="demo", text="你好", reading="nǐ hǎo", meaning="hello", level=1)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|```\s*$")


@dataclass
class ContentClientError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


def content_level(words: Sequence[VocabularyItem], learner_level: int) -> int:
    """Level to write at: the learner's, raised to the hardest target word."""
    return max([learner_level] + [w.level or 1 for w in words])


def build_reading_prompt(words: Sequence[VocabularyItem], learner_level: int) -> str:
    """Build the story prompt for the given target words.

    Beginner levels (1-2) get questions in English, higher ones in the target language.
    """
    level = content_level(words, learner_level)
    word_list = ", ".join(f"{w.text} ({w.meaning})" for w in words)
    question_lang = "the target language" if level > 2 else "English"
    return (
        f"Write a short story for a learner at proficiency level {level} (of 6).\n"
        "\n"
        "Constraints:\n"
        f"1. STRICTLY include these words: {word_list}.\n"
        "2. Length: 100-150 characters.\n"
        "3. Provide the phonetic reading of the whole text and a natural English translation.\n"
        f"4. Create 3 reading comprehension questions in {question_lang}, each with 4 options.\n"
        "\n"
        'Output only JSON with keys "title", "content", "reading", "translation" and '
        '"questions" (list of {"question", "options", "correct_index"}).'
    )


def parse_reading_response(text: str, words: Sequence[VocabularyItem]) -> ReadingPassage:
    """Parse model output into a ReadingPassage; raise ContentClientError if malformed."""
    clean = _FENCE_RE.sub("", text.strip())
    try:
        data = json.loads(clean)
    except json.JSONDecodeError as e:
        raise ContentClientError(f"Reading response is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ContentClientError("Reading response must be a JSON object")
    missing = [k for k in ("title", "content", "translation") if not data.get(k)]
    if missing:
        raise ContentClientError(f"Reading response missing fields: {', '.join(missing)}")
    questions = [
        q for q in data.get("questions") or []
        if isinstance(q, dict) and q.get("question") and isinstance(q.get("options"), list)
    ]
    return ReadingPassage(
        title=str(data["title"]),
        content=str(data["content"]),
        reading=str(data.get("reading") or ""),
        translation=str(data["translation"]),
        target_ids=tuple(w.id for w in words),
        questions=questions,
    )


async def generate_reading(words: Sequence[VocabularyItem], learner_level: int) -> ReadingPassage:
    """Ask the content API for a passage built around `words`."""
    if not CONTENT_API_BASE:
        raise ContentClientError("CONTENT_API_BASE is not configured")

    targets = list(words) or [DEMO_WORD]
    client = AsyncOpenAI(
        base_url=CONTENT_API_BASE,
        api_key=CONTENT_API_KEY,
        timeout=CONTENT_TIMEOUT_SECONDS,
    )
    logger.info("Generating reading for %d target words", len(targets))
    try:
        response = await client.responses.create(
            model=CONTENT_MODEL,
            temperature=0.7,
            input=build_reading_prompt(targets, learner_level),
            timeout=CONTENT_TIMEOUT_SECONDS,
        )
    except OpenAIError as e:
        raise ContentClientError(f"Content API request failed: {e}") from e

    if response.error:
        raise ContentClientError(f"OpenAI API error: {response.error}")

    text = response.output_text
    if not text:
        raise ContentClientError("Empty response from content API")
    return parse_reading_response(text, targets)
