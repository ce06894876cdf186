from __future__ import annotations

import json

import pytest

import vocabbot.content_client as cc
from vocabbot.content_client import (
    ContentClientError,
    build_reading_prompt,
    content_level,
    generate_reading,
    parse_reading_response,
)
from vocabbot.models import VocabularyItem

WORDS = [
    VocabularyItem(id="10", text="喜欢", reading="xǐ huan", meaning="to like", level=1),
    VocabularyItem(id="6", text="困难", reading="kùn nan", meaning="difficult", level=3),
]


def test_content_level_raised_by_hardest_word():
    assert content_level(WORDS, 1) == 3
    assert content_level(WORDS, 5) == 5
    assert content_level([], 2) == 2


def test_prompt_lists_words_and_level():
    p = build_reading_prompt(WORDS, 1)
    assert "STRICTLY include these words: 喜欢 (to like), 困难 (difficult)." in p
    assert "proficiency level 3" in p
    assert "questions in the target language" in p
    assert "questions in English" in build_reading_prompt(WORDS[:1], 1)


def test_parse_response_strips_fences():
    body = {
        "title": "T",
        "content": "我喜欢。",
        "reading": "wǒ xǐhuan.",
        "translation": "I like it.",
        "questions": [
            {"question": "Q?", "options": ["a", "b"], "correct_index": 1},
            {"question": "", "options": []},
        ],
    }
    passage = parse_reading_response("```json\n" + json.dumps(body) + "\n```", WORDS)
    assert passage.title == "T"
    assert passage.target_ids == ("10", "6")
    assert len(passage.questions) == 1


@pytest.mark.parametrize("text", ["not json", "[1, 2]", json.dumps({"title": "T", "content": ""})])
def test_parse_response_rejects_malformed(text):
    with pytest.raises(ContentClientError):
        parse_reading_response(text, WORDS)


@pytest.mark.asyncio
async def test_generate_requires_api_base(monkeypatch):
    monkeypatch.setattr(cc, "CONTENT_API_BASE", "")
    with pytest.raises(ContentClientError):
        await generate_reading(WORDS, 1)
