"""Vocabulary CSV parsing shared by the bot upload and the import script.

Header (required): id,text,reading,meaning,level,tags
`tags` is a `;`-separated list.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from vocabbot.config import MAX_LEVEL
from vocabbot.models import RATINGS, VocabularyItem

REQUIRED_HEADER = ["id", "text", "reading", "meaning", "level", "tags"]

# Telegram caps callback data at 64 bytes and ids travel in `ans:<rating>:<id>`
CALLBACK_DATA_MAX_BYTES = 64
MAX_ITEM_ID_BYTES = CALLBACK_DATA_MAX_BYTES - len("ans::") - max(len(r) for r in RATINGS)


@dataclass
class VocabImportError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


def parse_vocab_rows(lines: Iterable[str]) -> Iterator[VocabularyItem]:
    """Yield validated items in file order.

    Validates the header, non-empty id/text/meaning, the id length and a level
    in 1..6. Later rows repeating an id are ignored.
    """
    seen: set[str] = set()
    reader = csv.DictReader(lines)
    header = reader.fieldnames or []
    if header != REQUIRED_HEADER:
        raise VocabImportError(f"Invalid header. Expected {','.join(REQUIRED_HEADER)}, got {','.join(header)}")
    for i, row in enumerate(reader, start=2):
        item_id = (row.get("id") or "").strip()
        text = (row.get("text") or "").strip()
        meaning = (row.get("meaning") or "").strip()
        if not item_id or not text or not meaning:
            raise VocabImportError(f"Row {i}: empty id, text or meaning")
        if len(item_id.encode("utf-8")) > MAX_ITEM_ID_BYTES:
            raise VocabImportError(f"Row {i}: id longer than {MAX_ITEM_ID_BYTES} bytes")
        try:
            level = int((row.get("level") or "").strip())
        except ValueError:
            raise VocabImportError(f"Row {i}: level must be an integer, got {row.get('level')!r}")
        if not 1 <= level <= MAX_LEVEL:
            raise VocabImportError(f"Row {i}: level must be between 1 and {MAX_LEVEL}, got {level}")
        if item_id in seen:
            continue
        seen.add(item_id)
        tags = tuple(t.strip() for t in (row.get("tags") or "").split(";") if t.strip())
        yield VocabularyItem(
            id=item_id,
            text=text,
            reading=(row.get("reading") or "").strip(),
            meaning=meaning,
            level=level,
            tags=tags,
        )


def parse_vocab_bytes(data: bytes) -> list[VocabularyItem]:
    """Parse an uploaded CSV file; a UTF-8 BOM is accepted."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise VocabImportError("File is not UTF-8 encoded")
    return list(parse_vocab_rows(io.StringIO(text, newline="")))


def parse_vocab_csv(path: Path) -> list[VocabularyItem]:
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        return list(parse_vocab_rows(f))
