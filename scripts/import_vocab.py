#!/usr/bin/env python3
"""Import vocabulary for a learner from a CSV file.

CSV schema (header required):
id,text,reading,meaning,level,tags

`tags` is a `;`-separated list. Items already in the store are skipped.
A running bot picks the words up on the learner's next session; uploading
the file to the bot makes them available immediately.

Usage:
    python scripts/import_vocab.py data/vocab.csv --user 123456
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from vocabbot.daily import now_ms
from vocabbot.db import import_vocabulary, init_db
from vocabbot.importer import VocabImportError, parse_vocab_csv


async def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("csv_path", type=Path, help="Path to vocabulary CSV file")
    parser.add_argument("--user", required=True, type=int, help="Telegram user id of the learner")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    try:
        items = parse_vocab_csv(args.csv_path)
    except VocabImportError as e:
        raise SystemExit(f"Import failed: {e}")

    await init_db()
    seeded = await import_vocabulary(args.user, items, now_ms())
    print(f"Imported {len(seeded)} of {len(items)} words for user {args.user}.")


if __name__ == "__main__":
    asyncio.run(main())
