#!/usr/bin/env python3
"""Backfill daily puzzles into a JSON lines file.

Usage:
    python scripts/generate_puzzles.py --days 365 --output puzzles.jsonl
    python scripts/generate_puzzles.py --start 2025-03-01 --days 7
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
import asyncio
import json
import logging
from typing import Any, Dict, Set

import structlog

from patternle.config import settings
from patternle.date_utils import date_key_offset, get_puzzle_number
from patternle.pipeline import PuzzlePipeline

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = structlog.get_logger(__name__)


def load_existing_date_keys(path: str) -> Set[str]:
    """Date keys already present in the output file."""
    if not os.path.exists(path):
        return set()

    existing = set()
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                existing.add(json.loads(line)["dateKey"])
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning("Skipping unreadable line", line=line_number, error=str(e))
    return existing


def build_record(date_key: str, result) -> Dict[str, Any]:
    return {
        "dateKey": date_key,
        "puzzleNumber": get_puzzle_number(date_key),
        "difficulty": "hard",
        "isFallback": result.is_fallback,
        "attempts": result.attempts,
        "puzzle": result.puzzle.model_dump(mode="json", by_alias=True, exclude_none=True),
    }


async def generate_range(start: str, days: int, output: str, concurrency: int) -> Dict[str, int]:
    """Generate puzzles for `days` consecutive dates beginning at `start`."""
    pipeline = PuzzlePipeline()
    existing = load_existing_date_keys(output)
    date_keys = [date_key_offset(i, start) for i in range(days)]
    pending = [key for key in date_keys if key not in existing]

    summary = {"generated": 0, "fallback": 0, "skipped": len(date_keys) - len(pending)}
    logger.info("Starting backfill", start=start, days=days, pending=len(pending), skipped=summary["skipped"])

    semaphore = asyncio.Semaphore(concurrency)
    write_lock = asyncio.Lock()

    async def generate_one(date_key: str) -> None:
        async with semaphore:
            result = await pipeline.generate_puzzle(date_key)

        async with write_lock:
            with open(output, "a", encoding="utf-8") as f:
                f.write(json.dumps(build_record(date_key, result)) + "\n")

            summary["generated"] += 1
            if result.is_fallback:
                summary["fallback"] += 1
            logger.info(
                "Saved puzzle",
                date_key=date_key,
                rule=result.puzzle.rule_kind.value,
                is_fallback=result.is_fallback,
                progress=f"{summary['generated']}/{len(pending)}",
            )

    await asyncio.gather(*(generate_one(key) for key in pending))
    return summary


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Generate daily Patternle puzzles")
    parser.add_argument("--start", help="First date key (YYYY-MM-DD); defaults to tomorrow")
    parser.add_argument("--days", type=int, default=365, help="Number of consecutive days to generate")
    parser.add_argument("--output", default="puzzles.jsonl", help="JSON lines file to append to")
    parser.add_argument("--concurrency", type=int, default=4, help="Dates generated in parallel")
    args = parser.parse_args()

    start = args.start or date_key_offset(1)

    try:
        summary = asyncio.run(generate_range(start, args.days, args.output, max(1, args.concurrency)))
    except Exception as e:
        logger.error("Backfill failed", error=str(e))
        return 1

    logger.info("Backfill complete", **summary)
    return 0


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
