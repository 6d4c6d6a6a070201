"""Generation orchestration for the Patternle puzzle engine."""

from .fallbacks import FALLBACK_PUZZLES, hash_date_key, fallback_index, select_fallback
from .puzzle_pipeline import PuzzlePipeline

__all__ = [
    "PuzzlePipeline",
    "FALLBACK_PUZZLES",
    "hash_date_key",
    "fallback_index",
    "select_fallback",
]
