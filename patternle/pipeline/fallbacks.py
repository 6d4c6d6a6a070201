"""Hand-authored fallback puzzles and deterministic per-date selection."""

from typing import List

from ..models.puzzles import PuzzleCandidate
from ..models.rules import (
    AlternatingOperation,
    OperationKind,
    RuleKind,
    RuleParameters,
)

FALLBACK_PUZZLES: List[PuzzleCandidate] = [
    PuzzleCandidate(
        rule_kind=RuleKind.SECOND_ORDER_CONSTANT,
        rule_parameters=RuleParameters(second_difference=3, starting_values=[2, 5]),
        tags=["DIFFERENCES", "SECOND_ORDER", "INCREASING"],
        sequences=[
            [2, 5, 11, 20, 32],
            [4, 9, 17, 28, 42],
            [6, 13, 23, 36, 52],
            [8, 17, 29, 44, 62],
            [10, 21, 35, 52, 72],
        ],
        answers=[47, 59, 71, 83, 95],
        primary_index=0,
        hints=[
            "This pattern only uses addition, but the amount added changes each time.",
            "The amount you add increases by the same number each step.",
        ],
        explanation=(
            "Each term adds an increasing amount. The differences are 3, 6, 9, 12 "
            "(increasing by 3 each time). Next difference is 15, so 32 + 15 = 47."
        ),
    ),
    PuzzleCandidate(
        rule_kind=RuleKind.FIBONACCI_LIKE,
        rule_parameters=RuleParameters(prev_multiplier=1, prev2_multiplier=2, starting_values=[1, 3]),
        tags=["RECURSIVE", "FIBONACCI", "INCREASING"],
        sequences=[
            [1, 3, 5, 11, 21],
            [3, 7, 13, 27, 53],
            [5, 11, 21, 43, 85],
            [7, 15, 29, 59, 117],
            [9, 19, 37, 75, 149],
        ],
        answers=[43, 107, 171, 235, 299],
        primary_index=0,
        hints=[
            "This uses addition and multiplication. Each number is calculated from the two before it.",
            "Try: current number + (2 × the number before that).",
        ],
        explanation=(
            "Each term equals the previous term plus twice the term before that: "
            "next = prev + 2×prev2. So 21 + (2×11) = 21 + 22 = 43."
        ),
    ),
    PuzzleCandidate(
        rule_kind=RuleKind.ALTERNATING_OPS,
        rule_parameters=RuleParameters(
            operations=[
                AlternatingOperation(op=OperationKind.MULTIPLY, value=2),
                AlternatingOperation(op=OperationKind.ADD, value=3),
            ],
            starting_values=[1],
        ),
        tags=["ALTERNATING", "MIXED_SIGNS"],
        sequences=[
            [1, 2, 5, 10, 13],
            [3, 6, 9, 18, 21],
            [5, 10, 13, 26, 29],
            [7, 14, 17, 34, 37],
            [9, 18, 21, 42, 45],
        ],
        answers=[26, 42, 58, 74, 90],
        primary_index=0,
        hints=[
            "This uses both multiplication and addition, alternating between them.",
            "First multiply by 2, then add 3, then multiply by 2, then add 3...",
        ],
        explanation="The sequence alternates: ×2, +3, ×2, +3... So 13 × 2 = 26.",
    ),
    PuzzleCandidate(
        rule_kind=RuleKind.POSITIONAL_FORMULA,
        rule_parameters=RuleParameters(a=1, b=2, c=-1),
        tags=["POLYNOMIAL", "POSITIONAL", "INCREASING"],
        sequences=[
            [2, 7, 14, 23, 34],
            [5, 10, 17, 26, 37],
            [8, 13, 20, 29, 40],
            [11, 16, 23, 32, 43],
            [14, 19, 26, 35, 46],
        ],
        answers=[47, 50, 53, 56, 59],
        primary_index=0,
        hints=[
            "Each term is calculated using its position (1st, 2nd, 3rd...). Uses multiplication and addition.",
            "The formula involves squaring the position number.",
        ],
        explanation="The nth term equals n² + 2n - 1. For position 6: 36 + 12 - 1 = 47.",
    ),
    PuzzleCandidate(
        rule_kind=RuleKind.LINEAR_DIFF,
        rule_parameters=RuleParameters(initial_diff=5, diff_increment=4, starting_values=[3]),
        tags=["DIFFERENCES", "INCREASING"],
        sequences=[
            [3, 8, 17, 30, 47],
            [5, 10, 19, 32, 49],
            [7, 12, 21, 34, 51],
            [9, 14, 23, 36, 53],
            [11, 16, 25, 38, 55],
        ],
        answers=[68, 70, 72, 74, 76],
        primary_index=0,
        hints=[
            "This only uses addition. Calculate what you add each time to get to the next number.",
            "The differences between terms are: 5, 9, 13, 17... See the pattern?",
        ],
        explanation=(
            "The differences are 5, 9, 13, 17, 21 (increasing by 4 each time). "
            "Next difference is 21, so 47 + 21 = 68."
        ),
    ),
]


def hash_date_key(date_key: str) -> int:
    """32-bit rolling hash: hash = hash * 31 + code unit, wrapped to signed 32 bits."""
    value = 0
    for char in date_key:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def fallback_index(date_key: str, catalog_size: int = len(FALLBACK_PUZZLES)) -> int:
    """Stable catalog index for a calendar date."""
    return abs(hash_date_key(date_key)) % catalog_size


def select_fallback(date_key: str) -> PuzzleCandidate:
    """A copy of the fallback puzzle for a calendar date; the same date always gets the same puzzle."""
    return FALLBACK_PUZZLES[fallback_index(date_key)].model_copy(deep=True)
