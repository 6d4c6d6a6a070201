"""Data models for the Patternle puzzle engine."""

from .rules import (
    RuleKind,
    RuleParameters,
    AlternatingOperation,
    OperationKind,
    PowerType,
    POSITIONAL_KINDS,
    RULE_CATEGORY_TAGS,
)
from .puzzles import (
    GeneratedSequence,
    PuzzleCandidate,
    ValidationResult,
    RuleProposal,
    GenerationResult,
)

__all__ = [
    "RuleKind",
    "RuleParameters",
    "AlternatingOperation",
    "OperationKind",
    "PowerType",
    "POSITIONAL_KINDS",
    "RULE_CATEGORY_TAGS",
    "GeneratedSequence",
    "PuzzleCandidate",
    "ValidationResult",
    "RuleProposal",
    "GenerationResult",
]
