"""Rule engine: sequence evaluation, pattern detection and puzzle validation."""

from .evaluators import (
    digit_sum,
    next_term,
    generate_sequence,
    generate_multiple_sequences,
    needs_starting_values,
    spread_starting_values,
    verify_sequence,
)
from .detectors import (
    fit_quadratic,
    check_constant_difference,
    check_constant_ratio,
    check_alternating_pattern,
)
from .validation import (
    validate_structure,
    validate_difficulty,
    validate_ambiguity,
    validate_puzzle,
)

__all__ = [
    "digit_sum",
    "next_term",
    "generate_sequence",
    "generate_multiple_sequences",
    "needs_starting_values",
    "spread_starting_values",
    "verify_sequence",
    "fit_quadratic",
    "check_constant_difference",
    "check_constant_ratio",
    "check_alternating_pattern",
    "validate_structure",
    "validate_difficulty",
    "validate_ambiguity",
    "validate_puzzle",
]
