"""Puzzle validation: structure, difficulty and ambiguity checks."""

import logging
from typing import List, Optional, Sequence

from ..config import settings
from ..models.puzzles import PuzzleCandidate, ValidationResult
from ..models.rules import Number
from .detectors import (
    check_alternating_pattern,
    check_constant_difference,
    check_constant_ratio,
    fit_quadratic,
)

logger = logging.getLogger(__name__)

MIN_VALUE = -999
MAX_VALUE = 999
MIN_SEQUENCE_LENGTH = 4
REQUIRED_HINTS = 2
MIN_EXPLANATION_LENGTH = 10

QUADRATIC = "quadratic"
CONSTANT_DIFF = "constant_diff"
CONSTANT_RATIO = "constant_ratio"
ALTERNATING = "alternating"
RIVAL_METHODS = (QUADRATIC, CONSTANT_DIFF, CONSTANT_RATIO, ALTERNATING)


def _is_integer(value: Number) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _out_of_bounds(value: Number) -> bool:
    return value < MIN_VALUE or value > MAX_VALUE


def validate_structure(puzzle: PuzzleCandidate) -> ValidationResult:
    """Check lengths, bounds, integrality and narrative fields.

    Every violation is reported; nothing short-circuits.
    """
    errors: List[str] = []

    if not puzzle.sequences:
        errors.append("No sequences provided")
    else:
        for i, seq in enumerate(puzzle.sequences):
            if len(seq) < MIN_SEQUENCE_LENGTH:
                errors.append(f"Sequence {i + 1} has fewer than {MIN_SEQUENCE_LENGTH} terms")

            for j, value in enumerate(seq):
                if not _is_integer(value):
                    errors.append(f"Sequence {i + 1}, term {j + 1} is not an integer: {value}")
                if _out_of_bounds(value):
                    errors.append(f"Sequence {i + 1}, term {j + 1} is out of bounds: {value}")

        if not 0 <= puzzle.primary_index < len(puzzle.sequences):
            errors.append(f"Primary sequence index {puzzle.primary_index} is out of range")

    if len(puzzle.answers) != len(puzzle.sequences):
        errors.append("Answers count does not match sequences count")
    else:
        for i, answer in enumerate(puzzle.answers):
            if not _is_integer(answer):
                errors.append(f"Answer {i + 1} is not an integer: {answer}")
            if _out_of_bounds(answer):
                errors.append(f"Answer {i + 1} is out of bounds: {answer}")

    if len(puzzle.hints) != REQUIRED_HINTS:
        errors.append(f"Exactly {REQUIRED_HINTS} hints are required")

    if len(puzzle.explanation or "") < MIN_EXPLANATION_LENGTH:
        errors.append("Explanation is too short or missing")

    return ValidationResult(errors=errors)


def validate_difficulty(puzzle: PuzzleCandidate) -> ValidationResult:
    """Warn when the primary sequence is solved by a constant difference or ratio."""
    warnings: List[str] = []

    primary_seq = puzzle.primary_sequence
    primary_answer = puzzle.primary_answer

    const_diff = check_constant_difference(primary_seq)
    if const_diff.is_constant and const_diff.next_value == primary_answer:
        warnings.append("Primary sequence has constant difference - may be too easy")

    const_ratio = check_constant_ratio(primary_seq)
    if const_ratio.is_constant and const_ratio.next_value == primary_answer:
        warnings.append("Primary sequence has constant ratio - may be too easy")

    return ValidationResult(warnings=warnings)


def _rival_prediction(method: str, sequence: Sequence[Number], max_error: float) -> Optional[Number]:
    """Continuation proposed by a detector, or None if it has no confident opinion."""
    if method == QUADRATIC:
        fit = fit_quadratic(sequence)
        return fit.next_value if fit.error < max_error else None
    if method == CONSTANT_DIFF:
        return check_constant_difference(sequence).next_value
    if method == CONSTANT_RATIO:
        return check_constant_ratio(sequence).next_value
    return check_alternating_pattern(sequence).next_value


def _explains(method: str, sequence: Sequence[Number], answer: Number, refit_tolerance: float) -> bool:
    """Whether the detector, rerun on a sequence, reproduces its stated answer."""
    if method == QUADRATIC:
        return abs(fit_quadratic(sequence).next_value - answer) <= refit_tolerance
    if method == CONSTANT_DIFF:
        check = check_constant_difference(sequence)
        return check.is_constant and check.next_value == answer
    if method == CONSTANT_RATIO:
        check = check_constant_ratio(sequence)
        return check.is_constant and check.next_value == answer
    check = check_alternating_pattern(sequence)
    return check.is_alternating and check.next_value == answer


def validate_ambiguity(
    puzzle: PuzzleCandidate,
    quadratic_max_error: Optional[float] = None,
    refit_tolerance: Optional[float] = None,
) -> ValidationResult:
    """Look for a second pattern that explains the primary sequence differently.

    A rival that also reproduces every alternate sequence's answer means
    the puzzle has two self-consistent solutions: that is an error. A
    rival that the alternates contradict has been disambiguated and is
    only a warning. With no alternates nothing can contradict a rival.
    """
    if quadratic_max_error is None:
        quadratic_max_error = settings.quadratic_max_error
    if refit_tolerance is None:
        refit_tolerance = settings.quadratic_refit_tolerance

    errors: List[str] = []
    warnings: List[str] = []

    primary_seq = puzzle.primary_sequence
    intended_answer = puzzle.primary_answer

    for method in RIVAL_METHODS:
        prediction = _rival_prediction(method, primary_seq, quadratic_max_error)
        if prediction is None or prediction == intended_answer:
            continue

        fits_all_sequences = all(
            _explains(method, seq, answer, refit_tolerance)
            for _, seq, answer in puzzle.alternate_pairs()
        )

        if fits_all_sequences:
            errors.append(
                f"Ambiguous: {method} pattern predicts {prediction} instead of {intended_answer} "
                f"and fits all sequences"
            )
        else:
            warnings.append(
                f"Alternative {method} pattern predicts {prediction} "
                f"but is disambiguated by other sequences"
            )

    return ValidationResult(errors=errors, warnings=warnings)


def validate_puzzle(puzzle: PuzzleCandidate) -> ValidationResult:
    """Full validation pipeline.

    Difficulty and ambiguity only run when the structure is sound.
    """
    result = validate_structure(puzzle)
    if not result.valid:
        logger.debug(f"Structural validation failed: {result.errors}")
        return result

    result = result.merge(validate_difficulty(puzzle)).merge(validate_ambiguity(puzzle))
    if result.errors:
        logger.debug(f"Puzzle rejected: {result.errors}")
    return result
