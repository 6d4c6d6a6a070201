"""Rule-agnostic pattern detectors used to look for rival explanations of a sequence.

None of these know which rule produced a sequence; each proposes its own
continuation so the validator can compare it with the stated answer.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, Field

from ..models.rules import Number

# Calibration constants. Changing them changes which puzzles are accepted.
SINGULAR_DETERMINANT_TOLERANCE = 1e-10
RATIO_TOLERANCE = 1e-4
MIN_ALTERNATING_LENGTH = 4


class QuadraticFit(BaseModel):
    """Least-squares fit of a*x^2 + b*x + c over 1-indexed positions."""

    coefficients: Tuple[float, float, float] = Field(..., description="(a, b, c)")
    next_value: int = Field(..., description="Rounded prediction for the next position")
    error: float = Field(..., description="Mean absolute fit error; inf for the linear fallback")


class ConstantDifference(BaseModel):
    is_constant: bool = False
    difference: Optional[Number] = None
    next_value: Optional[Number] = None


class ConstantRatio(BaseModel):
    is_constant: bool = False
    ratio: Optional[int] = None
    next_value: Optional[Number] = None


class AlternatingPattern(BaseModel):
    is_alternating: bool = False
    add_value: Optional[Number] = None
    subtract_value: Optional[Number] = None
    next_value: Optional[Number] = None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def differences(sequence: Sequence[Number]) -> List[Number]:
    return [current - previous for previous, current in zip(sequence, sequence[1:])]


def _det3(m: np.ndarray) -> float:
    # Cofactor expansion along the first row; exact for integer-valued sums.
    return float(
        m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
        - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
        + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
    )


def fit_quadratic(sequence: Sequence[Number]) -> QuadraticFit:
    """Fit a*x^2 + b*x + c to the sequence at x = 1..n by least squares.

    The normal equations are built from the power sums sum(x^k), k = 0..4,
    and sum(x^k * y), k = 0..2, and solved with Cramer's rule. When the
    system is singular the fit falls back to a line through the endpoints
    and reports an infinite error.
    """
    n = len(sequence)
    y = np.asarray(sequence, dtype=float)
    x = np.arange(1, n + 1, dtype=float)

    power_sums = [float(np.sum(x ** k)) for k in range(5)]
    moments = np.array([float(np.sum(x ** k * y)) for k in range(3)])

    # Unknowns ordered (c, b, a)
    normal_matrix = np.array([[power_sums[row + col] for col in range(3)] for row in range(3)])
    det = _det3(normal_matrix)

    if abs(det) < SINGULAR_DETERMINANT_TOLERANCE:
        if n < 2:
            last = float(y[-1]) if n else 0.0
            return QuadraticFit(coefficients=(0.0, 0.0, last), next_value=round_half_up(last), error=math.inf)
        slope = (float(y[-1]) - float(y[0])) / (n - 1)
        intercept = float(y[0]) - slope
        return QuadraticFit(
            coefficients=(0.0, slope, intercept),
            next_value=round_half_up(float(y[0]) + slope * n),
            error=math.inf,
        )

    solution = []
    for col in range(3):
        replaced = normal_matrix.copy()
        replaced[:, col] = moments
        solution.append(_det3(replaced) / det)
    c, b, a = solution

    fitted = a * x ** 2 + b * x + c
    error = float(np.mean(np.abs(y - fitted)))

    next_x = n + 1
    return QuadraticFit(
        coefficients=(a, b, c),
        next_value=round_half_up(a * next_x ** 2 + b * next_x + c),
        error=error,
    )


def check_constant_difference(sequence: Sequence[Number]) -> ConstantDifference:
    if len(sequence) < 2:
        return ConstantDifference()

    diffs = differences(sequence)
    if all(d == diffs[0] for d in diffs):
        return ConstantDifference(
            is_constant=True,
            difference=diffs[0],
            next_value=sequence[-1] + diffs[0],
        )
    return ConstantDifference()


def check_constant_ratio(sequence: Sequence[Number]) -> ConstantRatio:
    """Detect a geometric pattern. Undefined when any term is zero."""
    if len(sequence) < 2 or any(value == 0 for value in sequence):
        return ConstantRatio()

    ratios = [current / previous for previous, current in zip(sequence, sequence[1:])]
    if not math.isfinite(ratios[0]):
        return ConstantRatio()

    if all(abs(r - ratios[0]) < RATIO_TOLERANCE for r in ratios):
        ratio = round_half_up(ratios[0])
        return ConstantRatio(is_constant=True, ratio=ratio, next_value=sequence[-1] * ratio)
    return ConstantRatio()


def check_alternating_pattern(sequence: Sequence[Number]) -> AlternatingPattern:
    """Detect differences that alternate between two distinct constants."""
    if len(sequence) < MIN_ALTERNATING_LENGTH:
        return AlternatingPattern()

    diffs = differences(sequence)
    even_diffs = diffs[0::2]
    odd_diffs = diffs[1::2]

    even_constant = all(d == even_diffs[0] for d in even_diffs)
    odd_constant = all(d == odd_diffs[0] for d in odd_diffs)

    if even_constant and odd_constant and even_diffs[0] != odd_diffs[0]:
        next_diff = even_diffs[0] if len(diffs) % 2 == 0 else odd_diffs[0]
        return AlternatingPattern(
            is_alternating=True,
            add_value=max(even_diffs[0], odd_diffs[0]),
            subtract_value=min(even_diffs[0], odd_diffs[0]),
            next_value=sequence[-1] + next_diff,
        )
    return AlternatingPattern()
