"""Rule program models: the closed set of sequence rules and their parameters."""

from enum import Enum
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = Union[int, float]


class RuleKind(str, Enum):
    """Supported rule programs. Each one deterministically generates a number sequence."""
    # Basic arithmetic patterns
    ARITHMETIC_SEQUENCE = "ARITHMETIC_SEQUENCE"      # a, a+d, a+2d, ...
    GEOMETRIC_SEQUENCE = "GEOMETRIC_SEQUENCE"        # a, a*r, a*r^2, ...

    # Difference-based patterns
    LINEAR_DIFF = "LINEAR_DIFF"                      # differences grow linearly
    SECOND_ORDER_CONSTANT = "SECOND_ORDER_CONSTANT"  # second differences are constant

    # Alternating patterns
    ALTERNATING_OPS = "ALTERNATING_OPS"              # +a, -b, +a, -b ...
    ALTERNATING_PARITY = "ALTERNATING_PARITY"        # separate rules for odd/even positions

    # Positional/polynomial patterns
    POSITIONAL_FORMULA = "POSITIONAL_FORMULA"        # a*n^2 + b*n + c
    CUBIC_POSITIONAL = "CUBIC_POSITIONAL"            # a*n^3 + b*n^2 + c*n + d

    # Recursive patterns
    RECURSIVE_LINEAR = "RECURSIVE_LINEAR"            # next = a*prev + b
    FIBONACCI_LIKE = "FIBONACCI_LIKE"                # next = a*prev + b*prev2
    TRIBONACCI_LIKE = "TRIBONACCI_LIKE"              # next = prev + prev2 + prev3

    # Special patterns
    DIGIT_SUM_BASED = "DIGIT_SUM_BASED"
    MULTIPLY_THEN_ADD = "MULTIPLY_THEN_ADD"          # next = prev*a + b
    POWER_BASED = "POWER_BASED"                      # n^k, k^n or n^2 + k


# Rules whose terms depend only on the 1-indexed position
POSITIONAL_KINDS = frozenset({
    RuleKind.POSITIONAL_FORMULA,
    RuleKind.CUBIC_POSITIONAL,
    RuleKind.POWER_BASED,
})


class OperationKind(str, Enum):
    """Operations available to ALTERNATING_OPS."""
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"


class PowerType(str, Enum):
    """Sub-modes of POWER_BASED."""
    N_TO_K = "n_to_k"                  # n^exponent
    K_TO_N = "k_to_n"                  # base^n
    N_SQUARED_PLUS = "n_squared_plus"  # n^2 + base


RULE_CATEGORY_TAGS = (
    "ARITHMETIC",
    "GEOMETRIC",
    "DIFFERENCES",
    "SECOND_ORDER",
    "ALTERNATING",
    "POLYNOMIAL",
    "RECURSIVE",
    "FIBONACCI",
    "INCREASING",
    "DECREASING",
    "MIXED_SIGNS",
    "DIGIT_BASED",
    "POWERS",
    "POSITIONAL",
)


class AlternatingOperation(BaseModel):
    """One step in an ALTERNATING_OPS cycle."""

    op: OperationKind = Field(..., description="Operation applied to the previous term")
    value: Number = Field(..., description="Operand for the operation")


class RuleParameters(BaseModel):
    """Sparse parameter record for a rule program.

    Only the fields relevant to the active rule kind are read; everything
    else is ignored. Field names serialise to the camelCase wire names
    used by proposal sources and stored puzzles.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # ARITHMETIC_SEQUENCE
    difference: Optional[Number] = None

    # GEOMETRIC_SEQUENCE
    ratio: Optional[Number] = None

    # LINEAR_DIFF
    initial_diff: Optional[Number] = None
    diff_increment: Optional[Number] = None

    # SECOND_ORDER_CONSTANT
    second_difference: Optional[Number] = None

    # ALTERNATING_OPS
    operations: Optional[List[AlternatingOperation]] = None

    # ALTERNATING_PARITY
    odd_multiplier: Optional[Number] = None
    odd_addend: Optional[Number] = None
    even_multiplier: Optional[Number] = None
    even_addend: Optional[Number] = None

    # POSITIONAL_FORMULA
    a: Optional[Number] = Field(None, description="Coefficient for n^2")
    b: Optional[Number] = Field(None, description="Coefficient for n")
    c: Optional[Number] = Field(None, description="Constant term")

    # CUBIC_POSITIONAL
    cubic_a: Optional[Number] = Field(None, description="Coefficient for n^3")
    cubic_b: Optional[Number] = Field(None, description="Coefficient for n^2")
    cubic_c: Optional[Number] = Field(None, description="Coefficient for n")
    cubic_d: Optional[Number] = Field(None, description="Constant term")

    # RECURSIVE_LINEAR
    multiplier: Optional[Number] = None
    addend: Optional[Number] = None

    # FIBONACCI_LIKE
    prev_multiplier: Optional[Number] = None
    prev2_multiplier: Optional[Number] = None

    # DIGIT_SUM_BASED
    digit_sum_multiplier: Optional[Number] = None
    digit_sum_addend: Optional[Number] = None

    # MULTIPLY_THEN_ADD
    multiply_factor: Optional[Number] = None
    add_factor: Optional[Number] = None

    # POWER_BASED
    base: Optional[Number] = None
    exponent: Optional[Number] = None
    power_type: Optional[PowerType] = None

    starting_values: Optional[List[Number]] = Field(
        None,
        description="Initial terms for rules that build on previous values",
    )
