"""Rule program evaluation: next terms, full sequences and seed-spread variants."""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..exceptions import UnknownRuleError
from ..models.puzzles import GeneratedSequence
from ..models.rules import (
    Number,
    OperationKind,
    POSITIONAL_KINDS,
    AlternatingOperation,
    PowerType,
    RuleKind,
    RuleParameters,
)

logger = logging.getLogger(__name__)

DEFAULT_STARTING_VALUES = [1]

DEFAULT_OPERATIONS = [
    AlternatingOperation(op=OperationKind.ADD, value=2),
    AlternatingOperation(op=OperationKind.SUBTRACT, value=1),
]


def digit_sum(n: Number) -> int:
    """Sum of the decimal digits of |n|."""
    return sum(int(digit) for digit in str(abs(int(n))))


def resolve_rule_kind(rule_kind: Union[RuleKind, str]) -> RuleKind:
    """Turn a rule kind token into a RuleKind, raising UnknownRuleError if it is not one."""
    if isinstance(rule_kind, RuleKind):
        return rule_kind
    try:
        return RuleKind(rule_kind)
    except (ValueError, TypeError):
        raise UnknownRuleError(rule_kind) from None


def coerce_parameters(parameters: Union[RuleParameters, Dict[str, Any], None]) -> RuleParameters:
    """Accept parameters as a model, a wire-format dict, or nothing."""
    if parameters is None:
        return RuleParameters()
    if isinstance(parameters, dict):
        return RuleParameters.model_validate(parameters)
    return parameters


def needs_starting_values(rule_kind: Union[RuleKind, str]) -> bool:
    """Whether a rule builds on previous terms rather than on the position alone."""
    return resolve_rule_kind(rule_kind) not in POSITIONAL_KINDS


def spread_starting_values(base_values: Sequence[Number], index: int) -> List[Number]:
    """Seed-spread: shift the value at array index idx by index * (idx + 1) * 2.

    Index 0 returns the base values unchanged; later indices move every
    seed further apart so each variant is visibly distinct.
    """
    return [value + index * (idx + 1) * 2 for idx, value in enumerate(base_values)]


def _or_default(value: Optional[Number], default: Number) -> Number:
    return default if value is None else value


def _normalize(value: Number) -> Number:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _term_from_end(sequence: Sequence[Number], offset: int) -> Number:
    """The term `offset` places from the end, or 0 if the sequence is shorter."""
    return sequence[-offset] if len(sequence) >= offset else 0


# Rule implementations. Each takes (sequence_so_far, params, position).

def _arithmetic(sequence, params, position):
    return _term_from_end(sequence, 1) + _or_default(params.difference, 0)


def _geometric(sequence, params, position):
    return _term_from_end(sequence, 1) * _or_default(params.ratio, 1)


def _linear_diff(sequence, params, position):
    initial_diff = _or_default(params.initial_diff, 1)
    diff_increment = _or_default(params.diff_increment, 1)
    next_diff = initial_diff + (len(sequence) - 1) * diff_increment
    return _term_from_end(sequence, 1) + next_diff


def _second_order_constant(sequence, params, position):
    second_diff = _or_default(params.second_difference, 2)
    prev = _term_from_end(sequence, 1)
    if len(sequence) < 2:
        return prev + second_diff
    last_diff = prev - _term_from_end(sequence, 2)
    return prev + last_diff + second_diff


def _alternating_ops(sequence, params, position):
    operations = params.operations or DEFAULT_OPERATIONS
    operation = operations[(len(sequence) - 1) % len(operations)]
    prev = _term_from_end(sequence, 1)
    if operation.op == OperationKind.ADD:
        return prev + operation.value
    if operation.op == OperationKind.SUBTRACT:
        return prev - operation.value
    return prev * operation.value


def _alternating_parity(sequence, params, position):
    prev = _term_from_end(sequence, 1)
    if position % 2 == 1:
        return prev * _or_default(params.odd_multiplier, 1) + _or_default(params.odd_addend, 1)
    return prev * _or_default(params.even_multiplier, 1) + _or_default(params.even_addend, 2)


def _positional_formula(sequence, params, position):
    a = _or_default(params.a, 0)
    b = _or_default(params.b, 1)
    c = _or_default(params.c, 0)
    return a * position ** 2 + b * position + c


def _cubic_positional(sequence, params, position):
    a = _or_default(params.cubic_a, 0)
    b = _or_default(params.cubic_b, 0)
    c = _or_default(params.cubic_c, 1)
    d = _or_default(params.cubic_d, 0)
    return a * position ** 3 + b * position ** 2 + c * position + d


def _recursive_linear(sequence, params, position):
    multiplier = _or_default(params.multiplier, 2)
    return multiplier * _term_from_end(sequence, 1) + _or_default(params.addend, 0)


def _fibonacci_like(sequence, params, position):
    prev_mult = _or_default(params.prev_multiplier, 1)
    prev2_mult = _or_default(params.prev2_multiplier, 1)
    return prev_mult * _term_from_end(sequence, 1) + prev2_mult * _term_from_end(sequence, 2)


def _tribonacci_like(sequence, params, position):
    return _term_from_end(sequence, 1) + _term_from_end(sequence, 2) + _term_from_end(sequence, 3)


def _digit_sum_based(sequence, params, position):
    prev = _term_from_end(sequence, 1)
    multiplier = _or_default(params.digit_sum_multiplier, 1)
    addend = _or_default(params.digit_sum_addend, 0)
    return prev + (digit_sum(prev) * multiplier + addend)


def _multiply_then_add(sequence, params, position):
    factor = _or_default(params.multiply_factor, 2)
    return _term_from_end(sequence, 1) * factor + _or_default(params.add_factor, 1)


def _power_based(sequence, params, position):
    base = _or_default(params.base, 2)
    exponent = _or_default(params.exponent, 2)
    power_type = params.power_type or PowerType.N_SQUARED_PLUS

    if power_type == PowerType.N_TO_K:
        return position ** exponent
    if power_type == PowerType.K_TO_N:
        return base ** position
    return position ** 2 + base


_RULES: Dict[RuleKind, Callable[[Sequence[Number], RuleParameters, int], Number]] = {
    RuleKind.ARITHMETIC_SEQUENCE: _arithmetic,
    RuleKind.GEOMETRIC_SEQUENCE: _geometric,
    RuleKind.LINEAR_DIFF: _linear_diff,
    RuleKind.SECOND_ORDER_CONSTANT: _second_order_constant,
    RuleKind.ALTERNATING_OPS: _alternating_ops,
    RuleKind.ALTERNATING_PARITY: _alternating_parity,
    RuleKind.POSITIONAL_FORMULA: _positional_formula,
    RuleKind.CUBIC_POSITIONAL: _cubic_positional,
    RuleKind.RECURSIVE_LINEAR: _recursive_linear,
    RuleKind.FIBONACCI_LIKE: _fibonacci_like,
    RuleKind.TRIBONACCI_LIKE: _tribonacci_like,
    RuleKind.DIGIT_SUM_BASED: _digit_sum_based,
    RuleKind.MULTIPLY_THEN_ADD: _multiply_then_add,
    RuleKind.POWER_BASED: _power_based,
}


def next_term(
    sequence: Sequence[Number],
    rule_kind: Union[RuleKind, str],
    parameters: Union[RuleParameters, Dict[str, Any], None],
    position: int,
) -> Number:
    """Compute the term at the 1-indexed `position` given the terms so far.

    Only the last three terms of `sequence` are consulted; positional
    rules ignore it entirely.

    Raises:
        UnknownRuleError: if `rule_kind` is not a supported rule.
    """
    rule = _RULES[resolve_rule_kind(rule_kind)]
    return _normalize(rule(sequence, coerce_parameters(parameters), position))


def generate_sequence(
    rule_kind: Union[RuleKind, str],
    parameters: Union[RuleParameters, Dict[str, Any], None],
    length: int,
    starting_values: Optional[Sequence[Number]] = None,
) -> GeneratedSequence:
    """Generate `length` terms under a rule plus the correct continuation.

    Positional rules are evaluated at positions 1..length. Every other rule
    is seeded from `starting_values`, then `parameters.starting_values`,
    then [1]; an empty list counts as absent.
    """
    kind = resolve_rule_kind(rule_kind)
    params = coerce_parameters(parameters)
    sequence: List[Number] = []

    if kind in POSITIONAL_KINDS:
        for position in range(1, length + 1):
            sequence.append(next_term(sequence, kind, params, position))
        return GeneratedSequence(
            sequence=sequence,
            next_value=next_term(sequence, kind, params, length + 1),
        )

    seeds = starting_values or params.starting_values or DEFAULT_STARTING_VALUES
    sequence.extend(seeds[:length])

    while len(sequence) < length:
        sequence.append(next_term(sequence, kind, params, len(sequence) + 1))

    return GeneratedSequence(
        sequence=sequence,
        next_value=next_term(sequence, kind, params, length + 1),
    )


def generate_multiple_sequences(
    rule_kind: Union[RuleKind, str],
    parameters: Union[RuleParameters, Dict[str, Any], None],
    count: int,
    length: int,
) -> List[GeneratedSequence]:
    """Generate `count` visibly different sequences that all follow one rule.

    The variation is fixed so a stored puzzle can always be regenerated:
    quadratic rules shift c by 3 per index, cubic rules shift d by 5,
    power rules shift base by 2 from 0 when powerType is n_squared_plus
    and by 1 from 2 otherwise (including an unset powerType), and every
    other rule spreads its starting values (see spread_starting_values).
    """
    kind = resolve_rule_kind(rule_kind)
    params = coerce_parameters(parameters)
    sequences: List[GeneratedSequence] = []

    if kind == RuleKind.POSITIONAL_FORMULA:
        for i in range(count):
            varied = params.model_copy(update={"c": _or_default(params.c, 0) + i * 3})
            sequences.append(generate_sequence(kind, varied, length))
        return sequences

    if kind == RuleKind.CUBIC_POSITIONAL:
        for i in range(count):
            varied = params.model_copy(update={"cubic_d": _or_default(params.cubic_d, 0) + i * 5})
            sequences.append(generate_sequence(kind, varied, length))
        return sequences

    if kind == RuleKind.POWER_BASED:
        # Keyed on the explicit power type: an unset type steps like k^n.
        if params.power_type == PowerType.N_SQUARED_PLUS:
            start, step = _or_default(params.base, 0), 2
        else:
            start, step = _or_default(params.base, 2), 1
        for i in range(count):
            varied = params.model_copy(update={"base": start + i * step})
            sequences.append(generate_sequence(kind, varied, length))
        return sequences

    base_values = params.starting_values or DEFAULT_STARTING_VALUES
    for i in range(count):
        sequences.append(
            generate_sequence(kind, params, length, spread_starting_values(base_values, i))
        )

    logger.debug(f"Generated {len(sequences)} {kind.value} sequences of length {length}")
    return sequences


def verify_sequence(
    sequence: Sequence[Number],
    expected_next: Number,
    rule_kind: Union[RuleKind, str],
    parameters: Union[RuleParameters, Dict[str, Any], None],
) -> bool:
    """Check that a shown sequence and its answer follow the given rule.

    The sequence is regenerated from its own first three terms.
    """
    generated = generate_sequence(rule_kind, parameters, len(sequence), list(sequence[:3]))
    return list(generated.sequence) == list(sequence) and generated.next_value == expected_next
