"""Exceptions raised by the Patternle puzzle engine."""


class PatternleError(Exception):
    """Base class for engine errors."""


class UnknownRuleError(PatternleError, ValueError):
    """A rule kind token that the evaluator does not know how to run.

    This is a programming or data error and is never retried.
    """

    def __init__(self, rule_kind):
        self.rule_kind = rule_kind
        super().__init__(f"Unknown rule type: {rule_kind}")


class ProposalError(PatternleError):
    """The proposal source failed or returned data that could not be parsed."""
