"""Puzzle data models for the Patternle puzzle engine."""

from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field

from .rules import Number, RuleKind, RuleParameters


class GeneratedSequence(BaseModel):
    """A generated sequence together with its ground-truth continuation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sequence: List[Number] = Field(..., description="Visible terms, in order")
    next_value: Number = Field(
        ...,
        alias="nextValue",
        description="Term the rule produces at position len(sequence) + 1",
    )


class PuzzleCandidate(BaseModel):
    """A complete puzzle built from one rule program.

    Structural constraints (hint count, sequence length, integer bounds)
    are checked by the validator rather than enforced here, so that a
    malformed candidate still gets the full list of problems.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rule_kind: RuleKind = Field(..., alias="ruleProgramType", description="Rule that generated every sequence")
    rule_parameters: RuleParameters = Field(
        default_factory=RuleParameters,
        alias="ruleProgramParams",
        description="Parameters shared by every sequence",
    )
    tags: List[str] = Field(default_factory=list, description="Category tags for the puzzle")
    sequences: List[List[Number]] = Field(
        default_factory=list,
        description="Primary sequence plus alternates revealed on wrong guesses",
    )
    answers: List[Number] = Field(default_factory=list, description="Correct continuation of each sequence")
    primary_index: int = Field(0, alias="primarySequenceIndex", description="Index of the sequence shown first")
    hints: List[str] = Field(default_factory=list, description="Exactly two progressively stronger hints")
    explanation: str = Field("", description="Post-solve explanation of the rule")

    @property
    def primary_sequence(self) -> List[Number]:
        return self.sequences[self.primary_index]

    @property
    def primary_answer(self) -> Number:
        return self.answers[self.primary_index]

    def alternate_pairs(self):
        """Yield (index, sequence, answer) for every non-primary sequence."""
        for index, (sequence, answer) in enumerate(zip(self.sequences, self.answers)):
            if index != self.primary_index:
                yield index, sequence, answer


class ValidationResult(BaseModel):
    """Outcome of one or more validation checks."""

    errors: List[str] = Field(default_factory=list, description="Problems that disqualify the puzzle")
    warnings: List[str] = Field(default_factory=list, description="Signals that never affect validity")

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results, preserving message order."""
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )


class RuleProposal(BaseModel):
    """A rule choice plus narrative text, as returned by a proposal source."""

    model_config = ConfigDict(populate_by_name=True)

    rule_kind: RuleKind = Field(..., alias="ruleProgramType")
    parameters: RuleParameters = Field(default_factory=RuleParameters, alias="ruleProgramParams")
    tags: List[str] = Field(default_factory=list)
    hints: List[str] = Field(..., min_length=2, max_length=2)
    explanation: str = Field(...)
    suggested_starting_value_sets: Optional[List[List[Number]]] = Field(
        None,
        validation_alias=AliasChoices(
            "suggestedStartingValues",
            "suggestedStartingValueSets",
            "suggested_starting_value_sets",
        ),
        serialization_alias="suggestedStartingValues",
        description="Optional seed sets for rules that need starting values",
    )


class GenerationResult(BaseModel):
    """What the pipeline hands to the caller for persistence."""

    puzzle: PuzzleCandidate = Field(..., description="Accepted or fallback puzzle")
    is_fallback: bool = Field(..., description="Whether the puzzle came from the fallback catalog")
    attempts: int = Field(0, description="Generation attempts consumed")
    validation: Optional[ValidationResult] = Field(None, description="Validation of the accepted candidate")
