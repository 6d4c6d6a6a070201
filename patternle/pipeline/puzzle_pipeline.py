"""Generation pipeline: propose, expand, validate, retry, fall back."""

import asyncio
import inspect
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

import structlog
from pydantic import ValidationError

from ..config import settings
from ..exceptions import ProposalError, UnknownRuleError
from ..models.puzzles import GenerationResult, PuzzleCandidate, RuleProposal
from ..models.rules import Number, RuleKind, RuleParameters
from ..rules.evaluators import (
    coerce_parameters,
    generate_multiple_sequences,
    generate_sequence,
    needs_starting_values,
    resolve_rule_kind,
    spread_starting_values,
)
from ..rules.validation import validate_puzzle
from .fallbacks import fallback_index, select_fallback

logger = structlog.get_logger(__name__)

ProposalLike = Union[RuleProposal, Dict[str, Any]]
ProposalSource = Callable[[], Union[ProposalLike, Awaitable[ProposalLike]]]


class PuzzlePipeline:
    """Drives propose -> expand -> validate attempts for one target date.

    The proposal source is any zero-argument callable returning a
    RuleProposal (or a dict in its wire format), either directly or as an
    awaitable. Synchronous sources run in a worker thread so concurrent
    generation for different dates does not block the event loop.
    """

    def __init__(
        self,
        proposal_source: Optional[ProposalSource] = None,
        max_attempts: Optional[int] = None,
        sequence_length: Optional[int] = None,
        num_sequences: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
    ):
        """Initialize the puzzle pipeline."""
        if proposal_source is None:
            from ..agents import ProposerAgent
            proposal_source = ProposerAgent()

        self.proposal_source = proposal_source
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_generation_attempts
        self.sequence_length = sequence_length or settings.sequence_length
        self.num_sequences = num_sequences or settings.num_sequences
        self.retry_delay_seconds = (
            retry_delay_seconds if retry_delay_seconds is not None else settings.retry_delay_seconds
        )

        # Pipeline statistics
        self.stats = {
            "total_puzzles_generated": 0,
            "generated_puzzles": 0,
            "fallback_puzzles": 0,
            "failed_attempts": 0,
            "last_generation_time": None,
        }

    async def generate_puzzle(self, date_key: str) -> GenerationResult:
        """Produce a puzzle for a calendar date.

        Never fails for ordinary reasons: after `max_attempts` rejected or
        failed attempts it returns the date's fallback puzzle. Only
        UnknownRuleError propagates.
        """
        start_time = time.time()
        log = logger.bind(date_key=date_key)

        for attempt in range(self.max_attempts):
            log.info("Generation attempt", attempt=attempt + 1, max_attempts=self.max_attempts)

            try:
                proposal = await self._request_proposal()
                puzzle = self.build_candidate(proposal)
                validation = validate_puzzle(puzzle)

            except UnknownRuleError:
                raise
            except Exception as e:
                self.stats["failed_attempts"] += 1
                log.warning("Puzzle generation error", attempt=attempt + 1, error=str(e))
                await self._pause_before_retry(attempt)
                continue

            if not validation.valid:
                self.stats["failed_attempts"] += 1
                log.warning(
                    "Puzzle validation failed",
                    attempt=attempt + 1,
                    rule=puzzle.rule_kind.value,
                    errors=validation.errors,
                )
                await self._pause_before_retry(attempt)
                continue

            if validation.warnings:
                log.info("Puzzle warnings", warnings=validation.warnings)

            self._update_stats(is_fallback=False)
            log.info(
                "Puzzle generated",
                rule=puzzle.rule_kind.value,
                attempts=attempt + 1,
                seconds=round(time.time() - start_time, 2),
            )
            return GenerationResult(
                puzzle=puzzle,
                is_fallback=False,
                attempts=attempt + 1,
                validation=validation,
            )

        log.warning(
            "Using fallback puzzle",
            failed_attempts=self.max_attempts,
            fallback_index=fallback_index(date_key),
        )
        self._update_stats(is_fallback=True)
        return GenerationResult(
            puzzle=select_fallback(date_key),
            is_fallback=True,
            attempts=self.max_attempts,
        )

    async def _request_proposal(self) -> RuleProposal:
        """Call the proposal source and parse what it returns."""
        source = self.proposal_source
        if inspect.iscoroutinefunction(source) or inspect.iscoroutinefunction(getattr(source, "__call__", None)):
            raw = await source()
        else:
            raw = await asyncio.to_thread(source)
            if inspect.isawaitable(raw):
                raw = await raw

        if isinstance(raw, RuleProposal):
            return raw
        if isinstance(raw, dict):
            try:
                return RuleProposal.model_validate(raw)
            except ValidationError as e:
                raise ProposalError(f"Proposal did not match schema: {e}") from e
        raise ProposalError(f"Unsupported proposal type: {type(raw).__name__}")

    async def _pause_before_retry(self, attempt: int) -> None:
        if self.retry_delay_seconds > 0 and attempt < self.max_attempts - 1:
            await asyncio.sleep(self.retry_delay_seconds)

    def starting_value_sets(
        self, parameters: RuleParameters, suggested: Optional[Sequence[Sequence[Number]]] = None
    ) -> List[List[Number]]:
        """Seed sets for each output sequence, padded with seed-spread variants.

        Suggested sets are used first; the remainder are derived from the
        base starting values so that set i is spread_starting_values(base, i).
        """
        value_sets = [list(values) for values in (suggested or []) if values]
        base_values = parameters.starting_values or [1]

        while len(value_sets) < self.num_sequences:
            value_sets.append(spread_starting_values(base_values, len(value_sets)))

        return value_sets[: self.num_sequences]

    def build_candidate(self, proposal: RuleProposal) -> PuzzleCandidate:
        """Expand a proposal into concrete sequences and answers."""
        kind = resolve_rule_kind(proposal.rule_kind)
        params = proposal.parameters

        if needs_starting_values(kind):
            generated = [
                generate_sequence(kind, params, self.sequence_length, seeds)
                for seeds in self.starting_value_sets(params, proposal.suggested_starting_value_sets)
            ]
        else:
            generated = generate_multiple_sequences(kind, params, self.num_sequences, self.sequence_length)

        return PuzzleCandidate(
            rule_kind=kind,
            rule_parameters=params,
            tags=proposal.tags,
            sequences=[g.sequence for g in generated],
            answers=[g.next_value for g in generated],
            primary_index=0,
            hints=proposal.hints,
            explanation=proposal.explanation,
        )

    def create_puzzle_from_rule(
        self,
        rule_kind: Union[RuleKind, str],
        parameters: Union[RuleParameters, Dict[str, Any], None],
        hints: List[str],
        explanation: str,
        tags: List[str],
    ) -> PuzzleCandidate:
        """Build a puzzle directly from a rule, without a proposal source (admin/manual use)."""
        kind = resolve_rule_kind(rule_kind)
        params = coerce_parameters(parameters)
        generated = generate_multiple_sequences(kind, params, self.num_sequences, self.sequence_length)

        return PuzzleCandidate(
            rule_kind=kind,
            rule_parameters=params,
            tags=tags,
            sequences=[g.sequence for g in generated],
            answers=[g.next_value for g in generated],
            primary_index=0,
            hints=hints,
            explanation=explanation,
        )

    def _update_stats(self, is_fallback: bool) -> None:
        """Update pipeline statistics."""
        self.stats["total_puzzles_generated"] += 1
        self.stats["last_generation_time"] = datetime.now(timezone.utc).isoformat()

        if is_fallback:
            self.stats["fallback_puzzles"] += 1
        else:
            self.stats["generated_puzzles"] += 1

    def get_status(self) -> Dict[str, Any]:
        """Get current pipeline status and statistics."""
        return {
            "pipeline_status": "operational",
            "proposal_source": getattr(self.proposal_source, "model_name", type(self.proposal_source).__name__),
            "statistics": self.stats,
            "configuration": {
                "max_generation_attempts": self.max_attempts,
                "sequence_length": self.sequence_length,
                "num_sequences": self.num_sequences,
                "retry_delay_seconds": self.retry_delay_seconds,
            },
        }
