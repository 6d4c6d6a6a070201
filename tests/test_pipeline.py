"""Tests for the generation pipeline and fallback catalog."""

import pytest
from unittest.mock import AsyncMock, Mock

from patternle.config import settings
from patternle.exceptions import UnknownRuleError
from patternle.models.puzzles import PuzzleCandidate, RuleProposal
from patternle.models.rules import RuleKind, RuleParameters
from patternle.pipeline import (
    FALLBACK_PUZZLES,
    PuzzlePipeline,
    fallback_index,
    hash_date_key,
    select_fallback,
)
from patternle.rules.evaluators import generate_multiple_sequences
from patternle.rules.validation import validate_puzzle


VALID_PROPOSAL = {
    "ruleProgramType": "SECOND_ORDER_CONSTANT",
    "ruleProgramParams": {"secondDifference": 3, "startingValues": [2, 5]},
    "tags": ["DIFFERENCES", "SECOND_ORDER"],
    "hints": [
        "This pattern only uses addition, but the amount added changes each time.",
        "The amount you add increases by the same number each step.",
    ],
    "explanation": "The differences grow by 3 each time, so the next difference is 15.",
}

# Parses, but expands to terms above 999
OUT_OF_BOUNDS_PROPOSAL = {
    "ruleProgramType": "ARITHMETIC_SEQUENCE",
    "ruleProgramParams": {"difference": 500, "startingValues": [1]},
    "hints": ["Add something.", "Add a lot."],
    "explanation": "Each term adds 500 to the previous one.",
}

# Fails the proposal schema
MALFORMED_PROPOSAL = {
    "ruleProgramType": "ARITHMETIC_SEQUENCE",
    "hints": ["only one"],
}


class TestPuzzlePipeline:
    """Tests for PuzzlePipeline class."""

    @pytest.fixture
    def mock_source(self):
        """Mock proposal source."""
        return Mock(return_value=VALID_PROPOSAL)

    @pytest.fixture
    def pipeline(self, mock_source):
        """Create pipeline with mocked proposal source."""
        return PuzzlePipeline(proposal_source=mock_source, max_attempts=20, retry_delay_seconds=0)

    def test_pipeline_initialization(self, pipeline, mock_source):
        """Test pipeline initialization."""
        assert pipeline.proposal_source is mock_source
        assert pipeline.max_attempts == 20
        assert pipeline.sequence_length == 5
        assert pipeline.num_sequences == 5
        assert pipeline.stats["total_puzzles_generated"] == 0

    def test_get_status(self, pipeline):
        """Test getting pipeline status."""
        status = pipeline.get_status()

        assert status["pipeline_status"] == "operational"
        assert "statistics" in status
        assert status["configuration"]["max_generation_attempts"] == 20
        assert status["configuration"]["num_sequences"] == 5

    @pytest.mark.asyncio
    async def test_valid_proposal_accepted(self, pipeline, mock_source):
        """Test that the first valid proposal is returned."""
        result = await pipeline.generate_puzzle("2025-03-01")

        assert result.is_fallback is False
        assert result.attempts == 1
        assert result.validation.valid is True
        assert result.puzzle.rule_kind == RuleKind.SECOND_ORDER_CONSTANT
        assert result.puzzle.sequences[0] == [2, 5, 11, 20, 32]
        assert result.puzzle.answers[0] == 47
        assert len(result.puzzle.sequences) == 5
        assert mock_source.call_count == 1

    @pytest.mark.asyncio
    async def test_always_invalid_source_falls_back(self):
        """Test termination with a source that never returns usable data."""
        source = Mock(return_value=MALFORMED_PROPOSAL)
        pipeline = PuzzlePipeline(proposal_source=source)

        result = await pipeline.generate_puzzle("2025-03-01")

        assert result.is_fallback is True
        assert result.attempts == 20
        assert source.call_count == 20
        assert result.puzzle == select_fallback("2025-03-01")

    @pytest.mark.asyncio
    async def test_validation_failures_exhaust_budget(self):
        """Test that invalid candidates are retried up to the limit."""
        source = Mock(return_value=OUT_OF_BOUNDS_PROPOSAL)
        pipeline = PuzzlePipeline(proposal_source=source, max_attempts=3)

        result = await pipeline.generate_puzzle("2025-03-02")

        assert result.is_fallback is True
        assert source.call_count == 3
        assert pipeline.stats["failed_attempts"] == 3
        assert pipeline.stats["fallback_puzzles"] == 1

    @pytest.mark.asyncio
    async def test_proposal_failure_is_retried(self):
        """Test that a failing proposal call counts as one attempt."""
        source = Mock(side_effect=[RuntimeError("timeout"), VALID_PROPOSAL])
        pipeline = PuzzlePipeline(proposal_source=source)

        result = await pipeline.generate_puzzle("2025-03-03")

        assert result.is_fallback is False
        assert result.attempts == 2
        assert pipeline.stats["failed_attempts"] == 1
        assert pipeline.stats["generated_puzzles"] == 1

    @pytest.mark.asyncio
    async def test_source_always_raising_falls_back(self):
        """Test that transport errors never escape the pipeline."""
        source = Mock(side_effect=ConnectionError("offline"))
        pipeline = PuzzlePipeline(proposal_source=source, max_attempts=5)

        result = await pipeline.generate_puzzle("2025-03-04")

        assert result.is_fallback is True
        assert source.call_count == 5

    @pytest.mark.asyncio
    async def test_async_source(self):
        """Test a coroutine proposal source."""
        source = AsyncMock(return_value=VALID_PROPOSAL)
        pipeline = PuzzlePipeline(proposal_source=source)

        result = await pipeline.generate_puzzle("2025-03-05")

        assert result.is_fallback is False
        source.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rule_proposal_instance_accepted(self):
        """Test a source returning a parsed RuleProposal."""
        proposal = RuleProposal.model_validate(VALID_PROPOSAL)
        pipeline = PuzzlePipeline(proposal_source=Mock(return_value=proposal))

        result = await pipeline.generate_puzzle("2025-03-06")

        assert result.puzzle.explanation == proposal.explanation

    @pytest.mark.asyncio
    async def test_unsupported_return_type_retried(self):
        """Test that a source returning garbage is a retryable failure."""
        pipeline = PuzzlePipeline(proposal_source=Mock(return_value="not a proposal"), max_attempts=2)

        result = await pipeline.generate_puzzle("2025-03-07")

        assert result.is_fallback is True
        assert pipeline.stats["failed_attempts"] == 2

    @pytest.mark.asyncio
    async def test_unknown_rule_propagates(self):
        """Test that a corrupted rule token is fatal rather than retried."""
        corrupted = RuleProposal.model_construct(
            rule_kind="NOT_A_RULE",
            parameters=RuleParameters(),
            tags=[],
            hints=["a", "b"],
            explanation="corrupted rule token",
            suggested_starting_value_sets=None,
        )
        source = Mock(return_value=corrupted)
        pipeline = PuzzlePipeline(proposal_source=source)

        with pytest.raises(UnknownRuleError):
            await pipeline.generate_puzzle("2025-03-08")

        assert source.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_credentials_fall_back(self, monkeypatch):
        """Test that the default LLM source without an API key still yields a puzzle."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        monkeypatch.setattr(settings, "openrouter_api_key", None)
        monkeypatch.setattr(settings, "anthropic_api_key", None)
        monkeypatch.setattr(settings, "proposal_model", "anthropic/claude-3.5-sonnet")

        pipeline = PuzzlePipeline(max_attempts=2)
        result = await pipeline.generate_puzzle("2025-03-10")

        assert result.is_fallback is True
        assert result.attempts == 2
        assert pipeline.stats["failed_attempts"] == 2
        assert result.puzzle == select_fallback("2025-03-10")

    def test_build_candidate_positional(self, pipeline):
        """Test expansion of a positional rule."""
        proposal = RuleProposal.model_validate({
            "ruleProgramType": "POSITIONAL_FORMULA",
            "ruleProgramParams": {"a": 1, "b": 2, "c": -1},
            "hints": ["a", "b"],
            "explanation": "n squared plus 2n minus 1",
        })

        puzzle = pipeline.build_candidate(proposal)

        assert puzzle.primary_index == 0
        assert puzzle.sequences == FALLBACK_PUZZLES[3].sequences
        assert puzzle.answers == FALLBACK_PUZZLES[3].answers

    def test_build_candidate_uses_suggested_starting_values(self, pipeline):
        """Test that suggested seed sets come first and the rest are spread."""
        proposal = RuleProposal.model_validate({
            "ruleProgramType": "FIBONACCI_LIKE",
            "ruleProgramParams": {"startingValues": [1, 3]},
            "hints": ["a", "b"],
            "explanation": "sum of the previous two",
            "suggestedStartingValues": [[2, 2]],
        })

        puzzle = pipeline.build_candidate(proposal)

        assert [seq[:2] for seq in puzzle.sequences] == [[2, 2], [3, 7], [5, 11], [7, 15], [9, 19]]
        assert puzzle.sequences[0] == [2, 2, 4, 6, 10]
        assert puzzle.answers[0] == 16

    def test_starting_value_sets_truncated(self, pipeline):
        """Test that surplus suggestions are dropped."""
        sets = pipeline.starting_value_sets(
            RuleParameters(),
            [[1, 1], [2, 2], [3, 3], [4, 4], [5, 5], [6, 6]],
        )

        assert sets == [[1, 1], [2, 2], [3, 3], [4, 4], [5, 5]]

    def test_starting_value_sets_default_base(self, pipeline):
        """Test padding when no starting values are given at all."""
        assert pipeline.starting_value_sets(RuleParameters()) == [[1], [3], [5], [7], [9]]

    def test_create_puzzle_from_rule(self, pipeline):
        """Test manual puzzle construction."""
        puzzle = pipeline.create_puzzle_from_rule(
            "LINEAR_DIFF",
            {"initialDiff": 5, "diffIncrement": 4, "startingValues": [3]},
            hints=["a", "b"],
            explanation="Differences increase by 4.",
            tags=["DIFFERENCES"],
        )

        assert puzzle.sequences == FALLBACK_PUZZLES[4].sequences
        assert puzzle.answers == FALLBACK_PUZZLES[4].answers

    def test_create_puzzle_from_unknown_rule(self, pipeline):
        """Test manual construction with an unknown rule."""
        with pytest.raises(UnknownRuleError):
            pipeline.create_puzzle_from_rule("NOPE", None, ["a", "b"], "explanation", [])

    @pytest.mark.asyncio
    async def test_update_stats(self, pipeline):
        """Test statistics after a successful run."""
        await pipeline.generate_puzzle("2025-03-09")

        assert pipeline.stats["total_puzzles_generated"] == 1
        assert pipeline.stats["generated_puzzles"] == 1
        assert pipeline.stats["fallback_puzzles"] == 0
        assert pipeline.stats["last_generation_time"] is not None


class TestFallbacks:
    """Tests for the fallback catalog and date hashing."""

    def test_hash_values(self):
        """Test the rolling hash on short strings."""
        assert hash_date_key("") == 0
        assert hash_date_key("a") == 97
        assert hash_date_key("ab") == 3105

    def test_hash_wraps_to_signed_32_bits(self):
        """Test that long inputs stay within a signed 32-bit range."""
        value = hash_date_key("2024-12-31" * 10)

        assert -2 ** 31 <= value < 2 ** 31

    def test_fallback_index_in_range(self):
        """Test index selection over a year of dates."""
        for day in range(1, 29):
            index = fallback_index(f"2025-02-{day:02d}")
            assert 0 <= index < len(FALLBACK_PUZZLES)

    def test_fallback_stability(self):
        """Test that the same date always gets the same puzzle."""
        first = select_fallback("2025-06-15")
        second = select_fallback("2025-06-15")

        assert first == second
        assert first == FALLBACK_PUZZLES[fallback_index("2025-06-15")]

    def test_fallback_is_isolated_from_catalog(self):
        """Test that changing a selected fallback leaves the catalog intact."""
        date_key = "2025-06-15"
        catalog_entry = FALLBACK_PUZZLES[fallback_index(date_key)]
        original_sequences = [list(seq) for seq in catalog_entry.sequences]

        selected = select_fallback(date_key)
        selected.sequences.append([0, 0, 0, 0, 0])
        selected.sequences[0][0] = 999
        selected.answers.append(0)

        assert selected is not catalog_entry
        assert catalog_entry.sequences == original_sequences
        assert len(catalog_entry.answers) == 5
        assert select_fallback(date_key).sequences == original_sequences

    def test_catalog_size(self):
        """Test the number of hand-authored puzzles."""
        assert len(FALLBACK_PUZZLES) == 5

    @pytest.mark.parametrize("puzzle", FALLBACK_PUZZLES, ids=lambda p: p.rule_kind.value)
    def test_fallback_passes_validation(self, puzzle):
        """Test that every fallback is itself a valid puzzle."""
        result = validate_puzzle(puzzle)

        assert result.valid is True, result.errors

    @pytest.mark.parametrize("puzzle", FALLBACK_PUZZLES, ids=lambda p: p.rule_kind.value)
    def test_fallback_matches_rule(self, puzzle):
        """Test that every fallback can be regenerated from its rule."""
        generated = generate_multiple_sequences(puzzle.rule_kind, puzzle.rule_parameters, 5, 5)

        assert [g.sequence for g in generated] == puzzle.sequences
        assert [g.next_value for g in generated] == puzzle.answers

    def test_fallbacks_are_candidates(self):
        """Test the catalog element type."""
        assert all(isinstance(p, PuzzleCandidate) for p in FALLBACK_PUZZLES)
