"""Proposer Agent: asks an LLM to choose a rule program and write the puzzle text."""

import logging
from typing import Dict, Any

from pydantic import ValidationError

from .base import BaseAgent
from ..exceptions import ProposalError
from ..models.puzzles import RuleProposal
from ..models.rules import RULE_CATEGORY_TAGS

logger = logging.getLogger(__name__)


RULE_CATALOG = """AVAILABLE RULE TYPES:
1. ARITHMETIC_SEQUENCE - constant difference (params: difference)
2. GEOMETRIC_SEQUENCE - constant ratio (params: ratio)
3. LINEAR_DIFF - differences increase linearly (params: initialDiff, diffIncrement)
4. SECOND_ORDER_CONSTANT - second differences are constant (params: secondDifference)
5. ALTERNATING_OPS - alternating operations (params: operations array of {op: add|subtract|multiply, value})
6. ALTERNATING_PARITY - different rules for odd/even positions (params: oddMultiplier, oddAddend, evenMultiplier, evenAddend)
7. POSITIONAL_FORMULA - quadratic: a*n^2 + b*n + c (params: a, b, c)
8. CUBIC_POSITIONAL - cubic formula (params: cubicA, cubicB, cubicC, cubicD)
9. RECURSIVE_LINEAR - next = multiplier * prev + addend (params: multiplier, addend, startingValues)
10. FIBONACCI_LIKE - next = a*prev + b*prev2 (params: prevMultiplier, prev2Multiplier, startingValues)
11. TRIBONACCI_LIKE - next = prev + prev2 + prev3 (params: startingValues)
12. DIGIT_SUM_BASED - involves digit sums (params: digitSumMultiplier, digitSumAddend, startingValues)
13. MULTIPLY_THEN_ADD - next = prev * factor + addend (params: multiplyFactor, addFactor, startingValues)
14. POWER_BASED - power patterns (params: base, exponent, powerType: 'n_to_k' | 'k_to_n' | 'n_squared_plus')"""

OUTPUT_FORMAT = """OUTPUT FORMAT:
Return ONLY valid JSON with this structure:
```json
{
  "ruleProgramType": "RULE_TYPE_HERE",
  "ruleProgramParams": { ... params based on rule type ... },
  "tags": ["TAG1", "TAG2"],
  "hints": ["Hint 1 text", "Hint 2 text"],
  "explanation": "Clear explanation of the rule for post-solve",
  "suggestedStartingValues": [[1, 3, 7], [2, 5, 11]]
}
```
suggestedStartingValues is optional: for recursive rules, suggest 3-5 different starting value sets."""

GENERATION_PROMPT = """Generate a "hard" difficulty number sequence puzzle.

Choose an interesting rule type that:
1. Is not immediately obvious from the first 4-5 terms
2. Requires some analysis to discover
3. Has a clear, logical pattern (not arbitrary)
4. Uses numbers that are reasonably sized (avoid huge numbers)

For recursive rules, suggest 3-5 different sets of starting values that would work well.
Make sure the hints are helpful but don't give away the answer."""


class ProposerAgent(BaseAgent):
    """Proposal source backed by an LLM.

    The agent only picks a rule and writes hints and an explanation; the
    rule engine computes every number.
    """

    def build_system_prompt(self) -> str:
        """Assemble the puzzle-designer system prompt."""
        prompt = self.create_system_prompt(
            "a puzzle designer who selects a rule type and parameters for an interesting, challenging puzzle",
            [
                "All numbers must be integers between -999 and 999",
                "For recursive rules, provide startingValues (2-3 initial values)",
                "For positional rules, the sequence will be generated from position 1",
                'Choose parameters that create "hard" but fair puzzles',
                "Avoid trivially simple patterns (like difference of 1 or 2)",
                "Avoid obscure mathematical knowledge - keep it logical and fair",
            ],
        )

        return f"""{prompt}
{RULE_CATALOG}

HINTS GUIDELINES:
- Hint 1: Describe what operations are involved without giving the exact rule, e.g.
  "This pattern only uses addition, but the amount added changes each time."
- Hint 2: Give a more specific nudge about the structure, e.g.
  "The amount you add increases by the same number each step."
- NEVER reveal the exact formula or answer
- Hints should explicitly mention operations (addition, subtraction, multiplication, squaring, etc.)

{OUTPUT_FORMAT}

TAGS can include: {", ".join(RULE_CATEGORY_TAGS)}"""

    def propose(self) -> RuleProposal:
        """Ask the model for one rule proposal.

        Raises:
            ProposalError: the call failed or the reply did not match the proposal schema.
        """
        try:
            response = self.call_llm(GENERATION_PROMPT, system_prompt=self.build_system_prompt())
        except Exception as e:
            raise ProposalError(f"Proposal request failed: {e}") from e

        try:
            data = self.parse_json_response(response)
            proposal = RuleProposal.model_validate(data)
        except (ValueError, ValidationError) as e:
            raise ProposalError(f"Failed to parse AI response: {e}") from e

        logger.info(f"Proposed {proposal.rule_kind.value} with params {proposal.parameters.model_dump(exclude_none=True)}")
        return proposal

    def __call__(self) -> RuleProposal:
        return self.propose()

    def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Generate a rule proposal, reporting failure instead of raising."""
        try:
            proposal = self.propose()

            return {
                "success": True,
                "proposal": proposal.model_dump(by_alias=True, exclude_none=True),
                "metadata": self.get_agent_metadata(),
            }

        except ProposalError as e:
            logger.error(f"Error in Proposer Agent: {e}")
            return {
                "success": False,
                "error": str(e),
                "metadata": self.get_agent_metadata(),
            }
