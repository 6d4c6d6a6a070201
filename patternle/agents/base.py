"""Base agent class with common LLM functionality."""

import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

import anthropic
import openai

from ..config import settings

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """Base class for LLM-backed agents that feed the puzzle engine."""

    def __init__(
        self,
        model_name: Optional[str] = None,
        openai_client: Optional[openai.OpenAI] = None,
        anthropic_client: Optional[anthropic.Anthropic] = None,
    ):
        """Initialize the base agent.

        `openai_client` talks to any OpenAI-compatible endpoint (OpenRouter by
        default); `anthropic_client` is used for bare `claude-*` model names.
        """
        self.model_name = model_name or settings.proposal_model

        self._openai_client = openai_client

        if anthropic_client is not None:
            self.anthropic_client = anthropic_client
        elif settings.anthropic_api_key:
            self.anthropic_client = anthropic.Anthropic(api_key=settings.anthropic_api_key)
        else:
            self.anthropic_client = None

    @property
    def openai_client(self) -> openai.OpenAI:
        """OpenAI-compatible client, created on first call."""
        if self._openai_client is None:
            self._openai_client = openai.OpenAI(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                default_headers={
                    "HTTP-Referer": settings.app_url,
                    "X-Title": "Patternle",
                },
            )
        return self._openai_client

    @abstractmethod
    def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Process input data and return results."""
        pass

    def call_llm(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Call the appropriate LLM based on model name."""
        model = model or self.model_name
        max_tokens = max_tokens or settings.proposal_max_tokens
        temperature = settings.proposal_temperature if temperature is None else temperature

        try:
            if model.startswith("claude-"):
                return self._call_anthropic(prompt, system_prompt, model, max_tokens, temperature)
            return self._call_openai(prompt, system_prompt, model, max_tokens, temperature)

        except Exception as e:
            logger.error(f"Error calling LLM {model}: {e}")
            raise

    def _call_openai(
        self, prompt: str, system_prompt: Optional[str], model: str, max_tokens: int, temperature: float
    ) -> str:
        """Call an OpenAI-compatible chat completions API."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self.openai_client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not response.choices or response.choices[0].message is None:
            raise ValueError("Invalid response from LLM API")
        return response.choices[0].message.content or ""

    def _call_anthropic(
        self, prompt: str, system_prompt: Optional[str], model: str, max_tokens: int, temperature: float
    ) -> str:
        """Call Anthropic API."""
        if not self.anthropic_client:
            raise ValueError("Anthropic client not initialized")

        kwargs: Dict[str, Any] = {}
        if system_prompt:
            kwargs["system"] = system_prompt

        response = self.anthropic_client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        return response.content[0].text

    def get_agent_metadata(self) -> Dict[str, Any]:
        """Get metadata about this agent."""
        return {
            "agent_name": self.__class__.__name__,
            "model_name": self.model_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def create_system_prompt(self, role_description: str, guidelines: Optional[List[str]] = None) -> str:
        """Create a system prompt for the agent."""
        prompt_parts = [
            f"You are {role_description}.",
            "",
            'Context: You are part of the puzzle engine for "Patternle", a daily number sequence puzzle game.',
            "Players see a few terms of an integer sequence and must guess the next term.",
            "",
        ]

        if guidelines:
            prompt_parts.append("Guidelines:")
            for guideline in guidelines:
                prompt_parts.append(f"- {guideline}")
            prompt_parts.append("")

        return "\n".join(prompt_parts)

    def parse_json_response(self, response: str) -> Dict[str, Any]:
        """Parse JSON response from LLM, handling common formatting issues."""
        response = response.strip()

        # Remove markdown code blocks if present
        fenced = re.search(r"```(?:json)?\s*\n?([\s\S]*?)\n?```", response)
        if fenced:
            response = fenced.group(1)

        # Try to find JSON object
        json_match = re.search(r"\{.*\}", response, re.DOTALL)
        if json_match:
            response = json_match.group(0)

        try:
            return json.loads(response)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: {e}")
            logger.error(f"Response was: {response}")
            raise ValueError(f"Invalid JSON response: {e}")
