"""LLM agents that feed rule proposals to the puzzle engine."""

from .base import BaseAgent
from .proposer import ProposerAgent

__all__ = [
    "BaseAgent",
    "ProposerAgent",
]
