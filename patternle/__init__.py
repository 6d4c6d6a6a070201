"""Patternle: rule-based number sequence puzzle engine."""

__version__ = "0.1.0"
