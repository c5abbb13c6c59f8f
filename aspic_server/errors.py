"""
errors.py — Error taxonomy for the ASPIC+ engine

MalformedKnowledgeBase is raised only while parsing and validating a
knowledge base. Everything downstream assumes a validated theory, so the
remaining errors signal budget overflows or broken framework encodings.
"""

from __future__ import annotations


class AspicError(Exception):
    """Base class for all engine errors."""


class MalformedKnowledgeBase(AspicError):
    """
    Grammar or structural violation in the input text.

    `errors` maps each offending input field (axioms, premises,
    inference_rules, contraries, rule_preferences, knowledge_preferences)
    to a human-readable message.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(f"Malformed knowledge base ({detail})")


class ConstructionOverflow(AspicError):
    """Argument closure exceeded its construction budget."""

    def __init__(self, message: str, built: int = 0):
        self.built = built
        super().__init__(message)


class SearchOverflow(AspicError):
    """Extension search visited more states than allowed."""

    def __init__(self, message: str, visited: int = 0):
        self.visited = visited
        super().__init__(message)


class UnsatisfiableFramework(AspicError):
    """Framework encoding is inconsistent. Indicates a programming error."""
