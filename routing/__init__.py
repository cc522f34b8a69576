"""Query routing for skill discovery."""

from .query_classifier import QueryClassifier

__all__ = ["QueryClassifier"]
