"""Query classifier for adaptive search routing."""

from schemas.discovery import ClassificationResult, RouteType


class QueryClassifier:
    """
    Classifies search queries into route types from lexical heuristics.

    - keyword: short, specific term lookups
    - semantic: question-patterned queries that need meaning
    - hybrid: natural language queries that benefit from both
    - browse: empty queries

    Rules are evaluated in order and are fully deterministic.
    """

    def __init__(self):
        """Initialize classifier with word lists."""
        self.question_words = {
            "how", "what", "why", "when", "where", "which",
            "can", "does", "is", "are", "should",
        }
        self.nl_markers = {
            "for", "to", "with", "in", "a", "the", "that", "and", "or", "of",
        }

    def classify(self, query: str) -> ClassificationResult:
        """
        Classify a query.

        Args:
            query: Raw search query

        Returns:
            ClassificationResult with route type, confidence and reason
        """
        trimmed = query.strip()

        if not trimmed:
            return ClassificationResult(
                route_type=RouteType.BROWSE,
                confidence=1.0,
                reason="Empty query indicates browse intent",
            )

        words = trimmed.lower().split()
        word_count = len(words)
        has_question_word = words[0] in self.question_words
        ends_with_question = trimmed.endswith("?")
        has_nl_markers = any(w in self.nl_markers for w in words)

        if word_count == 1:
            return ClassificationResult(
                route_type=RouteType.KEYWORD,
                confidence=0.95,
                reason="Single word query best served by keyword search",
            )

        if word_count == 2 and not has_question_word and not ends_with_question:
            return ClassificationResult(
                route_type=RouteType.KEYWORD,
                confidence=0.85,
                reason="Two-word query without question pattern",
            )

        if has_question_word or ends_with_question:
            return ClassificationResult(
                route_type=RouteType.SEMANTIC,
                confidence=0.8,
                reason="Question pattern detected, semantic understanding needed",
            )

        if word_count >= 3 and has_nl_markers:
            return ClassificationResult(
                route_type=RouteType.HYBRID,
                confidence=0.8,
                reason="Natural language query with connective markers",
            )

        if word_count <= 3:
            return ClassificationResult(
                route_type=RouteType.KEYWORD,
                confidence=0.7,
                reason="Short query without natural language markers",
            )

        return ClassificationResult(
            route_type=RouteType.HYBRID,
            confidence=0.6,
            reason="Multi-word query defaults to hybrid search",
        )
