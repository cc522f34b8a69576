"""Tests for the Query Classifier."""

import pytest
from routing.query_classifier import QueryClassifier
from schemas.discovery import RouteType


class TestQueryClassifier:
    """Test query route classification."""

    def setup_method(self):
        """Set up test fixtures."""
        self.classifier = QueryClassifier()

    def test_empty_query_is_browse(self):
        """Test blank queries classify as browse."""
        result = self.classifier.classify("   ")

        assert result.route_type == RouteType.BROWSE
        assert result.confidence == 1.0

    def test_single_word_is_keyword(self):
        """Test single-word queries."""
        result = self.classifier.classify("pdf")

        assert result.route_type == RouteType.KEYWORD
        assert result.confidence == 0.95

    def test_two_words_is_keyword(self):
        """Test two-word queries without a question pattern."""
        result = self.classifier.classify("excel formulas")

        assert result.route_type == RouteType.KEYWORD
        assert result.confidence == 0.85

    def test_questions_are_semantic(self):
        """Test question words and question marks."""
        queries = [
            "how to summarize meeting notes",
            "what helps with wiring diagrams",
            "summarize meeting notes?",
            "can it chart",
        ]

        for query in queries:
            result = self.classifier.classify(query)
            assert result.route_type == RouteType.SEMANTIC, query

    def test_single_word_question_is_keyword(self):
        """Test the single-word rule wins over the question rule."""
        assert self.classifier.classify("how").route_type == RouteType.KEYWORD

    def test_natural_language_is_hybrid(self):
        """Test three or more words with connective markers."""
        result = self.classifier.classify("tools for quarterly reports")

        assert result.route_type == RouteType.HYBRID
        assert result.confidence == 0.8

    def test_short_phrase_without_markers_is_keyword(self):
        """Test three-word phrases without markers."""
        result = self.classifier.classify("python data cleaning")

        assert result.route_type == RouteType.KEYWORD
        assert result.confidence == 0.7

    def test_long_query_defaults_to_hybrid(self):
        """Test long queries without markers."""
        result = self.classifier.classify("python pandas data cleaning pipeline")

        assert result.route_type == RouteType.HYBRID
        assert result.confidence == 0.6

    def test_classification_is_deterministic(self):
        """Test repeated classification gives the same result."""
        query = "tools for quarterly reports"

        assert self.classifier.classify(query) == self.classifier.classify(query)
