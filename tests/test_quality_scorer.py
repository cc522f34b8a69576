"""Tests for the Quality Scorer."""

import pytest
from schemas.skill import Skill, QualityTier
from scoring.quality import QualityScorer, legacy_display_tier


def make_skill(**overrides) -> Skill:
    fields = {
        "id": "s1",
        "slug": "s1",
        "name": "Skill",
        "description": "x",
        "category": "y",
        "total_uses": 0,
        "average_rating": None,
        "rating_count": 3,
    }
    fields.update(overrides)
    return Skill(**fields)


class TestQualityScorer:
    """Test composite quality scoring and tiers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.scorer = QualityScorer()

    def test_unranked_below_min_ratings(self):
        """Test skills with fewer than three ratings are unranked."""
        skill = make_skill(total_uses=500, average_rating=500, rating_count=2)

        assert self.scorer.score(skill) == -1
        assert self.scorer.tier(self.scorer.score(skill)) == QualityTier.NONE
        assert self.scorer.is_ranked(skill) is False

    def test_perfect_score(self):
        """Test usage cap, max rating and full metadata give 100."""
        skill = make_skill(total_uses=200, average_rating=500, rating_count=5)

        assert self.scorer.score(skill) == pytest.approx(100.0)
        assert self.scorer.tier(100.0) == QualityTier.GOLD

    def test_no_usage_no_rating_missing_description(self):
        """Test metadata requires both description and category."""
        skill = make_skill(description="", category="y")

        assert self.scorer.score(skill) == 0
        assert self.scorer.tier(0) == QualityTier.NONE

    def test_components(self):
        """Test each component contributes its weighted share."""
        skill = make_skill(total_uses=50, average_rating=400, rating_count=4)

        parts = self.scorer.breakdown(skill)

        assert parts.usage_score == pytest.approx(25.0)
        assert parts.rating_score == pytest.approx(28.0)
        assert parts.metadata_score == pytest.approx(15.0)
        assert self.scorer.score(skill) == pytest.approx(68.0)

    def test_tier_boundaries(self):
        """Test tier lower bounds are inclusive."""
        assert self.scorer.tier(75.0) == QualityTier.GOLD
        assert self.scorer.tier(74.99) == QualityTier.SILVER
        assert self.scorer.tier(50.0) == QualityTier.SILVER
        assert self.scorer.tier(49.995) == QualityTier.BRONZE
        assert self.scorer.tier(25.0) == QualityTier.BRONZE
        assert self.scorer.tier(24.99) == QualityTier.NONE
        assert self.scorer.tier(-1) == QualityTier.NONE

    def test_evaluate(self):
        """Test evaluate bundles score, tier and breakdown."""
        result = self.scorer.evaluate(make_skill(total_uses=100, average_rating=500))

        assert result.score == pytest.approx(100.0)
        assert result.tier == QualityTier.GOLD
        assert result.ranked is True
        assert result.breakdown.usage_score == pytest.approx(50.0)

    def test_filter_by_tier(self):
        """Test tier filtering uses the composite score."""
        gold = make_skill(id="g", total_uses=100, average_rating=500)
        silver = make_skill(id="s", total_uses=50, average_rating=400)
        unranked = make_skill(id="u", total_uses=100, average_rating=500, rating_count=0)

        assert [s.id for s in self.scorer.filter_by_tier([gold, silver, unranked], QualityTier.GOLD)] == ["g"]
        assert [s.id for s in self.scorer.filter_by_tier([gold, silver, unranked], QualityTier.SILVER)] == ["s"]

    def test_sort_by_quality_unranked_last(self):
        """Test unranked skills sort after ranked ones, ties by id."""
        a = make_skill(id="a", total_uses=10)
        b = make_skill(id="b", total_uses=10)
        top = make_skill(id="c", total_uses=100, average_rating=500)
        unranked = make_skill(id="0", rating_count=1)

        assert [s.id for s in self.scorer.sort_by_quality([unranked, b, a, top])] == ["c", "a", "b", "0"]


class TestLegacyDisplayTier:
    """Test the display-only badge thresholds."""

    def test_thresholds(self):
        """Test raw rating and usage thresholds."""
        assert legacy_display_tier(400, 10) == QualityTier.GOLD
        assert legacy_display_tier(400, 9) == QualityTier.SILVER
        assert legacy_display_tier(300, 5) == QualityTier.SILVER
        assert legacy_display_tier(300, 4) == QualityTier.BRONZE
        assert legacy_display_tier(200, 0) == QualityTier.BRONZE
        assert legacy_display_tier(199, 100) is None
        assert legacy_display_tier(None, 100) is None

    def test_disagrees_with_composite(self):
        """Test the legacy badge is independent of the composite tier."""
        skill = make_skill(total_uses=10, average_rating=400, rating_count=1)

        assert legacy_display_tier(skill.average_rating, skill.total_uses) == QualityTier.GOLD
        assert QualityScorer().tier(QualityScorer().score(skill)) == QualityTier.NONE
