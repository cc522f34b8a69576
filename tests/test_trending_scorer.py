"""Tests for the Trending Scorer."""

import pytest
from datetime import datetime, timedelta, timezone
from schemas.skill import Skill
from scoring.trending import TrendingScorer


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_skill(skill_id: str, **overrides) -> Skill:
    return Skill(id=skill_id, slug=skill_id, name=skill_id, **overrides)


class TestTrendingScorer:
    """Test trending score and surface."""

    def setup_method(self):
        """Set up test fixtures."""
        self.scorer = TrendingScorer()

    def test_score_new_skill(self):
        """Test three uses at age zero."""
        assert self.scorer.score(3, 0) == pytest.approx(2 / 2 ** 1.8)
        assert self.scorer.score(3, 0) == pytest.approx(0.5743, abs=1e-4)

    def test_eligibility(self):
        """Test skills need three recent uses."""
        assert self.scorer.is_eligible(3) is True
        assert self.scorer.is_eligible(2) is False

    def test_negative_age_clamped(self):
        """Test ages below zero score like age zero."""
        assert self.scorer.score(5, -10) == self.scorer.score(5, 0)

    def test_decay_with_age(self):
        """Test older skills score lower for the same usage."""
        assert self.scorer.score(10, 48) < self.scorer.score(10, 2)

    def test_age_origin_prefers_first_use(self):
        """Test age is measured from first use, then publish time."""
        skill = make_skill("a", published_at=NOW - timedelta(hours=100))

        assert self.scorer.age_hours(skill, NOW) == pytest.approx(100.0)
        assert self.scorer.age_hours(skill, NOW, NOW - timedelta(hours=10)) == pytest.approx(10.0)
        assert self.scorer.age_hours(make_skill("b"), NOW) == 0.0

    def test_future_origin_clamps_to_zero(self):
        """Test a first use after `now` gives age zero."""
        skill = make_skill("a", first_used_at=NOW + timedelta(hours=5))

        assert self.scorer.age_hours(skill, NOW) == 0.0

    def test_count_recent_uses(self):
        """Test only uses inside the trailing seven days count."""
        times = [
            NOW - timedelta(days=1),
            NOW - timedelta(days=6, hours=23),
            NOW - timedelta(days=8),
        ]

        assert self.scorer.count_recent_uses(times, NOW) == 2

    def test_get_trending_excludes_and_orders(self):
        """Test ineligible skills are dropped and order is deterministic."""
        skills = [
            make_skill("b", total_uses=50, published_at=NOW),
            make_skill("a", total_uses=50, published_at=NOW),
            make_skill("c", total_uses=90, published_at=NOW),
            make_skill("d", total_uses=10, published_at=NOW),
        ]
        counts = {"a": 5, "b": 5, "c": 5, "d": 2}

        trending = self.scorer.get_trending(skills, counts, NOW)

        assert [t.skill.id for t in trending] == ["c", "a", "b"]
        assert trending[0].recent_uses == 5
        assert trending[0].trending_score == pytest.approx(4 / 2 ** 1.8)

    def test_get_trending_uses_first_use_map(self):
        """Test first-use timestamps override publish time."""
        skills = [make_skill("a", published_at=NOW - timedelta(days=30))]

        trending = self.scorer.get_trending(
            skills, {"a": 3}, NOW, first_used={"a": NOW - timedelta(hours=1)}
        )

        assert trending[0].age_hours == pytest.approx(1.0)

    def test_get_trending_limit(self):
        """Test the surface is capped at `limit`."""
        skills = [make_skill(str(i)) for i in range(15)]
        counts = {str(i): 3 + i for i in range(15)}

        assert len(self.scorer.get_trending(skills, counts, NOW)) == 10
        assert len(self.scorer.get_trending(skills, counts, NOW, limit=3)) == 3
