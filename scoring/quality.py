"""Quality scoring and tiering for skills."""

import logging
from typing import Iterable, Optional

from schemas.skill import Skill, QualityTier, QualityBreakdown, QualityScoreResult

logger = logging.getLogger(__name__)


class QualityScorer:
    """
    Composite quality score for the browse surface and quality badges.

    score = usage (50) + rating (35) + metadata (15), in [0, 100].
    Skills with fewer than MIN_RATINGS ratings are unranked and score
    UNRANKED (-1) regardless of their other fields.
    """

    MIN_RATINGS = 3
    USAGE_CAP = 100
    MAX_RATING = 500  # 5.0 stars stored as 500

    USAGE_WEIGHT = 50.0
    RATING_WEIGHT = 35.0
    METADATA_WEIGHT = 15.0

    UNRANKED = -1.0

    # Inclusive score ranges, shared with the browse tier filter
    TIER_THRESHOLDS = {
        QualityTier.GOLD: (75.0, 100.0),
        QualityTier.SILVER: (50.0, 74.99),
        QualityTier.BRONZE: (25.0, 49.99),
    }

    def breakdown(self, skill: Skill) -> QualityBreakdown:
        """
        Compute the individual score components.

        Args:
            skill: Skill to score

        Returns:
            QualityBreakdown with usage, rating and metadata contributions
        """
        usage_score = min(skill.total_uses / self.USAGE_CAP, 1.0) * self.USAGE_WEIGHT

        rating_score = 0.0
        if skill.average_rating is not None:
            rating_score = (skill.average_rating / self.MAX_RATING) * self.RATING_WEIGHT

        # Requires BOTH description and category
        has_metadata = bool(skill.description) and bool(skill.category)
        metadata_score = self.METADATA_WEIGHT if has_metadata else 0.0

        return QualityBreakdown(
            usage_score=usage_score,
            rating_score=rating_score,
            metadata_score=metadata_score,
        )

    def is_ranked(self, skill: Skill) -> bool:
        """Whether the skill has enough ratings to be quality-ranked."""
        return skill.rating_count >= self.MIN_RATINGS

    def score(self, skill: Skill) -> float:
        """
        Quality score for a skill.

        Args:
            skill: Skill to score

        Returns:
            Score in [0, 100], or -1 when the skill is unranked
        """
        if not self.is_ranked(skill):
            return self.UNRANKED

        parts = self.breakdown(skill)
        return parts.usage_score + parts.rating_score + parts.metadata_score

    def tier(self, score: float) -> QualityTier:
        """
        Map a score onto a quality tier.

        The unranked sentinel and anything below bronze map to NONE.
        Compared on lower bounds only so float noise near 49.99/74.99
        cannot drop a score into the gap between published ranges.
        """
        for tier, (low, _) in self.TIER_THRESHOLDS.items():
            if score >= low:
                return tier
        return QualityTier.NONE

    def evaluate(self, skill: Skill) -> QualityScoreResult:
        """Score, tier and breakdown in one call (used for the quality breakdown view)."""
        score = self.score(skill)
        return QualityScoreResult(
            score=score,
            tier=self.tier(score),
            breakdown=self.breakdown(skill),
            ranked=self.is_ranked(skill),
        )

    def filter_by_tier(self, skills: Iterable[Skill], tier: QualityTier) -> list[Skill]:
        """Keep only skills whose composite score falls within the tier."""
        return [s for s in skills if self.tier(self.score(s)) == tier]

    def sort_by_quality(self, skills: Iterable[Skill]) -> list[Skill]:
        """Sort by score descending; unranked skills last, ties by id."""
        scored = [(self.score(s), s) for s in skills]
        scored.sort(key=lambda pair: (-pair[0], pair[1].id))
        return [s for _, s in scored]


def legacy_display_tier(
    average_rating: Optional[int],
    total_uses: int
) -> Optional[QualityTier]:
    """
    Badge tier from raw rating and usage thresholds.

    Display-only: this older rule does not agree with QualityScorer and is
    not used for ranking or tier filtering.

    Gold: 4.0+ stars (400+) with 10+ uses
    Silver: 3.0+ stars (300+) with 5+ uses
    Bronze: 2.0+ stars (200+)
    None: insufficient data
    """
    if average_rating is None:
        return None
    if average_rating >= 400 and total_uses >= 10:
        return QualityTier.GOLD
    if average_rating >= 300 and total_uses >= 5:
        return QualityTier.SILVER
    if average_rating >= 200:
        return QualityTier.BRONZE
    return None
