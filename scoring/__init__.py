"""Pure scoring functions for the browse and trending surfaces."""

from .quality import QualityScorer, legacy_display_tier
from .trending import TrendingScorer

__all__ = ["QualityScorer", "TrendingScorer", "legacy_display_tier"]
