"""Pydantic schemas for skill discovery."""

from .skill import Skill, QualityTier, QualityBreakdown, QualityScoreResult, TrendingSkill
from .discovery import (
    RouteType,
    MatchType,
    ClassificationResult,
    RetrievalCandidate,
    RankedResult,
    UserDiscoveryContext,
    SearchLogEntry,
    RetrievalOutcome,
)
from .preferences import (
    SKILL_CATEGORIES,
    SORT_OPTIONS,
    UserPreferences,
    UsageEvent,
    SearchSummaryStats,
    TopQuery,
)

__all__ = [
    "Skill",
    "QualityTier",
    "QualityBreakdown",
    "QualityScoreResult",
    "TrendingSkill",
    "RouteType",
    "MatchType",
    "ClassificationResult",
    "RetrievalCandidate",
    "RankedResult",
    "UserDiscoveryContext",
    "SearchLogEntry",
    "RetrievalOutcome",
    "SKILL_CATEGORIES",
    "SORT_OPTIONS",
    "UserPreferences",
    "UsageEvent",
    "SearchSummaryStats",
    "TopQuery",
]
