"""Skill and scoring schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Skill(BaseModel):
    """A published skill with its usage and rating statistics."""
    id: str
    slug: str
    name: str
    description: str = ""
    category: str = ""
    tags: list[str] = Field(default_factory=list)
    tenant_id: Optional[str] = None
    total_uses: int = Field(0, ge=0)
    average_rating: Optional[int] = Field(
        None, ge=0, le=500, description="Rating x 100, e.g. 425 = 4.25 stars"
    )
    rating_count: int = Field(0, ge=0)
    hours_saved: Optional[float] = Field(None, description="Hours saved per use")
    published_at: Optional[datetime] = None
    first_used_at: Optional[datetime] = None

    def days_saved(self) -> float:
        """Total working days saved across all uses (8h days, 1h per use when unknown)."""
        hours = self.hours_saved if self.hours_saved is not None else 1.0
        return (self.total_uses * hours) / 8.0


class QualityTier(str, Enum):
    """Quality badge tier."""
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"
    NONE = "none"


class QualityBreakdown(BaseModel):
    """Per-component contribution to a quality score."""
    usage_score: float = 0.0
    rating_score: float = 0.0
    metadata_score: float = 0.0


class QualityScoreResult(BaseModel):
    """Quality score, tier and breakdown for one skill."""
    score: float = Field(description="0-100, or -1 when unranked")
    tier: QualityTier
    breakdown: QualityBreakdown
    ranked: bool = True


class TrendingSkill(BaseModel):
    """A skill on the trending surface with its decayed score."""
    skill: Skill
    recent_uses: int
    age_hours: float
    trending_score: float
