"""User preference and analytics schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


SKILL_CATEGORIES = ("productivity", "wiring", "doc-production", "data-viz", "code")
SORT_OPTIONS = ("uses", "quality", "rating", "days_saved")


class UserPreferences(BaseModel):
    """Per-user preferences, merged over code defaults."""
    user_id: str
    tenant_id: str
    preferred_categories: list[str] = Field(default_factory=list)
    default_sort: str = "days_saved"
    updated_at: Optional[datetime] = None

    @field_validator("preferred_categories")
    @classmethod
    def _check_categories(cls, value: list[str]) -> list[str]:
        unknown = [c for c in value if c not in SKILL_CATEGORIES]
        if unknown:
            raise ValueError(f"Unknown categories: {unknown}")
        return value

    @field_validator("default_sort")
    @classmethod
    def _check_sort(cls, value: str) -> str:
        if value not in SORT_OPTIONS:
            raise ValueError(f"Unknown sort option: {value}")
        return value


class UsageEvent(BaseModel):
    """A single recorded use of a skill."""
    skill_id: str
    user_id: Optional[str] = None
    created_at: datetime


class SearchSummaryStats(BaseModel):
    """Aggregate search statistics for a tenant over a time range."""
    total_searches: int = 0
    unique_queries: int = 0
    zero_result_searches: int = 0
    unique_searchers: int = 0


class TopQuery(BaseModel):
    """A normalized query with its frequency."""
    query: str
    search_count: int
    avg_results: int = 0
    zero_result_count: int = 0
    last_searched: Optional[datetime] = None
