"""Discovery pipeline schemas: routes, candidates, ranked results and log entries."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .skill import Skill


class RouteType(str, Enum):
    """Retrieval strategy for a query."""
    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"
    BROWSE = "browse"


class MatchType(str, Enum):
    """How a result matched the query."""
    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    BOTH = "both"


class ClassificationResult(BaseModel):
    """Route decision from the query classifier."""
    route_type: RouteType
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str = ""


class RetrievalCandidate(BaseModel):
    """A skill returned by lexical and/or vector retrieval, with 1-based ranks."""
    skill: Skill
    lexical_rank: Optional[int] = Field(None, ge=1)
    semantic_rank: Optional[int] = Field(None, ge=1)

    @property
    def skill_id(self) -> str:
        return self.skill.id


class RankedResult(BaseModel):
    """A discovery result as returned to callers."""
    id: str
    name: str
    slug: str
    description: str = ""
    category: str = ""
    total_uses: int = 0
    average_rating: Optional[int] = None
    match_type: MatchType
    match_rationale: str
    fusion_score: float
    is_boosted: bool = False


class UserDiscoveryContext(BaseModel):
    """The actor a discovery request runs on behalf of."""
    user_id: Optional[str] = None
    tenant_id: Optional[str] = None
    preferred_categories: frozenset[str] = Field(default_factory=frozenset)


class SearchLogEntry(BaseModel):
    """Append-only search analytics record."""
    tenant_id: str
    user_id: Optional[str] = None
    query: str
    normalized_query: str
    result_count: int = Field(ge=0)
    search_type: str = "discover"
    route_type: Optional[RouteType] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def normalize(query: str) -> str:
        """Normalized form used for grouping queries in analytics."""
        return query.lower().strip()


class RetrievalOutcome(BaseModel):
    """Candidates produced by the routing state machine and the route that produced them."""
    candidates: list[RetrievalCandidate] = Field(default_factory=list)
    route_type: RouteType
    classified_route: RouteType
    fell_back: bool = False
    classification_reason: str = ""
