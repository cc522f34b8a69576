"""Browse surface: filter and sort skills without ranking by relevance."""

from typing import Iterable, Optional

from schemas.skill import Skill, QualityTier
from scoring.quality import QualityScorer


SORT_MODES = ("uses", "quality", "rating", "days_saved")


def _matches_query(skill: Skill, query_lower: str) -> bool:
    """Substring match across name, description and tags."""
    if query_lower in skill.name.lower() or query_lower in skill.description.lower():
        return True
    return query_lower in " ".join(skill.tags).lower()


def browse_skills(
    skills: Iterable[Skill],
    query: Optional[str] = None,
    category: Optional[str] = None,
    categories: Optional[list[str]] = None,
    tags: Optional[list[str]] = None,
    quality_tier: Optional[QualityTier] = None,
    sort_by: Optional[str] = None,
    scorer: Optional[QualityScorer] = None
) -> list[Skill]:
    """
    Filter and sort skills for the browse list.

    Args:
        skills: Published skills
        query: Optional substring filter
        category: Single category filter
        categories: Multiple categories (any of)
        tags: Tags (any of)
        quality_tier: Keep only skills in this composite-score tier
        sort_by: uses, quality, rating or days_saved; input order when None
        scorer: Quality scorer (default instance when None)

    Returns:
        Filtered, sorted skills

    Raises:
        ValueError: If sort_by is not a known mode
    """
    if sort_by is not None and sort_by not in SORT_MODES:
        raise ValueError(f"Unknown sort mode: {sort_by}")

    scorer = scorer or QualityScorer()
    results = list(skills)

    if query and query.strip():
        query_lower = query.strip().lower()
        results = [s for s in results if _matches_query(s, query_lower)]

    if category:
        results = [s for s in results if s.category == category]

    if categories:
        wanted = set(categories)
        results = [s for s in results if s.category in wanted]

    if tags:
        wanted_tags = set(tags)
        results = [s for s in results if wanted_tags.intersection(s.tags)]

    if quality_tier is not None:
        results = scorer.filter_by_tier(results, quality_tier)

    if sort_by == "quality":
        # Unranked (-1) sorts last
        return scorer.sort_by_quality(results)
    if sort_by == "rating":
        # Unrated skills after rated ones
        return sorted(
            results,
            key=lambda s: (s.average_rating is None, -(s.average_rating or 0), s.id)
        )
    if sort_by == "uses":
        return sorted(results, key=lambda s: (-s.total_uses, s.id))
    if sort_by == "days_saved":
        return sorted(results, key=lambda s: (-s.days_saved(), s.id))

    return results
