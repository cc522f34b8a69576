"""Trending scorer: Hacker News style time decay over recent usage."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Optional

from schemas.skill import Skill, TrendingSkill

logger = logging.getLogger(__name__)


class TrendingScorer:
    """
    Ranks skills by recent usage discounted by age.

    score = (recent_uses - 1) / (age_hours + 2) ^ GRAVITY

    - recent_uses - 1: damps the spike from a skill's very first use
    - age_hours + 2: keeps brand-new skills from dividing by ~0
    - GRAVITY: how fast novelty decays; higher values decay faster
    """

    GRAVITY = 1.8
    AGE_OFFSET_HOURS = 2.0
    MIN_RECENT_USES = 3
    WINDOW = timedelta(days=7)

    def is_eligible(self, recent_uses: int) -> bool:
        """Only skills with enough uses inside the window appear on the surface."""
        return recent_uses >= self.MIN_RECENT_USES

    def score(self, recent_uses: int, age_hours: float) -> float:
        """
        Decayed trending score.

        Args:
            recent_uses: Uses within the trailing window
            age_hours: Hours since first use (or publish time)

        Returns:
            Trending score (not gated; callers check is_eligible)
        """
        age_hours = max(age_hours, 0.0)
        return (recent_uses - 1) / (age_hours + self.AGE_OFFSET_HOURS) ** self.GRAVITY

    def window_start(self, now: datetime) -> datetime:
        """Start of the trailing usage window for `now`."""
        return now - self.WINDOW

    def age_hours(
        self,
        skill: Skill,
        now: datetime,
        first_used_at: Optional[datetime] = None
    ) -> float:
        """Hours since the skill's first use, falling back to its publish time."""
        origin = first_used_at or skill.first_used_at or skill.published_at
        if origin is None:
            return 0.0
        return max((_as_utc(now) - _as_utc(origin)).total_seconds() / 3600.0, 0.0)

    def count_recent_uses(
        self,
        usage_times: Iterable[datetime],
        now: datetime
    ) -> int:
        """Count usage timestamps inside the trailing window ending at `now`."""
        start = _as_utc(self.window_start(now))
        end = _as_utc(now)
        return sum(1 for t in usage_times if start <= _as_utc(t) <= end)

    def get_trending(
        self,
        skills: Iterable[Skill],
        recent_counts: Mapping[str, int],
        now: datetime,
        first_used: Optional[Mapping[str, datetime]] = None,
        limit: int = 10
    ) -> list[TrendingSkill]:
        """
        Build the trending surface.

        Args:
            skills: Published skills
            recent_counts: Uses per skill id within the trailing window
            now: Request time
            first_used: Optional first-use timestamp per skill id
            limit: Maximum number of skills to return

        Returns:
            Eligible skills ordered by score desc, total uses desc, id asc
        """
        first_used = first_used or {}
        trending = []

        for skill in skills:
            recent = recent_counts.get(skill.id, 0)
            if not self.is_eligible(recent):
                continue

            age = self.age_hours(skill, now, first_used.get(skill.id))
            trending.append(TrendingSkill(
                skill=skill,
                recent_uses=recent,
                age_hours=age,
                trending_score=self.score(recent, age),
            ))

        trending.sort(key=lambda t: (-t.trending_score, -t.skill.total_uses, t.skill.id))
        logger.debug(f"Trending: {len(trending)} eligible skills, returning {min(limit, len(trending))}")
        return trending[:limit]


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so mixed inputs compare cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
