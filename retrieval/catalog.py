"""Skill catalog loaded from a CSV export of published skills."""

import hashlib
import logging
from typing import Optional

import pandas as pd

from schemas.skill import Skill

logger = logging.getLogger(__name__)


class SkillCatalog:
    """In-memory catalog of published skills with id and slug lookups."""

    REQUIRED_COLUMNS = ["id", "slug", "name"]
    INT_COLUMNS = ["total_uses", "rating_count"]
    DATE_COLUMNS = ["published_at", "first_used_at"]
    TAG_SEPARATOR = "|"

    def __init__(self, skills: Optional[list[Skill]] = None):
        """
        Initialize catalog.

        Args:
            skills: Optional preloaded skills
        """
        self.skills: list[Skill] = []
        self._by_id: dict[str, Skill] = {}
        self._by_slug: dict[str, Skill] = {}
        self.content_hash: str = ""
        if skills:
            self._index(skills)

    @classmethod
    def from_csv(cls, csv_path: str) -> "SkillCatalog":
        """
        Load a catalog from CSV.

        Args:
            csv_path: Path to CSV file

        Returns:
            Loaded SkillCatalog

        Raises:
            ValueError: If required columns are missing
        """
        df = pd.read_csv(csv_path, dtype={"id": str, "slug": str})

        missing = [c for c in cls.REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Catalog CSV missing required columns: {missing}")

        df = cls._clean_dataframe(df)

        skills = []
        for record in df.to_dict(orient="records"):
            try:
                skills.append(cls._record_to_skill(record))
            except ValueError as e:
                logger.warning(f"Skipping invalid catalog row {record.get('id')}: {e}")

        catalog = cls(skills)
        with open(csv_path, "rb") as f:
            catalog.content_hash = hashlib.md5(f.read()).hexdigest()

        logger.info(f"Loaded {len(catalog.skills)} skills from {csv_path}")
        return catalog

    @classmethod
    def _clean_dataframe(cls, df: pd.DataFrame) -> pd.DataFrame:
        """Normalize nulls, numeric columns and timestamps."""
        df = df.copy()

        for col in ["description", "category", "tags"]:
            if col in df.columns:
                df[col] = df[col].fillna("").astype(str).str.strip()

        for col in cls.INT_COLUMNS:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)

        if "average_rating" in df.columns:
            df["average_rating"] = pd.to_numeric(df["average_rating"], errors="coerce")

        if "hours_saved" in df.columns:
            df["hours_saved"] = pd.to_numeric(df["hours_saved"], errors="coerce")

        for col in cls.DATE_COLUMNS:
            if col in df.columns:
                df[col] = pd.to_datetime(df[col], errors="coerce", utc=True)

        # NaN/NaT -> None for pydantic
        return df.astype(object).where(pd.notna(df), None)

    @classmethod
    def _record_to_skill(cls, record: dict) -> Skill:
        """Convert a cleaned CSV record to a Skill."""
        tags_raw = record.get("tags") or ""
        tags = [t.strip() for t in tags_raw.split(cls.TAG_SEPARATOR) if t.strip()]

        rating = record.get("average_rating")
        hours = record.get("hours_saved")
        tenant_id = record.get("tenant_id")
        dates = {}
        for col in cls.DATE_COLUMNS:
            value = record.get(col)
            dates[col] = value.to_pydatetime() if value is not None else None

        return Skill(
            id=str(record["id"]),
            slug=str(record["slug"]),
            name=str(record["name"]),
            description=record.get("description") or "",
            category=record.get("category") or "",
            tags=tags,
            tenant_id=str(tenant_id) if tenant_id is not None else None,
            total_uses=int(record.get("total_uses") or 0),
            average_rating=int(round(rating)) if rating is not None else None,
            rating_count=int(record.get("rating_count") or 0),
            hours_saved=float(hours) if hours is not None else None,
            **dates,
        )

    def _index(self, skills: list[Skill]):
        """Build lookup tables."""
        self.skills = list(skills)
        self._by_id = {s.id: s for s in self.skills}
        self._by_slug = {s.slug: s for s in self.skills}

    def get(self, skill_id: str) -> Optional[Skill]:
        """Get a skill by id."""
        return self._by_id.get(skill_id)

    def get_by_slug(self, slug: str) -> Optional[Skill]:
        """Get a skill by slug."""
        return self._by_slug.get(slug)

    def for_tenant(self, tenant_id: Optional[str]) -> list[Skill]:
        """Skills visible to a tenant (untagged skills are visible everywhere)."""
        if tenant_id is None:
            return list(self.skills)
        return [s for s in self.skills if s.tenant_id in (None, tenant_id)]

    def __len__(self) -> int:
        return len(self.skills)

    def __iter__(self):
        return iter(self.skills)
