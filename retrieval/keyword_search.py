"""Keyword search over the skill catalog."""

import logging
import re
from typing import Optional

from rapidfuzz import fuzz

from retrieval.base import BaseLexicalSearch
from retrieval.catalog import SkillCatalog
from schemas.discovery import RetrievalCandidate
from schemas.skill import Skill

logger = logging.getLogger(__name__)


class KeywordSearch(BaseLexicalSearch):
    """
    Field-weighted keyword search.

    A skill matches when any query term hits its name, tags or description,
    when the whole query is a substring of name or description, or when the
    name is a close fuzzy match (typos). Matches are ranked by weighted
    term hits, then by id for stable ordering.
    """

    NAME_WEIGHT = 3.0
    TAG_WEIGHT = 2.0
    DESCRIPTION_WEIGHT = 1.0
    SUBSTRING_BONUS = 2.0
    FUZZY_THRESHOLD = 85.0

    STOPWORDS = {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "how",
        "i", "in", "is", "it", "me", "my", "of", "on", "or", "that", "the",
        "to", "what", "with",
    }

    def __init__(self, catalog: SkillCatalog, tenant_id: Optional[str] = None):
        """
        Initialize keyword search.

        Args:
            catalog: Skill catalog to search
            tenant_id: Optional tenant scope for visibility
        """
        self.catalog = catalog
        self.tenant_id = tenant_id

    def tokenize(self, text: str) -> list[str]:
        """Lowercase word tokens without stopwords."""
        tokens = re.findall(r"[a-z0-9][a-z0-9+#.-]*", text.lower())
        return [t for t in tokens if t not in self.STOPWORDS]

    def _score(self, skill: Skill, query_lower: str, terms: list[str]) -> float:
        """Weighted relevance of a skill for the query, 0 when it does not match."""
        name_lower = skill.name.lower()
        description_lower = skill.description.lower()
        name_tokens = set(self.tokenize(skill.name))
        tag_tokens = set()
        for tag in skill.tags:
            tag_tokens.update(self.tokenize(tag))
        description_tokens = set(self.tokenize(skill.description))

        score = 0.0
        for term in terms:
            if term in name_tokens:
                score += self.NAME_WEIGHT
            if term in tag_tokens:
                score += self.TAG_WEIGHT
            if term in description_tokens:
                score += self.DESCRIPTION_WEIGHT

        if query_lower in name_lower or query_lower in description_lower:
            score += self.SUBSTRING_BONUS

        if score == 0.0:
            similarity = fuzz.partial_ratio(query_lower, name_lower)
            if similarity >= self.FUZZY_THRESHOLD:
                score = similarity / 100.0

        return score

    def search(self, query: str, limit: int) -> list[RetrievalCandidate]:
        """
        Search the catalog.

        Args:
            query: Trimmed search query
            limit: Maximum candidates to return

        Returns:
            Candidates with lexical ranks 1..n
        """
        query_lower = query.lower().strip()
        if not query_lower or limit <= 0:
            return []

        terms = self.tokenize(query_lower)
        scored = []
        for skill in self.catalog.for_tenant(self.tenant_id):
            score = self._score(skill, query_lower, terms)
            if score > 0:
                scored.append((score, skill))

        scored.sort(key=lambda pair: (-pair[0], pair[1].id))

        candidates = [
            RetrievalCandidate(skill=skill, lexical_rank=rank)
            for rank, (_, skill) in enumerate(scored[:limit], start=1)
        ]
        logger.debug(f"Keyword search '{query}': {len(scored)} matches, returning {len(candidates)}")
        return candidates
