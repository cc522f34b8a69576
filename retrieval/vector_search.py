"""Hybrid vector search: semantic neighbours joined with keyword matches."""

import logging
from typing import Optional

from retrieval.base import BaseVectorSearch, BaseLexicalSearch
from retrieval.catalog import SkillCatalog
from retrieval.embeddings import SkillEmbeddingIndex
from schemas.discovery import RetrievalCandidate

logger = logging.getLogger(__name__)


class HybridVectorSearch(BaseVectorSearch):
    """
    Combines a semantic neighbour list with a keyword list.

    Each list is capped at PER_LIST_LIMIT. The two are full-outer-joined on
    skill id so a candidate carries both ranks when both methods found it.
    Output is ordered by reciprocal-rank fusion before the limit is applied.
    """

    PER_LIST_LIMIT = 20

    def __init__(
        self,
        catalog: SkillCatalog,
        index: SkillEmbeddingIndex,
        keyword_search: BaseLexicalSearch,
        tenant_id: Optional[str] = None,
        rrf_k: int = 60
    ):
        """
        Initialize hybrid search.

        Args:
            catalog: Skill catalog for id lookups
            index: Skill embedding index
            keyword_search: Lexical search used for the keyword list
            tenant_id: Tenant whose skills semantic hits may include
                (None sees every skill)
            rrf_k: Reciprocal-rank-fusion constant
        """
        self.catalog = catalog
        self.index = index
        self.keyword_search = keyword_search
        self.tenant_id = tenant_id
        self.rrf_k = rrf_k

    def search(
        self,
        query: str,
        embedding: list[float],
        limit: int
    ) -> list[RetrievalCandidate]:
        """
        Hybrid search.

        Args:
            query: Trimmed search query
            embedding: Query embedding
            limit: Maximum candidates to return

        Returns:
            Candidates ordered by fused rank
        """
        if limit <= 0:
            return []

        semantic_ranks: dict[str, int] = {}
        for rank, (skill_id, _) in enumerate(
            self.index.similar(embedding, top_k=self.PER_LIST_LIMIT), start=1
        ):
            semantic_ranks[skill_id] = rank

        lexical = self.keyword_search.search(query, self.PER_LIST_LIMIT)
        lexical_ranks = {c.skill_id: c.lexical_rank for c in lexical}
        skills = {c.skill_id: c.skill for c in lexical}

        for skill_id in semantic_ranks:
            if skill_id not in skills:
                skill = self.catalog.get(skill_id)
                if skill is None:
                    logger.warning(f"Embedding index references unknown skill {skill_id}")
                    continue
                if not self._visible(skill):
                    continue
                skills[skill_id] = skill

        candidates = [
            RetrievalCandidate(
                skill=skill,
                lexical_rank=lexical_ranks.get(skill_id),
                semantic_rank=semantic_ranks.get(skill_id),
            )
            for skill_id, skill in skills.items()
        ]
        candidates.sort(key=lambda c: (-self._rrf(c), c.skill_id))

        logger.debug(
            f"Hybrid search '{query}': {len(lexical_ranks)} keyword, "
            f"{len(semantic_ranks)} semantic, {len(candidates)} joined"
        )
        return candidates[:limit]

    def _visible(self, skill) -> bool:
        return self.tenant_id is None or skill.tenant_id in (None, self.tenant_id)

    def _rrf(self, candidate: RetrievalCandidate) -> float:
        score = 0.0
        for rank in (candidate.lexical_rank, candidate.semantic_rank):
            if rank is not None:
                score += 1.0 / (self.rrf_k + rank)
        return score
