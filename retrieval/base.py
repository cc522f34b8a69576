"""Base interfaces for discovery collaborators."""

from abc import ABC, abstractmethod
from typing import Optional

from schemas.discovery import RetrievalCandidate


class BaseLexicalSearch(ABC):
    """Full-text retrieval over published skills."""

    @abstractmethod
    def search(self, query: str, limit: int) -> list[RetrievalCandidate]:
        """
        Lexical search.

        Args:
            query: Trimmed search query
            limit: Maximum candidates to return

        Returns:
            Candidates ordered by lexical rank (1-based)
        """
        pass


class BaseVectorSearch(ABC):
    """Vector retrieval, fused with lexical ranks where both match."""

    @abstractmethod
    def search(
        self,
        query: str,
        embedding: list[float],
        limit: int
    ) -> list[RetrievalCandidate]:
        """
        Hybrid vector search.

        Args:
            query: Trimmed search query
            embedding: Query embedding
            limit: Maximum candidates to return

        Returns:
            Candidates carrying a semantic rank and, where matched, a lexical rank
        """
        pass


class BaseEmbedder(ABC):
    """Text embedding backend."""

    @abstractmethod
    def embed(self, text: str) -> Optional[list[float]]:
        """Embed text; None when the backend is unavailable."""
        pass

    def embed_many(self, texts: list[str]) -> list[Optional[list[float]]]:
        """Embed several texts, one call per text unless a backend batches."""
        return [self.embed(text) for text in texts]

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the name of the embedding model."""
        pass


class BaseSiteCapabilities(ABC):
    """Tenant-level feature flags."""

    @abstractmethod
    def semantic_enabled(self, tenant_id: str) -> bool:
        """Whether semantic search is enabled for the tenant."""
        pass
