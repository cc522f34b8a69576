"""Retrieval layer: catalog, keyword and vector search, embeddings, capabilities."""

from .catalog import SkillCatalog
from .keyword_search import KeywordSearch
from .vector_search import HybridVectorSearch
from .capabilities import SiteCapabilities

__all__ = ["SkillCatalog", "KeywordSearch", "HybridVectorSearch", "SiteCapabilities"]
