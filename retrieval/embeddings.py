"""Embedding backends and the cached skill embedding index."""

import json
import logging
import pickle
from enum import Enum
from pathlib import Path
from typing import Optional

import numpy as np
import requests

from retrieval.base import BaseEmbedder
from retrieval.catalog import SkillCatalog
from schemas.skill import Skill

logger = logging.getLogger(__name__)


class EmbeddingProvider(str, Enum):
    """Supported embedding providers."""
    OLLAMA = "ollama"
    OPENAI = "openai"


class OllamaEmbedder(BaseEmbedder):
    """
    Embeddings from an Ollama server's /api/embed endpoint.

    Returns None on any failure (timeout, network, bad response) so the
    caller can fall back to keyword search.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 5.0
    ):
        """
        Initialize Ollama embedder.

        Args:
            base_url: Ollama server URL
            model: Embedding model name
            timeout: Request timeout in seconds (default: 5)
        """
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self._last_error: Optional[str] = None

    def _handle_error(self, error: Exception) -> None:
        """Record the error for diagnostics."""
        self._last_error = str(error)
        logger.warning(f"Ollama embedding failed: {error}")

    def embed(self, text: str) -> Optional[list[float]]:
        """Embed a single text via Ollama."""
        try:
            response = requests.post(
                f"{self.base_url}/api/embed",
                json={"model": self.model, "input": text},
                timeout=self.timeout
            )

            if response.status_code != 200:
                self._handle_error(Exception(f"Ollama returned status {response.status_code}"))
                return None

            data = response.json()
            # Ollama returns {"embeddings": [[...]]} for a single input
            embeddings = data.get("embeddings") if isinstance(data, dict) else None
            if not isinstance(embeddings, list) or not embeddings or not embeddings[0]:
                self._handle_error(Exception("Ollama response had no embeddings"))
                return None

            return [float(x) for x in embeddings[0]]

        except requests.exceptions.Timeout:
            self._handle_error(Exception(f"Request timeout after {self.timeout}s"))
            return None
        except requests.exceptions.ConnectionError as e:
            self._handle_error(e)
            return None
        except (ValueError, TypeError) as e:
            self._handle_error(e)
            return None

    def test_connection(self) -> tuple[bool, list[str]]:
        """
        Check connectivity by listing installed models.

        Returns:
            (reachable, model names)
        """
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
            if response.status_code != 200:
                self._last_error = f"HTTP {response.status_code}"
                return False, []
            models = [m.get("name", "") for m in response.json().get("models", [])]
            return True, models
        except requests.exceptions.RequestException as e:
            self._last_error = str(e)
            return False, []

    def get_model_name(self) -> str:
        return self.model

    def get_last_error(self) -> Optional[str]:
        """Get the last error message."""
        return self._last_error


class OpenAIEmbedder(BaseEmbedder):
    """Embeddings from the OpenAI API."""

    DEFAULT_MODEL = "text-embedding-3-small"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 5.0
    ):
        """
        Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model (default: text-embedding-3-small)
            timeout: Request timeout in seconds
        """
        from openai import OpenAI

        self.model = model or self.DEFAULT_MODEL
        self.client = OpenAI(api_key=api_key, timeout=timeout)

    def embed(self, text: str) -> Optional[list[float]]:
        """Embed a single text via OpenAI."""
        try:
            response = self.client.embeddings.create(model=self.model, input=text)
            return list(response.data[0].embedding)
        except Exception as e:
            logger.warning(f"OpenAI embedding failed: {e}")
            return None

    def embed_many(self, texts: list[str], batch_size: int = 100) -> list[Optional[list[float]]]:
        """Embed texts in batches; a failed batch yields None for each of its texts."""
        results: list[Optional[list[float]]] = []

        for i in range(0, len(texts), batch_size):
            batch = texts[i:i + batch_size]
            try:
                response = self.client.embeddings.create(model=self.model, input=batch)
                results.extend(list(item.embedding) for item in response.data)
            except Exception as e:
                logger.error(f"Error embedding batch: {e}")
                results.extend([None] * len(batch))

            if i + batch_size < len(texts):
                logger.info(f"Embedded {i + batch_size}/{len(texts)} skills...")

        return results

    def get_model_name(self) -> str:
        return self.model


def create_embedder(
    provider: EmbeddingProvider,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: float = 5.0
) -> BaseEmbedder:
    """
    Create an embedder for the specified provider.

    Args:
        provider: Embedding provider (ollama or openai)
        api_key: API key for the provider
        model: Optional model override
        base_url: Server URL (ollama only)
        timeout: Request timeout in seconds

    Returns:
        Configured embedder

    Raises:
        ValueError: If provider is not supported
    """
    if provider == EmbeddingProvider.OLLAMA:
        kwargs = {"timeout": timeout}
        if base_url:
            kwargs["base_url"] = base_url
        if model:
            kwargs["model"] = model
        return OllamaEmbedder(**kwargs)
    elif provider == EmbeddingProvider.OPENAI:
        return OpenAIEmbedder(api_key=api_key, model=model, timeout=timeout)
    else:
        raise ValueError(f"Unsupported embedding provider: {provider}")


def skill_embed_text(skill: Skill) -> str:
    """Text used to embed a skill."""
    parts = [skill.name, skill.description]
    if skill.tags:
        parts.append(", ".join(skill.tags))
    return "\n".join(p for p in parts if p)


class SkillEmbeddingIndex:
    """Skill embeddings with on-disk caching keyed by catalog content and model."""

    EMBEDDINGS_FILE = "skill_embeddings.pkl"
    METADATA_FILE = "embeddings_metadata.json"

    def __init__(self, cache_dir: str = ".embeddings_cache"):
        """
        Initialize embedding index.

        Args:
            cache_dir: Directory for cached embeddings
        """
        self.cache_dir = Path(cache_dir)
        self.embeddings: dict[str, np.ndarray] = {}

    def _load_cached_metadata(self) -> Optional[dict]:
        """Load cached metadata if exists."""
        metadata_path = self.cache_dir / self.METADATA_FILE
        if metadata_path.exists():
            with open(metadata_path, "r") as f:
                return json.load(f)
        return None

    def _save_metadata(self, catalog_hash: str, model: str):
        """Save metadata for cache validation."""
        metadata = {
            "catalog_hash": catalog_hash,
            "skills_count": len(self.embeddings),
            "model": model,
        }
        with open(self.cache_dir / self.METADATA_FILE, "w") as f:
            json.dump(metadata, f)

    def _load_cached_embeddings(self) -> bool:
        """Load cached embeddings if present and readable."""
        embeddings_path = self.cache_dir / self.EMBEDDINGS_FILE
        if embeddings_path.exists():
            try:
                with open(embeddings_path, "rb") as f:
                    self.embeddings = pickle.load(f)
                logger.info(f"Loaded {len(self.embeddings)} cached skill embeddings")
                return True
            except (OSError, pickle.UnpicklingError, EOFError) as e:
                logger.warning(f"Failed to load cached embeddings: {e}")
        return False

    def _save_embeddings(self):
        """Save embeddings to cache."""
        with open(self.cache_dir / self.EMBEDDINGS_FILE, "wb") as f:
            pickle.dump(self.embeddings, f)
        logger.info(f"Saved {len(self.embeddings)} skill embeddings to cache")

    def build(self, catalog: SkillCatalog, embedder: BaseEmbedder) -> bool:
        """
        Load or (re)build embeddings for every skill in the catalog.

        Args:
            catalog: Skill catalog
            embedder: Embedding backend

        Returns:
            True if any embeddings are available
        """
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        model = embedder.get_model_name()

        metadata = self._load_cached_metadata()
        if (
            metadata
            and catalog.content_hash
            and metadata.get("catalog_hash") == catalog.content_hash
            and metadata.get("model") == model
            and self._load_cached_embeddings()
        ):
            logger.info("Catalog unchanged - using cached embeddings")
            return self.is_available()

        logger.info(f"Generating embeddings for {len(catalog)} skills...")
        skills = list(catalog)
        vectors = embedder.embed_many([skill_embed_text(s) for s in skills])

        self.embeddings = {
            skill.id: np.asarray(vector, dtype=float)
            for skill, vector in zip(skills, vectors)
            if vector
        }

        if not self.embeddings:
            logger.warning("No skill embeddings generated - semantic search will return nothing")
            return False

        self._save_embeddings()
        self._save_metadata(catalog.content_hash, model)
        return True

    def similar(
        self,
        query_embedding: list[float],
        top_k: int = 20
    ) -> list[tuple[str, float]]:
        """
        Skills most similar to a query embedding.

        Args:
            query_embedding: Query vector
            top_k: Number of skills to return

        Returns:
            (skill_id, cosine similarity) pairs, most similar first, ties by id
        """
        if not self.embeddings or query_embedding is None or len(query_embedding) == 0:
            return []

        query = np.asarray(query_embedding, dtype=float)
        query_norm = np.linalg.norm(query)
        if query_norm == 0:
            return []

        ids = list(self.embeddings.keys())
        matrix = np.vstack([self.embeddings[i] for i in ids])
        if matrix.shape[1] != query.shape[0]:
            logger.warning(
                f"Query embedding dimension {query.shape[0]} does not match index dimension {matrix.shape[1]}"
            )
            return []

        norms = np.linalg.norm(matrix, axis=1) * query_norm
        norms[norms == 0] = np.inf
        similarities = matrix @ query / norms

        ranked = sorted(zip(ids, similarities.tolist()), key=lambda pair: (-pair[1], pair[0]))
        return ranked[:top_k]

    def is_available(self) -> bool:
        """Check if embeddings are available."""
        return bool(self.embeddings)
