"""Application settings."""

import os
from typing import Optional
from pydantic import BaseModel


class Settings(BaseModel):
    """Discovery service configuration settings."""

    # Skill catalog (CSV export of published skills)
    catalog_path: str = "data/skills.csv"

    # SQLite store for preferences, search analytics and usage events
    db_path: str = "data/discovery.db"

    # Site capability flags (semantic search on/off per tenant)
    site_settings_path: str = "config/site_settings.yaml"
    settings_cache_ttl: float = 60.0

    # Embedding provider settings
    embedding_provider: str = "ollama"  # "ollama" or "openai"
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "nomic-embed-text"
    openai_api_key: Optional[str] = None
    embeddings_cache_dir: str = ".embeddings_cache"

    # Timeouts (seconds) for collaborator calls
    collaborator_timeout: float = 5.0
    embedding_timeout: float = 5.0
    # Thread pool for collaborator calls. A call that times out still holds
    # its worker until it returns, so this caps concurrent hung calls.
    collaborator_workers: int = 4

    # Discovery ranking
    discover_limit: int = 3
    overfetch: int = 5  # Extra candidates fetched for post-boost reranking
    preference_boost: float = 1.3
    rrf_k: int = 60

    # Search log worker
    log_queue_size: int = 256

    # Logging
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load from environment if not provided
        env_map = {
            "catalog_path": "SKILL_CATALOG_PATH",
            "db_path": "SKILL_DB_PATH",
            "site_settings_path": "SITE_SETTINGS_PATH",
            "embedding_provider": "EMBEDDING_PROVIDER",
            "ollama_url": "OLLAMA_URL",
            "ollama_model": "OLLAMA_MODEL",
            "openai_api_key": "OPENAI_API_KEY",
            "collaborator_workers": "DISCOVERY_WORKERS",
        }
        for field, env_var in env_map.items():
            if data.get(field) is None and os.environ.get(env_var):
                data[field] = os.environ[env_var]
            elif field in data and data[field] is None:
                del data[field]

        super().__init__(**data)

    def get_embedding_api_key(self) -> Optional[str]:
        """Get the API key for the configured embedding provider."""
        if self.embedding_provider == "openai":
            return self.openai_api_key
        return None
