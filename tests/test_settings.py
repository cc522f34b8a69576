"""Tests for application settings."""

from config.settings import Settings


class TestSettings:
    """Test defaults and environment loading."""

    def test_defaults(self, monkeypatch):
        """Test documented defaults."""
        monkeypatch.delenv("EMBEDDING_PROVIDER", raising=False)
        monkeypatch.delenv("DISCOVERY_WORKERS", raising=False)
        settings = Settings()

        assert settings.discover_limit == 3
        assert settings.overfetch == 5
        assert settings.preference_boost == 1.3
        assert settings.rrf_k == 60
        assert settings.collaborator_workers == 4
        assert settings.embedding_provider == "ollama"
        assert settings.get_embedding_api_key() is None

    def test_environment_overrides(self, monkeypatch):
        """Test environment variables fill unset fields."""
        monkeypatch.setenv("SKILL_CATALOG_PATH", "/tmp/skills.csv")
        monkeypatch.setenv("EMBEDDING_PROVIDER", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("DISCOVERY_WORKERS", "8")

        settings = Settings()

        assert settings.catalog_path == "/tmp/skills.csv"
        assert settings.get_embedding_api_key() == "sk-test"
        assert settings.collaborator_workers == 8

    def test_explicit_values_win(self, monkeypatch):
        """Test explicit arguments override the environment and None falls back."""
        monkeypatch.setenv("SKILL_DB_PATH", "/tmp/env.db")
        monkeypatch.delenv("SKILL_CATALOG_PATH", raising=False)

        settings = Settings(db_path="/tmp/arg.db", catalog_path=None)

        assert settings.db_path == "/tmp/arg.db"
        assert settings.catalog_path == "data/skills.csv"
