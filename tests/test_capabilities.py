"""Tests for site capability flags."""

from retrieval.capabilities import SiteCapabilities


SETTINGS_YAML = """
default:
  semantic_enabled: false
  ollama_model: nomic-embed-text
tenants:
  acme:
    semantic_enabled: true
"""


class TestSiteCapabilities:
    """Test YAML-backed tenant flags."""

    def test_default_and_override(self, tmp_path):
        """Test tenant overrides win over defaults."""
        path = tmp_path / "site_settings.yaml"
        path.write_text(SETTINGS_YAML)
        capabilities = SiteCapabilities(str(path))

        assert capabilities.semantic_enabled("acme") is True
        assert capabilities.semantic_enabled("globex") is False
        assert capabilities.get_tenant_settings("acme")["ollama_model"] == "nomic-embed-text"

    def test_missing_file_disables_semantic(self, tmp_path):
        """Test an absent settings file means semantic is off."""
        capabilities = SiteCapabilities(str(tmp_path / "missing.yaml"))

        assert capabilities.semantic_enabled("acme") is False

    def test_invalid_yaml_disables_semantic(self, tmp_path):
        """Test malformed settings mean semantic is off."""
        path = tmp_path / "site_settings.yaml"
        path.write_text("default: [unclosed")

        assert SiteCapabilities(str(path)).semantic_enabled("acme") is False

    def test_cached_within_ttl(self, tmp_path):
        """Test edits are not seen until the cache expires or is invalidated."""
        path = tmp_path / "site_settings.yaml"
        path.write_text(SETTINGS_YAML)
        capabilities = SiteCapabilities(str(path), cache_ttl=60)

        assert capabilities.semantic_enabled("acme") is True
        path.write_text("default:\n  semantic_enabled: false\n")
        assert capabilities.semantic_enabled("acme") is True

        capabilities.invalidate()
        assert capabilities.semantic_enabled("acme") is False

    def test_zero_ttl_reloads(self, tmp_path):
        """Test a zero TTL reads the file on every call."""
        path = tmp_path / "site_settings.yaml"
        path.write_text(SETTINGS_YAML)
        capabilities = SiteCapabilities(str(path), cache_ttl=0)

        assert capabilities.semantic_enabled("acme") is True
        path.write_text("default:\n  semantic_enabled: false\n")
        assert capabilities.semantic_enabled("acme") is False
