"""Site capability flags loaded from YAML with a short in-memory cache."""

import logging
import time
from pathlib import Path
from typing import Optional

import yaml

from retrieval.base import BaseSiteCapabilities

logger = logging.getLogger(__name__)


class SiteCapabilities(BaseSiteCapabilities):
    """
    Tenant feature flags from a site settings file.

    The `default` block applies to every tenant; entries under `tenants`
    override it. A missing or unreadable file disables semantic search.
    """

    def __init__(self, settings_path: str, cache_ttl: float = 60.0):
        """
        Initialize site capabilities.

        Args:
            settings_path: Path to site_settings.yaml
            cache_ttl: Seconds to reuse loaded settings
        """
        self.settings_path = Path(settings_path)
        self.cache_ttl = cache_ttl
        self._cached: Optional[dict] = None
        self._cached_at = 0.0

    def _load(self) -> Optional[dict]:
        """Load settings, reusing the cache within the TTL."""
        now = time.monotonic()
        if self._cached is not None and now - self._cached_at < self.cache_ttl:
            return self._cached

        try:
            with open(self.settings_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Site settings unavailable at {self.settings_path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Site settings at {self.settings_path} is not a mapping")
            return None

        self._cached = data
        self._cached_at = now
        return data

    def get_tenant_settings(self, tenant_id: Optional[str]) -> dict:
        """Merged settings for a tenant (empty when unavailable)."""
        data = self._load()
        if data is None:
            return {}

        merged = dict(data.get("default") or {})
        tenants = data.get("tenants") or {}
        if tenant_id and isinstance(tenants.get(tenant_id), dict):
            merged.update(tenants[tenant_id])
        return merged

    def semantic_enabled(self, tenant_id: str) -> bool:
        """Whether semantic search is enabled for the tenant."""
        return bool(self.get_tenant_settings(tenant_id).get("semantic_enabled", False))

    def invalidate(self) -> None:
        """Force-clear the settings cache."""
        self._cached = None
        self._cached_at = 0.0
