"""Persistence for preferences, search analytics and usage events."""

from .sqlite_store import SQLiteDiscoveryStore

__all__ = ["SQLiteDiscoveryStore"]
