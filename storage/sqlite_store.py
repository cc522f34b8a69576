"""SQLite-backed store for preferences, search analytics and usage events."""

import sqlite3
import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, List, Dict

from schemas.discovery import SearchLogEntry
from schemas.preferences import UserPreferences, UsageEvent, SearchSummaryStats, TopQuery

logger = logging.getLogger(__name__)


def _to_iso(value: datetime) -> str:
    """Store timestamps as UTC ISO strings so they sort lexically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteDiscoveryStore:
    """SQLite-based persistent store for the discovery subsystem."""

    def __init__(self, db_path: str = "data/discovery.db"):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()

        # One row per user per tenant; preferences stored as JSON
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS user_preferences (
                user_id TEXT NOT NULL,
                tenant_id TEXT NOT NULL,
                preferences TEXT NOT NULL DEFAULT '{}',
                updated_at TEXT NOT NULL,
                PRIMARY KEY (user_id, tenant_id)
            )
        """)

        # Append-only search analytics
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS search_queries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                tenant_id TEXT NOT NULL,
                user_id TEXT,
                query TEXT NOT NULL,
                normalized_query TEXT NOT NULL,
                result_count INTEGER NOT NULL,
                search_type TEXT NOT NULL,
                route_type TEXT,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS usage_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                skill_id TEXT NOT NULL,
                user_id TEXT,
                created_at TEXT NOT NULL
            )
        """)

        # Indexes
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_search_queries_tenant ON search_queries(tenant_id, created_at)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_search_queries_normalized ON search_queries(normalized_query)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_usage_events_skill ON usage_events(skill_id, created_at)"
        )

        conn.commit()
        conn.close()
        logger.info(f"Database initialized at {self.db_path}")

    # Preferences

    def get_preferences(self, user_id: str, tenant_id: str) -> UserPreferences:
        """
        Get a user's preferences merged over defaults.

        Args:
            user_id: User ID
            tenant_id: Tenant ID

        Returns:
            UserPreferences (defaults when no row exists)
        """
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            "SELECT * FROM user_preferences WHERE user_id = ? AND tenant_id = ?",
            (user_id, tenant_id)
        )
        row = cursor.fetchone()
        conn.close()

        if not row:
            return UserPreferences(user_id=user_id, tenant_id=tenant_id)

        stored = json.loads(row["preferences"]) if row["preferences"] else {}
        return UserPreferences(
            user_id=user_id,
            tenant_id=tenant_id,
            updated_at=_from_iso(row["updated_at"]),
            **stored
        )

    def save_preferences(self, preferences: UserPreferences) -> UserPreferences:
        """
        Insert or replace a user's preferences.

        Args:
            preferences: Validated preferences

        Returns:
            Saved preferences with updated_at set
        """
        now = datetime.now(timezone.utc)
        payload = json.dumps({
            "preferred_categories": preferences.preferred_categories,
            "default_sort": preferences.default_sort,
        })

        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT OR REPLACE INTO user_preferences (user_id, tenant_id, preferences, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (preferences.user_id, preferences.tenant_id, payload, _to_iso(now))
        )
        conn.commit()
        conn.close()

        return preferences.model_copy(update={"updated_at": now})

    # Search analytics

    def log_search_query(self, entry: SearchLogEntry):
        """
        Append a search log entry.

        Args:
            entry: Search log entry
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO search_queries
            (tenant_id, user_id, query, normalized_query, result_count, search_type, route_type, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.tenant_id,
                entry.user_id,
                entry.query,
                entry.normalized_query,
                entry.result_count,
                entry.search_type,
                entry.route_type.value if entry.route_type else None,
                _to_iso(entry.timestamp),
            )
        )
        conn.commit()
        conn.close()

    def get_search_summary_stats(self, tenant_id: str, since: datetime) -> SearchSummaryStats:
        """
        Summary statistics for a tenant's searches since a point in time.

        Args:
            tenant_id: Tenant ID
            since: Start of the time range

        Returns:
            SearchSummaryStats
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT
                COUNT(*) AS total_searches,
                COUNT(DISTINCT normalized_query) AS unique_queries,
                SUM(CASE WHEN result_count = 0 THEN 1 ELSE 0 END) AS zero_result_searches,
                COUNT(DISTINCT user_id) AS unique_searchers
            FROM search_queries
            WHERE tenant_id = ? AND created_at >= ?
            """,
            (tenant_id, _to_iso(since))
        )
        row = cursor.fetchone()
        conn.close()

        return SearchSummaryStats(
            total_searches=row["total_searches"] or 0,
            unique_queries=row["unique_queries"] or 0,
            zero_result_searches=row["zero_result_searches"] or 0,
            unique_searchers=row["unique_searchers"] or 0,
        )

    def get_top_queries(
        self,
        tenant_id: str,
        since: datetime,
        limit: int = 50
    ) -> List[TopQuery]:
        """
        Most frequent normalized queries.

        Args:
            tenant_id: Tenant ID
            since: Start of the time range
            limit: Maximum queries to return

        Returns:
            List of TopQuery, most searched first
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT
                normalized_query,
                COUNT(*) AS search_count,
                ROUND(AVG(result_count)) AS avg_results,
                SUM(CASE WHEN result_count = 0 THEN 1 ELSE 0 END) AS zero_result_count,
                MAX(created_at) AS last_searched
            FROM search_queries
            WHERE tenant_id = ? AND created_at >= ?
            GROUP BY normalized_query
            ORDER BY search_count DESC, normalized_query ASC
            LIMIT ?
            """,
            (tenant_id, _to_iso(since), limit)
        )
        rows = cursor.fetchall()
        conn.close()

        return [
            TopQuery(
                query=row["normalized_query"],
                search_count=row["search_count"],
                avg_results=int(row["avg_results"] or 0),
                zero_result_count=row["zero_result_count"] or 0,
                last_searched=_from_iso(row["last_searched"]),
            )
            for row in rows
        ]

    def get_zero_result_queries(
        self,
        tenant_id: str,
        since: datetime,
        limit: int = 30
    ) -> List[TopQuery]:
        """
        Queries that returned nothing, most frequent first.

        Args:
            tenant_id: Tenant ID
            since: Start of the time range
            limit: Maximum queries to return

        Returns:
            List of TopQuery
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT normalized_query, COUNT(*) AS search_count, MAX(created_at) AS last_searched
            FROM search_queries
            WHERE tenant_id = ? AND created_at >= ? AND result_count = 0
            GROUP BY normalized_query
            ORDER BY search_count DESC, normalized_query ASC
            LIMIT ?
            """,
            (tenant_id, _to_iso(since), limit)
        )
        rows = cursor.fetchall()
        conn.close()

        return [
            TopQuery(
                query=row["normalized_query"],
                search_count=row["search_count"],
                zero_result_count=row["search_count"],
                last_searched=_from_iso(row["last_searched"]),
            )
            for row in rows
        ]

    # Usage events

    def record_usage(
        self,
        skill_id: str,
        user_id: Optional[str] = None,
        at: Optional[datetime] = None
    ) -> UsageEvent:
        """
        Record one use of a skill.

        Args:
            skill_id: Skill ID
            user_id: Optional user ID
            at: Event time (now when omitted)

        Returns:
            Created UsageEvent
        """
        created_at = at or datetime.now(timezone.utc)

        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO usage_events (skill_id, user_id, created_at) VALUES (?, ?, ?)",
            (skill_id, user_id, _to_iso(created_at))
        )
        conn.commit()
        conn.close()

        return UsageEvent(skill_id=skill_id, user_id=user_id, created_at=created_at)

    def recent_usage_counts(self, since: datetime) -> Dict[str, int]:
        """
        Uses per skill at or after a point in time.

        Args:
            since: Window start

        Returns:
            Mapping of skill id to use count
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT skill_id, COUNT(*) AS uses
            FROM usage_events
            WHERE created_at >= ?
            GROUP BY skill_id
            """,
            (_to_iso(since),)
        )
        rows = cursor.fetchall()
        conn.close()

        return {row["skill_id"]: row["uses"] for row in rows}

    def first_usage_times(self) -> Dict[str, datetime]:
        """First recorded use per skill."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            "SELECT skill_id, MIN(created_at) AS first_used FROM usage_events GROUP BY skill_id"
        )
        rows = cursor.fetchall()
        conn.close()

        return {row["skill_id"]: _from_iso(row["first_used"]) for row in rows}
