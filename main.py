#!/usr/bin/env python3
"""Skill discovery CLI."""

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone

from config.settings import Settings
from schemas.discovery import UserDiscoveryContext
from schemas.skill import QualityTier
from scoring.quality import QualityScorer
from scoring.trending import TrendingScorer
from retrieval.browse import browse_skills, SORT_MODES
from retrieval.catalog import SkillCatalog
from storage.sqlite_store import SQLiteDiscoveryStore
from orchestrator import DiscoveryOrchestrator


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Skill discovery - search, browse and trending for the skill marketplace"
    )
    parser.add_argument(
        "--catalog",
        type=str,
        help="Path to skill catalog CSV (default: SKILL_CATALOG_PATH or data/skills.csv)"
    )
    parser.add_argument(
        "--db",
        type=str,
        help="Path to SQLite database (default: SKILL_DB_PATH or data/discovery.db)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    discover = subparsers.add_parser("discover", help="Rank skills for a query")
    discover.add_argument("query", type=str, help="Search query")
    discover.add_argument("--tenant", type=str, required=True, help="Tenant ID")
    discover.add_argument("--user", type=str, help="User ID (enables preference boost)")
    discover.add_argument("--limit", type=int, default=3, help="Number of results (default: 3)")

    trending = subparsers.add_parser("trending", help="Skills trending over the last 7 days")
    trending.add_argument("--limit", type=int, default=10, help="Number of results (default: 10)")

    browse = subparsers.add_parser("browse", help="Filter and sort the catalog")
    browse.add_argument("--query", type=str, help="Substring filter")
    browse.add_argument("--category", type=str, help="Category filter")
    browse.add_argument(
        "--tier",
        type=str,
        choices=[t.value for t in QualityTier if t != QualityTier.NONE],
        help="Quality tier filter"
    )
    browse.add_argument("--sort", type=str, choices=SORT_MODES, default="days_saved", help="Sort mode")

    record = subparsers.add_parser("record-usage", help="Record one use of a skill")
    record.add_argument("skill_id", type=str, help="Skill ID")
    record.add_argument("--user", type=str, help="User ID")

    stats = subparsers.add_parser("search-stats", help="Search analytics for a tenant")
    stats.add_argument("--tenant", type=str, required=True, help="Tenant ID")
    stats.add_argument("--days", type=int, default=30, help="Look-back window in days (default: 30)")

    return parser


def run_discover(args, settings: Settings, store: SQLiteDiscoveryStore):
    orchestrator = DiscoveryOrchestrator.from_settings(settings, tenant_id=args.tenant, store=store)
    try:
        actor = UserDiscoveryContext(user_id=args.user, tenant_id=args.tenant)
        results = orchestrator.discover(args.query, actor, limit=args.limit)
    finally:
        orchestrator.close()

    if not results:
        print("No matching skills found.")
        return

    for i, result in enumerate(results, start=1):
        boosted = " [preferred]" if result.is_boosted else ""
        print(f"{i}. {result.name} ({result.slug}){boosted}")
        print(f"   {result.match_rationale}")
        print(f"   score={result.fusion_score:.4f}  match={result.match_type.value}  uses={result.total_uses}")


def run_trending(args, settings: Settings, store: SQLiteDiscoveryStore):
    catalog = SkillCatalog.from_csv(settings.catalog_path)
    scorer = TrendingScorer()
    now = datetime.now(timezone.utc)

    trending = scorer.get_trending(
        skills=list(catalog),
        recent_counts=store.recent_usage_counts(scorer.window_start(now)),
        now=now,
        first_used=store.first_usage_times(),
        limit=args.limit,
    )

    if not trending:
        print("No trending skills this week.")
        return

    for i, item in enumerate(trending, start=1):
        print(
            f"{i}. {item.skill.name}  score={item.trending_score:.4f}  "
            f"uses_7d={item.recent_uses}  age={item.age_hours:.0f}h"
        )


def run_browse(args, settings: Settings):
    catalog = SkillCatalog.from_csv(settings.catalog_path)
    scorer = QualityScorer()
    skills = browse_skills(
        list(catalog),
        query=args.query,
        category=args.category,
        quality_tier=QualityTier(args.tier) if args.tier else None,
        sort_by=args.sort,
        scorer=scorer,
    )

    if not skills:
        print("No skills match these filters.")
        return

    for skill in skills:
        result = scorer.evaluate(skill)
        quality = f"{result.score:.1f} ({result.tier.value})" if result.ranked else "unranked"
        print(
            f"- {skill.name} [{skill.category or 'uncategorized'}]  uses={skill.total_uses}  "
            f"quality={quality}  days_saved={skill.days_saved():.1f}"
        )


def run_search_stats(args, store: SQLiteDiscoveryStore):
    since = datetime.now(timezone.utc) - timedelta(days=args.days)
    stats = store.get_search_summary_stats(args.tenant, since)

    print(f"Searches (last {args.days} days): {stats.total_searches}")
    print(f"Unique queries: {stats.unique_queries}")
    print(f"Zero-result searches: {stats.zero_result_searches}")
    print(f"Unique searchers: {stats.unique_searchers}")

    top = store.get_top_queries(args.tenant, since, limit=10)
    if top:
        print("\nTop queries:")
        for q in top:
            print(f"  {q.search_count:>4}  {q.query}  (avg results {q.avg_results})")

    zero = store.get_zero_result_queries(args.tenant, since, limit=10)
    if zero:
        print("\nQueries with no results:")
        for q in zero:
            print(f"  {q.search_count:>4}  {q.query}")


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    settings = Settings(
        catalog_path=args.catalog,
        db_path=args.db,
        verbose=args.verbose,
    )

    logging.basicConfig(
        level=logging.DEBUG if settings.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        store = SQLiteDiscoveryStore(db_path=settings.db_path)

        if args.command == "discover":
            run_discover(args, settings, store)
        elif args.command == "trending":
            run_trending(args, settings, store)
        elif args.command == "browse":
            run_browse(args, settings)
        elif args.command == "record-usage":
            event = store.record_usage(args.skill_id, user_id=args.user)
            print(f"Recorded use of {event.skill_id} at {event.created_at.isoformat()}")
        elif args.command == "search-stats":
            run_search_stats(args, store)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
