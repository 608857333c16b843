"""Fetch a recap from a running API and print it as JSON."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import requests

from recap.cache.client import RecapClient
from recap.cache.store import CACHE_PREFIX, RecapCache
from recap.config import get_settings
from recap.database import create_cache_engine, create_session_factory, init_db
from recap.logging_config import configure_logging
from recap.models.domain import RecapQuery


logger = logging.getLogger("scripts.fetch_recap")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print an activity recap from the recap API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Last 7 days
  python scripts/fetch_recap.py --access-token $TOKEN

  # Last 30 days of runs only, bypassing the local cache
  python scripts/fetch_recap.py --days 30 --activity-type Run --no-cache

  # All of last year
  python scripts/fetch_recap.py --type calendar --unit year --offset -1
        """,
    )
    parser.add_argument("--type", choices=("rolling", "calendar"), default="rolling", help="Range type")
    parser.add_argument("--days", type=int, default=7, help="Rolling window length in days (1-365)")
    parser.add_argument("--unit", choices=("month", "year"), default="month", help="Calendar unit")
    parser.add_argument("--offset", type=int, help="Year offset for --unit year (e.g. -1 for last year)")
    parser.add_argument("--activity-type", help="Only include this exact activity type")
    parser.add_argument("--activity-group", help="Only include activities in this group")
    parser.add_argument(
        "--access-token",
        default=os.environ.get("RECAP_ACCESS_TOKEN"),
        help="Provider access token (defaults to $RECAP_ACCESS_TOKEN)",
    )
    parser.add_argument("--provider", help="Provider identifier (strava, intervalsicu)")
    parser.add_argument("--base-url", help="API base URL (defaults to API_BASE_URL setting)")
    parser.add_argument("--no-cache", action="store_true", help="Skip the local cache for this request")
    parser.add_argument("--clear-cache", action="store_true", help="Clear the local cache before fetching")
    parser.add_argument("--verbose", action="store_true", help="Show detailed output")
    return parser.parse_args(argv)


def build_query(args: argparse.Namespace) -> RecapQuery:
    if args.type == "rolling":
        return RecapQuery(
            type="rolling",
            days=args.days,
            activity_type=args.activity_type,
            activity_group=args.activity_group,
        )
    return RecapQuery(
        type="calendar",
        unit=args.unit,
        offset=args.offset,
        activity_type=args.activity_type,
        activity_group=args.activity_group,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    configure_logging()
    settings = get_settings()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    engine = create_cache_engine()
    init_db(engine)
    cache = RecapCache(create_session_factory(engine))
    cache.ensure_app_version(settings.app_version)
    if args.clear_cache:
        cache.invalidate_prefix(CACHE_PREFIX)

    client = RecapClient(
        args.base_url or settings.api_base_url,
        cache=cache,
        access_token=args.access_token,
        provider=args.provider,
        timeout=settings.http_timeout_seconds,
    )

    try:
        recap = client.get_recap(build_query(args), use_cache=not args.no_cache)
    except requests.RequestException as err:
        logger.error("Could not reach the recap API: %s", err)
        return 1

    print(json.dumps(recap, indent=2))
    if recap.get("connected") is False:
        logger.warning("Not connected; supply a valid --access-token")
        return 2
    if "error" in recap:
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
