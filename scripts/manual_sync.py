"""
Run one sync pipeline against the configured database and print the result.

Usage:
    python scripts/manual_sync.py               # bookings sync
    python scripts/manual_sync.py --enrich      # bookings sync, then client enrichment
    python scripts/manual_sync.py --properties  # property catalogue sync
    python scripts/manual_sync.py --dry-run     # fetch and transform, log instead of writing
"""

import argparse
import json
import sys

import structlog

from stays_sync.config import DRY_RUN
from stays_sync.db.engine import get_engine
from stays_sync.dependencies import build_stays_client
from stays_sync.logging_config import setup_logging
from stays_sync.services.enrichment import enrich_bookings_with_client_data
from stays_sync.services.property_sync import run_property_sync
from stays_sync.services.sync import run_bookings_sync

setup_logging()
logger = structlog.get_logger(__name__)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Stays.net sync once")
    parser.add_argument("--properties", action="store_true", help="run the property catalogue sync")
    parser.add_argument("--enrich", action="store_true", help="enrich bookings after the sync")
    parser.add_argument("--dry-run", action="store_true", default=DRY_RUN, help="do not write")
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    engine = get_engine()
    client = build_stays_client()

    if args.properties:
        results = [run_property_sync(engine, client, dry_run=args.dry_run)]
    else:
        results = [run_bookings_sync(engine, client, dry_run=args.dry_run)]
        if args.enrich and results[0].status == "success":
            results.append(enrich_bookings_with_client_data(engine, client, dry_run=args.dry_run))

    for result in results:
        print(json.dumps(result.model_dump(), indent=2))

    failed = [r for r in results if r.status == "error"]
    if failed:
        logger.error("manual_sync_failed", sync_types=[r.sync_type for r in failed])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
