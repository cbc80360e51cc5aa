"""Bookings sync orchestrator: Stays.net reservations -> unified_bookings mirror."""

import time
from datetime import date, timedelta
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from stays_sync.config import (
    DETAIL_FETCH_CONCURRENCY,
    DETAIL_FETCH_DELAY_SECONDS,
    DRY_RUN,
    SYNC_DATE_RANGE_DAYS,
    SYNC_MAX_DURATION_SECONDS,
)
from stays_sync.db.writers.bookings import insert_unified_bookings
from stays_sync.db.writers.listings import insert_listings
from stays_sync.errors import SyncConflictError
from stays_sync.logging_config import bind_sync_context, clear_sync_context
from stays_sync.metrics import sync_duration, sync_runs
from stays_sync.network.client import StaysClient
from stays_sync.network.queue import Deadline, RateLimitedQueue
from stays_sync.normalizers.bookings import build_unified_bookings
from stays_sync.normalizers.listings import build_listing_row
from stays_sync.pollers.bookings import poll_booking_details, poll_booking_summaries
from stays_sync.pollers.listings import poll_listing_details
from stays_sync.schemas.sync import SyncResult
from stays_sync.services.sync_state import BOOKINGS, SyncTracker, run_lock
from stays_sync.utils.datetime import local_today, utc_now

logger = structlog.get_logger(__name__)


def sync_window(today: date, range_days: int = SYNC_DATE_RANGE_DAYS) -> tuple[date, date]:
    """Return the (start, end) window of ``range_days`` either side of ``today``."""
    return today - timedelta(days=range_days), today + timedelta(days=range_days)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def run_bookings_sync(
    engine: Engine,
    client: StaysClient,
    today: Optional[date] = None,
    dry_run: bool = DRY_RUN,
    queue: Optional[RateLimitedQueue] = None,
    budget_seconds: float = SYNC_MAX_DURATION_SECONDS,
) -> SyncResult:
    """
    Run one full bookings sync.

    Steps: mark running, list reservations in the window, fetch booking details
    and listing details through the rate-limited queue, write listings, then
    write the merged unified bookings, then mark success. A failure to list
    reservations or to write aborts the run and records the error; the mirror
    keeps whatever was already written.

    Args:
        engine: SQLAlchemy Engine
        client: Stays.net client
        today: Centre of the sync window (defaults to today in the property timezone)
        dry_run: If True, fetch and transform but skip all DB writes
        queue: Detail-fetch queue (defaults to the configured concurrency/delay)
        budget_seconds: Wall-clock budget for the whole run

    Returns:
        SyncResult: status "success", "error", or "skipped" when another run is active
    """
    try:
        with run_lock(BOOKINGS):
            tracker = SyncTracker(engine, BOOKINGS, dry_run=dry_run)
            tracker.start()
            return _run(engine, client, tracker, today, dry_run, queue, budget_seconds)
    except SyncConflictError as e:
        logger.warning("sync_skipped_already_running", sync_type=BOOKINGS)
        sync_runs.labels(sync_type=BOOKINGS, status="skipped").inc()
        return SyncResult(sync_type=BOOKINGS, status="skipped", error=str(e))


def _run(
    engine: Engine,
    client: StaysClient,
    tracker: SyncTracker,
    today: Optional[date],
    dry_run: bool,
    queue: Optional[RateLimitedQueue],
    budget_seconds: float,
) -> SyncResult:
    bind_sync_context(BOOKINGS)
    started = time.monotonic()
    deadline = Deadline(budget_seconds)
    queue = queue or RateLimitedQueue(DETAIL_FETCH_CONCURRENCY, DETAIL_FETCH_DELAY_SECONDS)
    start, end = sync_window(today or local_today())

    logger.info("sync_started", start=str(start), end=str(end), dry_run=dry_run)

    try:
        with sync_duration.labels(sync_type=BOOKINGS).time():
            summaries = poll_booking_summaries(client, start, end)
            deadline.check("booking list")

            bookings = poll_booking_details(client, summaries, queue, deadline)

            listing_ids = [b.listing_id for b in bookings if b.listing_id]
            listings = poll_listing_details(client, listing_ids, queue, deadline)
            deadline.check("write")

            # Listings first so every unified row written below has its listing mirrored
            now = utc_now()
            insert_listings(
                engine, [build_listing_row(listing, now) for listing in listings.values()], dry_run=dry_run
            )
            rows = build_unified_bookings(bookings, listings, now)
            insert_unified_bookings(engine, rows, dry_run=dry_run)

        duration_ms = _elapsed_ms(started)
        tracker.finish(
            "success", duration_ms, bookings_count=len(rows), listings_count=len(listings)
        )
        sync_runs.labels(sync_type=BOOKINGS, status="success").inc()
        logger.info(
            "sync_completed",
            bookings_count=len(rows),
            listings_count=len(listings),
            duration_ms=duration_ms,
        )
        return SyncResult(
            sync_type=BOOKINGS,
            status="success",
            bookings_count=len(rows),
            listings_count=len(listings),
            duration_ms=duration_ms,
        )
    except Exception as e:
        duration_ms = _elapsed_ms(started)
        logger.exception("sync_failed", error=str(e), duration_ms=duration_ms)
        tracker.finish("error", duration_ms, error=str(e))
        sync_runs.labels(sync_type=BOOKINGS, status="error").inc()
        return SyncResult(sync_type=BOOKINGS, status="error", duration_ms=duration_ms, error=str(e))
    finally:
        clear_sync_context()
