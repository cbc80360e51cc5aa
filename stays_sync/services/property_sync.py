"""Property catalogue sync: Stays.net listings -> properties table (daily)."""

import time
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from stays_sync.config import (
    DETAIL_FETCH_CONCURRENCY,
    DETAIL_FETCH_DELAY_SECONDS,
    DRY_RUN,
    SYNC_MAX_DURATION_SECONDS,
)
from stays_sync.db.writers.properties import insert_properties
from stays_sync.errors import SyncConflictError
from stays_sync.logging_config import bind_sync_context, clear_sync_context
from stays_sync.metrics import sync_duration, sync_runs
from stays_sync.network.client import StaysClient
from stays_sync.network.queue import Deadline, RateLimitedQueue
from stays_sync.normalizers.listings import build_property_row
from stays_sync.pollers.listings import poll_listing_catalogue
from stays_sync.schemas.sync import SyncResult
from stays_sync.services.sync_state import PROPERTIES, SyncTracker, run_lock
from stays_sync.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def run_property_sync(
    engine: Engine,
    client: StaysClient,
    dry_run: bool = DRY_RUN,
    queue: Optional[RateLimitedQueue] = None,
    budget_seconds: float = SYNC_MAX_DURATION_SECONDS,
) -> SyncResult:
    """
    Refresh the property catalogue.

    Uses the same tracker state machine as the bookings sync, under the
    "properties" row. Staff-entered manual overrides are preserved.

    Returns:
        SyncResult: status "success", "error" or "skipped"
    """
    try:
        with run_lock(PROPERTIES):
            tracker = SyncTracker(engine, PROPERTIES, dry_run=dry_run)
            tracker.start()
            return _run(engine, client, tracker, dry_run, queue, budget_seconds)
    except SyncConflictError as e:
        logger.warning("sync_skipped_already_running", sync_type=PROPERTIES)
        sync_runs.labels(sync_type=PROPERTIES, status="skipped").inc()
        return SyncResult(sync_type=PROPERTIES, status="skipped", error=str(e))


def _run(
    engine: Engine,
    client: StaysClient,
    tracker: SyncTracker,
    dry_run: bool,
    queue: Optional[RateLimitedQueue],
    budget_seconds: float,
) -> SyncResult:
    bind_sync_context(PROPERTIES)
    started = time.monotonic()
    deadline = Deadline(budget_seconds)
    queue = queue or RateLimitedQueue(DETAIL_FETCH_CONCURRENCY, DETAIL_FETCH_DELAY_SECONDS)
    logger.info("property_sync_started", dry_run=dry_run)

    try:
        with sync_duration.labels(sync_type=PROPERTIES).time():
            listings = poll_listing_catalogue(client, queue, deadline)
            deadline.check("write")
            now = utc_now()
            rows = [build_property_row(listing, now) for listing in listings]
            insert_properties(engine, rows, dry_run=dry_run)

        duration_ms = int((time.monotonic() - started) * 1000)
        tracker.finish("success", duration_ms, properties_count=len(rows))
        sync_runs.labels(sync_type=PROPERTIES, status="success").inc()
        logger.info("property_sync_completed", properties_count=len(rows), duration_ms=duration_ms)
        return SyncResult(
            sync_type=PROPERTIES,
            status="success",
            properties_count=len(rows),
            duration_ms=duration_ms,
        )
    except Exception as e:
        duration_ms = int((time.monotonic() - started) * 1000)
        logger.exception("property_sync_failed", error=str(e), duration_ms=duration_ms)
        tracker.finish("error", duration_ms, error=str(e))
        sync_runs.labels(sync_type=PROPERTIES, status="error").inc()
        return SyncResult(
            sync_type=PROPERTIES, status="error", duration_ms=duration_ms, error=str(e)
        )
    finally:
        clear_sync_context()
