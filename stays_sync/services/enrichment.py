"""Client enrichment: copy guest demographics from Stays.net clients onto bookings."""

import time
from collections import defaultdict
from typing import Optional

import structlog
from sqlalchemy.engine import Engine

from stays_sync.config import (
    CLIENT_FETCH_CONCURRENCY,
    CLIENT_FETCH_DELAY_SECONDS,
    DRY_RUN,
    ENRICHMENT_BATCH_LIMIT,
)
from stays_sync.db.readers.bookings import get_bookings_pending_enrichment
from stays_sync.db.writers.enrichment import apply_client_demographics
from stays_sync.errors import SyncConflictError
from stays_sync.logging_config import bind_sync_context, clear_sync_context
from stays_sync.metrics import records_synced, sync_runs
from stays_sync.network.client import StaysClient
from stays_sync.network.queue import RateLimitedQueue
from stays_sync.pollers.clients import poll_clients
from stays_sync.schemas.sync import SyncResult
from stays_sync.services.sync_state import ENRICHMENT, run_lock
from stays_sync.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def enrich_bookings_with_client_data(
    engine: Engine,
    client: StaysClient,
    limit: int = ENRICHMENT_BATCH_LIMIT,
    dry_run: bool = DRY_RUN,
    queue: Optional[RateLimitedQueue] = None,
) -> SyncResult:
    """
    Enrich up to ``limit`` not-yet-enriched bookings with client demographics.

    Each unique client is fetched once. Bookings whose client fetch fails stay
    pending and are retried on the next run.

    Returns:
        SyncResult: ``enriched_count`` holds the number of bookings updated
    """
    try:
        with run_lock(ENRICHMENT):
            return _run(engine, client, limit, dry_run, queue)
    except SyncConflictError as e:
        logger.warning("enrichment_skipped_already_running")
        return SyncResult(sync_type=ENRICHMENT, status="skipped", error=str(e))


def _run(
    engine: Engine,
    client: StaysClient,
    limit: int,
    dry_run: bool,
    queue: Optional[RateLimitedQueue],
) -> SyncResult:
    bind_sync_context(ENRICHMENT)
    started = time.monotonic()
    queue = queue or RateLimitedQueue(CLIENT_FETCH_CONCURRENCY, CLIENT_FETCH_DELAY_SECONDS)

    try:
        with engine.connect() as conn:
            pending = get_bookings_pending_enrichment(conn, limit)

        if not pending:
            logger.info("enrichment_nothing_pending")
            return SyncResult(sync_type=ENRICHMENT, status="success")

        bookings_by_client: dict[str, list[str]] = defaultdict(list)
        for row in pending:
            bookings_by_client[row["client_id"]].append(row["id"])

        logger.info("enrichment_started", bookings=len(pending), clients=len(bookings_by_client))
        clients = poll_clients(client, bookings_by_client.keys(), queue)

        enriched = apply_client_demographics(
            engine, dict(bookings_by_client), clients, utc_now(), dry_run=dry_run
        )
        records_synced.labels(entity_type="clients").inc(len(clients))
        sync_runs.labels(sync_type=ENRICHMENT, status="success").inc()
        return SyncResult(
            sync_type=ENRICHMENT,
            status="success",
            enriched_count=enriched,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except Exception as e:
        logger.exception("enrichment_failed", error=str(e))
        sync_runs.labels(sync_type=ENRICHMENT, status="error").inc()
        return SyncResult(sync_type=ENRICHMENT, status="error", error=str(e))
    finally:
        clear_sync_context()
