"""
Writes to the ``sync_status`` tracker table.

Both writers upsert so the row is created on first use.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.engine import Connection

from stays_sync.db.writers._upsert import upsert_rows
from stays_sync.metrics import db_operations
from stays_sync.models.sync_status import SyncStatus

logger = structlog.get_logger(__name__)


def mark_running(conn: Connection, sync_type: str, now: datetime) -> None:
    """Enter ``running``: only status and the lease timestamp change."""
    upsert_rows(
        conn,
        SyncStatus,
        [{"sync_type": sync_type, "status": "running", "updated_at": now}],
        conflict_column="sync_type",
        update_columns=["status", "updated_at"],
    )
    db_operations.labels(operation="upsert", table="sync_status").inc()
    logger.info("sync_status_running", sync_type=sync_type)


def mark_finished(
    conn: Connection,
    sync_type: str,
    status: str,
    now: datetime,
    duration_ms: int,
    error: Optional[str] = None,
    bookings_count: Optional[int] = None,
    listings_count: Optional[int] = None,
    properties_count: Optional[int] = None,
) -> None:
    """
    Record a terminal state with ``last_sync_at``, counts and duration.

    A successful run clears ``last_error``. Counts left as None keep their
    stored value (a failed run does not zero the previous counts).
    """
    row: dict[str, object] = {
        "sync_type": sync_type,
        "status": status,
        "last_sync_at": now,
        "last_error": error,
        "duration_ms": duration_ms,
        "updated_at": now,
    }
    counts = {
        "bookings_count": bookings_count,
        "listings_count": listings_count,
        "properties_count": properties_count,
    }
    row.update({key: value for key, value in counts.items() if value is not None})

    upsert_rows(
        conn,
        SyncStatus,
        [row],
        conflict_column="sync_type",
        update_columns=[col for col in row if col != "sync_type"],
    )
    db_operations.labels(operation="upsert", table="sync_status").inc()
    logger.info("sync_status_finished", sync_type=sync_type, status=status, duration_ms=duration_ms)
