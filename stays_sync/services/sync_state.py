"""
Sync state tracker.

Each sync domain has one ``sync_status`` row moving through:

    never -> running -> success | error -> running -> ...

The "already running" guard is advisory: it reads the row and refuses to start
while another run holds a fresh ``running`` lease. A lease older than
``SYNC_RUNNING_TIMEOUT_MINUTES`` is treated as abandoned (the process died
mid-run) so a crash cannot block future runs. Within one process a lock per
domain closes the gap between the read and the write.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Callable, Iterator, Optional

import structlog
from sqlalchemy.engine import Engine

from stays_sync.config import SYNC_RUNNING_TIMEOUT_MINUTES
from stays_sync.db.readers.sync_status import get_sync_status
from stays_sync.db.writers.sync_status import mark_finished, mark_running
from stays_sync.errors import SyncConflictError
from stays_sync.utils.datetime import ensure_aware, utc_now

logger = structlog.get_logger(__name__)

BOOKINGS = "bookings"
PROPERTIES = "properties"
ENRICHMENT = "enrichment"

TRANSITIONS: dict[str, set[str]] = {
    "never": {"running"},
    "success": {"running"},
    "error": {"running"},
    "running": {"success", "error"},
}

_locks: dict[str, threading.Lock] = {
    BOOKINGS: threading.Lock(),
    PROPERTIES: threading.Lock(),
    ENRICHMENT: threading.Lock(),
}


def can_transition(current: str, target: str) -> bool:
    """Return True if the state machine allows ``current -> target``."""
    return target in TRANSITIONS.get(current, set())


def is_sync_running(
    status: dict[str, Any],
    now: datetime,
    timeout_minutes: int = SYNC_RUNNING_TIMEOUT_MINUTES,
) -> bool:
    """
    Return True if ``status`` holds a live running lease.

    Args:
        status: Row from ``get_sync_status``
        now: Current UTC time
        timeout_minutes: Lease age after which a running row is considered stale
    """
    if status.get("status") != "running":
        return False

    updated_at = status.get("updated_at")
    if updated_at is None:
        return True

    age = now - ensure_aware(updated_at)
    if age > timedelta(minutes=timeout_minutes):
        logger.warning(
            "stale_running_lease",
            sync_type=status.get("sync_type"),
            age_minutes=round(age.total_seconds() / 60, 1),
        )
        return False
    return True


@contextmanager
def run_lock(sync_type: str) -> Iterator[None]:
    """
    Hold the in-process lock for ``sync_type`` without blocking.

    Raises:
        SyncConflictError: If another thread in this process holds it
    """
    lock = _locks.setdefault(sync_type, threading.Lock())
    if not lock.acquire(blocking=False):
        raise SyncConflictError(sync_type)
    try:
        yield
    finally:
        lock.release()


class SyncTracker:
    """
    Reads and advances the ``sync_status`` row for one sync domain.

    Args:
        engine: SQLAlchemy Engine
        sync_type: "bookings" or "properties"
        dry_run: If True, transitions are logged but not written
        clock: UTC clock (injected in tests)
    """

    def __init__(
        self,
        engine: Engine,
        sync_type: str,
        dry_run: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.engine = engine
        self.sync_type = sync_type
        self.dry_run = dry_run
        self._clock = clock

    def status(self) -> dict[str, Any]:
        with self.engine.connect() as conn:
            return get_sync_status(conn, self.sync_type)

    def is_running(self) -> bool:
        return is_sync_running(self.status(), self._clock())

    def start(self) -> None:
        """
        Enter ``running``.

        Raises:
            SyncConflictError: If a live run already holds the lease
        """
        if self.is_running():
            raise SyncConflictError(self.sync_type)

        if self.dry_run:
            logger.info("[DRY RUN] Would mark sync running", sync_type=self.sync_type)
            return

        with self.engine.begin() as conn:
            mark_running(conn, self.sync_type, self._clock())

    def finish(
        self,
        status: str,
        duration_ms: int,
        error: Optional[str] = None,
        **counts: int,
    ) -> None:
        """
        Record a terminal state.

        Args:
            status: "success" or "error"
            duration_ms: Run duration
            error: Error message for failed runs
            **counts: bookings_count, listings_count and/or properties_count
        """
        if not can_transition("running", status):
            raise ValueError(f"Invalid terminal sync status: {status}")

        if self.dry_run:
            logger.info("[DRY RUN] Would mark sync finished", sync_type=self.sync_type, status=status)
            return

        with self.engine.begin() as conn:
            mark_finished(
                conn,
                self.sync_type,
                status,
                self._clock(),
                duration_ms=duration_ms,
                error=error,
                **counts,
            )
