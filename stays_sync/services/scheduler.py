"""
APScheduler jobs driving the sync pipelines.

    bookings_sync   every SYNC_INTERVAL_MINUTES, followed by client enrichment
    property_sync   daily at PROPERTY_SYNC_HOUR:00
    initial_sync    once at startup, only if bookings have never been synced

Jobs run on the scheduler's thread pool. Each job builds nothing itself: the
engine and Stays.net client are handed in by the caller.
"""

from typing import Callable

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.engine import Engine

from stays_sync.config import PROPERTY_SYNC_HOUR, SYNC_INTERVAL_MINUTES, TIMEZONE
from stays_sync.network.client import StaysClient
from stays_sync.services.enrichment import enrich_bookings_with_client_data
from stays_sync.services.property_sync import run_property_sync
from stays_sync.services.sync import run_bookings_sync
from stays_sync.services.sync_state import BOOKINGS, PROPERTIES, SyncTracker

logger = structlog.get_logger(__name__)


def run_scheduled_bookings_sync(engine: Engine, client_factory: Callable[[], StaysClient]) -> None:
    """Bookings sync followed by enrichment, skipped while another run is active."""
    if SyncTracker(engine, BOOKINGS).is_running():
        logger.info("scheduled_sync_skipped", sync_type=BOOKINGS, reason="already_running")
        return

    client = client_factory()
    result = run_bookings_sync(engine, client)
    logger.info("scheduled_sync_finished", sync_type=BOOKINGS, status=result.status)

    if result.status == "success":
        enrichment = enrich_bookings_with_client_data(engine, client)
        logger.info("scheduled_enrichment_finished", enriched=enrichment.enriched_count)


def run_scheduled_property_sync(engine: Engine, client_factory: Callable[[], StaysClient]) -> None:
    """Daily property catalogue refresh."""
    if SyncTracker(engine, PROPERTIES).is_running():
        logger.info("scheduled_sync_skipped", sync_type=PROPERTIES, reason="already_running")
        return

    result = run_property_sync(engine, client_factory())
    logger.info("scheduled_sync_finished", sync_type=PROPERTIES, status=result.status)


def run_initial_sync(engine: Engine, client_factory: Callable[[], StaysClient]) -> None:
    """Populate an empty mirror right after the first deployment."""
    status = SyncTracker(engine, BOOKINGS).status()
    if status["status"] != "never":
        logger.info("initial_sync_not_needed", status=status["status"])
        return

    logger.info("initial_sync_started")
    run_scheduled_bookings_sync(engine, client_factory)


def _guarded(job: Callable[[Engine, Callable[[], StaysClient]], None]) -> Callable[..., None]:
    def wrapper(engine: Engine, client_factory: Callable[[], StaysClient]) -> None:
        try:
            job(engine, client_factory)
        except Exception as e:
            # Keep the scheduler thread alive; the next tick retries
            logger.exception("scheduled_job_failed", job=job.__name__, error=str(e))

    wrapper.__name__ = job.__name__
    return wrapper


def build_scheduler(
    engine: Engine,
    client_factory: Callable[[], StaysClient],
    run_initial: bool = True,
) -> BackgroundScheduler:
    """
    Create (but do not start) the scheduler with all sync jobs registered.

    Args:
        engine: SQLAlchemy Engine shared by all jobs
        client_factory: Returns the Stays.net client for a job run
        run_initial: Register the one-off startup sync

    Returns:
        BackgroundScheduler
    """
    scheduler = BackgroundScheduler(timezone=TIMEZONE)
    args = [engine, client_factory]

    scheduler.add_job(
        _guarded(run_scheduled_bookings_sync),
        IntervalTrigger(minutes=SYNC_INTERVAL_MINUTES),
        args=args,
        id="bookings_sync",
        name=f"Bookings Sync (every {SYNC_INTERVAL_MINUTES} min)",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.add_job(
        _guarded(run_scheduled_property_sync),
        CronTrigger(hour=PROPERTY_SYNC_HOUR, minute=0),
        args=args,
        id="property_sync",
        name=f"Daily Property Sync ({PROPERTY_SYNC_HOUR:02d}:00)",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    if run_initial:
        # No trigger: runs once as soon as the scheduler starts
        scheduler.add_job(
            _guarded(run_initial_sync),
            args=args,
            id="initial_sync",
            name="Initial Bookings Sync",
            max_instances=1,
            replace_existing=True,
        )

    logger.info(
        "scheduler_configured",
        interval_minutes=SYNC_INTERVAL_MINUTES,
        property_sync_hour=PROPERTY_SYNC_HOUR,
        timezone=TIMEZONE,
    )
    return scheduler
