"""
Sync status and manual trigger endpoints.

Triggers return immediately with 202; the run happens in a background task.
A trigger arriving while the same sync is running is rejected with 409 and
nothing is started.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from stays_sync.dependencies import get_db_engine, get_stays_client
from stays_sync.network.client import StaysClient
from stays_sync.schemas.sync import SyncStatusResponse, SyncTriggerResponse
from stays_sync.services.property_sync import run_property_sync
from stays_sync.services.sync import run_bookings_sync
from stays_sync.services.sync_state import BOOKINGS, PROPERTIES, SyncTracker
from stays_sync.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

router = APIRouter()


def _status_response(engine: Engine, sync_type: str) -> SyncStatusResponse:
    row = SyncTracker(engine, sync_type).status()
    return SyncStatusResponse(
        last_sync_at=row.get("last_sync_at"),
        status=row["status"],
        last_error=row.get("last_error"),
        bookings_count=row.get("bookings_count") or 0,
        listings_count=row.get("listings_count") or 0,
        properties_count=row.get("properties_count") or 0,
        duration_ms=row.get("duration_ms"),
    )


def _reject_if_running(engine: Engine, sync_type: str) -> None:
    if SyncTracker(engine, sync_type).is_running():
        logger.info("sync_trigger_rejected", sync_type=sync_type, reason="already_running")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A {sync_type} sync is already running",
        )


@router.get("/sync/status", response_model=SyncStatusResponse)
def get_bookings_sync_status(engine: Engine = Depends(get_db_engine)) -> SyncStatusResponse:
    """
    Current state of the bookings sync.

    Example:
        >>> GET /sync/status
        {"lastSyncAt": "...", "status": "success", "lastError": null,
         "bookingsCount": 412, "listingsCount": 38, "durationMs": 51234}
    """
    try:
        return _status_response(engine, BOOKINGS)
    except Exception as e:
        logger.exception("sync_status_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load sync status") from e


@router.post(
    "/sync/trigger",
    response_model=SyncTriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def trigger_bookings_sync(
    background_tasks: BackgroundTasks,
    engine: Engine = Depends(get_db_engine),
    client: StaysClient = Depends(get_stays_client),
) -> SyncTriggerResponse:
    """
    Start a bookings sync in the background.

    Returns:
        202 with {message, timestamp}; 409 if a bookings sync is running
    """
    try:
        _reject_if_running(engine, BOOKINGS)
        background_tasks.add_task(run_bookings_sync, engine, client)
        logger.info("sync_triggered", sync_type=BOOKINGS)
        return SyncTriggerResponse(message="Sync started", timestamp=utc_now())
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("sync_trigger_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to start sync") from e


@router.get("/sync/properties/status", response_model=SyncStatusResponse)
def get_property_sync_status(engine: Engine = Depends(get_db_engine)) -> SyncStatusResponse:
    """Current state of the property catalogue sync."""
    try:
        return _status_response(engine, PROPERTIES)
    except Exception as e:
        logger.exception("sync_status_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load sync status") from e


@router.post(
    "/sync/properties/trigger",
    response_model=SyncTriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def trigger_property_sync(
    background_tasks: BackgroundTasks,
    engine: Engine = Depends(get_db_engine),
    client: StaysClient = Depends(get_stays_client),
) -> SyncTriggerResponse:
    """Start a property catalogue sync in the background; 409 if one is running."""
    try:
        _reject_if_running(engine, PROPERTIES)
        background_tasks.add_task(run_property_sync, engine, client)
        logger.info("sync_triggered", sync_type=PROPERTIES)
        return SyncTriggerResponse(message="Property sync started", timestamp=utc_now())
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("sync_trigger_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to start sync") from e
