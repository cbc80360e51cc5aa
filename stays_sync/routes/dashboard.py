from datetime import date
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.engine import Engine

from stays_sync.analytics.dashboard import build_dashboard, dashboard_window
from stays_sync.db.readers.bookings import get_bookings_in_window, get_listings_index
from stays_sync.db.readers.sync_status import get_sync_status
from stays_sync.dependencies import get_db_engine, get_today
from stays_sync.services.sync_state import BOOKINGS

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/dashboard")
def get_dashboard(
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """
    Operations dashboard for the local business date.

    Returns:
        dict: weekData, occupancyStats, occupancyNext30Days, reservationOrigins,
        occupancyTrend, availableUnits, lastSyncAt, syncStatus
    """
    start, end = dashboard_window(today)
    try:
        with engine.connect() as conn:
            rows = get_bookings_in_window(conn, start, end)
            listings = get_listings_index(conn)
            status = get_sync_status(conn, BOOKINGS)
    except Exception as e:
        logger.exception("dashboard_query_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load dashboard") from e

    return build_dashboard(rows, listings, today, status)
