from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from stays_sync.analytics.calendar import build_calendar, default_calendar_window
from stays_sync.db.readers.bookings import get_bookings_in_window, get_listings_index
from stays_sync.dependencies import get_db_engine, get_today
from stays_sync.routes._windows import resolve_window

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/calendar")
def get_calendar(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """
    Reservations and blocks per unit for the requested window.

    Defaults to one month back and three months forward.
    """
    start, end = resolve_window(from_date, to_date, default_calendar_window(today))
    try:
        with engine.connect() as conn:
            rows = get_bookings_in_window(conn, start, end)
            listings = get_listings_index(conn)
    except Exception as e:
        logger.exception("calendar_query_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load calendar") from e

    return build_calendar(rows, listings, start, end)
