from __future__ import annotations

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from stays_sync.analytics.financials import default_financial_window
from stays_sync.analytics.statistics import (
    booking_statistics,
    cancellation_analysis,
    occupancy_by_property,
)
from stays_sync.db.readers.bookings import get_bookings_in_window, get_listings_index
from stays_sync.dependencies import get_db_engine, get_today
from stays_sync.routes._windows import resolve_window

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/statistics")


def _window(from_date: Optional[date], to_date: Optional[date], today: date) -> tuple[date, date]:
    return resolve_window(from_date, to_date, default_financial_window(today))


@router.get("/bookings")
def get_booking_statistics(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """Totals, lead time, stay length and breakdowns by source, month and weekday."""
    start, end = _window(from_date, to_date, today)
    try:
        with engine.connect() as conn:
            rows = get_bookings_in_window(conn, start, end)
    except Exception as e:
        logger.exception("statistics_query_failed", view="bookings", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load statistics") from e
    return booking_statistics(rows, start, end)


@router.get("/occupancy")
def get_occupancy_statistics(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> list[dict[str, Any]]:
    """Occupied and blocked nights per unit, clipped to the window."""
    start, end = _window(from_date, to_date, today)
    try:
        with engine.connect() as conn:
            rows = get_bookings_in_window(conn, start, end)
            listings = get_listings_index(conn)
    except Exception as e:
        logger.exception("statistics_query_failed", view="occupancy", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load statistics") from e
    return occupancy_by_property(rows, listings, start, end)


@router.get("/cancellations")
def get_cancellation_statistics(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    start, end = _window(from_date, to_date, today)
    try:
        with engine.connect() as conn:
            rows = get_bookings_in_window(conn, start, end, include_blocked=False)
    except Exception as e:
        logger.exception("statistics_query_failed", view="cancellations", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load statistics") from e
    return cancellation_analysis(rows, start, end)
