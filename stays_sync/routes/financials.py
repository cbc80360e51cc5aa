"""
Revenue views over the bookings mirror.

Blocked entries are excluded by the analytics layer, not in SQL, so the
listing universe used for RevPAR still includes units that are only blocked.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from stays_sync.analytics.financials import (
    default_financial_window,
    financial_panel,
    financial_summary,
    financials_by_channel,
    financials_by_property,
    panel_window,
    revenue_trend,
    trend_window,
)
from stays_sync.db.readers.bookings import get_bookings_in_window, get_listings_index
from stays_sync.dependencies import get_db_engine, get_today
from stays_sync.routes._windows import resolve_window

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/financials")


def _load(engine: Engine, start: date, end: date) -> tuple[list[dict], dict]:
    try:
        with engine.connect() as conn:
            return get_bookings_in_window(conn, start, end), get_listings_index(conn)
    except Exception as e:
        logger.exception("financials_query_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load financials") from e


@router.get("/summary")
def get_financial_summary(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """
    Revenue, ADR, RevPAR and occupancy for the window (default: last 30 days).

    Example:
        >>> GET /financials/summary?from=2024-03-01&to=2024-03-31
        {"totalRevenue": 18250.0, "averageDailyRate": 312.5, "revPAR": 147.2, ...}
    """
    start, end = resolve_window(from_date, to_date, default_financial_window(today))
    rows, listings = _load(engine, start, end)
    return financial_summary(rows, listings, start, end)


@router.get("/by-property")
def get_financials_by_property(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> list[dict[str, Any]]:
    start, end = resolve_window(from_date, to_date, default_financial_window(today))
    rows, listings = _load(engine, start, end)
    return financials_by_property(rows, listings, start, end)


@router.get("/by-channel")
def get_financials_by_channel(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> list[dict[str, Any]]:
    start, end = resolve_window(from_date, to_date, default_financial_window(today))
    rows, _ = _load(engine, start, end)
    return financials_by_channel(rows, start, end)


@router.get("/trend")
def get_revenue_trend(
    months: int = Query(12, ge=1, le=36),
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> list[dict[str, Any]]:
    """Monthly revenue for the last ``months`` months, oldest first."""
    start, end = trend_window(today, months)
    rows, _ = _load(engine, start, end)
    return revenue_trend(rows, today, months)


@router.get("/panel")
def get_financial_panel(
    engine: Engine = Depends(get_db_engine),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """Month-over-month and year-to-date KPIs with a next-month projection."""
    start, end = panel_window(today)
    rows, _ = _load(engine, start, end)
    return financial_panel(rows, today)
