"""
Guest analytics over the whole booking history (owner blocks excluded in SQL).
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.engine import Engine

from stays_sync.analytics.guests import guest_demographics, guest_summary, returning_guests
from stays_sync.db.readers.bookings import get_all_bookings
from stays_sync.dependencies import get_db_engine

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/guests")


def _history(engine: Engine) -> list[dict[str, Any]]:
    try:
        with engine.connect() as conn:
            return get_all_bookings(conn)
    except Exception as e:
        logger.exception("guests_query_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load guests") from e


@router.get("/summary")
def get_guest_summary(engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    return guest_summary(_history(engine))


@router.get("/returning")
def get_returning_guests(engine: Engine = Depends(get_db_engine)) -> list[dict[str, Any]]:
    """Guests with more than one stay, most bookings first."""
    return returning_guests(_history(engine))


@router.get("/demographics")
def get_guest_demographics(engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    """Country, language, group-size and family breakdowns."""
    return guest_demographics(_history(engine))
