"""
Read queries over ``unified_bookings`` for the aggregation views.

Rows come back as plain dicts keyed by column name; the analytics functions
never see ORM objects or connections.
"""

from datetime import date
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.engine import Connection

from stays_sync.models.bookings import UnifiedBooking


def get_bookings_in_window(
    conn: Connection,
    start: date,
    end: date,
    include_blocked: bool = True,
) -> list[dict[str, Any]]:
    """
    Fetch bookings whose stay overlaps ``start``..``end``.

    Overlap is ``check_out_date >= start AND check_in_date <= end``, served by the
    (check_out_date, check_in_date) index.

    Args:
        conn: Open connection
        start: First day of the window (inclusive)
        end: Last day of the window (inclusive)
        include_blocked: When False, owner blocks are filtered out in SQL

    Returns:
        list[dict]: Matching rows ordered by check-in date
    """
    stmt = select(UnifiedBooking.__table__).where(
        UnifiedBooking.check_out_date >= start,
        UnifiedBooking.check_in_date <= end,
    )
    if not include_blocked:
        stmt = stmt.where(UnifiedBooking.type != "blocked")
    stmt = stmt.order_by(UnifiedBooking.check_in_date, UnifiedBooking.id)

    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_all_bookings(conn: Connection, include_blocked: bool = False) -> list[dict[str, Any]]:
    """Fetch every booking (guest analytics work over the whole history)."""
    stmt = select(UnifiedBooking.__table__)
    if not include_blocked:
        stmt = stmt.where(UnifiedBooking.type != "blocked")
    stmt = stmt.order_by(UnifiedBooking.check_in_date, UnifiedBooking.id)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_listings_index(conn: Connection) -> dict[str, dict[str, Any]]:
    """
    Build the listing universe from the bookings mirror.

    Each listing takes its code and name from one booking row: rows carrying a
    real apartment code win over rows that fell back to the listing id (listing
    fetch failed), then the most recently synced row wins.

    Returns:
        dict: listing id -> {"code": apartment code, "name": listing name}
    """
    is_fallback = case((UnifiedBooking.apartment_code == UnifiedBooking.listing_id, 1), else_=0)
    ranked = select(
        UnifiedBooking.listing_id,
        UnifiedBooking.apartment_code,
        UnifiedBooking.listing_name,
        func.row_number()
        .over(
            partition_by=UnifiedBooking.listing_id,
            order_by=[is_fallback, UnifiedBooking.synced_at.desc(), UnifiedBooking.id.desc()],
        )
        .label("row_rank"),
    ).subquery()
    stmt = select(ranked.c.listing_id, ranked.c.apartment_code, ranked.c.listing_name).where(
        ranked.c.row_rank == 1
    )

    return {
        row.listing_id: {"code": row.apartment_code, "name": row.listing_name}
        for row in conn.execute(stmt)
    }


def get_bookings_pending_enrichment(conn: Connection, limit: int) -> list[dict[str, Any]]:
    """
    Fetch bookings with a client id that have not been enriched yet.

    Returns:
        list[dict]: Rows with ``id`` and ``client_id``, at most ``limit``
    """
    stmt = (
        select(UnifiedBooking.id, UnifiedBooking.client_id)
        .where(UnifiedBooking.client_id.is_not(None), UnifiedBooking.enriched_at.is_(None))
        .order_by(UnifiedBooking.check_in_date.desc())
        .limit(limit)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]
