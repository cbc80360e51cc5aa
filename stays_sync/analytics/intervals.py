"""
Interval primitives shared by every aggregation view.

A booking occupies the nights ``[check_in_date, check_out_date)``: the checkout
day itself is free for the next guest. A booking is relevant to a query window
``[start, end]`` when ``check_out_date >= start and check_in_date <= end``.

All functions take plain row dicts (as returned by ``db.readers.bookings``) and
are free of I/O.
"""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

Row = dict[str, Any]
ListingsIndex = dict[str, dict[str, Any]]


def rounded(value: float, digits: int = 1) -> float:
    """Round half away from zero (2.25 -> 2.3), unlike Python's banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def overlaps(row: Row, start: date, end: date) -> bool:
    """True if the booking intersects the window ``start``..``end``."""
    return row["check_out_date"] >= start and row["check_in_date"] <= end


def in_window(rows: Iterable[Row], start: date, end: date) -> list[Row]:
    return [row for row in rows if overlaps(row, start, end)]


def is_blocked(row: Row) -> bool:
    return row.get("type") == "blocked"


def guest_bookings(rows: Iterable[Row]) -> list[Row]:
    """Rows with guest and financial meaning (owner blocks removed)."""
    return [row for row in rows if not is_blocked(row)]


def occupies(row: Row, day: date) -> bool:
    """
    True if the booking holds its unit on the night of ``day``.

    Same-day bookings (check-in == check-out) hold their single day.
    """
    check_in, check_out = row["check_in_date"], row["check_out_date"]
    if check_in == check_out:
        return day == check_in
    return check_in <= day < check_out


def period_days(start: date, end: date) -> int:
    """Number of calendar days in ``start``..``end`` inclusive."""
    return (end - start).days + 1


def occupancy_for_day(rows: Iterable[Row], day: date, total_units: int) -> dict[str, int]:
    """
    Unit occupancy on ``day``.

    A unit counts as occupied when any booking (guest stay or owner block)
    holds it that night; ``blocked`` reports how many of those are held only
    by blocks. ``available + occupied == total`` always holds.

    Returns:
        dict: {"available", "occupied", "blocked", "total"}
    """
    guest_units: set[str] = set()
    blocked_units: set[str] = set()
    for row in rows:
        if occupies(row, day):
            (blocked_units if is_blocked(row) else guest_units).add(row["listing_id"])

    occupied = min(len(guest_units | blocked_units), total_units)
    return {
        "available": total_units - occupied,
        "occupied": occupied,
        "blocked": len(blocked_units - guest_units),
        "total": total_units,
    }


def occupied_units(rows: Iterable[Row], day: date) -> set[str]:
    """Listing ids held on ``day`` by any booking."""
    return {row["listing_id"] for row in rows if occupies(row, day)}


def nights_in_window(row: Row, start: date, end: date) -> int:
    """
    Nights of the booking that fall inside ``start``..``end``.

    A same-day booking holds its single day, matching ``occupies``.
    """
    if row["check_in_date"] == row["check_out_date"]:
        return 1 if start <= row["check_in_date"] <= end else 0
    first = max(row["check_in_date"], start)
    last = min(row["check_out_date"], end + timedelta(days=1))
    return max((last - first).days, 0)


def channel_of(row: Row) -> str:
    """Channel label used by financial and statistics rollups."""
    return row.get("platform") or row.get("channel_name") or "Direct"


def price_of(row: Row) -> Optional[float]:
    return row.get("price_value")


def total_revenue(rows: Iterable[Row]) -> float:
    """Sum of known prices; bookings with an unknown (None) price add nothing."""
    return sum(price for price in (price_of(row) for row in rows) if price is not None)


def priced(rows: Iterable[Row]) -> list[Row]:
    """Rows with a known price; averages are taken over these only."""
    return [row for row in rows if price_of(row) is not None]


def unpriced_count(rows: Iterable[Row]) -> int:
    return sum(1 for row in rows if price_of(row) is None)
