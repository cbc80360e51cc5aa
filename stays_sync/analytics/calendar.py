"""Per-unit reservation calendar."""

from datetime import date, timedelta
from typing import Any

from stays_sync.analytics.intervals import ListingsIndex, Row, in_window

CALENDAR_TYPES = {"normal": "reserved", "blocked": "blocked", "provisional": "provisional"}


def default_calendar_window(today: date) -> tuple[date, date]:
    """One month back to three months ahead."""
    return today - timedelta(days=30), today + timedelta(days=90)


def _reservation_entry(row: Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "bookingId": row.get("booking_code"),
        "guestName": row["guest_name"],
        "startDate": row["check_in_date"].isoformat(),
        "endDate": row["check_out_date"].isoformat(),
        "type": CALENDAR_TYPES.get(row.get("type") or "normal", "reserved"),
        "platform": row.get("platform"),
        "platformImage": row.get("platform_image"),
        "nights": row.get("nights") or 0,
        "guestCount": row.get("guest_count") or 0,
        "priceValue": row.get("price_value"),
        "priceCurrency": row.get("price_currency"),
    }


def build_calendar(
    rows: list[Row], listings: ListingsIndex, start: date, end: date
) -> dict[str, Any]:
    """
    Group bookings overlapping ``start``..``end`` under their units.

    Every known unit is listed, including units with no reservations in the
    window. Units are sorted by code, reservations by start date.
    """
    units: dict[str, dict[str, Any]] = {
        listing_id: {
            "id": listing_id,
            "code": info.get("code") or listing_id,
            "name": info.get("name"),
            "reservations": [],
        }
        for listing_id, info in listings.items()
    }

    for row in in_window(rows, start, end):
        unit = units.setdefault(
            row["listing_id"],
            {
                "id": row["listing_id"],
                "code": row.get("apartment_code") or row["listing_id"],
                "name": row.get("listing_name"),
                "reservations": [],
            },
        )
        unit["reservations"].append(_reservation_entry(row))

    ordered = sorted(units.values(), key=lambda u: u["code"])
    for unit in ordered:
        unit["reservations"].sort(key=lambda r: (r["startDate"], r["id"]))

    return {
        "units": ordered,
        "period": {"from": start.isoformat(), "to": end.isoformat()},
    }
