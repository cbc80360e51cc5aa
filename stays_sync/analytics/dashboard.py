"""Operations dashboard: this week's arrivals/departures, occupancy and channel mix."""

from datetime import date, timedelta
from typing import Any, Optional

from stays_sync.analytics.intervals import (
    ListingsIndex,
    Row,
    channel_of,
    guest_bookings,
    in_window,
    occupancy_for_day,
    occupied_units,
    rounded,
)
from stays_sync.normalizers.platforms import platform_color

WEEKDAY_LABELS = ("SEG", "TER", "QUA", "QUI", "SEX", "SÁB", "DOM")

# Checkouts first: the unit has to be turned around before the next arrival
GUEST_STATUS_ORDER = {"checkout": 0, "checkin": 1, "staying": 2}

WEEK_DAYS = 7
FORWARD_DAYS = 30
TREND_DAYS = 30


def dashboard_window(today: date) -> tuple[date, date]:
    """Date range of bookings the dashboard needs."""
    return today - timedelta(days=TREND_DAYS - 1), today + timedelta(days=FORWARD_DAYS - 1)


def guest_status(row: Row, day: date) -> str:
    if day == row["check_in_date"]:
        return "checkin"
    if day == row["check_out_date"]:
        return "checkout"
    return "staying"


def _guest_entry(row: Row, day: date) -> dict[str, Any]:
    return {
        "id": row["id"],
        "bookingId": row.get("booking_code"),
        "guestName": row["guest_name"],
        "apartmentCode": row["apartment_code"],
        "status": guest_status(row, day),
        "checkInDate": row["check_in_date"].isoformat(),
        "checkInTime": row.get("check_in_time"),
        "checkOutDate": row["check_out_date"].isoformat(),
        "checkOutTime": row.get("check_out_time"),
        "guestCount": row.get("guest_count") or 0,
        "nights": row.get("nights") or 0,
        "platform": row.get("platform"),
        "platformImage": row.get("platform_image"),
    }


def guests_for_day(rows: list[Row], day: date) -> list[dict[str, Any]]:
    """
    Guests present on ``day`` (check-in through check-out inclusive), checkouts
    first, then checkins, then staying guests, each group by apartment code.
    """
    guests = [
        _guest_entry(row, day)
        for row in guest_bookings(rows)
        if row["check_in_date"] <= day <= row["check_out_date"]
    ]
    guests.sort(key=lambda g: (GUEST_STATUS_ORDER[g["status"]], g["apartmentCode"] or ""))
    return guests


def week_data(rows: list[Row], today: date) -> list[dict[str, Any]]:
    days = []
    for offset in range(WEEK_DAYS):
        day = today + timedelta(days=offset)
        days.append(
            {
                "date": day.isoformat(),
                "dayOfWeek": WEEKDAY_LABELS[day.weekday()],
                "isToday": day == today,
                "guests": guests_for_day(rows, day),
            }
        )
    return days


def occupancy_over(rows: list[Row], start: date, days: int, total_units: int) -> dict[str, int]:
    """Unit-days occupied across ``days`` consecutive days starting at ``start``."""
    occupied = sum(
        occupancy_for_day(rows, start + timedelta(days=i), total_units)["occupied"]
        for i in range(days)
    )
    total = total_units * days
    return {"available": total - occupied, "occupied": occupied, "total": total}


def occupancy_trend(rows: list[Row], today: date, total_units: int) -> list[dict[str, Any]]:
    trend = []
    for offset in range(TREND_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        stats = occupancy_for_day(rows, day, total_units)
        rate = stats["occupied"] / total_units * 100 if total_units else 0.0
        trend.append({"date": day.isoformat(), "rate": rounded(rate, 1)})
    return trend


def reservation_origins(rows: list[Row], today: date) -> list[dict[str, Any]]:
    """Guest bookings overlapping the next 30 days, counted per channel."""
    window = in_window(guest_bookings(rows), today, today + timedelta(days=FORWARD_DAYS - 1))
    counts: dict[str, int] = {}
    for row in window:
        name = channel_of(row)
        counts[name] = counts.get(name, 0) + 1

    origins = [
        {"name": name, "count": count, "color": platform_color(name)}
        for name, count in counts.items()
    ]
    origins.sort(key=lambda o: (-o["count"], o["name"]))
    return origins


def build_dashboard(
    rows: list[Row],
    listings: ListingsIndex,
    today: date,
    sync_status: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """
    Assemble the dashboard payload.

    Args:
        rows: Bookings (blocks included) overlapping ``dashboard_window(today)``
        listings: Listing universe from ``get_listings_index``
        today: Local business date
        sync_status: Tracker row for the bookings sync

    Returns:
        dict ready for JSON serialization
    """
    total_units = len(listings)
    busy_today = occupied_units(rows, today)
    available_units = sorted(
        (info.get("code") or listing_id)
        for listing_id, info in listings.items()
        if listing_id not in busy_today
    )

    stats_today = occupancy_for_day(rows, today, total_units)
    sync_status = sync_status or {}
    last_sync_at = sync_status.get("last_sync_at")

    return {
        "weekData": week_data(rows, today),
        "occupancyStats": {
            "available": stats_today["available"],
            "occupied": stats_today["occupied"],
            "total": stats_today["total"],
        },
        "occupancyNext30Days": occupancy_over(rows, today, FORWARD_DAYS, total_units),
        "reservationOrigins": reservation_origins(rows, today),
        "occupancyTrend": occupancy_trend(rows, today, total_units),
        "availableUnits": available_units,
        "lastSyncAt": last_sync_at.isoformat() if last_sync_at else None,
        "syncStatus": sync_status.get("status", "never"),
    }
