"""Booking, occupancy and cancellation statistics for a date window."""

from datetime import date
from typing import Any

from stays_sync.analytics.intervals import (
    ListingsIndex,
    Row,
    channel_of,
    in_window,
    is_blocked,
    nights_in_window,
    period_days,
    rounded,
    total_revenue,
)
from stays_sync.utils.datetime import ensure_aware, parse_date

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
CANCELED_STATUSES = {"canceled", "cancelled", "3"}
ADVANCE_NOTICE_NOTE = (
    "Approximation using the last update time; Stays.net does not expose the cancellation timestamp"
)


def is_canceled(row: Row) -> bool:
    return str(row.get("status") or "").strip().lower() in CANCELED_STATUSES


def _bump(counter: dict[str, int], key: str) -> None:
    counter[key] = counter.get(key, 0) + 1


def booking_statistics(rows: list[Row], start: date, end: date) -> dict[str, Any]:
    """
    Counts and averages over bookings overlapping the window.

    Owner blocks are counted in ``blockedDates`` only. Averages are taken over
    confirmed (non-cancelled) bookings; lead time is days from creation to
    check-in, ignoring bookings created after arrival.
    """
    total = confirmed = canceled = blocked = 0
    lead_time = stay_length = guests = 0
    by_source: dict[str, int] = {}
    by_month: dict[str, int] = {}
    by_weekday: dict[str, int] = {}

    for row in in_window(rows, start, end):
        if is_blocked(row):
            blocked += 1
            continue

        total += 1
        if is_canceled(row):
            canceled += 1
        else:
            confirmed += 1

        created = parse_date(row.get("creation_date"))
        if created is not None:
            lead = (row["check_in_date"] - created).days
            if lead >= 0:
                lead_time += lead

        stay_length += row.get("nights") or 1
        guests += row.get("guest_count") or 1

        check_in = row["check_in_date"]
        _bump(by_source, channel_of(row))
        _bump(by_month, check_in.strftime("%Y-%m"))
        _bump(by_weekday, WEEKDAY_NAMES[check_in.weekday()])

    def average(value: int) -> float:
        return rounded(value / confirmed, 1) if confirmed else 0.0

    return {
        "totalBookings": total,
        "confirmedBookings": confirmed,
        "canceledBookings": canceled,
        "blockedDates": blocked,
        "cancellationRate": rounded(canceled / total * 100, 1) if total else 0.0,
        "averageLeadTime": average(lead_time),
        "averageStayLength": average(stay_length),
        "totalGuests": guests,
        "averageGuestsPerBooking": average(guests),
        "bySource": by_source,
        "byMonth": by_month,
        "byDayOfWeek": by_weekday,
        "period": {"from": start.isoformat(), "to": end.isoformat()},
    }


def occupancy_by_property(
    rows: list[Row], listings: ListingsIndex, start: date, end: date
) -> list[dict[str, Any]]:
    """
    Occupied and blocked nights per unit inside the window.

    Nights are clipped to the window. Blocked nights reduce the nights the
    unit could have sold, so occupancy = occupied / (days - blocked).
    """
    days = period_days(start, end)
    units: dict[str, dict[str, Any]] = {
        listing_id: {"code": info.get("code"), "name": info.get("name"), "occupied": 0, "blocked": 0}
        for listing_id, info in listings.items()
    }

    for row in in_window(rows, start, end):
        unit = units.setdefault(
            row["listing_id"],
            {
                "code": row.get("apartment_code"),
                "name": row.get("listing_name"),
                "occupied": 0,
                "blocked": 0,
            },
        )
        unit["blocked" if is_blocked(row) else "occupied"] += nights_in_window(row, start, end)

    result = []
    for listing_id, unit in units.items():
        sellable = max(days - unit["blocked"], 0)
        result.append(
            {
                "propertyCode": unit["code"] or listing_id,
                "propertyName": unit["name"],
                "totalNights": days,
                "occupiedNights": unit["occupied"],
                "blockedNights": unit["blocked"],
                "availableNights": sellable,
                "occupancyRate": rounded(unit["occupied"] / sellable * 100, 1) if sellable else 0.0,
                "blockRate": rounded(unit["blocked"] / days * 100, 1) if days else 0.0,
            }
        )

    result.sort(key=lambda p: (-p["occupancyRate"], p["propertyCode"]))
    return result


def cancellation_analysis(rows: list[Row], start: date, end: date) -> dict[str, Any]:
    """
    Cancellation rate, notice period, channel/month breakdown and lost revenue.

    Advance notice uses ``updated_at`` as a stand-in for the cancellation time.
    """
    total = 0
    canceled_rows: list[Row] = []
    notice_days = 0
    by_channel: dict[str, int] = {}
    by_month: dict[str, int] = {}

    for row in in_window(rows, start, end):
        if is_blocked(row):
            continue
        total += 1
        if not is_canceled(row):
            continue

        canceled_rows.append(row)
        updated_at = row.get("updated_at")
        if updated_at is not None:
            notice = (row["check_in_date"] - ensure_aware(updated_at).date()).days
            if notice >= 0:
                notice_days += notice

        _bump(by_channel, channel_of(row))
        _bump(by_month, row["check_in_date"].strftime("%Y-%m"))

    count = len(canceled_rows)
    return {
        "totalCancellations": count,
        "cancellationRate": rounded(count / total * 100, 1) if total else 0.0,
        "averageAdvanceNotice": rounded(notice_days / count, 1) if count else 0.0,
        "averageAdvanceNoticeNote": ADVANCE_NOTICE_NOTE,
        "byChannel": by_channel,
        "byMonth": by_month,
        "revenueImpact": rounded(total_revenue(canceled_rows), 2),
        "period": {"from": start.isoformat(), "to": end.isoformat()},
    }
