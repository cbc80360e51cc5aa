"""
Revenue rollups over the bookings mirror.

Owner blocks never count. A booking contributes its full resolved price to
every window it overlaps (no pro-rating across window edges). Bookings whose
price could not be resolved add nothing to revenue and are reported in
``unpricedReservations`` so the gap stays visible.
"""

from calendar import monthrange
from datetime import date, timedelta
from typing import Any

from stays_sync.analytics.intervals import (
    ListingsIndex,
    Row,
    channel_of,
    guest_bookings,
    in_window,
    period_days,
    priced,
    rounded,
    total_revenue,
    unpriced_count,
)

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
PROJECTION_GROWTH_CAP = 1.2
PROJECTION_METHOD = "Average of the last 3 months with growth trend"


def default_financial_window(today: date) -> tuple[date, date]:
    """Last 30 days including today."""
    return today - timedelta(days=29), today


def month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _nights(rows: list[Row]) -> int:
    return sum(row.get("nights") or 0 for row in rows)


def financial_summary(
    rows: list[Row], listings: ListingsIndex, start: date, end: date
) -> dict[str, Any]:
    """
    Revenue, nights, ADR, RevPAR and occupancy for ``start``..``end``.

    ADR = revenue / priced nights; RevPAR = revenue / (units x days);
    occupancy = nights / (units x days). Unpriced bookings count toward
    nights and occupancy but not toward ADR.
    """
    bookings = guest_bookings(in_window(rows, start, end))
    revenue = total_revenue(bookings)
    nights = _nights(bookings)
    priced_nights = _nights(priced(bookings))
    available_nights = len(listings) * period_days(start, end)

    adr = revenue / priced_nights if priced_nights else 0.0
    revpar = revenue / available_nights if available_nights else 0.0
    occupancy = nights / available_nights * 100 if available_nights else 0.0

    return {
        "totalRevenue": rounded(revenue, 2),
        "averageDailyRate": rounded(adr, 2),
        "revPAR": rounded(revpar, 2),
        "totalNights": nights,
        "availableNights": available_nights,
        "occupancyRate": rounded(occupancy, 1),
        "reservationsCount": len(bookings),
        "unpricedReservations": unpriced_count(bookings),
        "period": {"from": start.isoformat(), "to": end.isoformat()},
    }


def financials_by_property(
    rows: list[Row], listings: ListingsIndex, start: date, end: date
) -> list[dict[str, Any]]:
    """Per-unit revenue, nights, ADR and occupancy, highest revenue first."""
    days = period_days(start, end)
    totals: dict[str, dict[str, Any]] = {
        listing_id: {"code": info.get("code"), "name": info.get("name"), "rows": []}
        for listing_id, info in listings.items()
    }
    for row in guest_bookings(in_window(rows, start, end)):
        entry = totals.setdefault(
            row["listing_id"],
            {"code": row.get("apartment_code"), "name": row.get("listing_name"), "rows": []},
        )
        entry["rows"].append(row)

    result = []
    for listing_id, entry in totals.items():
        revenue = total_revenue(entry["rows"])
        nights = _nights(entry["rows"])
        priced_nights = _nights(priced(entry["rows"]))
        result.append(
            {
                "propertyId": listing_id,
                "propertyCode": entry["code"] or listing_id,
                "propertyName": entry["name"],
                "revenue": rounded(revenue, 2),
                "bookingsCount": len(entry["rows"]),
                "nights": nights,
                "averageDailyRate": rounded(revenue / priced_nights if priced_nights else 0.0, 2),
                "occupancyRate": rounded(nights / days * 100 if days else 0.0, 1),
                "unpricedReservations": unpriced_count(entry["rows"]),
            }
        )

    result.sort(key=lambda p: (-p["revenue"], p["propertyCode"]))
    return result


def financials_by_channel(rows: list[Row], start: date, end: date) -> list[dict[str, Any]]:
    """Revenue per booking channel with its share of the total."""
    channels: dict[str, list[Row]] = {}
    for row in guest_bookings(in_window(rows, start, end)):
        channels.setdefault(channel_of(row), []).append(row)

    grand_total = sum(total_revenue(channel_rows) for channel_rows in channels.values())
    result = []
    for channel, channel_rows in channels.items():
        revenue = total_revenue(channel_rows)
        priced_count = len(priced(channel_rows))
        result.append(
            {
                "channel": channel,
                "revenue": rounded(revenue, 2),
                "bookingsCount": len(channel_rows),
                "averageValue": rounded(revenue / priced_count if priced_count else 0.0, 2),
                "percentage": rounded(revenue / grand_total * 100 if grand_total else 0.0, 1),
                "unpricedReservations": len(channel_rows) - priced_count,
            }
        )

    result.sort(key=lambda c: (-c["revenue"], c["channel"]))
    return result


def trend_window(today: date, months: int = 12) -> tuple[date, date]:
    first_year, first_month = shift_month(today.year, today.month, -(months - 1))
    return date(first_year, first_month, 1), month_bounds(today.year, today.month)[1]


def revenue_trend(rows: list[Row], today: date, months: int = 12) -> list[dict[str, Any]]:
    """Monthly revenue and booking counts for the last ``months`` months, oldest first."""
    trend = []
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -offset)
        start, end = month_bounds(year, month)
        bookings = guest_bookings(in_window(rows, start, end))
        trend.append(
            {
                "month": f"{MONTH_LABELS[month - 1]}/{year % 100:02d}",
                "revenue": rounded(total_revenue(bookings), 2),
                "bookings": len(bookings),
                "unpricedReservations": unpriced_count(bookings),
            }
        )
    return trend


def panel_window(today: date) -> tuple[date, date]:
    """Everything the panel needs: 1 Jan last year through the end of this month."""
    return date(today.year - 1, 1, 1), month_bounds(today.year, today.month)[1]


def _growth(current: float, previous: float) -> float:
    return (current - previous) / previous * 100 if previous > 0 else 0.0


def financial_panel(rows: list[Row], today: date) -> dict[str, Any]:
    """
    Headline KPIs: this month vs last month, year-to-date vs the same span last
    year, average ticket and a next-month projection.

    The projection is the average of the last three full months multiplied by
    this month's growth factor, capped at +20%. The average ticket is taken over
    this month's priced bookings; ``unpricedReservations`` counts the rest.
    """

    def bookings_between(start: date, end: date) -> list[Row]:
        return guest_bookings(in_window(rows, start, end))

    def revenue_between(start: date, end: date) -> float:
        return total_revenue(bookings_between(start, end))

    month_start, month_end = month_bounds(today.year, today.month)
    prev_year, prev_month = shift_month(today.year, today.month, -1)
    prev_start, prev_end = month_bounds(prev_year, prev_month)
    three_back_year, three_back_month = shift_month(today.year, today.month, -3)

    ytd_start = date(today.year, 1, 1)
    prev_ytd_start = date(today.year - 1, 1, 1)
    prev_ytd_end = date(
        today.year - 1, today.month, min(today.day, monthrange(today.year - 1, today.month)[1])
    )

    current = bookings_between(month_start, month_end)
    current_revenue = total_revenue(current)
    current_priced = len(priced(current))
    previous_revenue = revenue_between(prev_start, prev_end)
    ytd_revenue = revenue_between(ytd_start, today)
    prev_ytd_revenue = revenue_between(prev_ytd_start, prev_ytd_end)
    last3_revenue = revenue_between(date(three_back_year, three_back_month, 1), prev_end)

    month_growth = _growth(current_revenue, previous_revenue)
    growth_factor = 1 + month_growth / 100 if month_growth > 0 else 1.0
    projection = last3_revenue / 3 * min(growth_factor, PROJECTION_GROWTH_CAP)

    return {
        "currentMonthRevenue": rounded(current_revenue, 2),
        "currentMonthReservations": len(current),
        "previousMonthRevenue": rounded(previous_revenue, 2),
        "monthGrowthPercent": rounded(month_growth, 1),
        "ytdRevenue": rounded(ytd_revenue, 2),
        "previousYearYtdRevenue": rounded(prev_ytd_revenue, 2),
        "ytdGrowthPercent": rounded(_growth(ytd_revenue, prev_ytd_revenue), 1),
        "averageTicket": rounded(current_revenue / current_priced if current_priced else 0.0, 2),
        "unpricedReservations": len(current) - current_priced,
        "nextMonthProjection": rounded(projection, 2),
        "projectionMethod": PROJECTION_METHOD,
        "period": {
            "currentMonth": f"{MONTH_LABELS[today.month - 1]}/{today.year}",
            "previousMonth": f"{MONTH_LABELS[prev_month - 1]}/{prev_year}",
            "ytdStart": ytd_start.isoformat(),
            "ytdEnd": today.isoformat(),
        },
    }
