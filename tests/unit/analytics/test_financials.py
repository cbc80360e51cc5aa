"""
Unit tests for revenue aggregation.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from stays_sync.analytics.financials import (
    financial_panel,
    financial_summary,
    financials_by_channel,
    financials_by_property,
    revenue_trend,
)
from stays_sync.analytics.intervals import occupancy_for_day

LISTINGS = {"L1": {"code": "APT-L1", "name": "Apartment L1"}}


@pytest.mark.unit
def test_blocked_entry_excluded_from_revenue_but_occupies(
    make_row: Callable[..., dict[str, Any]],
) -> None:
    """A paid stay and an owner block on the same unit: revenue counts the stay only."""
    rows = [
        make_row("A", "L1", date(2024, 6, 1), date(2024, 6, 4), price_value=900.0),
        make_row("B", "L1", date(2024, 6, 5), date(2024, 6, 6), type="blocked", price_value=None),
    ]

    summary = financial_summary(rows, LISTINGS, date(2024, 6, 1), date(2024, 6, 10))

    assert summary["totalRevenue"] == 900.0
    assert summary["reservationsCount"] == 1
    assert summary["totalNights"] == 3
    assert summary["availableNights"] == 10
    assert summary["averageDailyRate"] == 300.0
    assert summary["revPAR"] == 90.0
    assert summary["occupancyRate"] == 30.0
    assert summary["unpricedReservations"] == 0
    assert occupancy_for_day(rows, date(2024, 6, 5), total_units=1)["occupied"] == 1


@pytest.mark.unit
def test_unpriced_bookings_reported(make_row: Callable[..., dict[str, Any]]) -> None:
    rows = [
        make_row("A", "L1", date(2024, 6, 1), date(2024, 6, 3), price_value=200.0),
        make_row("B", "L1", date(2024, 6, 3), date(2024, 6, 5), price_value=None),
    ]

    summary = financial_summary(rows, LISTINGS, date(2024, 6, 1), date(2024, 6, 30))

    assert summary["totalRevenue"] == 200.0
    assert summary["reservationsCount"] == 2
    assert summary["unpricedReservations"] == 1
    assert summary["totalNights"] == 4
    # ADR over the priced stay only: 200 / 2 nights
    assert summary["averageDailyRate"] == 100.0


@pytest.mark.unit
def test_empty_summary_has_zero_ratios() -> None:
    summary = financial_summary([], {}, date(2024, 6, 1), date(2024, 6, 30))
    assert summary["averageDailyRate"] == 0.0
    assert summary["revPAR"] == 0.0
    assert summary["occupancyRate"] == 0.0


@pytest.mark.unit
def test_by_property_includes_idle_units(make_row: Callable[..., dict[str, Any]]) -> None:
    listings = {**LISTINGS, "L2": {"code": "APT-L2", "name": "Apartment L2"}}
    rows = [make_row("A", "L1", date(2024, 6, 1), date(2024, 6, 4), price_value=600.0)]

    result = financials_by_property(rows, listings, date(2024, 6, 1), date(2024, 6, 30))

    assert [p["propertyCode"] for p in result] == ["APT-L1", "APT-L2"]
    assert result[0]["revenue"] == 600.0
    assert result[0]["averageDailyRate"] == 200.0
    assert result[0]["occupancyRate"] == 10.0
    assert result[1]["bookingsCount"] == 0


@pytest.mark.unit
def test_by_channel_shares(make_row: Callable[..., dict[str, Any]]) -> None:
    rows = [
        make_row("A", "L1", date(2024, 6, 1), date(2024, 6, 3), price_value=300.0, platform="Airbnb"),
        make_row("B", "L1", date(2024, 6, 5), date(2024, 6, 7), price_value=100.0, platform=None),
    ]

    result = financials_by_channel(rows, date(2024, 6, 1), date(2024, 6, 30))

    assert result[0] == {
        "channel": "Airbnb",
        "revenue": 300.0,
        "bookingsCount": 1,
        "averageValue": 300.0,
        "percentage": 75.0,
        "unpricedReservations": 0,
    }
    assert result[1]["channel"] == "Direct"
    assert result[1]["percentage"] == 25.0


@pytest.mark.unit
def test_revenue_trend_labels(make_row: Callable[..., dict[str, Any]]) -> None:
    rows = [make_row("A", "L1", date(2024, 5, 10), date(2024, 5, 12), price_value=250.0)]

    trend = revenue_trend(rows, date(2024, 6, 15), months=3)

    assert [m["month"] for m in trend] == ["Apr/24", "May/24", "Jun/24"]
    assert trend[1]["revenue"] == 250.0
    assert trend[1]["bookings"] == 1


@pytest.mark.unit
def test_panel_growth_and_projection(make_row: Callable[..., dict[str, Any]]) -> None:
    """Projection is the last three full months' average times the capped growth factor."""
    rows = [
        make_row("mar", "L1", date(2024, 3, 10), date(2024, 3, 12), price_value=300.0),
        make_row("apr", "L1", date(2024, 4, 10), date(2024, 4, 12), price_value=300.0),
        make_row("may", "L1", date(2024, 5, 10), date(2024, 5, 12), price_value=300.0),
        make_row("jun", "L1", date(2024, 6, 10), date(2024, 6, 12), price_value=600.0),
    ]

    panel = financial_panel(rows, date(2024, 6, 20))

    assert panel["currentMonthRevenue"] == 600.0
    assert panel["previousMonthRevenue"] == 300.0
    assert panel["monthGrowthPercent"] == 100.0
    assert panel["nextMonthProjection"] == 360.0
    assert panel["averageTicket"] == 600.0
    assert panel["ytdRevenue"] == 1500.0
    assert panel["previousYearYtdRevenue"] == 0.0
    assert panel["ytdGrowthPercent"] == 0.0


@pytest.mark.unit
def test_unknown_prices_never_dilute_averages(make_row: Callable[..., dict[str, Any]]) -> None:
    """A booking without a price is counted as unpriced, not averaged in as 0."""
    rows = [
        make_row("A", "L1", date(2024, 6, 3), date(2024, 6, 5), price_value=200.0),
        make_row("B", "L1", date(2024, 6, 10), date(2024, 6, 12), price_value=None),
    ]

    by_property = financials_by_property(rows, LISTINGS, date(2024, 6, 1), date(2024, 6, 30))
    assert by_property[0]["revenue"] == 200.0
    assert by_property[0]["bookingsCount"] == 2
    assert by_property[0]["nights"] == 4
    assert by_property[0]["averageDailyRate"] == 100.0
    assert by_property[0]["unpricedReservations"] == 1

    by_channel = financials_by_channel(rows, date(2024, 6, 1), date(2024, 6, 30))
    assert len(by_channel) == 1
    assert by_channel[0]["averageValue"] == 200.0
    assert by_channel[0]["bookingsCount"] == 2
    assert by_channel[0]["unpricedReservations"] == 1

    trend = revenue_trend(rows, date(2024, 6, 15), months=1)
    assert trend == [{"month": "Jun/24", "revenue": 200.0, "bookings": 2, "unpricedReservations": 1}]

    panel = financial_panel(rows, date(2024, 6, 20))
    assert panel["currentMonthReservations"] == 2
    assert panel["averageTicket"] == 200.0
    assert panel["unpricedReservations"] == 1


@pytest.mark.unit
def test_all_unpriced_channel_has_zero_average(make_row: Callable[..., dict[str, Any]]) -> None:
    rows = [make_row("A", "L1", date(2024, 6, 3), date(2024, 6, 5), price_value=None)]

    by_channel = financials_by_channel(rows, date(2024, 6, 1), date(2024, 6, 30))

    assert by_channel[0]["averageValue"] == 0.0
    assert by_channel[0]["unpricedReservations"] == 1
