from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from stays_sync.analytics.guests import guest_demographics, guest_key, guest_summary, returning_guests


@pytest.mark.unit
def test_guest_key_normalizes_and_skips_placeholders() -> None:
    assert guest_key({"guest_name": "  Maria   SILVA "}) == "maria silva"
    assert guest_key({"guest_name": "Hóspede"}) is None
    assert guest_key({"guest_name": "adult_0"}) is None


@pytest.mark.unit
def test_returning_guests_grouped_by_name(make_row: Callable[..., dict[str, Any]]) -> None:
    rows = [
        make_row("1", "L1", date(2024, 1, 5), date(2024, 1, 8), guest_name="Maria Silva", price_value=300.0),
        make_row("2", "L2", date(2024, 3, 1), date(2024, 3, 3), guest_name="maria silva", price_value=200.0),
        make_row("3", "L1", date(2024, 4, 1), date(2024, 4, 2), guest_name="João Souza"),
        make_row("4", "L1", date(2024, 5, 1), date(2024, 5, 2), guest_name="Hóspede"),
        make_row("5", "L1", date(2024, 6, 1), date(2024, 6, 2), guest_name="Hóspede"),
    ]

    [guest] = returning_guests(rows)

    assert guest["name"] == "Maria Silva"
    assert guest["totalStays"] == 2
    assert guest["totalNights"] == 5
    assert guest["totalRevenue"] == 500.0
    assert guest["firstStay"] == "2024-01-05"
    assert guest["lastStay"] == "2024-03-01"
    assert guest["properties"] == ["APT-L1", "APT-L2"]

    summary = guest_summary(rows)
    assert summary["totalUniqueGuests"] == 2
    assert summary["returningGuests"] == 1
    assert summary["returningGuestsRate"] == 50.0
    assert summary["topGuests"] == [{"name": "Maria Silva", "stays": 2, "revenue": 500.0}]


@pytest.mark.unit
def test_demographics(make_row: Callable[..., dict[str, Any]]) -> None:
    rows = [
        make_row("1", "L1", date(2024, 1, 5), date(2024, 1, 8), guest_country="BR", guest_language="pt", children=1, guest_count=3),
        make_row("2", "L1", date(2024, 2, 5), date(2024, 2, 8), guest_country="AR", babies=1, guest_count=3),
        make_row("3", "L1", date(2024, 3, 5), date(2024, 3, 8), guest_count=0),
    ]

    result = guest_demographics(rows)

    assert result["byCountry"] == {"BR": 1, "AR": 1, "Unknown": 1}
    assert result["byLanguage"] == {"pt": 1, "Unknown": 2}
    assert result["withChildren"] == 1
    assert result["withBabies"] == 1
    assert result["averageGroupSize"] == 2.3


@pytest.mark.unit
def test_returning_guest_reports_unpriced_stays(make_row: Callable[..., dict[str, Any]]) -> None:
    rows = [
        make_row("1", "L1", date(2024, 1, 5), date(2024, 1, 8), guest_name="Maria Silva", price_value=300.0),
        make_row("2", "L1", date(2024, 3, 1), date(2024, 3, 3), guest_name="Maria Silva", price_value=None),
    ]

    [guest] = returning_guests(rows)

    assert guest["totalRevenue"] == 300.0
    assert guest["unpricedStays"] == 1
