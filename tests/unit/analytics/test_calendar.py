from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from stays_sync.analytics.calendar import build_calendar, default_calendar_window


@pytest.mark.unit
def test_calendar_groups_by_unit(make_row: Callable[..., dict[str, Any]]) -> None:
    """Units sorted by code, reservations by start date, types mapped for display."""
    listings = {"L2": {"code": "B-200", "name": "B"}, "L1": {"code": "A-100", "name": "A"}}
    rows = [
        make_row("r2", "L1", date(2024, 6, 10), date(2024, 6, 12)),
        make_row("r1", "L1", date(2024, 6, 1), date(2024, 6, 3), type="provisional"),
        make_row("b1", "L1", date(2024, 6, 5), date(2024, 6, 6), type="blocked"),
        make_row("old", "L1", date(2024, 4, 1), date(2024, 4, 3)),
    ]

    result = build_calendar(rows, listings, date(2024, 6, 1), date(2024, 6, 30))

    assert [u["code"] for u in result["units"]] == ["A-100", "B-200"]
    reservations = result["units"][0]["reservations"]
    assert [r["id"] for r in reservations] == ["r1", "b1", "r2"]
    assert [r["type"] for r in reservations] == ["provisional", "blocked", "reserved"]
    assert result["units"][1]["reservations"] == []
    assert result["period"] == {"from": "2024-06-01", "to": "2024-06-30"}


@pytest.mark.unit
def test_default_window() -> None:
    assert default_calendar_window(date(2024, 6, 1)) == (date(2024, 5, 2), date(2024, 8, 30))
