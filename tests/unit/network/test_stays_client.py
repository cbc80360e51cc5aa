"""
Unit tests for the Stays.net client: pagination policy and error mapping.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests
from prometheus_client import REGISTRY

from stays_sync.errors import RemoteApiError
from stays_sync.network.client import PAGE_SIZE, StaysClient, fetch_all_pages


def response(status_code: int = 200, body: Any = None, text: str = "") -> Mock:
    """Build a mocked requests.Response."""
    res = Mock(status_code=status_code, reason="Error" if status_code >= 400 else "OK", text=text)
    res.json.return_value = body
    return res


def make_client(session: Mock) -> StaysClient:
    return StaysClient("https://example.stays.net/", "login", "secret", timeout=5, session=session)


@pytest.mark.unit
def test_fetch_all_pages_stops_on_short_page() -> None:
    """A page shorter than the page size ends pagination."""
    pages = [[{"_id": str(i)} for i in range(20)], [{"_id": "20"}, {"_id": "21"}]]
    fetch_page = Mock(side_effect=pages)

    results = fetch_all_pages(fetch_page, resource="bookings", ceiling=1000)

    assert len(results) == 22
    assert fetch_page.call_args_list[0].args == (0, PAGE_SIZE)
    assert fetch_page.call_args_list[1].args == (20, PAGE_SIZE)


@pytest.mark.unit
def test_fetch_all_pages_empty_first_page() -> None:
    fetch_page = Mock(return_value=[])
    assert fetch_all_pages(fetch_page, resource="listings", ceiling=500) == []
    fetch_page.assert_called_once()


@pytest.mark.unit
def test_fetch_all_pages_stops_at_ceiling_and_counts_it() -> None:
    """An API that never returns a short page is cut off at the ceiling."""
    before = REGISTRY.get_sample_value(
        "stays_pagination_ceiling_hits_total", {"resource": "runaway"}
    ) or 0.0
    fetch_page = Mock(return_value=[{"_id": "x"}] * 20)

    results = fetch_all_pages(fetch_page, resource="runaway", ceiling=60)

    assert len(results) == 60
    assert fetch_page.call_count == 3
    after = REGISTRY.get_sample_value("stays_pagination_ceiling_hits_total", {"resource": "runaway"})
    assert after == before + 1


@pytest.mark.unit
def test_list_bookings_sends_window_and_auth() -> None:
    """Reservations are requested with from/to/dateType/skip/limit and Basic auth."""
    session = Mock()
    session.get.return_value = response(body=[{"_id": "R1"}])
    client = make_client(session)

    result = client.list_bookings("2024-01-01", "2024-12-31", skip=40, limit=20)

    assert result == [{"_id": "R1"}]
    args, kwargs = session.get.call_args
    assert args[0] == "https://example.stays.net/external/v1/booking/reservations"
    assert kwargs["params"] == {
        "from": "2024-01-01",
        "to": "2024-12-31",
        "dateType": "included",
        "skip": 40,
        "limit": 20,
    }
    assert kwargs["headers"]["Authorization"].startswith("Basic ")
    assert kwargs["timeout"] == 5


@pytest.mark.unit
def test_enveloped_list_is_unwrapped() -> None:
    session = Mock()
    session.get.return_value = response(body={"data": [{"_id": "L1"}]})
    assert make_client(session).list_listings() == [{"_id": "L1"}]


@pytest.mark.unit
def test_non_2xx_raises_remote_api_error() -> None:
    """Any non-2xx status becomes RemoteApiError carrying status and body; no retry."""
    session = Mock()
    session.get.return_value = response(status_code=503, text="upstream down")
    client = make_client(session)

    with pytest.raises(RemoteApiError) as exc_info:
        client.get_booking_detail("R1")

    assert exc_info.value.status_code == 503
    assert exc_info.value.raw_body == "upstream down"
    assert session.get.call_count == 1


@pytest.mark.unit
def test_transport_failure_raises_remote_api_error() -> None:
    session = Mock()
    session.get.side_effect = requests.ConnectionError("connection reset")

    with pytest.raises(RemoteApiError) as exc_info:
        make_client(session).get_listing_detail("L1")

    assert exc_info.value.status_code is None
    assert "connection reset" in str(exc_info.value)


@pytest.mark.unit
def test_fetch_all_bookings_paginates_through_client() -> None:
    session = Mock()
    session.get.side_effect = [
        response(body=[{"_id": str(i)} for i in range(20)]),
        response(body=[{"_id": "last"}]),
    ]

    bookings = make_client(session).fetch_all_bookings("2024-01-01", "2024-01-31")

    assert len(bookings) == 21
    assert session.get.call_args_list[1].kwargs["params"]["skip"] == 20
