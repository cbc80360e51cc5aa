"""
Shared pytest fixtures.

The environment is seeded before any ``stays_sync`` import: ``stays_sync.config``
reads it at import time and refuses to load without DATABASE_URL.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["DB_SCHEMA"] = ""
os.environ.setdefault("API_KEY", "test-key")
os.environ.setdefault("STAYS_CLIENT_ID", "test-client")
os.environ.setdefault("STAYS_CLIENT_SECRET", "test-secret")
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import date, datetime, timezone  # noqa: E402
from typing import Any, Callable, Generator, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from stays_sync.models.base import Base  # noqa: E402
from stays_sync.models.bookings import UnifiedBooking  # noqa: F401,E402
from stays_sync.models.listings import Listing  # noqa: F401,E402
from stays_sync.models.properties import Property  # noqa: F401,E402
from stays_sync.models.sync_status import SyncStatus  # noqa: F401,E402

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sqlite_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite database with every mirror table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    """
    Factory for ``unified_bookings`` row dicts as the readers return them.

    Example:
        >>> make_row("r1", "L1", date(2024, 6, 1), date(2024, 6, 4), price_value=900.0)
    """

    def _make(
        reservation_id: str,
        listing_id: str,
        check_in: date,
        check_out: date,
        type: str = "normal",
        price_value: Optional[float] = 100.0,
        **overrides: Any,
    ) -> dict[str, Any]:
        row: dict[str, Any] = {
            "id": reservation_id,
            "booking_code": f"BK-{reservation_id}",
            "listing_id": listing_id,
            "apartment_code": f"APT-{listing_id}",
            "listing_name": f"Apartment {listing_id}",
            "listing_address": None,
            "type": type,
            "status": "booked",
            "check_in_date": check_in,
            "check_in_time": "15:00",
            "check_out_date": check_out,
            "check_out_time": "11:00",
            "nights": max((check_out - check_in).days, 0),
            "creation_date": None,
            "guest_name": f"Guest {reservation_id}",
            "guest_count": 2,
            "adults": 2,
            "children": 0,
            "babies": 0,
            "client_id": None,
            "guest_country": None,
            "guest_language": None,
            "guest_nationality": None,
            "guest_email": None,
            "guest_phone": None,
            "enriched_at": None,
            "platform": "Airbnb",
            "platform_image": "/images/platforms/airbnb.png",
            "channel_name": None,
            "source": None,
            "price_value": price_value,
            "price_currency": "BRL",
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
            "synced_at": FIXED_NOW,
        }
        row.update(overrides)
        return row

    return _make


class FakeStaysClient:
    """
    In-memory stand-in for ``StaysClient``.

    Bookings, listings and clients are served from dicts keyed by their ids.
    Ids listed in ``failing`` raise from the detail endpoints.
    """

    def __init__(
        self,
        bookings: Optional[list[dict[str, Any]]] = None,
        booking_details: Optional[dict[str, dict[str, Any]]] = None,
        listings: Optional[dict[str, dict[str, Any]]] = None,
        clients: Optional[dict[str, dict[str, Any]]] = None,
        failing: Optional[set[str]] = None,
    ) -> None:
        self.bookings = bookings or []
        self.booking_details = booking_details or {}
        self.listings = listings or {}
        self.clients = clients or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, str]] = []

    def _detail(self, kind: str, key: str, source: dict[str, dict[str, Any]]) -> dict[str, Any]:
        from stays_sync.errors import RemoteApiError

        self.calls.append((kind, key))
        if key in self.failing or key not in source:
            raise RemoteApiError(500, f"{kind} {key} unavailable")
        return dict(source[key])

    def fetch_all_bookings(
        self, from_date: str, to_date: str, date_type: str = "included"
    ) -> list[dict[str, Any]]:
        self.calls.append(("bookings", f"{from_date}..{to_date}"))
        return [dict(b) for b in self.bookings]

    def get_booking_detail(self, reservation_id: str) -> dict[str, Any]:
        return self._detail("booking", reservation_id, self.booking_details)

    def fetch_all_listings(self) -> list[dict[str, Any]]:
        return [{"_id": key, "id": value.get("id")} for key, value in self.listings.items()]

    def get_listing_detail(self, listing_id: str) -> dict[str, Any]:
        return self._detail("listing", listing_id, self.listings)

    def get_client_detail(self, client_id: str) -> dict[str, Any]:
        return self._detail("client", client_id, self.clients)


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeStaysClient]:
    """Build a ``FakeStaysClient`` with the given payloads."""
    return FakeStaysClient
