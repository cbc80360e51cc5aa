"""
Integration tests for the bookings, property and enrichment pipelines.

Each test runs a full pipeline against in-memory SQLite with a fake Stays.net
client, so the whole fetch -> normalize -> write -> track path is exercised.
"""

from __future__ import annotations

from datetime import date, timedelta
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from stays_sync.db.readers.sync_status import get_sync_status
from stays_sync.db.writers._upsert import upsert_rows
from stays_sync.db.writers.sync_status import mark_running
from stays_sync.errors import RemoteApiError
from stays_sync.models.bookings import UnifiedBooking
from stays_sync.models.listings import Listing
from stays_sync.models.properties import Property
from stays_sync.network.queue import RateLimitedQueue
from stays_sync.services.enrichment import enrich_bookings_with_client_data
from stays_sync.services.property_sync import run_property_sync
from stays_sync.services.sync import run_bookings_sync
from stays_sync.utils.datetime import utc_now

TODAY = date(2024, 6, 1)

LISTING = {
    "_id": "L1",
    "id": "AB01H",
    "internalName": "COP-101",
    "_mstitle": {"pt_BR": "Copacabana 101"},
    "_i_rooms": 2,
    "status": "active",
    "amenities": [{"_id": "wifi"}],
}

SUMMARIES = [
    {
        "_id": "R1",
        "id": "HK42J",
        "_idlisting": "L1",
        "_idclient": "C1",
        "type": "booked",
        "checkInDate": "2024-06-01",
        "checkOutDate": "2024-06-04",
        "guestsDetails": {"name": "Maria Silva"},
    },
    {
        "_id": "R2",
        "id": "HK43K",
        "_idlisting": "L1",
        "_idclient": "C2",
        "type": "booked",
        "checkInDate": "2024-06-05",
        "checkOutDate": "2024-06-07",
        "guestsDetails": {"name": "John Smith"},
    },
]

DETAILS = {
    "R1": {
        **SUMMARIES[0],
        "partner": {"_id": "P1", "name": "Airbnb"},
        "stats": {"adults": 2},
        "price": {"currency": "BRL", "_f_total": 900},
    },
}


def _queue() -> RateLimitedQueue:
    return RateLimitedQueue(concurrency=5, delay_seconds=0)


@pytest.mark.integration
def test_bookings_sync_writes_mirror_and_tracks_success(sqlite_engine, fake_client_factory):
    """Listings and merged bookings are written; a failed detail degrades to the summary."""
    client = fake_client_factory(
        bookings=SUMMARIES, booking_details=DETAILS, listings={"L1": LISTING}
    )

    result = run_bookings_sync(sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue())

    assert result.status == "success"
    assert result.bookings_count == 2
    assert result.listings_count == 1

    with sqlite_engine.connect() as conn:
        bookings = {r.id: r for r in conn.execute(select(UnifiedBooking)).fetchall()}
        listings = conn.execute(select(Listing)).fetchall()
        status = get_sync_status(conn, "bookings")

    assert len(listings) == 1
    assert listings[0].code == "COP-101"

    assert bookings["R1"].apartment_code == "COP-101"
    assert bookings["R1"].price_value == 900.0
    assert bookings["R1"].platform == "Airbnb"
    # R2 has no detail record; the summary is mirrored instead
    assert bookings["R2"].guest_name == "John Smith"
    assert bookings["R2"].price_value is None

    assert status["status"] == "success"
    assert status["bookings_count"] == 2
    assert status["listings_count"] == 1
    assert status["last_error"] is None

    assert ("bookings", "2023-12-04..2024-11-28") in client.calls


@pytest.mark.integration
def test_bookings_sync_records_error_when_reservation_list_fails(sqlite_engine, fake_client_factory):
    """A failed reservation list aborts the run without touching the mirror."""
    client = fake_client_factory()
    client.fetch_all_bookings = Mock(side_effect=RemoteApiError(503, "Service Unavailable"))

    result = run_bookings_sync(sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue())

    assert result.status == "error"
    with sqlite_engine.connect() as conn:
        status = get_sync_status(conn, "bookings")
        assert conn.execute(select(UnifiedBooking)).fetchall() == []

    assert status["status"] == "error"
    assert "Service Unavailable" in status["last_error"]
    assert status["last_sync_at"] is not None


@pytest.mark.integration
def test_bookings_sync_skipped_while_another_run_is_live(sqlite_engine, fake_client_factory):
    with sqlite_engine.begin() as conn:
        mark_running(conn, "bookings", utc_now())
    client = fake_client_factory(bookings=SUMMARIES)

    result = run_bookings_sync(sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue())

    assert result.status == "skipped"
    assert client.calls == []


@pytest.mark.integration
def test_stale_running_lease_is_taken_over(sqlite_engine, fake_client_factory):
    """A running row older than the lease timeout does not block a new run."""
    with sqlite_engine.begin() as conn:
        mark_running(conn, "bookings", utc_now() - timedelta(hours=3))
    client = fake_client_factory(bookings=SUMMARIES, booking_details=DETAILS, listings={"L1": LISTING})

    result = run_bookings_sync(sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue())

    assert result.status == "success"


@pytest.mark.integration
def test_dry_run_leaves_database_untouched(sqlite_engine, fake_client_factory):
    client = fake_client_factory(bookings=SUMMARIES, booking_details=DETAILS, listings={"L1": LISTING})

    result = run_bookings_sync(sqlite_engine, client, today=TODAY, dry_run=True, queue=_queue())

    assert result.status == "success"
    with sqlite_engine.connect() as conn:
        assert conn.execute(select(UnifiedBooking)).fetchall() == []
        assert get_sync_status(conn, "bookings")["status"] == "never"


@pytest.mark.integration
def test_property_sync_builds_catalogue(sqlite_engine, fake_client_factory):
    client = fake_client_factory(listings={"L1": LISTING, "L2": {"_id": "L2", "id": "ZZ99"}})
    client.failing = {"L2"}

    result = run_property_sync(sqlite_engine, client, dry_run=False, queue=_queue())

    assert result.status == "success"
    assert result.properties_count == 2
    with sqlite_engine.connect() as conn:
        props = {p.id: p for p in conn.execute(select(Property)).fetchall()}
        status = get_sync_status(conn, "properties")

    assert props["L1"].rooms == 2
    assert props["L1"].amenity_ids == ["wifi"]
    assert props["L1"].active is True
    # Detail failed: the catalogue entry is kept as-is
    assert props["L2"].internal_name == "ZZ99"
    assert status["properties_count"] == 2


@pytest.mark.integration
def test_enrichment_copies_client_demographics(sqlite_engine, fake_client_factory):
    """Clients are fetched once each; a failed client leaves its bookings pending."""
    sync_client = fake_client_factory(bookings=SUMMARIES, booking_details=DETAILS, listings={"L1": LISTING})
    run_bookings_sync(sqlite_engine, sync_client, today=TODAY, dry_run=False, queue=_queue())

    client = fake_client_factory(
        clients={"C1": {"_id": "C1", "country": "BR", "language": "pt", "email": "m@example.com"}},
        failing={"C2"},
    )
    result = enrich_bookings_with_client_data(
        sqlite_engine, client, limit=10, dry_run=False, queue=_queue()
    )

    assert result.status == "success"
    assert result.enriched_count == 1
    assert sorted(client.calls) == [("client", "C1"), ("client", "C2")]

    with sqlite_engine.connect() as conn:
        rows = {r.id: r for r in conn.execute(select(UnifiedBooking)).fetchall()}

    assert rows["R1"].guest_country == "BR"
    assert rows["R1"].guest_email == "m@example.com"
    assert rows["R1"].enriched_at is not None
    assert rows["R2"].enriched_at is None


@pytest.mark.integration
def test_enrichment_survives_next_booking_sync(sqlite_engine, fake_client_factory):
    client = fake_client_factory(bookings=SUMMARIES, booking_details=DETAILS, listings={"L1": LISTING})
    run_bookings_sync(sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue())
    with sqlite_engine.begin() as conn:
        conn.execute(update(UnifiedBooking).values(guest_country="AR", enriched_at=utc_now()))

    run_bookings_sync(sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue())

    with sqlite_engine.connect() as conn:
        countries = conn.execute(select(UnifiedBooking.guest_country)).scalars().all()
    assert countries == ["AR", "AR"]


@pytest.mark.integration
def test_enrichment_with_nothing_pending(sqlite_engine, fake_client_factory):
    client = fake_client_factory()

    result = enrich_bookings_with_client_data(sqlite_engine, client, dry_run=False, queue=_queue())

    assert result.status == "success"
    assert result.enriched_count == 0
    assert client.calls == []


@pytest.mark.integration
@patch("stays_sync.db.writers._upsert.WRITE_BATCH_SIZE", 1)
def test_write_failure_aborts_run_and_keeps_committed_batches(sqlite_engine, fake_client_factory):
    """A failing booking batch ends the run as error; earlier batches stay written."""
    booking_batches = []

    def fail_second_booking_batch(conn, table, rows, *args, **kwargs):
        if table is UnifiedBooking:
            booking_batches.append(rows)
            if len(booking_batches) == 2:
                raise SQLAlchemyError("disk full")
        return upsert_rows(conn, table, rows, *args, **kwargs)

    client = fake_client_factory(bookings=SUMMARIES, booking_details=DETAILS, listings={"L1": LISTING})

    with patch(
        "stays_sync.db.writers._upsert.upsert_rows", side_effect=fail_second_booking_batch
    ):
        result = run_bookings_sync(
            sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue()
        )

    assert result.status == "error"
    assert "unified_bookings" in result.error
    assert "batch 1" in result.error

    with sqlite_engine.connect() as conn:
        written = conn.execute(select(UnifiedBooking.id)).scalars().all()
        listings = conn.execute(select(Listing)).fetchall()
        status = get_sync_status(conn, "bookings")

    assert written == ["R1"]
    assert len(listings) == 1
    assert status["status"] == "error"
    assert "disk full" in status["last_error"]


@pytest.mark.integration
def test_exhausted_budget_ends_run_as_error(sqlite_engine, fake_client_factory):
    client = fake_client_factory(bookings=SUMMARIES, booking_details=DETAILS, listings={"L1": LISTING})

    result = run_bookings_sync(
        sqlite_engine, client, today=TODAY, dry_run=False, queue=_queue(), budget_seconds=0
    )

    assert result.status == "error"
    assert "budget" in result.error
    with sqlite_engine.connect() as conn:
        status = get_sync_status(conn, "bookings")
        assert conn.execute(select(UnifiedBooking)).fetchall() == []

    assert status["status"] == "error"
    assert "budget" in status["last_error"]
    assert not any(kind == "booking" for kind, _ in client.calls)


@pytest.mark.integration
def test_property_sync_collapses_repeated_catalogue_entries(sqlite_engine, fake_client_factory):
    """The same listing on two catalogue pages becomes one property."""
    client = fake_client_factory(listings={"L1": LISTING})
    client.fetch_all_listings = Mock(
        return_value=[{"_id": "L1", "id": "AB01H"}, {"_id": "L1", "id": "AB01H"}]
    )

    result = run_property_sync(sqlite_engine, client, dry_run=False, queue=_queue())

    assert result.status == "success"
    assert result.properties_count == 1
    assert client.calls == [("listing", "L1")]
    with sqlite_engine.connect() as conn:
        assert len(conn.execute(select(Property)).fetchall()) == 1
        assert get_sync_status(conn, "properties")["properties_count"] == 1
