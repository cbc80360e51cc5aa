"""
Unit tests for the APScheduler job wiring.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from stays_sync.schemas.sync import SyncResult
from stays_sync.services.scheduler import (
    build_scheduler,
    run_initial_sync,
    run_scheduled_bookings_sync,
)


@pytest.mark.unit
def test_build_scheduler_registers_jobs() -> None:
    """Interval bookings job, daily property job and the one-off initial sync."""
    scheduler = build_scheduler(Mock(), Mock())

    jobs = {job.id: job for job in scheduler.get_jobs()}

    assert set(jobs) == {"bookings_sync", "property_sync", "initial_sync"}
    assert jobs["bookings_sync"].max_instances == 1
    assert jobs["bookings_sync"].coalesce is True
    assert "hour='3'" in str(jobs["property_sync"].trigger)


@pytest.mark.unit
def test_build_scheduler_without_initial_job() -> None:
    scheduler = build_scheduler(Mock(), Mock(), run_initial=False)
    assert {job.id for job in scheduler.get_jobs()} == {"bookings_sync", "property_sync"}


@pytest.mark.unit
@patch("stays_sync.services.scheduler.enrich_bookings_with_client_data")
@patch("stays_sync.services.scheduler.run_bookings_sync")
@patch("stays_sync.services.scheduler.SyncTracker")
def test_scheduled_sync_runs_enrichment_after_success(
    mock_tracker: Mock, mock_sync: Mock, mock_enrich: Mock
) -> None:
    mock_tracker.return_value.is_running.return_value = False
    mock_sync.return_value = SyncResult(sync_type="bookings", status="success")
    mock_enrich.return_value = SyncResult(sync_type="enrichment", status="success")

    run_scheduled_bookings_sync(Mock(), Mock())

    mock_sync.assert_called_once()
    mock_enrich.assert_called_once()


@pytest.mark.unit
@patch("stays_sync.services.scheduler.enrich_bookings_with_client_data")
@patch("stays_sync.services.scheduler.run_bookings_sync")
@patch("stays_sync.services.scheduler.SyncTracker")
def test_scheduled_sync_skips_while_running(
    mock_tracker: Mock, mock_sync: Mock, mock_enrich: Mock
) -> None:
    """The scheduled trigger checks the tracker and skips a running domain."""
    mock_tracker.return_value.is_running.return_value = True

    run_scheduled_bookings_sync(Mock(), Mock())

    mock_sync.assert_not_called()
    mock_enrich.assert_not_called()


@pytest.mark.unit
@patch("stays_sync.services.scheduler.enrich_bookings_with_client_data")
@patch("stays_sync.services.scheduler.run_bookings_sync")
@patch("stays_sync.services.scheduler.SyncTracker")
def test_no_enrichment_after_failed_sync(
    mock_tracker: Mock, mock_sync: Mock, mock_enrich: Mock
) -> None:
    mock_tracker.return_value.is_running.return_value = False
    mock_sync.return_value = SyncResult(sync_type="bookings", status="error", error="boom")

    run_scheduled_bookings_sync(Mock(), Mock())

    mock_enrich.assert_not_called()


@pytest.mark.unit
@patch("stays_sync.services.scheduler.run_scheduled_bookings_sync")
@patch("stays_sync.services.scheduler.SyncTracker")
def test_initial_sync_only_when_never_synced(mock_tracker: Mock, mock_run: Mock) -> None:
    mock_tracker.return_value.status.return_value = {"status": "success"}
    run_initial_sync(Mock(), Mock())
    mock_run.assert_not_called()

    mock_tracker.return_value.status.return_value = {"status": "never"}
    run_initial_sync(Mock(), Mock())
    mock_run.assert_called_once()
