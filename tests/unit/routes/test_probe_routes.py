"""
Unit tests for /health, /ready and /metrics.
"""

from __future__ import annotations

from typing import Generator
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from stays_sync.dependencies import get_db_engine
from stays_sync.main import app


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_db_engine] = lambda: Mock()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.mark.unit
def test_health_needs_no_api_key(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.unit
@patch("stays_sync.routes.health.check_engine_health", return_value=True)
def test_ready_when_database_reachable(mock_check: Mock, client: TestClient) -> None:
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "ok"


@pytest.mark.unit
@patch("stays_sync.routes.health.check_engine_health", return_value=False)
def test_not_ready_when_database_down(mock_check: Mock, client: TestClient) -> None:
    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "not ready", "checks": {"database": "failed"}}


@pytest.mark.unit
def test_metrics_exposition(client: TestClient) -> None:
    """The Prometheus endpoint lists the sync counters."""
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "stays_sync_runs_total" in response.text
    assert "stays_api_requests_total" in response.text


@pytest.mark.unit
def test_responses_carry_request_id(client: TestClient) -> None:
    """An incoming X-Request-ID is echoed back unchanged."""
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
