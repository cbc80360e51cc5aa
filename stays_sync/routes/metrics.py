"""
Prometheus scrape endpoint.

Example:
    GET /metrics

    Response:
        # HELP stays_sync_runs_total Total number of sync runs by outcome
        # TYPE stays_sync_runs_total counter
        stays_sync_runs_total{status="success",sync_type="bookings"} 12.0
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
def metrics() -> Response:
    """Return all registered metrics in the Prometheus text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
