"""
Prometheus metrics for the Stays.net mirror.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Metric Types:
    - Counter: Cumulative metrics that only increase (e.g., total API requests)
    - Histogram: Observations bucketed by value (e.g., request latency)

Example:
    >>> from stays_sync.metrics import sync_duration, sync_runs
    >>> with sync_duration.labels(sync_type="bookings").time():
    ...     result = run_bookings_sync(engine, client)
    >>> sync_runs.labels(sync_type="bookings", status=result.status).inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Sync Metrics
# =============================================================================

sync_runs = Counter(
    "stays_sync_runs_total",
    "Total number of sync runs by outcome",
    ["sync_type", "status"],
)
"""
Counter for sync runs.

Labels:
    sync_type: bookings, properties or enrichment
    status: success, error or skipped
"""

sync_duration = Histogram(
    "stays_sync_duration_seconds",
    "Duration of sync runs in seconds",
    ["sync_type"],
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 900.0, float("inf")),
)

records_synced = Counter(
    "stays_records_synced_total",
    "Total number of records written to the mirror",
    ["entity_type"],
)
"""
Counter for mirrored records.

Labels:
    entity_type: unified_bookings, listings, properties or clients
"""

detail_fetch_failures = Counter(
    "stays_detail_fetch_failures_total",
    "Detail fetches that failed and degraded to fallback data",
    ["resource"],
)

# =============================================================================
# API Metrics
# =============================================================================

api_requests = Counter(
    "stays_api_requests_total",
    "Total Stays.net API requests made",
    ["endpoint", "status_code"],
)
"""
Counter for API requests to Stays.net.

Labels:
    endpoint: Endpoint template (e.g., "booking/reservations/{id}")
    status_code: HTTP status code, or "error" when no response was received
"""

api_latency = Histogram(
    "stays_api_latency_seconds",
    "Stays.net API request latency in seconds",
    ["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)

pagination_ceiling_hits = Counter(
    "stays_pagination_ceiling_hits_total",
    "Paginated fetches stopped by the safety ceiling",
    ["resource"],
)
"""Incremented whenever pagination stops on the safety ceiling instead of a short page."""

# =============================================================================
# Database Metrics
# =============================================================================

db_operations = Counter(
    "stays_db_operations_total",
    "Total database operations performed",
    ["operation", "table"],
)
"""
Counter for database operations.

Labels:
    operation: upsert or update
    table: unified_bookings, listings, properties or sync_status
"""
