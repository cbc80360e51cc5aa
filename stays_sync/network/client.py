"""
Client for the Stays.net external API.

The client is a thin, stateless transport: it issues authenticated GET requests,
raises ``RemoteApiError`` on any non-2xx response and never retries. Callers
decide which failures are recoverable.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

import requests
import structlog

from stays_sync.errors import RemoteApiError
from stays_sync.metrics import api_latency, api_requests, pagination_ceiling_hits
from stays_sync.network.auth import build_basic_auth_header

logger = structlog.get_logger(__name__)

PAGE_SIZE = 20

# Safety ceilings per paginated fetch; hitting one is logged as an anomaly
MAX_BOOKINGS = 1000
MAX_LISTINGS = 500
MAX_CLIENTS = 2000


def fetch_all_pages(
    fetch_page: Callable[[int, int], list[dict[str, Any]]],
    resource: str,
    ceiling: int,
    page_size: int = PAGE_SIZE,
) -> list[dict[str, Any]]:
    """
    Repeat ``fetch_page`` with an increasing offset until the data runs out.

    A page shorter than ``page_size`` ends the loop. The ``ceiling`` stops runaway
    pagination when the remote API keeps returning full pages.

    Args:
        fetch_page: Callable taking (skip, limit) and returning one page of records
        resource: Name used in logs and metrics (e.g. "bookings")
        ceiling: Maximum number of records to collect
        page_size: Records requested per page

    Returns:
        list[dict]: All records collected, in page order
    """
    results: list[dict[str, Any]] = []
    skip = 0

    while True:
        page = fetch_page(skip, page_size)
        results.extend(page)

        if len(page) < page_size:
            break

        skip += page_size
        if len(results) >= ceiling:
            logger.warning(
                "pagination_ceiling_reached",
                resource=resource,
                ceiling=ceiling,
                fetched=len(results),
            )
            pagination_ceiling_hits.labels(resource=resource).inc()
            break

    logger.debug("pagination_finished", resource=resource, fetched=len(results))
    return results


class StaysClient:
    """
    Typed wrapper around the Stays.net booking and content endpoints.

    Args:
        base_url: API root, e.g. "https://casap.stays.net"
        client_id: API login
        client_secret: API password
        timeout: Per-request transport timeout in seconds
        session: Optional ``requests.Session`` (injected in tests)
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._auth_header = build_basic_auth_header(client_id, client_secret)
        self._session = session or requests.Session()

    def _get(self, path: str, label: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Issue one authenticated GET request.

        Args:
            path: Path below the API root, e.g. "/external/v1/booking/reservations"
            label: Low-cardinality endpoint label for metrics
            params: Query string parameters

        Returns:
            Decoded JSON body

        Raises:
            RemoteApiError: On transport failure or any non-2xx status
        """
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": self._auth_header,
            "Content-Type": "application/json",
        }

        logger.debug("stays_request", endpoint=label, params=params)
        start_time = time.time()
        try:
            res = self._session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.RequestException as err:
            api_requests.labels(endpoint=label, status_code="error").inc()
            logger.warning("stays_request_failed", endpoint=label, error=str(err))
            raise RemoteApiError(None, str(err)) from err

        api_requests.labels(endpoint=label, status_code=str(res.status_code)).inc()
        api_latency.labels(endpoint=label).observe(time.time() - start_time)

        if not 200 <= res.status_code < 300:
            logger.warning("stays_request_rejected", endpoint=label, status_code=res.status_code)
            raise RemoteApiError(res.status_code, res.reason or "request rejected", res.text)

        return res.json()

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def list_bookings(
        self,
        from_date: str,
        to_date: str,
        date_type: str = "included",
        skip: int = 0,
        limit: int = PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """Fetch one page of reservation summaries overlapping ``from_date``..``to_date``."""
        params = {
            "from": from_date,
            "to": to_date,
            "dateType": date_type,
            "skip": skip,
            "limit": limit,
        }
        return self._as_list(
            self._get("/external/v1/booking/reservations", "booking/reservations", params)
        )

    def fetch_all_bookings(
        self, from_date: str, to_date: str, date_type: str = "included"
    ) -> list[dict[str, Any]]:
        """Fetch every reservation summary in the window, up to ``MAX_BOOKINGS``."""
        return fetch_all_pages(
            lambda skip, limit: self.list_bookings(from_date, to_date, date_type, skip, limit),
            resource="bookings",
            ceiling=MAX_BOOKINGS,
        )

    def get_booking_detail(self, reservation_id: str) -> dict[str, Any]:
        """Fetch the full reservation record including guest and partner detail."""
        return dict(
            self._get(
                f"/external/v1/booking/reservations/{reservation_id}",
                "booking/reservations/{id}",
            )
        )

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_listings(self, skip: int = 0, limit: int = PAGE_SIZE) -> list[dict[str, Any]]:
        """Fetch one page of the listing catalogue."""
        return self._as_list(
            self._get(
                "/external/v1/content/listings",
                "content/listings",
                {"skip": skip, "limit": limit},
            )
        )

    def fetch_all_listings(self) -> list[dict[str, Any]]:
        """Fetch the whole listing catalogue, up to ``MAX_LISTINGS``."""
        return fetch_all_pages(self.list_listings, resource="listings", ceiling=MAX_LISTINGS)

    def get_listing_detail(self, listing_id: str) -> dict[str, Any]:
        """Fetch one listing with rooms, address, geo and media fields."""
        return dict(
            self._get(f"/external/v1/content/listings/{listing_id}", "content/listings/{id}")
        )

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def list_clients(self, skip: int = 0, limit: int = PAGE_SIZE) -> list[dict[str, Any]]:
        """Fetch one page of guest (client) records."""
        return self._as_list(
            self._get(
                "/external/v1/booking/clients",
                "booking/clients",
                {"skip": skip, "limit": limit},
            )
        )

    def fetch_all_clients(self) -> list[dict[str, Any]]:
        """Fetch every client record, up to ``MAX_CLIENTS``."""
        return fetch_all_pages(self.list_clients, resource="clients", ceiling=MAX_CLIENTS)

    def get_client_detail(self, client_id: str) -> dict[str, Any]:
        """Fetch one client record (country, language, contact details)."""
        return dict(self._get(f"/external/v1/booking/clients/{client_id}", "booking/clients/{id}"))

    @staticmethod
    def _as_list(body: Any) -> list[dict[str, Any]]:
        # List endpoints return a bare JSON array; tolerate an enveloped {"data": [...]}
        if isinstance(body, list):
            return body
        if isinstance(body, dict) and isinstance(body.get("data"), list):
            return list(body["data"])
        return []
