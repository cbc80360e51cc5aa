import json
from datetime import date
from typing import Optional

import structlog

from stays_sync.config import DEBUG
from stays_sync.network.client import StaysClient
from stays_sync.network.queue import Deadline, RateLimitedQueue
from stays_sync.normalizers.bookings import parse_booking
from stays_sync.schemas.remote import RemoteBooking

logger = structlog.get_logger(__name__)


def poll_booking_summaries(client: StaysClient, start: date, end: date) -> list[RemoteBooking]:
    """
    Fetch every reservation overlapping ``start``..``end``.

    Args:
        client: Stays.net client
        start: First day of the sync window
        end: Last day of the sync window

    Returns:
        list[RemoteBooking]: Parsed summaries (invalid payloads are dropped)

    Raises:
        RemoteApiError: If any list page fails; without the list there is nothing to sync
    """
    raw = client.fetch_all_bookings(start.isoformat(), end.isoformat(), date_type="included")

    if DEBUG and raw:
        logger.debug("Sample booking summary:\n%s", json.dumps(raw[0], indent=2))

    summaries = [b for b in (parse_booking(r) for r in raw) if b is not None]
    logger.info("booking_summaries_fetched", count=len(summaries), start=str(start), end=str(end))
    return summaries


def poll_booking_details(
    client: StaysClient,
    summaries: list[RemoteBooking],
    queue: RateLimitedQueue,
    deadline: Optional[Deadline] = None,
) -> list[RemoteBooking]:
    """
    Replace each summary with its full detail record.

    A failed or unparsable detail degrades to the summary already in hand, so
    one bad reservation never aborts the run.

    Returns:
        list[RemoteBooking]: One record per summary, in the same order
    """
    results = queue.run(
        [s.reservation_id for s in summaries],
        client.get_booking_detail,
        resource="booking_details",
        deadline=deadline,
    )

    bookings: list[RemoteBooking] = []
    degraded = 0
    for summary in summaries:
        result = results.get(summary.reservation_id)
        detail = parse_booking(result.value) if result is not None and result.ok else None
        if detail is None:
            degraded += 1
            bookings.append(summary)
        else:
            bookings.append(detail)

    if degraded:
        logger.warning("booking_details_degraded", degraded=degraded, total=len(summaries))
    logger.info("booking_details_fetched", count=len(bookings) - degraded, degraded=degraded)
    return bookings
