from typing import Iterable, Optional

import structlog

from stays_sync.network.client import StaysClient
from stays_sync.network.queue import Deadline, RateLimitedQueue
from stays_sync.normalizers.listings import parse_listing
from stays_sync.schemas.remote import RemoteListing

logger = structlog.get_logger(__name__)


def poll_listing_details(
    client: StaysClient,
    listing_ids: Iterable[str],
    queue: RateLimitedQueue,
    deadline: Optional[Deadline] = None,
) -> dict[str, RemoteListing]:
    """
    Fetch listing details for the given ids.

    Failed fetches are left out of the result; bookings on those listings fall
    back to the listing id as their apartment code.

    Returns:
        dict: listing id -> RemoteListing
    """
    results = queue.run(
        listing_ids, client.get_listing_detail, resource="listing_details", deadline=deadline
    )

    listings: dict[str, RemoteListing] = {}
    for listing_id, result in results.items():
        if not result.ok:
            continue
        listing = parse_listing(result.value)
        if listing is not None:
            listings[listing_id] = listing

    logger.info("listing_details_fetched", count=len(listings), requested=len(results))
    return listings


def poll_listing_catalogue(
    client: StaysClient,
    queue: RateLimitedQueue,
    deadline: Optional[Deadline] = None,
) -> list[RemoteListing]:
    """
    Fetch the whole listing catalogue with details.

    Catalogue entries whose detail fetch fails are kept as-is. A listing id
    repeated across pages (offset paging over a changing catalogue) is kept
    once, last occurrence wins.

    Raises:
        RemoteApiError: If a catalogue page fails
    """
    raw_listings = client.fetch_all_listings()
    unique: dict[str, RemoteListing] = {}
    for listing in (parse_listing(raw) for raw in raw_listings):
        if listing is not None:
            unique[listing.listing_id] = listing
    catalogue = list(unique.values())

    if len(catalogue) < len(raw_listings):
        logger.info(
            "listing_catalogue_deduplicated", fetched=len(raw_listings), unique=len(catalogue)
        )
    logger.info("listing_catalogue_fetched", count=len(catalogue))

    details = poll_listing_details(
        client, [listing.listing_id for listing in catalogue], queue, deadline=deadline
    )
    return [details.get(listing.listing_id, listing) for listing in catalogue]
