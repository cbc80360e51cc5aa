"""Merge Stays.net bookings with their listings into ``unified_bookings`` rows."""

import json
from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from stays_sync.config import DEBUG
from stays_sync.normalizers.extraction import (
    resolve_guest_counts,
    resolve_guest_name,
    resolve_nights,
    resolve_total_price,
)
from stays_sync.normalizers.listings import format_address, listing_code, listing_display_name
from stays_sync.normalizers.platforms import platform_image, resolve_platform
from stays_sync.schemas.remote import RemoteBooking, RemoteListing
from stays_sync.utils.datetime import parse_date

logger = structlog.get_logger(__name__)

BOOKING_TYPES = {"normal", "provisional", "blocked"}


def parse_booking(raw: dict[str, Any]) -> Optional[RemoteBooking]:
    """Validate a raw booking payload, returning None (and logging) if it cannot be used."""
    try:
        return RemoteBooking.model_validate(raw)
    except ValidationError as e:
        logger.warning("booking_payload_invalid", reservation_id=raw.get("_id"), errors=e.error_count())
        if DEBUG:
            logger.debug("Invalid booking payload:\n%s", json.dumps(raw, indent=2, default=str))
        return None


def normalize_booking_type(value: Optional[str]) -> str:
    """Lower-case booking type; anything unrecognised is treated as a normal reservation."""
    normalized = (value or "").strip().lower()
    return normalized if normalized in BOOKING_TYPES else "normal"


def build_unified_booking(
    booking: RemoteBooking,
    listing: Optional[RemoteListing],
    now: datetime,
) -> Optional[dict[str, Any]]:
    """
    Build one ``unified_bookings`` row from a booking and its listing.

    The row carries only synced columns plus ``created_at``; client
    demographics, team assignment and feedback are never produced here.

    Args:
        booking: Booking detail, or the list summary when the detail fetch failed
        listing: The booking's listing detail, None when it could not be fetched
        now: Timestamp applied to created_at/updated_at/synced_at

    Returns:
        dict row, or None if the booking lacks a listing id or valid stay dates
    """
    check_in = parse_date(booking.check_in_date)
    check_out = parse_date(booking.check_out_date)
    if not booking.listing_id or check_in is None or check_out is None:
        logger.warning(
            "booking_skipped_missing_fields",
            reservation_id=booking.reservation_id,
            listing_id=booking.listing_id,
            check_in=booking.check_in_date,
            check_out=booking.check_out_date,
        )
        return None

    platform = resolve_platform(booking)
    guest_count, adults, children, babies = resolve_guest_counts(booking)

    return {
        "id": booking.reservation_id,
        "booking_code": booking.booking_code,
        "listing_id": booking.listing_id,
        "apartment_code": listing_code(listing) if listing else booking.listing_id,
        "listing_name": listing_display_name(listing) if listing else None,
        "listing_address": format_address(listing.address) if listing else None,
        "type": normalize_booking_type(booking.type),
        "status": booking.status,
        "check_in_date": check_in,
        "check_in_time": booking.check_in_time,
        "check_out_date": check_out,
        "check_out_time": booking.check_out_time,
        "nights": resolve_nights(booking),
        "creation_date": booking.creation_date,
        "guest_name": resolve_guest_name(booking),
        "guest_count": guest_count,
        "adults": adults,
        "children": children,
        "babies": babies,
        "client_id": booking.client_id,
        "platform": platform,
        "platform_image": platform_image(platform),
        "channel_name": booking.channel_name,
        "source": booking.source,
        "price_value": resolve_total_price(booking),
        "price_currency": booking.price.currency if booking.price else None,
        "created_at": now,
        "updated_at": now,
        "synced_at": now,
    }


def build_unified_bookings(
    bookings: list[RemoteBooking],
    listings: dict[str, RemoteListing],
    now: datetime,
) -> list[dict[str, Any]]:
    """
    Build rows for every booking, keyed uniquely by reservation id.

    A reservation appearing twice keeps the last occurrence, so a batch never
    asks the database to upsert the same key twice.
    """
    rows: dict[str, dict[str, Any]] = {}
    for booking in bookings:
        row = build_unified_booking(booking, listings.get(booking.listing_id or ""), now)
        if row is not None:
            rows[row["id"]] = row

    if DEBUG and rows:
        sample = next(iter(rows.values()))
        logger.debug("Sample unified booking:\n%s", json.dumps(sample, indent=2, default=str))

    return list(rows.values())
