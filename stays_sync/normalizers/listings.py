"""Listing payload parsing and the row shapes written to ``listings`` and ``properties``."""

import json
from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from stays_sync.config import DEBUG
from stays_sync.schemas.remote import RemoteAddress, RemoteListing

logger = structlog.get_logger(__name__)

DEFAULT_PROPERTY_NAME = "Unnamed Property"

DEFAULT_MANUAL_OVERRIDES: dict[str, dict[str, Any]] = {
    "wifi": {"network": None, "password": None, "updatedAt": None, "updatedBy": None},
    "access": {
        "doorCode": None,
        "conciergeHours": None,
        "checkInInstructions": None,
        "checkOutInstructions": None,
        "parkingInfo": None,
        "updatedAt": None,
        "updatedBy": None,
    },
    "specifications": {
        "position": None,
        "viewType": None,
        "hasAntiNoiseWindow": None,
        "cleaningFee": None,
        "updatedAt": None,
        "updatedBy": None,
    },
    "maintenance": {
        "specialNotes": None,
        "maintenanceContacts": None,
        "emergencyProcedures": None,
        "updatedAt": None,
        "updatedBy": None,
    },
}


def parse_listing(raw: dict[str, Any]) -> Optional[RemoteListing]:
    """Validate a raw listing payload, returning None (and logging) if it has no usable id."""
    try:
        return RemoteListing.model_validate(raw)
    except ValidationError as e:
        logger.warning("listing_payload_invalid", listing_id=raw.get("_id"), errors=e.error_count())
        if DEBUG:
            logger.debug("Invalid listing payload:\n%s", json.dumps(raw, indent=2, default=str))
        return None


def listing_code(listing: RemoteListing) -> str:
    """Human apartment code: internal name, then short id, then the external id."""
    return listing.internal_name or listing.code or listing.listing_id


def listing_display_name(listing: RemoteListing) -> Optional[str]:
    """Display name, preferring the Portuguese title."""
    if listing.name:
        return listing.name
    title = listing.title or {}
    return title.get("pt_BR") or title.get("en_US") or None


def format_address(address: RemoteAddress | str | None) -> Optional[str]:
    """Render the structured address as "Street 12, Region, City - ST"."""
    if address is None:
        return None
    if isinstance(address, str):
        return address.strip() or None

    street = " ".join(part for part in (address.street, address.street_number) if part)
    line = ", ".join(part for part in (street, address.region, address.city) if part)
    if address.state_code:
        line = f"{line} - {address.state_code}" if line else address.state_code
    return line or None


def build_listing_row(listing: RemoteListing, now: datetime) -> dict[str, Any]:
    """Row for the ``listings`` table."""
    return {
        "id": listing.listing_id,
        "code": listing_code(listing),
        "name": listing_display_name(listing),
        "address": format_address(listing.address),
        "raw_payload": listing.model_dump(by_alias=True, mode="json", exclude_none=True),
        "created_at": now,
        "updated_at": now,
    }


def build_property_row(listing: RemoteListing, now: datetime) -> dict[str, Any]:
    """
    Row for the ``properties`` table.

    ``manual_overrides`` is included with its empty default; the writer only
    applies it when the row is first inserted.
    """
    address = listing.address if isinstance(listing.address, RemoteAddress) else None
    main_image_url = (listing.main_image or {}).get("url")

    return {
        "id": listing.listing_id,
        "internal_name": listing_code(listing),
        "name": listing_display_name(listing) or listing.internal_name or DEFAULT_PROPERTY_NAME,
        "address": format_address(listing.address),
        "rooms": listing.rooms or 0,
        "beds": listing.beds or 0,
        "bathrooms": listing.bathrooms or 0,
        "square_meters": listing.square_meters,
        "max_guests": listing.max_guests or 0,
        "amenity_ids": [a["_id"] for a in listing.amenities if isinstance(a, dict) and a.get("_id")],
        "main_image_url": main_image_url,
        "currency": listing.currency,
        "latitude": listing.lat_lng.lat if listing.lat_lng else None,
        "longitude": listing.lat_lng.lng if listing.lat_lng else None,
        "city": address.city if address else None,
        "state": address.state if address else None,
        "country": address.country_code if address else None,
        "postal_code": address.zip if address else None,
        "active": listing.status == "active",
        "raw_payload": listing.model_dump(by_alias=True, mode="json", exclude_none=True),
        "manual_overrides": DEFAULT_MANUAL_OVERRIDES,
        "last_manual_update_at": None,
        "created_at": now,
        "updated_at": now,
        "synced_at": now,
    }
