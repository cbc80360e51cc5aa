"""Booking channel naming, logos and chart colours."""

from typing import Optional

from stays_sync.schemas.remote import RemoteBooking

DEFAULT_PLATFORM_IMAGE = "/images/platforms/default.png"
DEFAULT_PLATFORM_COLOR = "#9CA3AF"

PLATFORM_IMAGES: dict[str, str] = {
    "airbnb": "/images/platforms/airbnb.png",
    "booking": "/images/platforms/booking.png",
    "booking.com": "/images/platforms/booking.png",
    "expedia": "/images/platforms/expedia.png",
    "vrbo": "/images/platforms/vrbo.png",
    "tripadvisor": "/images/platforms/tripadvisor.png",
    "homeaway": "/images/platforms/homeaway.png",
    "stays": "/images/platforms/stays.png",
    "stays.net": "/images/platforms/stays.png",
    "direct": "/images/platforms/direct.png",
    "direto": "/images/platforms/direct.png",
    "website": "/images/platforms/direct.png",
    "manual": "/images/platforms/direct.png",
}

PLATFORM_COLORS: dict[str, str] = {
    "airbnb": "#FF5A5F",
    "booking.com": "#003580",
    "booking": "#003580",
    "expedia": "#00355F",
    "vrbo": "#0061E0",
    "tripadvisor": "#00AF87",
    "homeaway": "#F58220",
    "stays.net": "#6366F1",
    "stays": "#6366F1",
    "direct": "#10B981",
    "direto": "#10B981",
    "website": "#10B981",
    "manual": "#6B7280",
}


def resolve_platform(booking: RemoteBooking) -> Optional[str]:
    """Channel name: the partner's name when present, otherwise the booking source."""
    if booking.partner is not None and booking.partner.name:
        return booking.partner.name
    return booking.source or None


def _lookup(platform: Optional[str], table: dict[str, str], default: str) -> str:
    if not platform:
        return default
    normalized = platform.strip().lower()
    if normalized in table:
        return table[normalized]
    for key, value in table.items():
        if key in normalized:
            return value
    return default


def platform_image(platform: Optional[str]) -> str:
    """Logo path for a channel name, matched exactly and then by substring."""
    return _lookup(platform, PLATFORM_IMAGES, DEFAULT_PLATFORM_IMAGE)


def platform_color(platform: Optional[str]) -> str:
    """Chart colour for a channel name; unknown channels get the neutral grey."""
    return _lookup(platform, PLATFORM_COLORS, DEFAULT_PLATFORM_COLOR)
