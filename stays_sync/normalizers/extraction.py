"""
Ordered-fallback extraction of canonical values from Stays.net bookings.

Everything here is pure: no I/O, no logging, no exceptions for missing data.
A value that cannot be resolved comes back as None (price) or a fixed
fallback (guest name), never as a silent zero.
"""

import re
from typing import Optional

from stays_sync.schemas.remote import RemoteBooking, RemoteGuest
from stays_sync.utils.datetime import parse_date

FALLBACK_GUEST_NAME = "Hóspede"

_PLACEHOLDER_PREFIX = re.compile(r"^(adult|child|baby|guest)_\d*")
_PLACEHOLDER_EXACT = {"guest", "hóspede", "hospede"}
_WHITESPACE = re.compile(r"\s+")


def _positive(value: Optional[float]) -> Optional[float]:
    if value is not None and value > 0:
        return float(value)
    return None


def resolve_total_price(booking: RemoteBooking) -> Optional[float]:
    """
    Resolve the booking's total price using the first strategy that yields a value > 0.

    Order:
        1. fee-inclusive total (price._f_total)
        2. paid-to-date total (stats._f_totalPaid)
        3. hosting subtotal + extras subtotal, when the hosting subtotal is > 0
        4. pre-fee expected total (price._f_expected)
        5. legacy flat value (price.value)
        6. legacy value + cleaning + extras

    Returns:
        The resolved amount, or None when no strategy yields a usable value
    """
    price = booking.price
    stats = booking.stats

    if price is not None:
        total = _positive(price.total)
        if total is not None:
            return total

    if stats is not None:
        paid = _positive(stats.total_paid)
        if paid is not None:
            return paid

    if price is None:
        return None

    hosting = _positive(price.hosting_details.total if price.hosting_details else None)
    if hosting is not None:
        extras = price.extras_details.total if price.extras_details else None
        return hosting + (extras or 0.0)

    expected = _positive(price.expected)
    if expected is not None:
        return expected

    flat = _positive(price.value)
    if flat is not None:
        return flat

    return _positive((price.value or 0.0) + (price.cleaning or 0.0) + (price.extras or 0.0))


def is_placeholder_name(name: Optional[str]) -> bool:
    """
    Return True for names that are synthetic guest-list entries, not real guests.

    Rejects empty strings, "adult_0"-style tokens and the literal words
    "guest"/"hóspede" in any case or spacing.
    """
    if name is None:
        return True
    normalized = _WHITESPACE.sub(" ", name).strip().lower()
    if not normalized:
        return True
    if normalized in _PLACEHOLDER_EXACT:
        return True
    return bool(_PLACEHOLDER_PREFIX.match(normalized))


def _first_valid(guests: list[RemoteGuest], primary_only: bool) -> Optional[str]:
    for guest in guests:
        if primary_only and not guest.primary:
            continue
        if not is_placeholder_name(guest.name):
            return (guest.name or "").strip()
    return None


def resolve_guest_name(booking: RemoteBooking) -> str:
    """
    Resolve the display name of the booking's main guest.

    Order:
        1. guestsDetails.name
        2. the guest flagged primary in guestsDetails.list
        3. the first guest in guestsDetails.list with a real name
        4. FALLBACK_GUEST_NAME
    """
    details = booking.guests_details
    if details is None:
        return FALLBACK_GUEST_NAME

    if not is_placeholder_name(details.name):
        return (details.name or "").strip()

    return (
        _first_valid(details.guests, primary_only=True)
        or _first_valid(details.guests, primary_only=False)
        or FALLBACK_GUEST_NAME
    )


def resolve_nights(booking: RemoteBooking) -> int:
    """
    Number of nights: stats.nights when supplied, otherwise the day count
    between check-in and check-out. Negative or unparsable results become 0.
    """
    if booking.stats is not None and booking.stats.nights is not None:
        return max(booking.stats.nights, 0)

    check_in = parse_date(booking.check_in_date)
    check_out = parse_date(booking.check_out_date)
    if check_in is None or check_out is None:
        return 0
    return max((check_out - check_in).days, 0)


def resolve_guest_counts(booking: RemoteBooking) -> tuple[int, int, int, int]:
    """
    Return (guest_count, adults, children, babies).

    guest_count is the booking's own total when positive, otherwise the sum of
    the per-type counts.
    """
    stats = booking.stats
    adults = (stats.adults if stats else None) or 0
    children = (stats.children if stats else None) or 0
    babies = (stats.babies if stats else None) or 0

    total = booking.guests if booking.guests and booking.guests > 0 else adults + children + babies
    return total, adults, children, babies
