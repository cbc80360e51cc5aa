"""Guest analytics across the whole booking history (owner blocks excluded by the caller)."""

from typing import Any, Optional

from stays_sync.analytics.intervals import Row, rounded, total_revenue, unpriced_count
from stays_sync.normalizers.extraction import FALLBACK_GUEST_NAME, is_placeholder_name

TOP_GUESTS = 10


def guest_key(row: Row) -> Optional[str]:
    """Normalized guest identity; None for the fallback or placeholder names."""
    name = (row.get("guest_name") or "").strip()
    if not name or name == FALLBACK_GUEST_NAME or is_placeholder_name(name):
        return None
    return " ".join(name.lower().split())


def _group_by_guest(rows: list[Row]) -> dict[str, list[Row]]:
    groups: dict[str, list[Row]] = {}
    for row in rows:
        key = guest_key(row)
        if key is not None:
            groups.setdefault(key, []).append(row)
    return groups


def returning_guests(rows: list[Row]) -> list[dict[str, Any]]:
    """Guests with more than one booking, most stays first."""
    result = []
    for stays in _group_by_guest(rows).values():
        if len(stays) < 2:
            continue
        stays = sorted(stays, key=lambda r: r["check_in_date"])
        latest = stays[-1]
        result.append(
            {
                "clientId": next((r["client_id"] for r in stays if r.get("client_id")), None),
                "name": stays[0]["guest_name"],
                "email": latest.get("guest_email"),
                "country": latest.get("guest_country"),
                "language": latest.get("guest_language"),
                "totalStays": len(stays),
                "totalNights": sum(r.get("nights") or 0 for r in stays),
                "totalRevenue": rounded(total_revenue(stays), 2),
                "unpricedStays": unpriced_count(stays),
                "firstStay": stays[0]["check_in_date"].isoformat(),
                "lastStay": latest["check_in_date"].isoformat(),
                "properties": sorted({r["apartment_code"] for r in stays}),
            }
        )

    result.sort(key=lambda g: (-g["totalStays"], g["name"]))
    return result


def guest_demographics(rows: list[Row]) -> dict[str, Any]:
    """Country and language mix, group size and family bookings."""
    by_country: dict[str, int] = {}
    by_language: dict[str, int] = {}
    with_children = with_babies = group_size = 0

    for row in rows:
        country = row.get("guest_country") or "Unknown"
        language = row.get("guest_language") or "Unknown"
        by_country[country] = by_country.get(country, 0) + 1
        by_language[language] = by_language.get(language, 0) + 1
        with_children += 1 if (row.get("children") or 0) > 0 else 0
        with_babies += 1 if (row.get("babies") or 0) > 0 else 0
        group_size += row.get("guest_count") or 1

    groups = _group_by_guest(rows)
    returning = sum(1 for stays in groups.values() if len(stays) > 1)

    return {
        "byCountry": by_country,
        "byLanguage": by_language,
        "returningGuestsRate": rounded(returning / len(groups) * 100, 1) if groups else 0.0,
        "averageGroupSize": rounded(group_size / len(rows), 1) if rows else 0.0,
        "withChildren": with_children,
        "withBabies": with_babies,
    }


def guest_summary(rows: list[Row]) -> dict[str, Any]:
    """Unique and returning guest counts with the top returning guests."""
    unique = len(_group_by_guest(rows))
    returning = returning_guests(rows)
    return {
        "totalUniqueGuests": unique,
        "totalBookings": len(rows),
        "returningGuests": len(returning),
        "returningGuestsRate": rounded(len(returning) / unique * 100, 1) if unique else 0.0,
        "topGuests": [
            {"name": g["name"], "stays": g["totalStays"], "revenue": g["totalRevenue"]}
            for g in returning[:TOP_GUESTS]
        ],
    }
