from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Connection

from stays_sync.models.sync_status import SyncStatus

NEVER_SYNCED: dict[str, Any] = {
    "status": "never",
    "last_sync_at": None,
    "last_error": None,
    "bookings_count": 0,
    "listings_count": 0,
    "properties_count": 0,
    "duration_ms": None,
    "updated_at": None,
}


def get_sync_status(conn: Connection, sync_type: str) -> dict[str, Any]:
    """
    Load the tracker row for ``sync_type``.

    Returns:
        dict: Row values, or the "never" defaults when no run has been recorded
    """
    row = (
        conn.execute(select(SyncStatus.__table__).where(SyncStatus.sync_type == sync_type))
        .mappings()
        .first()
    )
    if row is None:
        return {"sync_type": sync_type, **NEVER_SYNCED}
    return dict(row)
