from datetime import datetime

import structlog
from sqlalchemy import update
from sqlalchemy.engine import Engine

from stays_sync.metrics import db_operations
from stays_sync.models.bookings import UnifiedBooking
from stays_sync.schemas.remote import RemoteClient

logger = structlog.get_logger(__name__)


def apply_client_demographics(
    engine: Engine,
    bookings_by_client: dict[str, list[str]],
    clients: dict[str, RemoteClient],
    now: datetime,
    dry_run: bool = False,
) -> int:
    """
    Copy client demographics onto their unified bookings.

    Args:
        engine: SQLAlchemy Engine
        bookings_by_client: client id -> reservation ids to update
        clients: client id -> fetched client record (missing ids are skipped)
        now: Value for enriched_at
        dry_run: If True, skip DB writes and log only

    Returns:
        int: Number of bookings updated
    """
    targets = {cid: ids for cid, ids in bookings_by_client.items() if cid in clients}
    total = sum(len(ids) for ids in targets.values())

    if dry_run:
        logger.info("[DRY RUN] Would enrich %d bookings", total)
        return 0

    updated = 0
    with engine.begin() as conn:
        for client_id, reservation_ids in targets.items():
            client = clients[client_id]
            result = conn.execute(
                update(UnifiedBooking)
                .where(UnifiedBooking.id.in_(reservation_ids))
                .values(
                    guest_country=client.country or None,
                    guest_language=client.language or None,
                    guest_nationality=client.nationality or None,
                    guest_email=client.email or None,
                    guest_phone=client.phone or None,
                    enriched_at=now,
                )
            )
            updated += result.rowcount or 0

    db_operations.labels(operation="update", table="unified_bookings").inc(updated)
    logger.info("bookings_enriched", count=updated, clients=len(targets))
    return updated
