import json
from typing import Any

import structlog
from sqlalchemy.engine import Engine

from stays_sync.config import DEBUG
from stays_sync.db.writers._upsert import upsert_in_batches
from stays_sync.metrics import records_synced
from stays_sync.models.bookings import UnifiedBooking

logger = structlog.get_logger(__name__)

# Columns the booking sync owns and overwrites on every run
SYNCED_FIELDS: tuple[str, ...] = (
    "booking_code",
    "listing_id",
    "apartment_code",
    "listing_name",
    "listing_address",
    "type",
    "status",
    "check_in_date",
    "check_in_time",
    "check_out_date",
    "check_out_time",
    "nights",
    "creation_date",
    "guest_name",
    "guest_count",
    "adults",
    "children",
    "babies",
    "client_id",
    "platform",
    "platform_image",
    "channel_name",
    "source",
    "price_value",
    "price_currency",
    "updated_at",
    "synced_at",
)

# Columns written by enrichment, team assignment and feedback; never part of a sync
EXTERNALLY_OWNED_FIELDS: tuple[str, ...] = (
    "guest_country",
    "guest_language",
    "guest_nationality",
    "guest_email",
    "guest_phone",
    "enriched_at",
    "responsible_id",
    "responsible_name",
    "feedback_rating",
    "feedback_comment",
    "feedback_date",
)

_INSERT_COLUMNS = ("id", "created_at", *SYNCED_FIELDS)


def insert_unified_bookings(
    engine: Engine, data: list[dict[str, Any]], dry_run: bool = False
) -> int:
    """
    Upsert unified booking rows keyed by reservation id.

    Synced columns are overwritten unconditionally; ``created_at`` is written on
    insert only, and externally owned columns are never sent at all.

    Args:
        engine: SQLAlchemy Engine
        data: Rows from ``build_unified_bookings``
        dry_run: If True, skip DB writes and log only

    Returns:
        int: Number of rows upserted (0 on dry run)

    Raises:
        WriteError: If a batch fails
    """
    rows = [{col: row.get(col) for col in _INSERT_COLUMNS} for row in data if row.get("id")]

    if dry_run:
        logger.info("[DRY RUN] Would upsert %d unified bookings", len(rows))
        return 0

    if not rows:
        logger.info("No unified bookings to upsert")
        return 0

    if DEBUG:
        logger.debug("Sample unified booking row:\n%s", json.dumps(rows[0], indent=2, default=str))

    count = upsert_in_batches(
        engine,
        UnifiedBooking,
        rows,
        conflict_column="id",
        update_columns=list(SYNCED_FIELDS),
    )
    records_synced.labels(entity_type="unified_bookings").inc(count)
    logger.info("unified_bookings_upserted", count=count)
    return count
