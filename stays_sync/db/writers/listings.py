from typing import Any

import structlog
from sqlalchemy.engine import Engine

from stays_sync.db.writers._upsert import upsert_in_batches
from stays_sync.metrics import records_synced
from stays_sync.models.listings import Listing

logger = structlog.get_logger(__name__)


def insert_listings(engine: Engine, data: list[dict[str, Any]], dry_run: bool = False) -> int:
    """
    Upsert listing rows; existing rows are only rewritten when raw_payload changed.

    Args:
        engine: SQLAlchemy Engine
        data: Rows from ``build_listing_row``
        dry_run: If True, skip DB writes and log only

    Returns:
        int: Number of rows submitted (0 on dry run)
    """
    if dry_run:
        logger.info("[DRY RUN] Would upsert %d listings", len(data))
        return 0

    if not data:
        logger.info("No listings to upsert")
        return 0

    count = upsert_in_batches(
        engine,
        Listing,
        data,
        conflict_column="id",
        update_columns=["code", "name", "address", "raw_payload", "updated_at"],
        distinct_column="raw_payload",
    )
    records_synced.labels(entity_type="listings").inc(count)
    logger.info("listings_upserted", count=count)
    return count
