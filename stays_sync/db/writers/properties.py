from typing import Any

import structlog
from sqlalchemy.engine import Engine

from stays_sync.db.writers._upsert import upsert_in_batches
from stays_sync.metrics import records_synced
from stays_sync.models.properties import Property

logger = structlog.get_logger(__name__)

# Initialised on insert, then owned by staff edits
INSERT_ONLY_FIELDS = ("created_at", "manual_overrides", "last_manual_update_at")


def insert_properties(engine: Engine, data: list[dict[str, Any]], dry_run: bool = False) -> int:
    """
    Upsert property catalogue rows without touching manual overrides.

    Args:
        engine: SQLAlchemy Engine
        data: Rows from ``build_property_row``
        dry_run: If True, skip DB writes and log only

    Returns:
        int: Number of rows upserted (0 on dry run)
    """
    if dry_run:
        logger.info("[DRY RUN] Would upsert %d properties", len(data))
        return 0

    if not data:
        logger.info("No properties to upsert")
        return 0

    update_columns = [col for col in data[0] if col != "id" and col not in INSERT_ONLY_FIELDS]
    count = upsert_in_batches(
        engine,
        Property,
        data,
        conflict_column="id",
        update_columns=update_columns,
    )
    records_synced.labels(entity_type="properties").inc(count)
    logger.info("properties_upserted", count=count)
    return count
