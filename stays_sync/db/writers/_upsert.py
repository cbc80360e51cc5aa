"""
Batched, dialect-aware upsert helper shared by every mirror writer.

Rows are written with INSERT ... ON CONFLICT DO UPDATE in fixed-size batches.
Each batch runs in its own transaction, so a failure leaves earlier batches
committed and the failing batch untouched.
"""

from typing import Any, Optional

import structlog
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from stays_sync.errors import WriteError
from stays_sync.metrics import db_operations

logger = structlog.get_logger(__name__)

WRITE_BATCH_SIZE = 500


def dialect_insert(conn: Connection, table: type) -> Any:
    """Return the dialect-specific ``insert`` construct supporting ON CONFLICT."""
    if conn.dialect.name == "sqlite":
        return sqlite.insert(table)
    return postgresql.insert(table)


def upsert_rows(
    conn: Connection,
    table: type,
    rows: list[dict[str, Any]],
    conflict_column: str,
    update_columns: list[str],
    distinct_column: Optional[str] = None,
) -> None:
    """
    Upsert ``rows`` in a single statement.

    Args:
        conn: Active connection (within a transaction)
        table: ORM class (e.g. UnifiedBooking)
        rows: Row dicts; each must contain ``conflict_column``
        conflict_column: Column for ON CONFLICT (the external id)
        update_columns: Columns overwritten when the row already exists.
            Columns not listed keep their stored value, which is how creation
            timestamps and externally owned fields survive re-syncs.
        distinct_column: When given, existing rows are only updated if this
            column's value changed (IS DISTINCT FROM)

    Example:
        >>> with engine.begin() as conn:
        ...     upsert_rows(conn, Listing, rows, "id", ["code", "raw_payload", "updated_at"],
        ...                 distinct_column="raw_payload")
    """
    if not rows:
        return

    stmt = dialect_insert(conn, table).values(rows)
    set_dict = {col: getattr(stmt.excluded, col) for col in update_columns}

    where = None
    if distinct_column is not None:
        where = getattr(table, distinct_column).is_distinct_from(
            getattr(stmt.excluded, distinct_column)
        )

    stmt = stmt.on_conflict_do_update(
        index_elements=[conflict_column],
        set_=set_dict,
        where=where,
    )
    conn.execute(stmt)


def upsert_in_batches(
    engine: Engine,
    table: type,
    rows: list[dict[str, Any]],
    conflict_column: str,
    update_columns: list[str],
    distinct_column: Optional[str] = None,
    batch_size: Optional[int] = None,
) -> int:
    """
    Upsert ``rows`` in transactions of ``batch_size`` rows (default ``WRITE_BATCH_SIZE``).

    Returns:
        int: Number of rows submitted

    Raises:
        WriteError: On the first batch that fails; earlier batches stay committed
    """
    batch_size = batch_size or WRITE_BATCH_SIZE
    table_name = table.__tablename__
    for index, start in enumerate(range(0, len(rows), batch_size)):
        batch = rows[start : start + batch_size]
        try:
            with engine.begin() as conn:
                upsert_rows(conn, table, batch, conflict_column, update_columns, distinct_column)
        except SQLAlchemyError as e:
            logger.error(
                "upsert_batch_failed",
                table=table_name,
                batch_index=index,
                batch_size=len(batch),
                error=str(e),
            )
            raise WriteError(table_name, index, str(e)) from e
        db_operations.labels(operation="upsert", table=table_name).inc(len(batch))

    return len(rows)
