"""
SQLAlchemy engine construction.

The engine is built explicitly and handed to the pipeline and the aggregation
readers; ``get_engine`` caches one instance per process for the API and the
scheduler.
"""

from functools import lru_cache
from typing import Optional

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from stays_sync.config import DATABASE_URL

logger = structlog.get_logger(__name__)


def build_engine(url: str) -> Engine:
    """
    Create an engine for ``url``.

    PostgreSQL gets the production pool settings. SQLite (local runs, tests)
    uses the dialect's default pool.

    Args:
        url: SQLAlchemy database URL

    Returns:
        Engine
    """
    kwargs: dict[str, object] = {}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=10,  # Connections kept in the pool
            max_overflow=20,  # Extra connections when the pool is exhausted
            pool_pre_ping=True,  # Detect stale connections before use
            pool_recycle=3600,  # Recycle connections hourly
        )
    return create_engine(url, future=True, echo=False, **kwargs)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Return the process-wide engine for ``DATABASE_URL``."""
    return build_engine(str(DATABASE_URL))


def check_engine_health(engine: Optional[Engine] = None) -> bool:
    """
    Check that the database answers a trivial query.

    Used by the /ready endpoint before the service receives traffic.

    Returns:
        bool: True if the database is reachable, False otherwise
    """
    engine = engine or get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("database_health_check_failed", error=str(e))
        return False
