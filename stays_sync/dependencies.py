"""
FastAPI dependency injection providers.

Routes receive the engine, the Stays.net client, the business date and the
API-key guard through these providers, so tests can swap any of them with
``app.dependency_overrides``.
"""

from __future__ import annotations

import secrets
from datetime import date
from functools import lru_cache
from typing import Generator, Optional

import structlog
from fastapi import Header, HTTPException, status
from sqlalchemy.engine import Engine

from stays_sync.config import (
    API_KEY,
    STAYS_API_BASE_URL,
    STAYS_CLIENT_ID,
    STAYS_CLIENT_SECRET,
    STAYS_REQUEST_TIMEOUT,
)
from stays_sync.db.engine import get_engine
from stays_sync.network.client import StaysClient
from stays_sync.utils.datetime import local_today

logger = structlog.get_logger(__name__)


@lru_cache(maxsize=1)
def build_stays_client() -> StaysClient:
    """Return the process-wide Stays.net client built from configuration."""
    return StaysClient(
        base_url=STAYS_API_BASE_URL,
        client_id=STAYS_CLIENT_ID,
        client_secret=STAYS_CLIENT_SECRET,
        timeout=STAYS_REQUEST_TIMEOUT,
    )


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide the database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
    """
    yield get_engine()


def get_stays_client() -> Generator[StaysClient, None, None]:
    """Provide the Stays.net client (only the sync trigger routes need it)."""
    yield build_stays_client()


def get_today() -> date:
    """Business date in the property timezone."""
    return local_today()


def require_api_key(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> None:
    """
    Reject requests without the configured API key.

    Raises:
        HTTPException: 401 when the header is missing, 403 when it is wrong
    """
    if not x_api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="API key required")

    if not API_KEY or not secrets.compare_digest(x_api_key, API_KEY):
        logger.warning("api_key_rejected")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")
