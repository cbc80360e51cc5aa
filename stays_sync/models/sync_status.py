# models/sync_status.py

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from stays_sync.config import SCHEMA
from stays_sync.models.base import Base


class SyncStatus(Base):
    """
    One tracker row per sync domain ("bookings", "properties").

    Rows are created on the first run and only ever upserted. ``last_sync_at``
    moves on terminal states (success, error), never when entering running.
    ``updated_at`` moves on every transition and dates the running lease.
    """

    __tablename__ = "sync_status"
    __table_args__ = {"schema": SCHEMA}

    sync_type = Column(String, primary_key=True)
    status = Column(String, nullable=False, default="never")
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    last_error = Column(Text, nullable=True)
    bookings_count = Column(Integer, nullable=False, default=0)
    listings_count = Column(Integer, nullable=False, default=0)
    properties_count = Column(Integer, nullable=False, default=0)
    duration_ms = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
