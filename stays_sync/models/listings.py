# models/listings.py

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from stays_sync.config import SCHEMA
from stays_sync.models.base import Base, JSONType


class Listing(Base):
    """
    ORM model for Stays.net listings fetched during the booking sync.

    Holds the denormalized code, name and address alongside the raw detail
    payload. Only listings referenced by synced bookings appear here; the full
    catalogue lives in ``Property``.
    """

    __tablename__ = "listings"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String, primary_key=True)  # Stays.net listing _id
    code = Column(String, nullable=False)
    name = Column(String, nullable=True)
    address = Column(String, nullable=True)
    raw_payload = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
