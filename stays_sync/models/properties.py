# models/properties.py

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from stays_sync.config import SCHEMA
from stays_sync.models.base import Base, JSONType


class Property(Base):
    """
    Property catalogue built by the daily property sync.

    ``manual_overrides`` and ``last_manual_update_at`` hold data entered by
    staff (wifi, door codes, maintenance notes). They are initialised on insert
    and never overwritten by a sync.
    """

    __tablename__ = "properties"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String, primary_key=True)  # Stays.net listing _id
    internal_name = Column(String, nullable=False)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    rooms = Column(Integer, nullable=False, default=0)
    beds = Column(Integer, nullable=False, default=0)
    bathrooms = Column(Float, nullable=False, default=0)
    square_meters = Column(Float, nullable=True)
    max_guests = Column(Integer, nullable=False, default=0)
    amenity_ids = Column(JSONType, nullable=False)
    main_image_url = Column(String, nullable=True)
    currency = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=False)
    raw_payload = Column(JSONType, nullable=False)

    manual_overrides = Column(JSONType, nullable=True)
    last_manual_update_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    synced_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
