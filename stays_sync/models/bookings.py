# models/bookings.py

from sqlalchemy import Column, Date, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.sql import func

from stays_sync.config import SCHEMA
from stays_sync.models.base import Base


class UnifiedBooking(Base):
    """
    Denormalized reservation mirror, the primary read model.

    One row per Stays.net reservation id. Each sync merges the reservation with
    its listing and overwrites the synced columns in place. Client demographics,
    team assignment and feedback columns are owned by other writers and are
    never touched by the booking sync.
    """

    __tablename__ = "unified_bookings"
    __table_args__ = (
        Index("ix_unified_bookings_stay_window", "check_out_date", "check_in_date"),
        {"schema": SCHEMA},
    )

    id = Column(String, primary_key=True)  # Stays.net reservation _id
    booking_code = Column(String, nullable=True)
    listing_id = Column(String, nullable=False, index=True)
    apartment_code = Column(String, nullable=False)
    listing_name = Column(String, nullable=True)
    listing_address = Column(String, nullable=True)

    type = Column(String, nullable=False, default="normal")  # normal, provisional, blocked
    status = Column(String, nullable=True)
    check_in_date = Column(Date, nullable=False)
    check_in_time = Column(String, nullable=True)
    check_out_date = Column(Date, nullable=False)
    check_out_time = Column(String, nullable=True)
    nights = Column(Integer, nullable=False, default=0)
    creation_date = Column(String, nullable=True)

    guest_name = Column(String, nullable=False)
    guest_count = Column(Integer, nullable=False, default=0)
    adults = Column(Integer, nullable=False, default=0)
    children = Column(Integer, nullable=False, default=0)
    babies = Column(Integer, nullable=False, default=0)

    # Client demographics, filled by the enrichment job
    client_id = Column(String, nullable=True, index=True)
    guest_country = Column(String, nullable=True)
    guest_language = Column(String, nullable=True)
    guest_nationality = Column(String, nullable=True)
    guest_email = Column(String, nullable=True)
    guest_phone = Column(String, nullable=True)
    enriched_at = Column(DateTime(timezone=True), nullable=True)

    # Team assignment and feedback, entered outside the sync
    responsible_id = Column(String, nullable=True)
    responsible_name = Column(String, nullable=True)
    feedback_rating = Column(Float, nullable=True)
    feedback_comment = Column(Text, nullable=True)
    feedback_date = Column(DateTime(timezone=True), nullable=True)

    platform = Column(String, nullable=True)
    platform_image = Column(String, nullable=False)
    channel_name = Column(String, nullable=True)
    source = Column(String, nullable=True)
    price_value = Column(Float, nullable=True)  # None when no price strategy resolved
    price_currency = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    synced_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
