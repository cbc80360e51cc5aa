"""Create mirror tables

Revision ID: 3f9a1c2e7b40
Revises:
Create Date: 2026-10-17 09:12:03.418220

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[attr-defined]
from stays_sync.config import SCHEMA

# revision identifiers, used by Alembic.
revision = "3f9a1c2e7b40"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "unified_bookings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("booking_code", sa.String(), nullable=True),
        sa.Column("listing_id", sa.String(), nullable=False),
        sa.Column("apartment_code", sa.String(), nullable=False),
        sa.Column("listing_name", sa.String(), nullable=True),
        sa.Column("listing_address", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_in_time", sa.String(), nullable=True),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("check_out_time", sa.String(), nullable=True),
        sa.Column("nights", sa.Integer(), nullable=False),
        sa.Column("creation_date", sa.String(), nullable=True),
        sa.Column("guest_name", sa.String(), nullable=False),
        sa.Column("guest_count", sa.Integer(), nullable=False),
        sa.Column("adults", sa.Integer(), nullable=False),
        sa.Column("children", sa.Integer(), nullable=False),
        sa.Column("babies", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.String(), nullable=True),
        sa.Column("guest_country", sa.String(), nullable=True),
        sa.Column("guest_language", sa.String(), nullable=True),
        sa.Column("guest_nationality", sa.String(), nullable=True),
        sa.Column("guest_email", sa.String(), nullable=True),
        sa.Column("guest_phone", sa.String(), nullable=True),
        sa.Column("enriched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responsible_id", sa.String(), nullable=True),
        sa.Column("responsible_name", sa.String(), nullable=True),
        sa.Column("feedback_rating", sa.Float(), nullable=True),
        sa.Column("feedback_comment", sa.Text(), nullable=True),
        sa.Column("feedback_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("platform", sa.String(), nullable=True),
        sa.Column("platform_image", sa.String(), nullable=False),
        sa.Column("channel_name", sa.String(), nullable=True),
        sa.Column("source", sa.String(), nullable=True),
        sa.Column("price_value", sa.Float(), nullable=True),
        sa.Column("price_currency", sa.String(), nullable=True),
        *_timestamps(),
        sa.Column("synced_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_unified_bookings_stay_window",
        "unified_bookings",
        ["check_out_date", "check_in_date"],
        schema=SCHEMA,
    )
    op.create_index(
        op.f("ix_unified_bookings_listing_id"), "unified_bookings", ["listing_id"], schema=SCHEMA
    )
    op.create_index(
        op.f("ix_unified_bookings_client_id"), "unified_bookings", ["client_id"], schema=SCHEMA
    )

    op.create_table(
        "listings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("raw_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("internal_name", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("rooms", sa.Integer(), nullable=False),
        sa.Column("beds", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Float(), nullable=False),
        sa.Column("square_meters", sa.Float(), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=False),
        sa.Column("amenity_ids", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("main_image_url", sa.String(), nullable=True),
        sa.Column("currency", sa.String(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("postal_code", sa.String(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("raw_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("manual_overrides", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("last_manual_update_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.Column("synced_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
    )

    op.create_table(
        "sync_status",
        sa.Column("sync_type", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("bookings_count", sa.Integer(), nullable=False),
        sa.Column("listings_count", sa.Integer(), nullable=False),
        sa.Column("properties_count", sa.Integer(), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("sync_type"),
        schema=SCHEMA,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("sync_status", schema=SCHEMA)
    op.drop_table("properties", schema=SCHEMA)
    op.drop_table("listings", schema=SCHEMA)
    op.drop_index(op.f("ix_unified_bookings_client_id"), table_name="unified_bookings", schema=SCHEMA)
    op.drop_index(op.f("ix_unified_bookings_listing_id"), table_name="unified_bookings", schema=SCHEMA)
    op.drop_index("ix_unified_bookings_stay_window", table_name="unified_bookings", schema=SCHEMA)
    op.drop_table("unified_bookings", schema=SCHEMA)
