"""Initial booking schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_ACTIVE_STATUSES = "('confirmed', 'in_custody')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _json_list() -> sa.types.TypeEngine:
    return postgresql.JSONB(astext_type=sa.Text()).with_variant(sa.JSON(), "sqlite")


def upgrade() -> None:
    listing_kind_enum = sa.Enum("storage", "parking", name="listingkind")
    vehicle_class_enum = sa.Enum("2-wheeler", "4-wheeler", name="vehicleclass")
    booking_status_enum = sa.Enum(
        "confirmed", "in_custody", "cancelled", "completed", name="bookingstatus"
    )
    custody_state_enum = sa.Enum(
        "Pending", "In-Custody", "Completed", name="custodystate"
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=32)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "listings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", listing_kind_enum, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("address", sa.String(length=512)),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("length_ft", sa.Float(), nullable=False, server_default="0"),
        sa.Column("width_ft", sa.Float(), nullable=False, server_default="0"),
        sa.Column("height_ft", sa.Float()),
        sa.Column("vehicle_class", vehicle_class_enum),
        sa.Column("subtypes", _json_list(), nullable=False),
        sa.Column("photos", _json_list(), nullable=False),
        sa.Column("image_url", sa.String(length=1024)),
        sa.Column("has_locker", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_cctv", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "has_ev_charge", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "is_waterproof", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "has_security_guard",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "price_per_block", sa.Numeric(10, 2), nullable=False, server_default="0"
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "parent_listing_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="SET NULL"),
        ),
        *_timestamps(),
    )
    op.create_index("ix_listings_owner_id", "listings", ["owner_id"])

    op.create_table(
        "sub_slots",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("label", sa.String(length=120), nullable=False),
        sa.Column("length_ft", sa.Float()),
        sa.Column("width_ft", sa.Float()),
        sa.Column("height_ft", sa.Float()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_sub_slots_listing_id", "sub_slots", ["listing_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "sub_slot_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("sub_slots.id", ondelete="CASCADE"),
        ),
        sa.Column(
            "seeker_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "provider_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("custody_state", custody_state_enum, nullable=False),
        sa.Column("scan_token", sa.String(length=64)),
        sa.Column("item_photos", _json_list(), nullable=False),
        sa.Column("item_description", sa.Text()),
        sa.Column("refund_amount", sa.Numeric(10, 2)),
        sa.Column("refund_percent", sa.Integer()),
        sa.Column("handed_over_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="ck_bookings_time_order"),
    )
    op.create_index("ix_bookings_seeker_id", "bookings", ["seeker_id"])
    op.create_index("ix_bookings_provider_id", "bookings", ["provider_id"])
    op.create_index("ix_bookings_listing_status", "bookings", ["listing_id", "status"])
    op.create_index(
        "ix_bookings_sub_slot_status", "bookings", ["sub_slot_id", "status"]
    )

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        # Live bookings on one listing (or one sub-slot) may not overlap.
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            "ALTER TABLE bookings ADD CONSTRAINT ex_bookings_listing_overlap "
            "EXCLUDE USING gist (listing_id WITH =, "
            "tstzrange(start_time, end_time, '[)') WITH &&) "
            f"WHERE (sub_slot_id IS NULL AND status IN {_ACTIVE_STATUSES})"
        )
        op.execute(
            "ALTER TABLE bookings ADD CONSTRAINT ex_bookings_sub_slot_overlap "
            "EXCLUDE USING gist (sub_slot_id WITH =, "
            "tstzrange(start_time, end_time, '[)') WITH &&) "
            f"WHERE (sub_slot_id IS NOT NULL AND status IN {_ACTIVE_STATUSES})"
        )


def downgrade() -> None:
    bind = op.get_bind()
    op.drop_table("bookings")
    op.drop_table("sub_slots")
    op.drop_table("listings")
    op.drop_table("users")
    if bind.dialect.name == "postgresql":
        for name in ("custodystate", "bookingstatus", "vehicleclass", "listingkind"):
            op.execute(f"DROP TYPE IF EXISTS {name}")
