"""Create group stay claims tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="CUSTOMER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("type", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("region_name", sa.String(255), nullable=True),
        sa.Column("district", sa.String(255), nullable=True),
        sa.Column("city", sa.String(255), nullable=True),
        sa.Column("hotel_star", sa.String(50), nullable=True),
        sa.Column("services", sa.JSON(), nullable=True),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(10), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_properties_owner_status", "properties", ["owner_id", "status"])
    op.create_index("idx_properties_region", "properties", ["region_name"])

    op.create_table(
        "group_bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("assigned_owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("confirmed_property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("group_type", sa.String(100), nullable=True),
        sa.Column("accommodation_type", sa.String(100), nullable=True),
        sa.Column("headcount", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("rooms_needed", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("to_region", sa.String(255), nullable=True),
        sa.Column("to_district", sa.String(255), nullable=True),
        sa.Column("to_location", sa.String(255), nullable=True),
        sa.Column("check_in", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column("min_hotel_star_label", sa.String(50), nullable=True),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("owner_assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recommended_property_ids", sa.JSON(), nullable=False),
        sa.Column("is_open_for_claims", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("opened_for_claims_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("claims_config", sa.JSON(), nullable=True),
        sa.Column("claims_config_version", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("idx_group_bookings_open", "group_bookings", ["is_open_for_claims", "status"])
    op.create_index("idx_group_bookings_region", "group_bookings", ["to_region"])

    op.create_table(
        "group_booking_claims",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("group_booking_id", sa.Integer(), sa.ForeignKey("group_bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("offered_price_per_night", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("special_offers", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    # One live (non-withdrawn) claim per owner and booking
    op.create_index(
        "uq_group_booking_claims_booking_owner_live",
        "group_booking_claims",
        ["group_booking_id", "owner_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'WITHDRAWN'"),
        sqlite_where=sa.text("status <> 'WITHDRAWN'"),
    )
    op.create_index("idx_group_booking_claims_owner", "group_booking_claims", ["owner_id", "status"])

    op.create_table(
        "group_booking_audits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("group_booking_id", sa.Integer(), sa.ForeignKey("group_bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("actor_role", sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "idx_group_booking_audits_booking_action",
        "group_booking_audits",
        ["group_booking_id", "action", "id"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_group_booking_audits_booking_action", "group_booking_audits")
    op.drop_table("group_booking_audits")
    op.drop_index("idx_group_booking_claims_owner", "group_booking_claims")
    op.drop_index("uq_group_booking_claims_booking_owner_live", "group_booking_claims")
    op.drop_table("group_booking_claims")
    op.drop_index("idx_group_bookings_region", "group_bookings")
    op.drop_index("idx_group_bookings_open", "group_bookings")
    op.drop_table("group_bookings")
    op.drop_index("idx_properties_region", "properties")
    op.drop_index("idx_properties_owner_status", "properties")
    op.drop_table("properties")
    op.drop_index("ix_users_email", "users")
    op.drop_table("users")
