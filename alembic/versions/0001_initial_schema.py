"""Initial schema for properties, shares, bookings, and HKT price snapshots."""

from __future__ import annotations
from typing import Union, Sequence

from alembic import op
import sqlalchemy as sa
from app.models.types import JSONType

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _usd() -> sa.Numeric:
    return sa.Numeric(precision=12, scale=2)


def _tokens() -> sa.Numeric:
    return sa.Numeric(precision=26, scale=8)


def upgrade() -> None:
    """Initial schema for properties, shares, bookings, and HKT price snapshots."""
    booking_currency_ref = sa.Enum("USD", "HKT", name="booking_currency", native_enum=False)
    booking_status_ref = sa.Enum(
        "confirmed",
        "canceled",
        "completed",
        name="booking_status",
        native_enum=False,
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("nightly_rate", _usd(), nullable=False),
        sa.Column("cleaning_fee", _usd(), nullable=False),
        sa.Column("max_guests", sa.Integer(), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Integer(), nullable=False),
        sa.Column("total_shares", sa.Integer(), nullable=False),
        sa.Column("share_price", _usd(), nullable=False),
        sa.Column("amenities", JSONType(), nullable=False),
        sa.Column("images", JSONType(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_properties")),
    )
    op.create_table(
        "property_shares",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("wallet_address", sa.String(length=64), nullable=False),
        sa.Column("property_id", sa.String(length=100), nullable=False),
        sa.Column("shares_owned", sa.Integer(), nullable=False),
        sa.Column("has_used_free_week", sa.Boolean(), nullable=False),
        sa.Column("free_week_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["property_id"],
            ["properties.id"],
            name=op.f("fk_property_shares_property_id_properties"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_property_shares")),
        sa.UniqueConstraint("wallet_address", "property_id", name="uq_property_shares_wallet_property"),
    )
    op.create_index("ix_property_shares_wallet", "property_shares", ["wallet_address"], unique=False)
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reference", sa.String(length=32), nullable=False),
        sa.Column("wallet_address", sa.String(length=64), nullable=False),
        sa.Column("property_id", sa.String(length=100), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("nights", sa.Integer(), nullable=False),
        sa.Column("guests", sa.Integer(), nullable=False),
        sa.Column("currency", booking_currency_ref, nullable=False),
        sa.Column("status", booking_status_ref, nullable=False),
        sa.Column("base_price", _usd(), nullable=False),
        sa.Column("cleaning_fee", _usd(), nullable=False),
        sa.Column("total_usd", _usd(), nullable=False),
        sa.Column("total_hkt", _tokens(), nullable=True),
        sa.Column("hkt_rate", _tokens(), nullable=True),
        sa.Column("is_owner_booking", sa.Boolean(), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("payment_reference", sa.String(length=128), nullable=True),
        sa.Column("transaction_hash", sa.String(length=128), nullable=True),
        sa.Column("idempotency_key", sa.String(length=128), nullable=True),
        sa.Column("refund_amount", _tokens(), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["property_id"],
            ["properties.id"],
            name=op.f("fk_bookings_property_id_properties"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bookings")),
        sa.UniqueConstraint("reference", name=op.f("uq_bookings_reference")),
        sa.UniqueConstraint("idempotency_key", name=op.f("uq_bookings_idempotency_key")),
        sa.UniqueConstraint("transaction_hash", name=op.f("uq_bookings_transaction_hash")),
    )
    op.create_index("ix_bookings_wallet", "bookings", ["wallet_address"], unique=False)
    op.create_index("ix_bookings_property", "bookings", ["property_id"], unique=False)
    op.create_table(
        "hkt_price_snapshots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("price_usd", _tokens(), nullable=False),
        sa.Column("price_change_24h", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("market_cap", sa.Numeric(precision=24, scale=2), nullable=True),
        sa.Column("volume_24h", sa.Numeric(precision=24, scale=2), nullable=True),
        sa.Column("total_supply", _tokens(), nullable=True),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_hkt_price_snapshots")),
    )
    op.create_index(
        "ix_hkt_price_snapshots_fetched_at", "hkt_price_snapshots", ["fetched_at"], unique=False
    )


def downgrade() -> None:
    """Drop all tables created in the initial schema."""
    op.drop_index("ix_hkt_price_snapshots_fetched_at", table_name="hkt_price_snapshots")
    op.drop_table("hkt_price_snapshots")
    op.drop_index("ix_bookings_property", table_name="bookings")
    op.drop_index("ix_bookings_wallet", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_property_shares_wallet", table_name="property_shares")
    op.drop_table("property_shares")
    op.drop_table("properties")
