"""Persisted booking records."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.models.property import Property
from app.models.types import token_amount, usd_amount


class PaymentCurrency(str, Enum):
    USD = "USD"
    HKT = "HKT"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELED = "canceled"
    COMPLETED = "completed"


class Booking(TimestampMixin, Base):
    """A confirmed stay, paid by card (USD) or by HKT transfer."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_wallet", "wallet_address"),
        Index("ix_bookings_property", "property_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reference: Mapped[str] = mapped_column(String(length=32), unique=True, nullable=False)
    wallet_address: Mapped[str] = mapped_column(String(length=64), nullable=False)
    property_id: Mapped[str] = mapped_column(
        String(length=100),
        ForeignKey("properties.id", ondelete="RESTRICT"),
        nullable=False,
    )
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    nights: Mapped[int] = mapped_column(Integer, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[PaymentCurrency] = mapped_column(
        SqlEnum(PaymentCurrency, name="booking_currency", native_enum=False),
        nullable=False,
    )
    status: Mapped[BookingStatus] = mapped_column(
        SqlEnum(
            BookingStatus,
            name="booking_status",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    base_price: Mapped[Decimal] = mapped_column(usd_amount(), nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(usd_amount(), nullable=False)
    total_usd: Mapped[Decimal] = mapped_column(usd_amount(), nullable=False)
    total_hkt: Mapped[Optional[Decimal]] = mapped_column(token_amount(), nullable=True)
    hkt_rate: Mapped[Optional[Decimal]] = mapped_column(token_amount(), nullable=True)
    is_owner_booking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    contact_email: Mapped[Optional[str]] = mapped_column(String(length=255), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(length=128), nullable=True)
    transaction_hash: Mapped[Optional[str]] = mapped_column(
        String(length=128), unique=True, nullable=True
    )
    idempotency_key: Mapped[Optional[str]] = mapped_column(
        String(length=128), unique=True, nullable=True
    )
    refund_amount: Mapped[Optional[Decimal]] = mapped_column(token_amount(), nullable=True)
    canceled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    property: Mapped[Property] = relationship(Property, lazy="joined")
