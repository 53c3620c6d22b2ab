"""Bookable property listed on the platform."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin
from app.models.types import JSONType, usd_amount

DEFAULT_CLEANING_FEE = Decimal("90.00")
DEFAULT_MAX_GUESTS = 8


class Property(TimestampMixin, Base):
    """A villa or home whose weeks are fractionally owned and rentable."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(length=100), primary_key=True)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    location: Mapped[str] = mapped_column(String(length=255), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    nightly_rate: Mapped[Decimal] = mapped_column(usd_amount(), nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(
        usd_amount(), nullable=False, default=DEFAULT_CLEANING_FEE
    )
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_MAX_GUESTS)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_shares: Mapped[int] = mapped_column(Integer, nullable=False, default=52)
    share_price: Mapped[Decimal] = mapped_column(usd_amount(), nullable=False, default=Decimal("0"))
    amenities: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    images: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
