"""Ownership record: shares of a property held by a wallet."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class PropertyShare(TimestampMixin, Base):
    """One row per (wallet, property); the free week is consumed at most once."""

    __tablename__ = "property_shares"
    __table_args__ = (
        UniqueConstraint("wallet_address", "property_id", name="uq_property_shares_wallet_property"),
        Index("ix_property_shares_wallet", "wallet_address"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wallet_address: Mapped[str] = mapped_column(String(length=64), nullable=False)
    property_id: Mapped[str] = mapped_column(
        String(length=100),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )
    shares_owned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    has_used_free_week: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    free_week_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
