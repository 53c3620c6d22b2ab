"""HKT market data captured by the price feed."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin
from app.models.types import token_amount


class HktPriceSnapshot(CreatedAtMixin, Base):
    """Append-only; the newest row by fetched_at is the current price."""

    __tablename__ = "hkt_price_snapshots"
    __table_args__ = (Index("ix_hkt_price_snapshots_fetched_at", "fetched_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    price_usd: Mapped[Decimal] = mapped_column(token_amount(), nullable=False)
    price_change_24h: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=4, asdecimal=True), nullable=False, default=Decimal("0")
    )
    market_cap: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=24, scale=2, asdecimal=True), nullable=True
    )
    volume_24h: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=24, scale=2, asdecimal=True), nullable=True
    )
    total_supply: Mapped[Optional[Decimal]] = mapped_column(token_amount(), nullable=True)
    source: Mapped[str] = mapped_column(String(length=64), nullable=False)
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
