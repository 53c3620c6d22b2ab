"""HKT market data schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.base import CamelModel


class HktStatsResponse(CamelModel):
    """Latest snapshot recorded by the price feed."""

    price: float
    # to_camel would emit "priceChange24H"/"volume24H"
    price_change_24h: float = Field(alias="priceChange24h")
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = Field(default=None, alias="volume24h")
    total_supply: Optional[float] = None
    last_updated: datetime
    source: str
