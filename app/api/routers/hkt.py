"""HKT market data endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import get_price_feed_service
from app.schemas.price import HktStatsResponse
from app.services.price_feed import PriceFeedService
from app.services.pricing import PriceUnavailableError

router = APIRouter()


@router.get("/hkt-stats", response_model=HktStatsResponse)
def get_hkt_stats(service: PriceFeedService = Depends(get_price_feed_service)) -> HktStatsResponse:
    """Latest price snapshot; 503 until the feed has fetched one."""
    snapshot = service.latest()
    if snapshot is None:
        raise PriceUnavailableError("HKT price data unavailable")
    return HktStatsResponse(
        price=snapshot.price_usd,
        price_change_24h=snapshot.price_change_24h,
        market_cap=snapshot.market_cap,
        volume_24h=snapshot.volume_24h,
        total_supply=snapshot.total_supply,
        last_updated=snapshot.fetched_at,
        source=snapshot.source,
    )
