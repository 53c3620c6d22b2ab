"""Background poller that keeps the HKT price snapshot fresh."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractContextManager
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import session_scope
from app.core.logging import configure_logging
from app.models.price_snapshot import HktPriceSnapshot
from app.services.price_feed import MarketDataFetcher, PriceFeedService, get_market_data_fetcher

LOGGER = logging.getLogger("app.workers.price_feed")

SessionFactory = Callable[[], AbstractContextManager[Session]]


class PriceFeedPoller:
    """Fetches market data on a fixed interval and appends a snapshot per success.

    A failed cycle writes nothing, so readers keep the last good price.
    """

    def __init__(
        self,
        fetcher: MarketDataFetcher,
        *,
        interval_seconds: float,
        session_factory: SessionFactory = session_scope,
    ) -> None:
        self._fetcher = fetcher
        self._interval = interval_seconds
        self._session_factory = session_factory

    async def poll_once(self) -> Optional[HktPriceSnapshot]:
        snapshot = await self._fetcher.fetch()
        if snapshot is None:
            LOGGER.warning("price_feed_cycle_without_price")
            return None
        with self._session_factory() as session:
            return PriceFeedService(session).record(snapshot)

    async def run_forever(self) -> None:
        LOGGER.info("price_feed_poller_started", extra={"interval_seconds": self._interval})
        try:
            while True:
                try:
                    await self.poll_once()
                except Exception:  # noqa: BLE001
                    LOGGER.exception("price_feed_cycle_failed")
                await asyncio.sleep(self._interval)
        finally:
            LOGGER.info("price_feed_poller_stopped")


def build_poller() -> PriceFeedPoller:
    settings = get_settings()
    return PriceFeedPoller(
        get_market_data_fetcher(),
        interval_seconds=settings.price_feed_interval_seconds,
    )


def main() -> None:
    configure_logging(get_settings())
    asyncio.run(build_poller().run_forever())


if __name__ == "__main__":
    main()
