"""HKT market data: provider clients, snapshot persistence and the current rate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.models.price_snapshot import HktPriceSnapshot
from app.services.pricing import HktRate, to_decimal

logger = logging.getLogger("app.services.price_feed")

TOKEN_DECIMALS = 18


@dataclass(frozen=True)
class MarketQuote:
    price_usd: Decimal
    source: str
    price_change_24h: Decimal = Decimal("0")
    market_cap: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None


@dataclass(frozen=True)
class MarketSnapshot:
    quote: MarketQuote
    total_supply: Optional[Decimal]
    fetched_at: datetime

    @property
    def market_cap(self) -> Optional[Decimal]:
        if self.quote.market_cap is not None:
            return self.quote.market_cap
        if self.total_supply is not None:
            return (self.quote.price_usd * self.total_supply).quantize(Decimal("0.01"))
        return None


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    return to_decimal(value)


class PriceProvider(Protocol):
    """A market-data source; returns None when the token is unlisted."""

    name: str

    async def fetch_quote(self, client: httpx.AsyncClient) -> Optional[MarketQuote]:
        ...


class CoinGeckoProvider:
    name = "coingecko"

    def __init__(self, *, base_url: str, contract_address: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._contract_address = contract_address

    async def fetch_quote(self, client: httpx.AsyncClient) -> Optional[MarketQuote]:
        response = await client.get(
            f"{self._base_url}/simple/token_price/ethereum",
            params={
                "contract_addresses": self._contract_address,
                "vs_currencies": "usd",
                "include_24hr_change": "true",
                "include_market_cap": "true",
                "include_24hr_vol": "true",
            },
        )
        response.raise_for_status()
        token_data = response.json().get(self._contract_address.lower())
        if not token_data or not token_data.get("usd"):
            logger.info("price_feed_token_not_listed", extra={"provider": self.name})
            return None
        return MarketQuote(
            price_usd=to_decimal(token_data["usd"]),
            source=self.name,
            price_change_24h=_optional_decimal(token_data.get("usd_24h_change")) or Decimal("0"),
            market_cap=_optional_decimal(token_data.get("usd_market_cap")),
            volume_24h=_optional_decimal(token_data.get("usd_24h_vol")),
        )


class DexScreenerProvider:
    name = "dexscreener"

    def __init__(self, *, base_url: str, contract_address: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._contract_address = contract_address

    async def fetch_quote(self, client: httpx.AsyncClient) -> Optional[MarketQuote]:
        response = await client.get(f"{self._base_url}/tokens/{self._contract_address}")
        response.raise_for_status()
        pairs = response.json().get("pairs") or []
        if not pairs:
            logger.info("price_feed_token_not_listed", extra={"provider": self.name})
            return None

        main_pair = max(pairs, key=lambda pair: float((pair.get("liquidity") or {}).get("usd") or 0))
        if not main_pair.get("priceUsd"):
            logger.info("price_feed_pair_without_price", extra={"provider": self.name})
            return None
        return MarketQuote(
            price_usd=to_decimal(main_pair["priceUsd"]),
            source=self.name,
            price_change_24h=_optional_decimal((main_pair.get("priceChange") or {}).get("h24"))
            or Decimal("0"),
            volume_24h=_optional_decimal((main_pair.get("volume") or {}).get("h24")),
        )


class EtherscanSupplyReader:
    """Reads the token's total supply; used for supply and derived market cap."""

    name = "etherscan"

    def __init__(self, *, base_url: str, contract_address: str, api_key: Optional[str]) -> None:
        self._base_url = base_url
        self._contract_address = contract_address
        self._api_key = api_key

    async def fetch_total_supply(self, client: httpx.AsyncClient) -> Optional[Decimal]:
        params: Dict[str, str] = {
            "module": "stats",
            "action": "tokensupply",
            "contractaddress": self._contract_address,
        }
        if self._api_key:
            params["apikey"] = self._api_key
        response = await client.get(self._base_url, params=params)
        response.raise_for_status()
        payload = response.json()
        if payload.get("status") != "1" or not payload.get("result"):
            return None
        return Decimal(int(payload["result"])) / (Decimal(10) ** TOKEN_DECIMALS)


class MarketDataFetcher:
    """Tries providers in priority order and returns the first usable quote.

    When every provider fails the result is None. No placeholder price is
    invented; the last stored snapshot stays authoritative.
    """

    def __init__(
        self,
        providers: Sequence[PriceProvider],
        *,
        supply_reader: Optional[EtherscanSupplyReader] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._providers = list(providers)
        self._supply_reader = supply_reader
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> Optional[MarketSnapshot]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            quote = await self._first_quote(client)
            if quote is None:
                logger.warning(
                    "price_feed_all_providers_failed",
                    extra={"providers": [provider.name for provider in self._providers]},
                )
                return None
            total_supply = await self._total_supply(client)

        return MarketSnapshot(
            quote=quote,
            total_supply=total_supply,
            fetched_at=datetime.now(timezone.utc),
        )

    async def _first_quote(self, client: httpx.AsyncClient) -> Optional[MarketQuote]:
        for provider in self._providers:
            try:
                quote = await provider.fetch_quote(client)
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
                logger.warning(
                    "price_feed_provider_failed",
                    extra={"provider": provider.name, "error": str(exc)},
                )
                continue
            if quote is not None and quote.price_usd > 0:
                return quote
        return None

    async def _total_supply(self, client: httpx.AsyncClient) -> Optional[Decimal]:
        if self._supply_reader is None:
            return None
        try:
            return await self._supply_reader.fetch_total_supply(client)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "price_feed_supply_failed",
                extra={"provider": self._supply_reader.name, "error": str(exc)},
            )
            return None


class PriceFeedService:
    """Stores snapshots and exposes the latest one as an explicit rate."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def record(self, snapshot: MarketSnapshot) -> HktPriceSnapshot:
        row = HktPriceSnapshot(
            price_usd=snapshot.quote.price_usd,
            price_change_24h=snapshot.quote.price_change_24h,
            market_cap=snapshot.market_cap,
            volume_24h=snapshot.quote.volume_24h,
            total_supply=snapshot.total_supply,
            source=snapshot.quote.source,
            fetched_at=snapshot.fetched_at,
        )
        self._session.add(row)
        self._session.flush()

        logger.info(
            "price_feed_snapshot_recorded",
            extra={"price_usd": str(row.price_usd), "source": row.source},
        )
        return row

    def latest(self) -> Optional[HktPriceSnapshot]:
        return self._session.scalar(
            select(HktPriceSnapshot)
            .order_by(HktPriceSnapshot.fetched_at.desc(), HktPriceSnapshot.id.desc())
            .limit(1)
        )

    def current_rate(self) -> Optional[HktRate]:
        row = self.latest()
        if row is None:
            return None
        return HktRate.of(row.price_usd, row.fetched_at, source=row.source)


def build_market_data_fetcher(settings: AppSettings) -> MarketDataFetcher:
    address = settings.hkt_contract_address
    return MarketDataFetcher(
        providers=[
            CoinGeckoProvider(base_url=settings.coingecko_url, contract_address=address),
            DexScreenerProvider(base_url=settings.dexscreener_url, contract_address=address),
        ],
        supply_reader=EtherscanSupplyReader(
            base_url=settings.etherscan_url,
            contract_address=address,
            api_key=settings.etherscan_api_key,
        ),
        timeout=settings.price_provider_timeout,
    )


_fetcher: Optional[MarketDataFetcher] = None


def get_market_data_fetcher() -> MarketDataFetcher:
    """Return the process-wide fetcher built from settings."""

    global _fetcher
    if _fetcher is None:
        _fetcher = build_market_data_fetcher(get_settings())
    return _fetcher


def set_market_data_fetcher(fetcher: Optional[MarketDataFetcher]) -> None:
    """Override the cached fetcher (primarily for tests)."""

    global _fetcher
    _fetcher = fetcher
