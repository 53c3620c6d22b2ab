"""Booking price composition and USD to HKT conversion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from app.models.booking import PaymentCurrency
from app.models.property import Property
from app.services.ownership import OwnershipStatus

FREE_WEEK_MIN_NIGHTS = 7

CENTS = Decimal("0.01")
TOKEN_UNITS = Decimal("0.00000001")

Number = Union[Decimal, int, float, str]


class PricingError(ValueError):
    """Base class for pricing failures."""


class InvalidQuoteError(PricingError):
    """Raised when a non-owner quote would come out at or below zero."""


class PriceUnavailableError(PricingError):
    """Raised when no usable HKT price exists; callers must re-fetch, not default."""


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise PricingError(f"Invalid amount: {value!r}") from exc


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class HktRate:
    """USD price of one HKT, stamped with when and where it was observed."""

    price_usd: Decimal
    fetched_at: datetime
    source: str = "unknown"

    @classmethod
    def of(cls, price_usd: Number, fetched_at: datetime, source: str = "unknown") -> "HktRate":
        return cls(price_usd=to_decimal(price_usd), fetched_at=_as_utc(fetched_at), source=source)

    def age(self, now: datetime) -> timedelta:
        return _as_utc(now) - _as_utc(self.fetched_at)

    def is_stale(self, max_age: timedelta, now: datetime) -> bool:
        return self.age(now) > max_age


@dataclass(frozen=True)
class PriceQuote:
    nights: int
    guests: int
    nightly_rate: Decimal
    base_price: Decimal
    cleaning_fee: Decimal
    total_usd: Decimal
    currency: PaymentCurrency
    is_owner_booking: bool
    has_shares: bool
    total_hkt: Optional[Decimal] = None
    hkt_rate: Optional[Decimal] = None
    rate_fetched_at: Optional[datetime] = None

    @property
    def amount_due(self) -> Decimal:
        """Amount charged in the quote's own currency."""
        if self.currency is PaymentCurrency.HKT:
            if self.total_hkt is None:
                raise PriceUnavailableError("HKT quote carries no token amount")
            return self.total_hkt
        return self.total_usd


def require_usable_rate(
    rate: Optional[HktRate],
    *,
    max_age: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> HktRate:
    if rate is None or rate.price_usd <= 0:
        raise PriceUnavailableError("HKT price data unavailable")
    if max_age is not None and rate.is_stale(max_age, now or datetime.now(timezone.utc)):
        raise PriceUnavailableError("HKT price data is stale; retry once the price feed refreshes")
    return rate


def convert_to_hkt(total_usd: Number, rate: Optional[HktRate]) -> Decimal:
    """Convert a USD total into HKT at the given rate."""
    usable = require_usable_rate(rate)
    return (to_decimal(total_usd) / usable.price_usd).quantize(TOKEN_UNITS)


def compose_quote(
    property_: Property,
    nights: int,
    guests: int,
    ownership: OwnershipStatus,
    *,
    currency: PaymentCurrency = PaymentCurrency.USD,
    rate: Optional[HktRate] = None,
) -> PriceQuote:
    """Price a validated stay.

    An owner with an unused free week staying at least a week pays the
    cleaning fee only; everyone else pays nights x nightly rate plus the
    cleaning fee. HKT quotes additionally need a positive ``rate``.
    """
    nightly_rate = to_decimal(property_.nightly_rate)
    cleaning_fee = to_decimal(property_.cleaning_fee)

    is_owner_booking = (
        ownership.has_shares
        and not ownership.has_used_free_week
        and nights >= FREE_WEEK_MIN_NIGHTS
    )
    base_price = Decimal("0") if is_owner_booking else nightly_rate * nights
    total_usd = (base_price + cleaning_fee).quantize(CENTS)

    if total_usd <= 0 and not is_owner_booking:
        raise InvalidQuoteError(
            f"Computed total {total_usd} is not positive for property {property_.id}"
        )

    total_hkt: Optional[Decimal] = None
    hkt_rate: Optional[Decimal] = None
    rate_fetched_at: Optional[datetime] = None
    if currency is PaymentCurrency.HKT:
        usable = require_usable_rate(rate)
        total_hkt = convert_to_hkt(total_usd, usable)
        hkt_rate = usable.price_usd
        rate_fetched_at = usable.fetched_at

    return PriceQuote(
        nights=nights,
        guests=guests,
        nightly_rate=nightly_rate.quantize(CENTS),
        base_price=base_price.quantize(CENTS),
        cleaning_fee=cleaning_fee.quantize(CENTS),
        total_usd=total_usd,
        currency=currency,
        is_owner_booking=is_owner_booking,
        has_shares=ownership.has_shares,
        total_hkt=total_hkt,
        hkt_rate=hkt_rate,
        rate_fetched_at=rate_fetched_at,
    )
