"""Ownership registry: property shares held by wallets and the free-week gate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.property_share import PropertyShare

logger = logging.getLogger("app.services.ownership")


@dataclass(frozen=True)
class OwnershipStatus:
    has_shares: bool
    total_shares: int
    has_used_free_week: bool

    @property
    def has_free_week(self) -> bool:
        return self.has_shares and not self.has_used_free_week


NO_OWNERSHIP = OwnershipStatus(has_shares=False, total_shares=0, has_used_free_week=False)


class OwnershipOracle(Protocol):
    """Read-only view of who owns shares of which property.

    Backed by the database today; an on-chain reader can replace it
    without touching pricing.
    """

    def lookup(self, wallet_address: str, property_id: str) -> OwnershipStatus:
        ...

    def has_free_week(self, wallet_address: str, property_id: str) -> bool:
        ...


def normalize_wallet(wallet_address: str) -> str:
    return wallet_address.strip().lower()


class DatabaseOwnershipOracle(OwnershipOracle):
    """Answers ownership questions from the property_shares table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def lookup(self, wallet_address: str, property_id: str) -> OwnershipStatus:
        record = self._session.scalar(
            select(PropertyShare).where(
                PropertyShare.wallet_address == normalize_wallet(wallet_address),
                PropertyShare.property_id == property_id,
            )
        )
        if record is None or record.shares_owned <= 0:
            return NO_OWNERSHIP
        return OwnershipStatus(
            has_shares=True,
            total_shares=record.shares_owned,
            has_used_free_week=record.has_used_free_week,
        )

    def has_free_week(self, wallet_address: str, property_id: str) -> bool:
        return self.lookup(wallet_address, property_id).has_free_week


def resolve_ownership(
    oracle: OwnershipOracle,
    wallet_address: Optional[str],
    property_id: str,
) -> OwnershipStatus:
    """Look up ownership, degrading to "no ownership" when the registry fails.

    The free week is a discount, so a registry outage must not block a
    regular, fully priced booking.
    """
    if not wallet_address:
        return NO_OWNERSHIP
    try:
        return oracle.lookup(wallet_address, property_id)
    except Exception:  # noqa: BLE001
        logger.warning(
            "ownership_lookup_failed",
            exc_info=True,
            extra={"wallet_address": wallet_address, "property_id": property_id},
        )
        return NO_OWNERSHIP


class FreeWeekUnavailableError(ValueError):
    """Raised when a wallet has no unused free week for a property."""


class OwnershipService:
    """Mutations on the ownership registry."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _get_record(self, wallet_address: str, property_id: str) -> Optional[PropertyShare]:
        return self._session.scalar(
            select(PropertyShare).where(
                PropertyShare.wallet_address == normalize_wallet(wallet_address),
                PropertyShare.property_id == property_id,
            )
        )

    def grant_shares(self, wallet_address: str, property_id: str, shares: int) -> PropertyShare:
        record = self._get_record(wallet_address, property_id)
        if record is None:
            record = PropertyShare(
                wallet_address=normalize_wallet(wallet_address),
                property_id=property_id,
                shares_owned=0,
                has_used_free_week=False,
            )
            self._session.add(record)
        record.shares_owned += shares
        self._session.flush()

        logger.info(
            "ownership_shares_granted",
            extra={
                "wallet_address": record.wallet_address,
                "property_id": property_id,
                "shares": shares,
                "total_shares": record.shares_owned,
            },
        )
        return record

    def consume_free_week(self, wallet_address: str, property_id: str) -> PropertyShare:
        """Flip the free-week flag with a conditional UPDATE; only one caller can win."""
        wallet = normalize_wallet(wallet_address)
        result = self._session.execute(
            update(PropertyShare)
            .where(
                PropertyShare.wallet_address == wallet,
                PropertyShare.property_id == property_id,
                PropertyShare.shares_owned > 0,
                PropertyShare.has_used_free_week.is_(False),
            )
            .values(has_used_free_week=True, free_week_used_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount != 1:
            raise FreeWeekUnavailableError("No unused free week for this property")

        logger.info(
            "ownership_free_week_consumed",
            extra={"wallet_address": wallet, "property_id": property_id},
        )
        return self._get_record(wallet_address, property_id)

    def restore_free_week(self, wallet_address: str, property_id: str) -> None:
        record = self._get_record(wallet_address, property_id)
        if record is None or not record.has_used_free_week:
            return
        record.has_used_free_week = False
        record.free_week_used_at = None
        self._session.flush()

        logger.info(
            "ownership_free_week_restored",
            extra={"wallet_address": record.wallet_address, "property_id": property_id},
        )
