"""Dependency injection helpers for FastAPI routes."""

from __future__ import annotations

import secrets
from typing import Iterator, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.core.database import get_session
from app.services.bookings import BookingService
from app.services.price_feed import PriceFeedService
from app.services.properties import PropertyService

WALLET_HEADER = "X-Wallet-Address"
ADMIN_HEADER = "X-Admin-Token"
IDEMPOTENCY_HEADER = "Idempotency-Key"


def get_db_session() -> Iterator[Session]:
    yield from get_session()


def get_property_service(session: Session = Depends(get_db_session)) -> PropertyService:
    return PropertyService(session)


def get_booking_service(session: Session = Depends(get_db_session)) -> BookingService:
    return BookingService(session)


def get_price_feed_service(session: Session = Depends(get_db_session)) -> PriceFeedService:
    return PriceFeedService(session)


def optional_wallet(
    x_wallet_address: Optional[str] = Header(default=None, alias=WALLET_HEADER),
) -> Optional[str]:
    if x_wallet_address is None or not x_wallet_address.strip():
        return None
    return x_wallet_address.strip()


def require_wallet(wallet: Optional[str] = Depends(optional_wallet)) -> str:
    if wallet is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{WALLET_HEADER} header is required",
        )
    return wallet


def require_admin(
    x_admin_token: Optional[str] = Header(default=None, alias=ADMIN_HEADER),
    settings: AppSettings = Depends(get_settings),
) -> None:
    expected = settings.admin_token
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")


def idempotency_key(
    key: Optional[str] = Header(default=None, alias=IDEMPOTENCY_HEADER, max_length=128),
) -> Optional[str]:
    return key or None
