"""Booking API endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.dependencies import (
    get_booking_service,
    get_db_session,
    idempotency_key,
    optional_wallet,
    require_admin,
    require_wallet,
)
from app.models.booking import Booking
from app.schemas.booking import (
    BookingCreatedResponse,
    BookingListResponse,
    BookingResponse,
    BookingWithProperty,
    CancelBookingRequest,
    CancelBookingResponse,
    CardBookingRequest,
    HktBookingRequest,
    OwnershipResponse,
    PriceCalculationRequest,
    PriceQuoteResponse,
    ShareGrantRequest,
)
from app.schemas.property import PropertyResponse
from app.services.bookings import BookingService
from app.services.ownership import OwnershipService
from app.services.properties import PropertyService

router = APIRouter()


def _to_listing(booking: Booking) -> BookingWithProperty:
    return BookingWithProperty(
        booking=BookingResponse.model_validate(booking),
        property=PropertyResponse.model_validate(booking.property),
    )


def _created(booking: Booking, *, replayed: bool) -> BookingCreatedResponse:
    if replayed:
        message = "Booking already submitted with this idempotency key"
    elif booking.is_owner_booking:
        message = "Booking confirmed! Your free owner week applies; only the cleaning fee was charged."
    else:
        message = "Booking confirmed"
    return BookingCreatedResponse(
        booking=BookingResponse.model_validate(booking),
        message=message,
        replayed=replayed,
    )


@router.post("/calculate-price", response_model=PriceQuoteResponse)
def calculate_price(
    payload: PriceCalculationRequest,
    wallet: Optional[str] = Depends(optional_wallet),
    service: BookingService = Depends(get_booking_service),
) -> PriceQuoteResponse:
    """
    Price a stay.

    Owners with an unused free week (identified by X-Wallet-Address) pay the
    cleaning fee only. HKT quotes return 503 while no fresh HKT price exists.
    """
    quote = service.calculate_price(payload, wallet)
    return PriceQuoteResponse(
        property_id=payload.property_id,
        nights=quote.nights,
        guests=quote.guests,
        price_per_night=quote.nightly_rate,
        base_price=quote.base_price,
        cleaning_fee=quote.cleaning_fee,
        total_usd=quote.total_usd,
        total_hkt=quote.total_hkt,
        currency=quote.currency,
        is_owner_booking=quote.is_owner_booking,
        has_shares=quote.has_shares,
        hkt_rate=quote.hkt_rate,
        rate_fetched_at=quote.rate_fetched_at,
    )


@router.get("/user-shares/{property_id}", response_model=OwnershipResponse)
def get_user_shares(
    property_id: str,
    wallet: str = Depends(require_wallet),
    service: BookingService = Depends(get_booking_service),
) -> OwnershipResponse:
    ownership = service.ownership_for(wallet, property_id)
    return OwnershipResponse(
        property_id=property_id,
        has_shares=ownership.has_shares,
        total_shares=ownership.total_shares,
        has_used_free_week=ownership.has_used_free_week,
    )


@router.post("/create-stripe-booking", response_model=BookingCreatedResponse)
async def create_stripe_booking(
    payload: CardBookingRequest,
    wallet: str = Depends(require_wallet),
    key: Optional[str] = Depends(idempotency_key),
    session: Session = Depends(get_db_session),
    service: BookingService = Depends(get_booking_service),
) -> BookingCreatedResponse:
    """
    Charge a card for the stay and confirm the booking.

    Send an Idempotency-Key header to make retries safe; without it a
    resubmission after a timeout may book twice.
    """
    booking, replayed = await service.create_card_booking(payload, wallet, idempotency_key=key)
    session.commit()
    session.refresh(booking)
    if not replayed:
        service.notify_confirmed(booking)
    return _created(booking, replayed=replayed)


@router.post("/create-hkt-booking", response_model=BookingCreatedResponse)
async def create_hkt_booking(
    payload: HktBookingRequest,
    wallet: str = Depends(require_wallet),
    key: Optional[str] = Depends(idempotency_key),
    session: Session = Depends(get_db_session),
    service: BookingService = Depends(get_booking_service),
) -> BookingCreatedResponse:
    """Confirm a booking paid by an HKT transfer (transactionHash)."""
    booking, replayed = await service.create_hkt_booking(payload, wallet, idempotency_key=key)
    session.commit()
    session.refresh(booking)
    if not replayed:
        service.notify_confirmed(booking)
    return _created(booking, replayed=replayed)


@router.get("/my-bookings", response_model=BookingListResponse)
def my_bookings(
    wallet: str = Depends(require_wallet),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = service.list_for_wallet(wallet)
    return BookingListResponse(bookings=[_to_listing(b) for b in bookings], total=len(bookings))


@router.post("/cancel", response_model=CancelBookingResponse)
async def cancel_booking(
    payload: CancelBookingRequest,
    wallet: str = Depends(require_wallet),
    session: Session = Depends(get_db_session),
    service: BookingService = Depends(get_booking_service),
) -> CancelBookingResponse:
    """Cancel before check-in; 50% of the amount paid is refunded."""
    result = await service.cancel_booking(payload.booking_id, wallet)
    session.commit()
    service.notify_canceled(result)
    return CancelBookingResponse(
        message="Booking canceled successfully",
        refund_amount=result.refund_amount,
        refund_message=result.refund_message,
        currency=result.booking.currency,
    )


@router.get(
    "/admin/all-bookings",
    response_model=BookingListResponse,
    dependencies=[Depends(require_admin)],
)
def all_bookings(service: BookingService = Depends(get_booking_service)) -> BookingListResponse:
    bookings = service.list_all()
    return BookingListResponse(bookings=[_to_listing(b) for b in bookings], total=len(bookings))


@router.post(
    "/shares",
    response_model=OwnershipResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def grant_shares(
    payload: ShareGrantRequest,
    session: Session = Depends(get_db_session),
) -> OwnershipResponse:
    """Record shares held by a wallet (admin; mirrors an on-chain purchase)."""
    PropertyService(session).get_property(payload.property_id)
    record = OwnershipService(session).grant_shares(
        payload.wallet_address, payload.property_id, payload.shares
    )
    session.commit()
    return OwnershipResponse(
        property_id=record.property_id,
        has_shares=record.shares_owned > 0,
        total_shares=record.shares_owned,
        has_used_free_week=record.has_used_free_week,
    )
