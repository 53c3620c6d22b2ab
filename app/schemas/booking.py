"""Booking API schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import ConfigDict, EmailStr, Field

from app.models.booking import BookingStatus, PaymentCurrency
from app.schemas.base import CamelModel
from app.schemas.property import PropertyResponse


class PriceCalculationRequest(CamelModel):
    """Stay to be priced. Guest bounds are checked against the property."""

    property_id: str = Field(..., min_length=1, max_length=100)
    check_in: date
    check_out: date
    guests: int = 1
    currency: PaymentCurrency = PaymentCurrency.USD


class CardBookingRequest(PriceCalculationRequest):
    card_token: str = Field(default="tok_visa", min_length=1, description="Processor card token")
    contact_email: Optional[EmailStr] = None


class HktBookingRequest(PriceCalculationRequest):
    currency: PaymentCurrency = PaymentCurrency.HKT
    transaction_hash: str = Field(..., description="Hash of the HKT transfer paying for the stay")
    contact_email: Optional[EmailStr] = None


class PriceQuoteResponse(CamelModel):
    property_id: str
    nights: int
    guests: int
    price_per_night: float
    base_price: float
    cleaning_fee: float
    total_usd: float
    total_hkt: Optional[float] = None
    currency: PaymentCurrency
    is_owner_booking: bool
    has_shares: bool
    hkt_rate: Optional[float] = None
    rate_fetched_at: Optional[datetime] = None


class OwnershipResponse(CamelModel):
    property_id: str
    has_shares: bool
    total_shares: int
    has_used_free_week: bool


class ShareGrantRequest(CamelModel):
    wallet_address: str = Field(..., min_length=4, max_length=64)
    property_id: str = Field(..., min_length=1, max_length=100)
    shares: int = Field(default=1, ge=1)


class BookingResponse(CamelModel):
    id: int
    reference: str
    wallet_address: str
    property_id: str
    check_in: date
    check_out: date
    nights: int
    guests: int
    currency: PaymentCurrency
    status: BookingStatus
    base_price: float
    cleaning_fee: float
    total_usd: float
    total_hkt: Optional[float] = None
    hkt_rate: Optional[float] = None
    is_owner_booking: bool
    payment_reference: Optional[str] = None
    transaction_hash: Optional[str] = None
    refund_amount: Optional[float] = None
    canceled_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingCreatedResponse(CamelModel):
    success: bool = True
    booking: BookingResponse
    message: str
    replayed: bool = False


class BookingWithProperty(CamelModel):
    booking: BookingResponse
    property: PropertyResponse


class BookingListResponse(CamelModel):
    bookings: List[BookingWithProperty]
    total: int


class CancelBookingRequest(CamelModel):
    booking_id: int


class CancelBookingResponse(CamelModel):
    message: str
    refund_amount: float
    refund_message: str
    currency: PaymentCurrency
