"""Pydantic schemas for API payloads."""

from app.schemas.booking import (
    BookingCreatedResponse,
    BookingListResponse,
    BookingResponse,
    CancelBookingRequest,
    CancelBookingResponse,
    CardBookingRequest,
    HktBookingRequest,
    OwnershipResponse,
    PriceCalculationRequest,
    PriceQuoteResponse,
    ShareGrantRequest,
)
from app.schemas.price import HktStatsResponse
from app.schemas.property import PropertyCreate, PropertyListResponse, PropertyResponse, PropertyUpdate

__all__ = [
    "BookingCreatedResponse",
    "BookingListResponse",
    "BookingResponse",
    "CancelBookingRequest",
    "CancelBookingResponse",
    "CardBookingRequest",
    "HktBookingRequest",
    "HktStatsResponse",
    "OwnershipResponse",
    "PriceCalculationRequest",
    "PriceQuoteResponse",
    "PropertyCreate",
    "PropertyListResponse",
    "PropertyResponse",
    "PropertyUpdate",
    "ShareGrantRequest",
]
