"""Property API schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field

from app.core.config import get_settings
from app.schemas.base import CamelModel


class PropertyCreate(CamelModel):
    """Schema for listing a new property."""

    id: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9-]*$", description="URL slug")
    name: str = Field(..., max_length=255)
    location: str = Field(default="", max_length=255)
    description: str = Field(default="")
    nightly_rate: Decimal = Field(..., gt=0, description="Nightly rate in USD")
    cleaning_fee: Decimal = Field(
        default_factory=lambda: Decimal(str(get_settings().cleaning_fee)),
        ge=0,
        description="Flat cleaning fee in USD; defaults to the configured fee",
    )
    max_guests: int = Field(default=8, ge=1)
    bedrooms: int = Field(default=1, ge=0)
    bathrooms: int = Field(default=1, ge=0)
    total_shares: int = Field(default=52, ge=1)
    share_price: Decimal = Field(default=Decimal("0"), ge=0)
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    is_active: bool = True


class PropertyUpdate(CamelModel):
    """Schema for the admin edit of a property."""

    name: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    nightly_rate: Optional[Decimal] = Field(default=None, gt=0)
    cleaning_fee: Optional[Decimal] = Field(default=None, ge=0)
    max_guests: Optional[int] = Field(default=None, ge=1)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    total_shares: Optional[int] = Field(default=None, ge=1)
    share_price: Optional[Decimal] = Field(default=None, ge=0)
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class PropertyResponse(CamelModel):
    id: str
    name: str
    location: str
    description: str
    nightly_rate: float
    cleaning_fee: float
    max_guests: int
    bedrooms: int
    bathrooms: int
    total_shares: int
    share_price: float
    amenities: List[str]
    images: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(CamelModel):
    properties: List[PropertyResponse]
    total: int
