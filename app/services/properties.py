"""Property catalogue service."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.property import Property
from app.schemas.property import PropertyCreate, PropertyUpdate

logger = logging.getLogger("app.services.properties")

DEMO_PROPERTY = PropertyCreate(
    id="cap-cana-villa",
    name="Luxury Villa Cap Cana",
    location="Cap Cana, Dominican Republic",
    description=(
        "Beachfront villa with panoramic ocean views, a private pool and "
        "direct beach access."
    ),
    nightly_rate=Decimal("285.71"),
    cleaning_fee=Decimal("90"),
    max_guests=8,
    bedrooms=4,
    bathrooms=3,
    total_shares=52,
    share_price=Decimal("3750"),
    amenities=["Private Pool", "Ocean View", "WiFi", "Air Conditioning", "Kitchen", "Parking", "Beach Access"],
    images=["https://images.unsplash.com/photo-1520637836862-4d197d17c38a?w=800&h=600&fit=crop"],
)


class PropertyNotFoundError(ValueError):
    """Raised when property is not found."""


class PropertyConflictError(ValueError):
    """Raised when a property id is already taken."""


class PropertyService:
    """Service for property catalogue operations."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_property(self, payload: PropertyCreate) -> Property:
        if self._session.get(Property, payload.id) is not None:
            raise PropertyConflictError(f"Property {payload.id} already exists")

        property_ = Property(**payload.model_dump())
        self._session.add(property_)
        self._session.flush()

        logger.info(
            "property_created",
            extra={"property_id": property_.id, "nightly_rate": str(property_.nightly_rate)},
        )
        return property_

    def get_property(self, property_id: str, *, active_only: bool = False) -> Property:
        """
        Get property by ID.

        Raises:
            PropertyNotFoundError: If the property is missing, or inactive
                when ``active_only`` is set.
        """
        property_ = self._session.get(Property, property_id)
        if property_ is None or (active_only and not property_.is_active):
            raise PropertyNotFoundError(f"Property {property_id} not found")
        return property_

    def list_properties(self, *, include_inactive: bool = False) -> List[Property]:
        stmt = select(Property).order_by(Property.created_at.asc(), Property.id.asc())
        if not include_inactive:
            stmt = stmt.where(Property.is_active.is_(True))
        return list(self._session.scalars(stmt).all())

    def count_properties(self, *, include_inactive: bool = False) -> int:
        stmt = select(func.count()).select_from(Property)
        if not include_inactive:
            stmt = stmt.where(Property.is_active.is_(True))
        return int(self._session.scalar(stmt) or 0)

    def update_property(self, property_id: str, payload: PropertyUpdate) -> Property:
        property_ = self.get_property(property_id)

        updates = payload.model_dump(exclude_unset=True)
        for key, value in updates.items():
            if value is not None:
                setattr(property_, key, value)

        self._session.add(property_)
        self._session.flush()

        logger.info(
            "property_updated",
            extra={"property_id": property_id, "fields": sorted(updates)},
        )
        return property_

    def ensure_demo_property(self) -> Optional[Property]:
        """Insert the pilot villa if the catalogue is empty."""
        if self.count_properties(include_inactive=True) > 0:
            return None
        return self.create_property(DEMO_PROPERTY)
