"""Stay policy: nights between two dates and guest limits."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional


class StayValidationError(ValueError):
    """Raised when requested dates or guests violate the stay policy."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class StayPolicy:
    minimum_nights: int = 7
    maximum_nights: int = 365


def calculate_nights(
    check_in: date,
    check_out: date,
    *,
    policy: StayPolicy,
    today: date,
) -> int:
    """Return whole nights between check-in and check-out.

    Raises:
        StayValidationError: check-in in the past, check-out not after
            check-in, or a stay outside the policy's night limits. A stay
            that is too short carries the shortfall in ``details``.
    """
    if check_in < today:
        raise StayValidationError("Check-in date cannot be in the past")
    if check_out <= check_in:
        raise StayValidationError("Check-out must be after check-in")

    nights = (check_out - check_in).days
    if nights < policy.minimum_nights:
        shortfall = policy.minimum_nights - nights
        raise StayValidationError(
            f"Minimum stay is {policy.minimum_nights} nights",
            details={
                "nights": nights,
                "minimum_nights": policy.minimum_nights,
                "shortfall": shortfall,
            },
        )
    if nights > policy.maximum_nights:
        raise StayValidationError(
            f"Maximum stay is {policy.maximum_nights} nights",
            details={"nights": nights, "maximum_nights": policy.maximum_nights},
        )
    return nights


def validate_guests(guests: int, max_guests: int) -> None:
    if guests < 1:
        raise StayValidationError("At least 1 guest is required")
    if guests > max_guests:
        raise StayValidationError(
            f"Maximum {max_guests} guests allowed for this property",
            details={"guests": guests, "max_guests": max_guests},
        )
