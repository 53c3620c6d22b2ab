"""Tests for stay length and guest validation."""

from __future__ import annotations

from datetime import date

import pytest

from app.services.stay import StayPolicy, StayValidationError, calculate_nights, validate_guests

POLICY = StayPolicy(minimum_nights=7, maximum_nights=365)
TODAY = date(2025, 1, 1)


def test_week_long_stay_counts_nights() -> None:
    assert calculate_nights(date(2025, 1, 10), date(2025, 1, 17), policy=POLICY, today=TODAY) == 7


def test_check_in_today_is_allowed() -> None:
    assert calculate_nights(TODAY, date(2025, 1, 8), policy=POLICY, today=TODAY) == 7


def test_short_stay_reports_shortfall() -> None:
    with pytest.raises(StayValidationError) as exc_info:
        calculate_nights(date(2025, 1, 10), date(2025, 1, 14), policy=POLICY, today=TODAY)

    assert str(exc_info.value) == "Minimum stay is 7 nights"
    assert exc_info.value.details == {"nights": 4, "minimum_nights": 7, "shortfall": 3}


def test_past_check_in_rejected() -> None:
    with pytest.raises(StayValidationError, match="cannot be in the past"):
        calculate_nights(date(2024, 12, 31), date(2025, 1, 10), policy=POLICY, today=TODAY)


@pytest.mark.parametrize("check_out", [date(2025, 1, 10), date(2025, 1, 9)])
def test_check_out_must_follow_check_in(check_out: date) -> None:
    with pytest.raises(StayValidationError, match="Check-out must be after check-in"):
        calculate_nights(date(2025, 1, 10), check_out, policy=POLICY, today=TODAY)


def test_year_long_stay_is_the_limit() -> None:
    assert calculate_nights(date(2025, 1, 10), date(2026, 1, 10), policy=POLICY, today=TODAY) == 365

    with pytest.raises(StayValidationError, match="Maximum stay is 365 nights"):
        calculate_nights(date(2025, 1, 10), date(2026, 1, 11), policy=POLICY, today=TODAY)


def test_policy_minimum_is_configurable() -> None:
    short_stays = StayPolicy(minimum_nights=2, maximum_nights=30)
    assert calculate_nights(date(2025, 1, 10), date(2025, 1, 12), policy=short_stays, today=TODAY) == 2


def test_guest_limits() -> None:
    validate_guests(1, 8)
    validate_guests(8, 8)

    with pytest.raises(StayValidationError, match="Maximum 8 guests allowed for this property"):
        validate_guests(9, 8)
    with pytest.raises(StayValidationError, match="At least 1 guest is required"):
        validate_guests(0, 8)
