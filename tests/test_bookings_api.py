"""Tests for booking quote, submission and cancellation endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.database import session_scope
from app.schemas.booking import CardBookingRequest
from app.services import payment as payment_module
from app.services.bookings import BookingService
from app.services.notifications import NullEmailSender
from app.services.ownership import FreeWeekUnavailableError, OwnershipStatus
from app.services.payment import PaymentProcessingService, PaymentUnavailableError
from app.services.price_feed import MarketQuote, MarketSnapshot, PriceFeedService

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}
OWNER_WALLET = "0xOwner00000000000000000000000000000000001"
GUEST_WALLET = "0xGuest00000000000000000000000000000000002"


def stay(days_ahead: int = 30, nights: int = 7) -> dict[str, str]:
    check_in = datetime.now(timezone.utc).date() + timedelta(days=days_ahead)
    return {
        "checkIn": check_in.isoformat(),
        "checkOut": (check_in + timedelta(days=nights)).isoformat(),
    }


def record_price(price: str, *, age: timedelta = timedelta(0)) -> None:
    with session_scope() as session:
        PriceFeedService(session).record(
            MarketSnapshot(
                MarketQuote(Decimal(price), "coingecko"),
                None,
                datetime.now(timezone.utc) - age,
            )
        )


def grant_shares(client: TestClient, wallet: str, property_id: str, shares: int = 1) -> None:
    response = client.post(
        "/api/bookings/shares",
        json={"walletAddress": wallet, "propertyId": property_id, "shares": shares},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 201, response.text


def book_by_card(client: TestClient, wallet: str, payload: dict, key: str | None = None):
    headers = {"X-Wallet-Address": wallet}
    if key:
        headers["Idempotency-Key"] = key
    return client.post("/api/bookings/create-stripe-booking", json=payload, headers=headers)


def test_calculate_price_for_guest(client: TestClient, villa_450) -> None:
    response = client.post(
        "/api/bookings/calculate-price",
        json={"propertyId": villa_450.id, "guests": 2, **stay()},
    )
    response.raise_for_status()

    body = response.json()
    assert body["nights"] == 7
    assert body["pricePerNight"] == 450.0
    assert body["basePrice"] == 3150.0
    assert body["cleaningFee"] == 90.0
    assert body["totalUsd"] == 3240.0
    assert body["currency"] == "USD"
    assert body["isOwnerBooking"] is False
    assert body["totalHkt"] is None


def test_calculate_price_in_hkt(client: TestClient, villa_450) -> None:
    record_price("0.10")

    response = client.post(
        "/api/bookings/calculate-price",
        json={"propertyId": villa_450.id, "currency": "HKT", **stay()},
    )
    response.raise_for_status()

    body = response.json()
    assert body["totalUsd"] == 3240.0
    assert body["totalHkt"] == 32400.0
    assert body["hktRate"] == 0.1
    assert body["rateFetchedAt"] is not None


def test_hkt_quote_without_price_is_unavailable(client: TestClient, villa_450) -> None:
    response = client.post(
        "/api/bookings/calculate-price",
        json={"propertyId": villa_450.id, "currency": "HKT", **stay()},
    )

    assert response.status_code == 503
    assert response.json()["detail"] == "HKT price data unavailable"


def test_hkt_quote_with_stale_price_is_unavailable(client: TestClient, villa_450) -> None:
    record_price("0.10", age=timedelta(hours=2))

    response = client.post(
        "/api/bookings/calculate-price",
        json={"propertyId": villa_450.id, "currency": "HKT", **stay()},
    )

    assert response.status_code == 503
    assert "stale" in response.json()["detail"]


def test_short_stay_reports_shortfall(client: TestClient, villa_450) -> None:
    response = client.post(
        "/api/bookings/calculate-price",
        json={"propertyId": villa_450.id, **stay(nights=4)},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Minimum stay is 7 nights"
    assert body["shortfall"] == 3
    assert body["minimumNights"] == 7


def test_too_many_guests_rejected(client: TestClient, villa_450) -> None:
    response = client.post(
        "/api/bookings/calculate-price",
        json={"propertyId": villa_450.id, "guests": 9, **stay()},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Maximum 8 guests allowed for this property"


def test_unknown_property_is_not_found(client: TestClient) -> None:
    response = client.post(
        "/api/bookings/calculate-price",
        json={"propertyId": "nowhere", **stay()},
    )

    assert response.status_code == 404


def test_malformed_request_is_rejected(client: TestClient) -> None:
    response = client.post("/api/bookings/calculate-price", json={"propertyId": "cap-cana-villa"})

    assert response.status_code == 400
    assert response.json()["errors"]


def test_owner_free_week_lifecycle(client: TestClient, villa_450) -> None:
    grant_shares(client, OWNER_WALLET, villa_450.id, shares=2)
    owner_headers = {"X-Wallet-Address": OWNER_WALLET}
    payload = {"propertyId": villa_450.id, "guests": 4, **stay()}

    quote = client.post("/api/bookings/calculate-price", json=payload, headers=owner_headers).json()
    assert quote["isOwnerBooking"] is True
    assert quote["hasShares"] is True
    assert quote["totalUsd"] == 90.0

    created = book_by_card(client, OWNER_WALLET, payload)
    created.raise_for_status()
    booking = created.json()["booking"]
    assert booking["isOwnerBooking"] is True
    assert booking["totalUsd"] == 90.0

    shares = client.get(f"/api/bookings/user-shares/{villa_450.id}", headers=owner_headers).json()
    assert shares == {
        "propertyId": villa_450.id,
        "hasShares": True,
        "totalShares": 2,
        "hasUsedFreeWeek": True,
    }

    second_quote = client.post(
        "/api/bookings/calculate-price", json={**payload, **stay(days_ahead=60)}, headers=owner_headers
    ).json()
    assert second_quote["isOwnerBooking"] is False
    assert second_quote["totalUsd"] == 3240.0

    canceled = client.post("/api/bookings/cancel", json={"bookingId": booking["id"]}, headers=owner_headers)
    canceled.raise_for_status()
    assert canceled.json()["refundAmount"] == 45.0

    shares = client.get(f"/api/bookings/user-shares/{villa_450.id}", headers=owner_headers).json()
    assert shares["hasUsedFreeWeek"] is False


def test_card_booking_sends_confirmation(client: TestClient, villa_450, email_outbox) -> None:
    response = book_by_card(
        client,
        GUEST_WALLET,
        {"propertyId": villa_450.id, "contactEmail": "guest@example.com", **stay()},
    )
    response.raise_for_status()

    body = response.json()
    assert body["success"] is True
    assert body["replayed"] is False
    assert body["booking"]["reference"].startswith("HK-")
    assert body["booking"]["paymentReference"].startswith("ch_")
    assert body["booking"]["walletAddress"] == GUEST_WALLET.lower()
    assert body["booking"]["status"] == "confirmed"

    assert len(email_outbox.sent) == 1
    assert email_outbox.sent[0].recipient == "guest@example.com"
    assert body["booking"]["reference"] in email_outbox.sent[0].subject


def test_booking_requires_wallet(client: TestClient, villa_450) -> None:
    response = client.post(
        "/api/bookings/create-stripe-booking",
        json={"propertyId": villa_450.id, **stay()},
    )

    assert response.status_code == 401


def test_declined_card_creates_nothing(client: TestClient, villa_450) -> None:
    response = book_by_card(
        client,
        GUEST_WALLET,
        {"propertyId": villa_450.id, "cardToken": "tok_chargeDeclined", **stay()},
    )

    assert response.status_code == 402
    mine = client.get("/api/bookings/my-bookings", headers={"X-Wallet-Address": GUEST_WALLET}).json()
    assert mine["total"] == 0


def test_payment_outage_surfaces_after_retries(
    client: TestClient, villa_450, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls = {"count": 0}

    class UnavailableProcessor(payment_module.PaymentProcessingService):
        async def charge_card(self, **kwargs):
            calls["count"] += 1
            raise PaymentUnavailableError("processor returned 503")

    monkeypatch.setattr(payment_module, "_payment_service", UnavailableProcessor())

    response = book_by_card(client, GUEST_WALLET, {"propertyId": villa_450.id, **stay()})

    assert response.status_code == 502
    assert calls["count"] == 4
    mine = client.get("/api/bookings/my-bookings", headers={"X-Wallet-Address": GUEST_WALLET}).json()
    assert mine["total"] == 0


def test_idempotent_resubmission_returns_original(client: TestClient, villa_450, email_outbox) -> None:
    payload = {"propertyId": villa_450.id, "contactEmail": "guest@example.com", **stay()}

    first = book_by_card(client, GUEST_WALLET, payload, key="booking-attempt-1")
    second = book_by_card(client, GUEST_WALLET, payload, key="booking-attempt-1")

    first.raise_for_status()
    second.raise_for_status()
    assert second.json()["replayed"] is True
    assert second.json()["booking"]["id"] == first.json()["booking"]["id"]
    assert len(email_outbox.sent) == 1

    mine = client.get("/api/bookings/my-bookings", headers={"X-Wallet-Address": GUEST_WALLET}).json()
    assert mine["total"] == 1


def test_idempotency_key_of_another_wallet_conflicts(client: TestClient, villa_450) -> None:
    payload = {"propertyId": villa_450.id, **stay()}

    book_by_card(client, GUEST_WALLET, payload, key="shared-key").raise_for_status()
    response = book_by_card(client, OWNER_WALLET, payload, key="shared-key")

    assert response.status_code == 409


def test_hkt_booking_and_refund(client: TestClient, villa_450) -> None:
    record_price("0.10")
    headers = {"X-Wallet-Address": GUEST_WALLET}

    created = client.post(
        "/api/bookings/create-hkt-booking",
        json={"propertyId": villa_450.id, "transactionHash": "0x" + "ab" * 32, **stay()},
        headers=headers,
    )
    created.raise_for_status()
    booking = created.json()["booking"]
    assert booking["currency"] == "HKT"
    assert booking["totalHkt"] == 32400.0
    assert booking["hktRate"] == 0.1

    canceled = client.post("/api/bookings/cancel", json={"bookingId": booking["id"]}, headers=headers)
    canceled.raise_for_status()
    body = canceled.json()
    assert body["refundAmount"] == 16200.0
    assert body["currency"] == "HKT"
    assert body["refundMessage"] == "HKT refund of 16200.00000000 tokens will be sent to your wallet"


def test_hkt_booking_rejects_short_hash(client: TestClient, villa_450) -> None:
    record_price("0.10")

    response = client.post(
        "/api/bookings/create-hkt-booking",
        json={"propertyId": villa_450.id, "transactionHash": "0x123", **stay()},
        headers={"X-Wallet-Address": GUEST_WALLET},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid transaction hash"


def test_card_cancellation_refunds_half(client: TestClient, villa_450, email_outbox) -> None:
    headers = {"X-Wallet-Address": GUEST_WALLET}
    created = book_by_card(
        client, GUEST_WALLET, {"propertyId": villa_450.id, "contactEmail": "guest@example.com", **stay()}
    )
    booking_id = created.json()["booking"]["id"]

    response = client.post("/api/bookings/cancel", json={"bookingId": booking_id}, headers=headers)
    response.raise_for_status()

    body = response.json()
    assert body["refundAmount"] == 1620.0
    assert body["refundMessage"] == "Card refund of $1620.00 will be processed within 5-10 business days"
    assert email_outbox.sent[-1].subject.startswith("HomeKrypto booking canceled")

    again = client.post("/api/bookings/cancel", json={"bookingId": booking_id}, headers=headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Booking already canceled"


def test_cannot_cancel_someone_elses_booking(client: TestClient, villa_450) -> None:
    created = book_by_card(client, GUEST_WALLET, {"propertyId": villa_450.id, **stay()})
    booking_id = created.json()["booking"]["id"]

    response = client.post(
        "/api/bookings/cancel",
        json={"bookingId": booking_id},
        headers={"X-Wallet-Address": OWNER_WALLET},
    )

    assert response.status_code == 404


def test_my_bookings_include_property(client: TestClient, villa_450) -> None:
    book_by_card(client, GUEST_WALLET, {"propertyId": villa_450.id, **stay()}).raise_for_status()
    book_by_card(client, OWNER_WALLET, {"propertyId": villa_450.id, **stay(days_ahead=90)}).raise_for_status()

    mine = client.get("/api/bookings/my-bookings", headers={"X-Wallet-Address": GUEST_WALLET.upper()})
    mine.raise_for_status()
    body = mine.json()
    assert body["total"] == 1
    assert body["bookings"][0]["property"]["id"] == villa_450.id


def test_admin_lists_all_bookings(client: TestClient, villa_450) -> None:
    book_by_card(client, GUEST_WALLET, {"propertyId": villa_450.id, **stay()}).raise_for_status()
    book_by_card(client, OWNER_WALLET, {"propertyId": villa_450.id, **stay(days_ahead=90)}).raise_for_status()

    assert client.get("/api/bookings/admin/all-bookings").status_code == 403
    assert (
        client.get("/api/bookings/admin/all-bookings", headers={"X-Admin-Token": "wrong"}).status_code
        == 403
    )

    response = client.get("/api/bookings/admin/all-bookings", headers=ADMIN_HEADERS)
    response.raise_for_status()
    assert response.json()["total"] == 2


class ChainOwnershipOracle:
    """Registry that reports an unused free week the database knows nothing about."""

    def lookup(self, wallet_address: str, property_id: str) -> OwnershipStatus:
        return OwnershipStatus(has_shares=True, total_shares=1, has_used_free_week=False)

    def has_free_week(self, wallet_address: str, property_id: str) -> bool:
        return True


class RecordingProcessor(PaymentProcessingService):
    def __init__(self) -> None:
        super().__init__()
        self.charges: list[Decimal] = []

    async def charge_card(self, **kwargs):
        self.charges.append(kwargs["amount_usd"])
        return await super().charge_card(**kwargs)


@pytest.mark.asyncio
async def test_unbacked_free_week_is_rejected_before_charging(villa_450) -> None:
    payments = RecordingProcessor()
    check_in = datetime.now(timezone.utc).date() + timedelta(days=30)
    request = CardBookingRequest(
        property_id=villa_450.id,
        check_in=check_in,
        check_out=check_in + timedelta(days=7),
    )

    with pytest.raises(FreeWeekUnavailableError):
        with session_scope() as session:
            service = BookingService(
                session,
                oracle=ChainOwnershipOracle(),
                payments=payments,
                email_sender=NullEmailSender(),
            )
            await service.create_card_booking(request, OWNER_WALLET)

    assert payments.charges == []
    with session_scope() as session:
        assert BookingService(session).list_all() == []


def test_declined_owner_booking_keeps_free_week(client: TestClient, villa_450) -> None:
    grant_shares(client, OWNER_WALLET, villa_450.id)

    response = book_by_card(
        client,
        OWNER_WALLET,
        {"propertyId": villa_450.id, "cardToken": "tok_chargeDeclined", **stay()},
    )

    assert response.status_code == 402
    shares = client.get(
        f"/api/bookings/user-shares/{villa_450.id}", headers={"X-Wallet-Address": OWNER_WALLET}
    ).json()
    assert shares["hasUsedFreeWeek"] is False


def test_second_owner_booking_pays_full_price(client: TestClient, villa_450) -> None:
    grant_shares(client, OWNER_WALLET, villa_450.id)

    first = book_by_card(client, OWNER_WALLET, {"propertyId": villa_450.id, **stay()})
    second = book_by_card(client, OWNER_WALLET, {"propertyId": villa_450.id, **stay(days_ahead=60)})

    assert first.json()["booking"]["totalUsd"] == 90.0
    assert second.json()["booking"]["isOwnerBooking"] is False
    assert second.json()["booking"]["totalUsd"] == 3240.0


def test_transaction_hash_pays_for_one_booking(client: TestClient, villa_450) -> None:
    record_price("0.10")
    headers = {"X-Wallet-Address": GUEST_WALLET}
    tx_hash = "0x" + "cd" * 32

    first = client.post(
        "/api/bookings/create-hkt-booking",
        json={"propertyId": villa_450.id, "transactionHash": tx_hash, **stay()},
        headers=headers,
    )
    first.raise_for_status()

    for candidate in (tx_hash, tx_hash.upper().replace("0X", "0x")):
        again = client.post(
            "/api/bookings/create-hkt-booking",
            json={"propertyId": villa_450.id, "transactionHash": candidate, **stay(days_ahead=90)},
            headers=headers,
        )
        assert again.status_code == 409
        assert again.json()["detail"] == "Transaction already used for another booking"

    mine = client.get("/api/bookings/my-bookings", headers=headers).json()
    assert mine["total"] == 1
