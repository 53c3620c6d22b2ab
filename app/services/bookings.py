"""Booking quotes, submission and cancellation."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.models.booking import Booking, BookingStatus, PaymentCurrency
from app.services.blockchain import (
    MIN_TRANSACTION_HASH_LENGTH,
    BlockchainService,
    TransferVerificationError,
    get_blockchain_service,
)
from app.services.notifications import (
    EmailSender,
    booking_cancellation_email,
    booking_confirmation_email,
    get_email_sender,
    notify_quietly,
)
from app.services.ownership import (
    DatabaseOwnershipOracle,
    OwnershipOracle,
    OwnershipService,
    OwnershipStatus,
    normalize_wallet,
    resolve_ownership,
)
from app.services.payment import PaymentProcessingService, get_payment_service
from app.services.price_feed import PriceFeedService
from app.services.pricing import (
    CENTS,
    TOKEN_UNITS,
    PriceQuote,
    compose_quote,
    require_usable_rate,
)
from app.services.properties import PropertyService
from app.services.retry import RetryExhaustedError, call_with_retry
from app.services.stay import StayPolicy, calculate_nights, validate_guests
from app.schemas.booking import CardBookingRequest, HktBookingRequest, PriceCalculationRequest

logger = logging.getLogger("app.services.bookings")

REFUND_RATIO = Decimal("0.5")


class BookingNotFoundError(ValueError):
    """Raised when a booking does not exist for the caller."""


class BookingStateError(ValueError):
    """Raised when a booking cannot transition (already canceled, past check-in)."""


class IdempotencyConflictError(ValueError):
    """Raised when an idempotency key was already used by another wallet."""


class TransactionReuseError(ValueError):
    """Raised when an HKT transfer already paid for another booking."""


class PaymentFailedError(RuntimeError):
    """Raised when the payment collaborator stayed unavailable through every retry."""


@dataclass(frozen=True)
class CancellationResult:
    booking: Booking
    refund_amount: Decimal
    refund_message: str


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def generate_reference() -> str:
    return f"HK-{uuid.uuid4().hex[:10].upper()}"


class BookingService:
    """Prices stays and turns quotes into paid bookings.

    Payment calls are retried on transient failures only. Submissions are
    deduplicated when the caller supplies an idempotency key; without one a
    retried submission can create a second booking.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: Optional[AppSettings] = None,
        oracle: Optional[OwnershipOracle] = None,
        payments: Optional[PaymentProcessingService] = None,
        chain: Optional[BlockchainService] = None,
        email_sender: Optional[EmailSender] = None,
        today: Callable[[], date] = _utc_today,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._oracle = oracle or DatabaseOwnershipOracle(session)
        self._payments = payments or get_payment_service()
        self._chain = chain or get_blockchain_service()
        self._email_sender = email_sender or get_email_sender()
        self._today = today
        self._sleep = sleep
        self._properties = PropertyService(session)
        self._ownership = OwnershipService(session)
        self._policy = StayPolicy(
            minimum_nights=self._settings.minimum_nights,
            maximum_nights=self._settings.maximum_nights,
        )

    # -- quoting ---------------------------------------------------------

    def ownership_for(self, wallet_address: Optional[str], property_id: str) -> OwnershipStatus:
        return resolve_ownership(self._oracle, wallet_address, property_id)

    def calculate_price(
        self,
        request: PriceCalculationRequest,
        wallet_address: Optional[str],
    ) -> PriceQuote:
        """Validate the stay and price it for ``wallet_address``.

        HKT quotes need a positive, non-stale rate from the price feed and
        fail with PriceUnavailableError otherwise.
        """
        property_ = self._properties.get_property(request.property_id, active_only=True)
        nights = calculate_nights(
            request.check_in,
            request.check_out,
            policy=self._policy,
            today=self._today(),
        )
        validate_guests(request.guests, property_.max_guests)
        ownership = self.ownership_for(wallet_address, property_.id)

        rate = None
        if request.currency is PaymentCurrency.HKT:
            rate = require_usable_rate(
                PriceFeedService(self._session).current_rate(),
                max_age=timedelta(seconds=self._settings.price_max_age_seconds),
                now=datetime.now(timezone.utc),
            )

        quote = compose_quote(
            property_,
            nights,
            request.guests,
            ownership,
            currency=request.currency,
            rate=rate,
        )
        logger.info(
            "booking_price_calculated",
            extra={
                "property_id": property_.id,
                "nights": nights,
                "currency": quote.currency.value,
                "total_usd": str(quote.total_usd),
                "is_owner_booking": quote.is_owner_booking,
            },
        )
        return quote

    # -- submission ------------------------------------------------------

    async def create_card_booking(
        self,
        request: CardBookingRequest,
        wallet_address: str,
        *,
        idempotency_key: Optional[str] = None,
    ) -> Tuple[Booking, bool]:
        """Reserve the booking, then charge the card. Returns (booking, replayed).

        The booking row (with its idempotency key and the owner's free week)
        is flushed before the processor is called, so a conflict is reported
        without money having moved. A failed charge releases the reservation.
        """
        existing = self._replayed_booking(idempotency_key, wallet_address)
        if existing is not None:
            return existing, True

        usd_request = request.model_copy(update={"currency": PaymentCurrency.USD})
        quote = self.calculate_price(usd_request, wallet_address)

        booking = self._reserve(
            request,
            quote,
            wallet_address,
            idempotency_key=idempotency_key,
            contact_email=request.contact_email,
        )
        charge = await self._settle(
            booking,
            "card_charge",
            lambda: self._payments.charge_card(
                wallet_address=wallet_address,
                amount_usd=quote.total_usd,
                card_token=request.card_token,
                description=f"Stay at {request.property_id}: {quote.nights} nights + cleaning fee",
                metadata={
                    "property_id": request.property_id,
                    "check_in": request.check_in.isoformat(),
                    "check_out": request.check_out.isoformat(),
                    "is_owner_booking": quote.is_owner_booking,
                    "reference": booking.reference,
                },
            ),
        )
        booking.payment_reference = charge["charge_id"]
        self._session.flush()
        self._log_created(booking)
        return booking, False

    async def create_hkt_booking(
        self,
        request: HktBookingRequest,
        wallet_address: str,
        *,
        idempotency_key: Optional[str] = None,
    ) -> Tuple[Booking, bool]:
        """Verify the HKT transfer and persist the booking. Returns (booking, replayed).

        A transaction hash pays for one booking only.
        """
        existing = self._replayed_booking(idempotency_key, wallet_address)
        if existing is not None:
            return existing, True

        transaction_hash = (request.transaction_hash or "").strip().lower()
        if len(transaction_hash) < MIN_TRANSACTION_HASH_LENGTH:
            raise TransferVerificationError("Invalid transaction hash")
        if self._session.scalar(select(Booking.id).where(Booking.transaction_hash == transaction_hash)):
            raise TransactionReuseError("Transaction already used for another booking")

        hkt_request = request.model_copy(update={"currency": PaymentCurrency.HKT})
        quote = self.calculate_price(hkt_request, wallet_address)

        booking = self._reserve(
            request,
            quote,
            wallet_address,
            idempotency_key=idempotency_key,
            contact_email=request.contact_email,
            transaction_hash=transaction_hash,
        )
        await self._settle(
            booking,
            "hkt_transfer_verification",
            lambda: self._chain.verify_transfer(
                transaction_hash=transaction_hash,
                from_address=wallet_address,
                amount_hkt=quote.amount_due,
            ),
        )
        self._log_created(booking)
        return booking, False

    def _replayed_booking(self, idempotency_key: Optional[str], wallet_address: str) -> Optional[Booking]:
        if not idempotency_key:
            return None
        booking = self._session.scalar(select(Booking).where(Booking.idempotency_key == idempotency_key))
        if booking is None:
            return None
        if booking.wallet_address != normalize_wallet(wallet_address):
            raise IdempotencyConflictError("Idempotency key already used for another booking")
        logger.info(
            "booking_submission_replayed",
            extra={"reference": booking.reference, "idempotency_key": idempotency_key},
        )
        return booking

    async def _with_retry(self, operation_name: str, operation):
        try:
            return await call_with_retry(
                operation,
                operation_name=operation_name,
                retries=self._settings.payment_retry_attempts,
                base_delay=self._settings.payment_retry_base_delay,
                timeout=self._settings.payment_timeout_seconds,
                sleep=self._sleep,
            )
        except RetryExhaustedError as exc:
            raise PaymentFailedError(
                "Payment service is temporarily unavailable. Please try again later."
            ) from exc

    def _reserve(
        self,
        request: PriceCalculationRequest,
        quote: PriceQuote,
        wallet_address: str,
        *,
        idempotency_key: Optional[str],
        contact_email: Optional[str] = None,
        transaction_hash: Optional[str] = None,
    ) -> Booking:
        """Flush the booking row and consume the free week ahead of any payment."""
        booking = Booking(
            reference=generate_reference(),
            wallet_address=normalize_wallet(wallet_address),
            property_id=request.property_id,
            check_in=request.check_in,
            check_out=request.check_out,
            nights=quote.nights,
            guests=quote.guests,
            currency=quote.currency,
            status=BookingStatus.CONFIRMED,
            base_price=quote.base_price,
            cleaning_fee=quote.cleaning_fee,
            total_usd=quote.total_usd,
            total_hkt=quote.total_hkt,
            hkt_rate=quote.hkt_rate,
            is_owner_booking=quote.is_owner_booking,
            contact_email=contact_email,
            transaction_hash=transaction_hash,
            idempotency_key=idempotency_key or None,
        )
        if quote.is_owner_booking:
            self._ownership.consume_free_week(wallet_address, request.property_id)
        self._session.add(booking)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            if transaction_hash is not None:
                raise TransactionReuseError("Transaction already used for another booking") from exc
            raise IdempotencyConflictError("Booking submission already in progress") from exc
        return booking

    async def _settle(self, booking: Booking, operation_name: str, operation):
        """Run the payment call; any failure releases the reserved booking."""
        reference = booking.reference
        try:
            return await self._with_retry(operation_name, operation)
        except Exception:
            self._session.rollback()
            logger.warning(
                "booking_reservation_released",
                extra={"reference": reference, "operation": operation_name},
            )
            raise

    def _log_created(self, booking: Booking) -> None:
        logger.info(
            "booking_created",
            extra={
                "reference": booking.reference,
                "property_id": booking.property_id,
                "wallet_address": booking.wallet_address,
                "currency": booking.currency.value,
                "total_usd": str(booking.total_usd),
                "is_owner_booking": booking.is_owner_booking,
            },
        )

    # -- management ------------------------------------------------------

    def list_for_wallet(self, wallet_address: str) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.wallet_address == normalize_wallet(wallet_address))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return list(self._session.scalars(stmt).unique().all())

    def list_all(self) -> List[Booking]:
        stmt = select(Booking).order_by(Booking.created_at.desc(), Booking.id.desc())
        return list(self._session.scalars(stmt).unique().all())

    def get_for_wallet(self, booking_id: int, wallet_address: str) -> Booking:
        booking = self._session.get(Booking, booking_id)
        if booking is None or booking.wallet_address != normalize_wallet(wallet_address):
            raise BookingNotFoundError("Booking not found")
        return booking

    async def cancel_booking(self, booking_id: int, wallet_address: str) -> CancellationResult:
        """Cancel before check-in with a 50% refund in the booking currency."""
        booking = self.get_for_wallet(booking_id, wallet_address)
        if booking.status is BookingStatus.CANCELED:
            raise BookingStateError("Booking already canceled")
        if self._today() >= booking.check_in:
            raise BookingStateError("Cannot cancel booking after check-in date")

        if booking.currency is PaymentCurrency.HKT:
            refund_amount = (Decimal(booking.total_hkt or 0) * REFUND_RATIO).quantize(TOKEN_UNITS)
            await self._with_retry(
                "hkt_refund",
                lambda: self._chain.send_tokens(
                    to_address=booking.wallet_address,
                    amount_hkt=refund_amount,
                    memo=f"refund {booking.reference}",
                ),
            )
            refund_message = f"HKT refund of {refund_amount:.8f} tokens will be sent to your wallet"
        else:
            refund_amount = (Decimal(booking.total_usd) * REFUND_RATIO).quantize(CENTS)
            if booking.payment_reference:
                await self._with_retry(
                    "card_refund",
                    lambda: self._payments.initiate_refund(
                        charge_id=booking.payment_reference,
                        amount_usd=refund_amount,
                        reason="booking_canceled",
                    ),
                )
            refund_message = (
                f"Card refund of ${refund_amount:.2f} will be processed within 5-10 business days"
            )

        booking.status = BookingStatus.CANCELED
        booking.canceled_at = datetime.now(timezone.utc)
        booking.refund_amount = refund_amount
        if booking.is_owner_booking:
            self._ownership.restore_free_week(booking.wallet_address, booking.property_id)
        self._session.flush()

        logger.info(
            "booking_canceled",
            extra={
                "reference": booking.reference,
                "refund_amount": str(refund_amount),
                "currency": booking.currency.value,
            },
        )
        return CancellationResult(booking=booking, refund_amount=refund_amount, refund_message=refund_message)

    # -- notifications ---------------------------------------------------

    def notify_confirmed(self, booking: Booking) -> bool:
        if not booking.contact_email:
            return False
        return notify_quietly(
            self._email_sender,
            booking_confirmation_email(booking, booking.contact_email),
        )

    def notify_canceled(self, result: CancellationResult) -> bool:
        booking = result.booking
        if not booking.contact_email:
            return False
        return notify_quietly(
            self._email_sender,
            booking_cancellation_email(booking, booking.contact_email, result.refund_message),
        )
