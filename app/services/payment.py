"""Card payment processing service (MOCKED)."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from app.services.retry import TransientError

logger = logging.getLogger("app.services.payment")

DECLINED_TEST_TOKEN = "tok_chargeDeclined"


class PaymentError(RuntimeError):
    """Base class for payment collaborator failures."""


class PaymentDeclinedError(PaymentError):
    """The processor refused the charge; retrying will not help."""


class PaymentUnavailableError(TransientError, PaymentError):
    """The processor timed out or answered 503."""


class PaymentProcessingService:
    """
    Card payments for stays.

    Mocks a Stripe-like processor: every charge succeeds with a fake charge
    ID except the processor's declined test token.

    Future Implementation Requirements:
    - Create Stripe PaymentIntents / Checkout sessions
    - Confirm payment through the processor webhook
    - Pass the booking idempotency key to the processor
    """

    def __init__(self) -> None:
        self._provider = "mock-card-processor"

    async def charge_card(
        self,
        *,
        wallet_address: str,
        amount_usd: Decimal,
        card_token: str,
        description: str,
        metadata: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """
        Charge a tokenized card.

        Args:
            wallet_address: Paying user's wallet (used as customer reference)
            amount_usd: Amount in USD
            card_token: Processor card token
            description: Statement description
            metadata: Extra metadata stored with the charge

        Returns:
            Charge details including the processor charge ID

        Raises:
            PaymentDeclinedError: The card was declined.

        MOCKED: Always succeeds unless the declined test token is used.
        """
        logger.info(
            "payment_charge_mock",
            extra={
                "wallet_address": wallet_address,
                "amount_usd": str(amount_usd),
                "description": description,
            },
        )

        if amount_usd <= 0:
            raise PaymentDeclinedError("Charge amount must be positive")
        if card_token == DECLINED_TEST_TOKEN:
            raise PaymentDeclinedError("Your card was declined")

        charge_id = f"ch_{uuid.uuid4().hex[:24]}"
        result = {
            "success": True,
            "charge_id": charge_id,
            "provider": self._provider,
            "amount_usd": amount_usd,
            "currency": "usd",
            "status": "succeeded",
            "processed_at": datetime.now(timezone.utc).isoformat(),
            "metadata": metadata or {},
        }

        logger.info(
            "payment_charged",
            extra={"charge_id": charge_id, "amount_usd": str(amount_usd), "mocked": True},
        )
        return result

    async def initiate_refund(
        self,
        *,
        charge_id: str,
        amount_usd: Decimal,
        reason: str,
    ) -> Dict[str, Any]:
        """
        Refund part or all of a charge.

        MOCKED: Returns a completed refund.
        """
        logger.info(
            "payment_refund_mock",
            extra={"charge_id": charge_id, "amount_usd": str(amount_usd), "reason": reason},
        )

        refund_id = f"re_{uuid.uuid4().hex[:24]}"
        result = {
            "success": True,
            "refund_id": refund_id,
            "charge_id": charge_id,
            "amount_usd": amount_usd,
            "reason": reason,
            "status": "pending",
            "refunded_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.info(
            "payment_refunded",
            extra={"charge_id": charge_id, "refund_id": refund_id, "mocked": True},
        )
        return result


# Singleton instance
_payment_service: PaymentProcessingService | None = None


def get_payment_service() -> PaymentProcessingService:
    """Get or create payment processing service singleton."""
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentProcessingService()
    return _payment_service
