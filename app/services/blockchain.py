"""HKT token transfers on chain (MOCKED)."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from app.services.retry import TransientError

logger = logging.getLogger("app.services.blockchain")

MIN_TRANSACTION_HASH_LENGTH = 10


class TransferVerificationError(ValueError):
    """The supplied transaction cannot be a valid HKT payment."""


class ChainUnavailableError(TransientError):
    """The RPC node could not be reached."""


class BlockchainService:
    """
    Mock HKT token integration.

    Simulates reading ERC-20 transfers for booking payments and sending
    refunds. In production this would use an RPC provider and the HKT
    contract ABI.

    Future Implementation Requirements:
    - Decode the Transfer event from the receipt and compare amount/recipient
    - Wait for a confirmation depth before accepting payment
    - Sign refund transfers from the treasury wallet
    """

    def __init__(self) -> None:
        self._network = "ethereum-mainnet"
        self._chain_id = 1

    async def verify_transfer(
        self,
        *,
        transaction_hash: str,
        from_address: str,
        amount_hkt: Decimal,
    ) -> Dict[str, Any]:
        """
        Confirm that a transfer of ``amount_hkt`` HKT was made from ``from_address``.

        Raises:
            TransferVerificationError: the hash is malformed.

        MOCKED: Any well-formed hash is treated as a confirmed transfer.
        """
        logger.info(
            "blockchain_verify_transfer_mock",
            extra={
                "transaction_hash": transaction_hash,
                "from_address": from_address,
                "amount_hkt": str(amount_hkt),
                "network": self._network,
            },
        )

        if not transaction_hash or len(transaction_hash) < MIN_TRANSACTION_HASH_LENGTH:
            raise TransferVerificationError("Invalid transaction hash")

        result = {
            "transaction_hash": transaction_hash,
            "from_address": from_address,
            "amount_hkt": amount_hkt,
            "network": self._network,
            "chain_id": self._chain_id,
            "confirmations": 12,  # Mock
            "block_number": 19876543,  # Mock
            "status": "confirmed",
            "verified_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.info(
            "blockchain_transfer_verified",
            extra={"transaction_hash": transaction_hash, "mocked": True},
        )
        return result

    async def send_tokens(
        self,
        *,
        to_address: str,
        amount_hkt: Decimal,
        memo: str,
    ) -> Dict[str, Any]:
        """
        Send HKT from the treasury, used for booking refunds.

        MOCKED: Returns a fake transaction hash.
        """
        logger.info(
            "blockchain_send_tokens_mock",
            extra={"to_address": to_address, "amount_hkt": str(amount_hkt), "memo": memo},
        )

        transaction_hash = f"0x{uuid.uuid4().hex}{uuid.uuid4().hex}"
        result = {
            "transaction_hash": transaction_hash,
            "to_address": to_address,
            "amount_hkt": amount_hkt,
            "network": self._network,
            "status": "submitted",
            "submitted_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.info(
            "blockchain_tokens_sent",
            extra={"transaction_hash": transaction_hash, "mocked": True},
        )
        return result


# Singleton instance
_blockchain_service: BlockchainService | None = None


def get_blockchain_service() -> BlockchainService:
    """Get or create blockchain service singleton."""
    global _blockchain_service
    if _blockchain_service is None:
        _blockchain_service = BlockchainService()
    return _blockchain_service
