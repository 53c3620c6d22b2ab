"""Transactional email for bookings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import get_settings
from app.models.booking import Booking, PaymentCurrency

LOGGER = logging.getLogger("app.notifications.email")


@dataclass(frozen=True)
class EmailMessage:
    recipient: str
    subject: str
    body: str


class EmailSender(Protocol):
    """Delivers a plain-text email."""

    def send(self, message: EmailMessage) -> None:
        ...


@dataclass
class NullEmailSender(EmailSender):
    """Records messages instead of sending; used when no sender is configured."""

    sent: List[EmailMessage] = field(default_factory=list)

    def send(self, message: EmailMessage) -> None:  # noqa: D401
        self.sent.append(message)
        LOGGER.debug(
            "email_skipped",
            extra={"recipient": message.recipient, "subject": message.subject},
        )


class SesEmailSender(EmailSender):
    """Sends email through Amazon SES."""

    def __init__(self, *, sender: str, region: str) -> None:
        self._sender = sender
        self._client = boto3.client("ses", region_name=region)

    def send(self, message: EmailMessage) -> None:
        try:
            self._client.send_email(
                Source=self._sender,
                Destination={"ToAddresses": [message.recipient]},
                Message={
                    "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                    "Body": {"Text": {"Data": message.body, "Charset": "UTF-8"}},
                },
            )
        except (BotoCoreError, ClientError) as exc:
            LOGGER.exception("email_send_failed", extra={"recipient": message.recipient})
            raise exc
        LOGGER.info("email_sent", extra={"recipient": message.recipient, "subject": message.subject})


def _amount_line(booking: Booking) -> str:
    if booking.currency is PaymentCurrency.HKT and booking.total_hkt is not None:
        return f"{booking.total_hkt} HKT (${booking.total_usd} USD)"
    return f"${booking.total_usd} USD"


def booking_confirmation_email(booking: Booking, recipient: str) -> EmailMessage:
    lines = [
        f"Your booking {booking.reference} is confirmed.",
        "",
        f"Property: {booking.property.name if booking.property else booking.property_id}",
        f"Check-in: {booking.check_in.isoformat()}",
        f"Check-out: {booking.check_out.isoformat()}",
        f"Nights: {booking.nights}",
        f"Guests: {booking.guests}",
        f"Total paid: {_amount_line(booking)}",
    ]
    if booking.is_owner_booking:
        lines.append("This stay uses your owner free week; only the cleaning fee was charged.")
    return EmailMessage(
        recipient=recipient,
        subject=f"HomeKrypto booking confirmed: {booking.reference}",
        body="\n".join(lines),
    )


def booking_cancellation_email(booking: Booking, recipient: str, refund_message: str) -> EmailMessage:
    return EmailMessage(
        recipient=recipient,
        subject=f"HomeKrypto booking canceled: {booking.reference}",
        body=f"Your booking {booking.reference} has been canceled.\n\n{refund_message}",
    )


def notify_quietly(sender: EmailSender, message: Optional[EmailMessage]) -> bool:
    """Send ``message``; a failure is logged and never propagates."""

    if message is None:
        return False
    try:
        sender.send(message)
    except Exception:  # noqa: BLE001
        LOGGER.warning(
            "email_notification_dropped",
            exc_info=True,
            extra={"recipient": message.recipient, "subject": message.subject},
        )
        return False
    return True


_sender: Optional[EmailSender] = None


def get_email_sender() -> EmailSender:
    """Return cached email sender instance."""

    global _sender
    if _sender is not None:
        return _sender

    settings = get_settings()
    if settings.email_sender:
        region = (
            settings.ses_region
            or os.getenv("AWS_REGION")
            or os.getenv("AWS_DEFAULT_REGION")
            or "us-east-1"
        )
        _sender = SesEmailSender(sender=settings.email_sender, region=region)
    else:
        _sender = NullEmailSender()
    return _sender


def set_email_sender(sender: Optional[EmailSender]) -> None:
    """Override the cached sender (primarily for tests)."""

    global _sender
    _sender = sender
