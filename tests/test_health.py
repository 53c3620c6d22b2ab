"""Tests for health endpoints and structured logging."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal

from fastapi.testclient import TestClient

from app.core.database import session_scope
from app.core.logging import JsonFormatter
from app.services.price_feed import MarketQuote, MarketSnapshot, PriceFeedService


def test_liveness(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_readiness_reports_price_feed_state(client: TestClient) -> None:
    before = client.get("/readyz").json()
    assert before["database"] == "up"
    assert before["hktPrice"] == "unavailable"

    with session_scope() as session:
        PriceFeedService(session).record(
            MarketSnapshot(MarketQuote(Decimal("0.1"), "coingecko"), None, datetime.now(timezone.utc))
        )

    after = client.get("/readyz").json()
    assert after["hktPrice"] == "available"
    assert "hktPriceFetchedAt" in after


def test_json_formatter_keeps_extra_fields() -> None:
    record = logging.LogRecord("app.services.bookings", logging.INFO, __file__, 1, "booking_created", None, None)
    record.reference = "HK-0123456789"
    record.total_usd = Decimal("3240.00")

    entry = json.loads(JsonFormatter("homekrypto-booking").format(record))

    assert entry["message"] == "booking_created"
    assert entry["service"] == "homekrypto-booking"
    assert entry["extra"] == {"reference": "HK-0123456789", "total_usd": "3240.00"}
    assert entry["timestamp"].endswith("Z")
