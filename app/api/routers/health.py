"""Liveness and readiness endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_db_session
from app.services.price_feed import PriceFeedService

router = APIRouter()


@router.get("/healthz", summary="Liveness probe")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", summary="Readiness probe")
def readiness_check(session: Session = Depends(get_db_session)) -> JSONResponse:
    """Database must answer; a missing HKT price only degrades HKT bookings."""
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "down"})

    body: Dict[str, Any] = {"status": "ok", "database": "up", "hktPrice": "unavailable"}
    snapshot = PriceFeedService(session).latest()
    if snapshot is not None:
        body["hktPrice"] = "available"
        body["hktPriceFetchedAt"] = snapshot.fetched_at.isoformat()
    return JSONResponse(content=body)
