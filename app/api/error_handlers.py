"""Exception handlers for the FastAPI app."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from app.services.blockchain import TransferVerificationError
from app.services.bookings import (
    BookingNotFoundError,
    BookingStateError,
    IdempotencyConflictError,
    PaymentFailedError,
    TransactionReuseError,
)
from app.services.ownership import FreeWeekUnavailableError
from app.services.payment import PaymentDeclinedError
from app.services.pricing import InvalidQuoteError, PriceUnavailableError
from app.services.properties import PropertyConflictError, PropertyNotFoundError
from app.services.stay import StayValidationError

LOGGER = logging.getLogger("app.api.errors")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(
            status_code=400,
            content={"detail": _validation_message(exc), "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(StayValidationError)
    async def stay_validation_handler(request: Request, exc: StayValidationError) -> JSONResponse:  # noqa: WPS430
        details = {to_camel(key): value for key, value in exc.details.items()}
        return JSONResponse(status_code=400, content={"detail": str(exc), **details})

    @app.exception_handler(TransferVerificationError)
    async def transfer_verification_handler(request: Request, exc: TransferVerificationError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PaymentDeclinedError)
    async def payment_declined_handler(request: Request, exc: PaymentDeclinedError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=402, content={"detail": str(exc)})

    @app.exception_handler(BookingStateError)
    async def booking_state_handler(request: Request, exc: BookingStateError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PropertyNotFoundError)
    async def property_not_found_handler(request: Request, exc: PropertyNotFoundError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(BookingNotFoundError)
    async def booking_not_found_handler(request: Request, exc: BookingNotFoundError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PropertyConflictError)
    async def property_conflict_handler(request: Request, exc: PropertyConflictError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(IdempotencyConflictError)
    async def idempotency_conflict_handler(request: Request, exc: IdempotencyConflictError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(TransactionReuseError)
    async def transaction_reuse_handler(request: Request, exc: TransactionReuseError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(FreeWeekUnavailableError)
    async def free_week_handler(request: Request, exc: FreeWeekUnavailableError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(InvalidQuoteError)
    async def invalid_quote_handler(request: Request, exc: InvalidQuoteError) -> JSONResponse:  # noqa: WPS430
        LOGGER.error("invalid_quote", extra={"error": str(exc), "path": request.url.path})
        return JSONResponse(status_code=422, content={"detail": "Unable to price this stay"})

    @app.exception_handler(PriceUnavailableError)
    async def price_unavailable_handler(request: Request, exc: PriceUnavailableError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(PaymentFailedError)
    async def payment_failed_handler(request: Request, exc: PaymentFailedError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=502, content={"detail": str(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    return [
        {"loc": list(error.get("loc", ())), "msg": str(error.get("msg")), "type": error.get("type")}
        for error in exc.errors()
    ]
