"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_exception_handlers
from app.api.routers import get_api_router
from app.core.config import AppSettings, get_settings
from app.core.database import session_scope
from app.core.logging import configure_logging
from app.services.price_feed import get_market_data_fetcher
from app.services.properties import PropertyService
from app.workers.price_feed import PriceFeedPoller



@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: D401
    """Application lifespan context for startup/shutdown hooks."""

    settings = get_settings()
    if settings.seed_demo_data:
        with session_scope() as session:
            PropertyService(session).ensure_demo_property()

    poller_task: asyncio.Task | None = None
    if settings.price_feed_enabled and settings.environment != "test":
        poller = PriceFeedPoller(
            fetcher=get_market_data_fetcher(),
            interval_seconds=settings.price_feed_interval_seconds,
        )
        poller_task = asyncio.create_task(poller.run_forever())

    yield

    if poller_task is not None:
        poller_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poller_task


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Application factory."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="HomeKrypto Booking Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(get_api_router())
    return app


app = create_app()
