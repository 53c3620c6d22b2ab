"""Router registrations."""

from fastapi import APIRouter

from app.api.routers import bookings, health, hkt, properties


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router, tags=["health"])
    router.include_router(properties.router, prefix="/api/properties", tags=["properties"])
    router.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])
    router.include_router(hkt.router, prefix="/api", tags=["hkt"])
    return router
