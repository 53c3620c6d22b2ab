"""Property catalogue API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_db_session, get_property_service, require_admin
from app.schemas.property import (
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertyUpdate,
)
from app.services.properties import PropertyService

router = APIRouter()


@router.get("", response_model=PropertyListResponse)
def list_properties(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    service: PropertyService = Depends(get_property_service),
) -> PropertyListResponse:
    """List bookable properties; inactive ones only on request."""
    properties = service.list_properties(include_inactive=include_inactive)
    return PropertyListResponse(
        properties=[PropertyResponse.model_validate(p) for p in properties],
        total=service.count_properties(include_inactive=include_inactive),
    )


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(
    property_id: str,
    service: PropertyService = Depends(get_property_service),
) -> PropertyResponse:
    return PropertyResponse.model_validate(service.get_property(property_id))


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_property(
    payload: PropertyCreate,
    session: Session = Depends(get_db_session),
    service: PropertyService = Depends(get_property_service),
) -> PropertyResponse:
    property_ = service.create_property(payload)
    session.commit()
    session.refresh(property_)
    return PropertyResponse.model_validate(property_)


@router.patch(
    "/{property_id}",
    response_model=PropertyResponse,
    dependencies=[Depends(require_admin)],
)
def update_property(
    property_id: str,
    payload: PropertyUpdate,
    session: Session = Depends(get_db_session),
    service: PropertyService = Depends(get_property_service),
) -> PropertyResponse:
    """Admin edit; rate and fee changes apply to quotes made afterwards."""
    property_ = service.update_property(property_id, payload)
    session.commit()
    session.refresh(property_)
    return PropertyResponse.model_validate(property_)
