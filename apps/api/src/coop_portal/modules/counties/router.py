"""
Counties Router

Endpoints:
- GET /counties - List counties (any signed-in user)
- POST /counties - Create county (super admin)
- GET /counties/{id} - County details
- PATCH /counties/{id} - Update county (super admin)
- DELETE /counties/{id} - Deactivate county (super admin)
- GET /counties/{id}/stats - Cooperative and officer counts
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_manage_counties
from coop_portal.modules.counties import service
from coop_portal.modules.counties.schemas import (
    CountyCreate,
    CountyListResponse,
    CountyResponse,
    CountyStatsResponse,
    CountyUpdate,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=CountyListResponse, summary="List Counties")
async def list_counties(
    search: str | None = Query(None, max_length=100),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CountyListResponse:
    result = await service.list_counties(
        db, search=search, is_active=is_active, page=page, page_size=page_size
    )
    return CountyListResponse(
        items=[CountyResponse.model_validate(c) for c in result["items"]],
        total_count=result["total_count"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.post(
    "",
    response_model=CountyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create County",
)
async def create_county(
    data: CountyCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_capability(can_manage_counties)),
) -> CountyResponse:
    try:
        county = await service.create_county(db, data)
        return CountyResponse.model_validate(county)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "creating county")


@router.get("/{county_id}", response_model=CountyResponse, summary="Get County")
async def get_county(
    county_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CountyResponse:
    try:
        return CountyResponse.model_validate(await service.get_county(db, county_id))
    except ServiceError as e:
        raise_http_error(e)


@router.patch("/{county_id}", response_model=CountyResponse, summary="Update County")
async def update_county(
    county_id: UUID,
    data: CountyUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_capability(can_manage_counties)),
) -> CountyResponse:
    try:
        return CountyResponse.model_validate(await service.update_county(db, county_id, data))
    except ServiceError as e:
        raise_http_error(e)


@router.delete("/{county_id}", response_model=CountyResponse, summary="Deactivate County")
async def delete_county(
    county_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_capability(can_manage_counties)),
) -> CountyResponse:
    try:
        return CountyResponse.model_validate(await service.delete_county(db, county_id))
    except ServiceError as e:
        raise_http_error(e)


@router.get("/{county_id}/stats", response_model=CountyStatsResponse, summary="County Statistics")
async def get_county_stats(
    county_id: UUID,
    db: AsyncSession = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CountyStatsResponse:
    try:
        return CountyStatsResponse(**await service.get_county_stats(db, county_id))
    except ServiceError as e:
        raise_http_error(e)
