"""
Cooperatives Router

Public Endpoints:
- GET /cooperatives/registry - Official search of registered cooperatives
- GET /cooperatives/types - Cooperative type catalogue

Authenticated Endpoints:
- GET /cooperatives - Cooperatives in the caller's scope
- GET /cooperatives/{id} - Cooperative details
- PATCH /cooperatives/{id}/status - Change lifecycle status (county/super admin)
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_manage_cooperatives
from coop_portal.modules.cooperatives import service
from coop_portal.modules.cooperatives.models import CooperativeStatus
from coop_portal.modules.cooperatives.schemas import (
    CooperativeListResponse,
    CooperativeResponse,
    CooperativeStatusUpdate,
    CooperativeTypeResponse,
    RegistryEntry,
    RegistrySearchResponse,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/registry", response_model=RegistrySearchResponse, summary="Official Search")
async def search_registry(
    name: str | None = Query(None, max_length=200),
    registration_number: str | None = Query(None, max_length=30),
    county_id: UUID | None = Query(None),
    type_id: UUID | None = Query(None),
    status: CooperativeStatus | None = Query(None),
    registered_from: date | None = Query(None),
    registered_to: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> RegistrySearchResponse:
    result = await service.search_registry(
        db,
        name=name,
        registration_number=registration_number,
        tenant_id=county_id,
        type_id=type_id,
        status=status,
        registered_from=registered_from,
        registered_to=registered_to,
        page=page,
        page_size=page_size,
    )
    return RegistrySearchResponse(
        items=[
            RegistryEntry(
                id=row["cooperative"].id,
                registration_number=row["cooperative"].registration_number,
                name=row["cooperative"].name,
                status=row["cooperative"].status,
                registration_date=row["cooperative"].registration_date,
                total_members=row["cooperative"].total_members,
                county_name=row["county_name"],
                type_name=row["type_name"],
            )
            for row in result["items"]
        ],
        total_count=result["total_count"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.get("/types", response_model=list[CooperativeTypeResponse], summary="Cooperative Types")
async def list_types(db: AsyncSession = Depends(get_db)) -> list[CooperativeTypeResponse]:
    return [CooperativeTypeResponse.model_validate(t) for t in await service.list_types(db)]


@router.get("", response_model=CooperativeListResponse, summary="List Cooperatives")
async def list_cooperatives(
    status: CooperativeStatus | None = Query(None),
    type_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CooperativeListResponse:
    result = await service.list_cooperatives(
        db, user, status=status, type_id=type_id, search=search, page=page, page_size=page_size
    )
    return CooperativeListResponse(
        items=[CooperativeResponse.model_validate(c) for c in result["items"]],
        total_count=result["total_count"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.get("/{cooperative_id}", response_model=CooperativeResponse, summary="Get Cooperative")
async def get_cooperative(
    cooperative_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CooperativeResponse:
    try:
        return CooperativeResponse.model_validate(
            await service.get_cooperative(db, cooperative_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.patch(
    "/{cooperative_id}/status",
    response_model=CooperativeResponse,
    summary="Update Cooperative Status",
)
async def update_status(
    cooperative_id: UUID,
    body: CooperativeStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_capability(can_manage_cooperatives)),
) -> CooperativeResponse:
    try:
        cooperative = await service.update_status(db, cooperative_id, body.status, user)
        return CooperativeResponse.model_validate(cooperative)
    except ServiceError as e:
        raise_http_error(e)
