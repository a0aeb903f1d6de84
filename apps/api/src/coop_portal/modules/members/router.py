"""
Members Router

Mounted under /cooperatives/{cooperative_id}/members.

Endpoints:
- GET / - List members (search, active filter)
- POST / - Add member
- GET /{member_id} - Member details
- PATCH /{member_id} - Update member
- DELETE /{member_id} - Deactivate member
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_manage_members
from coop_portal.modules.members import service
from coop_portal.modules.members.schemas import (
    MemberCreate,
    MemberListResponse,
    MemberResponse,
    MemberUpdate,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

require_member_admin = require_capability(can_manage_members)


@router.get("", response_model=MemberListResponse, summary="List Members")
async def list_members(
    cooperative_id: UUID,
    search: str | None = Query(None, max_length=100),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MemberListResponse:
    try:
        result = await service.list_members(
            db,
            cooperative_id,
            user,
            search=search,
            is_active=is_active,
            page=page,
            page_size=page_size,
        )
        return MemberListResponse(
            items=[MemberResponse.model_validate(m) for m in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add Member",
)
async def add_member(
    cooperative_id: UUID,
    data: MemberCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_member_admin),
) -> MemberResponse:
    try:
        return MemberResponse.model_validate(
            await service.add_member(db, cooperative_id, data, user)
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "adding member")


@router.get("/{member_id}", response_model=MemberResponse, summary="Get Member")
async def get_member(
    cooperative_id: UUID,
    member_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MemberResponse:
    try:
        return MemberResponse.model_validate(
            await service.get_member(db, cooperative_id, member_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.patch("/{member_id}", response_model=MemberResponse, summary="Update Member")
async def update_member(
    cooperative_id: UUID,
    member_id: UUID,
    data: MemberUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_member_admin),
) -> MemberResponse:
    try:
        return MemberResponse.model_validate(
            await service.update_member(db, cooperative_id, member_id, data, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.delete("/{member_id}", response_model=MemberResponse, summary="Deactivate Member")
async def deactivate_member(
    cooperative_id: UUID,
    member_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_member_admin),
) -> MemberResponse:
    try:
        return MemberResponse.model_validate(
            await service.deactivate_member(db, cooperative_id, member_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)
