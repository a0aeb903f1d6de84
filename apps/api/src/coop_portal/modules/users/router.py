"""
User Administration Router

All endpoints require the ``can_manage_users`` capability.

Endpoints:
- GET /admin/users - List users (search, role, county)
- POST /admin/users - Create user with temporary password
- GET /admin/users/{id} - User with active roles
- POST /admin/users/{id}/roles - Grant a role
- DELETE /admin/users/roles/{grant_id} - Revoke a role
- POST /admin/users/{id}/deactivate - Deactivate account and grants
- POST /admin/users/{id}/reactivate - Reactivate account
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import Role, can_manage_users
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error
from coop_portal.modules.users import service
from coop_portal.modules.users.schemas import (
    RoleAssignRequest,
    RoleGrantResponse,
    UserCreate,
    UserCreatedResponse,
    UserListResponse,
    UserResponse,
    UserWithRolesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_user_admin = require_capability(can_manage_users)


@router.get("", response_model=UserListResponse, summary="List Users")
async def list_users(
    search: str | None = Query(None, max_length=100),
    role: Role | None = Query(None),
    tenant_id: UUID | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_user_admin),
) -> UserListResponse:
    result = await service.list_users(
        db, admin, search=search, role=role, tenant_id=tenant_id, page=page, page_size=page_size
    )
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in result["items"]],
        total_count=result["total_count"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.post(
    "",
    response_model=UserCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_user_admin),
) -> UserCreatedResponse:
    """
    Create an account. The temporary password is returned once and emailed
    to the user; it must be changed at first sign-in.
    """
    try:
        user, temp_password, email_sent = await service.create_user(db, data, admin)
        return UserCreatedResponse(
            user=UserResponse.model_validate(user),
            temporary_password=temp_password,
            email_sent=email_sent,
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "creating user")


@router.get("/{user_id}", response_model=UserWithRolesResponse, summary="Get User")
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_user_admin),
) -> UserWithRolesResponse:
    try:
        user = await service.get_user(db, user_id)
        grants = await service.get_user_roles(db, user_id)
        response = UserWithRolesResponse.model_validate(user)
        response.roles = [RoleGrantResponse.model_validate(g) for g in grants]
        return response
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{user_id}/roles",
    response_model=RoleGrantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign Role",
)
async def assign_role(
    user_id: UUID,
    data: RoleAssignRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_user_admin),
) -> RoleGrantResponse:
    try:
        grant = await service.assign_role(db, user_id, data, admin)
        return RoleGrantResponse.model_validate(grant)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "assigning role")


@router.delete("/roles/{grant_id}", response_model=RoleGrantResponse, summary="Remove Role")
async def remove_role(
    grant_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_user_admin),
) -> RoleGrantResponse:
    try:
        return RoleGrantResponse.model_validate(await service.remove_role(db, grant_id, admin))
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{user_id}/deactivate", response_model=UserResponse, summary="Deactivate User")
async def deactivate_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_user_admin),
) -> UserResponse:
    try:
        return UserResponse.model_validate(await service.deactivate_user(db, user_id, admin))
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{user_id}/reactivate", response_model=UserResponse, summary="Reactivate User")
async def reactivate_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_user_admin),
) -> UserResponse:
    try:
        return UserResponse.model_validate(await service.reactivate_user(db, user_id, admin))
    except ServiceError as e:
        raise_http_error(e)
