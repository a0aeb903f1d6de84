"""Authentication router."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user
from coop_portal.core.database import get_db
from coop_portal.core.permissions import ROLE_PRECEDENCE, Role
from coop_portal.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from coop_portal.modules.auth.schemas import (
    ChangePasswordRequest,
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RoleGrantInfo,
    TokenResponse,
    UserResponse,
)
from coop_portal.modules.users.models import User, UserRoleGrant
from coop_portal.modules.users.repository import RoleGrantRepository, UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "INVALID_CREDENTIALS",
            "message": "Invalid email or password.",
        },
    )


def _primary_grant(grants: list[UserRoleGrant]) -> UserRoleGrant | None:
    """Pick the highest-precedence active grant."""
    for role in ROLE_PRECEDENCE:
        for grant in grants:
            if grant.role == role:
                return grant
    return None


def _issue_tokens(user: User, grants: list[UserRoleGrant]) -> tuple[str, str, Role]:
    primary = _primary_grant(grants)
    role = primary.role if primary else Role.CITIZEN
    tenant_id = (primary.tenant_id if primary else None) or user.tenant_id
    cooperative_id = primary.cooperative_id if primary else None

    additional_claims = {
        "email": user.email,
        "name": user.full_name,
        "role": role.value,
        "tenant_id": str(tenant_id) if tenant_id else None,
        "cooperative_id": str(cooperative_id) if cooperative_id else None,
    }

    access_token = create_access_token(subject=str(user.id), additional_claims=additional_claims)
    refresh_token = create_refresh_token(subject=str(user.id))
    return access_token, refresh_token, role


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    The session acts under the user's highest active role grant; all active
    grants are returned so the client can show what else the user holds.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
    """
    user = await UserRepository.get_by_email(db, credentials.email)

    if not user:
        logger.warning(f"Login attempt for non-existent email: {credentials.email}")
        raise _invalid_credentials()

    if not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Invalid password for user: {credentials.email}")
        raise _invalid_credentials()

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ACCOUNT_INACTIVE",
                "message": "Your account has been deactivated.",
            },
        )

    grants = await RoleGrantRepository.list_active_for_user(db, user.id)
    access_token, refresh_token, role = _issue_tokens(user, grants)

    logger.info(f"User logged in: {user.email} (role: {role.value})")

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        role=role,
        user=UserResponse.model_validate(user),
        roles=[RoleGrantInfo.model_validate(g) for g in grants],
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair, re-reading role grants."""
    payload = decode_token(body.refresh_token)

    if payload is None or payload.get("type") != "refresh":
        logger.warning("Invalid refresh token presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid or expired refresh token."},
        )

    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN_CLAIMS", "message": "Token contains invalid claims."},
        ) from e

    user = await UserRepository.get_by_id(db, user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Account is not available."},
        )

    grants = await RoleGrantRepository.list_active_for_user(db, user.id)
    access_token, refresh_token, _ = _issue_tokens(user, grants)

    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


@router.get("/me", response_model=CurrentUserResponse)
async def me(user: CurrentUser = Depends(get_current_user)) -> CurrentUserResponse:
    return CurrentUserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        tenant_id=user.tenant_id,
        cooperative_id=user.cooperative_id,
    )


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
) -> None:
    """Replace the password and clear the must-change flag."""
    user = await UserRepository.get_by_id(db, current.id)

    if not user or not verify_password(body.current_password, user.password_hash):
        logger.warning(f"Password change with wrong current password: {current.id}")
        raise _invalid_credentials()

    user.password_hash = hash_password(body.new_password)
    user.must_change_password = False
    await db.commit()

    logger.info(f"Password changed for user {user.id}")
