"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
This module handles JWT token validation and capability-based access control
using the security utilities in security.py and the role model in permissions.py.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable test tokens
- The is_production check provides an additional safety layer
"""

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from coop_portal.core.config import settings
from coop_portal.core.permissions import Role
from coop_portal.core.security import decode_token

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents an authenticated portal user acting under one role grant.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier (UUID)
        email: User's email address
        role: Active role for this session
        tenant_id: County the active grant is scoped to (None for national roles)
        cooperative_id: Cooperative the active grant is scoped to (cooperative admins)
        name: User's display name (optional)
    """

    id: UUID
    email: str
    role: Role
    tenant_id: UUID | None = None
    cooperative_id: UUID | None = None
    name: str | None = None

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role.value})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode is safe to enable.

    Development auth bypass requires PYTHON_ENV=development and must never be
    on when either settings or the raw environment say production/staging.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var != "production"
        and env_var != "staging"
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_SUPER_ADMIN = CurrentUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="admin@coop.dev",
    role=Role.SUPER_ADMIN,
    name="Development Admin",
)


def _optional_uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


def _invalid_token(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate JWT token and extract user claims.

    Args:
        token: JWT token string from Authorization header

    Returns:
        CurrentUser built from the token claims

    Raises:
        HTTPException 401: If token is invalid, expired, or has bad claims
    """
    if _DEVELOPMENT_MODE and token in ["dev-token", "test-token"]:
        logger.debug("Development mode: Using test token")
        return _DEV_SUPER_ADMIN

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _invalid_token("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _invalid_token("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return CurrentUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=Role(payload.get("role", Role.CITIZEN.value)),
            tenant_id=_optional_uuid(payload.get("tenant_id")),
            cooperative_id=_optional_uuid(payload.get("cooperative_id")),
            name=payload.get("name"),
        )
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _invalid_token(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the bearer token and returns the caller.

    Usage:
        @router.get("/endpoint")
        async def endpoint(user: CurrentUser = Depends(get_current_user)):
            ...

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    user = await _validate_jwt_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id} ({user.role.value})")
    return user


def require_capability(
    capability: Callable[[Role], bool],
) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Build a dependency that only admits users whose role has a capability.

    Usage:
        @router.post("/{id}/approve")
        async def approve(user: CurrentUser = Depends(require_capability(can_review_amendments))):
            ...

    Raises:
        HTTPException 403: If the caller's role lacks the capability
    """

    async def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not capability(user.role):
            logger.warning(
                f"Access denied: User {user.id} with role '{user.role.value}' "
                f"lacks capability '{capability.__name__}'"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "INSUFFICIENT_PERMISSIONS",
                    "message": "You do not have permission to perform this action.",
                },
            )
        return user

    return _dependency


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(HTTPBearer(auto_error=False)),
) -> CurrentUser | None:
    """
    Optional authentication dependency.

    Returns the user if a valid token is provided, or None if no token.
    Used by endpoints open to the public, such as anonymous complaints.
    """
    if not credentials:
        return None

    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_optional_user",
    "require_capability",
]
