"""
Users Service

Account administration and role grants.

Accounts created by administrators get a generated temporary password that
is emailed to the user and returned once in the API response. Role grants are
idempotent: granting a role the user already holds (even inactive) reuses the
existing row.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.config import settings
from coop_portal.core.email import send_account_created
from coop_portal.core.permissions import Role, is_county_role
from coop_portal.core.security import generate_temp_password, hash_password
from coop_portal.modules.counties import repository as county_repository
from coop_portal.modules.shared.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from coop_portal.modules.users.models import User, UserRoleGrant
from coop_portal.modules.users.repository import RoleGrantRepository, UserRepository
from coop_portal.modules.users.schemas import RoleAssignRequest, UserCreate

logger = logging.getLogger(__name__)

# Roles a county admin may hand out inside their own county
COUNTY_GRANTABLE_ROLES = frozenset(
    {Role.COUNTY_OFFICER, Role.COOPERATIVE_ADMIN, Role.TRAINER, Role.CITIZEN}
)


class EmailAlreadyExistsError(ConflictError):
    def __init__(self):
        super().__init__(
            message="A user with this email already exists",
            error_code="EMAIL_EXISTS",
        )


def _check_can_grant(actor: CurrentUser, role: Role, tenant_id: UUID | None) -> None:
    """
    Raises:
        PermissionDeniedError: If a county admin grants outside their county or above their level
    """
    if actor.role == Role.SUPER_ADMIN:
        return

    if role not in COUNTY_GRANTABLE_ROLES:
        logger.warning(f"User {actor.id} ({actor.role.value}) may not grant {role.value}")
        raise PermissionDeniedError(f"You cannot assign the {role.value} role.")

    if tenant_id is not None and tenant_id != actor.tenant_id:
        logger.warning(f"User {actor.id} tried to grant {role.value} outside county {actor.tenant_id}")
        raise PermissionDeniedError("You can only assign roles within your county.")


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def get_user_roles(db: AsyncSession, user_id: UUID) -> list[UserRoleGrant]:
    return await RoleGrantRepository.list_active_for_user(db, user_id)


async def grant_role(
    db: AsyncSession,
    *,
    user_id: UUID,
    role: Role,
    tenant_id: UUID | None = None,
    cooperative_id: UUID | None = None,
    assigned_by: UUID | None = None,
) -> UserRoleGrant:
    """
    Grant a role, reactivating an existing grant with the same scope.

    Flushes only; the caller owns the transaction. Used directly by workflows
    that grant roles as part of a larger write (registration approval,
    trainer approval).
    """
    grant = await RoleGrantRepository.find(
        db, user_id=user_id, role=role, tenant_id=tenant_id, cooperative_id=cooperative_id
    )

    if grant is not None:
        if not grant.is_active:
            grant.is_active = True
            grant.assigned_by = assigned_by
            await db.flush()
            logger.info(f"Reactivated {role.value} grant for user {user_id}")
        return grant

    grant = await RoleGrantRepository.create(
        db,
        user_id=user_id,
        role=role,
        tenant_id=tenant_id,
        cooperative_id=cooperative_id,
        assigned_by=assigned_by,
    )
    logger.info(f"Granted {role.value} to user {user_id} (tenant={tenant_id}, cooperative={cooperative_id})")
    return grant


async def create_user(
    db: AsyncSession,
    data: UserCreate,
    actor: CurrentUser,
) -> tuple[User, str, bool]:
    """
    Create an account with a temporary password.

    Args:
        db: Database session
        data: Account details and optional initial role
        actor: Administrator creating the account

    Returns:
        Tuple of (user, temporary password, whether the welcome email was sent)

    Raises:
        EmailAlreadyExistsError: If the email is registered
        PermissionDeniedError: If the actor may not grant the requested role
    """
    tenant_id = data.tenant_id
    if is_county_role(actor.role):
        tenant_id = actor.tenant_id

    if data.role is not None:
        _check_can_grant(actor, data.role, tenant_id)

    if await UserRepository.email_exists(db, data.email):
        logger.warning(f"User creation rejected, email exists: {data.email}")
        raise EmailAlreadyExistsError()

    temp_password = generate_temp_password()

    user = await UserRepository.create(
        db,
        email=data.email,
        password_hash=hash_password(temp_password),
        full_name=data.full_name,
        phone=data.phone,
        id_number=data.id_number,
        tenant_id=tenant_id,
        must_change_password=True,
    )

    if data.role is not None:
        await grant_role(
            db,
            user_id=user.id,
            role=data.role,
            tenant_id=tenant_id,
            cooperative_id=data.cooperative_id,
            assigned_by=actor.id,
        )

    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user.id} created by {actor.id}")

    email_sent = await send_account_created(
        to_email=user.email,
        full_name=user.full_name,
        temp_password=temp_password,
    )
    if not email_sent:
        logger.error(f"Failed to send account email to {user.email}")

    return user, temp_password, email_sent


async def assign_role(
    db: AsyncSession,
    user_id: UUID,
    data: RoleAssignRequest,
    actor: CurrentUser,
) -> UserRoleGrant:
    await get_user(db, user_id)

    tenant_id = data.tenant_id
    if is_county_role(actor.role) and tenant_id is None:
        tenant_id = actor.tenant_id

    _check_can_grant(actor, data.role, tenant_id)

    grant = await grant_role(
        db,
        user_id=user_id,
        role=data.role,
        tenant_id=tenant_id,
        cooperative_id=data.cooperative_id,
        assigned_by=actor.id,
    )
    await db.commit()
    await db.refresh(grant)
    return grant


async def remove_role(db: AsyncSession, grant_id: UUID, actor: CurrentUser) -> UserRoleGrant:
    """Deactivate a grant. The row is kept for history."""
    grant = await RoleGrantRepository.get_by_id(db, grant_id)
    if not grant:
        raise NotFoundError("Role grant", grant_id)

    _check_can_grant(actor, grant.role, grant.tenant_id)

    grant.is_active = False
    await db.commit()
    await db.refresh(grant)

    logger.info(f"Role {grant.role.value} removed from user {grant.user_id} by {actor.id}")
    return grant


async def deactivate_user(db: AsyncSession, user_id: UUID, actor: CurrentUser) -> User:
    """Deactivate an account together with all of its role grants."""
    user = await get_user(db, user_id)

    if user.id == actor.id:
        raise PermissionDeniedError("You cannot deactivate your own account.")

    user.is_active = False
    revoked = await RoleGrantRepository.deactivate_all_for_user(db, user_id)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user_id} deactivated by {actor.id} ({revoked} grants revoked)")
    return user


async def reactivate_user(db: AsyncSession, user_id: UUID, actor: CurrentUser) -> User:
    user = await get_user(db, user_id)
    user.is_active = True
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user_id} reactivated by {actor.id}")
    return user


async def list_users(
    db: AsyncSession,
    actor: CurrentUser,
    *,
    search: str | None = None,
    role: Role | None = None,
    tenant_id: UUID | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """List accounts. County admins only see their own county."""
    if is_county_role(actor.role):
        tenant_id = actor.tenant_id

    page_size = min(max(1, page_size), 100)
    items, total = await UserRepository.list_users(
        db,
        search=search,
        role=role,
        tenant_id=tenant_id,
        skip=(max(1, page) - 1) * page_size,
        limit=page_size,
    )
    return {"items": items, "total_count": total, "page": page, "page_size": page_size}


async def ensure_user_has_tenant(db: AsyncSession, user_id: UUID) -> UUID:
    """
    Make sure a citizen starting a registration belongs to a county.

    Users without a county are placed in the default county and granted an
    active CITIZEN role there. Calling it again is harmless. Flushes only.

    Returns:
        The user's tenant id

    Raises:
        NotFoundError: If the user or the default county does not exist
    """
    user = await get_user(db, user_id)

    if user.tenant_id is not None:
        return user.tenant_id

    county = await county_repository.get_by_code(db, settings.default_county_code)
    if not county:
        logger.error(f"Default county {settings.default_county_code} is missing")
        raise NotFoundError("County", settings.default_county_code)

    user.tenant_id = county.id
    await grant_role(db, user_id=user.id, role=Role.CITIZEN, tenant_id=county.id)
    await db.flush()

    logger.info(f"User {user_id} assigned to default county {county.county_code}")
    return county.id
