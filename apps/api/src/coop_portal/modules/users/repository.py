"""
User Repository

Database operations for user accounts and role grants.
"""

import logging
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.permissions import Role
from coop_portal.modules.users.models import User, UserRoleGrant

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        full_name: str,
        phone: str | None = None,
        id_number: str | None = None,
        tenant_id: UUID | None = None,
        is_active: bool = True,
        must_change_password: bool = False,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique, stored lower-case)
            password_hash: Hashed password
            full_name: Display name
            phone: Phone number (optional)
            id_number: National ID number (optional)
            tenant_id: County the user belongs to (optional)
            is_active: Whether user is active
            must_change_password: Whether user must change password on next login

        Returns:
            Created User instance
        """
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            full_name=full_name,
            phone=phone,
            id_number=id_number,
            tenant_id=tenant_id,
            is_active=is_active,
            must_change_password=must_change_password,
        )

        db.add(user)
        await db.flush()

        logger.info(f"Created user: {user.id} - {user.email}")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address (case-insensitive)."""
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        return await UserRepository.get_by_email(db, email) is not None

    @staticmethod
    async def list_users(
        db: AsyncSession,
        *,
        search: str | None = None,
        role: Role | None = None,
        tenant_id: UUID | None = None,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[User], int]:
        """
        Get users with optional filters.

        Args:
            db: Database session
            search: Substring of name or email
            role: Only users holding this role (active grant)
            tenant_id: Only users of this county
            is_active: Account status filter
            skip: Offset
            limit: Page size

        Returns:
            Tuple of (users, total count)
        """
        query = select(User)

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))

        if tenant_id is not None:
            query = query.where(User.tenant_id == tenant_id)

        if is_active is not None:
            query = query.where(User.is_active.is_(is_active))

        if role is not None:
            holders = select(UserRoleGrant.user_id).where(
                UserRoleGrant.role == role, UserRoleGrant.is_active.is_(True)
            )
            query = query.where(User.id.in_(holders))

        total_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        result = await db.execute(
            query.order_by(User.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total


class RoleGrantRepository:
    """Repository for role grant database operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, grant_id: UUID) -> UserRoleGrant | None:
        return await db.get(UserRoleGrant, grant_id)

    @staticmethod
    async def find(
        db: AsyncSession,
        *,
        user_id: UUID,
        role: Role,
        tenant_id: UUID | None = None,
        cooperative_id: UUID | None = None,
    ) -> UserRoleGrant | None:
        """Find the grant with exactly this scope, active or not."""
        query = select(UserRoleGrant).where(
            UserRoleGrant.user_id == user_id,
            UserRoleGrant.role == role,
            UserRoleGrant.tenant_id.is_(None)
            if tenant_id is None
            else UserRoleGrant.tenant_id == tenant_id,
            UserRoleGrant.cooperative_id.is_(None)
            if cooperative_id is None
            else UserRoleGrant.cooperative_id == cooperative_id,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: UUID,
        role: Role,
        tenant_id: UUID | None = None,
        cooperative_id: UUID | None = None,
        assigned_by: UUID | None = None,
    ) -> UserRoleGrant:
        grant = UserRoleGrant(
            user_id=user_id,
            role=role,
            tenant_id=tenant_id,
            cooperative_id=cooperative_id,
            assigned_by=assigned_by,
            is_active=True,
        )
        db.add(grant)
        await db.flush()
        return grant

    @staticmethod
    async def list_active_for_user(db: AsyncSession, user_id: UUID) -> list[UserRoleGrant]:
        result = await db.execute(
            select(UserRoleGrant)
            .where(UserRoleGrant.user_id == user_id, UserRoleGrant.is_active.is_(True))
            .order_by(UserRoleGrant.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_holder_ids(
        db: AsyncSession,
        role: Role,
        *,
        cooperative_id: UUID | None = None,
    ) -> list[UUID]:
        """Ids of users holding an active grant of ``role`` (optionally on one cooperative)."""
        query = select(UserRoleGrant.user_id).where(
            UserRoleGrant.role == role,
            UserRoleGrant.is_active.is_(True),
        )
        if cooperative_id is not None:
            query = query.where(UserRoleGrant.cooperative_id == cooperative_id)

        result = await db.execute(query.distinct())
        return list(result.scalars().all())

    @staticmethod
    async def deactivate_all_for_user(db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(
            update(UserRoleGrant)
            .where(UserRoleGrant.user_id == user_id, UserRoleGrant.is_active.is_(True))
            .values(is_active=False)
        )
        return result.rowcount or 0
