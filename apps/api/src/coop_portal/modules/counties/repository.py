"""
Counties Repository

Database operations for county tenants.
"""

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.permissions import COUNTY_ROLES
from coop_portal.modules.cooperatives.models import Cooperative
from coop_portal.modules.users.models import UserRoleGrant

from .models import Tenant


async def get_by_id(db: AsyncSession, tenant_id: UUID) -> Tenant | None:
    return await db.get(Tenant, tenant_id)


async def get_by_code(db: AsyncSession, county_code: str) -> Tenant | None:
    result = await db.execute(select(Tenant).where(Tenant.county_code == county_code))
    return result.scalar_one_or_none()


async def create(db: AsyncSession, **fields) -> Tenant:
    tenant = Tenant(**fields)
    db.add(tenant)
    await db.flush()
    return tenant


async def list_counties(
    db: AsyncSession,
    *,
    search: str | None = None,
    is_active: bool | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[Tenant], int]:
    """Get counties ordered by name, with optional search and active filter."""
    query = select(Tenant)

    if is_active is not None:
        query = query.where(Tenant.is_active.is_(is_active))

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Tenant.name.ilike(pattern), Tenant.county_code.ilike(pattern)))

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(query.order_by(Tenant.name).offset(skip).limit(limit))
    return list(result.scalars().all()), total


async def get_stats(db: AsyncSession, tenant_id: UUID) -> dict:
    """Count cooperatives and active county officers of a tenant."""
    cooperatives = await db.execute(
        select(func.count()).select_from(Cooperative).where(Cooperative.tenant_id == tenant_id)
    )
    active_cooperatives = await db.execute(
        select(func.count())
        .select_from(Cooperative)
        .where(Cooperative.tenant_id == tenant_id, Cooperative.is_active.is_(True))
    )
    officers = await db.execute(
        select(func.count(func.distinct(UserRoleGrant.user_id))).where(
            UserRoleGrant.tenant_id == tenant_id,
            UserRoleGrant.role.in_(list(COUNTY_ROLES)),
            UserRoleGrant.is_active.is_(True),
        )
    )

    return {
        "total_cooperatives": cooperatives.scalar() or 0,
        "active_cooperatives": active_cooperatives.scalar() or 0,
        "total_officers": officers.scalar() or 0,
    }
