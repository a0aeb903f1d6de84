"""
Cooperatives Repository

Database operations for cooperatives, cooperative types and the public
registry search.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.counties.models import Tenant
from coop_portal.modules.members.models import Member

from .models import Cooperative, CooperativeStatus, CooperativeType


async def get_by_id(db: AsyncSession, cooperative_id: UUID) -> Cooperative | None:
    return await db.get(Cooperative, cooperative_id)


async def get_type(db: AsyncSession, type_id: UUID) -> CooperativeType | None:
    return await db.get(CooperativeType, type_id)


async def list_types(db: AsyncSession) -> list[CooperativeType]:
    result = await db.execute(select(CooperativeType).order_by(CooperativeType.name))
    return list(result.scalars().all())


async def name_exists(db: AsyncSession, name: str) -> bool:
    """Case-insensitive match against registered cooperative names."""
    result = await db.execute(
        select(Cooperative.id).where(func.lower(Cooperative.name) == name.strip().lower()).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def count_active_members(db: AsyncSession, cooperative_id: UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Member)
        .where(Member.cooperative_id == cooperative_id, Member.is_active.is_(True))
    )
    return result.scalar() or 0


async def search_registry(
    db: AsyncSession,
    *,
    name: str | None = None,
    registration_number: str | None = None,
    tenant_id: UUID | None = None,
    type_id: UUID | None = None,
    status: CooperativeStatus | None = None,
    registered_from: date | None = None,
    registered_to: date | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[dict], int]:
    """
    Public search over active cooperatives.

    Returns:
        Tuple of (rows with county and type names, total count)
    """
    query = (
        select(
            Cooperative,
            Tenant.name.label("county_name"),
            CooperativeType.name.label("type_name"),
        )
        .outerjoin(Tenant, Tenant.id == Cooperative.tenant_id)
        .outerjoin(CooperativeType, CooperativeType.id == Cooperative.type_id)
        .where(Cooperative.is_active.is_(True))
    )

    if name:
        query = query.where(Cooperative.name.ilike(f"%{name}%"))
    if registration_number:
        query = query.where(Cooperative.registration_number.ilike(f"%{registration_number}%"))
    if tenant_id is not None:
        query = query.where(Cooperative.tenant_id == tenant_id)
    if type_id is not None:
        query = query.where(Cooperative.type_id == type_id)
    if status is not None:
        query = query.where(Cooperative.status == status)
    if registered_from is not None:
        query = query.where(Cooperative.registration_date >= registered_from)
    if registered_to is not None:
        query = query.where(Cooperative.registration_date <= registered_to)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(Cooperative.created_at.desc()).offset(skip).limit(limit)
    )

    rows = [
        {"cooperative": cooperative, "county_name": county_name, "type_name": type_name}
        for cooperative, county_name, type_name in result.all()
    ]
    return rows, total
