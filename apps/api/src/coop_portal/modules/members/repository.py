"""
Members Repository

Database operations for cooperative member rosters.
"""

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Member


async def get_by_id(db: AsyncSession, member_id: UUID) -> Member | None:
    return await db.get(Member, member_id)


async def get_by_number(db: AsyncSession, cooperative_id: UUID, member_number: str) -> Member | None:
    result = await db.execute(
        select(Member).where(
            Member.cooperative_id == cooperative_id,
            Member.member_number == member_number,
        )
    )
    return result.scalar_one_or_none()


async def create(db: AsyncSession, cooperative_id: UUID, **fields) -> Member:
    member = Member(cooperative_id=cooperative_id, **fields)
    db.add(member)
    await db.flush()
    return member


async def list_members(
    db: AsyncSession,
    cooperative_id: UUID,
    *,
    search: str | None = None,
    is_active: bool | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Member], int]:
    """Get a cooperative's members, newest first."""
    query = select(Member).where(Member.cooperative_id == cooperative_id)

    if is_active is not None:
        query = query.where(Member.is_active.is_(is_active))

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Member.full_name.ilike(pattern),
                Member.member_number.ilike(pattern),
                Member.id_number.ilike(pattern),
            )
        )

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(query.order_by(Member.created_at.desc()).offset(skip).limit(limit))
    return list(result.scalars().all()), total
