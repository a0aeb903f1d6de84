"""
Members Service

Roster management for a cooperative. Every change that can affect the
number of active members recounts ``Cooperative.total_members`` in the same
transaction.
"""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.modules.cooperatives import service as cooperative_service
from coop_portal.modules.members import repository
from coop_portal.modules.members.models import Member
from coop_portal.modules.members.schemas import MemberCreate, MemberUpdate
from coop_portal.modules.shared.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class DuplicateMemberNumberError(ConflictError):
    def __init__(self):
        super().__init__(
            message="A member with this member number already exists in this cooperative",
            error_code="DUPLICATE_MEMBER_NUMBER",
        )


async def get_member(
    db: AsyncSession,
    cooperative_id: UUID,
    member_id: UUID,
    user: CurrentUser,
) -> Member:
    await cooperative_service.get_cooperative(db, cooperative_id, user)

    member = await repository.get_by_id(db, member_id)
    if not member or member.cooperative_id != cooperative_id:
        raise NotFoundError("Member", member_id)
    return member


async def list_members(
    db: AsyncSession,
    cooperative_id: UUID,
    user: CurrentUser,
    *,
    search: str | None = None,
    is_active: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    await cooperative_service.get_cooperative(db, cooperative_id, user)

    page_size = min(max(1, page_size), 100)
    items, total = await repository.list_members(
        db,
        cooperative_id,
        search=search,
        is_active=is_active,
        skip=(max(1, page) - 1) * page_size,
        limit=page_size,
    )
    return {"items": items, "total_count": total, "page": page, "page_size": page_size}


async def add_member(
    db: AsyncSession,
    cooperative_id: UUID,
    data: MemberCreate,
    user: CurrentUser,
) -> Member:
    """
    Add a member and refresh the cooperative's member count.

    Raises:
        NotFoundError: If the cooperative is missing or out of scope
        DuplicateMemberNumberError: If the member number is taken in this cooperative
    """
    await cooperative_service.get_cooperative(db, cooperative_id, user)

    if await repository.get_by_number(db, cooperative_id, data.member_number):
        logger.warning(f"Duplicate member number {data.member_number} in cooperative {cooperative_id}")
        raise DuplicateMemberNumberError()

    fields = data.model_dump()
    fields["date_joined"] = data.date_joined or date.today()

    try:
        member = await repository.create(db, cooperative_id, **fields, is_active=True)
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateMemberNumberError() from e

    await cooperative_service.recount_members(db, cooperative_id)
    await db.commit()
    await db.refresh(member)

    logger.info(f"Member {member.member_number} added to cooperative {cooperative_id} by {user.id}")
    return member


async def update_member(
    db: AsyncSession,
    cooperative_id: UUID,
    member_id: UUID,
    data: MemberUpdate,
    user: CurrentUser,
) -> Member:
    member = await get_member(db, cooperative_id, member_id, user)
    changes = data.model_dump(exclude_unset=True)

    new_number = changes.get("member_number")
    if new_number and new_number != member.member_number:
        if await repository.get_by_number(db, cooperative_id, new_number):
            raise DuplicateMemberNumberError()

    was_active = member.is_active
    for key, value in changes.items():
        setattr(member, key, value)

    if "is_active" in changes and changes["is_active"] != was_active:
        await db.flush()
        await cooperative_service.recount_members(db, cooperative_id)

    await db.commit()
    await db.refresh(member)

    logger.info(f"Member {member_id} updated by {user.id}")
    return member


async def deactivate_member(
    db: AsyncSession,
    cooperative_id: UUID,
    member_id: UUID,
    user: CurrentUser,
) -> Member:
    """Soft delete a member and refresh the member count."""
    member = await get_member(db, cooperative_id, member_id, user)

    member.is_active = False
    await db.flush()
    await cooperative_service.recount_members(db, cooperative_id)
    await db.commit()
    await db.refresh(member)

    logger.info(f"Member {member_id} deactivated by {user.id}")
    return member
