"""
Cooperatives Service

Scoped access to registered cooperatives, the public registry search, and
creation of a cooperative from an approved registration application.
"""

import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.permissions import Role, is_county_role, is_unscoped_role
from coop_portal.modules.cooperatives import repository
from coop_portal.modules.cooperatives.models import Cooperative, CooperativeStatus
from coop_portal.modules.shared.errors import NotFoundError, PermissionDeniedError
from coop_portal.modules.shared.numbering import generate_number, insert_with_number
from coop_portal.modules.shared.scoping import ListFilters, ListScope, ScopeSpec, scoped_query

if TYPE_CHECKING:
    from coop_portal.modules.registrations.models import RegistrationApplication

logger = logging.getLogger(__name__)

COOPERATIVE_SCOPE = ScopeSpec(
    model=Cooperative,
    cooperative_column="id",
    tenant_column="tenant_id",
    search_columns=("name", "registration_number"),
    submitted_column=None,
)


def can_access_cooperative(user: CurrentUser, cooperative: Cooperative) -> bool:
    """Whether the caller's role grant covers this cooperative."""
    if is_unscoped_role(user.role):
        return True
    if is_county_role(user.role):
        return user.tenant_id is not None and cooperative.tenant_id == user.tenant_id
    if user.role == Role.COOPERATIVE_ADMIN:
        return user.cooperative_id == cooperative.id
    return False


async def get_cooperative(
    db: AsyncSession,
    cooperative_id: UUID,
    user: CurrentUser | None = None,
) -> Cooperative:
    """
    Get a cooperative, optionally checking the caller's scope.

    Out-of-scope cooperatives are reported as not found.

    Raises:
        NotFoundError: If missing or outside the caller's scope
    """
    cooperative = await repository.get_by_id(db, cooperative_id)

    if not cooperative or (user is not None and not can_access_cooperative(user, cooperative)):
        logger.warning(f"Cooperative {cooperative_id} not found or out of scope")
        raise NotFoundError("Cooperative", cooperative_id)

    return cooperative


async def list_cooperatives(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: CooperativeStatus | None = None,
    type_id: UUID | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    filters = ListFilters(
        equals={"status": status, "type_id": type_id},
        search=search,
        page=page,
        page_size=page_size,
    )
    items, total = await scoped_query(db, COOPERATIVE_SCOPE, ListScope.for_user(user), filters)
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def list_types(db: AsyncSession) -> list:
    return await repository.list_types(db)


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
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """Public official search over active cooperatives."""
    page_size = min(max(1, page_size), 100)
    rows, total = await repository.search_registry(
        db,
        name=name,
        registration_number=registration_number,
        tenant_id=tenant_id,
        type_id=type_id,
        status=status,
        registered_from=registered_from,
        registered_to=registered_to,
        skip=(max(1, page) - 1) * page_size,
        limit=page_size,
    )
    return {"items": rows, "total_count": total, "page": page, "page_size": page_size}


async def create_from_application(
    db: AsyncSession,
    application: "RegistrationApplication",
) -> Cooperative:
    """
    Create the cooperative for an approved application.

    The registration number is allocated per county. Flushes only; the
    approval workflow commits it together with the status change.
    """
    year = datetime.now(UTC).year
    tenant_id = application.tenant_id

    def build(number: str) -> Cooperative:
        return Cooperative(
            registration_number=number,
            name=application.proposed_name,
            type_id=application.type_id,
            tenant_id=tenant_id,
            application_id=application.id,
            status=CooperativeStatus.REGISTERED,
            registration_date=date.today(),
            address=application.address,
            email=application.contact_email,
            phone=application.contact_phone,
            total_members=application.proposed_members or 0,
            total_share_capital=application.proposed_share_capital or Decimal("0"),
            is_active=True,
        )

    async def next_number() -> str:
        return await generate_number(
            db,
            Cooperative.registration_number,
            "COOP",
            year,
            5,
            scope=Cooperative.tenant_id == tenant_id,
        )

    cooperative = await insert_with_number(db, build, next_number, prefix="COOP")

    logger.info(
        f"Cooperative {cooperative.registration_number} created from application "
        f"{application.application_number}"
    )
    return cooperative


async def update_status(
    db: AsyncSession,
    cooperative_id: UUID,
    status: CooperativeStatus,
    user: CurrentUser,
) -> Cooperative:
    """Change a cooperative's lifecycle status. Deregistration deactivates it."""
    cooperative = await get_cooperative(db, cooperative_id, user)

    if cooperative.status == CooperativeStatus.DEREGISTERED:
        raise PermissionDeniedError("A deregistered cooperative cannot change status.")

    previous = cooperative.status
    cooperative.status = status
    if status == CooperativeStatus.DEREGISTERED:
        cooperative.is_active = False

    await db.commit()
    await db.refresh(cooperative)

    logger.info(f"Cooperative {cooperative_id}: {previous.value} -> {status.value} by {user.id}")
    return cooperative


async def recount_members(db: AsyncSession, cooperative_id: UUID) -> int:
    """
    Set ``total_members`` to the number of active members. Flushes only.

    Returns:
        The new member count
    """
    cooperative = await repository.get_by_id(db, cooperative_id)
    if not cooperative:
        raise NotFoundError("Cooperative", cooperative_id)

    count = await repository.count_active_members(db, cooperative_id)
    cooperative.total_members = count
    await db.flush()

    logger.debug(f"Cooperative {cooperative_id} now has {count} active members")
    return count
