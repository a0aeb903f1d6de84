"""
Role-Scoped Listing

One query builder shared by every list endpoint (applications, amendments,
complaints, compliance reports, members, cooperatives, trainer applications).

Scoping precedence:
1. An explicit cooperative narrows to that cooperative. Cooperative admins are
   always held to the cooperative of their grant; asking for another one
   yields an empty page.
2. County roles narrow to the cooperatives of their tenant. When the tenant
   has no cooperatives the result is an empty page and the target table is
   never queried.
3. Cooperative admins without a cooperative, citizens and trainers only see
   rows they own (when the entity has an owner column), otherwise nothing.
4. National roles (super admin, auditor) are unscoped.

Filters are conjunctive; search is a case-insensitive substring match on the
entity's identifier/title columns; pagination is offset based; ordering is
most recent submission first (nulls last), then most recent creation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import desc, func, nulls_last, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.permissions import Role, is_county_role, is_unscoped_role

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListScope:
    """Who is listing, and under which tenant / cooperative."""

    role: Role
    user_id: UUID | None = None
    tenant_id: UUID | None = None
    cooperative_id: UUID | None = None
    own_cooperative_id: UUID | None = None

    @classmethod
    def for_user(cls, user: CurrentUser, cooperative_id: UUID | None = None) -> "ListScope":
        """Build a scope from the caller, optionally narrowed to one cooperative."""
        return cls(
            role=user.role,
            user_id=user.id,
            tenant_id=user.tenant_id,
            cooperative_id=cooperative_id or user.cooperative_id,
            own_cooperative_id=user.cooperative_id,
        )


@dataclass(frozen=True)
class ScopeSpec:
    """How an entity is attached to tenants, cooperatives and owners."""

    model: Any
    cooperative_column: str | None = "cooperative_id"
    tenant_column: str | None = None
    owner_column: str | None = None
    search_columns: tuple[str, ...] = ()
    submitted_column: str | None = "submitted_at"


@dataclass
class ListFilters:
    """Conjunctive (in)equality filters, free-text search and paging."""

    equals: dict[str, Any] = field(default_factory=dict)
    not_equals: dict[str, Any] = field(default_factory=dict)
    search: str | None = None
    page: int = 1
    page_size: int = 20

    @property
    def limit(self) -> int:
        return min(max(1, self.page_size), MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (max(1, self.page) - 1) * self.limit


async def tenant_cooperative_ids(db: AsyncSession, tenant_id: UUID) -> list[UUID]:
    """Return the ids of every cooperative registered under a tenant."""
    from coop_portal.modules.cooperatives.models import Cooperative

    result = await db.execute(select(Cooperative.id).where(Cooperative.tenant_id == tenant_id))
    return list(result.scalars().all())


def _column(spec: ScopeSpec, name: str) -> Any:
    column = getattr(spec.model, name, None)
    if column is None:
        raise ValueError(f"{spec.model.__name__} has no column '{name}'")
    return column


async def scoped_query(
    db: AsyncSession,
    spec: ScopeSpec,
    scope: ListScope,
    filters: ListFilters,
) -> tuple[list[Any], int]:
    """
    List an entity under the caller's scope.

    Args:
        db: Database session
        spec: Entity description (model, tenancy and search columns)
        scope: Caller role, tenant and cooperative
        filters: Equality filters, search term and paging

    Returns:
        Tuple of (page of records, total count matching scope and filters)
    """
    model = spec.model
    query = select(model)

    coop_column = _column(spec, spec.cooperative_column) if spec.cooperative_column else None

    if scope.cooperative_id is not None and coop_column is not None:
        query = query.where(coop_column == scope.cooperative_id)

    if is_county_role(scope.role):
        if spec.tenant_column:
            if scope.tenant_id is None:
                return [], 0
            query = query.where(_column(spec, spec.tenant_column) == scope.tenant_id)
        elif coop_column is not None:
            if scope.tenant_id is None:
                return [], 0
            coop_ids = await tenant_cooperative_ids(db, scope.tenant_id)
            if not coop_ids:
                logger.info(f"Tenant {scope.tenant_id} has no cooperatives; empty page")
                return [], 0
            query = query.where(coop_column.in_(coop_ids))
    elif not is_unscoped_role(scope.role):
        owns_cooperative = (
            scope.role == Role.COOPERATIVE_ADMIN
            and scope.own_cooperative_id is not None
            and coop_column is not None
        )
        if owns_cooperative:
            if scope.cooperative_id not in (None, scope.own_cooperative_id):
                logger.warning(
                    f"User {scope.user_id} asked for cooperative {scope.cooperative_id} "
                    f"outside their grant; empty page"
                )
                return [], 0
            query = query.where(coop_column == scope.own_cooperative_id)
        else:
            if not spec.owner_column or scope.user_id is None:
                return [], 0
            query = query.where(_column(spec, spec.owner_column) == scope.user_id)

    for name, value in filters.equals.items():
        if value is not None:
            query = query.where(_column(spec, name) == value)

    for name, value in filters.not_equals.items():
        query = query.where(_column(spec, name) != value)

    if filters.search and spec.search_columns:
        pattern = f"%{filters.search}%"
        query = query.where(
            or_(*[_column(spec, name).ilike(pattern) for name in spec.search_columns])
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    ordering = []
    if spec.submitted_column:
        ordering.append(nulls_last(desc(_column(spec, spec.submitted_column))))
    ordering.append(desc(model.created_at))

    query = query.order_by(*ordering).offset(filters.offset).limit(filters.limit)

    result = await db.execute(query)
    items = list(result.scalars().all())

    return items, total
