"""
Counties Service

Super-admin management of county tenants.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.counties import repository
from coop_portal.modules.counties.models import Tenant
from coop_portal.modules.counties.schemas import CountyCreate, CountyUpdate
from coop_portal.modules.shared.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class DuplicateCountyCodeError(ConflictError):
    def __init__(self):
        super().__init__(
            message="A county with this county code already exists",
            error_code="DUPLICATE_COUNTY_CODE",
        )


async def get_county(db: AsyncSession, county_id: UUID) -> Tenant:
    county = await repository.get_by_id(db, county_id)
    if not county:
        raise NotFoundError("County", county_id)
    return county


async def create_county(db: AsyncSession, data: CountyCreate) -> Tenant:
    """
    Create a county tenant.

    Raises:
        DuplicateCountyCodeError: If the county code is taken
    """
    if await repository.get_by_code(db, data.county_code):
        logger.warning(f"Duplicate county code rejected: {data.county_code}")
        raise DuplicateCountyCodeError()

    county = await repository.create(db, **data.model_dump(), is_active=True)
    await db.commit()
    await db.refresh(county)

    logger.info(f"County created: {county.county_code} - {county.name}")
    return county


async def update_county(db: AsyncSession, county_id: UUID, data: CountyUpdate) -> Tenant:
    county = await get_county(db, county_id)

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(county, key, value)

    await db.commit()
    await db.refresh(county)

    logger.info(f"County updated: {county.county_code}")
    return county


async def delete_county(db: AsyncSession, county_id: UUID) -> Tenant:
    """Soft delete: the county stays referenced by its cooperatives."""
    county = await get_county(db, county_id)
    county.is_active = False
    await db.commit()
    await db.refresh(county)

    logger.info(f"County deactivated: {county.county_code}")
    return county


async def list_counties(
    db: AsyncSession,
    *,
    search: str | None = None,
    is_active: bool | None = None,
    page: int = 1,
    page_size: int = 50,
) -> dict:
    page_size = min(max(1, page_size), 100)
    items, total = await repository.list_counties(
        db,
        search=search,
        is_active=is_active,
        skip=(max(1, page) - 1) * page_size,
        limit=page_size,
    )
    return {"items": items, "total_count": total, "page": page, "page_size": page_size}


async def get_county_stats(db: AsyncSession, county_id: UUID) -> dict:
    await get_county(db, county_id)
    stats = await repository.get_stats(db, county_id)
    return {"county_id": county_id, **stats}
