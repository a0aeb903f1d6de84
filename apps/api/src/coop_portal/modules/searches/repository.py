"""
Official Searches Repository
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.config import settings
from coop_portal.modules.integrations.models import PaymentStatus
from coop_portal.modules.shared.numbering import (
    NumberingConflictError,
    generate_number,
    insert_with_number,
)
from coop_portal.modules.shared.scoping import ScopeSpec

from .models import SearchRequest

logger = logging.getLogger(__name__)

SEARCH_REQUEST_SCOPE = ScopeSpec(
    model=SearchRequest,
    cooperative_column="cooperative_id",
    owner_column="user_id",
    search_columns=("search_number", "certificate_number", "requester_name"),
    submitted_column=None,
)


async def get_by_id(db: AsyncSession, search_id: UUID) -> SearchRequest | None:
    return await db.get(SearchRequest, search_id)


async def create_request(db: AsyncSession, **fields) -> SearchRequest:
    """Insert a search request numbered ``SRCH-{year}-{seq:05d}``. Flushes only."""
    year = datetime.now(UTC).year

    def build(number: str) -> SearchRequest:
        return SearchRequest(search_number=number, **fields)

    async def next_number() -> str:
        return await generate_number(db, SearchRequest.search_number, "SRCH", year, 5)

    return await insert_with_number(db, build, next_number, prefix="SRCH")


async def set_payment_status(
    db: AsyncSession, search_id: UUID, payment_status: PaymentStatus
) -> None:
    await db.execute(
        update(SearchRequest)
        .where(SearchRequest.id == search_id)
        .values(payment_status=payment_status)
        .execution_options(synchronize_session=False)
    )


async def assign_certificate_number(
    db: AsyncSession,
    search_id: UUID,
    *,
    retries: int | None = None,
) -> str | None:
    """
    Give a paid search its ``CERT-{year}-{seq:04d}`` number.

    The UPDATE only matches while the request has no certificate number, so
    a certificate is numbered once. Collisions with another search's number
    are retried inside a SAVEPOINT like ``insert_with_number``.

    Returns:
        The assigned number, or None when the request was already numbered

    Raises:
        NumberingConflictError: If every attempt collided
    """
    year = datetime.now(UTC).year
    attempts = retries or settings.numbering_max_retries

    for attempt in range(1, attempts + 1):
        number = await generate_number(db, SearchRequest.certificate_number, "CERT", year, 4)
        try:
            async with db.begin_nested():
                result = await db.execute(
                    update(SearchRequest)
                    .where(
                        SearchRequest.id == search_id,
                        SearchRequest.certificate_number.is_(None),
                    )
                    .values(
                        certificate_number=number,
                        certificate_generated=True,
                        certificate_generated_at=datetime.now(UTC),
                    )
                    .execution_options(synchronize_session=False)
                )
            return number if result.rowcount == 1 else None
        except IntegrityError as e:
            logger.warning(f"CERT number {number} collided (attempt {attempt}/{attempts}): {e}")

    logger.error(f"Giving up allocating a CERT number after {attempts} attempts")
    raise NumberingConflictError("CERT")
