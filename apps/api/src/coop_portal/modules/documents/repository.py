"""
Document Register Repository
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.shared.numbering import generate_number, insert_with_number
from coop_portal.modules.shared.scoping import ScopeSpec

from .models import Document, DocumentAccessLog, DocumentAction, DocumentStatus

DOCUMENT_SCOPE = ScopeSpec(
    model=Document,
    cooperative_column="cooperative_id",
    tenant_column="tenant_id",
    owner_column="uploaded_by",
    search_columns=("title", "description", "document_number"),
    submitted_column=None,
)

STATISTIC_COLUMNS = {
    "by_status": Document.status,
    "by_type": Document.document_type,
    "by_sector": Document.sectoral_category,
    "by_county": Document.tenant_id,
    "by_cooperative": Document.cooperative_id,
}


async def get_by_id(db: AsyncSession, document_id: UUID) -> Document | None:
    return await db.get(Document, document_id)


async def create_document(db: AsyncSession, **fields) -> Document:
    """Insert an ACTIVE document numbered ``DOC-{year}-{seq:05d}``. Flushes only."""
    year = datetime.now(UTC).year

    def build(number: str) -> Document:
        return Document(document_number=number, status=DocumentStatus.ACTIVE, **fields)

    async def next_number() -> str:
        return await generate_number(db, Document.document_number, "DOC", year, 5)

    return await insert_with_number(db, build, next_number, prefix="DOC")


def log_access(db: AsyncSession, document_id: UUID, user_id: UUID, action: DocumentAction) -> None:
    """Stage an access log row; it is written with the caller's commit."""
    db.add(DocumentAccessLog(document_id=document_id, user_id=user_id, action=action))


async def list_access_log(
    db: AsyncSession, document_id: UUID, *, limit: int = 100
) -> list[DocumentAccessLog]:
    result = await db.execute(
        select(DocumentAccessLog)
        .where(DocumentAccessLog.document_id == document_id)
        .order_by(DocumentAccessLog.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def statistics(
    db: AsyncSession,
    *,
    tenant_id: UUID | None = None,
    cooperative_id: UUID | None = None,
) -> dict:
    """
    Count documents (excluding deleted ones) by status, type, sector, county
    and cooperative, plus the total stored size.
    """
    conditions = [Document.status != DocumentStatus.DELETED]
    if tenant_id is not None:
        conditions.append(Document.tenant_id == tenant_id)
    if cooperative_id is not None:
        conditions.append(Document.cooperative_id == cooperative_id)

    totals = await db.execute(
        select(func.count(Document.id), func.coalesce(func.sum(Document.file_size), 0)).where(
            *conditions
        )
    )
    total, total_size = totals.one()

    stats: dict = {"total": total or 0, "total_size": int(total_size or 0)}
    for key, column in STATISTIC_COLUMNS.items():
        result = await db.execute(
            select(column, func.count(Document.id))
            .where(*conditions, column.is_not(None))
            .group_by(column)
        )
        stats[key] = {
            str(value.value if hasattr(value, "value") else value): count
            for value, count in result.all()
        }
    return stats
