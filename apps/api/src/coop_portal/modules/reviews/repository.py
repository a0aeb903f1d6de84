"""
Reviews Repository

Status updates guarded by compare-and-swap: the UPDATE only matches when the
row is still in the state the caller read, so two reviewers deciding the same
request cannot both win.
"""

import enum
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession


async def compare_and_set_status(
    db: AsyncSession,
    model: Any,
    record_id: UUID,
    status_field: str,
    expected: enum.Enum,
    values: dict[str, Any],
) -> bool:
    """
    Apply ``values`` to a row only if its status still equals ``expected``.

    Args:
        db: Database session
        model: Mapped class
        record_id: Primary key of the row
        status_field: Name of the status column
        expected: Status the caller last observed
        values: Columns to set (including the new status)

    Returns:
        True if exactly one row was updated
    """
    status_column = getattr(model, status_field)
    result = await db.execute(
        update(model)
        .where(model.id == record_id, status_column == expected)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
