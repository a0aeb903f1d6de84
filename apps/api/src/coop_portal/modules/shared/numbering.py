"""
Reference Number Generator

Human-readable sequential identifiers of the form ``{PREFIX}-{year}-{sequence}``
(``REG-2025-0001``, ``COOP-2025-00001``, ``CPL-2025-000001`` ...).

The next sequence is derived from the highest existing number for the prefix
and year. Two concurrent writers can compute the same number, so every number
column carries a unique constraint and inserts go through
``insert_with_number``, which retries inside a SAVEPOINT when the constraint
fires.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.config import settings
from coop_portal.modules.shared.errors import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NumberingConflictError(ServiceError):
    """Raised when a unique reference number could not be allocated."""

    def __init__(self, prefix: str):
        super().__init__(
            message=f"Could not allocate a unique {prefix} number. Please try again.",
            error_code="NUMBERING_CONFLICT",
            status_code=409,
        )


def format_number(prefix: str, year: int | str, sequence: int, width: int) -> str:
    return f"{prefix}-{year}-{sequence:0{width}d}"


def parse_sequence(number: str | None) -> int | None:
    """Return the trailing sequence of a reference number, or None."""
    if not number:
        return None
    suffix = number.rsplit("-", 1)[-1]
    return int(suffix) if suffix.isdigit() else None


async def generate_number(
    db: AsyncSession,
    column: Any,
    prefix: str,
    year: int | str,
    width: int,
    *,
    scope: Any = None,
) -> str:
    """
    Compute the next reference number for a prefix and year.

    Args:
        db: Database session
        column: Mapped column holding the numbers (e.g. ``Cooperative.registration_number``)
        prefix: Number prefix, e.g. ``"REG"``
        year: Year (or financial year label) embedded in the number
        width: Zero-padding width of the sequence
        scope: Optional extra WHERE clause (per-tenant numbering)

    Returns:
        The next number, e.g. ``REG-2025-0042``
    """
    stmt = select(column).where(column.like(f"{prefix}-{year}-%"))
    if scope is not None:
        stmt = stmt.where(scope)
    # Longer strings first so 10000 sorts above 9999 once the padding overflows
    stmt = stmt.order_by(func.length(column).desc(), column.desc()).limit(1)

    result = await db.execute(stmt)
    latest = result.scalar_one_or_none()

    sequence = (parse_sequence(latest) or 0) + 1
    return format_number(prefix, year, sequence, width)


async def insert_with_number(
    db: AsyncSession,
    build: Callable[[str], T],
    next_number: Callable[[], Awaitable[str]],
    *,
    prefix: str,
    retries: int | None = None,
) -> T:
    """
    Insert a record whose reference number must be unique.

    Each attempt allocates a number, builds the record and flushes it inside a
    SAVEPOINT. A unique-constraint violation rolls back only the savepoint and
    the next attempt picks up the number the competing writer took.

    Args:
        db: Database session
        build: Factory creating the (unsaved) record for a given number
        next_number: Coroutine factory producing the next candidate number
        prefix: Prefix used in log and error messages
        retries: Maximum attempts (defaults to settings.numbering_max_retries)

    Returns:
        The flushed record (caller commits)

    Raises:
        NumberingConflictError: If every attempt collided
    """
    attempts = retries or settings.numbering_max_retries

    for attempt in range(1, attempts + 1):
        number = await next_number()
        record = build(number)
        try:
            async with db.begin_nested():
                db.add(record)
                await db.flush()
            return record
        except IntegrityError as e:
            logger.warning(f"{prefix} number {number} collided (attempt {attempt}/{attempts}): {e}")

    logger.error(f"Giving up allocating a {prefix} number after {attempts} attempts")
    raise NumberingConflictError(prefix)
