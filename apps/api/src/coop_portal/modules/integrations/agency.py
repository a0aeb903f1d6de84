"""
Mock Agency Plumbing

Shared pieces for the simulated government agencies: the typed failure
error, the artificial response delay and the verification audit trail.
"""

import asyncio
import enum
import logging
import random
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.config import settings
from coop_portal.modules.integrations import repository
from coop_portal.modules.integrations.models import Agency
from coop_portal.modules.shared.errors import ServiceError

logger = logging.getLogger(__name__)


class FailureReason(str, enum.Enum):
    INVALID_FORMAT = "INVALID_FORMAT"
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


_REASON_STATUS = {
    FailureReason.INVALID_FORMAT: 422,
    FailureReason.NOT_FOUND: 404,
    FailureReason.EXPIRED: 422,
    FailureReason.INVALID: 422,
    FailureReason.SERVICE_UNAVAILABLE: 503,
}


class AgencyVerificationError(ServiceError):
    """A verification that the agency answered negatively, or could not answer."""

    def __init__(self, agency: Agency, reason: FailureReason, message: str):
        self.agency = agency
        self.reason = reason
        super().__init__(
            message=message,
            error_code=f"{agency.value}_{reason.value}",
            status_code=_REASON_STATUS[reason],
        )


async def simulate_latency(low_ms: float, high_ms: float | None = None) -> None:
    """Sleep for a random delay in [low_ms, high_ms], scaled by ``mock_latency_scale``."""
    scale = settings.mock_latency_scale
    if scale <= 0:
        return
    delay_ms = random.uniform(low_ms, high_ms if high_ms is not None else low_ms)
    await asyncio.sleep(delay_ms / 1000 * scale)


async def record_verification(
    db: AsyncSession,
    agency: Agency,
    subject: str,
    outcome: str,
    *,
    success: bool,
    reference: str | None = None,
    verified_by: UUID | None = None,
) -> None:
    """
    Append to the verification audit log.

    Best effort: a failure is logged and rolled back, never raised.
    """
    try:
        await repository.add_verification(
            db,
            agency=agency,
            subject=subject,
            success=success,
            outcome=outcome,
            reference=reference,
            verified_by=verified_by,
        )
        await db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error recording {agency.value} verification for {subject}: {e}")
        await db.rollback()
