"""
IPRS (Integrated Population Registration System) Mock

National ID verification against the ``mock_iprs_records`` registry.
"""

import logging
import re
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.integrations import repository
from coop_portal.modules.integrations.agency import (
    AgencyVerificationError,
    FailureReason,
    record_verification,
    simulate_latency,
)
from coop_portal.modules.integrations.models import Agency, IprsRecord, IprsValidationStatus

logger = logging.getLogger(__name__)

ID_NUMBER_PATTERN = re.compile(r"^\d{8}$")

MESSAGES = {
    FailureReason.INVALID_FORMAT: "Invalid ID number format. Must be 8 digits.",
    FailureReason.NOT_FOUND: "ID number not found in IPRS database",
    FailureReason.EXPIRED: "ID has expired. Please renew your national ID.",
    FailureReason.INVALID: "ID number is invalid or has been revoked.",
    FailureReason.SERVICE_UNAVAILABLE: "IPRS service temporarily unavailable. Please try again later.",
}

_STATUS_FAILURES = {
    IprsValidationStatus.EXPIRED: FailureReason.EXPIRED,
    IprsValidationStatus.INVALID: FailureReason.INVALID,
    IprsValidationStatus.NOT_FOUND: FailureReason.NOT_FOUND,
}


async def _fail(
    db: AsyncSession,
    id_number: str,
    reason: FailureReason,
    verified_by: UUID | None,
) -> AgencyVerificationError:
    await record_verification(
        db, Agency.IPRS, id_number, reason.value, success=False, verified_by=verified_by
    )
    return AgencyVerificationError(Agency.IPRS, reason, MESSAGES[reason])


async def verify_national_id(
    db: AsyncSession,
    id_number: str,
    verified_by: UUID | None = None,
) -> IprsRecord:
    """
    Look up a national ID number.

    Returns:
        The registry record when it is VERIFIED

    Raises:
        AgencyVerificationError: INVALID_FORMAT, NOT_FOUND, EXPIRED, INVALID
            or SERVICE_UNAVAILABLE
    """
    await simulate_latency(100)

    id_number = (id_number or "").strip()
    if not ID_NUMBER_PATTERN.match(id_number):
        raise AgencyVerificationError(
            Agency.IPRS, FailureReason.INVALID_FORMAT, MESSAGES[FailureReason.INVALID_FORMAT]
        )

    try:
        record = await repository.get_iprs_record(db, id_number)
    except SQLAlchemyError as e:
        logger.error(f"IPRS verification error for {id_number}: {e}")
        await db.rollback()
        raise AgencyVerificationError(
            Agency.IPRS,
            FailureReason.SERVICE_UNAVAILABLE,
            MESSAGES[FailureReason.SERVICE_UNAVAILABLE],
        ) from e

    if record is None:
        raise await _fail(db, id_number, FailureReason.NOT_FOUND, verified_by)

    failure = _STATUS_FAILURES.get(record.validation_status)
    if failure is not None:
        raise await _fail(db, id_number, failure, verified_by)

    await record_verification(
        db,
        Agency.IPRS,
        id_number,
        IprsValidationStatus.VERIFIED.value,
        success=True,
        verified_by=verified_by,
    )
    logger.info(f"IPRS verified ID {id_number}")
    return record
