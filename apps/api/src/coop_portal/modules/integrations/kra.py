"""
KRA iTax Mock

Tax PIN verification against the ``mock_kra_records`` registry. Compliant
taxpayers get a freshly issued tax compliance certificate number.
"""

import logging
import random
import re
from dataclasses import dataclass
from datetime import UTC, datetime
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
from coop_portal.modules.integrations.models import Agency, KraComplianceStatus, KraRecord

logger = logging.getLogger(__name__)

KRA_PIN_PATTERN = re.compile(r"^[A-Z]\d{9}[A-Z]$")

MESSAGES = {
    FailureReason.INVALID_FORMAT: "Invalid KRA PIN format. Expected format: A000000000A",
    FailureReason.NOT_FOUND: "KRA PIN not found in iTax system",
    FailureReason.SERVICE_UNAVAILABLE: (
        "KRA iTax service temporarily unavailable. Please try again later."
    ),
}


@dataclass
class PinVerification:
    record: KraRecord
    compliance_certificate_number: str | None = None


def issue_certificate_number() -> str:
    return f"KRA-CC-{datetime.now(UTC).year}-{random.randint(10000, 99999)}"


async def verify_pin(
    db: AsyncSession,
    kra_pin: str,
    verified_by: UUID | None = None,
) -> PinVerification:
    """
    Look up a KRA PIN.

    Raises:
        AgencyVerificationError: INVALID_FORMAT, NOT_FOUND or SERVICE_UNAVAILABLE
    """
    await simulate_latency(1000, 2000)

    kra_pin = (kra_pin or "").strip()
    if not KRA_PIN_PATTERN.match(kra_pin):
        raise AgencyVerificationError(
            Agency.KRA, FailureReason.INVALID_FORMAT, MESSAGES[FailureReason.INVALID_FORMAT]
        )

    try:
        record = await repository.get_kra_record(db, kra_pin)
    except SQLAlchemyError as e:
        logger.error(f"KRA verification error for {kra_pin}: {e}")
        await db.rollback()
        raise AgencyVerificationError(
            Agency.KRA,
            FailureReason.SERVICE_UNAVAILABLE,
            MESSAGES[FailureReason.SERVICE_UNAVAILABLE],
        ) from e

    if record is None:
        await record_verification(
            db,
            Agency.KRA,
            kra_pin,
            FailureReason.NOT_FOUND.value,
            success=False,
            verified_by=verified_by,
        )
        raise AgencyVerificationError(
            Agency.KRA, FailureReason.NOT_FOUND, MESSAGES[FailureReason.NOT_FOUND]
        )

    certificate = None
    if record.compliance_status == KraComplianceStatus.COMPLIANT:
        certificate = issue_certificate_number()

    await record_verification(
        db,
        Agency.KRA,
        kra_pin,
        record.compliance_status.value,
        success=True,
        reference=certificate,
        verified_by=verified_by,
    )
    logger.info(f"KRA verified PIN {kra_pin} ({record.compliance_status.value})")
    return PinVerification(record=record, compliance_certificate_number=certificate)
