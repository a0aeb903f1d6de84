"""
SASRA (Sacco Societies Regulatory Authority) Mock

License and prudential-ratio check for a cooperative. A cooperative with no
regulator record yet gets a generated LICENSED record, persisted so that
later checks return the same figures.
"""

import logging
import random
from datetime import UTC, datetime
from decimal import Decimal
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
from coop_portal.modules.integrations.models import Agency, SasraCompliance, SasraLicenseStatus

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "SASRA service temporarily unavailable. Please try again later."

SUPERVISOR = {
    "supervisor_name": "SASRA Compliance Officer",
    "supervisor_phone": "+254712345678",
    "supervisor_email": "compliance@sasra.go.ke",
}


def _ratio(low: float, high: float) -> Decimal:
    return Decimal(str(round(random.uniform(low, high), 2)))


def generate_record_fields(cooperative_id: UUID) -> dict:
    """Figures for a cooperative the regulator has not seen before."""
    today = datetime.now(UTC).date()
    try:
        expiry = today.replace(year=today.year + 1)
    except ValueError:
        # 29 February
        expiry = today.replace(year=today.year + 1, day=28)

    return {
        "cooperative_id": cooperative_id,
        "license_number": f"SASRA-{today.year}-{random.randint(1000, 9999)}",
        "license_status": SasraLicenseStatus.LICENSED,
        "license_expiry_date": expiry,
        "compliance_score": random.randint(75, 94),
        "capital_adequacy_ratio": _ratio(10, 15),
        "liquidity_ratio": _ratio(15, 25),
        "npl_ratio": _ratio(0, 5),
        "regulatory_alerts": [],
        **SUPERVISOR,
    }


async def check_license(
    db: AsyncSession,
    cooperative_id: UUID,
    verified_by: UUID | None = None,
) -> SasraCompliance:
    """
    Fetch (or create) the regulator record for a cooperative.

    Raises:
        AgencyVerificationError: SERVICE_UNAVAILABLE
    """
    await simulate_latency(1500, 2500)

    try:
        record = await repository.get_sasra_record(db, cooperative_id)
        if record is None:
            record = await repository.create_sasra_record(
                db, **generate_record_fields(cooperative_id)
            )
            await db.commit()
            await db.refresh(record)
            logger.info(
                f"Generated SASRA record {record.license_number} for cooperative {cooperative_id}"
            )
    except SQLAlchemyError as e:
        logger.error(f"SASRA compliance check error for cooperative {cooperative_id}: {e}")
        await db.rollback()
        raise AgencyVerificationError(
            Agency.SASRA, FailureReason.SERVICE_UNAVAILABLE, UNAVAILABLE_MESSAGE
        ) from e

    await record_verification(
        db,
        Agency.SASRA,
        str(cooperative_id),
        record.license_status.value,
        success=record.license_status == SasraLicenseStatus.LICENSED,
        reference=record.license_number,
        verified_by=verified_by,
    )
    return record
