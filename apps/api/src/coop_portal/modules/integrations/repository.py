"""
Integrations Repository

Lookups against the mock agency registries plus the payment ledger and the
verification audit log.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AgencyVerification,
    IprsRecord,
    KraRecord,
    PaymentTransaction,
    SasraCompliance,
)


async def get_iprs_record(db: AsyncSession, id_number: str) -> IprsRecord | None:
    result = await db.execute(select(IprsRecord).where(IprsRecord.id_number == id_number))
    return result.scalar_one_or_none()


async def get_kra_record(db: AsyncSession, kra_pin: str) -> KraRecord | None:
    result = await db.execute(select(KraRecord).where(KraRecord.kra_pin == kra_pin))
    return result.scalar_one_or_none()


async def get_sasra_record(db: AsyncSession, cooperative_id: UUID) -> SasraCompliance | None:
    result = await db.execute(
        select(SasraCompliance).where(SasraCompliance.cooperative_id == cooperative_id)
    )
    return result.scalar_one_or_none()


async def create_sasra_record(db: AsyncSession, **fields) -> SasraCompliance:
    record = SasraCompliance(**fields)
    db.add(record)
    await db.flush()
    return record


async def get_payment(db: AsyncSession, bill_reference: str) -> PaymentTransaction | None:
    result = await db.execute(
        select(PaymentTransaction).where(PaymentTransaction.bill_reference == bill_reference)
    )
    return result.scalar_one_or_none()


async def bill_reference_exists(db: AsyncSession, bill_reference: str) -> bool:
    result = await db.execute(
        select(PaymentTransaction.id).where(PaymentTransaction.bill_reference == bill_reference)
    )
    return result.scalar_one_or_none() is not None


async def create_payment(db: AsyncSession, **fields) -> PaymentTransaction:
    payment = PaymentTransaction(**fields)
    db.add(payment)
    await db.flush()
    return payment


async def add_verification(db: AsyncSession, **fields) -> AgencyVerification:
    verification = AgencyVerification(**fields)
    db.add(verification)
    await db.flush()
    return verification


async def list_verifications(
    db: AsyncSession,
    *,
    subject: str | None = None,
    limit: int = 50,
) -> list[AgencyVerification]:
    query = select(AgencyVerification)
    if subject:
        query = query.where(AgencyVerification.subject == subject)
    query = query.order_by(AgencyVerification.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())
