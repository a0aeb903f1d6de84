"""
eCitizen Payment Gateway Mock

Two-phase payment: ``initiate_payment`` opens a PENDING bill with a fee from
``SERVICE_FEES``; ``process_payment`` settles it, succeeding with probability
``mock_payment_success_rate``. Settlement is a compare-and-swap on PENDING,
so a bill is processed at most once.
"""

import logging
import random
import secrets
import string
import time
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.config import settings
from coop_portal.modules.integrations import repository
from coop_portal.modules.integrations.agency import simulate_latency
from coop_portal.modules.integrations.models import (
    PaymentMethod,
    PaymentStatus,
    PaymentTransaction,
    ServiceType,
)
from coop_portal.modules.reviews.repository import compare_and_set_status
from coop_portal.modules.shared.errors import ConflictError, ServiceError, ValidationFailedError
from coop_portal.modules.shared.numbering import insert_with_number

logger = logging.getLogger(__name__)

SERVICE_FEES: dict[ServiceType, Decimal] = {
    ServiceType.COOPERATIVE_REGISTRATION: Decimal("2000"),
    ServiceType.AMENDMENT_REQUEST: Decimal("1000"),
    ServiceType.OFFICIAL_SEARCH: Decimal("500"),
    ServiceType.CERTIFICATE_COPY: Decimal("300"),
}

PAYMENT_FAILED_MESSAGE = "Payment failed. Please try again or use a different payment method."

_RECEIPT_ALPHABET = string.ascii_uppercase + string.digits


class TransactionNotFoundError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Transaction not found",
            error_code="TRANSACTION_NOT_FOUND",
            status_code=404,
        )


class PaymentNotPendingError(ConflictError):
    def __init__(self, bill_reference: str, current: PaymentStatus):
        super().__init__(
            message=f"Payment {bill_reference} is already {current.value.lower()}.",
            error_code="PAYMENT_NOT_PENDING",
        )


def generate_bill_reference() -> str:
    return f"BILL-{datetime.now(UTC).year}-{random.randint(100000, 999999)}"


def generate_receipt_number() -> str:
    suffix = "".join(secrets.choice(_RECEIPT_ALPHABET) for _ in range(9))
    return f"RCP-{int(time.time() * 1000)}-{suffix}"


async def initiate_payment(
    db: AsyncSession,
    service_type: ServiceType,
    payment_method: PaymentMethod,
    *,
    payer_name: str,
    payer_phone: str | None = None,
    payer_email: str | None = None,
    mpesa_number: str | None = None,
    card_last_four: str | None = None,
    payer_user_id: UUID | None = None,
) -> PaymentTransaction:
    """
    Open a bill for a portal service.

    Raises:
        ValidationFailedError: If the method's payer details are missing
        NumberingConflictError: If no unique bill reference could be drawn
    """
    await simulate_latency(500)

    if payment_method == PaymentMethod.MPESA and not mpesa_number:
        raise ValidationFailedError({"mpesa_number": "M-Pesa number is required"})
    if payment_method == PaymentMethod.CARD and not card_last_four:
        raise ValidationFailedError({"card_last_four": "Card details are required"})

    async def next_reference() -> str:
        return generate_bill_reference()

    def build(bill_reference: str) -> PaymentTransaction:
        return PaymentTransaction(
            bill_reference=bill_reference,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING,
            service_type=service_type,
            amount=SERVICE_FEES[service_type],
            payer_user_id=payer_user_id,
            payer_name=payer_name,
            payer_phone=payer_phone,
            payer_email=payer_email,
            mpesa_number=mpesa_number if payment_method == PaymentMethod.MPESA else None,
            card_last_four=card_last_four if payment_method == PaymentMethod.CARD else None,
            initiated_at=datetime.now(UTC),
        )

    payment = await insert_with_number(db, build, next_reference, prefix="BILL")
    await db.commit()
    await db.refresh(payment)

    logger.info(
        f"Initiated payment {payment.bill_reference}: {service_type.value} "
        f"KES {payment.amount} via {payment_method.value}"
    )
    return payment


async def get_payment_status(db: AsyncSession, bill_reference: str) -> PaymentTransaction:
    """
    Raises:
        TransactionNotFoundError: If no bill has this reference
    """
    payment = await repository.get_payment(db, bill_reference)
    if payment is None:
        raise TransactionNotFoundError()
    return payment


async def process_payment(db: AsyncSession, bill_reference: str) -> PaymentTransaction:
    """
    Settle a pending bill. The outcome is random; a failed payment is still
    returned (with ``failure_reason`` set) rather than raised.

    Raises:
        TransactionNotFoundError: If no bill has this reference
        PaymentNotPendingError: If the bill was already processed
    """
    payment = await get_payment_status(db, bill_reference)
    if payment.payment_status != PaymentStatus.PENDING:
        raise PaymentNotPendingError(bill_reference, payment.payment_status)

    await simulate_latency(2000, 4000)

    successful = random.random() < settings.mock_payment_success_rate
    values = {
        "payment_status": PaymentStatus.COMPLETED if successful else PaymentStatus.FAILED,
        "receipt_number": generate_receipt_number() if successful else None,
        "failure_reason": None if successful else PAYMENT_FAILED_MESSAGE,
        "completed_at": datetime.now(UTC),
    }

    updated = await compare_and_set_status(
        db, PaymentTransaction, payment.id, "payment_status", PaymentStatus.PENDING, values
    )
    if not updated:
        await db.rollback()
        await db.refresh(payment)
        raise PaymentNotPendingError(bill_reference, payment.payment_status)

    await db.commit()
    for key, value in values.items():
        setattr(payment, key, value)

    if successful:
        logger.info(f"Payment {bill_reference} completed: receipt {payment.receipt_number}")
    else:
        logger.warning(f"Payment {bill_reference} failed")
    return payment
