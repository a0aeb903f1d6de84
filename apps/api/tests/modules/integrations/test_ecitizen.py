"""
Unit tests for the eCitizen payment mock.
"""

import re
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from coop_portal.modules.integrations import ecitizen
from coop_portal.modules.integrations.ecitizen import (
    PAYMENT_FAILED_MESSAGE,
    PaymentNotPendingError,
    TransactionNotFoundError,
    generate_bill_reference,
    generate_receipt_number,
    initiate_payment,
    process_payment,
)
from coop_portal.modules.integrations.models import PaymentMethod, PaymentStatus, ServiceType
from coop_portal.modules.shared.errors import ValidationFailedError


def _pending():
    payment = MagicMock()
    payment.id = "tx-1"
    payment.bill_reference = "BILL-2025-123456"
    payment.payment_status = PaymentStatus.PENDING
    payment.receipt_number = None
    return payment


class TestReferences:
    """Tests for bill and receipt reference formats."""

    def test_bill_reference(self):
        assert re.fullmatch(r"BILL-\d{4}-\d{6}", generate_bill_reference())

    def test_receipt_number(self):
        assert re.fullmatch(r"RCP-\d+-[A-Z0-9]{9}", generate_receipt_number())

    def test_fees(self):
        assert ecitizen.SERVICE_FEES[ServiceType.COOPERATIVE_REGISTRATION] == Decimal("2000")
        assert ecitizen.SERVICE_FEES[ServiceType.CERTIFICATE_COPY] == Decimal("300")


# ============================================================================
# initiate_payment
# ============================================================================


@pytest.mark.asyncio
async def test_mpesa_requires_number(mock_db):
    with pytest.raises(ValidationFailedError) as exc_info:
        await initiate_payment(
            mock_db,
            ServiceType.OFFICIAL_SEARCH,
            PaymentMethod.MPESA,
            payer_name="Jane Wanjiku",
        )

    assert "mpesa_number" in exc_info.value.errors
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_initiate_opens_pending_bill_with_fee(mock_db):
    payment = await initiate_payment(
        mock_db,
        ServiceType.AMENDMENT_REQUEST,
        PaymentMethod.CARD,
        payer_name="Jane Wanjiku",
        card_last_four="4242",
        mpesa_number="0712345678",
    )

    assert payment.payment_status == PaymentStatus.PENDING
    assert payment.amount == Decimal("1000")
    assert payment.bill_reference.startswith("BILL-")
    assert payment.card_last_four == "4242"
    assert payment.mpesa_number is None
    mock_db.commit.assert_awaited_once()


# ============================================================================
# process_payment
# ============================================================================


@pytest.mark.asyncio
async def test_unknown_bill(mock_db):
    with patch("coop_portal.modules.integrations.ecitizen.repository") as mock_repo:
        mock_repo.get_payment = AsyncMock(return_value=None)

        with pytest.raises(TransactionNotFoundError) as exc_info:
            await process_payment(mock_db, "BILL-2025-000000")

    assert exc_info.value.message == "Transaction not found"


@pytest.mark.asyncio
async def test_successful_payment_gets_receipt(mock_db):
    payment = _pending()

    with (
        patch("coop_portal.modules.integrations.ecitizen.repository") as mock_repo,
        patch(
            "coop_portal.modules.integrations.ecitizen.compare_and_set_status",
            new_callable=AsyncMock,
            return_value=True,
        ),
        patch("coop_portal.modules.integrations.ecitizen.random.random", return_value=0.0),
    ):
        mock_repo.get_payment = AsyncMock(return_value=payment)

        result = await process_payment(mock_db, payment.bill_reference)

    assert result.payment_status == PaymentStatus.COMPLETED
    assert result.receipt_number.startswith("RCP-")
    assert result.failure_reason is None
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_payment_is_returned_not_raised(mock_db):
    payment = _pending()

    with (
        patch("coop_portal.modules.integrations.ecitizen.repository") as mock_repo,
        patch(
            "coop_portal.modules.integrations.ecitizen.compare_and_set_status",
            new_callable=AsyncMock,
            return_value=True,
        ),
        patch("coop_portal.modules.integrations.ecitizen.random.random", return_value=0.99),
    ):
        mock_repo.get_payment = AsyncMock(return_value=payment)

        result = await process_payment(mock_db, payment.bill_reference)

    assert result.payment_status == PaymentStatus.FAILED
    assert result.receipt_number is None
    assert result.failure_reason == PAYMENT_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_completed_bill_cannot_be_processed_again(mock_db):
    payment = _pending()
    payment.payment_status = PaymentStatus.COMPLETED

    with (
        patch("coop_portal.modules.integrations.ecitizen.repository") as mock_repo,
        patch(
            "coop_portal.modules.integrations.ecitizen.compare_and_set_status",
            new_callable=AsyncMock,
        ) as mock_swap,
    ):
        mock_repo.get_payment = AsyncMock(return_value=payment)

        with pytest.raises(PaymentNotPendingError):
            await process_payment(mock_db, payment.bill_reference)

    mock_swap.assert_not_called()


@pytest.mark.asyncio
async def test_concurrent_processing_loses_the_swap(mock_db):
    payment = _pending()

    with (
        patch("coop_portal.modules.integrations.ecitizen.repository") as mock_repo,
        patch(
            "coop_portal.modules.integrations.ecitizen.compare_and_set_status",
            new_callable=AsyncMock,
            return_value=False,
        ),
    ):
        mock_repo.get_payment = AsyncMock(return_value=payment)

        with pytest.raises(PaymentNotPendingError):
            await process_payment(mock_db, payment.bill_reference)

    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_called()
