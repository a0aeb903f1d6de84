"""
Unit tests for payment receipt rendering.
"""

from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from coop_portal.modules.integrations.models import PaymentMethod, PaymentStatus, ServiceType
from coop_portal.modules.integrations.receipts import (
    ReceiptUnavailableError,
    format_amount,
    receipt_fields,
    receipt_filename,
    render_receipt,
)


@pytest.fixture
def completed_payment():
    return SimpleNamespace(
        bill_reference="BILL-2025-482913",
        receipt_number="RCP-1735689600000-AB12CD34E",
        payment_status=PaymentStatus.COMPLETED,
        payment_method=PaymentMethod.MPESA,
        service_type=ServiceType.COOPERATIVE_REGISTRATION,
        amount=Decimal("2000.00"),
        payer_name="Jane Wanjiku",
        initiated_at=datetime(2025, 1, 1, 9, 0, tzinfo=UTC),
        completed_at=datetime(2025, 1, 1, 9, 1, tzinfo=UTC),
    )


class TestFormatting:
    """Tests for receipt field formatting."""

    def test_whole_amount(self):
        assert format_amount(Decimal("2000.00")) == "KES 2,000"

    def test_fractional_amount(self):
        assert format_amount(Decimal("1250.50")) == "KES 1,250.50"

    def test_filename(self, completed_payment):
        assert receipt_filename(completed_payment) == "Receipt-RCP-1735689600000-AB12CD34E.pdf"

    def test_fields(self, completed_payment):
        fields = dict(receipt_fields(completed_payment))
        assert fields["Service"] == "Cooperative Registration"
        assert fields["Amount"] == "KES 2,000"
        assert fields["Date"] == "01 Jan 2025 09:01"
        assert len(fields) == 8


def test_render_produces_pdf(completed_payment):
    content = render_receipt(completed_payment)
    assert content.startswith(b"%PDF")


def test_pending_payment_has_no_receipt(completed_payment):
    completed_payment.payment_status = PaymentStatus.PENDING
    completed_payment.receipt_number = None

    with pytest.raises(ReceiptUnavailableError):
        render_receipt(completed_payment)
