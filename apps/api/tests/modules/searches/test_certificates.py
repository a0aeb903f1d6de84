"""
Unit tests for search certificate rendering.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from coop_portal.modules.cooperatives.models import CooperativeStatus
from coop_portal.modules.searches.certificates import (
    CertificateContext,
    certificate_filename,
    cooperative_fields,
    render_certificate,
    requester_fields,
    verification_code,
)


@pytest.fixture
def cooperative():
    return SimpleNamespace(
        name="Githunguri Dairy Farmers",
        registration_number="COOP-2024-00012",
        status=CooperativeStatus.ACTIVE,
        registration_date=date(2024, 3, 14),
        total_members=1520,
        total_share_capital=Decimal("2500000.00"),
        address="P.O. Box 12, Githunguri",
        email=None,
        phone="0722000000",
    )


@pytest.fixture
def paid_search():
    return SimpleNamespace(
        search_number="SRCH-2025-00001",
        certificate_number="CERT-2025-0001",
        payment_reference="BILL-2025-482913",
        requester_name="Jane Wanjiku",
        requester_id_number="12345678",
        requester_email="jane@example.com",
        requester_phone=None,
        purpose="Loan due diligence",
    )


class TestFields:
    def test_cooperative_fields(self, cooperative):
        fields = dict(
            cooperative_fields(CertificateContext(cooperative=cooperative, county_name="Kiambu"))
        )
        assert fields["County"] == "Kiambu"
        assert fields["Type"] == "N/A"
        assert fields["Registration Date"] == "14/03/2024"
        assert fields["Share Capital"] == "KES 2,500,000"
        assert fields["Contact Email"] == "N/A"

    def test_requester_fields(self, paid_search):
        fields = dict(requester_fields(paid_search))
        assert fields["Name"] == "Jane Wanjiku"
        assert fields["Phone"] == "N/A"

    def test_filename_and_code(self, paid_search, cooperative):
        assert (
            certificate_filename(paid_search, cooperative)
            == "Certificate_CERT-2025-0001_COOP-2024-00012.pdf"
        )
        assert verification_code(paid_search, cooperative) == "CERT:CERT-2025-0001:COOP-2024-00012"


def test_render_produces_pdf(paid_search, cooperative):
    content = render_certificate(
        paid_search,
        CertificateContext(
            cooperative=cooperative,
            type_name="Dairy",
            county_name="Kiambu",
            issued_at=datetime(2025, 2, 1, 10, 30, tzinfo=UTC),
        ),
    )
    assert content.startswith(b"%PDF")


def test_render_without_requester_name(paid_search, cooperative):
    paid_search.requester_name = ""
    content = render_certificate(paid_search, CertificateContext(cooperative=cooperative))
    assert content.startswith(b"%PDF")
