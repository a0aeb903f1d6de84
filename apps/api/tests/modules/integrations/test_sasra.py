"""
Unit tests for the SASRA license mock.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from coop_portal.modules.integrations.agency import AgencyVerificationError
from coop_portal.modules.integrations.models import SasraLicenseStatus
from coop_portal.modules.integrations.sasra import check_license, generate_record_fields


class TestGeneratedRecord:
    """Tests for figures generated for a new cooperative."""

    def test_ranges(self):
        fields = generate_record_fields(uuid4())

        assert fields["license_status"] == SasraLicenseStatus.LICENSED
        assert 75 <= fields["compliance_score"] <= 94
        assert Decimal("10") <= fields["capital_adequacy_ratio"] <= Decimal("15")
        assert Decimal("15") <= fields["liquidity_ratio"] <= Decimal("25")
        assert Decimal("0") <= fields["npl_ratio"] <= Decimal("5")
        assert fields["regulatory_alerts"] == []
        assert fields["license_number"].startswith("SASRA-")

    def test_expiry_is_a_year_out(self):
        today = datetime.now(UTC).date()
        fields = generate_record_fields(uuid4())
        assert fields["license_expiry_date"].year == today.year + 1


@pytest.mark.asyncio
async def test_existing_record_is_reused(mock_db):
    record = MagicMock()
    record.license_status = SasraLicenseStatus.LICENSED

    with (
        patch("coop_portal.modules.integrations.sasra.repository") as mock_repo,
        patch("coop_portal.modules.integrations.agency.repository") as mock_log,
    ):
        mock_repo.get_sasra_record = AsyncMock(return_value=record)
        mock_repo.create_sasra_record = AsyncMock()
        mock_log.add_verification = AsyncMock()

        assert await check_license(mock_db, uuid4()) is record

    mock_repo.create_sasra_record.assert_not_called()
    assert mock_log.add_verification.call_args.kwargs["success"] is True


@pytest.mark.asyncio
async def test_missing_record_is_generated_and_persisted(mock_db):
    created = MagicMock()
    created.license_status = SasraLicenseStatus.LICENSED
    coop_id = uuid4()

    with (
        patch("coop_portal.modules.integrations.sasra.repository") as mock_repo,
        patch("coop_portal.modules.integrations.agency.repository") as mock_log,
    ):
        mock_repo.get_sasra_record = AsyncMock(return_value=None)
        mock_repo.create_sasra_record = AsyncMock(return_value=created)
        mock_log.add_verification = AsyncMock()

        assert await check_license(mock_db, coop_id) is created

    assert mock_repo.create_sasra_record.call_args.kwargs["cooperative_id"] == coop_id


@pytest.mark.asyncio
async def test_suspended_license_logged_as_failure(mock_db):
    record = MagicMock()
    record.license_status = SasraLicenseStatus.SUSPENDED

    with (
        patch("coop_portal.modules.integrations.sasra.repository") as mock_repo,
        patch("coop_portal.modules.integrations.agency.repository") as mock_log,
    ):
        mock_repo.get_sasra_record = AsyncMock(return_value=record)
        mock_log.add_verification = AsyncMock()

        await check_license(mock_db, uuid4())

    assert mock_log.add_verification.call_args.kwargs["success"] is False


@pytest.mark.asyncio
async def test_database_failure_is_service_unavailable(mock_db):
    with patch("coop_portal.modules.integrations.sasra.repository") as mock_repo:
        mock_repo.get_sasra_record = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("timeout"))
        )

        with pytest.raises(AgencyVerificationError) as exc_info:
            await check_license(mock_db, uuid4())

    assert exc_info.value.status_code == 503
