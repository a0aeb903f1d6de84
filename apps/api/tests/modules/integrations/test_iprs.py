"""
Unit tests for the IPRS national ID mock.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from coop_portal.modules.integrations.agency import AgencyVerificationError, FailureReason
from coop_portal.modules.integrations.iprs import verify_national_id
from coop_portal.modules.integrations.models import Agency, IprsValidationStatus


def _record(status=IprsValidationStatus.VERIFIED):
    record = MagicMock()
    record.id_number = "12345678"
    record.validation_status = status
    return record


@pytest.mark.asyncio
@pytest.mark.parametrize("id_number", ["1234567", "123456789", "1234567a", ""])
async def test_bad_format_is_rejected_without_lookup(mock_db, id_number):
    with patch("coop_portal.modules.integrations.iprs.repository") as mock_repo:
        mock_repo.get_iprs_record = AsyncMock()

        with pytest.raises(AgencyVerificationError) as exc_info:
            await verify_national_id(mock_db, id_number)

    assert exc_info.value.reason == FailureReason.INVALID_FORMAT
    assert exc_info.value.message == "Invalid ID number format. Must be 8 digits."
    assert exc_info.value.status_code == 422
    mock_repo.get_iprs_record.assert_not_called()


@pytest.mark.asyncio
async def test_verified_id_returns_record_and_is_logged(mock_db):
    record = _record()

    with (
        patch("coop_portal.modules.integrations.iprs.repository") as mock_repo,
        patch("coop_portal.modules.integrations.agency.repository") as mock_log,
    ):
        mock_repo.get_iprs_record = AsyncMock(return_value=record)
        mock_log.add_verification = AsyncMock()

        assert await verify_national_id(mock_db, " 12345678 ") is record

    logged = mock_log.add_verification.call_args.kwargs
    assert logged["agency"] == Agency.IPRS
    assert logged["success"] is True
    assert logged["outcome"] == "VERIFIED"


@pytest.mark.asyncio
async def test_unknown_id_is_not_found(mock_db):
    with (
        patch("coop_portal.modules.integrations.iprs.repository") as mock_repo,
        patch("coop_portal.modules.integrations.agency.repository") as mock_log,
    ):
        mock_repo.get_iprs_record = AsyncMock(return_value=None)
        mock_log.add_verification = AsyncMock()

        with pytest.raises(AgencyVerificationError) as exc_info:
            await verify_national_id(mock_db, "87654321")

    assert exc_info.value.status_code == 404
    assert exc_info.value.error_code == "IPRS_NOT_FOUND"
    assert mock_log.add_verification.call_args.kwargs["success"] is False


@pytest.mark.asyncio
async def test_expired_id(mock_db):
    with (
        patch("coop_portal.modules.integrations.iprs.repository") as mock_repo,
        patch("coop_portal.modules.integrations.agency.repository") as mock_log,
    ):
        mock_repo.get_iprs_record = AsyncMock(return_value=_record(IprsValidationStatus.EXPIRED))
        mock_log.add_verification = AsyncMock()

        with pytest.raises(AgencyVerificationError) as exc_info:
            await verify_national_id(mock_db, "12345678")

    assert exc_info.value.message == "ID has expired. Please renew your national ID."


@pytest.mark.asyncio
async def test_database_failure_is_service_unavailable(mock_db):
    with patch("coop_portal.modules.integrations.iprs.repository") as mock_repo:
        mock_repo.get_iprs_record = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )

        with pytest.raises(AgencyVerificationError) as exc_info:
            await verify_national_id(mock_db, "12345678")

    assert exc_info.value.status_code == 503
    mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_audit_log_failure_does_not_mask_result(mock_db):
    record = _record()

    with (
        patch("coop_portal.modules.integrations.iprs.repository") as mock_repo,
        patch("coop_portal.modules.integrations.agency.repository") as mock_log,
    ):
        mock_repo.get_iprs_record = AsyncMock(return_value=record)
        mock_log.add_verification = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        )

        assert await verify_national_id(mock_db, "12345678") is record

    mock_db.rollback.assert_awaited_once()
