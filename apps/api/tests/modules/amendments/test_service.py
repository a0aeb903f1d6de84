"""
Unit tests for the amendments service.
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.amendments import service
from coop_portal.modules.amendments.models import AmendmentRequest, AmendmentStatus
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.reviews.service import NotesRequiredError, RequestAlreadyDecidedError


def _amendment(status=AmendmentStatus.UNDER_REVIEW):
    amendment = MagicMock(spec=AmendmentRequest)
    amendment.id = uuid4()
    amendment.request_number = "AMD-2025-0003"
    amendment.title = "Increase share capital"
    amendment.cooperative_id = uuid4()
    amendment.submitted_by = uuid4()
    amendment.status = status
    return amendment


@pytest.mark.asyncio
async def test_approve_stamps_dates_and_notifies_once(mock_db, county_admin):
    amendment = _amendment()

    with (
        patch("coop_portal.modules.amendments.service.repository") as mock_repo,
        patch("coop_portal.modules.amendments.service.cooperative_service") as mock_coops,
        patch("coop_portal.modules.reviews.service.repository") as mock_review_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=amendment)
        mock_coops.get_cooperative = AsyncMock()
        mock_review_repo.compare_and_set_status = AsyncMock(return_value=True)

        result = await service.approve_amendment(mock_db, amendment.id, county_admin)

    assert result.status == AmendmentStatus.APPROVED
    assert result.approved_by == county_admin.id
    assert isinstance(result.approved_at, datetime)
    assert result.effective_date == datetime.now(UTC).date()
    mock_notify.assert_awaited_once()
    notice = mock_notify.call_args.args[1]
    assert notice.type == NotificationType.SUCCESS
    assert notice.user_id == amendment.submitted_by


@pytest.mark.asyncio
async def test_approve_uses_given_effective_date(mock_db, county_admin):
    amendment = _amendment()

    with (
        patch("coop_portal.modules.amendments.service.repository") as mock_repo,
        patch("coop_portal.modules.amendments.service.cooperative_service") as mock_coops,
        patch("coop_portal.modules.reviews.service.repository") as mock_review_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock),
    ):
        mock_repo.get_by_id = AsyncMock(return_value=amendment)
        mock_coops.get_cooperative = AsyncMock()
        mock_review_repo.compare_and_set_status = AsyncMock(return_value=True)

        await service.approve_amendment(
            mock_db, amendment.id, county_admin, effective_date=date(2026, 1, 1)
        )

    assert amendment.effective_date == date(2026, 1, 1)


@pytest.mark.asyncio
async def test_reject_requires_notes(mock_db, county_admin):
    amendment = _amendment()

    with (
        patch("coop_portal.modules.amendments.service.repository") as mock_repo,
        patch("coop_portal.modules.amendments.service.cooperative_service") as mock_coops,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=amendment)
        mock_coops.get_cooperative = AsyncMock()

        with pytest.raises(NotesRequiredError):
            await service.reject_amendment(mock_db, amendment.id, county_admin, None)

    mock_notify.assert_not_called()


@pytest.mark.asyncio
async def test_decision_on_approved_amendment_is_refused(mock_db, county_admin):
    amendment = _amendment(AmendmentStatus.APPROVED)

    with (
        patch("coop_portal.modules.amendments.service.repository") as mock_repo,
        patch("coop_portal.modules.amendments.service.cooperative_service") as mock_coops,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=amendment)
        mock_coops.get_cooperative = AsyncMock()

        with pytest.raises(RequestAlreadyDecidedError):
            await service.reject_amendment(mock_db, amendment.id, county_admin, "Too late")


@pytest.mark.asyncio
async def test_withdraw_by_non_submitter_is_denied(mock_db, county_admin):
    amendment = _amendment(AmendmentStatus.SUBMITTED)

    with (
        patch("coop_portal.modules.amendments.service.repository") as mock_repo,
        patch("coop_portal.modules.amendments.service.cooperative_service") as mock_coops,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=amendment)
        mock_coops.get_cooperative = AsyncMock()

        with pytest.raises(service.PermissionDeniedError):
            await service.withdraw_amendment(mock_db, amendment.id, county_admin)


@pytest.mark.asyncio
async def test_cooperative_admin_listing_foreign_cooperative_is_empty(mock_db, cooperative_admin):
    result = await service.list_amendments(mock_db, cooperative_admin, cooperative_id=uuid4())

    assert result["items"] == []
    assert result["total_count"] == 0
    mock_db.execute.assert_not_called()
