"""
Unit tests for the complaints service.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.complaints import service
from coop_portal.modules.complaints.models import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
)
from coop_portal.modules.reviews.service import NotesRequiredError, RequestAlreadyDecidedError
from coop_portal.modules.shared.errors import NotFoundError, ValidationFailedError


def _complaint_data(**overrides):
    data = MagicMock()
    data.cooperative_id = None
    data.is_anonymous = False
    data.complainant_name = "  Peter Otieno  "
    data.complainant_phone = "0712345678"
    data.complainant_email = "peter@example.co.ke"
    data.category = ComplaintCategory.GOVERNANCE
    data.priority = ComplaintPriority.HIGH
    data.subject = "Dividends not paid"
    data.description = "Members have not received dividends for 2024."
    data.evidence_url = None
    for key, value in overrides.items():
        setattr(data, key, value)
    return data


def _complaint(status=ComplaintStatus.INVESTIGATING, tenant_id=None, complainant_id=None):
    complaint = MagicMock(spec=Complaint)
    complaint.id = uuid4()
    complaint.complaint_number = "CPL-2025-000001"
    complaint.subject = "Dividends not paid"
    complaint.status = status
    complaint.tenant_id = tenant_id
    complaint.cooperative_id = None
    complaint.complainant_user_id = complainant_id
    return complaint


# ============================================================================
# submit_complaint
# ============================================================================


@pytest.mark.asyncio
async def test_anonymous_complaint_drops_identity(mock_db, citizen):
    created = MagicMock()
    created.cooperative_id = None

    with patch("coop_portal.modules.complaints.service.repository") as mock_repo:
        mock_repo.create = AsyncMock(return_value=created)

        await service.submit_complaint(mock_db, _complaint_data(is_anonymous=True), citizen)

    fields = mock_repo.create.call_args.kwargs
    assert fields["complainant_user_id"] is None
    assert fields["complainant_name"] == "Anonymous"
    assert fields["complainant_phone"] is None
    assert fields["is_anonymous"] is True
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_public_complaint_needs_email(mock_db):
    with patch("coop_portal.modules.complaints.service.repository") as mock_repo:
        mock_repo.create = AsyncMock()

        with pytest.raises(ValidationFailedError):
            await service.submit_complaint(mock_db, _complaint_data(complainant_email=None))

    mock_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_complaint_against_cooperative_notifies_its_admins(mock_db, citizen, county_id):
    cooperative = MagicMock()
    cooperative.tenant_id = county_id
    created = MagicMock()
    created.cooperative_id = uuid4()
    admin_ids = [uuid4(), uuid4()]

    with (
        patch("coop_portal.modules.complaints.service.repository") as mock_repo,
        patch("coop_portal.modules.complaints.service.cooperative_service") as mock_coops,
        patch("coop_portal.modules.complaints.service.RoleGrantRepository") as mock_grants,
        patch("coop_portal.modules.complaints.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.create = AsyncMock(return_value=created)
        mock_coops.get_cooperative = AsyncMock(return_value=cooperative)
        mock_grants.list_holder_ids = AsyncMock(return_value=admin_ids)

        await service.submit_complaint(
            mock_db, _complaint_data(cooperative_id=created.cooperative_id), citizen
        )

    assert mock_repo.create.call_args.kwargs["tenant_id"] == county_id
    assert mock_repo.create.call_args.kwargs["complainant_name"] == "Peter Otieno"
    assert mock_notify.await_count == 2


# ============================================================================
# visibility and decisions
# ============================================================================


@pytest.mark.asyncio
async def test_county_staff_cannot_see_other_county(mock_db, county_officer):
    with patch("coop_portal.modules.complaints.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=_complaint(tenant_id=uuid4()))

        with pytest.raises(NotFoundError):
            await service.get_complaint(mock_db, uuid4(), county_officer)


@pytest.mark.asyncio
async def test_dismiss_requires_reason(mock_db, county_officer, county_id):
    complaint = _complaint(tenant_id=county_id)

    with (
        patch("coop_portal.modules.complaints.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.repository") as mock_review_repo,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=complaint)
        mock_review_repo.compare_and_set_status = AsyncMock(return_value=True)

        with pytest.raises(NotesRequiredError):
            await service.update_status(
                mock_db, complaint.id, ComplaintStatus.DISMISSED, county_officer
            )

    mock_review_repo.compare_and_set_status.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_notifies_complainant_once(mock_db, county_officer, county_id):
    complainant = uuid4()
    complaint = _complaint(tenant_id=county_id, complainant_id=complainant)

    with (
        patch("coop_portal.modules.complaints.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.repository") as mock_review_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=complaint)
        mock_review_repo.compare_and_set_status = AsyncMock(return_value=True)

        await service.update_status(
            mock_db, complaint.id, ComplaintStatus.RESOLVED, county_officer, "Dividends paid"
        )

    assert complaint.status == ComplaintStatus.RESOLVED
    assert complaint.resolution == "Dividends paid"
    assert complaint.resolved_by == county_officer.id
    mock_notify.assert_awaited_once()
    assert mock_notify.call_args.args[1].user_id == complainant


@pytest.mark.asyncio
async def test_notes_on_closed_complaint_are_refused(mock_db, county_officer, county_id):
    complaint = _complaint(ComplaintStatus.RESOLVED, tenant_id=county_id)

    with patch("coop_portal.modules.complaints.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=complaint)

        with pytest.raises(RequestAlreadyDecidedError):
            await service.add_investigation_notes(mock_db, complaint.id, "late note", county_officer)

    mock_db.commit.assert_not_called()
