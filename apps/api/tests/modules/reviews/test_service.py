"""
Unit tests for the generic review service.

Covers terminal-state protection, compare-and-swap conflicts and the
single-notification rule for assignments and decisions.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.complaints.models import ComplaintStatus
from coop_portal.modules.complaints.repository import COMPLAINT_WORKFLOW
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice
from coop_portal.modules.registrations.models import RegistrationStatus
from coop_portal.modules.registrations.repository import REGISTRATION_WORKFLOW
from coop_portal.modules.reviews import service
from coop_portal.modules.reviews.service import (
    ConcurrentModificationError,
    InvalidReviewTransitionError,
    NotesRequiredError,
    RequestAlreadyDecidedError,
)


def _application(status=RegistrationStatus.SUBMITTED):
    record = MagicMock()
    record.id = uuid4()
    record.status = status
    return record


def _notice():
    return Notice(
        user_id=uuid4(),
        title="Application Approved",
        message="Your application was approved.",
        type=NotificationType.SUCCESS,
    )


# ============================================================================
# decide
# ============================================================================


@pytest.mark.asyncio
async def test_decide_approves_and_notifies_once(mock_db):
    record = _application()
    reviewer = uuid4()

    with (
        patch("coop_portal.modules.reviews.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        result = await service.decide(
            mock_db,
            REGISTRATION_WORKFLOW,
            record,
            RegistrationStatus.APPROVED,
            reviewer,
            notice=_notice(),
        )

    assert result.status == RegistrationStatus.APPROVED
    assert result.reviewed_by == reviewer
    assert result.approved_by == reviewer
    mock_db.commit.assert_awaited_once()
    mock_notify.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [RegistrationStatus.APPROVED, RegistrationStatus.REJECTED, RegistrationStatus.WITHDRAWN],
)
async def test_decide_refuses_terminal_record(mock_db, status):
    record = _application(status)

    with patch("coop_portal.modules.reviews.service.repository") as mock_repo:
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        with pytest.raises(RequestAlreadyDecidedError) as exc_info:
            await service.decide(
                mock_db, REGISTRATION_WORKFLOW, record, RegistrationStatus.APPROVED, uuid4()
            )

    assert exc_info.value.status_code == 409
    mock_repo.compare_and_set_status.assert_not_called()
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_decide_rejection_without_reason_writes_nothing(mock_db):
    record = _application(RegistrationStatus.UNDER_REVIEW)

    with patch("coop_portal.modules.reviews.service.repository") as mock_repo:
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        with pytest.raises(NotesRequiredError) as exc_info:
            await service.decide(
                mock_db, REGISTRATION_WORKFLOW, record, RegistrationStatus.REJECTED, uuid4(), ""
            )

    assert exc_info.value.status_code == 422
    assert record.status == RegistrationStatus.UNDER_REVIEW
    mock_repo.compare_and_set_status.assert_not_called()


@pytest.mark.asyncio
async def test_decide_lost_race_raises_conflict(mock_db):
    record = _application()

    with (
        patch("coop_portal.modules.reviews.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.compare_and_set_status = AsyncMock(return_value=False)

        with pytest.raises(ConcurrentModificationError):
            await service.decide(
                mock_db,
                REGISTRATION_WORKFLOW,
                record,
                RegistrationStatus.APPROVED,
                uuid4(),
                notice=_notice(),
            )

    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_called()
    mock_notify.assert_not_called()
    assert record.status == RegistrationStatus.SUBMITTED


@pytest.mark.asyncio
async def test_decide_without_commit_leaves_notification_to_caller(mock_db):
    record = _application()

    with (
        patch("coop_portal.modules.reviews.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        await service.decide(
            mock_db,
            REGISTRATION_WORKFLOW,
            record,
            RegistrationStatus.APPROVED,
            uuid4(),
            notice=_notice(),
            commit=False,
        )

    mock_db.commit.assert_not_called()
    mock_notify.assert_not_called()


@pytest.mark.asyncio
async def test_decide_passes_expected_status_to_swap(mock_db):
    record = _application(RegistrationStatus.UNDER_REVIEW)

    with (
        patch("coop_portal.modules.reviews.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock),
    ):
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        await service.decide(
            mock_db,
            REGISTRATION_WORKFLOW,
            record,
            RegistrationStatus.ADDITIONAL_INFO_REQUIRED,
            uuid4(),
            "Please attach signed minutes",
        )

    args = mock_repo.compare_and_set_status.call_args.args
    assert args[3] == "status"
    assert args[4] == RegistrationStatus.UNDER_REVIEW
    assert args[5]["status"] == RegistrationStatus.ADDITIONAL_INFO_REQUIRED
    assert args[5]["review_notes"] == "Please attach signed minutes"


# ============================================================================
# assign
# ============================================================================


@pytest.mark.asyncio
async def test_assign_complaint_sets_investigator(mock_db):
    record = MagicMock()
    record.id = uuid4()
    record.status = ComplaintStatus.RECEIVED
    investigator = uuid4()

    with (
        patch("coop_portal.modules.reviews.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        await service.assign(
            mock_db, COMPLAINT_WORKFLOW, record, investigator, uuid4(), notice=_notice()
        )

    assert record.status == ComplaintStatus.INVESTIGATING
    assert record.assigned_to == investigator
    mock_notify.assert_awaited_once()


@pytest.mark.asyncio
async def test_self_assignment_does_not_notify(mock_db):
    record = MagicMock()
    record.id = uuid4()
    record.status = ComplaintStatus.RECEIVED
    officer = uuid4()

    with (
        patch("coop_portal.modules.reviews.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        await service.assign(mock_db, COMPLAINT_WORKFLOW, record, officer, officer, notice=_notice())

    mock_notify.assert_not_called()


@pytest.mark.asyncio
async def test_assign_from_invalid_state_is_refused(mock_db):
    record = _application(RegistrationStatus.DRAFT)

    with patch("coop_portal.modules.reviews.service.repository") as mock_repo:
        mock_repo.compare_and_set_status = AsyncMock(return_value=True)

        with pytest.raises(InvalidReviewTransitionError):
            await service.assign(mock_db, REGISTRATION_WORKFLOW, record, uuid4(), uuid4())

    mock_repo.compare_and_set_status.assert_not_called()
