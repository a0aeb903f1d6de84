"""
Unit tests for the registration service.

Tests for:
1. Submission validation (nothing written on failure) and the happy path
2. Visibility of applications by role
3. Atomic approval (cooperative + role grant + status)
4. Rejection requires a reason
5. Draft store (single numbered draft per applicant)
"""

import re
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.core.permissions import Role
from coop_portal.modules.registrations import service
from coop_portal.modules.registrations.models import RegistrationApplication, RegistrationStatus
from coop_portal.modules.reviews.service import NotesRequiredError
from coop_portal.modules.shared.errors import NotFoundError, ValidationFailedError
from coop_portal.modules.shared.numbering import NumberingConflictError


def _application(county_id, status=RegistrationStatus.SUBMITTED, applicant_id=None):
    application = MagicMock(spec=RegistrationApplication)
    application.id = uuid4()
    application.application_number = "REG-2025-0001"
    application.applicant_user_id = applicant_id or uuid4()
    application.tenant_id = county_id
    application.status = status
    application.proposed_name = "Umoja Dairy Farmers Cooperative"
    application.contact_email = "jane@umoja.co.ke"
    application.contact_person = "Jane Wanjiku"
    application.review_notes = None
    application.rejection_reason = None
    return application


# ============================================================================
# submit
# ============================================================================


@pytest.mark.asyncio
async def test_submit_with_missing_fields_writes_nothing(mock_db, citizen):
    with (
        patch("coop_portal.modules.registrations.service.repository") as mock_repo,
        patch("coop_portal.modules.registrations.service.reviews") as mock_reviews,
        patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        patch(
            "coop_portal.modules.registrations.service.validation.is_name_available",
            new_callable=AsyncMock,
            return_value=True,
        ),
    ):
        mock_repo.get_draft_for_user = AsyncMock(return_value=None)
        mock_repo.create_draft = AsyncMock()
        mock_reviews.transition = AsyncMock()
        mock_users.ensure_user_has_tenant = AsyncMock()

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.submit(mock_db, citizen.id, {"proposed_name": "Umoja"})

    assert "type_id" in exc_info.value.errors
    assert "documents" in exc_info.value.errors
    mock_repo.create_draft.assert_not_called()
    mock_reviews.transition.assert_not_called()
    mock_users.ensure_user_has_tenant.assert_not_called()
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_submit_with_taken_name_is_rejected(mock_db, citizen):
    form = {
        "proposed_name": "Umoja SACCO",
        "type_id": uuid4(),
        "proposed_members": 10,
        "primary_activity": "Savings",
        "operating_area": "Nairobi",
        "address": "Moi Avenue",
        "contact_person": "Jane",
        "contact_phone": "0712345678",
        "bylaws_url": "a.pdf",
        "member_list_url": "b.pdf",
        "minutes_url": "c.pdf",
        "id_copies_url": "d.pdf",
    }

    with (
        patch("coop_portal.modules.registrations.service.repository") as mock_repo,
        patch(
            "coop_portal.modules.registrations.service.validation.is_name_available",
            new_callable=AsyncMock,
            return_value=False,
        ),
        patch("coop_portal.modules.registrations.service.reviews") as mock_reviews,
    ):
        mock_repo.get_draft_for_user = AsyncMock(return_value=None)
        mock_reviews.transition = AsyncMock()

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.submit(mock_db, citizen.id, form)

    assert exc_info.value.errors == {
        "proposed_name": "This name is already taken or pending approval"
    }
    mock_reviews.transition.assert_not_called()


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.mark.asyncio
async def test_submit_complete_form_numbers_and_submits(mock_db, citizen, county_id):
    form = {
        "proposed_name": "Umoja Dairy Farmers Cooperative",
        "type_id": uuid4(),
        "proposed_members": 25,
        "primary_activity": "Milk collection",
        "operating_area": "Kiambu",
        "address": "Kiambu Road",
        "contact_person": "Jane Wanjiku",
        "contact_phone": "0712345678",
        "contact_email": "jane@umoja.co.ke",
        "bylaws_url": f"{citizen.id}/bylaws_1.pdf",
        "member_list_url": f"{citizen.id}/member_list_1.pdf",
        "minutes_url": f"{citizen.id}/minutes_1.pdf",
        "id_copies_url": f"{citizen.id}/id_copies_1.pdf",
    }
    year = datetime.now(UTC).year
    swapped = MagicMock()
    swapped.rowcount = 1
    # No draft yet, then the latest number of the year, then the status swap
    mock_db.execute = AsyncMock(
        side_effect=[_scalar(None), _scalar(f"REG-{year}-0006"), swapped]
    )

    with (
        patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        patch(
            "coop_portal.modules.registrations.service.validation.is_name_available",
            new_callable=AsyncMock,
            return_value=True,
        ),
    ):
        mock_users.ensure_user_has_tenant = AsyncMock(return_value=county_id)

        application = await service.submit(mock_db, citizen.id, form)

    assert application.status == RegistrationStatus.SUBMITTED
    assert application.submitted_at is not None
    assert re.fullmatch(rf"REG-{year}-\d{{4}}", application.application_number)
    assert application.application_number == f"REG-{year}-0007"
    assert application.tenant_id == county_id
    assert application.applicant_user_id == citizen.id
    assert application.id_copies_url == form["id_copies_url"]
    mock_db.add.assert_called_once_with(application)
    mock_db.commit.assert_awaited_once()


# ============================================================================
# Draft store
# ============================================================================


class TestDraftStore:
    @pytest.mark.asyncio
    async def test_first_save_creates_numbered_draft(self, mock_db, citizen, county_id):
        draft = _application(county_id, status=RegistrationStatus.DRAFT, applicant_id=citizen.id)

        with (
            patch("coop_portal.modules.registrations.service.repository") as mock_repo,
            patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        ):
            mock_users.ensure_user_has_tenant = AsyncMock(return_value=county_id)
            mock_repo.get_draft_for_user = AsyncMock(return_value=None)
            mock_repo.create_draft = AsyncMock(return_value=draft)

            saved = await service.save_draft(
                mock_db, citizen.id, {"proposed_name": "Umoja"}, current_step=1
            )

        assert saved is draft
        assert saved.application_number == "REG-2025-0001"
        mock_repo.create_draft.assert_awaited_once_with(
            mock_db,
            applicant_user_id=citizen.id,
            tenant_id=county_id,
            form={"proposed_name": "Umoja"},
            current_step=1,
        )
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_save_updates_same_draft(self, mock_db, citizen, county_id):
        draft = _application(county_id, status=RegistrationStatus.DRAFT, applicant_id=citizen.id)

        with (
            patch("coop_portal.modules.registrations.service.repository") as mock_repo,
            patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        ):
            mock_users.ensure_user_has_tenant = AsyncMock(return_value=county_id)
            mock_repo.get_draft_for_user = AsyncMock(return_value=draft)
            mock_repo.create_draft = AsyncMock()

            saved = await service.save_draft(
                mock_db, citizen.id, {"operating_area": "Kiambu"}, current_step=2
            )

        assert saved is draft
        assert draft.current_step == 2
        mock_repo.create_draft.assert_not_called()
        mock_repo.apply_form.assert_called_once_with(draft, {"operating_area": "Kiambu"})
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_first_save_reuses_existing_draft(self, mock_db, citizen, county_id):
        draft = _application(county_id, status=RegistrationStatus.DRAFT, applicant_id=citizen.id)

        with (
            patch("coop_portal.modules.registrations.service.repository") as mock_repo,
            patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        ):
            mock_users.ensure_user_has_tenant = AsyncMock(return_value=county_id)
            mock_repo.get_draft_for_user = AsyncMock(side_effect=[None, draft])
            mock_repo.create_draft = AsyncMock(side_effect=NumberingConflictError("REG"))

            saved = await service.save_draft(mock_db, citizen.id, {"proposed_name": "Umoja"})

        assert saved is draft
        assert mock_repo.get_draft_for_user.await_count == 2
        mock_repo.apply_form.assert_called_once_with(draft, {"proposed_name": "Umoja"})
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_conflict_without_draft_is_raised(self, mock_db, citizen, county_id):
        with (
            patch("coop_portal.modules.registrations.service.repository") as mock_repo,
            patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        ):
            mock_users.ensure_user_has_tenant = AsyncMock(return_value=county_id)
            mock_repo.get_draft_for_user = AsyncMock(return_value=None)
            mock_repo.create_draft = AsyncMock(side_effect=NumberingConflictError("REG"))

            with pytest.raises(NumberingConflictError):
                await service.save_draft(mock_db, citizen.id, {"proposed_name": "Umoja"})

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_load_draft(self, mock_db, citizen, county_id):
        draft = _application(county_id, status=RegistrationStatus.DRAFT, applicant_id=citizen.id)

        with patch("coop_portal.modules.registrations.service.repository") as mock_repo:
            mock_repo.get_draft_for_user = AsyncMock(return_value=draft)

            assert await service.load_draft(mock_db, citizen.id) is draft

        mock_repo.get_draft_for_user.assert_awaited_once_with(mock_db, citizen.id)


# ============================================================================
# get_application
# ============================================================================


class TestGetApplication:
    """Tests for application visibility."""

    @pytest.mark.asyncio
    async def test_applicant_sees_own(self, mock_db, citizen, county_id):
        application = _application(county_id, applicant_id=citizen.id)

        with patch("coop_portal.modules.registrations.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=application)
            assert await service.get_application(mock_db, application.id, citizen) is application

    @pytest.mark.asyncio
    async def test_other_citizen_gets_not_found(self, mock_db, citizen, county_id):
        application = _application(county_id)

        with patch("coop_portal.modules.registrations.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=application)
            with pytest.raises(NotFoundError):
                await service.get_application(mock_db, application.id, citizen)

    @pytest.mark.asyncio
    async def test_county_staff_limited_to_their_county(self, mock_db, county_officer):
        application = _application(uuid4())

        with patch("coop_portal.modules.registrations.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=application)
            with pytest.raises(NotFoundError):
                await service.get_application(mock_db, application.id, county_officer)

    @pytest.mark.asyncio
    async def test_super_admin_sees_any(self, mock_db, super_admin):
        application = _application(uuid4())

        with patch("coop_portal.modules.registrations.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=application)
            assert await service.get_application(mock_db, application.id, super_admin) is application


# ============================================================================
# approve / reject
# ============================================================================


@pytest.mark.asyncio
async def test_approve_creates_cooperative_and_grants_role(mock_db, county_admin, county_id):
    application = _application(county_id)
    cooperative = MagicMock()
    cooperative.id = uuid4()
    cooperative.name = application.proposed_name
    cooperative.registration_number = "COOP-2025-00001"

    with (
        patch("coop_portal.modules.registrations.service.repository") as mock_repo,
        patch("coop_portal.modules.registrations.service.reviews") as mock_reviews,
        patch("coop_portal.modules.registrations.service.cooperative_service") as mock_coops,
        patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        patch("coop_portal.modules.registrations.service.notify_safely", new_callable=AsyncMock) as mock_notify,
        patch(
            "coop_portal.modules.registrations.service.send_registration_approved",
            new_callable=AsyncMock,
        ) as mock_email,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_reviews.decide = AsyncMock(return_value=application)
        mock_coops.create_from_application = AsyncMock(return_value=cooperative)
        mock_users.grant_role = AsyncMock()

        result, created = await service.approve(mock_db, application.id, county_admin)

    assert result is application
    assert created is cooperative
    assert application.cooperative_id == cooperative.id
    assert mock_reviews.decide.call_args.kwargs["commit"] is False
    grant = mock_users.grant_role.call_args.kwargs
    assert grant["role"] == Role.COOPERATIVE_ADMIN
    assert grant["cooperative_id"] == cooperative.id
    assert grant["user_id"] == application.applicant_user_id
    mock_db.commit.assert_awaited_once()
    mock_notify.assert_awaited_once()
    mock_email.assert_awaited_once()


@pytest.mark.asyncio
async def test_approve_rolls_back_when_role_grant_fails(mock_db, county_admin, county_id):
    application = _application(county_id)
    cooperative = MagicMock()
    cooperative.id = uuid4()

    with (
        patch("coop_portal.modules.registrations.service.repository") as mock_repo,
        patch("coop_portal.modules.registrations.service.reviews") as mock_reviews,
        patch("coop_portal.modules.registrations.service.cooperative_service") as mock_coops,
        patch("coop_portal.modules.registrations.service.user_service") as mock_users,
        patch("coop_portal.modules.registrations.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_reviews.decide = AsyncMock(return_value=application)
        mock_coops.create_from_application = AsyncMock(return_value=cooperative)
        mock_users.grant_role = AsyncMock(side_effect=RuntimeError("connection lost"))

        with pytest.raises(RuntimeError):
            await service.approve(mock_db, application.id, county_admin)

    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_called()
    mock_notify.assert_not_called()


@pytest.mark.asyncio
async def test_reject_without_reason_is_refused(mock_db, county_admin, county_id):
    application = _application(county_id, RegistrationStatus.UNDER_REVIEW)

    with (
        patch("coop_portal.modules.registrations.service.repository") as mock_repo,
        patch("coop_portal.modules.reviews.service.repository") as mock_review_repo,
        patch(
            "coop_portal.modules.registrations.service.send_registration_rejected",
            new_callable=AsyncMock,
        ) as mock_email,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_review_repo.compare_and_set_status = AsyncMock(return_value=True)

        with pytest.raises(NotesRequiredError):
            await service.reject(mock_db, application.id, county_admin, "  ")

    mock_review_repo.compare_and_set_status.assert_not_called()
    mock_email.assert_not_called()
    assert application.status == RegistrationStatus.UNDER_REVIEW


@pytest.mark.asyncio
async def test_resubmit_requires_info_request(mock_db, citizen, county_id):
    application = _application(county_id, RegistrationStatus.UNDER_REVIEW, applicant_id=citizen.id)

    with patch("coop_portal.modules.registrations.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=application)

        with pytest.raises(service.ApplicationNotEditableError):
            await service.resubmit(mock_db, citizen.id, application.id, {})
