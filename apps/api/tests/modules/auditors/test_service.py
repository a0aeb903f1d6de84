"""
Unit tests for the auditor accreditation service.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.auditors import service
from coop_portal.modules.auditors.models import AuditorApplication, AuditorApplicationStatus
from coop_portal.modules.reviews.service import RequestAlreadyDecidedError
from coop_portal.modules.shared.errors import NotFoundError, ValidationFailedError


def _application(user_id=None, status=AuditorApplicationStatus.UNDER_REVIEW):
    application = MagicMock(spec=AuditorApplication)
    application.id = uuid4()
    application.application_number = "AUD-2025-0001"
    application.user_id = user_id or uuid4()
    application.status = status
    application.specializations = ["SACCO", "DAIRY"]
    application.verification_notes = None
    return application


# ============================================================================
# apply
# ============================================================================


@pytest.mark.asyncio
async def test_apply_requires_terms(mock_db, citizen):
    data = MagicMock()
    data.terms_accepted = False

    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.create_application = AsyncMock()

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.apply(mock_db, data, citizen)

    assert "terms_accepted" in exc_info.value.errors
    mock_repo.create_application.assert_not_called()


@pytest.mark.asyncio
async def test_apply_refuses_second_open_application(mock_db, citizen):
    data = MagicMock()
    data.terms_accepted = True

    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_open_for_user = AsyncMock(return_value=_application(citizen.id))
        mock_repo.create_application = AsyncMock()

        with pytest.raises(service.OpenAuditorApplicationError):
            await service.apply(mock_db, data, citizen)

    mock_repo.create_application.assert_not_called()


@pytest.mark.asyncio
async def test_apply_refuses_active_auditor(mock_db, citizen):
    data = MagicMock()
    data.terms_accepted = True
    profile = MagicMock()
    profile.is_active = True

    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_open_for_user = AsyncMock(return_value=None)
        mock_repo.get_profile_by_user = AsyncMock(return_value=profile)
        mock_repo.create_application = AsyncMock()

        with pytest.raises(service.AlreadyAuditorError):
            await service.apply(mock_db, data, citizen)

    mock_repo.create_application.assert_not_called()


@pytest.mark.asyncio
async def test_apply_stores_specializations_as_values(mock_db, citizen):
    from coop_portal.modules.auditors.models import AuditorSpecialization

    data = MagicMock()
    data.terms_accepted = True
    data.specializations = [AuditorSpecialization.SACCO, AuditorSpecialization.HOUSING]
    data.model_dump.return_value = {"full_name": "Peter Otieno", "specializations": []}
    created = _application(citizen.id, AuditorApplicationStatus.PENDING)

    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_open_for_user = AsyncMock(return_value=None)
        mock_repo.get_profile_by_user = AsyncMock(return_value=None)
        mock_repo.create_application = AsyncMock(return_value=created)

        result = await service.apply(mock_db, data, citizen)

    assert result is created
    kwargs = mock_repo.create_application.call_args.kwargs
    assert kwargs["specializations"] == ["SACCO", "HOUSING"]
    assert kwargs["user_id"] == citizen.id
    assert kwargs["submitted_at"] is not None
    mock_db.commit.assert_awaited_once()


# ============================================================================
# get_application
# ============================================================================


@pytest.mark.asyncio
async def test_applicant_cannot_see_others_application(mock_db, citizen):
    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=_application())

        with pytest.raises(NotFoundError):
            await service.get_application(mock_db, uuid4(), citizen)


@pytest.mark.asyncio
async def test_county_officer_is_not_an_auditor_reviewer(mock_db, county_officer):
    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=_application())

        with pytest.raises(NotFoundError):
            await service.get_application(mock_db, uuid4(), county_officer)


# ============================================================================
# verification notes
# ============================================================================


@pytest.mark.asyncio
async def test_verification_notes_saved_while_open(mock_db, county_admin):
    application = _application()

    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=application)

        await service.add_verification_notes(
            mock_db, application.id, county_admin, "Confirmed with ICPAK register"
        )

    assert application.verification_notes == "Confirmed with ICPAK register"
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_verification_notes_refused_after_decision(mock_db, county_admin):
    application = _application(status=AuditorApplicationStatus.APPROVED)

    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=application)

        with pytest.raises(RequestAlreadyDecidedError):
            await service.add_verification_notes(mock_db, application.id, county_admin, "late")

    mock_db.commit.assert_not_called()


# ============================================================================
# approve
# ============================================================================


@pytest.mark.asyncio
async def test_approve_creates_directory_profile(mock_db, county_admin):
    application = _application()
    profile = MagicMock()

    with (
        patch("coop_portal.modules.auditors.service.repository") as mock_repo,
        patch("coop_portal.modules.auditors.service.reviews") as mock_reviews,
        patch("coop_portal.modules.auditors.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_repo.get_profile_by_user = AsyncMock(return_value=None)
        mock_repo.create_profile = AsyncMock(return_value=profile)
        mock_reviews.decide = AsyncMock(return_value=application)

        result, created = await service.approve(mock_db, application.id, county_admin)

    assert result is application
    assert created is profile
    assert mock_reviews.decide.call_args.kwargs["commit"] is False
    mock_db.commit.assert_awaited_once()
    mock_notify.assert_awaited_once()


@pytest.mark.asyncio
async def test_approve_rolls_back_when_profile_creation_fails(mock_db, super_admin):
    application = _application()

    with (
        patch("coop_portal.modules.auditors.service.repository") as mock_repo,
        patch("coop_portal.modules.auditors.service.reviews") as mock_reviews,
        patch("coop_portal.modules.auditors.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_repo.get_profile_by_user = AsyncMock(return_value=None)
        mock_repo.create_profile = AsyncMock(side_effect=RuntimeError("insert failed"))
        mock_reviews.decide = AsyncMock(return_value=application)

        with pytest.raises(RuntimeError):
            await service.approve(mock_db, application.id, super_admin)

    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_called()
    mock_notify.assert_not_called()


@pytest.mark.asyncio
async def test_approve_reactivates_existing_profile(mock_db, super_admin):
    application = _application()
    profile = MagicMock()
    profile.is_active = False

    with (
        patch("coop_portal.modules.auditors.service.repository") as mock_repo,
        patch("coop_portal.modules.auditors.service.reviews") as mock_reviews,
        patch("coop_portal.modules.auditors.service.notify_safely", new_callable=AsyncMock),
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_repo.get_profile_by_user = AsyncMock(return_value=profile)
        mock_repo.create_profile = AsyncMock()
        mock_reviews.decide = AsyncMock(return_value=application)

        await service.approve(mock_db, application.id, super_admin)

    assert profile.is_active is True
    mock_repo.copy_credentials.assert_called_once_with(profile, application)
    mock_repo.create_profile.assert_not_called()


# ============================================================================
# directory
# ============================================================================


@pytest.mark.asyncio
async def test_directory_page_size_is_capped(mock_db):
    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.list_directory = AsyncMock(return_value=([], 0))

        result = await service.list_directory(mock_db, page=3, page_size=500)

    assert result["page_size"] == 100
    assert mock_repo.list_directory.call_args.kwargs["skip"] == 200


@pytest.mark.asyncio
async def test_inactive_profile_is_hidden(mock_db):
    profile = MagicMock()
    profile.is_active = False

    with patch("coop_portal.modules.auditors.service.repository") as mock_repo:
        mock_repo.get_profile = AsyncMock(return_value=profile)

        with pytest.raises(NotFoundError):
            await service.get_profile(mock_db, uuid4())
