"""
Unit tests for the trainer accreditation service.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.core.permissions import Role
from coop_portal.modules.shared.errors import NotFoundError, ValidationFailedError
from coop_portal.modules.trainers import service
from coop_portal.modules.trainers.models import TrainerApplication, TrainerApplicationStatus


def _application(user_id=None, status=TrainerApplicationStatus.UNDER_REVIEW):
    application = MagicMock(spec=TrainerApplication)
    application.id = uuid4()
    application.application_number = "TRN-2025-0001"
    application.user_id = user_id or uuid4()
    application.status = status
    application.specializations = ["governance"]
    application.languages = ["english", "swahili"]
    return application


# ============================================================================
# apply
# ============================================================================


@pytest.mark.asyncio
async def test_apply_requires_terms(mock_db, citizen):
    data = MagicMock()
    data.terms_accepted = False

    with patch("coop_portal.modules.trainers.service.repository") as mock_repo:
        mock_repo.create_application = AsyncMock()

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.apply(mock_db, data, citizen)

    assert "terms_accepted" in exc_info.value.errors
    mock_repo.create_application.assert_not_called()


@pytest.mark.asyncio
async def test_apply_refuses_second_open_application(mock_db, citizen):
    data = MagicMock()
    data.terms_accepted = True

    with patch("coop_portal.modules.trainers.service.repository") as mock_repo:
        mock_repo.get_open_for_user = AsyncMock(return_value=_application(citizen.id))
        mock_repo.create_application = AsyncMock()

        with pytest.raises(service.OpenTrainerApplicationError):
            await service.apply(mock_db, data, citizen)

    mock_repo.create_application.assert_not_called()


# ============================================================================
# get_application
# ============================================================================


@pytest.mark.asyncio
async def test_applicant_cannot_see_others_application(mock_db, citizen):
    with patch("coop_portal.modules.trainers.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=_application())

        with pytest.raises(NotFoundError):
            await service.get_application(mock_db, uuid4(), citizen)


# ============================================================================
# approve
# ============================================================================


@pytest.mark.asyncio
async def test_approve_creates_profile_and_grants_trainer_role(mock_db, super_admin):
    application = _application()
    profile = MagicMock()

    with (
        patch("coop_portal.modules.trainers.service.repository") as mock_repo,
        patch("coop_portal.modules.trainers.service.reviews") as mock_reviews,
        patch("coop_portal.modules.trainers.service.user_service") as mock_users,
        patch("coop_portal.modules.trainers.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_repo.get_profile_by_user = AsyncMock(return_value=None)
        mock_repo.create_profile = AsyncMock(return_value=profile)
        mock_reviews.decide = AsyncMock(return_value=application)
        mock_users.grant_role = AsyncMock()

        result, created = await service.approve(mock_db, application.id, super_admin)

    assert created is profile
    assert mock_users.grant_role.call_args.kwargs["role"] == Role.TRAINER
    mock_db.commit.assert_awaited_once()
    mock_notify.assert_awaited_once()


@pytest.mark.asyncio
async def test_approve_rolls_back_when_profile_creation_fails(mock_db, super_admin):
    application = _application()

    with (
        patch("coop_portal.modules.trainers.service.repository") as mock_repo,
        patch("coop_portal.modules.trainers.service.reviews") as mock_reviews,
        patch("coop_portal.modules.trainers.service.user_service") as mock_users,
        patch("coop_portal.modules.trainers.service.notify_safely", new_callable=AsyncMock) as mock_notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_repo.get_profile_by_user = AsyncMock(return_value=None)
        mock_repo.create_profile = AsyncMock(side_effect=RuntimeError("insert failed"))
        mock_reviews.decide = AsyncMock(return_value=application)
        mock_users.grant_role = AsyncMock()

        with pytest.raises(RuntimeError):
            await service.approve(mock_db, application.id, super_admin)

    mock_users.grant_role.assert_not_called()
    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_called()
    mock_notify.assert_not_called()


@pytest.mark.asyncio
async def test_approve_reactivates_existing_profile(mock_db, super_admin):
    application = _application()
    profile = MagicMock()
    profile.is_active = False

    with (
        patch("coop_portal.modules.trainers.service.repository") as mock_repo,
        patch("coop_portal.modules.trainers.service.reviews") as mock_reviews,
        patch("coop_portal.modules.trainers.service.user_service") as mock_users,
        patch("coop_portal.modules.trainers.service.notify_safely", new_callable=AsyncMock),
    ):
        mock_repo.get_by_id = AsyncMock(return_value=application)
        mock_repo.get_profile_by_user = AsyncMock(return_value=profile)
        mock_repo.create_profile = AsyncMock()
        mock_reviews.decide = AsyncMock(return_value=application)
        mock_users.grant_role = AsyncMock()

        await service.approve(mock_db, application.id, super_admin)

    assert profile.is_active is True
    assert profile.application_id == application.id
    mock_repo.create_profile.assert_not_called()
