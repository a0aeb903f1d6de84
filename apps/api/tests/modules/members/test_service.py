"""
Unit tests for the members service.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from coop_portal.modules.members import service
from coop_portal.modules.members.schemas import MemberCreate
from coop_portal.modules.shared.errors import NotFoundError


def _member_data(**overrides):
    fields = {
        "member_number": "M001",
        "full_name": "Grace Akinyi",
        "id_number": "12345678",
        "phone": "0712345678",
    }
    fields.update(overrides)
    return MemberCreate(**fields)


@pytest.mark.asyncio
async def test_add_member_recounts_active_members(mock_db, cooperative_admin):
    coop_id = cooperative_admin.cooperative_id
    member = MagicMock()
    member.member_number = "M001"

    with (
        patch("coop_portal.modules.members.service.repository") as mock_repo,
        patch("coop_portal.modules.members.service.cooperative_service") as mock_coops,
    ):
        mock_coops.get_cooperative = AsyncMock()
        mock_coops.recount_members = AsyncMock(return_value=1)
        mock_repo.get_by_number = AsyncMock(return_value=None)
        mock_repo.create = AsyncMock(return_value=member)

        result = await service.add_member(mock_db, coop_id, _member_data(), cooperative_admin)

    assert result is member
    assert mock_repo.create.call_args.kwargs["is_active"] is True
    assert mock_repo.create.call_args.kwargs["date_joined"] is not None
    mock_coops.recount_members.assert_awaited_once_with(mock_db, coop_id)
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_duplicate_member_number_is_rejected(mock_db, cooperative_admin):
    with (
        patch("coop_portal.modules.members.service.repository") as mock_repo,
        patch("coop_portal.modules.members.service.cooperative_service") as mock_coops,
    ):
        mock_coops.get_cooperative = AsyncMock()
        mock_repo.get_by_number = AsyncMock(return_value=MagicMock())
        mock_repo.create = AsyncMock()

        with pytest.raises(service.DuplicateMemberNumberError) as exc_info:
            await service.add_member(
                mock_db, cooperative_admin.cooperative_id, _member_data(), cooperative_admin
            )

    assert exc_info.value.status_code == 409
    assert exc_info.value.message == "A member with this member number already exists in this cooperative"
    mock_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_concurrent_duplicate_maps_to_conflict(mock_db, cooperative_admin):
    with (
        patch("coop_portal.modules.members.service.repository") as mock_repo,
        patch("coop_portal.modules.members.service.cooperative_service") as mock_coops,
    ):
        mock_coops.get_cooperative = AsyncMock()
        mock_repo.get_by_number = AsyncMock(return_value=None)
        mock_repo.create = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("uq_members_cooperative_number"))
        )

        with pytest.raises(service.DuplicateMemberNumberError):
            await service.add_member(
                mock_db, cooperative_admin.cooperative_id, _member_data(), cooperative_admin
            )

    mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_member_of_another_cooperative_is_not_found(mock_db, cooperative_admin):
    member = MagicMock()
    member.cooperative_id = uuid4()

    with (
        patch("coop_portal.modules.members.service.repository") as mock_repo,
        patch("coop_portal.modules.members.service.cooperative_service") as mock_coops,
    ):
        mock_coops.get_cooperative = AsyncMock()
        mock_repo.get_by_id = AsyncMock(return_value=member)

        with pytest.raises(NotFoundError):
            await service.get_member(
                mock_db, cooperative_admin.cooperative_id, uuid4(), cooperative_admin
            )


@pytest.mark.asyncio
async def test_deactivate_recounts(mock_db, cooperative_admin):
    coop_id = cooperative_admin.cooperative_id
    member = MagicMock()
    member.cooperative_id = coop_id
    member.is_active = True

    with (
        patch("coop_portal.modules.members.service.repository") as mock_repo,
        patch("coop_portal.modules.members.service.cooperative_service") as mock_coops,
    ):
        mock_coops.get_cooperative = AsyncMock()
        mock_coops.recount_members = AsyncMock(return_value=0)
        mock_repo.get_by_id = AsyncMock(return_value=member)

        await service.deactivate_member(mock_db, coop_id, uuid4(), cooperative_admin)

    assert member.is_active is False
    mock_coops.recount_members.assert_awaited_once_with(mock_db, coop_id)
