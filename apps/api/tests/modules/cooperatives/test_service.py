"""
Unit tests for the cooperatives service.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.cooperatives import service
from coop_portal.modules.cooperatives.models import Cooperative, CooperativeStatus
from coop_portal.modules.shared.errors import NotFoundError, PermissionDeniedError


def _cooperative(tenant_id, status=CooperativeStatus.ACTIVE):
    cooperative = MagicMock(spec=Cooperative)
    cooperative.id = uuid4()
    cooperative.tenant_id = tenant_id
    cooperative.status = status
    cooperative.is_active = True
    return cooperative


class TestAccess:
    """Tests for cooperative visibility per role."""

    def test_county_staff_see_their_county(self, county_officer, county_id):
        assert service.can_access_cooperative(county_officer, _cooperative(county_id))
        assert not service.can_access_cooperative(county_officer, _cooperative(uuid4()))

    def test_cooperative_admin_sees_only_own(self, cooperative_admin, county_id):
        own = _cooperative(county_id)
        own.id = cooperative_admin.cooperative_id
        assert service.can_access_cooperative(cooperative_admin, own)
        assert not service.can_access_cooperative(cooperative_admin, _cooperative(county_id))

    def test_citizen_sees_none(self, citizen, county_id):
        assert not service.can_access_cooperative(citizen, _cooperative(county_id))


@pytest.mark.asyncio
async def test_out_of_scope_cooperative_is_not_found(mock_db, county_officer):
    with patch("coop_portal.modules.cooperatives.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=_cooperative(uuid4()))

        with pytest.raises(NotFoundError):
            await service.get_cooperative(mock_db, uuid4(), county_officer)


@pytest.mark.asyncio
async def test_create_from_application(mock_db, county_id):
    application = MagicMock()
    application.id = uuid4()
    application.application_number = "REG-2025-0001"
    application.tenant_id = county_id
    application.proposed_name = "Umoja Dairy Farmers Cooperative"
    application.proposed_members = 25
    application.proposed_share_capital = None
    application.type_id = uuid4()
    application.address = "Moi Avenue, Nairobi"
    application.contact_email = "jane@umoja.co.ke"
    application.contact_phone = "0712345678"
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    mock_db.execute = AsyncMock(return_value=result)

    cooperative = await service.create_from_application(mock_db, application)

    assert cooperative.registration_number.startswith("COOP-")
    assert cooperative.registration_number.endswith("-00001")
    assert cooperative.status == CooperativeStatus.REGISTERED
    assert cooperative.tenant_id == county_id
    assert cooperative.total_members == 25
    assert cooperative.total_share_capital == Decimal("0")
    assert cooperative.application_id == application.id
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_deregistered_cooperative_is_frozen(mock_db, super_admin):
    cooperative = _cooperative(uuid4(), CooperativeStatus.DEREGISTERED)

    with patch("coop_portal.modules.cooperatives.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=cooperative)

        with pytest.raises(PermissionDeniedError):
            await service.update_status(
                mock_db, cooperative.id, CooperativeStatus.ACTIVE, super_admin
            )


@pytest.mark.asyncio
async def test_deregistration_deactivates(mock_db, super_admin):
    cooperative = _cooperative(uuid4())

    with patch("coop_portal.modules.cooperatives.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=cooperative)

        await service.update_status(
            mock_db, cooperative.id, CooperativeStatus.DEREGISTERED, super_admin
        )

    assert cooperative.is_active is False


@pytest.mark.asyncio
async def test_recount_members(mock_db):
    cooperative = _cooperative(uuid4())

    with patch("coop_portal.modules.cooperatives.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=cooperative)
        mock_repo.count_active_members = AsyncMock(return_value=12)

        assert await service.recount_members(mock_db, cooperative.id) == 12

    assert cooperative.total_members == 12
    mock_db.flush.assert_awaited_once()
