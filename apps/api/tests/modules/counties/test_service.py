"""
Unit tests for county management.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.counties import service
from coop_portal.modules.counties.schemas import CountyCreate


@pytest.mark.asyncio
async def test_duplicate_county_code(mock_db):
    with patch("coop_portal.modules.counties.service.repository") as mock_repo:
        mock_repo.get_by_code = AsyncMock(return_value=MagicMock())
        mock_repo.create = AsyncMock()

        with pytest.raises(service.DuplicateCountyCodeError) as exc_info:
            await service.create_county(mock_db, CountyCreate(name="Nairobi", county_code="047"))

    assert exc_info.value.message == "A county with this county code already exists"
    assert exc_info.value.status_code == 409
    mock_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_create_county(mock_db):
    county = MagicMock()

    with patch("coop_portal.modules.counties.service.repository") as mock_repo:
        mock_repo.get_by_code = AsyncMock(return_value=None)
        mock_repo.create = AsyncMock(return_value=county)

        result = await service.create_county(mock_db, CountyCreate(name="Kiambu", county_code="022"))

    assert result is county
    assert mock_repo.create.call_args.kwargs["is_active"] is True
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_is_soft(mock_db):
    county = MagicMock()
    county.is_active = True

    with patch("coop_portal.modules.counties.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=county)

        await service.delete_county(mock_db, uuid4())

    assert county.is_active is False
