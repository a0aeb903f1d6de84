"""
Unit tests for the notifications service.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.notifications import service
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice
from coop_portal.modules.shared.errors import NotFoundError


def _notice():
    return Notice(user_id=uuid4(), title="Hello", message="World", type=NotificationType.INFO)


@pytest.mark.asyncio
async def test_notify_persists_and_commits(mock_db):
    with patch("coop_portal.modules.notifications.service.repository") as mock_repo:
        mock_repo.create = AsyncMock(return_value=MagicMock())

        await service.notify(mock_db, _notice())

    assert mock_repo.create.call_args.kwargs["type"] == NotificationType.INFO
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_notify_safely_swallows_failures(mock_db):
    with patch("coop_portal.modules.notifications.service.repository") as mock_repo:
        mock_repo.create = AsyncMock(side_effect=RuntimeError("db down"))

        assert await service.notify_safely(mock_db, _notice()) is None

    mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_mark_read_only_for_owner(mock_db):
    notification = MagicMock()
    notification.user_id = uuid4()

    with patch("coop_portal.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=notification)

        with pytest.raises(NotFoundError):
            await service.mark_read(mock_db, uuid4(), uuid4())

    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_mark_read(mock_db):
    owner = uuid4()
    notification = MagicMock()
    notification.user_id = owner
    notification.is_read = False

    with patch("coop_portal.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=notification)

        await service.mark_read(mock_db, owner, uuid4())

    assert notification.is_read is True
