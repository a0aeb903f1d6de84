"""
Notifications Service

Creates and reads in-app notifications.

Notifications are side effects of workflow transitions (application decided,
complaint assigned, amendment approved ...). They are sent after the
transition has been committed, and a failure to notify never fails the
transition itself: ``notify_safely`` logs and moves on.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.notifications import repository
from coop_portal.modules.notifications.models import Notification, NotificationType
from coop_portal.modules.shared.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """A notification waiting to be delivered."""

    user_id: UUID
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    link: str | None = None


async def notify(db: AsyncSession, notice: Notice) -> Notification:
    """Persist a notification and commit."""
    notification = await repository.create(
        db,
        user_id=notice.user_id,
        title=notice.title,
        message=notice.message,
        type=notice.type,
        link=notice.link,
    )
    await db.commit()
    logger.info(f"Notified user {notice.user_id}: {notice.title}")
    return notification


async def notify_safely(db: AsyncSession, notice: Notice) -> Notification | None:
    """
    Send a notification without letting a failure escape.

    Used after a workflow transition has already been committed.
    """
    try:
        return await notify(db, notice)
    except Exception as e:
        logger.error(f"Failed to notify user {notice.user_id} ({notice.title}): {e}", exc_info=True)
        await db.rollback()
        return None


async def list_notifications(
    db: AsyncSession,
    user_id: UUID,
    *,
    unread_only: bool = False,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """Get a page of the caller's notifications plus the unread badge count."""
    page_size = min(max(1, page_size), 100)
    skip = (max(1, page) - 1) * page_size

    items, total = await repository.list_for_user(
        db, user_id, unread_only=unread_only, skip=skip, limit=page_size
    )
    unread = await repository.count_unread(db, user_id)

    return {
        "items": items,
        "total_count": total,
        "unread_count": unread,
        "page": page,
        "page_size": page_size,
    }


async def unread_count(db: AsyncSession, user_id: UUID) -> int:
    return await repository.count_unread(db, user_id)


async def mark_read(db: AsyncSession, user_id: UUID, notification_id: UUID) -> Notification:
    """
    Mark one notification as read.

    Raises:
        NotFoundError: If the notification does not exist or belongs to someone else
    """
    notification = await repository.get_by_id(db, notification_id)

    if not notification or notification.user_id != user_id:
        logger.warning(f"Notification {notification_id} not found for user {user_id}")
        raise NotFoundError("Notification", notification_id)

    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    updated = await repository.mark_all_read(db, user_id)
    logger.info(f"Marked {updated} notifications read for user {user_id}")
    return updated
