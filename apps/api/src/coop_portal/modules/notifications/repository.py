"""
Notifications Repository

Database operations for in-app notifications.
"""

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Notification, NotificationType


async def create(
    db: AsyncSession,
    *,
    user_id: UUID,
    title: str,
    message: str,
    type: NotificationType,
    link: str | None = None,
) -> Notification:
    """Add a notification to the session and flush it."""
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        link=link,
        is_read=False,
    )
    db.add(notification)
    await db.flush()
    return notification


async def get_by_id(db: AsyncSession, notification_id: UUID) -> Notification | None:
    return await db.get(Notification, notification_id)


async def list_for_user(
    db: AsyncSession,
    user_id: UUID,
    *,
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[Notification], int]:
    """Get a user's notifications, newest first, with the total count."""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(Notification.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def count_unread(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return result.scalar() or 0


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    """Mark every unread notification of a user as read. Returns rows updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount or 0
