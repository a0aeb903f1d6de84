"""
Notifications Router

Endpoints:
- GET /notifications - List the caller's notifications
- GET /notifications/unread-count - Badge count
- POST /notifications/{id}/read - Mark one as read
- POST /notifications/read-all - Mark all as read
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user
from coop_portal.core.database import get_db
from coop_portal.modules.notifications import service
from coop_portal.modules.notifications.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=NotificationListResponse, summary="List Notifications")
async def list_notifications(
    unread_only: bool = Query(False, description="Only unread notifications"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> NotificationListResponse:
    result = await service.list_notifications(
        db, user.id, unread_only=unread_only, page=page, page_size=page_size
    )
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in result["items"]],
        total_count=result["total_count"],
        unread_count=result["unread_count"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread Count")
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await service.unread_count(db, user.id))


@router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark All Read")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await service.mark_all_read(db, user.id))


@router.post("/{notification_id}/read", response_model=NotificationResponse, summary="Mark Read")
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> NotificationResponse:
    try:
        notification = await service.mark_read(db, user.id, notification_id)
        return NotificationResponse.model_validate(notification)
    except ServiceError as e:
        raise_http_error(e)
