"""
Notification API endpoints.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.api.v1.middleware import require_authentication
from careflow.controllers.notification_controller import NotificationController
from careflow.core.config import settings
from careflow.db.repositories.notification_repository import NotificationRepository
from careflow.db.session import get_db, get_sessionmaker
from careflow.deps.di_container import get_container
from careflow.models.notification import NotificationType
from careflow.models.user import User
from careflow.schemas.notification import (
    NotificationCreate,
    NotificationIdsRequest,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountByTypeResponse,
    UnreadCountResponse,
)
from careflow.services.notification_stream import notification_event_stream

router = APIRouter()


def _controller(db: AsyncSession) -> NotificationController:
    return get_container().notification_controller(session=db)


@router.post("", response_model=Optional[NotificationResponse])
async def create_notification(
    notification_data: NotificationCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """
    Create a notification for a user in your organization.
    Returns 204 when the recipient has disabled this type and it was not forced.
    """
    notification = await _controller(db).create(notification_data, current_user)
    if notification is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    response.status_code = status.HTTP_201_CREATED
    return notification


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    type: Optional[NotificationType] = Query(None),
    unread_only: bool = Query(False),
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> NotificationListResponse:
    """List your notifications, newest first."""
    return await _controller(db).list_notifications(
        current_user,
        type=type,
        unread_only=unread_only,
        limit=limit,
    )


@router.get("/recent", response_model=NotificationListResponse)
async def recent_notifications(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> NotificationListResponse:
    """Notifications from the recent window."""
    return await _controller(db).get_recent(current_user, limit=limit)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UnreadCountResponse:
    """Unread count for clients that poll instead of streaming."""
    return await _controller(db).get_unread_count(current_user)


@router.get("/unread-count/by-type", response_model=UnreadCountByTypeResponse)
async def unread_count_by_type(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> UnreadCountByTypeResponse:
    """Unread counts per notification type."""
    return await _controller(db).get_unread_count_by_type(current_user)


@router.get("/stream")
async def stream_notifications(
    request: Request,
    current_user: User = Depends(require_authentication),
) -> StreamingResponse:
    """Server-sent events: pushed notifications plus periodic unread counts."""
    user_id = current_user.id
    organization_id = current_user.organization_id
    subscription = get_container().notification_broker().subscribe(user_id)

    async def count_unread() -> int:
        async with get_sessionmaker()() as session:
            return await NotificationRepository(session).count_unread(user_id, organization_id)

    return StreamingResponse(
        notification_event_stream(
            subscription,
            count_unread,
            settings.NOTIFICATION_POLL_INTERVAL_SECONDS,
            is_disconnected=request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> dict:
    """Mark all your notifications as read."""
    return {"updated": await _controller(db).mark_all_as_read(current_user)}


@router.post("/read")
async def mark_multiple_read(
    body: NotificationIdsRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> dict:
    """Mark several of your notifications as read."""
    return {"updated": await _controller(db).mark_multiple_as_read(body.ids, current_user)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> NotificationResponse:
    """Mark one of your notifications as read."""
    return await _controller(db).mark_as_read(notification_id, current_user)


@router.delete("/read")
async def clear_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> dict:
    """Delete all of your read notifications."""
    return {"deleted": await _controller(db).clear_read(current_user)}


@router.post("/delete")
async def remove_multiple(
    body: NotificationIdsRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> dict:
    """Delete several of your notifications."""
    return {"deleted": await _controller(db).remove_multiple(body.ids, current_user)}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_notification(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """Delete one of your notifications."""
    await _controller(db).remove(notification_id, current_user)
