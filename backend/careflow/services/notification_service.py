"""
Notification service with business logic.

Every notification is addressed to exactly one user. Delivery honors the
recipient's per-type in-app preference unless forced, and committed rows are
pushed to live subscribers through the notification broker.
"""

import logging
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.config import settings
from careflow.core.exceptions import AppException, AuthorizationError, NotFoundError
from careflow.db.repositories.notification_repository import NotificationRepository
from careflow.db.repositories.user_repository import UserRepository
from careflow.models.notification import Notification, NotificationType
from careflow.models.user import User
from careflow.schemas.notification import (
    NotificationBroadcast,
    NotificationCreate,
    NotificationResponse,
)
from careflow.services.base_service import BaseService
from careflow.services.notification_broker import NotificationBroker, notification_broker
from careflow.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def is_type_enabled(preferences: Optional[dict], type: NotificationType) -> bool:
    """
    Check a preferences document for an in-app switch.
    Only an explicit False disables a type.
    """
    in_app = (preferences or {}).get("in_app") or {}
    return in_app.get(NotificationType(type).value) is not False


class NotificationService(BaseService):
    """Service for notification operations."""

    def __init__(self, session: AsyncSession, broker: Optional[NotificationBroker] = None):
        self.session = session
        self.broker = broker or notification_broker
        self.notification_repo = NotificationRepository(session)
        self.user_repo = UserRepository(session)

    async def _get_recipient(self, user_id: UUID, actor: User) -> User:
        recipient = await self.user_repo.get(user_id)
        if not recipient:
            raise NotFoundError("User", user_id)
        if recipient.organization_id != actor.organization_id:
            raise AuthorizationError("Recipient belongs to another organization")
        return recipient

    async def _insert(
        self,
        recipient: User,
        data: NotificationCreate,
    ) -> Optional[Notification]:
        """Add a notification row unless the recipient opted out of its type."""
        if not data.force and not is_type_enabled(recipient.notification_preferences, data.type):
            logger.info(
                "Notification skipped by recipient preference",
                extra={"user_id": str(recipient.id), "type": data.type.value},
            )
            return None
        return await self.notification_repo.create(
            organization_id=recipient.organization_id,
            user_id=recipient.id,
            type=data.type,
            title=data.title,
            message=data.message,
            related_entity_type=data.related_entity_type,
            related_entity_id=data.related_entity_id,
        )

    def _publish(self, rows: Iterable[Notification]) -> List[NotificationResponse]:
        responses = [NotificationResponse.model_validate(row) for row in rows]
        for response in responses:
            self.broker.publish(response)
        return responses

    async def create(self, data: NotificationCreate, actor: User) -> Optional[NotificationResponse]:
        """
        Create one notification.

        Returns:
            The stored notification, or None when the recipient's preferences
            disable its type and it was not forced

        Raises:
            NotFoundError: Recipient does not exist
            AuthorizationError: Recipient is in another organization
        """
        recipient = await self._get_recipient(data.user_id, actor)
        row = await self._insert(recipient, data)
        if row is None:
            return None
        await self.session.commit()
        return self._publish([row])[0]

    async def create_for_users(
        self,
        user_ids: Iterable[UUID],
        content: NotificationBroadcast,
        actor: User,
    ) -> List[NotificationResponse]:
        """Create the same notification for several users in one transaction."""
        rows = []
        seen = set()
        for user_id in user_ids:
            if user_id in seen:
                continue
            seen.add(user_id)
            recipient = await self._get_recipient(user_id, actor)
            row = await self._insert(
                recipient,
                NotificationCreate(
                    user_id=user_id,
                    **content.model_dump(),
                ),
            )
            if row is not None:
                rows.append(row)
        if not rows:
            return []
        await self.session.commit()
        return self._publish(rows)

    async def notify_best_effort(
        self,
        user_ids: Iterable[UUID],
        content: NotificationBroadcast,
        actor: User,
    ) -> List[NotificationResponse]:
        """
        Side-effect delivery for other operations.
        Runs after the caller's own commit; failures are logged and rolled back.
        """
        actor_id = actor.id
        try:
            return await self.create_for_users(user_ids, content, actor)
        except (SQLAlchemyError, AppException):
            await self.session.rollback()
            logger.warning(
                "Notification side effect failed",
                extra={"type": content.type.value, "actor_id": str(actor_id)},
                exc_info=True,
            )
            return []

    async def is_type_enabled_for_user(self, user_id: UUID, type: NotificationType) -> bool:
        """Whether the user receives in-app notifications of this type."""
        user = await self.user_repo.get(user_id)
        if not user:
            return True
        return is_type_enabled(user.notification_preferences, type)

    async def list_for_user(
        self,
        actor: User,
        type: Optional[NotificationType] = None,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> Tuple[List[NotificationResponse], int]:
        """List the caller's notifications, newest first."""
        rows = await self.notification_repo.list_for_user(
            actor.id,
            actor.organization_id,
            type=type,
            unread_only=unread_only,
            limit=limit,
        )
        items = [NotificationResponse.model_validate(row) for row in rows]
        return items, len(items)

    async def get_recent(self, actor: User, limit: int = 10) -> List[NotificationResponse]:
        """Notifications from the recent window, newest first."""
        since = utcnow() - timedelta(hours=settings.RECENT_NOTIFICATION_WINDOW_HOURS)
        rows = await self.notification_repo.list_for_user(
            actor.id,
            actor.organization_id,
            since=since,
            limit=limit,
        )
        return [NotificationResponse.model_validate(row) for row in rows]

    async def get_unread_count(self, actor: User) -> int:
        """Unread count, always recomputed from the store."""
        return await self.notification_repo.count_unread(actor.id, actor.organization_id)

    async def get_unread_count_by_type(self, actor: User) -> Dict[NotificationType, int]:
        """Unread counts for every type, zero-filled."""
        counts = await self.notification_repo.count_unread_by_type(actor.id, actor.organization_id)
        return {type: counts.get(type, 0) for type in NotificationType}

    async def _get_owned(self, ids: Iterable[UUID], actor: User) -> List[Notification]:
        rows = []
        for notification_id in ids:
            row = await self.notification_repo.get(notification_id)
            if not row or row.organization_id != actor.organization_id:
                raise NotFoundError("Notification", notification_id)
            if row.user_id != actor.id:
                raise AuthorizationError(
                    "Cannot act on another user's notification",
                    {"id": str(notification_id)},
                )
            rows.append(row)
        return rows

    async def mark_as_read(self, notification_id: UUID, actor: User) -> NotificationResponse:
        """Mark one of the caller's notifications as read."""
        row = (await self._get_owned([notification_id], actor))[0]
        if not row.is_read:
            await self.notification_repo.mark_read(actor.id, utcnow(), ids=[row.id])
            await self.session.commit()
            row = await self.notification_repo.get(row.id)
        return NotificationResponse.model_validate(row)

    async def mark_multiple_as_read(self, ids: List[UUID], actor: User) -> int:
        """Mark several of the caller's notifications as read; returns rows changed."""
        rows = await self._get_owned(ids, actor)
        updated = await self.notification_repo.mark_read(
            actor.id, utcnow(), ids=[row.id for row in rows]
        )
        await self.session.commit()
        return len(updated)

    async def mark_all_as_read(self, actor: User) -> int:
        """Mark every unread notification of the caller as read."""
        updated = await self.notification_repo.mark_read(
            actor.id, utcnow(), organization_id=actor.organization_id
        )
        await self.session.commit()
        logger.info(
            "Marked all notifications read",
            extra={"user_id": str(actor.id), "count": len(updated)},
        )
        return len(updated)

    async def remove(self, notification_id: UUID, actor: User) -> bool:
        """Delete one of the caller's notifications."""
        row = (await self._get_owned([notification_id], actor))[0]
        deleted = await self.notification_repo.delete(row.id)
        await self.session.commit()
        return deleted

    async def remove_multiple(self, ids: List[UUID], actor: User) -> int:
        """Delete several of the caller's notifications."""
        rows = await self._get_owned(ids, actor)
        deleted = await self.notification_repo.delete_where(
            Notification.id.in_([row.id for row in rows]),
            Notification.user_id == actor.id,
        )
        await self.session.commit()
        return deleted

    async def clear_read(self, actor: User) -> int:
        """Delete every read notification of the caller; unread ones stay."""
        deleted = await self.notification_repo.delete_where(
            Notification.user_id == actor.id,
            Notification.organization_id == actor.organization_id,
            Notification.is_read.is_(True),
        )
        await self.session.commit()
        return deleted
