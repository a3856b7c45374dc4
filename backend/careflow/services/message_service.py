"""
Message service with business logic.
"""

import logging
from typing import Dict, List, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from careflow.db.repositories.message_repository import MessageRepository
from careflow.db.repositories.user_repository import UserRepository
from careflow.models.message import Message
from careflow.models.notification import NotificationType
from careflow.models.user import User
from careflow.schemas.message import (
    BroadcastRequest,
    BroadcastResult,
    ConversationSummary,
    MessageBox,
    MessageCreate,
    MessageParticipant,
    MessageResponse,
)
from careflow.schemas.notification import NotificationBroadcast
from careflow.services.base_service import BaseService
from careflow.services.notification_service import NotificationService
from careflow.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


def _preview(subject, content: str) -> str:
    if subject:
        return subject
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


class MessageService(BaseService):
    """Service for direct and broadcast messaging."""

    def __init__(self, session: AsyncSession, notification_service: NotificationService = None):
        self.session = session
        self.message_repo = MessageRepository(session)
        self.user_repo = UserRepository(session)
        self.notification_service = notification_service or NotificationService(session)

    async def _get_recipient(self, user_id: UUID, actor: User) -> User:
        recipient = await self.user_repo.get(user_id)
        if not recipient or recipient.organization_id != actor.organization_id:
            raise NotFoundError("User", user_id)
        return recipient

    async def _get_message(self, message_id: UUID, actor: User) -> Message:
        message = await self.message_repo.get(message_id)
        if not message or message.organization_id != actor.organization_id:
            raise NotFoundError("Message", message_id)
        if actor.id not in (message.sender_id, message.recipient_id):
            raise AuthorizationError("Not a participant of this message")
        return message

    async def send(self, message_data: MessageCreate, actor: User) -> MessageResponse:
        """Send a message to one user and notify them."""
        recipient = await self._get_recipient(message_data.recipient_id, actor)
        message = await self.message_repo.create(
            organization_id=actor.organization_id,
            sender_id=actor.id,
            recipient_id=recipient.id,
            subject=message_data.subject,
            content=message_data.content,
        )
        await self.session.commit()
        response = MessageResponse.model_validate(await self.message_repo.get(message.id))

        await self.notification_service.notify_best_effort(
            [recipient.id],
            NotificationBroadcast(
                type=NotificationType.MESSAGE_RECEIVED,
                title=f"New message from {actor.name}",
                message=_preview(message_data.subject, message_data.content),
                related_entity_type="message",
                related_entity_id=str(response.id),
            ),
            actor,
        )
        return response

    async def broadcast(self, request: BroadcastRequest, actor: User) -> BroadcastResult:
        """
        Send the same message to many users.

        Targets are every active user of the organization or the explicit
        list; the sender is always excluded and duplicates are dropped. All
        rows commit together; notifications follow as a best-effort step.
        """
        if request.all_users:
            recipient_ids = await self.user_repo.list_active_ids(actor.organization_id, exclude_id=actor.id)
        else:
            if not request.recipient_ids:
                raise ValidationError("Recipients are required unless sending to all users")
            recipient_ids = []
            for user_id in dict.fromkeys(request.recipient_ids):
                if user_id == actor.id:
                    continue
                await self._get_recipient(user_id, actor)
                recipient_ids.append(user_id)

        if not recipient_ids:
            return BroadcastResult(sent_count=0)

        messages = await self.message_repo.create_many([
            {
                "organization_id": actor.organization_id,
                "sender_id": actor.id,
                "recipient_id": user_id,
                "subject": request.subject,
                "content": request.content,
            }
            for user_id in recipient_ids
        ])
        await self.session.commit()
        logger.info(
            "Broadcast sent",
            extra={"sender_id": str(actor.id), "recipients": len(messages)},
        )

        await self.notification_service.notify_best_effort(
            recipient_ids,
            NotificationBroadcast(
                type=NotificationType.MESSAGE_RECEIVED,
                title=f"New message from {actor.name}",
                message=_preview(request.subject, request.content),
                related_entity_type="message",
            ),
            actor,
        )
        return BroadcastResult(sent_count=len(messages))

    async def list_messages(self, actor: User, box: MessageBox = "inbox") -> Tuple[List[MessageResponse], int]:
        """List the caller's inbox, sent box, or both."""
        messages = await self.message_repo.list_for_user(actor.id, actor.organization_id, box=box)
        return [MessageResponse.model_validate(m) for m in messages], len(messages)

    async def get_message(self, message_id: UUID, actor: User) -> MessageResponse:
        """Get one message the caller sent or received."""
        return MessageResponse.model_validate(await self._get_message(message_id, actor))

    async def get_conversation(self, other_user_id: UUID, actor: User) -> List[MessageResponse]:
        """Messages exchanged with another user, oldest first."""
        await self._get_recipient(other_user_id, actor)
        messages = await self.message_repo.list_conversation(actor.id, other_user_id, actor.organization_id)
        return [MessageResponse.model_validate(m) for m in messages]

    async def get_conversation_list(self, actor: User) -> List[ConversationSummary]:
        """One entry per conversation partner, most recent conversation first."""
        messages = await self.message_repo.list_for_user(actor.id, actor.organization_id, box="all")
        summaries: Dict[UUID, ConversationSummary] = {}
        for message in messages:
            incoming = message.recipient_id == actor.id
            partner = message.sender if incoming else message.recipient
            summary = summaries.get(partner.id)
            if summary is None:
                summary = ConversationSummary(
                    user=MessageParticipant.model_validate(partner),
                    last_message=MessageResponse.model_validate(message),
                    unread_count=0,
                )
                summaries[partner.id] = summary
            if incoming and not message.is_read:
                summary.unread_count += 1
        return list(summaries.values())

    async def mark_as_read(self, message_id: UUID, actor: User) -> MessageResponse:
        """Mark a received message as read. Only the recipient may do this."""
        message = await self._get_message(message_id, actor)
        if message.recipient_id != actor.id:
            raise AuthorizationError("Only the recipient can mark a message as read")
        if not message.is_read:
            message.is_read = True
            message.read_at = utcnow()
            await self.session.commit()
        return MessageResponse.model_validate(message)

    async def get_unread_count(self, actor: User) -> int:
        """Number of unread messages in the caller's inbox."""
        return await self.message_repo.count(
            organization_id=actor.organization_id,
            recipient_id=actor.id,
            is_read=False,
        )

    async def search(self, term: str, actor: User) -> List[MessageResponse]:
        """Search the caller's messages by subject and content."""
        term = (term or "").strip()
        if not term:
            raise ValidationError("Search term is required")
        messages = await self.message_repo.search(actor.id, actor.organization_id, term)
        return [MessageResponse.model_validate(m) for m in messages]

    async def delete_message(self, message_id: UUID, actor: User) -> bool:
        """Delete a message the caller sent or received."""
        message = await self._get_message(message_id, actor)
        deleted = await self.message_repo.delete(message.id)
        await self.session.commit()
        return deleted
