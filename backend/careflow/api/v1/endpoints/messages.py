"""
Message API endpoints.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.api.v1.middleware import require_authentication
from careflow.controllers.message_controller import MessageController
from careflow.db.session import get_db
from careflow.models.user import User
from careflow.schemas.message import (
    BroadcastRequest,
    BroadcastResult,
    ConversationSummary,
    MessageBox,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)

router = APIRouter()


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MessageResponse:
    """Send a message to one user."""
    controller = MessageController(db)
    return await controller.send(message_data, current_user)


@router.post("/broadcast", response_model=BroadcastResult, status_code=status.HTTP_201_CREATED)
async def broadcast_message(
    request: BroadcastRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> BroadcastResult:
    """Send a message to all users or a list of users."""
    controller = MessageController(db)
    return await controller.broadcast(request, current_user)


@router.get("", response_model=MessageListResponse)
async def list_messages(
    box: MessageBox = Query("inbox"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MessageListResponse:
    """List your inbox, sent messages, or both."""
    controller = MessageController(db)
    return await controller.list_messages(current_user, box=box)


@router.get("/conversations", response_model=List[ConversationSummary])
async def list_conversations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> List[ConversationSummary]:
    """Your conversation partners, most recent first."""
    controller = MessageController(db)
    return await controller.get_conversation_list(current_user)


@router.get("/conversations/{user_id}", response_model=MessageListResponse)
async def get_conversation(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MessageListResponse:
    """Messages exchanged with one user, oldest first."""
    controller = MessageController(db)
    return await controller.get_conversation(user_id, current_user)


@router.get("/unread-count")
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> dict:
    """Unread inbox count."""
    controller = MessageController(db)
    return {"count": await controller.get_unread_count(current_user)}


@router.get("/search", response_model=MessageListResponse)
async def search_messages(
    q: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MessageListResponse:
    """Search your messages by subject and content."""
    controller = MessageController(db)
    return await controller.search(q, current_user)


@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(
    message_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MessageResponse:
    """Get a message you sent or received."""
    controller = MessageController(db)
    return await controller.get_message(message_id, current_user)


@router.post("/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(
    message_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
) -> MessageResponse:
    """Mark a received message as read."""
    controller = MessageController(db)
    return await controller.mark_as_read(message_id, current_user)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_authentication),
):
    """Delete a message you sent or received."""
    controller = MessageController(db)
    await controller.delete_message(message_id, current_user)
