"""
Messaging tests: direct messages, broadcasts and read state.
"""

import uuid

import pytest
from sqlalchemy import func, select

from careflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from careflow.models.message import Message
from careflow.models.notification import Notification, NotificationType
from careflow.schemas.message import BroadcastRequest, MessageCreate
from careflow.services.message_service import MessageService
from careflow.services.notification_service import NotificationService


@pytest.fixture
def message_service(test_db_session, broker):
    return MessageService(test_db_session, NotificationService(test_db_session, broker))


async def _count(session, model, *criteria) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def test_send_notifies_recipient(test_db_session, message_service, admin, marketer):
    sent = await message_service.send(
        MessageCreate(recipient_id=marketer.id, subject="Schedule", content="See you Monday"),
        admin,
    )

    assert sent.sender.id == admin.id
    assert sent.recipient.id == marketer.id
    result = await test_db_session.execute(select(Notification).where(Notification.user_id == marketer.id))
    notification = result.scalar_one()
    assert notification.type == NotificationType.MESSAGE_RECEIVED
    assert notification.message == "Schedule"
    assert notification.related_entity_id == str(sent.id)


async def test_send_preview_truncates_long_content(test_db_session, message_service, admin, marketer):
    await message_service.send(MessageCreate(recipient_id=marketer.id, content="x" * 150), admin)

    result = await test_db_session.execute(select(Notification.message))
    assert result.scalar_one() == "x" * 100 + "..."


async def test_send_to_unknown_user(message_service, admin):
    with pytest.raises(NotFoundError):
        await message_service.send(MessageCreate(recipient_id=uuid.uuid4(), content="hi"), admin)


async def test_broadcast_to_all_excludes_sender(test_db_session, message_service, admin, make_user):
    for name in ("One", "Two", "Three"):
        await make_user(name=name)
    await make_user(name="Gone", is_active=False)

    result = await message_service.broadcast(
        BroadcastRequest(subject="Holiday", content="Office closed Friday", all_users=True),
        admin,
    )

    assert result.sent_count == 3
    assert await _count(test_db_session, Message) == 3
    assert await _count(test_db_session, Message, Message.recipient_id == admin.id) == 0
    assert await _count(test_db_session, Notification) == 3


async def test_broadcast_explicit_list_dedupes_and_skips_sender(test_db_session, message_service, admin, marketer, make_user):
    other = await make_user(name="Other")

    result = await message_service.broadcast(
        BroadcastRequest(
            content="Team meeting",
            recipient_ids=[marketer.id, marketer.id, admin.id, other.id],
        ),
        admin,
    )

    assert result.sent_count == 2
    assert await _count(test_db_session, Message) == 2


async def test_broadcast_requires_recipients(message_service, admin):
    with pytest.raises(ValidationError):
        await message_service.broadcast(BroadcastRequest(content="Nobody"), admin)


async def test_broadcast_with_no_one_else_sends_nothing(test_db_session, message_service, admin):
    result = await message_service.broadcast(BroadcastRequest(content="Alone", all_users=True), admin)
    assert result.sent_count == 0
    assert await _count(test_db_session, Message) == 0


async def test_only_recipient_marks_read(message_service, admin, marketer):
    sent = await message_service.send(MessageCreate(recipient_id=marketer.id, content="Read me"), admin)

    with pytest.raises(AuthorizationError):
        await message_service.mark_as_read(sent.id, admin)

    assert await message_service.get_unread_count(marketer) == 1
    read = await message_service.mark_as_read(sent.id, marketer)
    assert read.is_read is True
    assert read.read_at is not None
    assert await message_service.get_unread_count(marketer) == 0


async def test_outsider_cannot_read_message(message_service, admin, marketer, make_user):
    sent = await message_service.send(MessageCreate(recipient_id=marketer.id, content="Private"), admin)
    bystander = await make_user(name="Bystander")

    with pytest.raises(AuthorizationError):
        await message_service.get_message(sent.id, bystander)


async def test_conversations(message_service, admin, marketer, make_user):
    other = await make_user(name="Other")
    await message_service.send(MessageCreate(recipient_id=marketer.id, content="Hi Mark"), admin)
    await message_service.send(MessageCreate(recipient_id=admin.id, content="Hi Alice"), marketer)
    await message_service.send(MessageCreate(recipient_id=admin.id, content="Ping"), other)

    conversation = await message_service.get_conversation(marketer.id, admin)
    assert [m.content for m in conversation] == ["Hi Mark", "Hi Alice"]

    summaries = {s.user.id: s for s in await message_service.get_conversation_list(admin)}
    assert set(summaries) == {marketer.id, other.id}
    assert summaries[marketer.id].last_message.content == "Hi Alice"
    assert summaries[marketer.id].unread_count == 1
    assert summaries[other.id].unread_count == 1


async def test_boxes_and_search(message_service, admin, marketer):
    await message_service.send(MessageCreate(recipient_id=marketer.id, subject="Payroll", content="Due"), admin)
    await message_service.send(MessageCreate(recipient_id=admin.id, content="Payroll question"), marketer)

    inbox, inbox_total = await message_service.list_messages(admin, "inbox")
    sent, _ = await message_service.list_messages(admin, "sent")
    everything, _ = await message_service.list_messages(admin, "all")

    assert inbox_total == 1
    assert inbox[0].content == "Payroll question"
    assert sent[0].subject == "Payroll"
    assert len(everything) == 2
    assert len(await message_service.search("payroll", admin)) == 2
    with pytest.raises(ValidationError):
        await message_service.search("   ", admin)


async def test_delete_message(message_service, admin, marketer):
    sent = await message_service.send(MessageCreate(recipient_id=marketer.id, content="Bye"), admin)

    assert await message_service.delete_message(sent.id, marketer) is True
    with pytest.raises(NotFoundError):
        await message_service.get_message(sent.id, admin)
