"""
Server-sent event stream of a user's notifications.

Pushed events are a latency optimization only. Every poll interval (and once
on connect) the stream emits an `unread_count` event recomputed from the
store, so a client that missed pushes converges on the true count.
"""

import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from careflow.services.notification_broker import NotificationSubscription

logger = logging.getLogger(__name__)


def format_sse(event: str, data: Any) -> str:
    """Encode one server-sent event frame."""
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


async def notification_event_stream(
    subscription: NotificationSubscription,
    unread_count: Callable[[], Awaitable[int]],
    poll_interval: float,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[str]:
    """
    Yield SSE frames until the client disconnects.

    Args:
        subscription: Broker subscription for the streaming user
        unread_count: Recomputes the user's unread count from the store
        poll_interval: Seconds between unread count refreshes
        is_disconnected: Returns True once the client has gone away
    """
    try:
        yield format_sse("unread_count", {"count": await unread_count()})
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            notification = await subscription.get(timeout=poll_interval)
            if notification is None:
                yield format_sse("unread_count", {"count": await unread_count()})
                continue
            yield format_sse("notification", notification.model_dump(mode="json"))
    finally:
        subscription.close()
        logger.debug("Notification stream closed", extra={"user_id": str(subscription.user_id)})
