"""
In-process push delivery for newly created notifications.

Subscribers register for one recipient id and receive every notification
published for that recipient afterwards. Delivery is fire-and-forget: a
subscriber that falls behind loses its oldest pending events, and consumers
must tolerate duplicates and reordering. Counts shown to users are always
recomputed from the store, never derived from pushed events.
"""

import asyncio
import logging
from typing import Dict, Optional, Set
from uuid import UUID

from careflow.core.config import settings
from careflow.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)


class NotificationSubscription:
    """A single subscriber's queue of pushed notifications."""

    def __init__(self, broker: "NotificationBroker", user_id: UUID, maxsize: int):
        self.broker = broker
        self.user_id = user_id
        self.queue: "asyncio.Queue[NotificationResponse]" = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, notification: NotificationResponse) -> None:
        """Enqueue without blocking, dropping the oldest event when full."""
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(notification)

    async def get(self, timeout: Optional[float] = None) -> Optional[NotificationResponse]:
        """Wait for the next notification; None when the timeout elapses first."""
        try:
            return await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        self.broker.unsubscribe(self)

    async def __aenter__(self) -> "NotificationSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> NotificationResponse:
        return await self.queue.get()


class NotificationBroker:
    """Routes published notifications to subscribers of their recipient."""

    def __init__(self, queue_size: Optional[int] = None):
        self.queue_size = queue_size or settings.NOTIFICATION_SUBSCRIBER_QUEUE_SIZE
        self._subscribers: Dict[UUID, Set[NotificationSubscription]] = {}

    def subscribe(self, user_id: UUID) -> NotificationSubscription:
        """Start receiving notifications addressed to `user_id`."""
        subscription = NotificationSubscription(self, user_id, self.queue_size)
        self._subscribers.setdefault(user_id, set()).add(subscription)
        logger.debug("Notification subscriber added", extra={"user_id": str(user_id)})
        return subscription

    def unsubscribe(self, subscription: NotificationSubscription) -> None:
        """Stop delivery to a subscription. Safe to call twice."""
        subscribers = self._subscribers.get(subscription.user_id)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscribers[subscription.user_id]

    def publish(self, notification: NotificationResponse) -> int:
        """
        Deliver a committed notification to its recipient's subscribers.

        Returns:
            Number of subscriptions the event was offered to
        """
        subscribers = self._subscribers.get(notification.user_id, set())
        for subscription in list(subscribers):
            subscription.offer(notification)
        return len(subscribers)

    def subscriber_count(self, user_id: Optional[UUID] = None) -> int:
        """Number of live subscriptions, overall or for one user."""
        if user_id is not None:
            return len(self._subscribers.get(user_id, ()))
        return sum(len(subs) for subs in self._subscribers.values())


notification_broker = NotificationBroker()
