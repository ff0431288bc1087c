"""Per-topic publish/subscribe fan-out for live progress streams.

Two independent namespaces are kept: trial topics (keyed by trial id) and
agent topics (keyed by competitor or evaluator id). Delivery is best-effort
and at-most-once per live subscriber; there is no replay buffer, so a late
subscriber only sees events published after it subscribed.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator

from gauntlet.broadcast.domain.event import CONNECTED, TOPIC_CLOSED, BroadcastEvent
from gauntlet.broadcast.domain.observer import BroadcastObserver

_DEFAULT_MAX_PENDING = 1000


class Subscription:
    """A live output channel owned by one consumer.

    Iterate it with ``async for``; iteration ends after the topic is closed
    or after the consumer calls ``close()``. A consumer that stops reading
    long enough to fill its buffer is treated as gone and dropped.
    """

    def __init__(self, topic: str, owner_id: str, max_pending: int) -> None:
        self.id = uuid.uuid4().hex
        self.topic = topic
        self.owner_id = owner_id
        self._queue: asyncio.Queue[BroadcastEvent | None] = asyncio.Queue(
            maxsize=max_pending
        )
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Consumer-side disconnect. The next publish removes this subscriber."""
        self._closed = True

    def deliver(self, event: BroadcastEvent) -> None:
        """Enqueue without blocking.

        Raises:
            ConnectionError: if the consumer has disconnected.
            asyncio.QueueFull: if the consumer has stopped draining.
        """
        if self._closed or self._finished:
            raise ConnectionError("subscriber disconnected")
        self._queue.put_nowait(event)

    def finish(self, final_event: BroadcastEvent) -> None:
        """Push the terminal event and end iteration once the buffer drains."""
        if self._finished:
            return
        for item in (final_event, None):
            try:
                self._queue.put_nowait(item)
            except asyncio.QueueFull:
                break
        self._finished = True

    def __aiter__(self) -> AsyncIterator[BroadcastEvent]:
        return self

    async def __anext__(self) -> BroadcastEvent:
        if self._closed or (self._finished and self._queue.empty()):
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event


class TopicRegistry:
    """Subscriber registry for one topic namespace."""

    def __init__(
        self,
        namespace: str,
        observer: BroadcastObserver,
        max_pending: int = _DEFAULT_MAX_PENDING,
    ) -> None:
        self._namespace = namespace
        self._observer = observer
        self._max_pending = max_pending
        self._topics: dict[str, dict[str, Subscription]] = {}

    def subscribe(self, topic: str, owner_id: str) -> Subscription:
        """Register a new subscriber; its first event is ``connected``."""
        subscription = Subscription(
            topic=topic, owner_id=owner_id, max_pending=self._max_pending
        )
        subscription.deliver(BroadcastEvent.of(CONNECTED, topic=topic))
        self._topics.setdefault(topic, {})[subscription.id] = subscription
        self._observer.broadcast_subscribed(
            namespace=self._namespace,
            topic=topic,
            subscriber_id=subscription.id,
            owner_id=owner_id,
        )
        return subscription

    def unsubscribe(self, topic: str, subscriber_id: str) -> None:
        subscribers = self._topics.get(topic)
        if subscribers is None or subscriber_id not in subscribers:
            return
        subscribers.pop(subscriber_id).close()
        if not subscribers:
            del self._topics[topic]
        self._observer.broadcast_unsubscribed(
            namespace=self._namespace, topic=topic, subscriber_id=subscriber_id
        )

    def publish(self, topic: str, event: BroadcastEvent) -> None:
        """Fire-and-forget fan-out. A subscriber whose write fails is removed."""
        subscribers = self._topics.get(topic)
        if not subscribers:
            return

        dead: list[tuple[str, str]] = []
        for subscriber_id, subscription in subscribers.items():
            try:
                subscription.deliver(event)
            except ConnectionError:
                dead.append((subscriber_id, "disconnected"))
            except asyncio.QueueFull:
                dead.append((subscriber_id, "buffer full"))

        for subscriber_id, reason in dead:
            subscribers.pop(subscriber_id).close()
            self._observer.broadcast_subscriber_dropped(
                namespace=self._namespace,
                topic=topic,
                subscriber_id=subscriber_id,
                reason=reason,
            )
        if not subscribers:
            del self._topics[topic]

    def close_topic(self, topic: str) -> None:
        """Send the terminal event to every subscriber and release them all."""
        subscribers = self._topics.pop(topic, None)
        if not subscribers:
            return
        final_event = BroadcastEvent.of(TOPIC_CLOSED, topic=topic)
        for subscription in subscribers.values():
            subscription.finish(final_event)
        self._observer.broadcast_topic_closed(
            namespace=self._namespace, topic=topic, subscriber_count=len(subscribers)
        )

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, {}))


class BroadcastHub:
    """Owns the trial-level and agent-level topic namespaces."""

    def __init__(
        self, observer: BroadcastObserver, max_pending: int = _DEFAULT_MAX_PENDING
    ) -> None:
        self.trials = TopicRegistry(
            namespace="trial", observer=observer, max_pending=max_pending
        )
        self.agents = TopicRegistry(
            namespace="agent", observer=observer, max_pending=max_pending
        )
