"""BroadcastObserver port: domain events emitted by topic registries."""

from typing import Protocol


class BroadcastObserver(Protocol):
    """Observer port for broadcast domain events."""

    def broadcast_subscribed(
        self, namespace: str, topic: str, subscriber_id: str, owner_id: str
    ) -> None: ...

    def broadcast_unsubscribed(
        self, namespace: str, topic: str, subscriber_id: str
    ) -> None: ...

    def broadcast_subscriber_dropped(
        self, namespace: str, topic: str, subscriber_id: str, reason: str
    ) -> None: ...

    def broadcast_topic_closed(
        self, namespace: str, topic: str, subscriber_count: int
    ) -> None: ...
