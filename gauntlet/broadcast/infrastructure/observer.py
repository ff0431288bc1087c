"""Structlog implementation of the BroadcastObserver port."""

import structlog


class StructlogBroadcastObserver:
    """Delegates broadcast domain events to structlog.

    Satisfies the BroadcastObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def broadcast_subscribed(
        self, namespace: str, topic: str, subscriber_id: str, owner_id: str
    ) -> None:
        self._log.debug(
            "broadcast.subscribed",
            namespace=namespace,
            topic=topic,
            subscriber_id=subscriber_id,
            owner_id=owner_id,
        )

    def broadcast_unsubscribed(
        self, namespace: str, topic: str, subscriber_id: str
    ) -> None:
        self._log.debug(
            "broadcast.unsubscribed",
            namespace=namespace,
            topic=topic,
            subscriber_id=subscriber_id,
        )

    def broadcast_subscriber_dropped(
        self, namespace: str, topic: str, subscriber_id: str, reason: str
    ) -> None:
        self._log.warning(
            "broadcast.subscriber_dropped",
            namespace=namespace,
            topic=topic,
            subscriber_id=subscriber_id,
            reason=reason,
        )

    def broadcast_topic_closed(
        self, namespace: str, topic: str, subscriber_count: int
    ) -> None:
        self._log.debug(
            "broadcast.topic_closed",
            namespace=namespace,
            topic=topic,
            subscriber_count=subscriber_count,
        )
