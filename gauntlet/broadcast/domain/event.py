"""BroadcastEvent value object: one message fanned out to topic subscribers."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(UTC)


class BroadcastEvent(BaseModel):
    """Immutable live-feed event: a type tag plus a free-form payload."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_now)

    @classmethod
    def of(cls, type: str, **data: Any) -> "BroadcastEvent":
        return cls(type=type, data=data)


CONNECTED = "connected"
TOPIC_CLOSED = "topic_closed"
