"""Runtime-side view of an agent session living inside the sandbox."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, Field

from gauntlet.config.domain.models import ModelTier


def _now() -> datetime:
    return datetime.now(UTC)


class RuntimeSessionStatus(StrEnum):
    READY = "ready"
    STREAMING = "streaming"
    ENDED = "ended"


@dataclass
class RuntimeSession:
    """Mutable conversation state held by the runtime for one session.

    `backend_session_id` is the model backend's own conversation id, captured
    from its init message and used to resume on the next turn.
    """

    id: str
    model: ModelTier
    system_prompt: str | None
    tools: list[str]
    cwd: str
    max_turns: int | None
    status: RuntimeSessionStatus = RuntimeSessionStatus.READY
    backend_session_id: str | None = None
    created_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)

    def touch(self) -> None:
        self.last_activity = _now()

    def info(self) -> dict[str, Any]:
        return {
            "session_id": self.id,
            "status": self.status.value,
            "model": self.model,
            "cwd": self.cwd,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }


class OutputFormat(BaseModel, frozen=True):
    type: str = "json_schema"
    schema_: dict[str, Any] = Field(alias="schema")


@dataclass(frozen=True)
class Frame:
    """One named event with its JSON-able payload, ready for the wire."""

    event: str
    data: dict[str, Any]


class AgentRunner(Protocol):
    """Drives the model backend for one message and yields wire frames.

    Implementations always finish with a `done` frame, including after an
    `error` frame.
    """

    def run(
        self,
        session: RuntimeSession,
        prompt: str,
        token: str,
        output_format: OutputFormat | None,
    ) -> AsyncIterator[Frame]: ...
