"""AgentSessionClient port: the streaming conversation API of a sandbox runtime."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from gauntlet.sandbox.domain.sandbox import Sandbox
from gauntlet.session.domain.event import AgentEvent
from gauntlet.session.domain.result import TerminalResult
from gauntlet.session.domain.session import Session, SessionConfig

type EventHandler = Callable[[AgentEvent], Awaitable[None] | None]


class AgentSessionClient(Protocol):
    """Talks to the agent runtime inside one sandbox.

    `send_message` resolves only once the terminal `done` event arrives, or
    promptly with an aborted result once `stop` is set.
    """

    async def create_session(
        self, sandbox: Sandbox, config: SessionConfig, credential: str
    ) -> Session: ...

    async def send_message(
        self,
        session: Session,
        content: str,
        on_event: EventHandler | None = None,
        output_schema: dict[str, Any] | None = None,
        stop: asyncio.Event | None = None,
    ) -> TerminalResult: ...

    async def end_session(self, session: Session) -> None: ...

    async def is_healthy(self, endpoint: str) -> bool: ...
