"""RuntimeSessionStore: the runtime's private map of live sessions."""

import uuid
from datetime import UTC, datetime, timedelta

from gauntlet.config.domain.models import ModelTier
from gauntlet.runtime.domain.session import RuntimeSession, RuntimeSessionStatus


class RuntimeSessionStore:
    def __init__(self) -> None:
        self._sessions: dict[str, RuntimeSession] = {}

    def create(
        self,
        model: ModelTier,
        tools: list[str],
        cwd: str,
        system_prompt: str | None = None,
        max_turns: int | None = None,
        session_id: str | None = None,
    ) -> RuntimeSession:
        """Create a session, or return the existing one when its id is reused."""
        if session_id is not None and session_id in self._sessions:
            existing = self._sessions[session_id]
            existing.touch()
            return existing

        session = RuntimeSession(
            id=session_id or f"sess_{uuid.uuid4().hex[:16]}",
            model=model,
            system_prompt=system_prompt,
            tools=tools,
            cwd=cwd,
            max_turns=max_turns,
        )
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> RuntimeSession | None:
        return self._sessions.get(session_id)

    def all(self) -> list[RuntimeSession]:
        return list(self._sessions.values())

    def end(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.status = RuntimeSessionStatus.ENDED
        return True

    def expire_idle(self, idle: timedelta) -> int:
        """Drop sessions idle longer than `idle`; streaming ones are kept."""
        cutoff = datetime.now(UTC) - idle
        expired = [
            session.id
            for session in self._sessions.values()
            if session.status is not RuntimeSessionStatus.STREAMING
            and session.last_activity < cutoff
        ]
        for session_id in expired:
            self.end(session_id)
        return len(expired)
