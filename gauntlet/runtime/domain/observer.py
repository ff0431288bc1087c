"""Observer port for the in-sandbox runtime."""

from typing import Protocol


class RuntimeObserver(Protocol):
    """Observer port for runtime session events."""

    def runtime_session_created(self, session_id: str, model: str) -> None: ...

    def runtime_message_started(self, session_id: str, resumed: bool) -> None: ...

    def runtime_message_completed(self, session_id: str, success: bool) -> None: ...

    def runtime_message_failed(self, session_id: str, reason: str) -> None: ...

    def runtime_session_ended(self, session_id: str) -> None: ...

    def runtime_sessions_expired(self, count: int) -> None: ...
