"""Observer port for the session domain: defines events in domain language."""

from typing import Protocol


class SessionObserver(Protocol):
    """Observer port for agent session events."""

    def session_created(self, session_id: str, sandbox_id: str, model: str) -> None: ...

    def session_message_started(self, session_id: str) -> None: ...

    def session_message_completed(
        self, session_id: str, success: bool, turns: int, cost_usd: float
    ) -> None: ...

    def session_message_aborted(self, session_id: str) -> None: ...

    def session_ended(self, session_id: str) -> None: ...

    def session_structured_retry(
        self, session_id: str, attempt: int, reason: str
    ) -> None: ...

    def session_idle_reclaimed(self, manager: str, trial_id: str) -> None: ...
