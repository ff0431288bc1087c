"""Structlog implementation of the RuntimeObserver port."""

import structlog


class StructlogRuntimeObserver:
    """Delegates runtime events to structlog.

    Satisfies the RuntimeObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def runtime_session_created(self, session_id: str, model: str) -> None:
        self._log.info("runtime.session_created", session_id=session_id, model=model)

    def runtime_message_started(self, session_id: str, resumed: bool) -> None:
        self._log.info(
            "runtime.message_started", session_id=session_id, resumed=resumed
        )

    def runtime_message_completed(self, session_id: str, success: bool) -> None:
        self._log.info(
            "runtime.message_completed", session_id=session_id, success=success
        )

    def runtime_message_failed(self, session_id: str, reason: str) -> None:
        self._log.error("runtime.message_failed", session_id=session_id, reason=reason)

    def runtime_session_ended(self, session_id: str) -> None:
        self._log.info("runtime.session_ended", session_id=session_id)

    def runtime_sessions_expired(self, count: int) -> None:
        self._log.info("runtime.sessions_expired", count=count)
