"""Structlog implementation of the SessionObserver port."""

import structlog


class StructlogSessionObserver:
    """Delegates session domain events to structlog.

    Satisfies the SessionObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def session_created(self, session_id: str, sandbox_id: str, model: str) -> None:
        self._log.info(
            "session.created",
            session_id=session_id,
            sandbox_id=sandbox_id,
            model=model,
        )

    def session_message_started(self, session_id: str) -> None:
        self._log.debug("session.message_started", session_id=session_id)

    def session_message_completed(
        self, session_id: str, success: bool, turns: int, cost_usd: float
    ) -> None:
        self._log.info(
            "session.message_completed",
            session_id=session_id,
            success=success,
            turns=turns,
            cost_usd=cost_usd,
        )

    def session_message_aborted(self, session_id: str) -> None:
        self._log.warning("session.message_aborted", session_id=session_id)

    def session_ended(self, session_id: str) -> None:
        self._log.debug("session.ended", session_id=session_id)

    def session_structured_retry(
        self, session_id: str, attempt: int, reason: str
    ) -> None:
        self._log.warning(
            "session.structured_retry",
            session_id=session_id,
            attempt=attempt,
            reason=reason,
        )

    def session_idle_reclaimed(self, manager: str, trial_id: str) -> None:
        self._log.info("session.idle_reclaimed", manager=manager, trial_id=trial_id)
