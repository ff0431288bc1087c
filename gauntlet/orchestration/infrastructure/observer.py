"""Structlog implementation of the OrchestrationObserver port."""

import structlog


class StructlogOrchestrationObserver:
    """Delegates orchestration domain events to structlog.

    Satisfies the OrchestrationObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def trial_created(self, trial_id: str, kind: str) -> None:
        self._log.info("trial.created", trial_id=trial_id, kind=kind)

    def trial_resumed(self, trial_id: str, phase: str) -> None:
        self._log.info("trial.resumed", trial_id=trial_id, phase=phase)

    def trial_step_started(self, trial_id: str, step: str) -> None:
        self._log.info("trial.step_started", trial_id=trial_id, step=step)

    def trial_decreed(self, trial_id: str, winner_id: str | None) -> None:
        self._log.info("trial.decreed", trial_id=trial_id, winner_id=winner_id)

    def trial_failed(self, trial_id: str, phase: str, reason: str) -> None:
        self._log.error("trial.failed", trial_id=trial_id, phase=phase, reason=reason)

    def trial_cleanup_failed(self, trial_id: str, reason: str) -> None:
        self._log.error("trial.cleanup_failed", trial_id=trial_id, reason=reason)

    def trial_stop_requested(self, trial_id: str) -> None:
        self._log.warning("trial.stop_requested", trial_id=trial_id)

    def trial_concluded(self, trial_id: str) -> None:
        self._log.info("trial.concluded", trial_id=trial_id)

    def workspace_push_failed(self, trial_id: str, reason: str) -> None:
        self._log.warning("workspace.push_failed", trial_id=trial_id, reason=reason)

    def advisory_message_sent(self, trial_id: str, success: bool) -> None:
        self._log.info("advisory.message_sent", trial_id=trial_id, success=success)
