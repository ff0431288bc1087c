"""Structlog implementation of the CoordinationObserver port."""

import structlog


class StructlogCoordinationObserver:
    """Delegates coordination domain events to structlog.

    Satisfies the CoordinationObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def coordination_started(self, trial_id: str, role: str, task_count: int) -> None:
        self._log.info(
            "coordination.started",
            trial_id=trial_id,
            role=role,
            task_count=task_count,
        )

    def coordination_agent_started(self, trial_id: str, agent_id: str) -> None:
        self._log.info(
            "coordination.agent_started", trial_id=trial_id, agent_id=agent_id
        )

    def coordination_agent_completed(
        self, trial_id: str, agent_id: str, turns: int, cost_usd: float
    ) -> None:
        self._log.info(
            "coordination.agent_completed",
            trial_id=trial_id,
            agent_id=agent_id,
            turns=turns,
            cost_usd=cost_usd,
        )

    def coordination_agent_failed(
        self, trial_id: str, agent_id: str, reason: str
    ) -> None:
        self._log.warning(
            "coordination.agent_failed",
            trial_id=trial_id,
            agent_id=agent_id,
            reason=reason,
        )

    def coordination_completed(
        self, trial_id: str, succeeded: int, failed: int, total_cost_usd: float
    ) -> None:
        self._log.info(
            "coordination.completed",
            trial_id=trial_id,
            succeeded=succeeded,
            failed=failed,
            total_cost_usd=total_cost_usd,
        )
