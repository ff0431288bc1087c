"""Observer port for the coordination domain: defines events in domain language."""

from typing import Protocol


class CoordinationObserver(Protocol):
    """Observer port for parallel run events."""

    def coordination_started(self, trial_id: str, role: str, task_count: int) -> None: ...

    def coordination_agent_started(self, trial_id: str, agent_id: str) -> None: ...

    def coordination_agent_completed(
        self, trial_id: str, agent_id: str, turns: int, cost_usd: float
    ) -> None: ...

    def coordination_agent_failed(
        self, trial_id: str, agent_id: str, reason: str
    ) -> None: ...

    def coordination_completed(
        self, trial_id: str, succeeded: int, failed: int, total_cost_usd: float
    ) -> None: ...
