"""Observer port for the design domain: defines events in domain language."""

from typing import Protocol


class DesignObserver(Protocol):
    """Observer port for single-session design steps."""

    def design_started(self, trial_id: str, step: str, model: str) -> None: ...

    def design_completed(
        self, trial_id: str, step: str, attempts: int, cost_usd: float
    ) -> None: ...
