"""Structlog implementation of the DesignObserver port."""

import structlog


class StructlogDesignObserver:
    """Delegates design domain events to structlog.

    Satisfies the DesignObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def design_started(self, trial_id: str, step: str, model: str) -> None:
        self._log.info("design.started", trial_id=trial_id, step=step, model=model)

    def design_completed(
        self, trial_id: str, step: str, attempts: int, cost_usd: float
    ) -> None:
        self._log.info(
            "design.completed",
            trial_id=trial_id,
            step=step,
            attempts=attempts,
            cost_usd=cost_usd,
        )
