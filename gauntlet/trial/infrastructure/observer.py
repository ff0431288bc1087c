"""Structlog implementation of the TrialObserver port."""

import structlog


class StructlogTrialObserver:
    """Delegates trial domain events to structlog.

    Satisfies the TrialObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def trial_transitioned(self, trial_id: str, from_phase: str, to_phase: str) -> None:
        self._log.info(
            "trial.transitioned",
            trial_id=trial_id,
            from_phase=from_phase,
            to_phase=to_phase,
        )

    def trial_transition_rejected(
        self, trial_id: str, from_phase: str, to_phase: str
    ) -> None:
        self._log.error(
            "trial.transition_rejected",
            trial_id=trial_id,
            from_phase=from_phase,
            to_phase=to_phase,
        )
