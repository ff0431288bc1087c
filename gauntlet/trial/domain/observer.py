"""Observer port for the trial domain: defines events in domain language."""

from typing import Protocol


class TrialObserver(Protocol):
    """Observer port for trial state events."""

    def trial_transitioned(self, trial_id: str, from_phase: str, to_phase: str) -> None: ...

    def trial_transition_rejected(
        self, trial_id: str, from_phase: str, to_phase: str
    ) -> None: ...
