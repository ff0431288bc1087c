"""Error types raised by trial infrastructure."""

from gauntlet.core.errors import GauntletError


class InvalidTransitionError(GauntletError):
    """Raised when a phase change is not an edge of the transition graph.

    Signals a resume-logic bug; never swallowed.
    """

    def __init__(self, trial_id: str, current: str, target: str) -> None:
        self.trial_id = trial_id
        self.current = current
        self.target = target
        super().__init__(
            f"Failed to transition trial '{trial_id}': '{current}' -> '{target}'"
            " is not an allowed transition"
        )


class TrialNotFoundError(GauntletError):
    def __init__(self, trial_id: str) -> None:
        super().__init__(f"Failed to load trial: '{trial_id}' does not exist")


class RecordNotFoundError(GauntletError):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"Failed to load {kind}: '{record_id}' does not exist")


class InvalidStatusChangeError(GauntletError):
    """Raised when a record status would move backward."""

    def __init__(self, record_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Failed to update record '{record_id}': status cannot move from"
            f" '{current}' to '{target}'"
        )


class VerdictExistsError(GauntletError):
    def __init__(self, trial_id: str) -> None:
        super().__init__(
            f"Failed to create verdict: trial '{trial_id}' already has one"
        )
