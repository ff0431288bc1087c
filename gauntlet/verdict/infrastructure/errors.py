"""Error types raised during verdict synthesis."""

from gauntlet.core.errors import GauntletError


class NoEvaluationsError(GauntletError):
    def __init__(self, trial_id: str) -> None:
        super().__init__(
            f"Failed to synthesize verdict for trial '{trial_id}':"
            " no evaluator produced a result"
        )
