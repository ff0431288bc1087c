"""Error types raised while orchestrating a trial."""

from gauntlet.core.errors import GauntletError


class WorkspaceError(GauntletError):
    """Raised when a git or shell step inside the sandbox exits non-zero."""

    def __init__(self, operation: str, exit_code: int, output: str) -> None:
        self.operation = operation
        self.exit_code = exit_code
        super().__init__(
            f"Failed to {operation}: exit code {exit_code}: {output.strip()[-500:]}"
        )


class NoSuccessfulCompetitorsError(GauntletError):
    def __init__(self, trial_id: str, attempted: int) -> None:
        super().__init__(
            f"Failed to evaluate trial '{trial_id}': none of {attempted}"
            " competitor(s) completed successfully"
        )


class TrialStoppedError(GauntletError):
    def __init__(self, trial_id: str) -> None:
        super().__init__(f"Failed to finish trial '{trial_id}': stopped on request")


class AdvisoryUnavailableError(GauntletError):
    def __init__(self, trial_id: str, reason: str) -> None:
        super().__init__(f"Failed to advise on trial '{trial_id}': {reason}")
