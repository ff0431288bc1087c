"""Error types raised by sandbox infrastructure."""

from gauntlet.core.errors import GauntletError


class ResourceUnavailableError(GauntletError):
    """Raised when a sandbox cannot be provisioned or never becomes healthy.

    Fatal for the owning trial.
    """

    def __init__(self, trial_id: str, reason: str) -> None:
        self.trial_id = trial_id
        super().__init__(
            f"Failed to provision sandbox for trial '{trial_id}': {reason}"
        )


class SandboxGoneError(GauntletError):
    """Raised when the environment backing a sandbox no longer exists."""

    def __init__(self, environment_id: str) -> None:
        self.environment_id = environment_id
        super().__init__(
            f"Failed to reach sandbox '{environment_id}': environment is gone"
        )


class SandboxCommandError(GauntletError):
    """Raised when the execution backend rejects an operation."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        super().__init__(
            f"Failed to {operation} sandbox: {reason}", retriable=True
        )
