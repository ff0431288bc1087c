"""Error types raised by coordination infrastructure."""

from gauntlet.core.errors import GauntletError


class ExecutionTimeoutError(GauntletError):
    """Raised when an agent exceeds its wall-clock budget.

    Always converted into a failed result for that agent.
    """

    def __init__(self, agent_id: str, timeout_seconds: float) -> None:
        self.agent_id = agent_id
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Failed to finish agent '{agent_id}': timed out after"
            f" {timeout_seconds:g} seconds",
            retriable=True,
        )
