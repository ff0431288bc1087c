"""Ports for the isolated-execution backend and the runtime liveness probe."""

from typing import Protocol

from gauntlet.sandbox.domain.sandbox import EnvironmentInfo, ExecResult, SandboxLimits

TRIAL_LABEL = "gauntlet.trial-id"
CREATED_LABEL = "gauntlet.created-at"
# Scopes reconciliation to the environments of one orchestrator instance.
INSTANCE_LABEL = "gauntlet.instance"


class SandboxBackend(Protocol):
    """Create/start/exec/stop/remove operations on isolated environments.

    Implementations raise SandboxGoneError when the environment no longer
    exists and SandboxCommandError for any other backend failure. A non-zero
    exit status from `exec` is a normal result, not an error. The `list`
    filter is either a bare label key or a `key=value` pair.
    """

    async def create(
        self,
        name: str,
        image: str,
        limits: SandboxLimits,
        labels: dict[str, str],
        port: int,
    ) -> str: ...

    async def start(self, environment_id: str) -> None: ...

    async def endpoint(self, environment_id: str, port: int) -> str: ...

    async def exec(self, environment_id: str, command: list[str]) -> ExecResult: ...

    async def stop(self, environment_id: str) -> None: ...

    async def remove(self, environment_id: str) -> None: ...

    async def list(self, label: str) -> list[EnvironmentInfo]: ...


class HealthProbe(Protocol):
    """Liveness check against the agent runtime inside a sandbox."""

    async def is_healthy(self, endpoint: str) -> bool: ...
