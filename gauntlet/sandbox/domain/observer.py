"""Observer port for the sandbox domain: defines events in domain language."""

from typing import Protocol


class SandboxObserver(Protocol):
    """Observer port for sandbox lifecycle events."""

    def sandbox_provisioning(self, trial_id: str, image: str) -> None: ...

    def sandbox_provisioned(
        self, trial_id: str, sandbox_id: str, endpoint: str
    ) -> None: ...

    def sandbox_reused(self, trial_id: str, sandbox_id: str) -> None: ...

    def sandbox_unhealthy(self, trial_id: str, sandbox_id: str) -> None: ...

    def sandbox_ready(
        self, trial_id: str, sandbox_id: str, waited_seconds: float
    ) -> None: ...

    def sandbox_not_ready(
        self, trial_id: str, sandbox_id: str, waited_seconds: float
    ) -> None: ...

    def sandbox_destroyed(self, trial_id: str, sandbox_id: str, reason: str) -> None: ...

    def sandbox_expired(self, trial_id: str, sandbox_id: str, in_use: bool) -> None: ...

    def sandbox_forgotten(self, trial_id: str, sandbox_id: str) -> None: ...

    def sandbox_orphan_removed(self, trial_id: str, sandbox_id: str) -> None: ...
