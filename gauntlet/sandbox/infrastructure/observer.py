"""Structlog implementation of the SandboxObserver port."""

import structlog


class StructlogSandboxObserver:
    """Delegates sandbox domain events to structlog.

    Satisfies the SandboxObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def sandbox_provisioning(self, trial_id: str, image: str) -> None:
        self._log.info("sandbox.provisioning", trial_id=trial_id, image=image)

    def sandbox_provisioned(
        self, trial_id: str, sandbox_id: str, endpoint: str
    ) -> None:
        self._log.info(
            "sandbox.provisioned",
            trial_id=trial_id,
            sandbox_id=sandbox_id,
            endpoint=endpoint,
        )

    def sandbox_reused(self, trial_id: str, sandbox_id: str) -> None:
        self._log.debug("sandbox.reused", trial_id=trial_id, sandbox_id=sandbox_id)

    def sandbox_unhealthy(self, trial_id: str, sandbox_id: str) -> None:
        self._log.warning(
            "sandbox.unhealthy", trial_id=trial_id, sandbox_id=sandbox_id
        )

    def sandbox_ready(
        self, trial_id: str, sandbox_id: str, waited_seconds: float
    ) -> None:
        self._log.info(
            "sandbox.ready",
            trial_id=trial_id,
            sandbox_id=sandbox_id,
            waited_seconds=round(waited_seconds, 2),
        )

    def sandbox_not_ready(
        self, trial_id: str, sandbox_id: str, waited_seconds: float
    ) -> None:
        self._log.error(
            "sandbox.not_ready",
            trial_id=trial_id,
            sandbox_id=sandbox_id,
            waited_seconds=round(waited_seconds, 2),
        )

    def sandbox_destroyed(self, trial_id: str, sandbox_id: str, reason: str) -> None:
        self._log.info(
            "sandbox.destroyed",
            trial_id=trial_id,
            sandbox_id=sandbox_id,
            reason=reason,
        )

    def sandbox_expired(self, trial_id: str, sandbox_id: str, in_use: bool) -> None:
        # An expiry while a command is in flight surfaces as a trial error.
        log = self._log.warning if in_use else self._log.info
        log(
            "sandbox.expired",
            trial_id=trial_id,
            sandbox_id=sandbox_id,
            in_use=in_use,
        )

    def sandbox_forgotten(self, trial_id: str, sandbox_id: str) -> None:
        self._log.warning(
            "sandbox.forgotten", trial_id=trial_id, sandbox_id=sandbox_id
        )

    def sandbox_orphan_removed(self, trial_id: str, sandbox_id: str) -> None:
        self._log.info(
            "sandbox.orphan_removed", trial_id=trial_id, sandbox_id=sandbox_id
        )
