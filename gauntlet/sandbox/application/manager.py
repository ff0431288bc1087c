"""SandboxManager: provisions, health-checks, expires and destroys sandboxes."""

import asyncio
import contextlib
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from gauntlet.config.domain.sandbox import SandboxConfig
from gauntlet.core.errors import GauntletError
from gauntlet.sandbox.domain.backend import (
    CREATED_LABEL,
    INSTANCE_LABEL,
    TRIAL_LABEL,
    HealthProbe,
    SandboxBackend,
)
from gauntlet.sandbox.domain.observer import SandboxObserver
from gauntlet.sandbox.domain.sandbox import ExecResult, Sandbox, SandboxLimits
from gauntlet.sandbox.infrastructure.errors import (
    ResourceUnavailableError,
    SandboxCommandError,
    SandboxGoneError,
)


@dataclass
class _Entry:
    """Registry slot for one live sandbox."""

    sandbox: Sandbox
    last_activity: float
    in_use: int = 0
    expiry_task: asyncio.Task[None] | None = field(default=None, repr=False)


@dataclass(frozen=True)
class ReconcileReport:
    forgotten: list[str]
    removed: list[str]


class SandboxManager:
    """Process-wide registry of sandboxes, one per trial.

    The registry map is private: every read and write goes through this
    class. Concurrent `provision` calls for the same trial share one
    in-flight creation instead of taking a lock.
    """

    def __init__(
        self,
        backend: SandboxBackend,
        health_probe: HealthProbe,
        config: SandboxConfig,
        observer: SandboxObserver,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self._health_probe = health_probe
        self._config = config
        self._observer = observer
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._pending: dict[str, asyncio.Task[Sandbox]] = {}
        self._sweeper: asyncio.Task[None] | None = None

    def get(self, trial_id: str) -> Sandbox | None:
        entry = self._entries.get(trial_id)
        return entry.sandbox if entry is not None else None

    def last_activity(self, trial_id: str) -> float | None:
        entry = self._entries.get(trial_id)
        return entry.last_activity if entry is not None else None

    async def provision(
        self,
        trial_id: str,
        image: str | None = None,
        limits: SandboxLimits | None = None,
    ) -> Sandbox:
        """Return the trial's sandbox, creating it on first use.

        An existing sandbox whose runtime fails the liveness probe is torn
        down and replaced.

        Raises:
            ResourceUnavailableError: if the backend cannot create or start
                the environment.
        """
        entry = self._entries.get(trial_id)
        if entry is not None:
            if await self._health_probe.is_healthy(entry.sandbox.endpoint):
                entry.last_activity = self._clock()
                self._observer.sandbox_reused(
                    trial_id=trial_id, sandbox_id=entry.sandbox.id
                )
                return entry.sandbox
            self._observer.sandbox_unhealthy(
                trial_id=trial_id, sandbox_id=entry.sandbox.id
            )
            # A concurrent caller may already have replaced it.
            if self._entries.get(trial_id) is entry:
                await self._teardown(entry, reason="unhealthy")

        pending = self._pending.get(trial_id)
        if pending is None:
            pending = asyncio.create_task(
                self._create(
                    trial_id=trial_id,
                    image=image or self._config.image,
                    limits=limits or SandboxLimits.from_config(self._config),
                )
            )
            self._pending[trial_id] = pending
            pending.add_done_callback(lambda _: self._pending.pop(trial_id, None))
        return await asyncio.shield(pending)

    async def wait_until_ready(
        self, sandbox: Sandbox, max_wait_seconds: float | None = None
    ) -> bool:
        """Poll the runtime liveness endpoint at a fixed interval until healthy."""
        max_wait = (
            self._config.ready_timeout_seconds
            if max_wait_seconds is None
            else max_wait_seconds
        )
        started = time.monotonic()
        deadline = started + max_wait
        while True:
            if await self._health_probe.is_healthy(sandbox.endpoint):
                self._observer.sandbox_ready(
                    trial_id=sandbox.trial_id,
                    sandbox_id=sandbox.id,
                    waited_seconds=time.monotonic() - started,
                )
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._observer.sandbox_not_ready(
                    trial_id=sandbox.trial_id,
                    sandbox_id=sandbox.id,
                    waited_seconds=time.monotonic() - started,
                )
                return False
            await asyncio.sleep(
                min(self._config.ready_poll_interval_seconds, remaining)
            )

    async def execute(self, sandbox: Sandbox, command: list[str]) -> ExecResult:
        """Run a command inside the sandbox.

        Last activity is stamped before the command starts so that an idle
        sweep never reclaims a sandbox mid-command.

        Raises:
            SandboxGoneError: if the sandbox was destroyed or expired.
            SandboxCommandError: if the backend rejects the exec call.
        """
        async with self.hold(sandbox):
            return await self._backend.exec(sandbox.id, command)

    @contextlib.asynccontextmanager
    async def hold(self, sandbox: Sandbox) -> AsyncIterator[Sandbox]:
        """Mark the sandbox in use for the duration of the block.

        The idle sweep skips held sandboxes, and activity is stamped on entry
        and exit. Expiry still applies. Holds nest and may overlap.

        Raises:
            SandboxGoneError: if the sandbox was destroyed or expired.
        """
        entry = self._entries.get(sandbox.trial_id)
        if entry is None or entry.sandbox.id != sandbox.id:
            raise SandboxGoneError(environment_id=sandbox.id)

        entry.in_use += 1
        entry.last_activity = self._clock()
        try:
            yield sandbox
        finally:
            entry.in_use -= 1
            entry.last_activity = self._clock()

    async def destroy(self, sandbox: Sandbox, reason: str = "requested") -> None:
        """Stop and remove the sandbox. Safe to call any number of times."""
        entry = self._entries.get(sandbox.trial_id)
        if entry is not None and entry.sandbox.id == sandbox.id:
            await self._teardown(entry, reason=reason)
            return
        await self._remove_environment(sandbox.id)

    async def sweep_idle(self) -> list[str]:
        """Destroy every sandbox idle longer than the configured threshold.

        Sandboxes with a command in flight or an open `hold` are skipped.
        Returns the trial ids that were reclaimed.
        """
        now = self._clock()
        idle = [
            entry
            for entry in self._entries.values()
            if entry.in_use == 0
            and now - entry.last_activity > self._config.idle_timeout_seconds
        ]
        for entry in idle:
            await self._teardown(entry, reason="idle")
        return [entry.sandbox.trial_id for entry in idle]

    async def reconcile(self) -> ReconcileReport:
        """Bring the registry in line with what the backend actually runs.

        Registry entries whose environment has vanished are forgotten;
        environments labelled with this manager's instance name that the
        registry does not know are removed. Orchestrators sharing a host must
        use distinct instance names.
        """
        environments = await self._backend.list(
            label=f"{INSTANCE_LABEL}={self._config.instance}"
        )
        live_ids = {env.id for env in environments if env.running}
        known_ids = {entry.sandbox.id for entry in self._entries.values()}

        forgotten: list[str] = []
        for trial_id, entry in list(self._entries.items()):
            if entry.sandbox.id in live_ids:
                continue
            self._forget(entry)
            forgotten.append(trial_id)
            self._observer.sandbox_forgotten(
                trial_id=trial_id, sandbox_id=entry.sandbox.id
            )

        removed: list[str] = []
        for env in environments:
            if env.id in known_ids and env.id in live_ids:
                continue
            await self._remove_environment(env.id)
            removed.append(env.id)
            self._observer.sandbox_orphan_removed(
                trial_id=env.trial_id, sandbox_id=env.id
            )

        return ReconcileReport(forgotten=forgotten, removed=removed)

    def start(self) -> None:
        """Start the periodic idle sweep."""
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep_forever())

    async def close(self) -> None:
        """Stop the idle sweep and destroy every registered sandbox."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
        for entry in list(self._entries.values()):
            await self._teardown(entry, reason="shutdown")

    async def _create(
        self, trial_id: str, image: str, limits: SandboxLimits
    ) -> Sandbox:
        self._observer.sandbox_provisioning(trial_id=trial_id, image=image)
        created_at = datetime.now(UTC)
        environment_id: str | None = None
        try:
            environment_id = await self._backend.create(
                name=f"gauntlet-{trial_id}",
                image=image,
                limits=limits,
                labels={
                    TRIAL_LABEL: trial_id,
                    INSTANCE_LABEL: self._config.instance,
                    CREATED_LABEL: created_at.isoformat(),
                },
                port=self._config.runtime_port,
            )
            await self._backend.start(environment_id)
            endpoint = await self._backend.endpoint(
                environment_id, self._config.runtime_port
            )
        except GauntletError as exc:
            if environment_id is not None:
                with contextlib.suppress(SandboxCommandError):
                    await self._remove_environment(environment_id)
            raise ResourceUnavailableError(trial_id=trial_id, reason=str(exc)) from exc

        sandbox = Sandbox(
            id=environment_id,
            trial_id=trial_id,
            endpoint=endpoint,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=limits.expiry_seconds),
        )
        entry = _Entry(sandbox=sandbox, last_activity=self._clock())
        entry.expiry_task = asyncio.create_task(
            self._expire_after(entry, limits.expiry_seconds)
        )
        self._entries[trial_id] = entry
        self._observer.sandbox_provisioned(
            trial_id=trial_id, sandbox_id=sandbox.id, endpoint=endpoint
        )
        return sandbox

    async def _expire_after(self, entry: _Entry, seconds: float) -> None:
        await asyncio.sleep(seconds)
        if self._entries.get(entry.sandbox.trial_id) is not entry:
            return
        self._observer.sandbox_expired(
            trial_id=entry.sandbox.trial_id,
            sandbox_id=entry.sandbox.id,
            in_use=entry.in_use > 0,
        )
        await self._teardown(entry, reason="expired")

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._config.sweep_interval_seconds)
            await self.sweep_idle()

    async def _teardown(self, entry: _Entry, reason: str) -> None:
        self._forget(entry)
        await self._remove_environment(entry.sandbox.id)
        self._observer.sandbox_destroyed(
            trial_id=entry.sandbox.trial_id,
            sandbox_id=entry.sandbox.id,
            reason=reason,
        )

    def _forget(self, entry: _Entry) -> None:
        if self._entries.get(entry.sandbox.trial_id) is entry:
            del self._entries[entry.sandbox.trial_id]
        task = entry.expiry_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _remove_environment(self, environment_id: str) -> None:
        # Stop may fail on an environment that already exited; remove forces it.
        with contextlib.suppress(SandboxGoneError, SandboxCommandError):
            await self._backend.stop(environment_id)
        with contextlib.suppress(SandboxGoneError):
            await self._backend.remove(environment_id)
