"""Composition root: wires every context into one TrialOrchestrator."""

from dataclasses import dataclass

import httpx

from gauntlet.broadcast.application.hub import BroadcastHub
from gauntlet.broadcast.infrastructure.observer import StructlogBroadcastObserver
from gauntlet.config.domain.config import GauntletConfig
from gauntlet.coordination.application.coordinator import ParallelCoordinator
from gauntlet.coordination.infrastructure.observer import StructlogCoordinationObserver
from gauntlet.design.application.designer import TrialDesigner
from gauntlet.design.infrastructure.observer import StructlogDesignObserver
from gauntlet.orchestration.application.orchestrator import TrialOrchestrator
from gauntlet.orchestration.infrastructure.observer import (
    StructlogOrchestrationObserver,
)
from gauntlet.sandbox.application.manager import SandboxManager
from gauntlet.sandbox.domain.backend import SandboxBackend
from gauntlet.sandbox.infrastructure.docker_cli import DockerCliSandboxBackend
from gauntlet.sandbox.infrastructure.observer import StructlogSandboxObserver
from gauntlet.session.application.manager import SessionManager
from gauntlet.session.application.structured import StructuredRequester
from gauntlet.session.infrastructure.http_client import HttpAgentSessionClient
from gauntlet.session.infrastructure.observer import StructlogSessionObserver
from gauntlet.trial.application.state_machine import TrialStateMachine
from gauntlet.trial.domain.repository import TrialRepository
from gauntlet.trial.infrastructure.memory_repository import InMemoryTrialRepository
from gauntlet.trial.infrastructure.observer import StructlogTrialObserver
from gauntlet.verdict.application.synthesizer import VerdictSynthesizer
from gauntlet.verdict.infrastructure.observer import StructlogVerdictObserver


@dataclass(frozen=True)
class TrialServices:
    """Everything a caller needs to run trials and release their resources."""

    orchestrator: TrialOrchestrator
    hub: BroadcastHub
    repository: TrialRepository
    sandboxes: SandboxManager
    advisory: SessionManager

    def start(self) -> None:
        self.sandboxes.start()
        self.advisory.start()

    async def close(self) -> None:
        await self.advisory.destroy()
        await self.sandboxes.close()


def create_trial_services(
    config: GauntletConfig,
    http: httpx.AsyncClient,
    backend: SandboxBackend | None = None,
    repository: TrialRepository | None = None,
) -> TrialServices:
    """Build the production object graph for `config`.

    The caller owns `http` and must keep it open while the services run.
    """
    session_observer = StructlogSessionObserver()
    hub = BroadcastHub(observer=StructlogBroadcastObserver())
    repository = repository or InMemoryTrialRepository()
    client = HttpAgentSessionClient(http=http, observer=session_observer)
    requester = StructuredRequester(
        client=client,
        observer=session_observer,
        retries=config.execution.structured_retries,
    )
    sandboxes = SandboxManager(
        backend=backend or DockerCliSandboxBackend(),
        health_probe=client,
        config=config.sandbox,
        observer=StructlogSandboxObserver(),
    )
    state_machine = TrialStateMachine(
        repository=repository, hub=hub, observer=StructlogTrialObserver()
    )
    advisory = SessionManager(
        name="advisory",
        client=client,
        observer=session_observer,
        idle_timeout_seconds=config.sandbox.idle_timeout_seconds,
        sweep_interval_seconds=config.sandbox.sweep_interval_seconds,
    )
    orchestrator = TrialOrchestrator(
        repository=repository,
        state_machine=state_machine,
        hub=hub,
        sandboxes=sandboxes,
        coordinator=ParallelCoordinator(
            client=client,
            requester=requester,
            hub=hub,
            observer=StructlogCoordinationObserver(),
            default_timeout_seconds=config.execution.agent_timeout_seconds,
        ),
        designer=TrialDesigner(
            client=client,
            requester=requester,
            observer=StructlogDesignObserver(),
            models=config.models,
            max_turns=config.execution.max_turns,
        ),
        synthesizer=VerdictSynthesizer(
            repository=repository,
            state_machine=state_machine,
            config=config.verdict,
            observer=StructlogVerdictObserver(),
        ),
        advisory=advisory,
        config=config,
        observer=StructlogOrchestrationObserver(),
    )
    return TrialServices(
        orchestrator=orchestrator,
        hub=hub,
        repository=repository,
        sandboxes=sandboxes,
        advisory=advisory,
    )
