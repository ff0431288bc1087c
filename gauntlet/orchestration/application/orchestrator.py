"""TrialOrchestrator: drives a trial from task statement to verdict."""

import asyncio
import uuid

from gauntlet.broadcast.application.hub import BroadcastHub
from gauntlet.broadcast.domain.event import BroadcastEvent
from gauntlet.config.domain.config import GauntletConfig
from gauntlet.coordination.application.coordinator import ParallelCoordinator
from gauntlet.coordination.domain.task import AgentRole, AgentTask
from gauntlet.core.errors import GauntletError
from gauntlet.design.application.designer import TrialDesigner
from gauntlet.design.domain import prompts
from gauntlet.design.domain.roster import CompetitorRoster, EvaluatorRoster
from gauntlet.orchestration.application.recorders import (
    CompetitorRecorder,
    EvaluatorRecorder,
)
from gauntlet.orchestration.application.workspace import Workspace
from gauntlet.orchestration.domain.layout import (
    REPO_PATH,
    WORKSPACE_ROOT,
    branch_prefix,
    place,
)
from gauntlet.orchestration.domain.observer import OrchestrationObserver
from gauntlet.orchestration.infrastructure.errors import (
    AdvisoryUnavailableError,
    NoSuccessfulCompetitorsError,
    TrialStoppedError,
    WorkspaceError,
)
from gauntlet.sandbox.application.manager import SandboxManager
from gauntlet.sandbox.domain.sandbox import Sandbox
from gauntlet.sandbox.infrastructure.errors import ResourceUnavailableError
from gauntlet.session.application.manager import SessionManager
from gauntlet.session.domain.client import EventHandler
from gauntlet.session.domain.event import AgentEvent, event_payload
from gauntlet.session.domain.result import TerminalResult
from gauntlet.session.domain.session import SessionConfig
from gauntlet.trial.application.state_machine import TrialStateMachine
from gauntlet.trial.domain.phase import TrialPhase
from gauntlet.trial.domain.records import (
    Competitor,
    Evaluator,
    RecordStatus,
    Trial,
    TrialKind,
    Verdict,
)
from gauntlet.trial.domain.repository import TrialRepository
from gauntlet.verdict.application.synthesizer import VerdictSynthesizer
from gauntlet.verdict.domain.evaluation import EvaluatorOutput, EvaluatorResult

STEP = "step"
ERROR = "error"
SETUP_OUTPUT = "setup_output"
DESIGN_PROGRESS = "design_progress"
COMPETITION_COMPLETE = "competition_complete"
ADVISORY = "advisory"

_EVALUATOR_CAPABILITIES = ["Read", "Glob", "Grep", "Bash"]
_ADVISOR_CAPABILITIES = ["Read", "Glob", "Grep", "Bash"]
_PHASE_ORDER = list(TrialPhase)
_UNFINISHED = (RecordStatus.PENDING, RecordStatus.RUNNING)


def _reached(current: TrialPhase, phase: TrialPhase) -> bool:
    return _PHASE_ORDER.index(current) >= _PHASE_ORDER.index(phase)


class TrialOrchestrator:
    """Composes sandbox, sessions, coordinator and synthesizer into a trial.

    `run` always starts from the trial's persisted phase and reuses any
    competitor, evaluator or verdict records that already exist, so it can
    be called again on a trial interrupted mid-way.
    """

    def __init__(
        self,
        repository: TrialRepository,
        state_machine: TrialStateMachine,
        hub: BroadcastHub,
        sandboxes: SandboxManager,
        coordinator: ParallelCoordinator,
        designer: TrialDesigner,
        synthesizer: VerdictSynthesizer,
        advisory: SessionManager,
        config: GauntletConfig,
        observer: OrchestrationObserver,
    ) -> None:
        self._repository = repository
        self._state_machine = state_machine
        self._hub = hub
        self._sandboxes = sandboxes
        self._coordinator = coordinator
        self._designer = designer
        self._synthesizer = synthesizer
        self._advisory = advisory
        self._config = config
        self._observer = observer
        self._stops: dict[str, asyncio.Event] = {}

    @property
    def _credential(self) -> str:
        return self._config.credentials.agent_token

    async def create_trial(
        self,
        task: str,
        workspace_url: str | None = None,
        kind: TrialKind = TrialKind.TEAM,
    ) -> Trial:
        trial = Trial(
            id=uuid.uuid4().hex, task=task, kind=kind, workspace_url=workspace_url
        )
        await self._repository.create_trial(trial)
        self._observer.trial_created(trial_id=trial.id, kind=kind.value)
        return trial

    async def run(self, trial_id: str) -> Trial:
        """Advance the trial to `decree` and return its final record.

        On any step failure the trial is moved to `failed`, an `error` event
        is published, the sandbox is destroyed and the trial topic closed;
        the failure is then re-raised. A trial already in `decree` or a
        terminal phase is returned unchanged.
        """
        trial = await self._repository.get_trial(trial_id)
        if trial.phase.is_terminal or trial.phase is TrialPhase.DECREE:
            return trial
        if trial.phase is not TrialPhase.PENDING:
            self._observer.trial_resumed(trial_id=trial_id, phase=trial.phase.value)

        stop = asyncio.Event()
        self._stops[trial_id] = stop
        try:
            verdict = await self._run_phases(trial, stop)
        except Exception as exc:
            await self._fail(trial_id, exc)
            raise
        finally:
            self._stops.pop(trial_id, None)

        self._observer.trial_decreed(trial_id=trial_id, winner_id=verdict.winner_id)
        return await self._repository.get_trial(trial_id)

    def stop(self, trial_id: str) -> bool:
        """Signal a running trial to abort. Returns False if it is not running."""
        stop = self._stops.get(trial_id)
        if stop is None:
            return False
        self._observer.trial_stop_requested(trial_id=trial_id)
        stop.set()
        return True

    async def advise(
        self,
        trial_id: str,
        content: str,
        on_event: EventHandler | None = None,
    ) -> TerminalResult:
        """Continue the advisory conversation of a trial sitting in `decree`.

        Raises:
            AdvisoryUnavailableError: if the trial is not in `decree` or its
                sandbox has already been reclaimed.
        """
        trial = await self._repository.get_trial(trial_id)
        if trial.phase is not TrialPhase.DECREE:
            raise AdvisoryUnavailableError(
                trial_id=trial_id, reason=f"trial is in phase '{trial.phase.value}'"
            )
        sandbox = self._sandboxes.get(trial_id)
        if sandbox is None:
            raise AdvisoryUnavailableError(trial_id=trial_id, reason="sandbox is gone")

        if self._advisory.get(trial_id) is None:
            verdict = await self._repository.get_verdict(trial_id)
            if verdict is None:
                raise AdvisoryUnavailableError(trial_id=trial_id, reason="no verdict")
            competitors = await self._repository.list_competitors(trial_id)
            await self._advisory.open(
                trial_id=trial_id,
                sandbox=sandbox,
                config=SessionConfig(
                    system_prompt=prompts.advisor_system_prompt(
                        trial, verdict, competitors
                    ),
                    capabilities=_ADVISOR_CAPABILITIES,
                    model=self._config.models.advisor,
                    max_turns=self._config.execution.max_turns,
                    cwd=self._cwd(trial),
                ),
                credential=self._credential,
            )

        def forward(event: AgentEvent) -> object:
            self._hub.trials.publish(
                trial_id,
                BroadcastEvent.of(ADVISORY, event=event.name, data=event_payload(event)),
            )
            return on_event(event) if on_event is not None else None

        async with self._sandboxes.hold(sandbox):
            result = await self._advisory.send(trial_id, content, on_event=forward)
        self._observer.advisory_message_sent(trial_id=trial_id, success=result.success)
        return result

    async def conclude(self, trial_id: str) -> Trial:
        """Close out a decreed trial and release everything it still holds."""
        trial = await self._state_machine.transition(
            trial_id, TrialPhase.COMPLETE, {"reason": "concluded"}
        )
        await self._advisory.close(trial_id)
        sandbox = self._sandboxes.get(trial_id)
        if sandbox is not None:
            await self._sandboxes.destroy(sandbox, reason="concluded")
        self._hub.trials.close_topic(trial_id)
        self._observer.trial_concluded(trial_id=trial_id)
        return trial

    async def _run_phases(self, trial: Trial, stop: asyncio.Event) -> Verdict:
        if trial.phase is TrialPhase.PENDING:
            trial = await self._state_machine.transition(trial.id, TrialPhase.DESIGNING)

        sandbox = await self._provision(trial)
        # Agent sessions reach the sandbox over HTTP, which the idle sweep
        # cannot see.
        async with self._sandboxes.hold(sandbox):
            return await self._run_in_sandbox(trial, sandbox, stop)

    async def _run_in_sandbox(
        self, trial: Trial, sandbox: Sandbox, stop: asyncio.Event
    ) -> Verdict:
        workspace = Workspace(
            self._sandboxes, sandbox, token=self._config.credentials.git_token
        )
        await self._acquire(trial, sandbox, workspace, stop)

        competitors = await self._competitors(trial, sandbox, stop)
        if trial.phase is TrialPhase.DESIGNING:
            trial = await self._state_machine.transition(
                trial.id, TrialPhase.COMPETING, {"competitors": len(competitors)}
            )
        if trial.phase is TrialPhase.COMPETING:
            await self._compete(trial, sandbox, workspace, competitors, stop)
            trial = await self._state_machine.transition(
                trial.id, TrialPhase.EVALUATOR_DESIGN
            )

        finished = [
            c
            for c in await self._repository.list_competitors(trial.id)
            if c.status is RecordStatus.COMPLETED
        ]
        if not finished:
            raise NoSuccessfulCompetitorsError(
                trial_id=trial.id, attempted=len(competitors)
            )

        evaluators = await self._evaluators(trial, sandbox, finished, stop)
        if trial.phase is TrialPhase.EVALUATOR_DESIGN:
            trial = await self._state_machine.transition(
                trial.id, TrialPhase.EVALUATING, {"evaluators": len(evaluators)}
            )
        return await self._evaluate(trial, sandbox, finished, evaluators, stop)

    async def _provision(self, trial: Trial) -> Sandbox:
        self._step(trial.id, "provision", "Provisioning sandbox")
        sandbox = await self._sandboxes.provision(trial.id)
        self._step(trial.id, "wait_ready", "Waiting for agent runtime")
        if not await self._sandboxes.wait_until_ready(sandbox):
            raise ResourceUnavailableError(
                trial_id=trial.id, reason="agent runtime never became healthy"
            )
        return sandbox

    async def _acquire(
        self,
        trial: Trial,
        sandbox: Sandbox,
        workspace: Workspace,
        stop: asyncio.Event,
    ) -> None:
        if trial.workspace_url is None:
            return
        self._step(trial.id, "clone", "Cloning repository")
        await workspace.clone(trial.workspace_url)
        if _reached(trial.phase, TrialPhase.EVALUATOR_DESIGN):
            await workspace.fetch_branches(branch_prefix(trial.id))

        if not await workspace.has_setup_script():
            self._step(trial.id, "discover_setup", "Discovering setup script")
            reply = await self._designer.discover_setup(
                sandbox=sandbox,
                trial=trial,
                credential=self._credential,
                cwd=REPO_PATH,
                on_event=self._design_progress(trial.id, "setup"),
                stop=stop,
            )
            await workspace.write_setup_script(reply.value.setup_sh)

        self._step(trial.id, "setup", "Running setup script")
        output = await workspace.run_setup()
        self._hub.trials.publish(
            trial.id, BroadcastEvent.of(SETUP_OUTPUT, content=output)
        )
        self._ensure_running(trial.id, stop)

    async def _competitors(
        self, trial: Trial, sandbox: Sandbox, stop: asyncio.Event
    ) -> list[Competitor]:
        existing = await self._repository.list_competitors(trial.id)
        if existing:
            return existing

        self._step(trial.id, "design_competitors", "Designing competitors")
        reply = await self._designer.design_competitors(
            sandbox=sandbox,
            trial=trial,
            credential=self._credential,
            cwd=self._cwd(trial),
            on_event=self._design_progress(trial.id, "competitors"),
            stop=stop,
        )
        await self._save_artifact(trial.id, planning=reply.value.model_dump(mode="json"))
        competitors = self._new_competitors(trial, reply.value)
        await self._repository.add_competitors(competitors)
        self._ensure_running(trial.id, stop)
        return competitors

    def _new_competitors(
        self, trial: Trial, roster: CompetitorRoster
    ) -> list[Competitor]:
        placements = place(trial.id, [member.name for member in roster.competitors])
        return [
            Competitor(
                id=uuid.uuid4().hex,
                trial_id=trial.id,
                name=member.name,
                persona=member.persona,
                model=member.model,
                temperature=member.temperature,
                capabilities=member.tools,
                focus=member.focus,
                branch=placement.branch if trial.workspace_url else None,
                worktree_path=placement.worktree_path,
            )
            for member, placement in zip(roster.competitors, placements, strict=True)
        ]

    async def _compete(
        self,
        trial: Trial,
        sandbox: Sandbox,
        workspace: Workspace,
        competitors: list[Competitor],
        stop: asyncio.Event,
    ) -> None:
        pending = [c for c in competitors if c.status in _UNFINISHED]
        for competitor in pending:
            if competitor.worktree_path is not None:
                await workspace.add_worktree(competitor.worktree_path, competitor.branch)

        tasks = [
            AgentTask(
                agent_id=competitor.id,
                trial_id=trial.id,
                role=AgentRole.COMPETITOR,
                name=competitor.name,
                session=SessionConfig(
                    system_prompt=prompts.competitor_system_prompt(trial, competitor),
                    capabilities=competitor.capabilities,
                    model=competitor.model,
                    max_turns=self._config.execution.max_turns,
                    cwd=competitor.worktree_path or WORKSPACE_ROOT,
                ),
                prompt=prompts.COMPETITOR_USER_PROMPT,
            )
            for competitor in pending
        ]
        self._step(trial.id, "compete", f"{len(tasks)} competitor(s) starting")
        report = await self._coordinator.run_all(
            sandbox,
            tasks,
            self._credential,
            CompetitorRecorder(self._repository, workspace),
            stop,
        )
        self._close_agent_topics(tasks)
        self._hub.trials.publish(
            trial.id,
            BroadcastEvent.of(
                COMPETITION_COMPLETE,
                succeeded=len(report.succeeded),
                failed=len(report.failed),
                cost_usd=report.total_cost.total_cost_usd,
            ),
        )
        self._ensure_running(trial.id, stop)

        if trial.workspace_url is not None:
            self._step(trial.id, "push", "Pushing branches")
            try:
                await workspace.push(branch_prefix(trial.id))
            except WorkspaceError as exc:
                self._observer.workspace_push_failed(trial_id=trial.id, reason=str(exc))

    async def _evaluators(
        self,
        trial: Trial,
        sandbox: Sandbox,
        finished: list[Competitor],
        stop: asyncio.Event,
    ) -> list[Evaluator]:
        existing = await self._repository.list_evaluators(trial.id)
        if existing:
            return existing

        self._step(trial.id, "design_evaluators", "Designing evaluators")
        reply = await self._designer.design_evaluators(
            sandbox=sandbox,
            trial=trial,
            competitors=finished,
            credential=self._credential,
            cwd=self._cwd(trial),
            on_event=self._design_progress(trial.id, "evaluators"),
            stop=stop,
        )
        await self._save_artifact(trial.id, rubric=reply.value.model_dump(mode="json"))
        evaluators = self._new_evaluators(trial, reply.value)
        await self._repository.add_evaluators(evaluators)
        self._ensure_running(trial.id, stop)
        return evaluators

    def _new_evaluators(self, trial: Trial, roster: EvaluatorRoster) -> list[Evaluator]:
        return [
            Evaluator(
                id=uuid.uuid4().hex,
                trial_id=trial.id,
                name=member.name,
                focus=member.focus,
                criteria=member.criteria,
            )
            for member in roster.evaluators
        ]

    async def _evaluate(
        self,
        trial: Trial,
        sandbox: Sandbox,
        finished: list[Competitor],
        evaluators: list[Evaluator],
        stop: asyncio.Event,
    ) -> Verdict:
        if await self._repository.get_verdict(trial.id) is None:
            tasks = [
                AgentTask(
                    agent_id=evaluator.id,
                    trial_id=trial.id,
                    role=AgentRole.EVALUATOR,
                    name=evaluator.name,
                    session=SessionConfig(
                        system_prompt=prompts.evaluator_system_prompt(evaluator),
                        capabilities=_EVALUATOR_CAPABILITIES,
                        model=self._config.models.evaluator,
                        max_turns=self._config.execution.max_turns,
                        cwd=self._cwd(trial),
                    ),
                    prompt=prompts.evaluator_prompt(trial, finished),
                    output_type=EvaluatorOutput,
                )
                for evaluator in evaluators
                if evaluator.status in _UNFINISHED
            ]
            if tasks:
                self._step(trial.id, "evaluate", f"{len(tasks)} evaluator(s) starting")
                await self._coordinator.run_all(
                    sandbox,
                    tasks,
                    self._credential,
                    EvaluatorRecorder(self._repository),
                    stop,
                )
                self._close_agent_topics(tasks)
            self._ensure_running(trial.id, stop)

        results = [
            EvaluatorResult(
                evaluator_id=evaluator.id,
                evaluator_name=evaluator.name,
                output=EvaluatorOutput.model_validate(evaluator.result),
            )
            for evaluator in await self._repository.list_evaluators(trial.id)
            if evaluator.status is RecordStatus.COMPLETED and evaluator.result is not None
        ]
        self._step(trial.id, "synthesize", "Synthesizing verdict")
        return await self._synthesizer.synthesize(trial.id, results, finished)

    async def _fail(self, trial_id: str, exc: Exception) -> None:
        trial = await self._repository.get_trial(trial_id)
        reason = str(exc) if isinstance(exc, GauntletError) else repr(exc)
        self._observer.trial_failed(
            trial_id=trial_id, phase=trial.phase.value, reason=reason
        )
        self._hub.trials.publish(
            trial_id, BroadcastEvent.of(ERROR, phase=trial.phase.value, message=reason)
        )
        if not trial.phase.is_terminal:
            await self._state_machine.transition(
                trial_id,
                TrialPhase.FAILED,
                {"error": reason, "phase": trial.phase.value},
            )
        sandbox = self._sandboxes.get(trial_id)
        try:
            if sandbox is not None:
                await self._sandboxes.destroy(sandbox, reason="trial failed")
        except GauntletError as cleanup_exc:
            self._observer.trial_cleanup_failed(
                trial_id=trial_id, reason=str(cleanup_exc)
            )
        finally:
            self._hub.trials.close_topic(trial_id)

    async def _save_artifact(self, trial_id: str, **artifact: object) -> None:
        # Reload so the phase written by the state machine is never overwritten.
        current = await self._repository.get_trial(trial_id)
        await self._repository.save_trial(current.model_copy(update=artifact))

    def _ensure_running(self, trial_id: str, stop: asyncio.Event) -> None:
        if stop.is_set():
            raise TrialStoppedError(trial_id=trial_id)

    def _step(self, trial_id: str, step: str, message: str) -> None:
        self._observer.trial_step_started(trial_id=trial_id, step=step)
        self._hub.trials.publish(
            trial_id, BroadcastEvent.of(STEP, step=step, message=message)
        )

    def _design_progress(self, trial_id: str, step: str) -> EventHandler:
        def forward(event: AgentEvent) -> None:
            if event.name in ("assistant", "tool_use"):
                self._hub.trials.publish(
                    trial_id,
                    BroadcastEvent.of(DESIGN_PROGRESS, step=step, event=event.name),
                )

        return forward

    def _close_agent_topics(self, tasks: list[AgentTask]) -> None:
        for task in tasks:
            self._hub.agents.close_topic(task.agent_id)

    def _cwd(self, trial: Trial) -> str:
        return REPO_PATH if trial.workspace_url else WORKSPACE_ROOT
