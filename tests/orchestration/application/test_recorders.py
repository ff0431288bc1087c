"""Tests for the competitor and evaluator run recorders."""

from gauntlet.config.domain.sandbox import SandboxConfig
from gauntlet.coordination.domain.task import AgentRole, AgentRunResult, AgentTask
from gauntlet.orchestration.application.recorders import (
    CompetitorRecorder,
    EvaluatorRecorder,
)
from gauntlet.orchestration.application.workspace import Workspace
from gauntlet.sandbox.application.manager import SandboxManager
from gauntlet.sandbox.domain.sandbox import ExecResult
from gauntlet.session.domain.result import CostInfo
from gauntlet.session.domain.session import SessionConfig
from gauntlet.trial.domain.records import Competitor, Evaluator, RecordStatus, Trial
from gauntlet.trial.infrastructure.memory_repository import InMemoryTrialRepository
from tests.sandbox.fake_backend import ExecHandler, FakeHealthProbe, FakeSandboxBackend
from tests.sandbox.fake_observer import FakeSandboxObserver


def _task(agent_id: str, role: AgentRole = AgentRole.COMPETITOR) -> AgentTask:
    return AgentTask(
        agent_id=agent_id,
        trial_id="t1",
        role=role,
        name=agent_id,
        session=SessionConfig(system_prompt="x"),
        prompt="go",
    )


async def _make_competitor_recorder(
    handler: ExecHandler | None = None, branch: str | None = "gauntlet/trial-t1/a"
) -> tuple[
    CompetitorRecorder, InMemoryTrialRepository, FakeSandboxBackend, SandboxManager
]:
    repository = InMemoryTrialRepository()
    await repository.create_trial(Trial(id="t1", task="build"))
    await repository.add_competitors(
        [
            Competitor(
                id="a",
                trial_id="t1",
                name="Alpha",
                persona="An engineer.",
                model="sonnet",
                temperature=0.5,
                branch=branch,
                worktree_path="/workspace/alpha",
            )
        ]
    )
    backend = FakeSandboxBackend(exec_handler=handler)
    manager = SandboxManager(
        backend=backend,
        health_probe=FakeHealthProbe(),
        config=SandboxConfig(),
        observer=FakeSandboxObserver(),
    )
    sandbox = await manager.provision("t1")
    recorder = CompetitorRecorder(repository, Workspace(manager, sandbox))
    return recorder, repository, backend, manager


class TestCompetitorRecorder:
    """Competitor outcomes prefer the findings file and are committed."""

    async def test_started_marks_running(self) -> None:
        recorder, repository, _, manager = await _make_competitor_recorder()

        await recorder.run_started(_task("a"))

        competitor = await repository.get_competitor("a")
        assert competitor.status is RecordStatus.RUNNING
        await manager.close()

    async def test_findings_replace_output_and_worktree_is_committed(self) -> None:
        def handler(command: list[str]) -> ExecResult:
            if command[2].startswith("cat "):
                return ExecResult(stdout="# Findings", stderr="", exit_code=0)
            return ExecResult(stdout="", stderr="", exit_code=0)

        recorder, repository, backend, manager = await _make_competitor_recorder(
            handler
        )
        await recorder.run_started(_task("a"))

        await recorder.run_finished(
            _task("a"),
            AgentRunResult(
                agent_id="a",
                success=True,
                output="final text",
                cost=CostInfo(total_cost_usd=0.5),
            ),
        )

        competitor = await repository.get_competitor("a")
        assert competitor.status is RecordStatus.COMPLETED
        assert competitor.output == "# Findings"
        assert competitor.cost.total_cost_usd == 0.5
        assert "git commit" in backend.commands[-1][2]
        await manager.close()

    async def test_missing_findings_keeps_final_text(self) -> None:
        def handler(command: list[str]) -> ExecResult:
            if command[2].startswith("cat "):
                return ExecResult(stdout="", stderr="missing", exit_code=1)
            return ExecResult(stdout="", stderr="", exit_code=0)

        recorder, repository, _, manager = await _make_competitor_recorder(handler)

        await recorder.run_finished(
            _task("a"), AgentRunResult(agent_id="a", success=True, output="final text")
        )

        competitor = await repository.get_competitor("a")
        assert competitor.output == "final text"
        await manager.close()

    async def test_commit_failure_fails_the_competitor(self) -> None:
        def handler(command: list[str]) -> ExecResult:
            if "git commit" in command[2]:
                return ExecResult(stdout="", stderr="index.lock exists", exit_code=128)
            return ExecResult(stdout="", stderr="", exit_code=0)

        recorder, repository, _, manager = await _make_competitor_recorder(handler)

        await recorder.run_finished(
            _task("a"), AgentRunResult(agent_id="a", success=True, output="done")
        )

        competitor = await repository.get_competitor("a")
        assert competitor.status is RecordStatus.FAILED
        assert competitor.error is not None
        assert "commit changes" in competitor.error
        await manager.close()

    async def test_no_branch_skips_commit(self) -> None:
        recorder, _, backend, manager = await _make_competitor_recorder(branch=None)

        await recorder.run_finished(
            _task("a"), AgentRunResult(agent_id="a", success=True, output="done")
        )

        assert not any("git commit" in command[2] for command in backend.commands)
        await manager.close()

    async def test_failed_run_is_recorded(self) -> None:
        recorder, repository, _, manager = await _make_competitor_recorder()

        await recorder.run_finished(
            _task("a"),
            AgentRunResult(
                agent_id="a", success=False, error="timed out", timed_out=True
            ),
        )

        competitor = await repository.get_competitor("a")
        assert competitor.status is RecordStatus.FAILED
        assert competitor.error == "timed out"
        await manager.close()


class TestEvaluatorRecorder:
    """Evaluator outcomes keep the structured output only on success."""

    async def _repository(self) -> InMemoryTrialRepository:
        repository = InMemoryTrialRepository()
        await repository.create_trial(Trial(id="t1", task="build"))
        await repository.add_evaluators(
            [Evaluator(id="j", trial_id="t1", name="Judge", focus="tests")]
        )
        return repository

    async def test_success_stores_structured_output(self) -> None:
        repository = await self._repository()
        recorder = EvaluatorRecorder(repository)
        task = _task("j", AgentRole.EVALUATOR)

        await recorder.run_started(task)
        await recorder.run_finished(
            task,
            AgentRunResult(
                agent_id="j", success=True, structured_output={"summary": "ok"}
            ),
        )

        evaluator = await repository.get_evaluator("j")
        assert evaluator.status is RecordStatus.COMPLETED
        assert evaluator.result == {"summary": "ok"}

    async def test_failure_drops_output(self) -> None:
        repository = await self._repository()
        recorder = EvaluatorRecorder(repository)
        task = _task("j", AgentRole.EVALUATOR)

        await recorder.run_finished(
            task,
            AgentRunResult(
                agent_id="j",
                success=False,
                structured_output={"summary": "partial"},
                error="invalid output",
            ),
        )

        evaluator = await repository.get_evaluator("j")
        assert evaluator.status is RecordStatus.FAILED
        assert evaluator.result is None
        assert evaluator.error == "invalid output"
