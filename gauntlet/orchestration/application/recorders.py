"""RunRecorders that persist competitor and evaluator records for a run."""

from gauntlet.coordination.domain.task import AgentRunResult, AgentTask
from gauntlet.orchestration.application.workspace import Workspace
from gauntlet.orchestration.infrastructure.errors import WorkspaceError
from gauntlet.trial.domain.records import RecordStatus
from gauntlet.trial.domain.repository import TrialRepository


class CompetitorRecorder:
    """Satisfies the RunRecorder protocol for competitor runs.

    On finish it prefers the competitor's findings file over its final text
    and commits the worktree, so the branch holds the submission before the
    completion event goes out.
    """

    def __init__(self, repository: TrialRepository, workspace: Workspace) -> None:
        self._repository = repository
        self._workspace = workspace

    async def run_started(self, task: AgentTask) -> None:
        competitor = await self._repository.get_competitor(task.agent_id)
        await self._repository.save_competitor(
            competitor.model_copy(update={"status": RecordStatus.RUNNING})
        )

    async def run_finished(self, task: AgentTask, result: AgentRunResult) -> None:
        competitor = await self._repository.get_competitor(task.agent_id)
        success = result.success
        error = result.error
        output = result.output

        if competitor.worktree_path is not None:
            findings = await self._workspace.read_findings(competitor.worktree_path)
            output = findings or output
            if competitor.branch is not None:
                try:
                    await self._workspace.commit(
                        competitor.worktree_path,
                        f"{competitor.name} submission",
                    )
                except WorkspaceError as exc:
                    success = False
                    error = str(exc)

        await self._repository.save_competitor(
            competitor.model_copy(
                update={
                    "status": RecordStatus.COMPLETED if success else RecordStatus.FAILED,
                    "output": output,
                    "error": error,
                    "cost": result.cost,
                    "events": result.events,
                }
            )
        )


class EvaluatorRecorder:
    """Satisfies the RunRecorder protocol for evaluator runs."""

    def __init__(self, repository: TrialRepository) -> None:
        self._repository = repository

    async def run_started(self, task: AgentTask) -> None:
        evaluator = await self._repository.get_evaluator(task.agent_id)
        await self._repository.save_evaluator(
            evaluator.model_copy(update={"status": RecordStatus.RUNNING})
        )

    async def run_finished(self, task: AgentTask, result: AgentRunResult) -> None:
        evaluator = await self._repository.get_evaluator(task.agent_id)
        await self._repository.save_evaluator(
            evaluator.model_copy(
                update={
                    "status": (
                        RecordStatus.COMPLETED if result.success else RecordStatus.FAILED
                    ),
                    "result": result.structured_output if result.success else None,
                    "error": result.error,
                    "cost": result.cost,
                }
            )
        )
