"""RunRecorder port: durable bookkeeping for each agent of a parallel run."""

from typing import Protocol

from gauntlet.coordination.domain.task import AgentRunResult, AgentTask


class RunRecorder(Protocol):
    """Persists agent progress.

    `run_finished` completes before the completion event is published, so
    anyone reacting to the event reads up-to-date records.
    """

    async def run_started(self, task: AgentTask) -> None: ...

    async def run_finished(self, task: AgentTask, result: AgentRunResult) -> None: ...
