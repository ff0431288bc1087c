"""ParallelCoordinator: runs N agent sessions concurrently inside one sandbox."""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Callable

from gauntlet.broadcast.application.hub import BroadcastHub
from gauntlet.broadcast.domain.event import BroadcastEvent
from gauntlet.coordination.domain.observer import CoordinationObserver
from gauntlet.coordination.domain.recorder import RunRecorder
from gauntlet.coordination.domain.task import (
    AgentRunResult,
    AgentTask,
    MergedEvent,
    RunReport,
)
from gauntlet.coordination.infrastructure.errors import ExecutionTimeoutError
from gauntlet.core.errors import GauntletError
from gauntlet.sandbox.domain.sandbox import Sandbox
from gauntlet.session.application.structured import StructuredRequester
from gauntlet.session.domain.client import AgentSessionClient
from gauntlet.session.domain.event import AgentEvent, event_payload
from gauntlet.session.domain.result import CostInfo
from gauntlet.session.domain.session import Session
from gauntlet.session.infrastructure.errors import SessionRequestError

AGENT_STARTED = "agent_started"
AGENT_PROGRESS = "agent_progress"
AGENT_COMPLETED = "agent_completed"
AGENT_FAILED = "agent_failed"

# Only these per-agent events are echoed as coarse progress on the trial topic.
_PROGRESS_EVENTS = frozenset({"assistant", "tool_use"})

type EventSink = Callable[[BroadcastEvent], None]


class ParallelCoordinator:
    """Fans tasks out to concurrent sessions and collects every outcome.

    The coordinator never requires all tasks to succeed: a failing, timed-out
    or stopped agent becomes a failed result and its siblings keep running.
    """

    def __init__(
        self,
        client: AgentSessionClient,
        requester: StructuredRequester,
        hub: BroadcastHub,
        observer: CoordinationObserver,
        default_timeout_seconds: float,
    ) -> None:
        self._client = client
        self._requester = requester
        self._hub = hub
        self._observer = observer
        self._default_timeout = default_timeout_seconds

    async def run_all(
        self,
        sandbox: Sandbox,
        tasks: list[AgentTask],
        credential: str,
        recorder: RunRecorder,
        stop: asyncio.Event | None = None,
    ) -> RunReport:
        """Run every task concurrently and return one result per task.

        Raises only when the recorder itself fails; agent failures of any
        kind are captured into their results.
        """
        self._announce(tasks)
        results: dict[str, AgentRunResult] = {}

        async def run_into_results(task: AgentTask) -> None:
            results[task.agent_id] = await self._run_one(
                sandbox, task, credential, recorder, stop, sink=None
            )

        try:
            async with asyncio.TaskGroup() as tg:
                for task in tasks:
                    tg.create_task(run_into_results(task))
        except* Exception as eg:
            raise eg.exceptions[0]

        return self._report(tasks, results)

    def run_all_merged(
        self,
        sandbox: Sandbox,
        tasks: list[AgentTask],
        credential: str,
        recorder: RunRecorder,
        stop: asyncio.Event | None = None,
    ) -> "MergedRun":
        """Like `run_all`, but also yields every event as it is produced.

        Iterate the returned MergedRun for the interleaved stream, then read
        its `report`.
        """
        return MergedRun(self, sandbox, tasks, credential, recorder, stop)

    def _announce(self, tasks: list[AgentTask]) -> None:
        if tasks:
            self._observer.coordination_started(
                trial_id=tasks[0].trial_id,
                role=tasks[0].role.value,
                task_count=len(tasks),
            )

    def _report(
        self, tasks: list[AgentTask], results: dict[str, AgentRunResult]
    ) -> RunReport:
        report = RunReport(
            results={task.agent_id: results[task.agent_id] for task in tasks}
        )
        if tasks:
            self._observer.coordination_completed(
                trial_id=tasks[0].trial_id,
                succeeded=len(report.succeeded),
                failed=len(report.failed),
                total_cost_usd=report.total_cost.total_cost_usd,
            )
        return report

    async def _run_one(
        self,
        sandbox: Sandbox,
        task: AgentTask,
        credential: str,
        recorder: RunRecorder,
        stop: asyncio.Event | None,
        sink: EventSink | None,
    ) -> AgentRunResult:
        events: list[BroadcastEvent] = []

        def forward(event: AgentEvent) -> None:
            entry = BroadcastEvent(type=event.name, data=event_payload(event))
            events.append(entry)
            self._hub.agents.publish(task.agent_id, entry)
            if event.name in _PROGRESS_EVENTS:
                self._hub.trials.publish(
                    task.trial_id,
                    BroadcastEvent.of(
                        AGENT_PROGRESS,
                        agent_id=task.agent_id,
                        role=task.role.value,
                        event=event.name,
                    ),
                )
            if sink is not None:
                sink(entry)

        await recorder.run_started(task)
        self._observer.coordination_agent_started(
            trial_id=task.trial_id, agent_id=task.agent_id
        )
        self._hub.trials.publish(
            task.trial_id,
            BroadcastEvent.of(
                AGENT_STARTED,
                agent_id=task.agent_id,
                role=task.role.value,
                name=task.name,
            ),
        )

        timeout = task.timeout_seconds or self._default_timeout
        session: Session | None = None
        try:
            async with asyncio.timeout(timeout):
                session = await self._client.create_session(
                    sandbox=sandbox, config=task.session, credential=credential
                )
                result = await self._converse(session, task, forward, stop)
        except TimeoutError:
            error = ExecutionTimeoutError(
                agent_id=task.agent_id, timeout_seconds=timeout
            )
            result = AgentRunResult(
                agent_id=task.agent_id, success=False, error=str(error), timed_out=True
            )
        except GauntletError as exc:
            result = AgentRunResult(
                agent_id=task.agent_id, success=False, error=str(exc)
            )
        except Exception as exc:
            # Any other failure stays local to this agent.
            result = AgentRunResult(
                agent_id=task.agent_id,
                success=False,
                error=f"Failed to run agent '{task.agent_id}': {exc!r}",
            )

        if session is not None:
            with contextlib.suppress(SessionRequestError):
                await self._client.end_session(session)

        result = result.model_copy(update={"events": events})
        # Records are written before anyone is told the agent finished.
        await recorder.run_finished(task, result)
        self._publish_outcome(task, result)
        return result

    async def _converse(
        self,
        session: Session,
        task: AgentTask,
        forward: Callable[[AgentEvent], None],
        stop: asyncio.Event | None,
    ) -> AgentRunResult:
        if task.output_type is not None:
            reply = await self._requester.request(
                session=session,
                content=task.prompt,
                output_type=task.output_type,
                on_event=forward,
                stop=stop,
            )
            return AgentRunResult(
                agent_id=task.agent_id,
                success=True,
                output=reply.result.result,
                structured_output=reply.value.model_dump(mode="json"),
                cost=reply.cost,
                turns=reply.result.turns,
            )

        terminal = await self._client.send_message(
            session=session, content=task.prompt, on_event=forward, stop=stop
        )
        return AgentRunResult(
            agent_id=task.agent_id,
            success=terminal.success and not terminal.aborted,
            output=terminal.result,
            structured_output=terminal.structured_output,
            error=terminal.error,
            cost=terminal.cost,
            turns=terminal.turns,
            aborted=terminal.aborted,
        )

    def _publish_outcome(self, task: AgentTask, result: AgentRunResult) -> None:
        if result.success:
            self._observer.coordination_agent_completed(
                trial_id=task.trial_id,
                agent_id=task.agent_id,
                turns=result.turns,
                cost_usd=result.cost.total_cost_usd,
            )
            event = BroadcastEvent.of(
                AGENT_COMPLETED,
                agent_id=task.agent_id,
                role=task.role.value,
                turns=result.turns,
                cost_usd=result.cost.total_cost_usd,
            )
        else:
            self._observer.coordination_agent_failed(
                trial_id=task.trial_id,
                agent_id=task.agent_id,
                reason=result.error or "unknown error",
            )
            event = BroadcastEvent.of(
                AGENT_FAILED,
                agent_id=task.agent_id,
                role=task.role.value,
                error=result.error,
                timed_out=result.timed_out,
            )
        self._hub.agents.publish(task.agent_id, event)
        self._hub.trials.publish(task.trial_id, event)


class _End:
    """Marks the end of one producer's event queue."""


_END = _End()


class MergedRun:
    """Interleaves the event streams of concurrently running agents.

    One pending `get` per producer queue is raced against all the others;
    whichever completes first is yielded and only that producer is re-armed,
    so each agent's own events keep their emission order.
    """

    def __init__(
        self,
        coordinator: ParallelCoordinator,
        sandbox: Sandbox,
        tasks: list[AgentTask],
        credential: str,
        recorder: RunRecorder,
        stop: asyncio.Event | None,
    ) -> None:
        self._coordinator = coordinator
        self._sandbox = sandbox
        self._tasks = tasks
        self._credential = credential
        self._recorder = recorder
        self._stop = stop
        self._report: RunReport | None = None

    @property
    def report(self) -> RunReport:
        if self._report is None:
            raise RuntimeError("merged run has not finished yet")
        return self._report

    @property
    def total_cost(self) -> CostInfo:
        return self.report.total_cost

    def __aiter__(self) -> AsyncIterator[MergedEvent]:
        return self._merge()

    async def _merge(self) -> AsyncIterator[MergedEvent]:
        self._coordinator._announce(self._tasks)
        queues: dict[str, asyncio.Queue[BroadcastEvent | _End]] = {
            task.agent_id: asyncio.Queue() for task in self._tasks
        }
        producers = {
            task.agent_id: asyncio.create_task(
                self._produce(task, queues[task.agent_id])
            )
            for task in self._tasks
        }
        getters: dict[asyncio.Task[BroadcastEvent | _End], str] = {
            asyncio.create_task(queue.get()): agent_id
            for agent_id, queue in queues.items()
        }

        try:
            while getters:
                done, _ = await asyncio.wait(
                    getters.keys(), return_when=asyncio.FIRST_COMPLETED
                )
                for getter in done:
                    agent_id = getters.pop(getter)
                    item = getter.result()
                    if isinstance(item, _End):
                        continue
                    yield MergedEvent(agent_id=agent_id, event=item)
                    getters[asyncio.create_task(queues[agent_id].get())] = agent_id

            results = {agent_id: await task for agent_id, task in producers.items()}
            self._report = self._coordinator._report(self._tasks, results)
        finally:
            for pending in [*getters, *producers.values()]:
                if not pending.done():
                    pending.cancel()

    async def _produce(
        self, task: AgentTask, queue: "asyncio.Queue[BroadcastEvent | _End]"
    ) -> AgentRunResult:
        try:
            return await self._coordinator._run_one(
                self._sandbox,
                task,
                self._credential,
                self._recorder,
                self._stop,
                sink=queue.put_nowait,
            )
        finally:
            queue.put_nowait(_END)
