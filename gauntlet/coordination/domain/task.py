"""Value objects for one parallel run: tasks in, results and a report out."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from gauntlet.broadcast.domain.event import BroadcastEvent
from gauntlet.session.domain.result import CostInfo
from gauntlet.session.domain.session import SessionConfig


class AgentRole(StrEnum):
    COMPETITOR = "competitor"
    EVALUATOR = "evaluator"


class AgentTask(BaseModel, frozen=True):
    """One agent's unit of work: open a session, send one prompt.

    When `output_type` is set the reply must validate against it, with the
    usual bounded retry; otherwise the plain final text is the output.
    """

    agent_id: str = Field(min_length=1)
    trial_id: str = Field(min_length=1)
    role: AgentRole
    name: str
    session: SessionConfig
    prompt: str = Field(min_length=1)
    output_type: type[BaseModel] | None = None
    timeout_seconds: float | None = Field(default=None, gt=0.0)


class AgentRunResult(BaseModel, frozen=True):
    agent_id: str
    success: bool
    output: str | None = None
    structured_output: Any = None
    error: str | None = None
    cost: CostInfo = CostInfo()
    turns: int = 0
    events: list[BroadcastEvent] = Field(default_factory=list)
    timed_out: bool = False
    aborted: bool = False


class RunReport(BaseModel, frozen=True):
    """Complete result map of a run, one entry per task, failures included."""

    results: dict[str, AgentRunResult]

    @property
    def total_cost(self) -> CostInfo:
        total = CostInfo()
        for result in self.results.values():
            total = total + result.cost
        return total

    @property
    def succeeded(self) -> list[str]:
        return [agent_id for agent_id, r in self.results.items() if r.success]

    @property
    def failed(self) -> list[str]:
        return [agent_id for agent_id, r in self.results.items() if not r.success]


class MergedEvent(BaseModel, frozen=True):
    """One event of the interleaved live view, tagged with its producer."""

    agent_id: str
    event: BroadcastEvent
