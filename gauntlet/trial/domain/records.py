"""Durable records of a trial and everything derived from it."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from gauntlet.broadcast.domain.event import BroadcastEvent
from gauntlet.config.domain.models import ModelTier
from gauntlet.session.domain.result import CostInfo
from gauntlet.trial.domain.phase import TrialPhase


def _now() -> datetime:
    return datetime.now(UTC)


class TrialKind(StrEnum):
    SINGLE = "single"
    TEAM = "team"


class RecordStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    def can_advance_to(self, target: "RecordStatus") -> bool:
        """Statuses only move forward: pending, running, then an outcome."""
        if self is target:
            return True
        return _RANK[target] > _RANK[self] and self not in _FINAL


_RANK = {
    RecordStatus.PENDING: 0,
    RecordStatus.RUNNING: 1,
    RecordStatus.COMPLETED: 2,
    RecordStatus.FAILED: 2,
}
_FINAL = frozenset({RecordStatus.COMPLETED, RecordStatus.FAILED})


class Trial(BaseModel, frozen=True):
    """One end-to-end competitive run, mutated only through phase transitions.

    `planning` and `rubric` hold the design steps' artifacts: the competitor
    roster rationale and the evaluator roster with its criteria.
    """

    id: str = Field(min_length=1)
    task: str = Field(min_length=1)
    kind: TrialKind = TrialKind.TEAM
    phase: TrialPhase = TrialPhase.PENDING
    workspace_url: str | None = None
    planning: dict[str, Any] | None = None
    rubric: dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None


class Competitor(BaseModel, frozen=True):
    id: str = Field(min_length=1)
    trial_id: str = Field(min_length=1)
    name: str
    persona: str
    model: ModelTier
    temperature: float = Field(ge=0.0, le=1.0)
    capabilities: list[str] = Field(default_factory=list)
    focus: str = ""
    branch: str | None = None
    worktree_path: str | None = None
    status: RecordStatus = RecordStatus.PENDING
    output: str | None = None
    error: str | None = None
    cost: CostInfo = CostInfo()
    events: list[BroadcastEvent] = Field(default_factory=list)


class Evaluator(BaseModel, frozen=True):
    id: str = Field(min_length=1)
    trial_id: str = Field(min_length=1)
    name: str
    focus: str
    criteria: list[str] = Field(default_factory=list)
    status: RecordStatus = RecordStatus.PENDING
    result: dict[str, Any] | None = None
    error: str | None = None
    cost: CostInfo = CostInfo()


class Verdict(BaseModel, frozen=True):
    """The consensus outcome; created once per trial and never changed."""

    id: str = Field(min_length=1)
    trial_id: str = Field(min_length=1)
    summary: str
    winner_id: str | None
    reasoning: str
    scores: dict[str, float] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)
