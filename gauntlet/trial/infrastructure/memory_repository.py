"""InMemoryTrialRepository: a process-local TrialRepository."""

from gauntlet.trial.domain.records import (
    Competitor,
    Evaluator,
    RecordStatus,
    Trial,
    Verdict,
)
from gauntlet.trial.infrastructure.errors import (
    InvalidStatusChangeError,
    RecordNotFoundError,
    TrialNotFoundError,
    VerdictExistsError,
)


class InMemoryTrialRepository:
    """Keeps every record in dicts keyed by id.

    Satisfies the TrialRepository protocol structurally. Suitable for a
    single orchestrator process and for tests.
    """

    def __init__(self) -> None:
        self._trials: dict[str, Trial] = {}
        self._competitors: dict[str, Competitor] = {}
        self._evaluators: dict[str, Evaluator] = {}
        self._verdicts: dict[str, Verdict] = {}

    async def create_trial(self, trial: Trial) -> None:
        self._trials[trial.id] = trial

    async def get_trial(self, trial_id: str) -> Trial:
        trial = self._trials.get(trial_id)
        if trial is None:
            raise TrialNotFoundError(trial_id=trial_id)
        return trial

    async def save_trial(self, trial: Trial) -> None:
        if trial.id not in self._trials:
            raise TrialNotFoundError(trial_id=trial.id)
        self._trials[trial.id] = trial

    async def add_competitors(self, competitors: list[Competitor]) -> None:
        for competitor in competitors:
            self._competitors[competitor.id] = competitor

    async def list_competitors(self, trial_id: str) -> list[Competitor]:
        return [c for c in self._competitors.values() if c.trial_id == trial_id]

    async def get_competitor(self, competitor_id: str) -> Competitor:
        competitor = self._competitors.get(competitor_id)
        if competitor is None:
            raise RecordNotFoundError(kind="competitor", record_id=competitor_id)
        return competitor

    async def save_competitor(self, competitor: Competitor) -> None:
        current = await self.get_competitor(competitor.id)
        _check_status(competitor.id, current.status, competitor.status)
        self._competitors[competitor.id] = competitor

    async def add_evaluators(self, evaluators: list[Evaluator]) -> None:
        for evaluator in evaluators:
            self._evaluators[evaluator.id] = evaluator

    async def list_evaluators(self, trial_id: str) -> list[Evaluator]:
        return [e for e in self._evaluators.values() if e.trial_id == trial_id]

    async def get_evaluator(self, evaluator_id: str) -> Evaluator:
        evaluator = self._evaluators.get(evaluator_id)
        if evaluator is None:
            raise RecordNotFoundError(kind="evaluator", record_id=evaluator_id)
        return evaluator

    async def save_evaluator(self, evaluator: Evaluator) -> None:
        current = await self.get_evaluator(evaluator.id)
        _check_status(evaluator.id, current.status, evaluator.status)
        self._evaluators[evaluator.id] = evaluator

    async def create_verdict(self, verdict: Verdict) -> None:
        if verdict.trial_id in self._verdicts:
            raise VerdictExistsError(trial_id=verdict.trial_id)
        self._verdicts[verdict.trial_id] = verdict

    async def get_verdict(self, trial_id: str) -> Verdict | None:
        return self._verdicts.get(trial_id)


def _check_status(record_id: str, current: RecordStatus, target: RecordStatus) -> None:
    if not current.can_advance_to(target):
        raise InvalidStatusChangeError(
            record_id=record_id, current=current.value, target=target.value
        )
