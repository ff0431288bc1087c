"""TrialRepository port: CRUD over trial records, queryable by trial id."""

from typing import Protocol

from gauntlet.trial.domain.records import Competitor, Evaluator, Trial, Verdict


class TrialRepository(Protocol):
    """Durable store for trials and their child records.

    Lookups of a missing record raise rather than return None, except for
    `get_verdict`, where absence is the normal state before synthesis.
    """

    async def create_trial(self, trial: Trial) -> None: ...

    async def get_trial(self, trial_id: str) -> Trial: ...

    async def save_trial(self, trial: Trial) -> None: ...

    async def add_competitors(self, competitors: list[Competitor]) -> None: ...

    async def list_competitors(self, trial_id: str) -> list[Competitor]: ...

    async def get_competitor(self, competitor_id: str) -> Competitor: ...

    async def save_competitor(self, competitor: Competitor) -> None: ...

    async def add_evaluators(self, evaluators: list[Evaluator]) -> None: ...

    async def list_evaluators(self, trial_id: str) -> list[Evaluator]: ...

    async def get_evaluator(self, evaluator_id: str) -> Evaluator: ...

    async def save_evaluator(self, evaluator: Evaluator) -> None: ...

    async def create_verdict(self, verdict: Verdict) -> None: ...

    async def get_verdict(self, trial_id: str) -> Verdict | None: ...
