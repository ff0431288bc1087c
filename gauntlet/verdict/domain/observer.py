"""Observer port for the verdict domain: defines events in domain language."""

from typing import Protocol


class VerdictObserver(Protocol):
    """Observer port for verdict synthesis events."""

    def verdict_synthesized(
        self,
        trial_id: str,
        verdict_id: str,
        winner_id: str | None,
        evaluator_count: int,
    ) -> None: ...

    def verdict_reused(self, trial_id: str, verdict_id: str) -> None: ...

    def verdict_tied(self, trial_id: str, competitor_ids: list[str]) -> None: ...
