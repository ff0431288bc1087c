"""Structlog implementation of the VerdictObserver port."""

import structlog


class StructlogVerdictObserver:
    """Delegates verdict domain events to structlog.

    Satisfies the VerdictObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def verdict_synthesized(
        self,
        trial_id: str,
        verdict_id: str,
        winner_id: str | None,
        evaluator_count: int,
    ) -> None:
        self._log.info(
            "verdict.synthesized",
            trial_id=trial_id,
            verdict_id=verdict_id,
            winner_id=winner_id,
            evaluator_count=evaluator_count,
        )

    def verdict_reused(self, trial_id: str, verdict_id: str) -> None:
        self._log.info("verdict.reused", trial_id=trial_id, verdict_id=verdict_id)

    def verdict_tied(self, trial_id: str, competitor_ids: list[str]) -> None:
        self._log.warning(
            "verdict.tied", trial_id=trial_id, competitor_ids=competitor_ids
        )
