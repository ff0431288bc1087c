"""Pure score aggregation: per-competitor means and winner selection."""

import math
from dataclasses import dataclass

from gauntlet.config.domain.verdict import TiePolicy
from gauntlet.verdict.domain.evaluation import EvaluatorResult


@dataclass(frozen=True)
class Standing:
    competitor_id: str
    mean: float
    scored_by: int


@dataclass(frozen=True)
class Decision:
    """Winner selection outcome. `tied` lists every id sharing the top mean."""

    winner_id: str | None
    top_mean: float | None
    tied: list[str]


def standings(
    results: list[EvaluatorResult], competitor_ids: list[str] | None = None
) -> list[Standing]:
    """Mean score per competitor over the evaluators that actually scored it.

    An evaluator that omitted a competitor contributes nothing to its mean.
    Order is first appearance across evaluators in input order. When
    `competitor_ids` is given, scores for any other id are ignored.
    """
    known = set(competitor_ids) if competitor_ids is not None else None
    scores: dict[str, list[float]] = {}
    for result in results:
        for evaluation in result.output.evaluations:
            if known is not None and evaluation.competitor_id not in known:
                continue
            scores.setdefault(evaluation.competitor_id, []).append(evaluation.score)
    return [
        Standing(competitor_id=cid, mean=sum(values) / len(values), scored_by=len(values))
        for cid, values in scores.items()
    ]


def ranked(table: list[Standing]) -> list[Standing]:
    """Highest mean first; equal means keep their first-seen order."""
    return sorted(table, key=lambda s: -s.mean)


def decide(
    table: list[Standing],
    tie_policy: TiePolicy,
    required_coverage: int | None = None,
) -> Decision:
    """Pick the competitor with the strictly highest mean.

    With `required_coverage`, only competitors scored by at least that many
    evaluators are eligible. An exact tie at the top yields no winner under
    `TiePolicy.NO_WINNER` and the first-seen competitor under `FIRST_SEEN`.
    """
    eligible = [
        s for s in table if required_coverage is None or s.scored_by >= required_coverage
    ]
    if not eligible:
        return Decision(winner_id=None, top_mean=None, tied=[])

    top = max(s.mean for s in eligible)
    leaders = [s.competitor_id for s in eligible if math.isclose(s.mean, top)]
    if len(leaders) == 1 or tie_policy is TiePolicy.FIRST_SEEN:
        tied = leaders if len(leaders) > 1 else []
        return Decision(winner_id=leaders[0], top_mean=top, tied=tied)
    return Decision(winner_id=None, top_mean=top, tied=leaders)
