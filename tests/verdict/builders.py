"""Builders for evaluator results used across verdict tests."""

from gauntlet.verdict.domain.evaluation import (
    CompetitorEvaluation,
    EvaluatorOutput,
    EvaluatorResult,
)


def make_result(
    evaluator_id: str, scores: dict[str, float], summary: str = "Solid work overall."
) -> EvaluatorResult:
    evaluations = [
        CompetitorEvaluation(
            competitor_id=competitor_id,
            score=score,
            strengths=["clear"],
            weaknesses=["slow"],
            reasoning=f"{evaluator_id} gave {competitor_id} {score:g}.",
        )
        for competitor_id, score in scores.items()
    ]
    return EvaluatorResult(
        evaluator_id=evaluator_id,
        evaluator_name=evaluator_id.title(),
        output=EvaluatorOutput(
            evaluations=evaluations,
            ranking=sorted(scores, key=lambda cid: -scores[cid]),
            summary=summary,
        ),
    )
