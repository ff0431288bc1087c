"""VerdictSynthesizer: turns independent evaluator score-sets into one verdict."""

import uuid

from gauntlet.config.domain.verdict import VerdictConfig
from gauntlet.trial.application.state_machine import TrialStateMachine
from gauntlet.trial.domain.phase import TrialPhase
from gauntlet.trial.domain.records import Competitor, Verdict
from gauntlet.trial.domain.repository import TrialRepository
from gauntlet.verdict.domain.evaluation import EvaluatorResult
from gauntlet.verdict.domain.observer import VerdictObserver
from gauntlet.verdict.domain.scoring import Decision, Standing, decide, ranked, standings
from gauntlet.verdict.infrastructure.errors import NoEvaluationsError

_EXCERPT_CHARS = 200


class VerdictSynthesizer:
    """Aggregates evaluator results by mean score and records the verdict.

    Synthesis is idempotent: when the trial already has a verdict it is
    returned as-is and only the phase is advanced.
    """

    def __init__(
        self,
        repository: TrialRepository,
        state_machine: TrialStateMachine,
        config: VerdictConfig,
        observer: VerdictObserver,
    ) -> None:
        self._repository = repository
        self._state_machine = state_machine
        self._config = config
        self._observer = observer

    async def synthesize(
        self,
        trial_id: str,
        evaluator_results: list[EvaluatorResult],
        competitors: list[Competitor],
    ) -> Verdict:
        """Compute, persist and announce the verdict, moving the trial to decree.

        Raises:
            NoEvaluationsError: if there is no existing verdict and no
                evaluator result to aggregate.
            InvalidTransitionError: if the trial is not in `evaluating`.
        """
        existing = await self._repository.get_verdict(trial_id)
        if existing is not None:
            self._observer.verdict_reused(trial_id=trial_id, verdict_id=existing.id)
            await self._state_machine.transition(
                trial_id,
                TrialPhase.DECREE,
                {"verdict_id": existing.id, "winner_id": existing.winner_id},
            )
            return existing

        if not evaluator_results:
            raise NoEvaluationsError(trial_id=trial_id)

        names = {c.id: c.name for c in competitors}
        table = standings(evaluator_results, competitor_ids=list(names))
        coverage = len(evaluator_results) if self._config.require_full_coverage else None
        decision = decide(table, self._config.tie_policy, required_coverage=coverage)
        if decision.tied:
            self._observer.verdict_tied(trial_id=trial_id, competitor_ids=decision.tied)

        verdict = Verdict(
            id=uuid.uuid4().hex,
            trial_id=trial_id,
            summary=_summary(evaluator_results, table, decision, names),
            winner_id=decision.winner_id,
            reasoning=_reasoning(evaluator_results, decision, names),
            scores={s.competitor_id: s.mean for s in table},
        )
        await self._repository.create_verdict(verdict)
        self._observer.verdict_synthesized(
            trial_id=trial_id,
            verdict_id=verdict.id,
            winner_id=verdict.winner_id,
            evaluator_count=len(evaluator_results),
        )
        await self._state_machine.transition(
            trial_id,
            TrialPhase.DECREE,
            {
                "verdict_id": verdict.id,
                "winner_id": decision.winner_id,
                "winner_name": names.get(decision.winner_id or ""),
                "average_score": decision.top_mean,
            },
        )
        return verdict


def _excerpt(text: str) -> str:
    text = " ".join(text.split())
    if len(text) <= _EXCERPT_CHARS:
        return text
    return text[: _EXCERPT_CHARS - 3].rstrip() + "..."


def _judges(count: int) -> str:
    return f"{count} specialized judge{'s' if count != 1 else ''}"


def _headline(count: int, decision: Decision, names: dict[str, str]) -> str:
    if decision.winner_id is not None:
        return (
            f"After evaluation by {_judges(count)}, {names[decision.winner_id]}"
            f" emerged as the winner with an average score of"
            f" {decision.top_mean:.1f}/100."
        )
    if decision.tied:
        tied = ", ".join(names[cid] for cid in decision.tied)
        return (
            f"After evaluation by {_judges(count)}, no single winner emerged:"
            f" {tied} tied at an average score of {decision.top_mean:.1f}/100."
        )
    return (
        f"After evaluation by {_judges(count)}, no competitor was eligible to win."
    )


def _summary(
    results: list[EvaluatorResult],
    table: list[Standing],
    decision: Decision,
    names: dict[str, str],
) -> str:
    lines = [_headline(len(results), decision, names), "", "## Final Scores", ""]
    for position, standing in enumerate(ranked(table), start=1):
        scored_by = f"{standing.scored_by}/{len(results)} judges"
        lines.append(
            f"{position}. {names[standing.competitor_id]}:"
            f" {standing.mean:.1f}/100 ({scored_by})"
        )

    lines += ["", "## Judge Perspectives", ""]
    for result in results:
        lines.append(f"**{result.evaluator_name}**: {_excerpt(result.output.summary)}")
    return "\n".join(lines)


def _reasoning(
    results: list[EvaluatorResult], decision: Decision, names: dict[str, str]
) -> str:
    lines = [
        "Each competitor's score is the mean of the scores it received from the"
        " judges that evaluated it; a judge that did not score a competitor does"
        " not count toward that competitor's average.",
        "",
    ]
    focus_id = decision.winner_id
    for result in results:
        evaluations = result.output.evaluations
        cited = next(
            (e for e in evaluations if e.competitor_id == focus_id), evaluations[0]
        )
        subject = names.get(cited.competitor_id, cited.competitor_id)
        lines.append(
            f"- {result.evaluator_name} on {subject} ({cited.score:g}/100):"
            f" {_excerpt(cited.reasoning)}"
        )

    lines.append("")
    if decision.winner_id is not None:
        lines.append(
            f"{names[decision.winner_id]} holds the highest average score across"
            " all judges and is declared the winner."
        )
    else:
        lines.append("No winner is declared for this trial.")
    return "\n".join(lines)
