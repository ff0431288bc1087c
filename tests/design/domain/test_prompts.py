"""Tests for prompt builders."""

from gauntlet.design.domain import prompts
from gauntlet.trial.domain.records import (
    Competitor,
    Evaluator,
    RecordStatus,
    Trial,
    TrialKind,
    Verdict,
)


def _competitor(
    competitor_id: str, status: RecordStatus = RecordStatus.COMPLETED
) -> Competitor:
    return Competitor(
        id=competitor_id,
        trial_id="t1",
        name=f"Name-{competitor_id}",
        persona="Careful and methodical.",
        model="sonnet",
        temperature=0.2,
        focus="Tests first.",
        branch=f"gauntlet/trial-t1/{competitor_id}",
        worktree_path=f"/workspace/{competitor_id}",
        status=status,
        output=f"output of {competitor_id}",
    )


class TestDesignerPrompt:
    """The designer prompt depends on the trial kind."""

    def test_single_trial_asks_for_opposing_approaches(self) -> None:
        trial = Trial(id="t1", task="do x", kind=TrialKind.SINGLE)

        assert "opposing" in prompts.designer_prompt(trial)

    def test_team_trial_asks_for_complementary_roles(self) -> None:
        trial = Trial(id="t1", task="do x", kind=TrialKind.TEAM)

        assert "complementary" in prompts.designer_prompt(trial)

    def test_repo_context_is_appended(self) -> None:
        trial = Trial(id="t1", task="do x")

        assert "README says hi" in prompts.designer_prompt(trial, "README says hi")


class TestEvaluatorPrompts:
    """Evaluator prompts carry ids, branches and criteria."""

    def test_evaluator_designer_prompt_skips_failed_competitors(self) -> None:
        trial = Trial(id="t1", task="do x")
        competitors = [_competitor("c1"), _competitor("c2", RecordStatus.FAILED)]

        prompt = prompts.evaluator_designer_prompt(trial, competitors)

        assert "output of c1" in prompt
        assert "output of c2" not in prompt

    def test_evaluator_prompt_lists_ids_and_branches(self) -> None:
        trial = Trial(id="t1", task="do x")

        prompt = prompts.evaluator_prompt(trial, [_competitor("c1"), _competitor("c2")])

        assert "**ID**: c1" in prompt
        assert "`gauntlet/trial-t1/c2`" in prompt
        assert "2 competitor(s)" in prompt

    def test_evaluator_system_prompt_numbers_criteria(self) -> None:
        evaluator = Evaluator(
            id="e1",
            trial_id="t1",
            name="Auditor",
            focus="Security holes.",
            criteria=["input validation", "secrets"],
        )

        prompt = prompts.evaluator_system_prompt(evaluator)

        assert "1. input validation" in prompt
        assert "2. secrets" in prompt


class TestCompetitorPrompt:
    """Competitors are told where they work."""

    def test_includes_worktree_and_branch(self) -> None:
        prompt = prompts.competitor_system_prompt(Trial(id="t1", task="x"), _competitor("c1"))

        assert "/workspace/c1" in prompt
        assert "gauntlet/trial-t1/c1" in prompt


class TestAdvisorPrompt:
    """The advisor sees the verdict and marks the winner."""

    def test_marks_winner(self) -> None:
        verdict = Verdict(
            id="v1", trial_id="t1", summary="sum", winner_id="c2", reasoning="why"
        )

        prompt = prompts.advisor_system_prompt(
            Trial(id="t1", task="x"), verdict, [_competitor("c1"), _competitor("c2")]
        )

        assert "Winner: Name-c2" in prompt
        assert "Name-c2 (winner)" in prompt
