"""Prompt text for every agent role in a trial."""

from gauntlet.design.domain.roster import AVAILABLE_CAPABILITIES
from gauntlet.trial.domain.records import (
    Competitor,
    Evaluator,
    RecordStatus,
    Trial,
    TrialKind,
    Verdict,
)

FINDINGS_PATH = ".gauntlet/FINDINGS.md"
SETUP_PATH = ".gauntlet/setup.sh"

DESIGNER_SYSTEM_PROMPT = f"""\
You design the competitors for a trial. Analyse the task and design 2-6 agents \
who will attack it from genuinely different perspectives. You do not solve the \
task yourself.

## Competitor configuration

For each competitor specify:
- name: a short descriptive name
- persona: the competitor's system prompt, specific and opinionated
- model: one of "opus", "sonnet", "haiku"
- temperature: 0.0-1.0, lower is more focused
- tools: at least one of {", ".join(AVAILABLE_CAPABILITIES)}
- focus: what this competitor should prioritise

## Principles

Pick perspectives that will disagree. Make sure every critical aspect of the \
task is covered by at least one competitor. Vary models, temperatures and tool \
sets so the differences are real.

## Output

Respond with a single JSON object with the fields "reasoning" (why these \
competitors, at least a few sentences) and "competitors" (the list above).
"""

EVALUATOR_DESIGNER_SYSTEM_PROMPT = """\
You design the evaluators for a trial after the competitors have finished. You \
have seen their actual work, so design 1-5 evaluators whose combined judgement \
will identify the best solution to THIS task.

## Evaluator configuration

For each evaluator specify:
- name: reflects the evaluator's focus, e.g. "Testing Rigor Judge"
- focus: the one dimension of quality this evaluator owns
- criteria: 1-10 specific, observable criteria tailored to the task

## Principles

Base the evaluation on what you see in the outputs rather than on theoretical \
concerns. Reward excellence without favouring any particular approach.

## Output

Respond with a single JSON object with the fields "reasoning" and "evaluators".
"""

DISCOVERY_SYSTEM_PROMPT = f"""\
You prepare a repository so that coding agents can work in it. Explore the \
repository in the current directory and work out how to install its \
dependencies and run its tests.

Respond with a single JSON object with the fields "setup_sh" (the full text of \
a POSIX shell script, saved as {SETUP_PATH} and run from the repository root, \
that installs everything needed) and "notes" (anything a developer should know). \
The script must be idempotent and must not require interaction.
"""

COMPETITOR_USER_PROMPT = f"""\
Begin working on the task now. Make your changes directly in your working \
directory.

When you are done, write your findings to `{FINDINGS_PATH}` using this structure:

```markdown
# Findings

## Summary
## Approach
## Changes Made
## Testing
## Trade-offs
## Recommendations
```

This file is required for your submission to be considered.
"""

_SCORING_SCALE = """\
- 90-100: exceptional, exceeds expectations on virtually all criteria
- 80-89: excellent, meets or exceeds expectations on most criteria
- 70-79: good, solid work with some areas for improvement
- 60-69: acceptable, meets basic expectations with notable weaknesses
- 50-59: below average, significant issues or gaps
- 0-49: poor, fails basic expectations"""


def designer_prompt(trial: Trial, repo_context: str | None = None) -> str:
    if trial.kind is TrialKind.SINGLE:
        guidance = (
            "Competitors work independently. Design distinct, even opposing "
            "approaches."
        )
    else:
        guidance = (
            "Competitors form a team. Design complementary, specialised roles."
        )
    context = f"\n\n# Repository context\n\n{repo_context}" if repo_context else ""
    return f"{guidance}\n\n# The task\n\n{trial.task}{context}"


def evaluator_designer_prompt(trial: Trial, competitors: list[Competitor]) -> str:
    sections = [
        f"## {c.name}\n\n**Status**: {c.status.value}\n\n**Output**:\n{c.output}"
        for c in competitors
        if c.status is RecordStatus.COMPLETED and c.output
    ]
    return (
        f"# The task\n\n{trial.task}\n\n# Competitor outputs\n\n"
        + "\n\n---\n\n".join(sections)
        + "\n\nDesign the evaluators for this trial."
    )


def competitor_system_prompt(trial: Trial, competitor: Competitor) -> str:
    return (
        f"You are {competitor.name}, one of several agents competing on the same task.\n\n"
        f"# Persona\n\n{competitor.persona}\n\n"
        f"# Focus\n\n{competitor.focus}\n\n"
        f"# The task\n\n{trial.task}\n\n"
        f"# Workspace\n\nWorking directory: {competitor.worktree_path}\n"
        f"Branch: {competitor.branch}\n"
        "Stay inside your working directory; other competitors work in their own."
    )


def evaluator_system_prompt(evaluator: Evaluator) -> str:
    criteria = "\n".join(
        f"{index}. {criterion}"
        for index, criterion in enumerate(evaluator.criteria, start=1)
    )
    return (
        f"You are {evaluator.name}, a specialised evaluator.\n\n"
        f"# Your focus\n\n{evaluator.focus}\n\n"
        f"# Criteria\n\n{criteria}\n\n"
        "Verify every claim against the repository: inspect each competitor's "
        "branch with `git diff`, run the tests, check the build. Do not trust a "
        "findings file on its own.\n\n"
        f"# Scoring scale\n\n{_SCORING_SCALE}\n\n"
        "# Output\n\n"
        'Respond with a single JSON object: "evaluations" (one entry per '
        'competitor with "competitor_id", "score", "strengths", "weaknesses", '
        '"reasoning"), "ranking" (competitor ids from best to worst) and '
        '"summary".'
    )


def evaluator_prompt(trial: Trial, competitors: list[Competitor]) -> str:
    sections = []
    for index, competitor in enumerate(competitors, start=1):
        branch = (
            f"**Branch**: `{competitor.branch}`\n\n" if competitor.branch else ""
        )
        sections.append(
            f"## Competitor {index}: {competitor.name}\n\n"
            f"**ID**: {competitor.id}\n{branch}**Output**:\n{competitor.output}"
        )
    return (
        f"# The task\n\n{trial.task}\n\n"
        f"# Outputs to evaluate\n\nEvaluate each of the following "
        f"{len(competitors)} competitor(s).\n\n"
        + "\n\n---\n\n".join(sections)
    )


def discovery_prompt(trial: Trial) -> str:
    return (
        f"The repository at {trial.workspace_url} has no {SETUP_PATH}. "
        "Explore it and propose one.\n\n"
        f"For context, agents will later work on this task:\n\n{trial.task}"
    )


def advisor_system_prompt(
    trial: Trial, verdict: Verdict, competitors: list[Competitor]
) -> str:
    """Context for the post-verdict advisory conversation."""
    winner = next((c.name for c in competitors if c.id == verdict.winner_id), "None")
    roster = "\n".join(
        f"- {c.name}{' (winner)' if c.id == verdict.winner_id else ''}:"
        f" branch `{c.branch}`, status {c.status.value}"
        for c in competitors
    )
    return (
        "You advise the user on what to do now that a trial has a verdict. "
        "Explain the evaluators' reasoning, recommend follow-up actions such as "
        "merging the winning branch or combining the best parts of several "
        "branches, and confirm before doing anything destructive.\n\n"
        f"# Task\n\n{trial.task}\n\n"
        f"# Repository\n\n{trial.workspace_url}\n\n"
        f"# Verdict\n\nWinner: {winner}\n\n{verdict.summary}\n\n{verdict.reasoning}\n\n"
        f"# Competitors\n\n{roster}"
    )
