"""Structured outputs of the design steps."""

from pydantic import BaseModel, Field

from gauntlet.config.domain.models import ModelTier

AVAILABLE_CAPABILITIES = (
    "Read",
    "Write",
    "Edit",
    "Bash",
    "Glob",
    "Grep",
    "WebSearch",
    "WebFetch",
    "TodoWrite",
)


class CompetitorSpec(BaseModel, frozen=True):
    name: str = Field(min_length=1, max_length=100)
    persona: str = Field(min_length=10)
    model: ModelTier
    temperature: float = Field(ge=0.0, le=1.0)
    tools: list[str] = Field(min_length=1)
    focus: str = Field(min_length=10)


class CompetitorRoster(BaseModel, frozen=True):
    """2 to 6 competitors chosen to create productive tension."""

    reasoning: str = Field(min_length=20)
    competitors: list[CompetitorSpec] = Field(min_length=2, max_length=6)


class EvaluatorSpec(BaseModel, frozen=True):
    name: str = Field(min_length=1, max_length=100)
    focus: str = Field(min_length=10)
    criteria: list[str] = Field(min_length=1, max_length=10)


class EvaluatorRoster(BaseModel, frozen=True):
    """1 to 5 evaluators designed after seeing the competitors' work."""

    reasoning: str = Field(min_length=20)
    evaluators: list[EvaluatorSpec] = Field(min_length=1, max_length=5)


class SetupPlan(BaseModel, frozen=True):
    """Preparation script proposed by the discovery session."""

    setup_sh: str = Field(min_length=1)
    notes: str = ""
