"""Structured evaluator output and the per-evaluator input to synthesis."""

from pydantic import BaseModel, Field


class CompetitorEvaluation(BaseModel, frozen=True):
    competitor_id: str = Field(min_length=1)
    score: float = Field(ge=0.0, le=100.0)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    reasoning: str = Field(min_length=1)


class EvaluatorOutput(BaseModel, frozen=True):
    """What every evaluator session must return."""

    evaluations: list[CompetitorEvaluation] = Field(min_length=1)
    ranking: list[str] = Field(min_length=1)
    summary: str = Field(min_length=1)


class EvaluatorResult(BaseModel, frozen=True):
    evaluator_id: str
    evaluator_name: str
    output: EvaluatorOutput
