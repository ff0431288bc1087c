"""Execution configuration models."""

from pydantic import BaseModel, Field


class ExecutionConfig(BaseModel, frozen=True):
    agent_timeout_seconds: float = Field(default=30 * 60, gt=0.0)
    max_turns: int = Field(default=25, ge=1)
    structured_retries: int = Field(default=2, ge=0)
