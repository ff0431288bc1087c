"""Terminal outcome of one message exchange with an agent session."""

from typing import Any

from pydantic import BaseModel, Field


class CostInfo(BaseModel, frozen=True):
    """Cost and token usage accounting reported by the runtime."""

    total_cost_usd: float = Field(default=0.0, ge=0.0)
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)

    def __add__(self, other: "CostInfo") -> "CostInfo":
        return CostInfo(
            total_cost_usd=self.total_cost_usd + other.total_cost_usd,
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


class TerminalResult(BaseModel, frozen=True):
    """Carried by the `done` event that ends every message stream.

    `aborted` is set locally when a stop signal cut the stream short; such a
    result never came from the runtime.
    """

    success: bool
    cost: CostInfo = CostInfo()
    turns: int = Field(default=0, ge=0)
    error: str | None = None
    result: str | None = None
    structured_output: Any = None
    aborted: bool = False

    @classmethod
    def stopped(cls) -> "TerminalResult":
        return cls(success=False, error="stopped before completion", aborted=True)
