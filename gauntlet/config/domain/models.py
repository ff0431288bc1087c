"""Model tier configuration."""

from typing import Literal

from pydantic import BaseModel

type ModelTier = Literal["opus", "sonnet", "haiku"]


class ModelsConfig(BaseModel, frozen=True):
    """Which model tier each single-session role runs on.

    Competitors carry their own tier, chosen by the design step.
    """

    designer: ModelTier = "opus"
    evaluator: ModelTier = "sonnet"
    discovery: ModelTier = "opus"
    advisor: ModelTier = "opus"
