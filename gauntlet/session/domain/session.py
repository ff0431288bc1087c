"""Session value objects."""

from datetime import datetime

from pydantic import BaseModel, Field

from gauntlet.config.domain.models import ModelTier


class SessionConfig(BaseModel, frozen=True):
    """How a new agent session should behave inside its sandbox."""

    system_prompt: str
    capabilities: list[str] = Field(default_factory=list)
    model: ModelTier = "sonnet"
    max_turns: int = Field(default=25, ge=1)
    cwd: str = "/workspace"


class Session(BaseModel, frozen=True):
    """A stateful multi-turn conversation handle against one sandbox runtime."""

    id: str = Field(min_length=1)
    sandbox_id: str
    endpoint: str
    model: ModelTier
    created_at: datetime
    credential: str = Field(repr=False)
