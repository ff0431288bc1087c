"""Top-level GauntletConfig aggregate, the root configuration object."""

from pydantic import BaseModel, Field

from gauntlet.config.domain.execution import ExecutionConfig
from gauntlet.config.domain.models import ModelsConfig
from gauntlet.config.domain.sandbox import SandboxConfig
from gauntlet.config.domain.verdict import VerdictConfig


class CredentialsConfig(BaseModel, frozen=True):
    agent_token: str = Field(min_length=1)
    git_token: str | None = None


class GauntletConfig(BaseModel, frozen=True):
    """Root configuration aggregate for running trials."""

    name: str = Field(min_length=1)
    credentials: CredentialsConfig
    sandbox: SandboxConfig = SandboxConfig()
    execution: ExecutionConfig = ExecutionConfig()
    models: ModelsConfig = ModelsConfig()
    verdict: VerdictConfig = VerdictConfig()
