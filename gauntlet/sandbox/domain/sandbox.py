"""Sandbox value objects: the isolated environment, its limits, and exec results."""

from datetime import datetime

from pydantic import BaseModel, Field

from gauntlet.config.domain.sandbox import SandboxConfig


class SandboxLimits(BaseModel, frozen=True):
    """Resource and lifetime limits applied when a sandbox is created."""

    memory_bytes: int = Field(gt=0)
    cpus: float = Field(gt=0.0)
    expiry_seconds: float = Field(gt=0.0)

    @classmethod
    def from_config(cls, config: SandboxConfig) -> "SandboxLimits":
        return cls(
            memory_bytes=config.memory_bytes,
            cpus=config.cpus,
            expiry_seconds=config.expiry_seconds,
        )


class Sandbox(BaseModel, frozen=True):
    """One running isolated environment owned by a single trial.

    Lives only in process memory; `endpoint` is the base URL of the agent
    runtime listening inside it.
    """

    id: str = Field(min_length=1)
    trial_id: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)
    created_at: datetime
    expires_at: datetime


class ExecResult(BaseModel, frozen=True):
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class EnvironmentInfo(BaseModel, frozen=True):
    """What the execution backend reports about one labelled environment."""

    id: str
    trial_id: str
    running: bool
