"""Sandbox configuration model."""

from pydantic import BaseModel, Field

_GIB = 1024 * 1024 * 1024


class SandboxConfig(BaseModel, frozen=True):
    image: str = Field(default="gauntlet-runtime:latest", min_length=1)
    memory_bytes: int = Field(default=2 * _GIB, gt=0)
    cpus: float = Field(default=1.0, gt=0.0)
    expiry_seconds: float = Field(default=30 * 60, gt=0.0)
    runtime_port: int = Field(default=3000, ge=1, le=65535)
    ready_timeout_seconds: float = Field(default=60.0, gt=0.0)
    ready_poll_interval_seconds: float = Field(default=1.0, gt=0.0)
    idle_timeout_seconds: float = Field(default=30 * 60, gt=0.0)
    sweep_interval_seconds: float = Field(default=5 * 60, gt=0.0)
    instance: str = Field(default="default", pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
