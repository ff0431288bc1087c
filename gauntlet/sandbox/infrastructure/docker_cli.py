"""DockerCliSandboxBackend: isolated environments driven through the docker CLI."""

from __future__ import annotations

import asyncio
import json

from gauntlet.sandbox.domain.backend import TRIAL_LABEL
from gauntlet.sandbox.domain.sandbox import EnvironmentInfo, ExecResult, SandboxLimits
from gauntlet.sandbox.infrastructure.errors import SandboxCommandError, SandboxGoneError

_WORKDIR = "/workspace"
_CAPABILITIES = ["CHOWN", "DAC_OVERRIDE", "FOWNER", "SETGID", "SETUID"]
_STOP_GRACE_SECONDS = 10


class DockerCliSandboxBackend:
    """Runs `docker` subprocesses for each backend operation.

    Satisfies the SandboxBackend protocol structurally. Every environment
    gets no-new-privileges, all capabilities dropped with a minimal set
    restored, swap disabled and a fixed working directory.
    """

    def __init__(self, docker_binary: str = "docker") -> None:
        self._docker = docker_binary

    async def create(
        self,
        name: str,
        image: str,
        limits: SandboxLimits,
        labels: dict[str, str],
        port: int,
    ) -> str:
        args = [
            "create",
            "--name",
            name,
            "--memory",
            str(limits.memory_bytes),
            "--memory-swap",
            str(limits.memory_bytes),
            "--cpus",
            str(limits.cpus),
            "--security-opt",
            "no-new-privileges",
            "--cap-drop",
            "ALL",
        ]
        for capability in _CAPABILITIES:
            args += ["--cap-add", capability]
        args += ["--workdir", _WORKDIR]
        for key, value in labels.items():
            args += ["--label", f"{key}={value}"]
        args += ["--publish", f"127.0.0.1::{port}", image]

        stdout = await self._checked("create", args)
        return stdout.strip()

    async def start(self, environment_id: str) -> None:
        await self._checked("start", ["start", environment_id])

    async def endpoint(self, environment_id: str, port: int) -> str:
        """Resolve the host address docker published for the runtime port."""
        stdout = await self._checked(
            "inspect", ["port", environment_id, f"{port}/tcp"]
        )
        lines = [line.strip() for line in stdout.splitlines() if line.strip()]
        if not lines:
            raise SandboxCommandError(
                operation="inspect", reason=f"port {port} is not published"
            )
        host, _, host_port = lines[0].rpartition(":")
        if host in ("0.0.0.0", "[::]", ""):
            host = "127.0.0.1"
        return f"http://{host}:{host_port}"

    async def exec(self, environment_id: str, command: list[str]) -> ExecResult:
        returncode, stdout, stderr = await self._run(
            ["exec", "--workdir", _WORKDIR, environment_id, *command]
        )
        self._raise_if_gone(environment_id, stderr)
        return ExecResult(stdout=stdout, stderr=stderr, exit_code=returncode)

    async def stop(self, environment_id: str) -> None:
        await self._checked(
            "stop",
            ["stop", "--time", str(_STOP_GRACE_SECONDS), environment_id],
            environment_id=environment_id,
        )

    async def remove(self, environment_id: str) -> None:
        await self._checked(
            "remove", ["rm", "--force", environment_id], environment_id=environment_id
        )

    async def list(self, label: str) -> list[EnvironmentInfo]:
        stdout = await self._checked(
            "list",
            ["ps", "--all", "--filter", f"label={label}", "--format", "{{json .}}"],
        )
        environments: list[EnvironmentInfo] = []
        for line in stdout.splitlines():
            if not line.strip():
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as exc:
                raise SandboxCommandError(
                    operation="list", reason=f"unparseable docker output: {exc}"
                ) from exc
            environments.append(
                EnvironmentInfo(
                    id=row["ID"],
                    trial_id=_parse_labels(row.get("Labels", "")).get(
                        TRIAL_LABEL, ""
                    ),
                    running=row.get("State") == "running",
                )
            )
        return environments

    async def _checked(
        self, operation: str, args: list[str], environment_id: str | None = None
    ) -> str:
        returncode, stdout, stderr = await self._run(args)
        if environment_id is not None:
            self._raise_if_gone(environment_id, stderr)
        if returncode != 0:
            raise SandboxCommandError(
                operation=operation, reason=stderr.strip() or f"exit {returncode}"
            )
        return stdout

    async def _run(self, args: list[str]) -> tuple[int, str, str]:
        try:
            process = await asyncio.create_subprocess_exec(
                self._docker,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise SandboxCommandError(
                operation=args[0], reason=f"'{self._docker}' executable not found"
            ) from exc
        stdout, stderr = await process.communicate()
        assert process.returncode is not None  # set once communicate() returns
        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    def _raise_if_gone(self, environment_id: str, stderr: str) -> None:
        if "No such container" in stderr or "is not running" in stderr:
            raise SandboxGoneError(environment_id=environment_id)


def _parse_labels(raw: str) -> dict[str, str]:
    """Parse docker's comma-joined `key=value` label listing."""
    labels: dict[str, str] = {}
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if sep:
            labels[key.strip()] = value
    return labels
