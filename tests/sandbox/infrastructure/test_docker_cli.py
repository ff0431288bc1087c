"""Tests for DockerCliSandboxBackend command construction and parsing."""

from unittest.mock import AsyncMock, patch

import pytest

from gauntlet.sandbox.domain.sandbox import SandboxLimits
from gauntlet.sandbox.infrastructure.docker_cli import DockerCliSandboxBackend
from gauntlet.sandbox.infrastructure.errors import (
    SandboxCommandError,
    SandboxGoneError,
)


def _limits() -> SandboxLimits:
    return SandboxLimits(memory_bytes=1024, cpus=1.5, expiry_seconds=60.0)


class TestCreate:
    """create passes hardening flags, limits and labels to docker."""

    async def test_create_builds_hardened_command(self) -> None:
        backend = DockerCliSandboxBackend()
        run = AsyncMock(return_value=(0, "abc123\n", ""))

        with patch.object(backend, "_run", run):
            environment_id = await backend.create(
                name="gauntlet-t1",
                image="runtime:latest",
                limits=_limits(),
                labels={"gauntlet.trial-id": "t1"},
                port=3000,
            )

        args = run.call_args.args[0]
        assert environment_id == "abc123"
        assert args[:3] == ["create", "--name", "gauntlet-t1"]
        assert "no-new-privileges" in args
        assert args[args.index("--memory-swap") + 1] == "1024"
        assert args[args.index("--cpus") + 1] == "1.5"
        assert "gauntlet.trial-id=t1" in args
        assert args[-1] == "runtime:latest"

    async def test_create_failure_raises_command_error(self) -> None:
        backend = DockerCliSandboxBackend()

        with patch.object(backend, "_run", AsyncMock(return_value=(1, "", "boom"))):
            with pytest.raises(SandboxCommandError, match="boom"):
                await backend.create(
                    name="n", image="i", limits=_limits(), labels={}, port=3000
                )


class TestEndpoint:
    """endpoint maps docker's published port to a loopback URL."""

    async def test_wildcard_host_becomes_loopback(self) -> None:
        backend = DockerCliSandboxBackend()

        with patch.object(
            backend, "_run", AsyncMock(return_value=(0, "0.0.0.0:49153\n", ""))
        ):
            endpoint = await backend.endpoint("abc", 3000)

        assert endpoint == "http://127.0.0.1:49153"

    async def test_unpublished_port_raises(self) -> None:
        backend = DockerCliSandboxBackend()

        with patch.object(backend, "_run", AsyncMock(return_value=(0, "", ""))):
            with pytest.raises(SandboxCommandError):
                await backend.endpoint("abc", 3000)


class TestExec:
    """exec reports exit codes and detects vanished containers."""

    async def test_nonzero_exit_is_a_result(self) -> None:
        backend = DockerCliSandboxBackend()

        with patch.object(backend, "_run", AsyncMock(return_value=(2, "", "bad"))):
            result = await backend.exec("abc", ["false"])

        assert result.exit_code == 2
        assert not result.ok

    async def test_missing_container_raises_gone(self) -> None:
        backend = DockerCliSandboxBackend()
        stderr = "Error: No such container: abc"

        with patch.object(backend, "_run", AsyncMock(return_value=(1, "", stderr))):
            with pytest.raises(SandboxGoneError):
                await backend.exec("abc", ["true"])


class TestList:
    """list parses docker ps JSON lines."""

    async def test_list_parses_labels_and_state(self) -> None:
        backend = DockerCliSandboxBackend()
        stdout = (
            '{"ID": "a1", "State": "running", '
            '"Labels": "gauntlet.trial-id=t1,gauntlet.created-at=now"}\n'
            '{"ID": "b2", "State": "exited", "Labels": "gauntlet.trial-id=t2"}\n'
        )

        with patch.object(backend, "_run", AsyncMock(return_value=(0, stdout, ""))):
            environments = await backend.list("gauntlet.trial-id")

        assert [(e.id, e.trial_id, e.running) for e in environments] == [
            ("a1", "t1", True),
            ("b2", "t2", False),
        ]

    async def test_list_filters_by_instance_label(self) -> None:
        backend = DockerCliSandboxBackend()
        stdout = (
            '{"ID": "a1", "State": "running", '
            '"Labels": "gauntlet.instance=ci,gauntlet.trial-id=t1"}\n'
        )
        run = AsyncMock(return_value=(0, stdout, ""))

        with patch.object(backend, "_run", run):
            environments = await backend.list("gauntlet.instance=ci")

        assert "label=gauntlet.instance=ci" in run.await_args.args[0]
        assert [(e.id, e.trial_id) for e in environments] == [("a1", "t1")]
