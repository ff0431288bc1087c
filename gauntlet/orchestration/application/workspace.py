"""Git operations on a trial's checkout, executed inside its sandbox."""

import shlex
from urllib.parse import urlsplit, urlunsplit

from gauntlet.design.domain.prompts import FINDINGS_PATH, SETUP_PATH
from gauntlet.orchestration.domain.layout import REPO_PATH
from gauntlet.orchestration.infrastructure.errors import WorkspaceError
from gauntlet.sandbox.application.manager import SandboxManager
from gauntlet.sandbox.domain.sandbox import ExecResult, Sandbox


def authenticated_url(url: str, token: str | None) -> str:
    """Embed `token` as x-access-token basic auth in an https remote URL."""
    if not token:
        return url
    parts = urlsplit(url)
    if parts.scheme != "https":
        return url
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urlunsplit(parts._replace(netloc=f"x-access-token:{token}@{host}"))


class Workspace:
    """The repository checkout at REPO_PATH plus one worktree per competitor.

    Every command runs through the SandboxManager, so activity tracking and
    "sandbox gone" detection apply to git work too.
    """

    def __init__(
        self,
        sandboxes: SandboxManager,
        sandbox: Sandbox,
        token: str | None = None,
    ) -> None:
        self._sandboxes = sandboxes
        self._sandbox = sandbox
        self._token = token

    async def clone(self, url: str) -> None:
        remote = authenticated_url(url, self._token)
        await self._run(
            "clone repository",
            f"git clone {shlex.quote(remote)} {REPO_PATH}",
        )
        await self._run(
            "configure git identity",
            f"cd {REPO_PATH} && git config user.name gauntlet"
            " && git config user.email gauntlet@localhost",
        )

    async def has_setup_script(self) -> bool:
        result = await self._exec(f"test -f {REPO_PATH}/{SETUP_PATH}")
        return result.ok

    async def write_setup_script(self, script: str) -> None:
        path = f"{REPO_PATH}/{SETUP_PATH}"
        await self._run(
            "write setup script",
            f"mkdir -p $(dirname {path}) && printf '%s\\n' {shlex.quote(script)}"
            f" > {path} && chmod +x {path}",
        )

    async def run_setup(self) -> str:
        result = await self._run(
            "run setup script",
            f"cd {REPO_PATH} && chmod +x {SETUP_PATH} && ./{SETUP_PATH} 2>&1",
        )
        return result.stdout

    async def fetch_branches(self, prefix: str) -> None:
        """Bring previously pushed branches under `prefix` into the checkout."""
        refspec = f"+refs/heads/{prefix}*:refs/heads/{prefix}*"
        await self._run(
            "fetch branches",
            f"cd {REPO_PATH} && git fetch origin {shlex.quote(refspec)}",
        )

    async def add_worktree(self, path: str, branch: str | None) -> None:
        """Create a competitor's working directory.

        With a branch, it is a git worktree on that branch, reset to the
        checkout's HEAD; without one, a plain directory.
        """
        if branch is None:
            await self._run("create working directory", f"mkdir -p {shlex.quote(path)}")
            return
        await self._run(
            "add worktree",
            f"cd {REPO_PATH} && git worktree add -B {shlex.quote(branch)}"
            f" {shlex.quote(path)}",
        )

    async def read_findings(self, path: str) -> str | None:
        result = await self._exec(f"cat {shlex.quote(f'{path}/{FINDINGS_PATH}')}")
        if not result.ok or not result.stdout.strip():
            return None
        return result.stdout

    async def commit(self, path: str, message: str) -> None:
        await self._run(
            "commit changes",
            f"cd {shlex.quote(path)} && git add -A"
            f" && git commit --allow-empty -m {shlex.quote(message)}",
        )

    async def push(self, prefix: str) -> None:
        """Push every branch under `prefix` to the origin remote."""
        refspec = f"refs/heads/{prefix}*:refs/heads/{prefix}*"
        await self._run(
            "push branches",
            f"cd {REPO_PATH} && git push origin {shlex.quote(refspec)} 2>&1",
        )

    async def _exec(self, script: str) -> ExecResult:
        return await self._sandboxes.execute(self._sandbox, ["sh", "-c", script])

    async def _run(self, operation: str, script: str) -> ExecResult:
        result = await self._exec(script)
        if not result.ok:
            raise WorkspaceError(
                operation=operation,
                exit_code=result.exit_code,
                output=self._redact(result.stderr or result.stdout),
            )
        return result

    def _redact(self, text: str) -> str:
        return text.replace(self._token, "***") if self._token else text
