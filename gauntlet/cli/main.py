"""CLI entrypoint for gauntlet: typer app with `run` and `runtime` commands."""

import asyncio
import contextlib
import sys
from pathlib import Path

import httpx
import structlog
import typer
import uvicorn
from pydantic import ValidationError
from rich.console import Console

from gauntlet.cli.live import LiveTrialView
from gauntlet.config.domain.config import GauntletConfig
from gauntlet.config.domain.sandbox import SandboxConfig
from gauntlet.config.infrastructure.observer import StructlogConfigObserver
from gauntlet.config.infrastructure.yaml_loader import YamlConfigLoader
from gauntlet.core.errors import GauntletError
from gauntlet.orchestration.infrastructure.factory import (
    TrialServices,
    create_trial_services,
)
from gauntlet.trial.domain.records import TrialKind

app = typer.Typer(add_completion=False)

_console = Console()


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


async def _advise_interactively(services: TrialServices, trial_id: str) -> None:
    """Relay prompts to the advisory session until the user enters nothing."""
    while True:
        content = await asyncio.to_thread(
            typer.prompt, "advisor (empty to finish)", default="", show_default=False
        )
        if not content.strip():
            return
        result = await services.orchestrator.advise(trial_id, content)
        _console.print(result.result or result.error or "(no reply)")


async def _run_trial(
    config: GauntletConfig,
    task: str,
    repo: str | None,
    kind: TrialKind,
    live: bool,
    advise: bool,
) -> None:
    async with httpx.AsyncClient() as http:
        services = create_trial_services(config=config, http=http)
        services.start()
        try:
            await services.sandboxes.reconcile()
            trial = await services.orchestrator.create_trial(
                task=task, workspace_url=repo, kind=kind
            )
            _console.print(f"[bold]trial[/bold] {trial.id}")

            subscription = services.hub.trials.subscribe(trial.id, owner_id="cli")
            follower = (
                asyncio.create_task(LiveTrialView().follow(subscription))
                if live
                else None
            )
            try:
                await services.orchestrator.run(trial.id)
                verdict = await services.repository.get_verdict(trial.id)
                if verdict is not None:
                    _console.rule("Verdict")
                    _console.print(verdict.summary)
                if advise:
                    await _advise_interactively(services, trial.id)
                await services.orchestrator.conclude(trial.id)
            finally:
                subscription.close()
                if follower is not None:
                    follower.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await follower
        finally:
            await services.close()


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to gauntlet config YAML"),
    task: str = typer.Option(..., "--task", "-t", help="Task every competitor attempts"),
    repo: str | None = typer.Option(
        None, "--repo", "-r", help="Git remote URL to clone into the sandbox"
    ),
    kind: TrialKind = typer.Option(
        TrialKind.TEAM, "--kind", help="Trial kind: 'single' or 'team'"
    ),
    live: bool = typer.Option(True, "--live/--no-live", help="Show live progress"),
    advise: bool = typer.Option(
        False, "--advise", help="Talk to the advisor after the verdict"
    ),
    instance: str | None = typer.Option(
        None,
        "--instance",
        help="Sandbox instance name; startup cleanup only touches this instance",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Run one trial end to end from a YAML config file."""
    try:
        _configure_structlog(log_format=log_format)

        loader = YamlConfigLoader(observer=StructlogConfigObserver())
        try:
            config = loader.load(path=config_path)
        except GauntletError as exc:
            typer.echo(str(exc))
            raise typer.Exit(code=1) from exc
        if instance is not None:
            try:
                sandbox = SandboxConfig.model_validate(
                    {**config.sandbox.model_dump(), "instance": instance}
                )
            except ValidationError as exc:
                typer.echo(f"Invalid instance name: '{instance}'")
                raise typer.Exit(code=1) from exc
            config = config.model_copy(update={"sandbox": sandbox})

        asyncio.run(
            _run_trial(
                config=config,
                task=task,
                repo=repo,
                kind=kind,
                live=live and log_format != "json",
                advise=advise,
            )
        )

    except KeyboardInterrupt:
        typer.echo("Trial interrupted.")
        sys.exit(1)
    except GauntletError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


@app.command()
def runtime(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(3000, "--port", "-p", help="Port to listen on"),
    log_format: str = typer.Option(
        "json",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Serve the in-sandbox agent runtime."""
    _configure_structlog(log_format=log_format)
    uvicorn.run(
        "gauntlet.runtime.infrastructure.app:create_runtime_app",
        factory=True,
        host=host,
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    app()
