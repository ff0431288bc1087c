"""TrialDesigner: the single-session steps that shape a trial."""

import asyncio
import contextlib

from pydantic import BaseModel

from gauntlet.config.domain.models import ModelsConfig, ModelTier
from gauntlet.design.domain import prompts
from gauntlet.design.domain.observer import DesignObserver
from gauntlet.design.domain.roster import CompetitorRoster, EvaluatorRoster, SetupPlan
from gauntlet.sandbox.domain.sandbox import Sandbox
from gauntlet.session.application.structured import StructuredReply, StructuredRequester
from gauntlet.session.domain.client import AgentSessionClient, EventHandler
from gauntlet.session.domain.session import SessionConfig
from gauntlet.session.infrastructure.errors import SessionRequestError
from gauntlet.trial.domain.records import Competitor, Trial

_READ_ONLY = ["Read", "Glob", "Grep"]
_EXPLORE = ["Read", "Glob", "Grep", "Bash"]


class TrialDesigner:
    """Runs one structured session per design step and returns its reply.

    Every step opens a fresh session and ends it afterwards, whether or not
    the reply validated. Validation failures surface as OutputValidationError.
    """

    def __init__(
        self,
        client: AgentSessionClient,
        requester: StructuredRequester,
        observer: DesignObserver,
        models: ModelsConfig,
        max_turns: int,
    ) -> None:
        self._client = client
        self._requester = requester
        self._observer = observer
        self._models = models
        self._max_turns = max_turns

    async def design_competitors(
        self,
        sandbox: Sandbox,
        trial: Trial,
        credential: str,
        cwd: str,
        on_event: EventHandler | None = None,
        stop: asyncio.Event | None = None,
    ) -> StructuredReply[CompetitorRoster]:
        return await self._ask(
            sandbox=sandbox,
            trial=trial,
            step="competitors",
            model=self._models.designer,
            config=SessionConfig(
                system_prompt=prompts.DESIGNER_SYSTEM_PROMPT,
                capabilities=_READ_ONLY,
                model=self._models.designer,
                max_turns=self._max_turns,
                cwd=cwd,
            ),
            content=prompts.designer_prompt(trial),
            output_type=CompetitorRoster,
            credential=credential,
            on_event=on_event,
            stop=stop,
        )

    async def design_evaluators(
        self,
        sandbox: Sandbox,
        trial: Trial,
        competitors: list[Competitor],
        credential: str,
        cwd: str,
        on_event: EventHandler | None = None,
        stop: asyncio.Event | None = None,
    ) -> StructuredReply[EvaluatorRoster]:
        return await self._ask(
            sandbox=sandbox,
            trial=trial,
            step="evaluators",
            model=self._models.designer,
            config=SessionConfig(
                system_prompt=prompts.EVALUATOR_DESIGNER_SYSTEM_PROMPT,
                capabilities=_READ_ONLY,
                model=self._models.designer,
                max_turns=self._max_turns,
                cwd=cwd,
            ),
            content=prompts.evaluator_designer_prompt(trial, competitors),
            output_type=EvaluatorRoster,
            credential=credential,
            on_event=on_event,
            stop=stop,
        )

    async def discover_setup(
        self,
        sandbox: Sandbox,
        trial: Trial,
        credential: str,
        cwd: str,
        on_event: EventHandler | None = None,
        stop: asyncio.Event | None = None,
    ) -> StructuredReply[SetupPlan]:
        """Ask an agent to explore the checkout and write a preparation script."""
        return await self._ask(
            sandbox=sandbox,
            trial=trial,
            step="setup",
            model=self._models.discovery,
            config=SessionConfig(
                system_prompt=prompts.DISCOVERY_SYSTEM_PROMPT,
                capabilities=_EXPLORE,
                model=self._models.discovery,
                max_turns=self._max_turns,
                cwd=cwd,
            ),
            content=prompts.discovery_prompt(trial),
            output_type=SetupPlan,
            credential=credential,
            on_event=on_event,
            stop=stop,
        )

    async def _ask[T: BaseModel](
        self,
        sandbox: Sandbox,
        trial: Trial,
        step: str,
        model: ModelTier,
        config: SessionConfig,
        content: str,
        output_type: type[T],
        credential: str,
        on_event: EventHandler | None,
        stop: asyncio.Event | None,
    ) -> StructuredReply[T]:
        self._observer.design_started(trial_id=trial.id, step=step, model=model)
        session = await self._client.create_session(
            sandbox=sandbox, config=config, credential=credential
        )
        try:
            reply = await self._requester.request(
                session=session,
                content=content,
                output_type=output_type,
                on_event=on_event,
                stop=stop,
            )
        finally:
            with contextlib.suppress(SessionRequestError):
                await self._client.end_session(session)

        self._observer.design_completed(
            trial_id=trial.id,
            step=step,
            attempts=reply.attempts,
            cost_usd=reply.cost.total_cost_usd,
        )
        return reply
