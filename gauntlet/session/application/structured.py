"""Structured output requests with bounded, feedback-driven retry."""

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from gauntlet.session.domain.client import AgentSessionClient, EventHandler
from gauntlet.session.domain.observer import SessionObserver
from gauntlet.session.domain.result import CostInfo, TerminalResult
from gauntlet.session.domain.session import Session
from gauntlet.session.infrastructure.errors import (
    OutputValidationError,
    SessionAbortedError,
)

_FENCED = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_BARE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_json(text: str) -> Any:
    """Parse the JSON object embedded in free-form agent text.

    A fenced code block wins over a bare `{...}` span.

    Raises:
        ValueError: if no parseable JSON is present.
    """
    fenced = _FENCED.search(text)
    if fenced is not None:
        candidate = fenced.group(1).strip()
    else:
        bare = _BARE_OBJECT.search(text)
        candidate = bare.group(0) if bare is not None else text.strip()
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ValueError(f"response is not valid JSON: {exc}") from exc


@dataclass(frozen=True)
class StructuredReply[T: BaseModel]:
    value: T
    attempts: int
    cost: CostInfo
    result: TerminalResult


class StructuredRequester:
    """Asks a session for output matching a pydantic model.

    Each failed attempt is followed by a re-ask in the same session with the
    validation failure fed back, at most `retries` extra times.
    """

    def __init__(
        self,
        client: AgentSessionClient,
        observer: SessionObserver,
        retries: int,
    ) -> None:
        self._client = client
        self._observer = observer
        self._retries = retries

    async def request[T: BaseModel](
        self,
        session: Session,
        content: str,
        output_type: type[T],
        on_event: EventHandler | None = None,
        stop: asyncio.Event | None = None,
    ) -> StructuredReply[T]:
        """Send `content` and return the validated reply.

        Raises:
            OutputValidationError: if every attempt fails validation.
            SessionAbortedError: if the stop signal fires mid-request.
        """
        schema = output_type.model_json_schema()
        prompt = content
        cost = CostInfo()
        max_attempts = self._retries + 1

        for attempt in range(1, max_attempts + 1):
            result = await self._client.send_message(
                session=session,
                content=prompt,
                on_event=on_event,
                output_schema=schema,
                stop=stop,
            )
            if result.aborted:
                raise SessionAbortedError(session_id=session.id)
            cost = cost + result.cost

            try:
                value = output_type.model_validate(_decode(result))
            except (ValueError, ValidationError) as exc:
                reason = str(exc)
                if attempt == max_attempts:
                    raise OutputValidationError(
                        session_id=session.id, attempts=attempt, reason=reason
                    ) from exc
                self._observer.session_structured_retry(
                    session_id=session.id, attempt=attempt, reason=reason
                )
                prompt = _feedback_prompt(reason=reason, schema=schema)
                continue

            return StructuredReply(
                value=value, attempts=attempt, cost=cost, result=result
            )

        raise AssertionError("unreachable")  # loop always returns or raises


def _decode(result: TerminalResult) -> Any:
    if not result.success:
        raise ValueError(result.error or "agent did not finish successfully")
    if result.structured_output is not None:
        return result.structured_output
    if result.result:
        return extract_json(result.result)
    raise ValueError("response carried no structured output and no text")


def _feedback_prompt(reason: str, schema: dict[str, Any]) -> str:
    return (
        "Your previous answer could not be accepted.\n\n"
        f"PREVIOUS ATTEMPT FAILED: {reason}\n\n"
        "Reply again with a single JSON object that matches this schema exactly:\n"
        f"{json.dumps(schema, indent=2)}"
    )
