"""HttpAgentSessionClient: the session protocol spoken over httpx."""

import asyncio
import inspect
import json
from datetime import UTC, datetime
from typing import Any

import httpx

from gauntlet.sandbox.domain.sandbox import Sandbox
from gauntlet.session.domain.client import EventHandler
from gauntlet.session.domain.event import DoneEvent, EventDecodeError, decode_event
from gauntlet.session.domain.observer import SessionObserver
from gauntlet.session.domain.result import TerminalResult
from gauntlet.session.domain.session import Session, SessionConfig
from gauntlet.session.infrastructure.errors import ProtocolError, SessionRequestError
from gauntlet.session.infrastructure.sse import SseDecoder

_HEALTH_TIMEOUT_SECONDS = 5.0
# Message streams stay open for as long as the agent works.
_STREAM_TIMEOUT = httpx.Timeout(30.0, read=None)


class HttpAgentSessionClient:
    """Agent session client for the runtime served inside each sandbox.

    Satisfies the AgentSessionClient and HealthProbe protocols structurally.
    The httpx client is owned by the caller and may be shared across sandboxes;
    every request is addressed by the sandbox endpoint.
    """

    def __init__(self, http: httpx.AsyncClient, observer: SessionObserver) -> None:
        self._http = http
        self._observer = observer

    async def is_healthy(self, endpoint: str) -> bool:
        try:
            response = await self._http.get(
                f"{endpoint}/health", timeout=_HEALTH_TIMEOUT_SECONDS
            )
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    async def create_session(
        self, sandbox: Sandbox, config: SessionConfig, credential: str
    ) -> Session:
        """Open a new conversation in the sandbox runtime.

        Raises:
            SessionRequestError: if the runtime is unreachable, refuses, or
                replies without a session id.
        """
        body = {
            "model": config.model,
            "system_prompt": config.system_prompt,
            "tools": config.capabilities,
            "cwd": config.cwd,
            "max_turns": config.max_turns,
            "token": credential,
        }
        try:
            response = await self._http.post(f"{sandbox.endpoint}/sessions", json=body)
        except httpx.HTTPError as exc:
            raise SessionRequestError(
                operation="create session", status_code=None, reason=str(exc)
            ) from exc
        _raise_for_status(response, operation="create session")
        try:
            session_id = str(response.json()["session_id"])
        except (ValueError, KeyError, TypeError) as exc:
            raise SessionRequestError(
                operation="create session",
                status_code=response.status_code,
                reason=f"malformed reply: {response.text[:200]}",
            ) from exc

        session = Session(
            id=session_id,
            sandbox_id=sandbox.id,
            endpoint=sandbox.endpoint,
            model=config.model,
            created_at=datetime.now(UTC),
            credential=credential,
        )
        self._observer.session_created(
            session_id=session.id, sandbox_id=sandbox.id, model=config.model
        )
        return session

    async def send_message(
        self,
        session: Session,
        content: str,
        on_event: EventHandler | None = None,
        output_schema: dict[str, Any] | None = None,
        stop: asyncio.Event | None = None,
    ) -> TerminalResult:
        """Stream one message exchange, delivering events as they arrive.

        Raises:
            ProtocolError: if a frame is malformed or the stream ends without
                a `done` event.
            SessionRequestError: if the runtime rejects the message.
        """
        self._observer.session_message_started(session_id=session.id)
        if stop is not None and stop.is_set():
            return self._aborted(session)

        stream = asyncio.create_task(
            self._stream(session, content, on_event, output_schema)
        )
        if stop is None:
            result = await stream
        else:
            stopped = asyncio.create_task(stop.wait())
            try:
                await asyncio.wait(
                    {stream, stopped}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                stopped.cancel()
                if not stream.done():
                    stream.cancel()
                    await asyncio.gather(stream, return_exceptions=True)
            if stream.cancelled():
                return self._aborted(session)
            result = stream.result()

        self._observer.session_message_completed(
            session_id=session.id,
            success=result.success,
            turns=result.turns,
            cost_usd=result.cost.total_cost_usd,
        )
        return result

    async def end_session(self, session: Session) -> None:
        """Close the conversation; an already-ended session is not an error."""
        try:
            response = await self._http.delete(
                f"{session.endpoint}/sessions/{session.id}"
            )
        except httpx.HTTPError as exc:
            raise SessionRequestError(
                operation="end session", status_code=None, reason=str(exc)
            ) from exc
        if response.status_code != 404:
            _raise_for_status(response, operation="end session")
        self._observer.session_ended(session_id=session.id)

    async def _stream(
        self,
        session: Session,
        content: str,
        on_event: EventHandler | None,
        output_schema: dict[str, Any] | None,
    ) -> TerminalResult:
        body: dict[str, Any] = {"content": content, "token": session.credential}
        if output_schema is not None:
            body["output_format"] = {"type": "json_schema", "schema": output_schema}

        url = f"{session.endpoint}/sessions/{session.id}/message"
        decoder = SseDecoder()
        try:
            async with self._http.stream(
                "POST", url, json=body, timeout=_STREAM_TIMEOUT
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    _raise_for_status(response, operation="send message")
                async for line in response.aiter_lines():
                    frame = decoder.feed(line)
                    if frame is None:
                        continue
                    done = await self._deliver(session, frame.event, frame.data, on_event)
                    if done is not None:
                        return done
        except httpx.HTTPError as exc:
            raise ProtocolError(session_id=session.id, reason=str(exc)) from exc

        trailing = decoder.flush()
        if trailing is not None:
            done = await self._deliver(session, trailing.event, trailing.data, on_event)
            if done is not None:
                return done
        raise ProtocolError(
            session_id=session.id, reason="stream ended without a done event"
        )

    async def _deliver(
        self,
        session: Session,
        name: str,
        data: str,
        on_event: EventHandler | None,
    ) -> TerminalResult | None:
        try:
            event = decode_event(name, json.loads(data))
        except (json.JSONDecodeError, EventDecodeError) as exc:
            raise ProtocolError(session_id=session.id, reason=str(exc)) from exc

        if on_event is not None:
            outcome = on_event(event)
            if inspect.isawaitable(outcome):
                await outcome
        return event.result if isinstance(event, DoneEvent) else None

    def _aborted(self, session: Session) -> TerminalResult:
        self._observer.session_message_aborted(session_id=session.id)
        return TerminalResult.stopped()


def _raise_for_status(response: httpx.Response, operation: str) -> None:
    if response.is_success:
        return
    try:
        reason = str(response.json().get("detail", response.text))
    except (ValueError, AttributeError):
        reason = response.text or response.reason_phrase
    raise SessionRequestError(
        operation=operation,
        status_code=response.status_code,
        reason=f"HTTP {response.status_code}: {reason}",
    )
