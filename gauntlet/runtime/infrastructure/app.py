"""In-sandbox agent runtime: the HTTP service every sandbox image serves."""

import asyncio
import contextlib
import json
import time
from collections.abc import AsyncIterator
from datetime import timedelta
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from gauntlet.config.domain.models import ModelTier
from gauntlet.runtime.application.store import RuntimeSessionStore
from gauntlet.runtime.domain.observer import RuntimeObserver
from gauntlet.runtime.domain.session import (
    AgentRunner,
    Frame,
    OutputFormat,
    RuntimeSession,
    RuntimeSessionStatus,
)
from gauntlet.runtime.infrastructure.claude_runner import ClaudeRuntimeRunner
from gauntlet.runtime.infrastructure.observer import StructlogRuntimeObserver
from gauntlet.session.infrastructure.sse import encode_frame


class CreateSessionRequest(BaseModel):
    session_id: str | None = None
    model: ModelTier
    system_prompt: str | None = None
    tools: list[str]
    cwd: str = Field(min_length=1)
    max_turns: int | None = Field(default=None, ge=1)
    token: str = Field(min_length=1)


class SendMessageRequest(BaseModel):
    content: str = Field(min_length=1)
    token: str = Field(min_length=1)
    output_format: OutputFormat | None = None


def create_runtime_app(
    store: RuntimeSessionStore | None = None,
    runner: AgentRunner | None = None,
    observer: RuntimeObserver | None = None,
    idle_timeout_seconds: float = 30 * 60,
    sweep_interval_seconds: float = 5 * 60,
) -> FastAPI:
    """Create the runtime application.

    Sessions live in `store`; each message turn is driven by `runner`, which
    defaults to the Claude Agent SDK.
    """
    observer = observer or StructlogRuntimeObserver()
    store = store or RuntimeSessionStore()
    runner = runner or ClaudeRuntimeRunner(observer=observer)
    started_at = time.monotonic()

    async def sweep_forever() -> None:
        while True:
            await asyncio.sleep(sweep_interval_seconds)
            expired = store.expire_idle(timedelta(seconds=idle_timeout_seconds))
            if expired:
                observer.runtime_sessions_expired(count=expired)

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(sweep_forever())
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(
        title="Gauntlet Agent Runtime",
        description="Streams agent sessions from inside a trial sandbox",
        lifespan=lifespan,
    )

    def require_session(session_id: str) -> RuntimeSession:
        session = store.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "sessions": len(store.all()),
            "uptime": time.monotonic() - started_at,
        }

    @app.post("/sessions")
    async def create_session(request: CreateSessionRequest) -> dict[str, Any]:
        session = store.create(
            session_id=request.session_id,
            model=request.model,
            system_prompt=request.system_prompt,
            tools=request.tools,
            cwd=request.cwd,
            max_turns=request.max_turns,
        )
        observer.runtime_session_created(session_id=session.id, model=session.model)
        return {"session_id": session.id, "status": session.status.value}

    @app.get("/sessions")
    async def list_sessions() -> dict[str, Any]:
        return {"sessions": [session.info() for session in store.all()]}

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: str) -> dict[str, Any]:
        return require_session(session_id).info()

    @app.delete("/sessions/{session_id}")
    async def end_session(session_id: str) -> dict[str, Any]:
        if not store.end(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        observer.runtime_session_ended(session_id=session_id)
        return {"success": True}

    @app.post("/sessions/{session_id}/message")
    async def send_message(
        session_id: str, request: SendMessageRequest
    ) -> StreamingResponse:
        session = require_session(session_id)
        if session.status is RuntimeSessionStatus.STREAMING:
            raise HTTPException(
                status_code=409, detail="Session is already processing a message"
            )
        frames = runner.run(
            session=session,
            prompt=request.content,
            token=request.token,
            output_format=request.output_format,
        )
        return StreamingResponse(
            _encode(session, frames), media_type="text/event-stream"
        )

    return app


async def _encode(
    session: RuntimeSession, frames: AsyncIterator[Frame]
) -> AsyncIterator[str]:
    # The session is claimed only once the body is sent, so a client that
    # disconnects before then leaves it ready.
    if session.status is RuntimeSessionStatus.STREAMING:
        reason = "Session is already processing a message"
        yield encode_frame("error", json.dumps({"error": reason}))
        yield encode_frame("done", json.dumps({"success": False, "error": reason}))
        return
    session.status = RuntimeSessionStatus.STREAMING
    try:
        async for frame in frames:
            yield encode_frame(frame.event, json.dumps(frame.data))
    finally:
        if session.status is RuntimeSessionStatus.STREAMING:
            session.status = RuntimeSessionStatus.READY
