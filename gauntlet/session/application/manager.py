"""SessionManager: an owned namespace of agent sessions keyed by trial id."""

import asyncio
import contextlib
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from gauntlet.sandbox.domain.sandbox import Sandbox
from gauntlet.session.domain.client import AgentSessionClient, EventHandler
from gauntlet.session.domain.observer import SessionObserver
from gauntlet.session.domain.result import TerminalResult
from gauntlet.session.domain.session import Session, SessionConfig
from gauntlet.session.infrastructure.errors import SessionRequestError


@dataclass
class _Slot:
    session: Session
    last_activity: float
    busy: bool = False


class SessionManager:
    """Private map of trial id to live session, with an idle sweep.

    Several managers may run side by side (for example one for setup and one
    for post-verdict advice); none of them shares state with another.
    """

    def __init__(
        self,
        name: str,
        client: AgentSessionClient,
        observer: SessionObserver,
        idle_timeout_seconds: float,
        sweep_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._client = client
        self._observer = observer
        self._idle_timeout = idle_timeout_seconds
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._slots: dict[str, _Slot] = {}
        self._sweeper: asyncio.Task[None] | None = None

    def get(self, trial_id: str) -> Session | None:
        slot = self._slots.get(trial_id)
        return slot.session if slot is not None else None

    async def open(
        self,
        trial_id: str,
        sandbox: Sandbox,
        config: SessionConfig,
        credential: str,
    ) -> Session:
        """Return the trial's session in this namespace, creating it if needed."""
        slot = self._slots.get(trial_id)
        if slot is not None and slot.session.sandbox_id == sandbox.id:
            slot.last_activity = self._clock()
            return slot.session
        if slot is not None:
            await self.close(trial_id)

        session = await self._client.create_session(
            sandbox=sandbox, config=config, credential=credential
        )
        self._slots[trial_id] = _Slot(session=session, last_activity=self._clock())
        return session

    async def send(
        self,
        trial_id: str,
        content: str,
        on_event: EventHandler | None = None,
        output_schema: dict[str, Any] | None = None,
        stop: asyncio.Event | None = None,
    ) -> TerminalResult:
        """Send a message through the trial's session.

        Raises:
            KeyError: if no session is open for the trial.
        """
        slot = self._slots[trial_id]
        slot.busy = True
        slot.last_activity = self._clock()
        try:
            return await self._client.send_message(
                session=slot.session,
                content=content,
                on_event=on_event,
                output_schema=output_schema,
                stop=stop,
            )
        finally:
            slot.busy = False
            slot.last_activity = self._clock()

    async def close(self, trial_id: str) -> None:
        slot = self._slots.pop(trial_id, None)
        if slot is None:
            return
        # The sandbox may already be gone, taking the session with it.
        with contextlib.suppress(SessionRequestError):
            await self._client.end_session(slot.session)

    async def sweep_idle(self) -> list[str]:
        """End every session idle past the threshold, skipping busy ones."""
        now = self._clock()
        idle = [
            trial_id
            for trial_id, slot in self._slots.items()
            if not slot.busy and now - slot.last_activity > self._idle_timeout
        ]
        for trial_id in idle:
            await self.close(trial_id)
            self._observer.session_idle_reclaimed(manager=self.name, trial_id=trial_id)
        return idle

    def start(self) -> None:
        """Start the periodic idle sweep."""
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep_forever())

    async def destroy(self) -> None:
        """Stop the sweep and end every session in this namespace."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
        for trial_id in list(self._slots):
            await self.close(trial_id)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            await self.sweep_idle()
