"""TrialStateMachine: the only writer of a trial's phase."""

import asyncio
from datetime import UTC, datetime
from typing import Any

from gauntlet.broadcast.application.hub import BroadcastHub
from gauntlet.broadcast.domain.event import BroadcastEvent
from gauntlet.trial.domain.observer import TrialObserver
from gauntlet.trial.domain.phase import TrialPhase, can_transition
from gauntlet.trial.domain.records import Trial
from gauntlet.trial.domain.repository import TrialRepository
from gauntlet.trial.infrastructure.errors import InvalidTransitionError

STATE_CHANGE = "state_change"


class TrialStateMachine:
    """Validates, persists and announces phase transitions.

    Each trial has its own lock so that the load-check-save sequence of two
    racing transitions cannot interleave; at most one of them succeeds.
    """

    def __init__(
        self,
        repository: TrialRepository,
        hub: BroadcastHub,
        observer: TrialObserver,
    ) -> None:
        self._repository = repository
        self._hub = hub
        self._observer = observer
        self._locks: dict[str, asyncio.Lock] = {}

    async def transition(
        self,
        trial_id: str,
        target: TrialPhase,
        metadata: dict[str, Any] | None = None,
    ) -> Trial:
        """Move the trial to `target` and publish a `state_change` event.

        A `failed` transition records `metadata["error"]` on the trial.

        Raises:
            InvalidTransitionError: if `target` is not reachable from the
                persisted phase. The persisted phase is left unchanged.
            TrialNotFoundError: if the trial does not exist.
        """
        metadata = metadata or {}
        async with self._locks.setdefault(trial_id, asyncio.Lock()):
            trial = await self._repository.get_trial(trial_id)
            current = trial.phase
            if not can_transition(current, target):
                self._observer.trial_transition_rejected(
                    trial_id=trial_id, from_phase=current.value, to_phase=target.value
                )
                raise InvalidTransitionError(
                    trial_id=trial_id, current=current.value, target=target.value
                )

            now = datetime.now(UTC)
            update: dict[str, Any] = {"phase": target, "updated_at": now}
            if target.is_terminal:
                update["completed_at"] = now
            if target is TrialPhase.FAILED and "error" in metadata:
                update["error"] = str(metadata["error"])
            updated = trial.model_copy(update=update)
            await self._repository.save_trial(updated)

        self._observer.trial_transitioned(
            trial_id=trial_id, from_phase=current.value, to_phase=target.value
        )
        self._hub.trials.publish(
            trial_id,
            BroadcastEvent.of(
                STATE_CHANGE,
                phase=target.value,
                previous=current.value,
                metadata=metadata,
            ),
        )
        return updated
