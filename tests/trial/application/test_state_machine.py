"""Tests for TrialStateMachine validation, persistence and broadcast."""

import asyncio

import pytest

from gauntlet.broadcast.application.hub import BroadcastHub
from gauntlet.trial.application.state_machine import STATE_CHANGE, TrialStateMachine
from gauntlet.trial.domain.phase import TrialPhase
from gauntlet.trial.domain.records import Trial
from gauntlet.trial.infrastructure.errors import (
    InvalidTransitionError,
    TrialNotFoundError,
)
from gauntlet.trial.infrastructure.memory_repository import InMemoryTrialRepository
from tests.broadcast.fake_observer import FakeBroadcastObserver
from tests.trial.fake_observer import FakeTrialObserver


async def _make_machine(
    phase: TrialPhase = TrialPhase.PENDING,
) -> tuple[TrialStateMachine, InMemoryTrialRepository, BroadcastHub, FakeTrialObserver]:
    repository = InMemoryTrialRepository()
    await repository.create_trial(Trial(id="trial-1", task="build it", phase=phase))
    hub = BroadcastHub(observer=FakeBroadcastObserver())
    observer = FakeTrialObserver()
    machine = TrialStateMachine(repository=repository, hub=hub, observer=observer)
    return machine, repository, hub, observer


class TestTransition:
    """Allowed transitions are persisted and announced."""

    async def test_allowed_transition_persists_phase(self) -> None:
        machine, repository, _, observer = await _make_machine()

        updated = await machine.transition("trial-1", TrialPhase.DESIGNING)

        assert updated.phase is TrialPhase.DESIGNING
        assert (await repository.get_trial("trial-1")).phase is TrialPhase.DESIGNING
        assert observer.transitioned == [("pending", "designing")]

    async def test_transition_publishes_state_change(self) -> None:
        machine, _, hub, _ = await _make_machine()
        subscription = hub.trials.subscribe("trial-1", owner_id="test")

        await machine.transition("trial-1", TrialPhase.DESIGNING, {"step": "design"})
        hub.trials.close_topic("trial-1")

        events = [event async for event in subscription]
        change = next(event for event in events if event.type == STATE_CHANGE)
        assert change.data == {
            "phase": "designing",
            "previous": "pending",
            "metadata": {"step": "design"},
        }

    async def test_failed_transition_records_error(self) -> None:
        machine, repository, _, _ = await _make_machine(TrialPhase.COMPETING)

        await machine.transition("trial-1", TrialPhase.FAILED, {"error": "boom"})

        trial = await repository.get_trial("trial-1")
        assert trial.phase is TrialPhase.FAILED
        assert trial.error == "boom"
        assert trial.completed_at is not None

    async def test_complete_sets_completed_at(self) -> None:
        machine, _, _, _ = await _make_machine(TrialPhase.DECREE)

        trial = await machine.transition("trial-1", TrialPhase.COMPLETE)

        assert trial.completed_at is not None


class TestRejectedTransition:
    """Disallowed transitions raise and leave the phase untouched."""

    async def test_invalid_transition_raises_and_keeps_phase(self) -> None:
        machine, repository, _, observer = await _make_machine()

        with pytest.raises(InvalidTransitionError, match="pending"):
            await machine.transition("trial-1", TrialPhase.EVALUATING)

        assert (await repository.get_trial("trial-1")).phase is TrialPhase.PENDING
        assert observer.rejected == [("pending", "evaluating")]

    async def test_terminal_trial_cannot_move(self) -> None:
        machine, _, _, _ = await _make_machine(TrialPhase.FAILED)

        with pytest.raises(InvalidTransitionError):
            await machine.transition("trial-1", TrialPhase.FAILED)

    async def test_unknown_trial_raises_not_found(self) -> None:
        machine, _, _, _ = await _make_machine()

        with pytest.raises(TrialNotFoundError):
            await machine.transition("missing", TrialPhase.DESIGNING)

    async def test_racing_transitions_only_one_wins(self) -> None:
        machine, repository, _, _ = await _make_machine()

        outcomes = await asyncio.gather(
            machine.transition("trial-1", TrialPhase.DESIGNING),
            machine.transition("trial-1", TrialPhase.DESIGNING),
            return_exceptions=True,
        )

        errors = [o for o in outcomes if isinstance(o, InvalidTransitionError)]
        assert len(errors) == 1
        assert (await repository.get_trial("trial-1")).phase is TrialPhase.DESIGNING
