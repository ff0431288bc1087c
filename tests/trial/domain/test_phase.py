"""Tests for the trial phase graph and record status ordering."""

import pytest

from gauntlet.trial.domain.phase import TRANSITIONS, TrialPhase, can_transition
from gauntlet.trial.domain.records import RecordStatus

_HAPPY_PATH = [
    TrialPhase.PENDING,
    TrialPhase.DESIGNING,
    TrialPhase.COMPETING,
    TrialPhase.EVALUATOR_DESIGN,
    TrialPhase.EVALUATING,
    TrialPhase.DECREE,
    TrialPhase.COMPLETE,
]


class TestTransitions:
    """Phases advance along one path; any live phase may fail."""

    @pytest.mark.parametrize(
        ("current", "target"), list(zip(_HAPPY_PATH, _HAPPY_PATH[1:], strict=False))
    )
    def test_happy_path_steps_are_allowed(
        self, current: TrialPhase, target: TrialPhase
    ) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize("phase", _HAPPY_PATH[:-1])
    def test_every_live_phase_can_fail(self, phase: TrialPhase) -> None:
        assert can_transition(phase, TrialPhase.FAILED)

    def test_skipping_a_phase_is_rejected(self) -> None:
        assert not can_transition(TrialPhase.PENDING, TrialPhase.COMPETING)

    def test_going_backwards_is_rejected(self) -> None:
        assert not can_transition(TrialPhase.EVALUATING, TrialPhase.COMPETING)

    @pytest.mark.parametrize("phase", [TrialPhase.COMPLETE, TrialPhase.FAILED])
    def test_terminal_phases_have_no_exits(self, phase: TrialPhase) -> None:
        assert phase.is_terminal
        assert TRANSITIONS[phase] == frozenset()

    def test_decree_is_not_terminal(self) -> None:
        assert not TrialPhase.DECREE.is_terminal


class TestRecordStatus:
    """Record statuses only move forward."""

    def test_pending_to_running(self) -> None:
        assert RecordStatus.PENDING.can_advance_to(RecordStatus.RUNNING)

    def test_running_to_outcome(self) -> None:
        assert RecordStatus.RUNNING.can_advance_to(RecordStatus.COMPLETED)
        assert RecordStatus.RUNNING.can_advance_to(RecordStatus.FAILED)

    def test_same_status_is_allowed(self) -> None:
        assert RecordStatus.COMPLETED.can_advance_to(RecordStatus.COMPLETED)

    def test_running_back_to_pending_is_rejected(self) -> None:
        assert not RecordStatus.RUNNING.can_advance_to(RecordStatus.PENDING)

    def test_outcomes_are_final(self) -> None:
        assert not RecordStatus.COMPLETED.can_advance_to(RecordStatus.FAILED)
        assert not RecordStatus.FAILED.can_advance_to(RecordStatus.RUNNING)
