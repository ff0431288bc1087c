"""Trial phases and the directed graph of allowed transitions."""

from enum import StrEnum


class TrialPhase(StrEnum):
    PENDING = "pending"
    DESIGNING = "designing"
    COMPETING = "competing"
    EVALUATOR_DESIGN = "evaluator_design"
    EVALUATING = "evaluating"
    DECREE = "decree"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TrialPhase.COMPLETE, TrialPhase.FAILED)


_FORWARD: dict[TrialPhase, TrialPhase] = {
    TrialPhase.PENDING: TrialPhase.DESIGNING,
    TrialPhase.DESIGNING: TrialPhase.COMPETING,
    TrialPhase.COMPETING: TrialPhase.EVALUATOR_DESIGN,
    TrialPhase.EVALUATOR_DESIGN: TrialPhase.EVALUATING,
    TrialPhase.EVALUATING: TrialPhase.DECREE,
    TrialPhase.DECREE: TrialPhase.COMPLETE,
}

TRANSITIONS: dict[TrialPhase, frozenset[TrialPhase]] = {
    phase: (
        frozenset()
        if phase.is_terminal
        else frozenset({_FORWARD[phase], TrialPhase.FAILED})
    )
    for phase in TrialPhase
}


def can_transition(current: TrialPhase, target: TrialPhase) -> bool:
    return target in TRANSITIONS[current]
