"""FakeTrialObserver: records phase transitions for assertion in tests."""


class FakeTrialObserver:
    def __init__(self) -> None:
        self.transitioned: list[tuple[str, str]] = []
        self.rejected: list[tuple[str, str]] = []

    def trial_transitioned(self, trial_id: str, from_phase: str, to_phase: str) -> None:
        self.transitioned.append((from_phase, to_phase))

    def trial_transition_rejected(
        self, trial_id: str, from_phase: str, to_phase: str
    ) -> None:
        self.rejected.append((from_phase, to_phase))
