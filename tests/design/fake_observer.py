"""FakeDesignObserver: records design steps for assertion in tests."""


class FakeDesignObserver:
    def __init__(self) -> None:
        self.started: list[tuple[str, str]] = []
        self.completed: list[tuple[str, int]] = []

    def design_started(self, trial_id: str, step: str, model: str) -> None:
        self.started.append((step, model))

    def design_completed(
        self, trial_id: str, step: str, attempts: int, cost_usd: float
    ) -> None:
        self.completed.append((step, attempts))
