"""FakeOrchestrationObserver: records trial lifecycle events."""


class FakeOrchestrationObserver:
    def __init__(self) -> None:
        self.created: list[str] = []
        self.resumed: list[tuple[str, str]] = []
        self.steps: list[str] = []
        self.decreed: list[str | None] = []
        self.failed: list[tuple[str, str]] = []
        self.cleanup_failures: list[str] = []
        self.stop_requested: list[str] = []
        self.concluded: list[str] = []
        self.push_failures: list[str] = []
        self.advisory_messages: list[bool] = []

    def trial_created(self, trial_id: str, kind: str) -> None:
        self.created.append(trial_id)

    def trial_resumed(self, trial_id: str, phase: str) -> None:
        self.resumed.append((trial_id, phase))

    def trial_step_started(self, trial_id: str, step: str) -> None:
        self.steps.append(step)

    def trial_decreed(self, trial_id: str, winner_id: str | None) -> None:
        self.decreed.append(winner_id)

    def trial_failed(self, trial_id: str, phase: str, reason: str) -> None:
        self.failed.append((phase, reason))

    def trial_cleanup_failed(self, trial_id: str, reason: str) -> None:
        self.cleanup_failures.append(reason)

    def trial_stop_requested(self, trial_id: str) -> None:
        self.stop_requested.append(trial_id)

    def trial_concluded(self, trial_id: str) -> None:
        self.concluded.append(trial_id)

    def workspace_push_failed(self, trial_id: str, reason: str) -> None:
        self.push_failures.append(reason)

    def advisory_message_sent(self, trial_id: str, success: bool) -> None:
        self.advisory_messages.append(success)
