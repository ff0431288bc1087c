"""Observer port for the orchestration domain: defines events in domain language."""

from typing import Protocol


class OrchestrationObserver(Protocol):
    """Observer port for end-to-end trial events."""

    def trial_created(self, trial_id: str, kind: str) -> None: ...

    def trial_resumed(self, trial_id: str, phase: str) -> None: ...

    def trial_step_started(self, trial_id: str, step: str) -> None: ...

    def trial_decreed(self, trial_id: str, winner_id: str | None) -> None: ...

    def trial_failed(self, trial_id: str, phase: str, reason: str) -> None: ...

    def trial_cleanup_failed(self, trial_id: str, reason: str) -> None: ...

    def trial_stop_requested(self, trial_id: str) -> None: ...

    def trial_concluded(self, trial_id: str) -> None: ...

    def workspace_push_failed(self, trial_id: str, reason: str) -> None: ...

    def advisory_message_sent(self, trial_id: str, success: bool) -> None: ...
