"""FakeRuntimeObserver: records runtime events for assertion in tests."""


class FakeRuntimeObserver:
    def __init__(self) -> None:
        self.created: list[str] = []
        self.started: list[tuple[str, bool]] = []
        self.completed: list[tuple[str, bool]] = []
        self.failed: list[tuple[str, str]] = []
        self.ended: list[str] = []
        self.expired: list[int] = []

    def runtime_session_created(self, session_id: str, model: str) -> None:
        self.created.append(session_id)

    def runtime_message_started(self, session_id: str, resumed: bool) -> None:
        self.started.append((session_id, resumed))

    def runtime_message_completed(self, session_id: str, success: bool) -> None:
        self.completed.append((session_id, success))

    def runtime_message_failed(self, session_id: str, reason: str) -> None:
        self.failed.append((session_id, reason))

    def runtime_session_ended(self, session_id: str) -> None:
        self.ended.append(session_id)

    def runtime_sessions_expired(self, count: int) -> None:
        self.expired.append(count)
