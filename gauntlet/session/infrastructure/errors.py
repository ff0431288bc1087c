"""Error types raised by session infrastructure."""

from gauntlet.core.errors import GauntletError


class ProtocolError(GauntletError):
    """Raised when a runtime stream is malformed or ends without `done`.

    Fatal for that one session, not for its siblings.
    """

    def __init__(self, session_id: str, reason: str) -> None:
        self.session_id = session_id
        super().__init__(
            f"Failed to read stream of session '{session_id}': {reason}"
        )


class SessionRequestError(GauntletError):
    """Raised when the runtime rejects a request with a non-success status."""

    def __init__(self, operation: str, status_code: int | None, reason: str) -> None:
        self.status_code = status_code
        # Connection failures and server errors are worth another attempt.
        retriable = status_code is None or status_code >= 500
        super().__init__(f"Failed to {operation}: {reason}", retriable=retriable)


class OutputValidationError(GauntletError):
    """Raised when structured output still fails validation after all retries."""

    def __init__(self, session_id: str, attempts: int, reason: str) -> None:
        self.attempts = attempts
        super().__init__(
            f"Failed to obtain valid structured output from session '{session_id}'"
            f" after {attempts} attempts: {reason}"
        )


class SessionAbortedError(GauntletError):
    """Raised when a stop signal ends a request that needed a complete answer."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Failed to complete session '{session_id}': stopped")
