"""Base exception class for all gauntlet-specific errors."""


class GauntletError(Exception):
    """Base class for all gauntlet errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
