"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, sandbox_image: str) -> None:
        self._log.info("config.loaded", name=name, sandbox_image=sandbox_image)

    def config_git_token_absent(self) -> None:
        self._log.warning(
            "config.git_token_absent",
            message="No git token configured; private workspaces cannot be cloned or pushed",
        )
