"""Observer port for the config domain: defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, sandbox_image: str) -> None: ...

    def config_git_token_absent(self) -> None: ...
