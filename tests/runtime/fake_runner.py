"""FakeAgentRunner: yields a fixed frame sequence for every message."""

from collections.abc import AsyncIterator

from gauntlet.runtime.domain.session import Frame, OutputFormat, RuntimeSession


class FakeAgentRunner:
    def __init__(self, frames: list[Frame] | None = None) -> None:
        self.frames = frames or [
            Frame(event="assistant", data={"content": "hello"}),
            Frame(event="done", data={"success": True, "turns": 1}),
        ]
        self.prompts: list[str] = []
        self.output_formats: list[OutputFormat | None] = []

    async def run(
        self,
        session: RuntimeSession,
        prompt: str,
        token: str,
        output_format: OutputFormat | None,
    ) -> AsyncIterator[Frame]:
        self.prompts.append(prompt)
        self.output_formats.append(output_format)
        for frame in self.frames:
            yield frame
