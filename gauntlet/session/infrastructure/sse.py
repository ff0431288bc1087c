"""Incremental decoder for `event:`/`data:` server-sent event frames."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SseFrame:
    event: str
    data: str


class SseDecoder:
    """Feed lines one at a time; a blank line completes the pending frame.

    Multi-line `data:` fields are joined with newlines, comment lines (a
    leading colon) are ignored and a frame without an `event:` field takes
    the default name `message`.
    """

    def __init__(self) -> None:
        self._event: str | None = None
        self._data: list[str] = []

    def feed(self, line: str) -> SseFrame | None:
        line = line.rstrip("\r")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        value = value.removeprefix(" ")
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        return None

    def flush(self) -> SseFrame | None:
        """Complete a trailing frame that was not followed by a blank line."""
        return self._dispatch()

    def _dispatch(self) -> SseFrame | None:
        if self._event is None and not self._data:
            return None
        frame = SseFrame(event=self._event or "message", data="\n".join(self._data))
        self._event = None
        self._data = []
        return frame


def encode_frame(event: str, data: str) -> str:
    """Render one frame for the wire, terminated by its blank line."""
    lines = [f"event: {event}"]
    lines += [f"data: {line}" for line in data.split("\n")]
    return "\n".join(lines) + "\n\n"
