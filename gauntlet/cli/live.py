"""LiveTrialView: renders a trial topic's events to the console with Rich."""

import sys

from rich.console import Console
from rich.text import Text

from gauntlet.broadcast.application.hub import Subscription
from gauntlet.broadcast.domain.event import TOPIC_CLOSED, BroadcastEvent

# Rich styles per event type; unknown types render dim.
_STYLES: dict[str, str] = {
    "state_change": "bold cyan",
    "step": "blue",
    "agent_started": "yellow",
    "agent_completed": "bright_green",
    "agent_failed": "red",
    "competition_complete": "bold green",
    "error": "bold red",
    TOPIC_CLOSED: "dim",
}


def describe(event: BroadcastEvent) -> str | None:
    """One human-readable line for an event, or None to skip it."""
    data = event.data
    match event.type:
        case "state_change":
            return f"phase {data.get('previous')} -> {data.get('phase')}"
        case "step":
            return str(data.get("message", data.get("step")))
        case "agent_started":
            return f"{data.get('role')} {data.get('name')} started"
        case "agent_completed":
            return (
                f"{data.get('role')} {data.get('agent_id', '')[:8]} completed"
                f" in {data.get('turns')} turns (${data.get('cost_usd', 0.0):.4f})"
            )
        case "agent_failed":
            agent = data.get("agent_id", "")[:8]
            return f"{data.get('role')} {agent} failed: {data.get('error')}"
        case "competition_complete":
            return (
                f"competition complete: {data.get('succeeded')} succeeded,"
                f" {data.get('failed')} failed"
            )
        case "error":
            return f"error in {data.get('phase')}: {data.get('message')}"
        case "agent_progress" | "design_progress" | "connected":
            return None
        case _:
            return event.type


class LiveTrialView:
    """Prints one line per meaningful trial event until the topic closes."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(file=sys.stderr)

    async def follow(self, subscription: Subscription) -> None:
        async for event in subscription:
            line = describe(event)
            if line is None:
                continue
            stamp = event.timestamp.strftime("%H:%M:%S")
            self._console.print(
                Text.assemble(
                    (f"{stamp} ", "dim"),
                    (line, _STYLES.get(event.type, "dim")),
                )
            )
