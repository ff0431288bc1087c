"""Tagged union of the events streamed by the in-sandbox agent runtime.

Every frame on the wire is a named event plus a JSON payload. Known names
decode to their own model; anything else becomes an UnknownEvent so that a
newer runtime never crashes an older orchestrator.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from gauntlet.session.domain.result import TerminalResult


class InitEvent(BaseModel, frozen=True):
    name: Literal["init"] = "init"
    session_id: str
    backend_session_id: str | None = None
    model: str | None = None
    tools: list[str] = Field(default_factory=list)
    cwd: str | None = None


class AssistantEvent(BaseModel, frozen=True):
    name: Literal["assistant"] = "assistant"
    content: str


class ToolUseEvent(BaseModel, frozen=True):
    name: Literal["tool_use"] = "tool_use"
    id: str
    tool: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultEvent(BaseModel, frozen=True):
    name: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    output: str | None = None
    is_error: bool = False


class ErrorEvent(BaseModel, frozen=True):
    name: Literal["error"] = "error"
    error: str
    code: str | None = None


class DoneEvent(BaseModel, frozen=True):
    name: Literal["done"] = "done"
    result: TerminalResult


class UnknownEvent(BaseModel, frozen=True):
    name: str
    data: Any = None


type AgentEvent = (
    InitEvent
    | AssistantEvent
    | ToolUseEvent
    | ToolResultEvent
    | ErrorEvent
    | DoneEvent
    | UnknownEvent
)

_KNOWN: dict[str, type[BaseModel]] = {
    "init": InitEvent,
    "assistant": AssistantEvent,
    "tool_use": ToolUseEvent,
    "tool_result": ToolResultEvent,
    "error": ErrorEvent,
}


class EventDecodeError(ValueError):
    """A known event name arrived with a payload that does not fit its shape."""


def decode_event(name: str, payload: Any) -> AgentEvent:
    """Turn one wire frame into a typed event.

    Raises:
        EventDecodeError: if a known event's payload is malformed.
    """
    try:
        if name == "done":
            return DoneEvent(result=TerminalResult.model_validate(payload))
        model = _KNOWN.get(name)
        if model is None:
            return UnknownEvent(name=name, data=payload)
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError as exc:
        raise EventDecodeError(f"malformed '{name}' event: {exc}") from exc


def event_payload(event: AgentEvent) -> dict[str, Any]:
    """Payload of an event without its tag, as forwarded to live observers."""
    if isinstance(event, UnknownEvent):
        return event.data if isinstance(event.data, dict) else {"value": event.data}
    if isinstance(event, DoneEvent):
        return event.result.model_dump(mode="json")
    return event.model_dump(mode="json", exclude={"name"})
