"""ClaudeRuntimeRunner: drives the Claude Agent SDK and emits wire frames."""

import os
from collections.abc import AsyncIterator
from typing import Any

from claude_agent_sdk import query
from claude_agent_sdk.types import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

from gauntlet.runtime.domain.observer import RuntimeObserver
from gauntlet.runtime.domain.session import (
    Frame,
    OutputFormat,
    RuntimeSession,
    RuntimeSessionStatus,
)


class ClaudeRuntimeRunner:
    """Runs one message turn for a runtime session through the SDK.

    Satisfies the AgentRunner protocol structurally. The backend conversation
    id captured from the init message is stored on the session so the next
    turn resumes the same conversation.
    """

    def __init__(self, observer: RuntimeObserver, cli_path: str | None = None) -> None:
        self._observer = observer
        self._cli_path = cli_path or os.environ.get("CLAUDE_CLI_PATH")

    async def run(
        self,
        session: RuntimeSession,
        prompt: str,
        token: str,
        output_format: OutputFormat | None,
    ) -> AsyncIterator[Frame]:
        """Yield frames for one turn; the last frame is always `done`."""
        session.status = RuntimeSessionStatus.STREAMING
        session.touch()
        self._observer.runtime_message_started(
            session_id=session.id, resumed=session.backend_session_id is not None
        )

        result: ResultMessage | None = None
        try:
            async for message in query(
                prompt=prompt, options=self._build_options(session, token, output_format)
            ):
                session.touch()
                if isinstance(message, ResultMessage):
                    result = message
                    continue
                for frame in self._frames_for(session, message):
                    yield frame
        except Exception as exc:
            # The SDK raises bare Exceptions when its subprocess dies.
            reason = str(exc) or type(exc).__name__
            self._observer.runtime_message_failed(session_id=session.id, reason=reason)
            yield Frame(event="error", data={"error": reason})
            yield Frame(event="done", data=_done_payload(None, error=reason))
            return
        finally:
            if session.status is RuntimeSessionStatus.STREAMING:
                session.status = RuntimeSessionStatus.READY
            session.touch()

        payload = _done_payload(result)
        self._observer.runtime_message_completed(
            session_id=session.id, success=payload["success"]
        )
        yield Frame(event="done", data=payload)

    def _build_options(
        self,
        session: RuntimeSession,
        token: str,
        output_format: OutputFormat | None,
    ) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(
            model=session.model,
            system_prompt=session.system_prompt,
            max_turns=session.max_turns,
            allowed_tools=list(session.tools),
            cwd=session.cwd,
            permission_mode="bypassPermissions",
            setting_sources=[],
            env={"CLAUDE_CODE_OAUTH_TOKEN": token},
            resume=session.backend_session_id,
            cli_path=self._cli_path,
            output_format=(
                output_format.model_dump(by_alias=True)
                if output_format is not None
                else None
            ),
        )

    def _frames_for(self, session: RuntimeSession, message: Any) -> list[Frame]:
        if isinstance(message, SystemMessage):
            if message.subtype != "init":
                return []
            backend_id = message.data.get("session_id")
            if backend_id:
                session.backend_session_id = backend_id
            return [
                Frame(
                    event="init",
                    data={
                        "session_id": session.id,
                        "backend_session_id": backend_id,
                        "model": message.data.get("model"),
                        "tools": message.data.get("tools", []),
                        "cwd": message.data.get("cwd"),
                    },
                )
            ]

        if isinstance(message, AssistantMessage):
            frames: list[Frame] = []
            text = "".join(
                block.text for block in message.content if isinstance(block, TextBlock)
            )
            if text:
                frames.append(Frame(event="assistant", data={"content": text}))
            frames += [
                Frame(
                    event="tool_use",
                    data={"id": block.id, "tool": block.name, "input": block.input},
                )
                for block in message.content
                if isinstance(block, ToolUseBlock)
            ]
            return frames

        if isinstance(message, UserMessage) and isinstance(message.content, list):
            return [
                Frame(
                    event="tool_result",
                    data={
                        "tool_use_id": block.tool_use_id,
                        "output": _tool_output(block.content),
                        "is_error": bool(block.is_error),
                    },
                )
                for block in message.content
                if isinstance(block, ToolResultBlock)
            ]

        return []


def _tool_output(raw: Any) -> str | None:
    if raw is None or isinstance(raw, str):
        return raw
    if isinstance(raw, list):
        return " ".join(
            str(item.get("text", "")) for item in raw if isinstance(item, dict)
        )
    return str(raw)


def _done_payload(result: ResultMessage | None, error: str | None = None) -> dict[str, Any]:
    if result is None:
        return {
            "success": False,
            "cost": {"total_cost_usd": 0.0, "input_tokens": 0, "output_tokens": 0},
            "turns": 0,
            "error": error or "no result message in response stream",
            "result": None,
            "structured_output": None,
        }

    usage = result.usage or {}
    success = result.subtype == "success" and not result.is_error
    return {
        "success": success,
        "cost": {
            "total_cost_usd": result.total_cost_usd or 0.0,
            "input_tokens": usage.get("input_tokens", 0),
            "output_tokens": usage.get("output_tokens", 0),
        },
        "turns": result.num_turns,
        "error": None if success else (result.result or result.subtype),
        "result": result.result,
        "structured_output": result.structured_output,
    }
