"""Tests for StructuredRequester and JSON extraction."""

import asyncio

import pytest
from pydantic import BaseModel, Field

from gauntlet.session.application.structured import (
    StructuredReply,
    StructuredRequester,
    extract_json,
)
from gauntlet.session.domain.result import CostInfo, TerminalResult
from gauntlet.session.domain.session import SessionConfig
from gauntlet.session.infrastructure.errors import (
    OutputValidationError,
    SessionAbortedError,
)
from tests.session.fake_client import FakeSessionClient, ScriptedReply, reply
from tests.session.fake_observer import FakeSessionObserver
from tests.session.helpers import make_sandbox


class _Answer(BaseModel, frozen=True):
    score: int = Field(ge=0, le=100)
    note: str


def _sequence(*replies: ScriptedReply) -> FakeSessionClient:
    remaining = list(replies)
    return FakeSessionClient(responder=lambda config, content: remaining.pop(0))


async def _request(
    client: FakeSessionClient, retries: int = 2, stop: asyncio.Event | None = None
) -> tuple[StructuredReply[_Answer], FakeSessionObserver]:
    observer = FakeSessionObserver()
    requester = StructuredRequester(client=client, observer=observer, retries=retries)
    session = await client.create_session(
        make_sandbox(), SessionConfig(system_prompt="judge"), "tok"
    )
    reply_ = await requester.request(session, "score it", _Answer, stop=stop)
    return reply_, observer


class TestExtractJson:
    """extract_json finds the JSON object in free-form text."""

    def test_fenced_block_wins(self) -> None:
        text = 'Here:\n```json\n{"a": 1}\n```\nand {"b": 2}'
        assert extract_json(text) == {"a": 1}

    def test_bare_object_in_prose(self) -> None:
        assert extract_json('The answer is {"a": 1} as shown.') == {"a": 1}

    def test_plain_json(self) -> None:
        assert extract_json('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_no_json_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="not valid JSON"):
            extract_json("no json here")


class TestStructuredRequest:
    """request validates replies and retries with feedback."""

    async def test_structured_output_validates_first_time(self) -> None:
        client = _sequence(reply(structured={"score": 80, "note": "good"}))

        result, observer = await _request(client)

        assert result.value == _Answer(score=80, note="good")
        assert result.attempts == 1
        assert observer.retries == []

    async def test_text_reply_is_parsed(self) -> None:
        client = _sequence(reply(text='```json\n{"score": 5, "note": "meh"}\n```'))

        result, _ = await _request(client)

        assert result.value.score == 5

    async def test_invalid_reply_is_retried_with_feedback(self) -> None:
        client = _sequence(
            reply(structured={"score": 500, "note": "too high"}),
            reply(structured={"score": 50, "note": "ok"}),
        )

        result, observer = await _request(client)

        assert result.attempts == 2
        assert len(observer.retries) == 1
        assert "PREVIOUS ATTEMPT FAILED" in client.messages[1].content
        assert client.messages[0].session_id == client.messages[1].session_id

    async def test_cost_accumulates_across_attempts(self) -> None:
        client = _sequence(
            reply(text="nope", cost=0.25),
            reply(structured={"score": 1, "note": "x"}, cost=0.5),
        )

        result, _ = await _request(client)

        assert result.cost.total_cost_usd == pytest.approx(0.75)

    async def test_exhausted_retries_raise_output_validation_error(self) -> None:
        client = _sequence(*(reply(text="nope") for _ in range(3)))

        with pytest.raises(OutputValidationError, match="after 3 attempts"):
            await _request(client, retries=2)

        assert len(client.messages) == 3

    async def test_unsuccessful_result_counts_as_failed_attempt(self) -> None:
        client = _sequence(
            ScriptedReply(result=TerminalResult(success=False, error="crashed")),
            reply(structured={"score": 1, "note": "x"}),
        )

        result, observer = await _request(client)

        assert result.attempts == 2
        assert "crashed" in observer.retries[0].reason

    async def test_schema_is_sent_with_every_attempt(self) -> None:
        client = _sequence(reply(structured={"score": 1, "note": "x"}))

        await _request(client)

        assert client.messages[0].output_schema == _Answer.model_json_schema()

    async def test_stop_raises_session_aborted(self) -> None:
        client = _sequence(ScriptedReply(hang=True))
        stop = asyncio.Event()
        stop.set()

        with pytest.raises(SessionAbortedError):
            await _request(client, stop=stop)

    async def test_zero_retries_means_single_attempt(self) -> None:
        client = _sequence(reply(text="nope"))

        with pytest.raises(OutputValidationError, match="after 1 attempts"):
            await _request(client, retries=0)


class TestCostInfo:
    """CostInfo supports addition."""

    def test_add(self) -> None:
        total = CostInfo(total_cost_usd=1.0, input_tokens=2) + CostInfo(
            total_cost_usd=0.5, output_tokens=3
        )
        assert total == CostInfo(total_cost_usd=1.5, input_tokens=2, output_tokens=3)
