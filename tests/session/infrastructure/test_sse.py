"""Tests for the incremental SSE frame decoder."""

from gauntlet.session.infrastructure.sse import SseDecoder, SseFrame, encode_frame


def _decode_all(text: str) -> list[SseFrame]:
    decoder = SseDecoder()
    frames = [frame for line in text.split("\n") if (frame := decoder.feed(line))]
    trailing = decoder.flush()
    if trailing is not None:
        frames.append(trailing)
    return frames


class TestSseDecoder:
    """SseDecoder assembles frames line by line."""

    def test_single_frame(self) -> None:
        frames = _decode_all('event: assistant\ndata: {"content": "hi"}\n\n')

        assert frames == [SseFrame(event="assistant", data='{"content": "hi"}')]

    def test_multiline_data_is_joined_with_newlines(self) -> None:
        frames = _decode_all("event: x\ndata: one\ndata: two\n\n")

        assert frames[0].data == "one\ntwo"

    def test_comment_lines_are_ignored(self) -> None:
        frames = _decode_all(": keepalive\nevent: x\ndata: 1\n\n")

        assert frames == [SseFrame(event="x", data="1")]

    def test_missing_event_defaults_to_message(self) -> None:
        assert _decode_all("data: 1\n\n")[0].event == "message"

    def test_carriage_returns_are_stripped(self) -> None:
        frames = _decode_all("event: x\r\ndata: 1\r\n\r\n")

        assert frames == [SseFrame(event="x", data="1")]

    def test_trailing_frame_is_flushed(self) -> None:
        frames = _decode_all("event: done\ndata: {}")

        assert frames == [SseFrame(event="done", data="{}")]

    def test_blank_lines_alone_produce_nothing(self) -> None:
        assert _decode_all("\n\n\n") == []


class TestEncodeFrame:
    """encode_frame output is readable by the decoder."""

    def test_encoded_multiline_frame_decodes_back(self) -> None:
        frames = _decode_all(encode_frame("assistant", "a\nb"))

        assert frames == [SseFrame(event="assistant", data="a\nb")]
