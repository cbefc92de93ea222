import pytest

from pr_impact.infra.streaming.aggregate import collect_response, collect_text
from pr_impact.infra.streaming.events import (
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlock,
    MessageDelta,
    MessageResponse,
    MessageStart,
    MessageStop,
    Ping,
    StreamError,
    TextDelta,
    Usage,
)
from pr_impact.shared.errors import LLMInvocationError, StreamEventError


def _delta(text: str, index: int = 0) -> ContentBlockDelta:
    return ContentBlockDelta(index=index, delta=TextDelta(delta_type="text_delta", text=text))


def test_collect_text_concatenates_deltas_in_order() -> None:
    events = [
        ContentBlockStart(index=0, content_block=ContentBlock(block_type="text", text="")),
        _delta("Hello"),
        Ping(),
        _delta(" world"),
        MessageStop(),
    ]

    assert collect_text(events) == "Hello world"


def test_collect_text_spans_content_block_indices() -> None:
    assert collect_text([_delta("a", 0), _delta("b", 1), _delta("c", 0)]) == "abc"


def test_error_event_aborts_without_partial_text() -> None:
    events = [_delta("partial"), StreamError(error_type="overloaded_error", message="Overloaded")]

    with pytest.raises(StreamEventError) as exc_info:
        collect_text(events)

    error = exc_info.value
    assert isinstance(error, LLMInvocationError)
    assert error.error_type == "overloaded_error"
    assert error.message == "Overloaded"
    assert "overloaded_error" in str(error)
    assert "Overloaded" in str(error)


def test_events_after_error_are_not_consumed() -> None:
    consumed = []

    def _events():
        for event in (StreamError(error_type="api_error", message="boom"), _delta("late")):
            consumed.append(event)
            yield event

    with pytest.raises(StreamEventError):
        collect_text(_events())

    assert len(consumed) == 1


def test_empty_stream_gives_empty_text() -> None:
    assert collect_text([]) == ""


def test_collect_response_records_usage_and_stop_reason() -> None:
    start = MessageStart(
        message=MessageResponse(
            id="msg_1",
            response_type="message",
            role="assistant",
            content=[],
            model="claude-sonnet-4-5-20250929",
            usage=Usage(input_tokens=30, output_tokens=1),
        )
    )
    events = [
        start,
        _delta("ok"),
        MessageDelta(stop_reason="end_turn", stop_sequence=None, output_tokens=9),
        MessageStop(),
    ]

    response = collect_response(events)

    assert response.text == "ok"
    assert response.message_id == "msg_1"
    assert response.model == "claude-sonnet-4-5-20250929"
    assert response.stop_reason == "end_turn"
    assert response.input_tokens == 30
    assert response.output_tokens == 9
