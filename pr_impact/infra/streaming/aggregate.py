from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from pr_impact.infra.streaming.events import (
    ContentBlockDelta,
    MessageDelta,
    MessageStart,
    StreamError,
    StreamEvent,
)
from pr_impact.shared.errors import StreamEventError


@dataclass(frozen=True)
class AggregatedResponse:
    text: str
    message_id: str | None = None
    model: str | None = None
    stop_reason: str | None = None
    stop_sequence: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None


def collect_response(events: Iterable[StreamEvent]) -> AggregatedResponse:
    """Concatenate delta text in arrival order; an error event aborts with no partial text."""
    parts: list[str] = []
    message_id = None
    model = None
    stop_reason = None
    stop_sequence = None
    input_tokens = None
    output_tokens = None

    for event in events:
        if isinstance(event, ContentBlockDelta):
            parts.append(event.delta.text)
        elif isinstance(event, StreamError):
            raise StreamEventError(event.error_type, event.message)
        elif isinstance(event, MessageStart):
            message_id = event.message.id
            model = event.message.model
            input_tokens = event.message.usage.input_tokens
            output_tokens = event.message.usage.output_tokens
        elif isinstance(event, MessageDelta):
            stop_reason = event.stop_reason
            stop_sequence = event.stop_sequence
            output_tokens = event.output_tokens

    return AggregatedResponse(
        text="".join(parts),
        message_id=message_id,
        model=model,
        stop_reason=stop_reason,
        stop_sequence=stop_sequence,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


def collect_text(events: Iterable[StreamEvent]) -> str:
    return collect_response(events).text
