from __future__ import annotations

import codecs
import json
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List

from pr_impact.infra.streaming.events import (
    ContentBlock,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    MessageDelta,
    MessageResponse,
    MessageStart,
    MessageStop,
    Ping,
    RawSseEvent,
    StreamError,
    StreamEvent,
    TextDelta,
)
from pr_impact.shared.errors import StreamParseError


logger = logging.getLogger(__name__)


class SseEventFramer:
    """Incremental SSE framer: text in, complete raw events out.

    Text may be fed in arbitrarily sized pieces; a line is only interpreted once its
    terminating newline has arrived.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._event = RawSseEvent()

    def feed(self, text: str) -> List[RawSseEvent]:
        self._buffer += text
        completed: List[RawSseEvent] = []

        while True:
            newline_at = self._buffer.find("\n")
            if newline_at < 0:
                break
            line = self._buffer[:newline_at].rstrip("\r")
            self._buffer = self._buffer[newline_at + 1 :]

            event = self._process_line(line)
            if event is not None:
                completed.append(event)

        return completed

    def finish(self) -> RawSseEvent | None:
        """Flush at end of stream, returning an unterminated event if one is pending."""
        if self._buffer:
            line = self._buffer.rstrip("\r")
            self._buffer = ""
            if line:
                self._apply_field(line)

        event = self._event
        self._event = RawSseEvent()
        return event if event.has_content else None

    def _process_line(self, line: str) -> RawSseEvent | None:
        if not line:
            if not self._event.has_content:
                # keep-alive
                return None
            event = self._event
            self._event = RawSseEvent()
            return event

        self._apply_field(line)
        return None

    def _apply_field(self, line: str) -> None:
        if line.startswith("event:"):
            self._event.event = line[len("event:") :].strip()
        elif line.startswith("data:"):
            self._event.data_lines.append(line[len("data:") :].strip())
        # id:, retry: and ":" comments are ignored


def _load_json(event_type: str, data: str) -> Dict[str, Any]:
    try:
        payload = json.loads(data)
    except ValueError as exc:
        raise StreamParseError(event_type, f"invalid JSON ({exc})") from exc
    if not isinstance(payload, dict):
        raise StreamParseError(event_type, "payload must be a JSON object")
    return payload


def _index(payload: Dict[str, Any]) -> int:
    value = payload.get("index", 0)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def _message_start(payload: Dict[str, Any]) -> StreamEvent:
    return MessageStart(message=MessageResponse.from_dict(payload.get("message")))


def _content_block_start(payload: Dict[str, Any]) -> StreamEvent:
    return ContentBlockStart(
        index=_index(payload),
        content_block=ContentBlock.from_dict(payload.get("content_block")),
    )


def _content_block_delta(payload: Dict[str, Any]) -> StreamEvent:
    return ContentBlockDelta(index=_index(payload), delta=TextDelta.from_dict(payload.get("delta")))


def _content_block_stop(payload: Dict[str, Any]) -> StreamEvent:
    return ContentBlockStop(index=_index(payload))


def _message_delta(payload: Dict[str, Any]) -> StreamEvent:
    delta = payload.get("delta")
    usage = payload.get("usage")
    if not isinstance(delta, dict):
        raise TypeError("'delta' must be an object")
    if not isinstance(usage, dict):
        raise TypeError("'usage' must be an object")

    stop_reason = delta.get("stop_reason")
    stop_sequence = delta.get("stop_sequence")
    output_tokens = usage.get("output_tokens")
    if stop_reason is not None and not isinstance(stop_reason, str):
        raise TypeError("'stop_reason' must be a string or null")
    if stop_sequence is not None and not isinstance(stop_sequence, str):
        raise TypeError("'stop_sequence' must be a string or null")
    if isinstance(output_tokens, bool) or not isinstance(output_tokens, int):
        raise TypeError("'output_tokens' must be an integer")

    return MessageDelta(
        stop_reason=stop_reason,
        stop_sequence=stop_sequence,
        output_tokens=output_tokens,
    )


def _error(payload: Dict[str, Any]) -> StreamEvent:
    error = payload.get("error")
    if not isinstance(error, dict):
        error = {}
    error_type = error.get("type")
    message = error.get("message")
    return StreamError(
        error_type=error_type if isinstance(error_type, str) else "unknown",
        message=message if isinstance(message, str) else "unknown error",
    )


_PAYLOAD_DECODERS: Dict[str, Callable[[Dict[str, Any]], StreamEvent]] = {
    "message_start": _message_start,
    "content_block_start": _content_block_start,
    "content_block_delta": _content_block_delta,
    "content_block_stop": _content_block_stop,
    "message_delta": _message_delta,
    "error": _error,
}

_UNIT_EVENTS: Dict[str, Callable[[], StreamEvent]] = {
    "message_stop": MessageStop,
    "ping": Ping,
}


def parse_raw_event(raw: RawSseEvent) -> StreamEvent | None:
    """Translate a framed event; returns ``None`` for event types this client does not know."""
    event_type = raw.event or ""

    unit = _UNIT_EVENTS.get(event_type)
    if unit is not None:
        return unit()

    decoder = _PAYLOAD_DECODERS.get(event_type)
    if decoder is None:
        logger.debug("Skipping unknown SSE event type '%s'", event_type)
        return None

    payload = _load_json(event_type, raw.data)
    try:
        return decoder(payload)
    except (TypeError, ValueError) as exc:
        raise StreamParseError(event_type, str(exc)) from exc


def parse_sse_stream(byte_chunks: Iterable[bytes]) -> Iterator[StreamEvent]:
    """Lazily turn a byte stream into typed stream events, in wire order.

    The byte source is only pulled when no complete event is buffered. Closing this
    generator closes the byte source when it supports ``close()``.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    framer = SseEventFramer()
    source = iter(byte_chunks)

    try:
        for chunk in source:
            for raw in framer.feed(decoder.decode(chunk)):
                event = parse_raw_event(raw)
                if event is not None:
                    yield event

        pending = framer.feed(decoder.decode(b"", final=True))
        tail = framer.finish()
        if tail is not None:
            pending.append(tail)
        for raw in pending:
            event = parse_raw_event(raw)
            if event is not None:
                yield event
    finally:
        close = getattr(source, "close", None)
        if callable(close):
            close()
