"""Messages API payload shapes and the typed events of its streaming protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union


def _require_mapping(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"'{name}' must be an object")
    return value


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string")
    return value


def _optional_str(data: Dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string or null")
    return value


def _require_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"'{key}' must be an integer")
    return value


@dataclass(frozen=True)
class ContentBlock:
    block_type: str
    text: str

    @classmethod
    def from_dict(cls, data: Any) -> "ContentBlock":
        data = _require_mapping(data, "content_block")
        return cls(block_type=_require_str(data, "type"), text=_require_str(data, "text"))


@dataclass(frozen=True)
class Usage:
    input_tokens: int
    output_tokens: int

    @classmethod
    def from_dict(cls, data: Any) -> "Usage":
        data = _require_mapping(data, "usage")
        return cls(
            input_tokens=_require_int(data, "input_tokens"),
            output_tokens=_require_int(data, "output_tokens"),
        )


@dataclass(frozen=True)
class MessageResponse:
    """Complete response envelope of the Messages API."""

    id: str
    response_type: str
    role: str
    content: List[ContentBlock]
    model: str
    usage: Usage
    stop_reason: str | None = None
    stop_sequence: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "MessageResponse":
        data = _require_mapping(data, "message")
        content = data.get("content")
        if not isinstance(content, list):
            raise TypeError("'content' must be a list")
        return cls(
            id=_require_str(data, "id"),
            response_type=_require_str(data, "type"),
            role=_require_str(data, "role"),
            content=[ContentBlock.from_dict(block) for block in content],
            model=_require_str(data, "model"),
            usage=Usage.from_dict(data.get("usage")),
            stop_reason=_optional_str(data, "stop_reason"),
            stop_sequence=_optional_str(data, "stop_sequence"),
        )

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content if block.block_type == "text")


@dataclass(frozen=True)
class TextDelta:
    delta_type: str
    text: str

    @classmethod
    def from_dict(cls, data: Any) -> "TextDelta":
        data = _require_mapping(data, "delta")
        return cls(delta_type=_require_str(data, "type"), text=_require_str(data, "text"))


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


@dataclass(frozen=True)
class MessageRequest:
    model: str
    messages: List[ChatMessage]
    max_tokens: int
    system: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    stop_sequences: List[str] | None = None
    stream: bool = False

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
            "max_tokens": self.max_tokens,
        }
        optional = {
            "system": self.system,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "stop_sequences": self.stop_sequences,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        if self.stream:
            body["stream"] = True
        return body


# Stream events. The union below is the closed set the parser can produce.


@dataclass(frozen=True)
class MessageStart:
    message: MessageResponse


@dataclass(frozen=True)
class ContentBlockStart:
    index: int
    content_block: ContentBlock


@dataclass(frozen=True)
class ContentBlockDelta:
    index: int
    delta: TextDelta


@dataclass(frozen=True)
class ContentBlockStop:
    index: int


@dataclass(frozen=True)
class MessageDelta:
    stop_reason: str | None
    stop_sequence: str | None
    output_tokens: int


@dataclass(frozen=True)
class MessageStop:
    pass


@dataclass(frozen=True)
class Ping:
    pass


@dataclass(frozen=True)
class StreamError:
    error_type: str
    message: str


StreamEvent = Union[
    MessageStart,
    ContentBlockStart,
    ContentBlockDelta,
    ContentBlockStop,
    MessageDelta,
    MessageStop,
    Ping,
    StreamError,
]


@dataclass
class RawSseEvent:
    """One framed SSE event before its payload is decoded."""

    event: str | None = None
    data_lines: List[str] = field(default_factory=list)

    @property
    def data(self) -> str:
        return "\n".join(self.data_lines)

    @property
    def has_content(self) -> bool:
        return self.event is not None or bool(self.data_lines)
