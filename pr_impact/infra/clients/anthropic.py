from __future__ import annotations

import logging
from contextlib import closing
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Iterator

import requests

from pr_impact.infra.streaming.aggregate import collect_response
from pr_impact.infra.streaming.events import ChatMessage, MessageRequest, MessageResponse
from pr_impact.infra.streaming.sse import parse_sse_stream
from pr_impact.shared.errors import LLMInvocationError
from pr_impact.shared.types import LLMCallResult


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_API_VERSION = "2023-06-01"


@dataclass(frozen=True)
class AnthropicClientConfig:
    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    max_tokens: int = 4096
    timeout_seconds: float = 300.0
    system_prompt: str | None = None


class AnthropicMessagesClient:
    """Messages API client; text generation goes through the SSE streaming endpoint."""

    def __init__(self, config: AnthropicClientConfig) -> None:
        if not config.api_key:
            raise LLMInvocationError(
                "ANTHROPIC_API_KEY is not set (required when LLM_PROVIDER=anthropic)"
            )

        self._api_key = config.api_key
        self._model = config.model
        self._base_url = config.base_url.rstrip("/")
        self._api_version = config.api_version
        self._max_tokens = config.max_tokens
        self._timeout_seconds = config.timeout_seconds
        self._system_prompt = config.system_prompt

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def messages_url(self) -> str:
        return f"{self._base_url}/v1/messages"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
            "content-type": "application/json",
        }

    def build_request_body(self, prompt: str, *, stream: bool) -> Dict[str, Any]:
        request = MessageRequest(
            model=self._model,
            messages=[ChatMessage(role="user", content=prompt)],
            max_tokens=self._max_tokens,
            system=self._system_prompt,
            stream=stream,
        )
        return request.to_dict()

    def _post(self, prompt: str, *, stream: bool) -> requests.Response:
        try:
            response = requests.post(
                self.messages_url,
                headers=self._headers(),
                json=self.build_request_body(prompt, stream=stream),
                timeout=self._timeout_seconds,
                stream=stream,
            )
        except requests.RequestException as exc:
            raise LLMInvocationError(f"LLM API request failed: POST {self.messages_url}") from exc

        if response.status_code >= 400:
            try:
                body = response.text
            finally:
                response.close()
            raise LLMInvocationError(f"LLM API returned {response.status_code}: {body}")

        return response

    def create_message(self, prompt: str) -> MessageResponse:
        """Non-streaming call returning the complete response envelope."""
        response = self._post(prompt, stream=False)
        try:
            return MessageResponse.from_dict(response.json())
        except (TypeError, ValueError) as exc:
            raise LLMInvocationError("LLM API returned a malformed message response") from exc

    def stream_message(self, prompt: str) -> Iterator[bytes]:
        """Raw SSE bytes of a streaming call. Closing the iterator closes the connection."""
        response = self._post(prompt, stream=True)
        try:
            for chunk in response.iter_content(chunk_size=None):
                if chunk:
                    yield chunk
        except requests.RequestException as exc:
            raise LLMInvocationError("Failed to read LLM response stream") from exc
        finally:
            response.close()

    def generate_text_with_stats(self, prompt: str) -> LLMCallResult:
        logger.info(
            "Calling Messages API: model=%s, prompt_chars=%s",
            self._model,
            len(prompt),
        )

        started_at = perf_counter()
        with closing(parse_sse_stream(self.stream_message(prompt))) as events:
            aggregated = collect_response(events)
        elapsed = perf_counter() - started_at

        result: LLMCallResult = {
            "content": aggregated.text.strip(),
            "provider": self.provider_name,
            "model": aggregated.model or self._model,
            "elapsed_seconds": elapsed,
        }
        if aggregated.stop_reason is not None:
            result["stop_reason"] = aggregated.stop_reason
        if aggregated.input_tokens is not None:
            result["input_tokens"] = aggregated.input_tokens
        if aggregated.output_tokens is not None:
            result["output_tokens"] = aggregated.output_tokens
        if aggregated.input_tokens is not None and aggregated.output_tokens is not None:
            result["total_tokens"] = aggregated.input_tokens + aggregated.output_tokens

        return result
