class ConfigurationError(ValueError):
    """Raised when required application settings are missing or invalid."""


class GitHubAPIError(RuntimeError):
    """Raised when GitHub API requests fail or return invalid payloads."""


class LLMInvocationError(RuntimeError):
    """Raised when LLM invocation fails or returns malformed output."""


class StreamParseError(LLMInvocationError):
    """Raised when a known SSE event carries a payload that cannot be decoded."""

    def __init__(self, event_type: str, detail: str) -> None:
        super().__init__(f"Failed to parse {event_type} event: {detail}")
        self.event_type = event_type


class StreamEventError(LLMInvocationError):
    """Raised when the model stream reports an error event."""

    def __init__(self, error_type: str, message: str) -> None:
        super().__init__(f"Streaming error ({error_type}): {message}")
        self.error_type = error_type
        self.message = message
