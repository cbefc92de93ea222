from __future__ import annotations

import os
from dataclasses import dataclass

from pr_impact.domains.prompt.chunker import DEFAULT_MAX_CHARS
from pr_impact.domains.prompt.templates import Language
from pr_impact.shared.errors import ConfigurationError


SUPPORTED_PROVIDERS = {"anthropic", "openai", "gemini", "ollama", "openrouter"}

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_LANGCHAIN_MODEL = "gpt-5-mini"


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _get_optional_str(name: str) -> str | None:
    return _clean_optional(os.environ.get(name))


def _get_required_str(name: str, *, required: bool = True) -> str:
    value = _clean_optional(os.environ.get(name))
    if value is None:
        if required:
            raise ConfigurationError(f"Missing required environment variable: {name}")
        return ""
    return value


def _get_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = _clean_optional(os.environ.get(name))
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid integer for {name}: {raw}") from exc

    if min_value is not None and value < min_value:
        raise ConfigurationError(f"{name} must be >= {min_value}")
    return value


def _get_float(name: str, default: float, *, min_value: float | None = None) -> float:
    raw = _clean_optional(os.environ.get(name))
    if raw is None:
        value = default
    else:
        try:
            value = float(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid float for {name}: {raw}") from exc

    if min_value is not None and value < min_value:
        raise ConfigurationError(f"{name} must be >= {min_value}")
    return value


def _get_language(name: str, default: Language) -> Language:
    raw = _clean_optional(os.environ.get(name))
    if raw is None:
        return default
    try:
        return Language.parse(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid language for {name}: {raw}") from exc


@dataclass(frozen=True)
class AppSettings:
    log_level: str

    github_token: str
    github_api_url: str
    github_request_timeout_seconds: float

    llm_provider: str
    llm_model: str
    llm_timeout_seconds: float
    llm_max_retries: int
    llm_max_tokens: int
    anthropic_api_key: str | None
    anthropic_base_url: str
    anthropic_version: str
    openai_api_key: str | None
    google_api_key: str | None
    ollama_base_url: str
    openrouter_api_key: str | None
    openrouter_base_url: str

    analysis_system_prompt: str | None
    prompt_max_chars: int
    analysis_language: Language
    analysis_concurrency: int

    llm_monitoring_webhook_url: str | None
    llm_monitoring_timeout_seconds: float

    @classmethod
    def from_env(cls, *, require_github_token: bool = True) -> "AppSettings":
        provider = (_get_optional_str("LLM_PROVIDER") or "anthropic").lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(f"Unsupported LLM_PROVIDER: {provider}")

        default_model = (
            DEFAULT_ANTHROPIC_MODEL if provider == "anthropic" else DEFAULT_LANGCHAIN_MODEL
        )

        settings = cls(
            log_level=(_get_optional_str("LOG_LEVEL") or "INFO").upper(),
            github_token=_get_required_str("GITHUB_TOKEN", required=require_github_token),
            github_api_url=_get_optional_str("GITHUB_API_URL") or "https://api.github.com",
            github_request_timeout_seconds=_get_float(
                "GITHUB_REQUEST_TIMEOUT_SECONDS", 10.0, min_value=0.001
            ),
            llm_provider=provider,
            llm_model=_get_optional_str("LLM_MODEL") or default_model,
            llm_timeout_seconds=_get_float("LLM_TIMEOUT_SECONDS", 300.0, min_value=0.001),
            llm_max_retries=_get_int("LLM_MAX_RETRIES", 0, min_value=0),
            llm_max_tokens=_get_int("LLM_MAX_TOKENS", 4096, min_value=1),
            anthropic_api_key=_get_optional_str("ANTHROPIC_API_KEY"),
            anthropic_base_url=_get_optional_str("ANTHROPIC_BASE_URL")
            or "https://api.anthropic.com",
            anthropic_version=_get_optional_str("ANTHROPIC_VERSION") or "2023-06-01",
            openai_api_key=_get_optional_str("OPENAI_API_KEY"),
            google_api_key=_get_optional_str("GOOGLE_API_KEY"),
            ollama_base_url=_get_optional_str("OLLAMA_BASE_URL")
            or "http://localhost:11434",
            openrouter_api_key=_get_optional_str("OPENROUTER_API_KEY"),
            openrouter_base_url=_get_optional_str("OPENROUTER_BASE_URL")
            or "https://openrouter.ai/api/v1",
            analysis_system_prompt=_get_optional_str("ANALYSIS_SYSTEM_PROMPT"),
            prompt_max_chars=_get_int("PROMPT_MAX_CHARS", DEFAULT_MAX_CHARS, min_value=1),
            analysis_language=_get_language("ANALYSIS_LANGUAGE", Language.JAPANESE),
            analysis_concurrency=_get_int("ANALYSIS_CONCURRENCY", 1, min_value=1),
            llm_monitoring_webhook_url=_get_optional_str("LLM_MONITORING_WEBHOOK_URL"),
            llm_monitoring_timeout_seconds=_get_float(
                "LLM_MONITORING_TIMEOUT_SECONDS", 3.0, min_value=0.001
            ),
        )

        if settings.llm_provider == "anthropic" and not settings.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is required when LLM_PROVIDER=anthropic")
        if settings.llm_provider == "openai" and not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")
        if settings.llm_provider == "gemini" and not settings.google_api_key:
            raise ConfigurationError("GOOGLE_API_KEY is required when LLM_PROVIDER=gemini")
        if settings.llm_provider == "openrouter" and not settings.openrouter_api_key:
            raise ConfigurationError(
                "OPENROUTER_API_KEY is required when LLM_PROVIDER=openrouter"
            )

        return settings
