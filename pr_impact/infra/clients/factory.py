from __future__ import annotations

from typing import Union

from pr_impact.app.config import AppSettings
from pr_impact.infra.clients.anthropic import AnthropicClientConfig, AnthropicMessagesClient
from pr_impact.infra.clients.llm import LLMClient, LLMClientConfig


TextLLMClient = Union[AnthropicMessagesClient, LLMClient]


def create_llm_client(settings: AppSettings) -> TextLLMClient:
    if settings.llm_provider == "anthropic":
        return AnthropicMessagesClient(
            AnthropicClientConfig(
                api_key=settings.anthropic_api_key or "",
                model=settings.llm_model,
                base_url=settings.anthropic_base_url,
                api_version=settings.anthropic_version,
                max_tokens=settings.llm_max_tokens,
                timeout_seconds=settings.llm_timeout_seconds,
                system_prompt=settings.analysis_system_prompt,
            )
        )

    return LLMClient(
        LLMClientConfig(
            provider=settings.llm_provider,
            model=settings.llm_model,
            timeout_seconds=settings.llm_timeout_seconds,
            max_retries=settings.llm_max_retries,
            openai_api_key=settings.openai_api_key,
            google_api_key=settings.google_api_key,
            ollama_base_url=settings.ollama_base_url,
            openrouter_api_key=settings.openrouter_api_key,
            openrouter_base_url=settings.openrouter_base_url,
            system_prompt=settings.analysis_system_prompt,
        )
    )
