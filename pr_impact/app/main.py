from __future__ import annotations

import logging

from pr_impact.app.config import AppSettings
from pr_impact.domains.analysis.service import PullRequestAnalysisService
from pr_impact.domains.prompt.templates import PromptBuilder
from pr_impact.infra.clients.factory import create_llm_client
from pr_impact.infra.clients.github import GitHubClient, GitHubClientConfig
from pr_impact.infra.monitoring.llm_webhook import LLMMonitoringWebhookClient


def _setup_logging(log_level_name: str) -> None:
    level = getattr(logging, log_level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
        logging.basicConfig(level=level)
        logging.getLogger(__name__).warning(
            "Invalid LOG_LEVEL '%s', defaulting to INFO",
            log_level_name,
        )
        return

    logging.basicConfig(level=level)


def create_analysis_service(settings: AppSettings) -> PullRequestAnalysisService:
    github_client = GitHubClient(
        GitHubClientConfig(
            access_token=settings.github_token,
            api_base_url=settings.github_api_url,
            timeout_seconds=settings.github_request_timeout_seconds,
        )
    )
    monitoring_client = LLMMonitoringWebhookClient(
        webhook_url=settings.llm_monitoring_webhook_url,
        timeout_seconds=settings.llm_monitoring_timeout_seconds,
    )

    return PullRequestAnalysisService(
        github_client=github_client,
        llm_client=create_llm_client(settings),
        monitoring_client=monitoring_client,
        prompt_builder=PromptBuilder(max_chars=settings.prompt_max_chars),
        language=settings.analysis_language,
        max_concurrency=settings.analysis_concurrency,
    )


def create_app() -> PullRequestAnalysisService:
    settings = AppSettings.from_env()
    _setup_logging(settings.log_level)
    return create_analysis_service(settings)
