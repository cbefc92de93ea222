from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Tuple

from pr_impact.domains.analysis.chain import ChainOutcome, ImpactAnalysisChain
from pr_impact.domains.analysis.models import AnalysisResult, HybridAnalysisResult, merge_analysis
from pr_impact.domains.analysis.tasks import ConsistencyCheckTask, ImpactAnalysisTask, SummaryTask
from pr_impact.domains.diff.models import FileDiff
from pr_impact.domains.diff.patch import file_diffs_from_github
from pr_impact.domains.prompt.templates import Language, PromptBuilder, PrMetadata
from pr_impact.domains.summary.models import ConsistencyResult, PrSummary
from pr_impact.domains.summary.service import SummaryService
from pr_impact.infra.clients.factory import TextLLMClient
from pr_impact.infra.clients.github import GitHubClient
from pr_impact.infra.monitoring.llm_webhook import LLMMonitoringWebhookClient


logger = logging.getLogger(__name__)

AnalysisTask = ImpactAnalysisTask | SummaryTask | ConsistencyCheckTask
PullRequestRunner = Callable[[PrMetadata, List[FileDiff]], ChainOutcome[Any]]


class PullRequestAnalysisService:
    """Fetches a pull request from GitHub and runs one LLM analysis over its diff."""

    def __init__(
        self,
        *,
        github_client: GitHubClient,
        llm_client: TextLLMClient,
        monitoring_client: LLMMonitoringWebhookClient,
        prompt_builder: PromptBuilder,
        language: Language,
        max_concurrency: int = 1,
    ) -> None:
        self._github_client = github_client
        self._llm_client = llm_client
        self._monitoring_client = monitoring_client
        self._impact_chain = ImpactAnalysisChain(
            llm_client=llm_client,
            prompt_builder=prompt_builder,
            language=language,
            max_concurrency=max_concurrency,
        )
        self._summary_service = SummaryService(
            llm_client=llm_client,
            prompt_builder=prompt_builder,
            language=language,
            max_concurrency=max_concurrency,
        )

    def run_task(self, task: AnalysisTask) -> ChainOutcome[Any]:
        if isinstance(task, ImpactAnalysisTask):
            return self.run_impact_analysis(task)
        if isinstance(task, SummaryTask):
            return self.run_summary(task)
        if isinstance(task, ConsistencyCheckTask):
            return self.run_consistency_check(task)
        raise TypeError(f"Unknown analysis task type: {type(task)}")

    def run_impact_analysis(
        self, task: ImpactAnalysisTask
    ) -> ChainOutcome[AnalysisResult | HybridAnalysisResult]:
        def run(metadata: PrMetadata, diffs: List[FileDiff]) -> ChainOutcome[Any]:
            outcome = self._impact_chain.invoke(diffs, metadata)
            if task.static_risk_level is None:
                return outcome
            return ChainOutcome(
                result=merge_analysis(task.static_risk_level, outcome.result),
                calls=outcome.calls,
            )

        return self._run_monitored("impact_analysis", task, run)

    def run_summary(self, task: SummaryTask) -> ChainOutcome[PrSummary]:
        return self._run_monitored(
            "summary",
            task,
            lambda metadata, diffs: self._summary_service.summarize(diffs, metadata),
        )

    def run_consistency_check(self, task: ConsistencyCheckTask) -> ChainOutcome[ConsistencyResult]:
        return self._run_monitored(
            "consistency_check",
            task,
            lambda metadata, diffs: self._summary_service.check_consistency(diffs, metadata),
        )

    def _fetch_pull_request(self, task: AnalysisTask) -> Tuple[PrMetadata, List[FileDiff]]:
        pull_request = self._github_client.get_pull_request(
            owner=task.owner,
            repo=task.repo,
            pr_number=task.pr_number,
        )
        files = self._github_client.get_pull_request_files(
            owner=task.owner,
            repo=task.repo,
            pr_number=task.pr_number,
        )

        metadata = PrMetadata(
            title=pull_request.get("title") or "",
            body=pull_request.get("body") or "",
        )
        diffs = file_diffs_from_github(files)
        if not diffs:
            logger.warning(
                "No file changes found: repo=%s/%s, pr=%s",
                task.owner,
                task.repo,
                task.pr_number,
            )
        return metadata, diffs

    def _run_monitored(
        self,
        analysis_type: str,
        task: AnalysisTask,
        run: PullRequestRunner,
    ) -> ChainOutcome[Any]:
        logger.info(
            "Running %s: repo=%s/%s, pr=%s",
            analysis_type,
            task.owner,
            task.repo,
            task.pr_number,
        )
        github_context: Dict[str, Any] = {
            "owner": task.owner,
            "repo": task.repo,
            "pr_number": task.pr_number,
        }

        try:
            metadata, diffs = self._fetch_pull_request(task)
            outcome = run(metadata, diffs)
        except Exception as error:  # noqa: BLE001 - reported, then re-raised
            logger.exception(
                "Failed to run %s: repo=%s/%s, pr=%s",
                analysis_type,
                task.owner,
                task.repo,
                task.pr_number,
            )
            self._monitoring_client.send_error(
                analysis_type=analysis_type,
                github_context=github_context,
                provider=self._llm_client.provider_name,
                model=self._llm_client.model_name,
                error=error,
            )
            raise

        self._monitoring_client.send_success(
            analysis_type=analysis_type,
            github_context=github_context,
            stats=outcome.stats,
            result=outcome.result.to_dict(),
        )
        return outcome
