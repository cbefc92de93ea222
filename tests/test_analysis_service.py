import threading
import time

import pytest

from pr_impact.domains.analysis.chain import ImpactAnalysisChain, generate_chunk_results
from pr_impact.domains.analysis.models import RiskLevel
from pr_impact.domains.analysis.service import PullRequestAnalysisService
from pr_impact.domains.analysis.tasks import (
    ConsistencyCheckTask,
    ImpactAnalysisTask,
    SummaryTask,
)
from pr_impact.domains.diff.models import ADDITION, DiffHunk, DiffLine, FileDiff
from pr_impact.domains.prompt.templates import Language, PromptBuilder, PrMetadata
from pr_impact.shared.errors import GitHubAPIError, StreamEventError


_ANALYSIS_TEXT = """### 要約
Cache layer added.

### 影響モジュール
- cache: new module

### リスクレベル: Medium
"""


class _FakeGitHubClient:
    def __init__(self, *, should_raise: bool = False) -> None:
        self.should_raise = should_raise

    def get_pull_request(self, *, owner: str, repo: str, pr_number: int):
        if self.should_raise:
            raise GitHubAPIError("github-error")
        return {"number": pr_number, "title": "Add cache", "body": None}

    def get_pull_request_files(self, *, owner: str, repo: str, pr_number: int):
        return [
            {
                "filename": "cache.py",
                "status": "added",
                "patch": "@@ -0,0 +1,1 @@\n+CACHE = {}",
            }
        ]


class _FakeLLMClient:
    def __init__(self, responses=None, *, error: Exception | None = None) -> None:
        self._responses = list(responses or [_ANALYSIS_TEXT])
        self._error = error
        self.prompts = []
        self.provider_name = "anthropic"
        self.model_name = "claude-sonnet-4-5-20250929"

    def generate_text_with_stats(self, prompt: str):
        self.prompts.append(prompt)
        if self._error is not None:
            raise self._error
        return {
            "content": self._responses.pop(0),
            "provider": self.provider_name,
            "model": self.model_name,
            "elapsed_seconds": 1.0,
        }


class _FakeMonitoring:
    def __init__(self) -> None:
        self.success_payloads = []
        self.error_calls = 0

    def send_success(self, **kwargs):
        self.success_payloads.append(kwargs)

    def send_error(self, **kwargs):
        self.error_calls += 1


def _diff(path: str, lines: int = 5) -> FileDiff:
    return FileDiff(
        old_path=path,
        new_path=path,
        hunks=[
            DiffHunk(
                header=f"@@ -1,0 +1,{lines} @@",
                lines=[DiffLine(ADDITION, f"value_{i} = {i}") for i in range(lines)],
            )
        ],
    )


def _service(github, llm, monitoring) -> PullRequestAnalysisService:
    return PullRequestAnalysisService(
        github_client=github,
        llm_client=llm,
        monitoring_client=monitoring,
        prompt_builder=PromptBuilder(),
        language=Language.JAPANESE,
    )


def test_chain_joins_chunk_answers_before_extracting_once() -> None:
    llm = _FakeLLMClient(
        [
            "### 影響モジュール\n- a: first chunk",
            "### 影響モジュール\n- b: second chunk\n\n### リスクレベル: High",
        ]
    )
    chain = ImpactAnalysisChain(
        llm_client=llm,
        prompt_builder=PromptBuilder(max_chars=120),
        language=Language.JAPANESE,
    )

    outcome = chain.invoke([_diff("a.py"), _diff("b.py")], PrMetadata(title="t"))

    assert len(llm.prompts) == 2
    assert "Note: This is chunk 1 of 2." in llm.prompts[0]
    assert [m.name for m in outcome.result.affected_modules] == ["a", "b"]
    assert outcome.result.llm_risk_level is RiskLevel.HIGH
    assert outcome.stats["calls"] == 2


def test_chunk_failure_aborts_the_analysis() -> None:
    llm = _FakeLLMClient(error=StreamEventError("overloaded_error", "Overloaded"))
    chain = ImpactAnalysisChain(
        llm_client=llm,
        prompt_builder=PromptBuilder(),
        language=Language.JAPANESE,
    )

    with pytest.raises(StreamEventError):
        chain.invoke([_diff("a.py")], PrMetadata(title="t"))


def test_concurrent_chunk_calls_keep_prompt_order() -> None:
    class _SlowFirstClient:
        def generate_text_with_stats(self, prompt: str):
            if prompt == "p0":
                time.sleep(0.05)
            return {"content": prompt, "provider": "x", "model": "y", "elapsed_seconds": 0.0}

    client = _SlowFirstClient()

    results = generate_chunk_results(client, ["p0", "p1", "p2"], max_concurrency=3)

    assert [r["content"] for r in results] == ["p0", "p1", "p2"]


def test_concurrent_chunk_failure_drops_queued_calls() -> None:
    class _FailFirstClient:
        def __init__(self) -> None:
            self.started = []
            self._lock = threading.Lock()

        def generate_text_with_stats(self, prompt: str):
            with self._lock:
                self.started.append(prompt)
            if prompt == "p0":
                raise StreamEventError("overloaded_error", "Overloaded")
            time.sleep(0.8)
            return {"content": prompt, "provider": "x", "model": "y", "elapsed_seconds": 0.0}

    client = _FailFirstClient()
    prompts = [f"p{i}" for i in range(8)]

    started_at = time.perf_counter()
    with pytest.raises(StreamEventError):
        generate_chunk_results(client, prompts, max_concurrency=2)
    elapsed = time.perf_counter() - started_at

    time.sleep(0.8)
    assert elapsed < 0.3
    assert len(client.started) <= 3


def test_run_impact_analysis_reports_success() -> None:
    llm = _FakeLLMClient()
    monitoring = _FakeMonitoring()

    outcome = _service(_FakeGitHubClient(), llm, monitoring).run_task(
        ImpactAnalysisTask(owner="octo", repo="demo", pr_number=7)
    )

    assert outcome.result.summary == "Cache layer added."
    assert outcome.result.llm_risk_level is RiskLevel.MEDIUM
    assert "- Title: Add cache" in llm.prompts[0]
    assert "(no description)" in llm.prompts[0]
    assert "+++ cache.py" in llm.prompts[0]
    assert len(monitoring.success_payloads) == 1
    payload = monitoring.success_payloads[0]
    assert payload["analysis_type"] == "impact_analysis"
    assert payload["github_context"] == {"owner": "octo", "repo": "demo", "pr_number": 7}
    assert payload["result"]["llm_risk_level"] == "Medium"


def test_static_risk_level_is_merged() -> None:
    outcome = _service(_FakeGitHubClient(), _FakeLLMClient(), _FakeMonitoring()).run_task(
        ImpactAnalysisTask(owner="o", repo="r", pr_number=1, static_risk_level=RiskLevel.HIGH)
    )

    assert outcome.result.static_risk_level is RiskLevel.HIGH
    assert outcome.result.llm_analysis.llm_risk_level is RiskLevel.MEDIUM
    assert outcome.result.combined_risk_level is RiskLevel.HIGH


def test_summary_and_consistency_tasks_are_dispatched() -> None:
    llm = _FakeLLMClient(["overall", "file", "Rating: High"])
    service = _service(_FakeGitHubClient(), llm, _FakeMonitoring())

    summary = service.run_task(SummaryTask(owner="o", repo="r", pr_number=1))
    consistency = service.run_task(ConsistencyCheckTask(owner="o", repo="r", pr_number=1))

    assert summary.result.file_summaries[0].path == "cache.py"
    assert consistency.result.is_consistent is True


def test_failures_are_reported_then_reraised() -> None:
    monitoring = _FakeMonitoring()
    service = _service(_FakeGitHubClient(should_raise=True), _FakeLLMClient(), monitoring)

    with pytest.raises(GitHubAPIError):
        service.run_task(ImpactAnalysisTask(owner="o", repo="r", pr_number=1))

    assert monitoring.error_calls == 1
    assert monitoring.success_payloads == []


def test_unknown_task_type_raises() -> None:
    service = _service(_FakeGitHubClient(), _FakeLLMClient(), _FakeMonitoring())

    with pytest.raises(TypeError):
        service.run_task(object())  # type: ignore[arg-type]
