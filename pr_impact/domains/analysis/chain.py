from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

from langchain_core.runnables import RunnableLambda, RunnableSequence

from pr_impact.domains.analysis.extractor import extract_analysis
from pr_impact.domains.analysis.models import AnalysisResult
from pr_impact.domains.diff.models import FileDiff
from pr_impact.domains.prompt.templates import Language, PromptBuilder, PrMetadata
from pr_impact.infra.clients.factory import TextLLMClient
from pr_impact.shared.types import LLMCallResult, LLMCallStats, summarize_call_results


logger = logging.getLogger(__name__)

T = TypeVar("T")

CHUNK_RESPONSE_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class ChainOutcome(Generic[T]):
    """A domain result together with the LLM calls that produced it."""

    result: T
    calls: List[LLMCallResult] = field(default_factory=list)

    @property
    def stats(self) -> LLMCallStats:
        return summarize_call_results(self.calls)


@dataclass(frozen=True)
class AnalysisInput:
    diffs: List[FileDiff]
    metadata: PrMetadata


def generate_chunk_results(
    llm_client: TextLLMClient,
    prompts: List[str],
    *,
    max_concurrency: int = 1,
) -> List[LLMCallResult]:
    """Run one LLM call per prompt; results keep prompt order, the first failure propagates."""
    if max_concurrency <= 1 or len(prompts) <= 1:
        return [llm_client.generate_text_with_stats(prompt) for prompt in prompts]

    workers = min(max_concurrency, len(prompts))
    logger.info("Running %s LLM calls with %s workers", len(prompts), workers)
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="llm-chunk")
    try:
        results = list(executor.map(llm_client.generate_text_with_stats, prompts))
    except Exception:
        # Queued chunk requests are dropped; calls already in flight finish in the background.
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown()
    return results


def join_responses(results: List[LLMCallResult]) -> str:
    return CHUNK_RESPONSE_SEPARATOR.join(result.get("content", "") for result in results)


class ImpactAnalysisChain:
    """diffs -> chunk prompts -> LLM calls -> one extraction over the joined answers."""

    def __init__(
        self,
        *,
        llm_client: TextLLMClient,
        prompt_builder: PromptBuilder,
        language: Language,
        max_concurrency: int = 1,
    ) -> None:
        self._llm_client = llm_client
        self._prompt_builder = prompt_builder
        self._language = language
        self._max_concurrency = max_concurrency

        prompt_step: RunnableLambda[AnalysisInput, List[str]] = RunnableLambda(
            self._build_prompts,
        )
        llm_step: RunnableLambda[List[str], List[LLMCallResult]] = RunnableLambda(
            self._generate,
        )
        extract_step: RunnableLambda[List[LLMCallResult], ChainOutcome[AnalysisResult]] = (
            RunnableLambda(self._extract)
        )
        self._chain: RunnableSequence[AnalysisInput, ChainOutcome[AnalysisResult]] = (
            prompt_step | llm_step | extract_step
        )

    def _build_prompts(self, analysis_input: AnalysisInput) -> List[str]:
        return self._prompt_builder.build_impact_analysis_prompt(
            analysis_input.diffs,
            analysis_input.metadata,
            self._language,
        )

    def _generate(self, prompts: List[str]) -> List[LLMCallResult]:
        return generate_chunk_results(
            self._llm_client,
            prompts,
            max_concurrency=self._max_concurrency,
        )

    def _extract(self, results: List[LLMCallResult]) -> ChainOutcome[AnalysisResult]:
        analysis = extract_analysis(join_responses(results), self._language)
        return ChainOutcome(result=analysis, calls=results)

    def invoke(self, diffs: List[FileDiff], metadata: PrMetadata) -> ChainOutcome[AnalysisResult]:
        return self._chain.invoke(AnalysisInput(diffs=list(diffs), metadata=metadata))
