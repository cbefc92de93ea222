from __future__ import annotations

import logging
from typing import List

from pr_impact.domains.analysis.chain import (
    ChainOutcome,
    generate_chunk_results,
    join_responses,
)
from pr_impact.domains.diff.models import FileDiff
from pr_impact.domains.prompt.templates import Language, PromptBuilder, PrMetadata
from pr_impact.domains.summary.models import ConsistencyResult, FileSummary, PrSummary
from pr_impact.domains.summary.parser import extract_reason, parse_consistency_response
from pr_impact.infra.clients.factory import TextLLMClient


logger = logging.getLogger(__name__)


class SummaryService:
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

    def summarize(self, diffs: List[FileDiff], metadata: PrMetadata) -> ChainOutcome[PrSummary]:
        prompts = self._prompt_builder.build_summary_prompt(diffs, metadata, self._language)
        overall_calls = generate_chunk_results(
            self._llm_client,
            prompts,
            max_concurrency=self._max_concurrency,
        )
        overall_summary = join_responses(overall_calls)

        file_prompts = [
            self._prompt_builder.build_file_summary_prompt(diff, self._language) for diff in diffs
        ]
        file_calls = generate_chunk_results(
            self._llm_client,
            file_prompts,
            max_concurrency=self._max_concurrency,
        )
        file_summaries = [
            FileSummary(path=diff.display_path, summary=call.get("content", ""))
            for diff, call in zip(diffs, file_calls)
        ]

        logger.info(
            "Generated PR summary: chunks=%s, files=%s",
            len(prompts),
            len(file_summaries),
        )
        summary = PrSummary(
            overall_summary=overall_summary,
            reason=extract_reason(overall_summary),
            file_summaries=file_summaries,
        )
        return ChainOutcome(result=summary, calls=overall_calls + file_calls)

    def check_consistency(
        self, diffs: List[FileDiff], metadata: PrMetadata
    ) -> ChainOutcome[ConsistencyResult]:
        prompts = self._prompt_builder.build_consistency_prompt(diffs, metadata, self._language)
        calls = generate_chunk_results(
            self._llm_client,
            prompts,
            max_concurrency=self._max_concurrency,
        )
        is_consistent, warnings = parse_consistency_response(join_responses(calls))

        logger.info(
            "Checked PR consistency: chunks=%s, consistent=%s, warnings=%s",
            len(prompts),
            is_consistent,
            len(warnings),
        )
        return ChainOutcome(
            result=ConsistencyResult(is_consistent=is_consistent, warnings=warnings),
            calls=calls,
        )
