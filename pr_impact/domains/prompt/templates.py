from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List

from pr_impact.domains.diff.models import FileDiff
from pr_impact.domains.prompt.chunker import DEFAULT_MAX_CHARS, render_file_diff, split_diffs


logger = logging.getLogger(__name__)

NO_DESCRIPTION_PLACEHOLDER = "(no description)"


class Language(str, Enum):
    JAPANESE = "ja"
    ENGLISH = "en"

    @classmethod
    def parse(cls, raw: str) -> "Language":
        value = raw.strip().lower()
        if value in ("ja", "japanese", "jp"):
            return cls.JAPANESE
        if value in ("en", "english"):
            return cls.ENGLISH
        raise ValueError(f"Unsupported language: {raw}")


@dataclass(frozen=True)
class PrMetadata:
    title: str
    body: str = ""


_LANGUAGE_INSTRUCTIONS = {
    Language.JAPANESE: "回答は日本語で記述してください。",
    Language.ENGLISH: "Please respond in English.",
}

_IMPACT_SECTION_TEMPLATE = {
    Language.JAPANESE: """### 要約
Provide a brief summary of what these changes do.

### 影響モジュール
List modules/components affected by these changes. Use format:
- module_name: description of impact

### 破壊的変更
List any breaking changes. Use format:
- `file/path.py` description of breaking change (重大 if critical)
If none, write: - なし

### リスク
List risk factors and concerns. Use format:
- description of risk
If none, write: - なし

### リスクレベル: [Low/Medium/High]
Provide the overall risk level.""",
    Language.ENGLISH: """### Summary
Provide a brief summary of what these changes do.

### Affected Modules
List modules/components affected by these changes. Use format:
- module_name: description of impact

### Breaking Changes
List any breaking changes. Use format:
- `file/path.py` description of breaking change (mark as critical if it certainly breaks callers)
If none, write: - none

### Risk Warnings
List risk factors and concerns. Use format:
- description of risk
If none, write: - none

### Risk Level: [Low/Medium/High]
Provide the overall risk level.""",
}

_IMPACT_FACTORS = """Consider these factors:
- Public API changes (function signatures, class fields, interface implementations)
- Database schema changes
- Configuration format changes
- Dependency version changes
- Security-sensitive code modifications
- Error handling changes that could affect callers
- Behavioral changes in existing functions"""


def _pr_information(metadata: PrMetadata) -> str:
    body = metadata.body if metadata.body.strip() else NO_DESCRIPTION_PLACEHOLDER
    return f"## PR Information\n- Title: {metadata.title}\n- Description: {body}"


def _chunk_note(chunk_index: int, total_chunks: int, verb: str) -> str:
    if total_chunks <= 1:
        return ""
    return (
        f"\n\nNote: This is chunk {chunk_index} of {total_chunks}. "
        f"{verb} only this chunk's changes."
    )


def summary_template(
    metadata: PrMetadata,
    diff_chunk: str,
    language: Language,
    chunk_index: int,
    total_chunks: int,
) -> str:
    return f"""You are a code reviewer. Summarize the following pull request changes.

{_LANGUAGE_INSTRUCTIONS[language]}

{_pr_information(metadata)}

## Diff
```
{diff_chunk}
```{_chunk_note(chunk_index, total_chunks, "Summarize")}

## Instructions
- Describe what this PR changes at a high level
- Explain why the change was made (reason / purpose) if it can be inferred
- List the key modifications by file or component
- Note any potential risks or concerns
- Keep the summary concise and actionable"""


def consistency_template(
    metadata: PrMetadata,
    diff_chunk: str,
    language: Language,
    chunk_index: int,
    total_chunks: int,
) -> str:
    return f"""You are a code reviewer. Check whether the PR title and description accurately reflect the actual code changes.

{_LANGUAGE_INSTRUCTIONS[language]}

{_pr_information(metadata)}

## Diff
```
{diff_chunk}
```{_chunk_note(chunk_index, total_chunks, "Analyze")}

## Instructions
- Compare the PR title/description with the actual changes
- Identify any discrepancies between what the PR claims to do and what it actually does
- Flag any undocumented changes (changes not mentioned in the title or description)
- Rate the consistency: High, Medium, or Low
- Provide specific examples of any inconsistencies found"""


def impact_analysis_template(
    metadata: PrMetadata,
    diff_chunk: str,
    language: Language,
    chunk_index: int,
    total_chunks: int,
) -> str:
    return f"""You are an expert code reviewer analyzing the impact and risk of code changes.

{_LANGUAGE_INSTRUCTIONS[language]}

{_pr_information(metadata)}

## Diff
```
{diff_chunk}
```{_chunk_note(chunk_index, total_chunks, "Analyze")}

## Instructions

Analyze the changes and respond with the following sections:

{_IMPACT_SECTION_TEMPLATE[language]}

{_IMPACT_FACTORS}"""


def file_summary_template(diff: FileDiff, diff_text: str, language: Language) -> str:
    return f"""You are a code reviewer. Summarize the changes to the following file.

{_LANGUAGE_INSTRUCTIONS[language]}

## File: {diff.display_path}

## Diff
```
{diff_text}
```

## Instructions
- Describe what changed in this file
- Note any potential issues or improvements
- Keep the summary to 2-3 sentences"""


ChunkTemplate = Callable[[PrMetadata, str, Language, int, int], str]


class PromptBuilder:
    """Builds LLM prompts from file diffs, splitting large diffs into several chunks."""

    def __init__(self, *, max_chars: int = DEFAULT_MAX_CHARS) -> None:
        if max_chars <= 0:
            raise ValueError("max_chars must be positive")
        self._max_chars = max_chars

    def _build_chunked(
        self,
        template: ChunkTemplate,
        diffs: List[FileDiff],
        metadata: PrMetadata,
        language: Language,
    ) -> List[str]:
        chunks = split_diffs(diffs, self._max_chars)
        total = len(chunks)
        if total > 1:
            logger.info(
                "Split diff into %s chunks: files=%s, max_chars=%s",
                total,
                len(diffs),
                self._max_chars,
            )
        return [
            template(metadata, chunk, language, index, total)
            for index, chunk in enumerate(chunks, start=1)
        ]

    def build_summary_prompt(
        self, diffs: List[FileDiff], metadata: PrMetadata, language: Language
    ) -> List[str]:
        return self._build_chunked(summary_template, diffs, metadata, language)

    def build_consistency_prompt(
        self, diffs: List[FileDiff], metadata: PrMetadata, language: Language
    ) -> List[str]:
        return self._build_chunked(consistency_template, diffs, metadata, language)

    def build_impact_analysis_prompt(
        self, diffs: List[FileDiff], metadata: PrMetadata, language: Language
    ) -> List[str]:
        return self._build_chunked(impact_analysis_template, diffs, metadata, language)

    def build_file_summary_prompt(self, diff: FileDiff, language: Language) -> str:
        return file_summary_template(diff, render_file_diff(diff), language)
