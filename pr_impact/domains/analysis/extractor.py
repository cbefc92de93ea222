"""Heuristic extraction of structured findings from a free-form LLM answer.

The model is asked to answer with named sections (see the impact analysis prompt),
but nothing guarantees it does. Every function here is total: unrecognized input
degrades to empty lists, ``RiskLevel.LOW`` and a best-effort summary.

Section headers are matched on header lines only (``# ...`` or a non-list label line
ending in a colon) so a list item that mentions a keyword never opens a section.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Tuple

from pr_impact.domains.analysis.models import (
    AffectedModule,
    AnalysisResult,
    BreakingChange,
    BreakingChangeSeverity,
    RiskLevel,
)
from pr_impact.domains.prompt.templates import Language


_NUMBERED_ITEM_RE = re.compile(r"^\d+\.")
_BULLET_CHARS = "-•* "
_NAME_SEPARATORS = (":", "：", " - ", " — ")


@dataclass(frozen=True)
class SectionKeywords:
    affected_modules: Tuple[str, ...]
    breaking_changes: Tuple[str, ...]
    risk_warnings: Tuple[str, ...]
    summary: Tuple[str, ...]
    risk_level_labels: Tuple[str, ...]
    high: Tuple[str, ...]
    medium: Tuple[str, ...]
    low: Tuple[str, ...]
    high_risk_phrases: Tuple[str, ...]
    medium_risk_phrases: Tuple[str, ...]
    critical: Tuple[str, ...]
    none_markers: Tuple[str, ...]

    def merge(self, other: "SectionKeywords") -> "SectionKeywords":
        return SectionKeywords(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in self.__dataclass_fields__
            }
        )


ENGLISH_KEYWORDS = SectionKeywords(
    affected_modules=("affected_modules", "affected module"),
    breaking_changes=("breaking_changes", "breaking change"),
    risk_warnings=("risk_warnings", "risk warning", "risks"),
    summary=("summary",),
    risk_level_labels=("risk_level", "risk level"),
    high=("high",),
    medium=("medium",),
    low=("low",),
    high_risk_phrases=("high risk",),
    medium_risk_phrases=("medium risk",),
    critical=("critical",),
    none_markers=(),
)

JAPANESE_KEYWORDS = SectionKeywords(
    affected_modules=("影響モジュール",),
    breaking_changes=("破壊的変更",),
    risk_warnings=("リスク", "注意"),
    summary=("要約",),
    risk_level_labels=("リスクレベル",),
    high=("高",),
    medium=("中",),
    low=("低",),
    high_risk_phrases=("高リスク",),
    medium_risk_phrases=("中リスク",),
    critical=("重大",),
    none_markers=("なし",),
)


def keywords_for(language: Language) -> SectionKeywords:
    """English keywords are always recognized; Japanese ones are added for Japanese output."""
    if language is Language.JAPANESE:
        return ENGLISH_KEYWORDS.merge(JAPANESE_KEYWORDS)
    return ENGLISH_KEYWORDS


def _lines(text: str) -> List[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _contains_any(text: str, keywords: Tuple[str, ...]) -> bool:
    return any(keyword.lower() in text for keyword in keywords)


def is_list_item(line: str) -> bool:
    return line.startswith(("-", "•", "*")) or bool(_NUMBERED_ITEM_RE.match(line))


def is_section_header(line: str) -> bool:
    return line.startswith("#") or line.endswith((":", "："))


def is_specific_section_header(line: str, keywords: Tuple[str, ...]) -> bool:
    trimmed = line.strip()

    if trimmed.startswith("#"):
        header_text = trimmed.lstrip("#").strip().lower()
        return _contains_any(header_text, keywords)

    if not is_list_item(trimmed) and trimmed.endswith((":", "：")):
        return _contains_any(trimmed.lower(), keywords)

    return False


def strip_list_prefix(line: str) -> str:
    stripped = line.lstrip(_BULLET_CHARS).strip()
    match = _NUMBERED_ITEM_RE.match(stripped)
    if match:
        return stripped[match.end() :].strip()
    return stripped


def split_name_description(text: str) -> Tuple[str, str] | None:
    for separator in _NAME_SEPARATORS:
        if separator not in text:
            continue
        name, description = text.split(separator, 1)
        name = name.strip()
        description = description.strip()
        if name and description:
            return name, description
    return None


def extract_file_path(text: str) -> str:
    start = text.find("`")
    if start < 0:
        return ""
    end = text.find("`", start + 1)
    if end < 0:
        return ""
    candidate = text[start + 1 : end]
    if "/" in candidate or "." in candidate:
        return candidate
    return ""


def _section_items(
    text: str,
    is_header: Callable[[str], bool],
) -> List[str]:
    items: List[str] = []
    in_section = False

    for line in _lines(text):
        trimmed = line.strip()

        if is_header(trimmed):
            in_section = True
            continue

        if not in_section:
            continue

        if is_section_header(trimmed):
            break

        if is_list_item(trimmed):
            items.append(strip_list_prefix(trimmed))

    return items


def _is_none_item(text: str, keywords: SectionKeywords) -> bool:
    lowered = text.lower()
    return lowered == "none" or _contains_any(lowered, keywords.none_markers)


def extract_affected_modules(text: str, keywords: SectionKeywords = ENGLISH_KEYWORDS) -> List[AffectedModule]:
    modules: List[AffectedModule] = []
    for item in _section_items(
        text, lambda line: is_specific_section_header(line, keywords.affected_modules)
    ):
        if not item:
            continue
        parsed = split_name_description(item)
        if parsed is not None:
            modules.append(AffectedModule(name=parsed[0], description=parsed[1]))
        else:
            modules.append(AffectedModule(name=item, description=""))
    return modules


def extract_breaking_changes(text: str, keywords: SectionKeywords = ENGLISH_KEYWORDS) -> List[BreakingChange]:
    changes: List[BreakingChange] = []
    for item in _section_items(
        text, lambda line: is_specific_section_header(line, keywords.breaking_changes)
    ):
        if not item or _is_none_item(item, keywords):
            continue

        if _contains_any(item.lower(), keywords.critical):
            severity = BreakingChangeSeverity.CRITICAL
        else:
            severity = BreakingChangeSeverity.WARNING

        changes.append(
            BreakingChange(
                file_path=extract_file_path(item),
                description=item,
                severity=severity,
            )
        )
    return changes


def is_risk_section_header(line: str, keywords: SectionKeywords = ENGLISH_KEYWORDS) -> bool:
    """Risk warning headers, excluding the risk level line that shares the same words."""
    if not is_specific_section_header(line, keywords.risk_warnings):
        return False
    header_text = line.strip().lstrip("#").strip().lower()
    return not _contains_any(header_text, keywords.risk_level_labels)


def extract_risk_warnings(text: str, keywords: SectionKeywords = ENGLISH_KEYWORDS) -> List[str]:
    return [
        item
        for item in _section_items(text, lambda line: is_risk_section_header(line, keywords))
        if item and not _is_none_item(item, keywords)
    ]


def extract_risk_level(text: str, keywords: SectionKeywords = ENGLISH_KEYWORDS) -> RiskLevel:
    lowered = text.lower()

    for line in _lines(lowered):
        trimmed = line.strip()
        if not _contains_any(trimmed, keywords.risk_level_labels):
            continue
        # permissive substring match, "high" anywhere in the label line counts
        if _contains_any(trimmed, keywords.high):
            return RiskLevel.HIGH
        if _contains_any(trimmed, keywords.medium):
            return RiskLevel.MEDIUM
        if _contains_any(trimmed, keywords.low):
            return RiskLevel.LOW

    if _contains_any(lowered, keywords.high_risk_phrases):
        return RiskLevel.HIGH
    if _contains_any(lowered, keywords.medium_risk_phrases):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def extract_summary(text: str, keywords: SectionKeywords = ENGLISH_KEYWORDS) -> str:
    summary_lines: List[str] = []
    in_section = False

    for line in _lines(text):
        trimmed = line.strip()

        if is_specific_section_header(trimmed, keywords.summary):
            in_section = True
            continue

        if not in_section:
            continue

        if is_section_header(trimmed):
            break

        if trimmed:
            summary_lines.append(trimmed)

    if summary_lines:
        return "\n".join(summary_lines)

    first_paragraph: List[str] = []
    for line in _lines(text):
        if not line.strip():
            break
        if not is_section_header(line.strip()):
            first_paragraph.append(line)
    if first_paragraph:
        return "\n".join(first_paragraph)

    lines = _lines(text)
    return lines[0] if lines else ""


def extract_analysis(text: str, language: Language = Language.JAPANESE) -> AnalysisResult:
    keywords = keywords_for(language)
    return AnalysisResult(
        affected_modules=extract_affected_modules(text, keywords),
        breaking_changes=extract_breaking_changes(text, keywords),
        risk_warnings=extract_risk_warnings(text, keywords),
        llm_risk_level=extract_risk_level(text, keywords),
        summary=extract_summary(text, keywords),
    )
