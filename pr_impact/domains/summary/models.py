from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class FileSummary:
    path: str
    summary: str


@dataclass(frozen=True)
class PrSummary:
    """What changed, the inferred reason and one summary per changed file."""

    overall_summary: str
    reason: str
    file_summaries: List[FileSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_summary": self.overall_summary,
            "reason": self.reason,
            "file_summaries": [
                {"path": s.path, "summary": s.summary} for s in self.file_summaries
            ],
        }


@dataclass(frozen=True)
class ConsistencyResult:
    is_consistent: bool
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"is_consistent": self.is_consistent, "warnings": list(self.warnings)}
