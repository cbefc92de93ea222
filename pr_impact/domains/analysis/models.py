from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


def higher_risk_level(a: RiskLevel, b: RiskLevel) -> RiskLevel:
    return a if a.rank >= b.rank else b


class BreakingChangeSeverity(str, Enum):
    WARNING = "Warning"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class AffectedModule:
    name: str
    description: str = ""


@dataclass(frozen=True)
class BreakingChange:
    file_path: str
    description: str
    severity: BreakingChangeSeverity = BreakingChangeSeverity.WARNING


@dataclass(frozen=True)
class AnalysisResult:
    affected_modules: List[AffectedModule] = field(default_factory=list)
    breaking_changes: List[BreakingChange] = field(default_factory=list)
    risk_warnings: List[str] = field(default_factory=list)
    llm_risk_level: RiskLevel = RiskLevel.LOW
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "affected_modules": [
                {"name": m.name, "description": m.description} for m in self.affected_modules
            ],
            "breaking_changes": [
                {
                    "file_path": c.file_path,
                    "description": c.description,
                    "severity": c.severity.value,
                }
                for c in self.breaking_changes
            ],
            "risk_warnings": list(self.risk_warnings),
            "llm_risk_level": self.llm_risk_level.value,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class HybridAnalysisResult:
    """LLM findings merged with a risk level computed by the static scorer."""

    static_risk_level: RiskLevel
    llm_analysis: AnalysisResult
    combined_risk_level: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "static_risk_level": self.static_risk_level.value,
            "llm_analysis": self.llm_analysis.to_dict(),
            "combined_risk_level": self.combined_risk_level.value,
        }


def merge_analysis(static_risk_level: RiskLevel, llm_analysis: AnalysisResult) -> HybridAnalysisResult:
    return HybridAnalysisResult(
        static_risk_level=static_risk_level,
        llm_analysis=llm_analysis,
        combined_risk_level=higher_risk_level(static_risk_level, llm_analysis.llm_risk_level),
    )
