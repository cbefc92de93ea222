from __future__ import annotations

from dataclasses import dataclass

from pr_impact.domains.analysis.models import RiskLevel


@dataclass(frozen=True)
class ImpactAnalysisTask:
    owner: str
    repo: str
    pr_number: int
    static_risk_level: RiskLevel | None = None


@dataclass(frozen=True)
class SummaryTask:
    owner: str
    repo: str
    pr_number: int


@dataclass(frozen=True)
class ConsistencyCheckTask:
    owner: str
    repo: str
    pr_number: int
