"""Fetch a GitHub pull request and run the LLM analysis pipeline over its diff.

Values are read from the project root .env (or the environment):
- GITHUB_TOKEN
- GITHUB_TARGET_OWNER, GITHUB_TARGET_REPO, GITHUB_TARGET_PR_NUMBER
- GITHUB_TARGET_MODE: impact (default), summary or consistency
- GITHUB_TARGET_STATIC_RISK: optional Low/Medium/High merged into the impact result
- LLM_PROVIDER, LLM_MODEL and the API key of the chosen provider

Usage:

    python run_pr_analysis.py
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from pr_impact.app.main import create_app
from pr_impact.domains.analysis.models import RiskLevel
from pr_impact.domains.analysis.tasks import (
    ConsistencyCheckTask,
    ImpactAnalysisTask,
    SummaryTask,
)
from pr_impact.domains.analysis.service import AnalysisTask
from pr_impact.shared.formatting import format_call_stats


PROJECT_ROOT = Path(__file__).resolve().parent
ENV_PATH = PROJECT_ROOT / ".env"

if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH, override=False)


logger = logging.getLogger("pr_impact_pipeline")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        msg = f"{name} is not set; unable to run the PR analysis pipeline."
        raise RuntimeError(msg)
    return value


def _build_task() -> AnalysisTask:
    owner = _require_env("GITHUB_TARGET_OWNER")
    repo = _require_env("GITHUB_TARGET_REPO")
    pr_number_raw = _require_env("GITHUB_TARGET_PR_NUMBER")

    try:
        pr_number = int(pr_number_raw)
    except ValueError as exc:  # noqa: TRY003 - simple env validation
        raise ValueError("GITHUB_TARGET_PR_NUMBER must be an integer") from exc

    mode = (os.getenv("GITHUB_TARGET_MODE") or "impact").strip().lower()
    if mode == "summary":
        return SummaryTask(owner=owner, repo=repo, pr_number=pr_number)
    if mode == "consistency":
        return ConsistencyCheckTask(owner=owner, repo=repo, pr_number=pr_number)
    if mode != "impact":
        raise ValueError(f"Unsupported GITHUB_TARGET_MODE: {mode}")

    static_risk_raw = (os.getenv("GITHUB_TARGET_STATIC_RISK") or "").strip()
    static_risk_level = RiskLevel(static_risk_raw.capitalize()) if static_risk_raw else None
    return ImpactAnalysisTask(
        owner=owner,
        repo=repo,
        pr_number=pr_number,
        static_risk_level=static_risk_level,
    )


def main() -> None:
    """Run the analysis selected by GITHUB_TARGET_MODE and print the JSON result."""

    service = create_app()
    task = _build_task()

    logger.info("Running %s", task)
    outcome = service.run_task(task)

    print("\n===== PR ANALYSIS RESULT =====\n")
    print(json.dumps(outcome.result.to_dict(), ensure_ascii=False, indent=2))
    print("\n===== END =====\n")

    print("[LLM metadata]")
    print(format_call_stats(outcome.stats))


if __name__ == "__main__":
    main()
