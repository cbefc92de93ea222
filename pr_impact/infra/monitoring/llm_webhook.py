from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import requests

from pr_impact.shared.types import LLMCallStats


logger = logging.getLogger(__name__)

SOURCE_NAME = "pr-impact-analyzer"


class LLMMonitoringWebhookClient:
    """Best-effort reporting of analysis runs; failures are logged and never raised."""

    def __init__(self, *, webhook_url: str | None, timeout_seconds: float) -> None:
        self._webhook_url = (webhook_url or "").strip() or None
        self._timeout_seconds = timeout_seconds

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _build_llm_section(stats: LLMCallStats) -> Dict[str, Any]:
        return {
            "provider": stats.get("provider"),
            "model": stats.get("model"),
            "calls": stats.get("calls"),
            "elapsed_seconds": stats.get("elapsed_seconds"),
            "input_tokens": stats.get("input_tokens"),
            "output_tokens": stats.get("output_tokens"),
        }

    def _post_payload(self, payload: Dict[str, Any]) -> None:
        if self._webhook_url is None:
            return

        try:
            response = requests.post(
                self._webhook_url,
                json=payload,
                timeout=self._timeout_seconds,
            )
            if response.status_code >= 400:
                logger.warning(
                    "LLM monitoring webhook returned status_code=%s", response.status_code
                )
        except Exception:  # noqa: BLE001 - non-blocking monitoring
            logger.exception("Failed to send LLM monitoring webhook")

    def send_success(
        self,
        *,
        analysis_type: str,
        github_context: Dict[str, Any],
        stats: LLMCallStats,
        result: Dict[str, Any],
    ) -> None:
        if self._webhook_url is None:
            return

        payload: Dict[str, Any] = {
            "status": "success",
            "event": analysis_type,
            "source": SOURCE_NAME,
            "timestamp": self._now_iso(),
            "github": github_context,
            "llm": self._build_llm_section(stats),
            "result": result,
        }
        self._post_payload(payload)

    def send_error(
        self,
        *,
        analysis_type: str,
        github_context: Dict[str, Any],
        provider: str,
        model: str,
        error: Exception,
    ) -> None:
        if self._webhook_url is None:
            return

        payload: Dict[str, Any] = {
            "status": "error",
            "event": analysis_type,
            "source": SOURCE_NAME,
            "timestamp": self._now_iso(),
            "github": github_context,
            "llm": {
                "provider": provider,
                "model": model,
            },
            "error": {
                "type": type(error).__name__,
                "message": str(error),
                "detail": repr(error),
            },
        }
        self._post_payload(payload)
