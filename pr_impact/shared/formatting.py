from __future__ import annotations

from pr_impact.shared.types import LLMCallStats


def format_seconds(seconds: float) -> str:
    if seconds < 0:
        return "0ms"

    if seconds < 1:
        return f"{int(seconds * 1000)}ms"

    if seconds < 60:
        return f"{seconds:.2f}s"

    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"

    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {secs}s"


def format_call_stats(stats: LLMCallStats) -> str:
    """One-line description of the LLM calls behind an analysis."""
    parts = [
        f"provider={stats.get('provider') or 'unknown'}",
        f"model={stats.get('model') or 'unknown'}",
        f"calls={stats.get('calls', 0)}",
        f"elapsed={format_seconds(stats.get('elapsed_seconds', 0.0))}",
    ]
    for key in ("input_tokens", "output_tokens"):
        value = stats.get(key)
        if value is not None:
            parts.append(f"{key}={value}")
    return ", ".join(parts)
