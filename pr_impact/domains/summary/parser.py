from __future__ import annotations

import re
from typing import List, Tuple


REASON_MARKERS = ("なぜ", "理由", "目的", "why", "reason", "purpose")

_NUMBERED_ITEM_RE = re.compile(r"^\d+\.\s*")


def extract_reason(response: str) -> str:
    """Paragraph explaining why the change was made, or the whole response."""
    lowered = response.lower()
    for marker in REASON_MARKERS:
        position = lowered.find(marker)
        if position < 0:
            continue

        start = response.rfind("\n", 0, position) + 1
        remaining = response[start:]
        end = remaining.find("\n\n")
        extracted = (remaining if end < 0 else remaining[:end]).strip()
        if extracted:
            return extracted

    return response


def parse_consistency_response(response: str) -> Tuple[bool, List[str]]:
    """Read the consistency rating; only an unqualified "High" counts as consistent."""
    lowered = response.lower()
    if "high" in lowered and "medium" not in lowered and "low" not in lowered:
        return True, []

    warnings: List[str] = []
    for line in response.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith(("-", "•", "*")) and len(trimmed) > 2:
            warning = trimmed.lstrip("-•* ").strip()
            if warning:
                warnings.append(warning)
            continue

        match = _NUMBERED_ITEM_RE.match(trimmed)
        if match:
            warning = trimmed[match.end() :].strip()
            if warning:
                warnings.append(warning)

    if not warnings:
        warnings.append(response)

    return False, warnings
