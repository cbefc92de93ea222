from typing import List, NotRequired, TypedDict


class GitHubUser(TypedDict, total=False):
    login: str


class GitHubPullRequest(TypedDict, total=False):
    """Subset of the GitHub pull request payload used by this project."""

    number: int
    title: str
    body: str | None
    state: str
    user: GitHubUser
    additions: int
    deletions: int
    changed_files: int


class GitHubPullRequestFile(TypedDict, total=False):
    """GitHub pull request file entry fields used by this project."""

    filename: str
    previous_filename: str
    status: str
    additions: int
    deletions: int
    patch: str


class ChatMessageDict(TypedDict):
    """Single chat message payload."""

    role: str
    content: str


class LLMCallResult(TypedDict, total=False):
    """LLM response text plus metadata for one prompt."""

    content: str
    provider: str
    model: str
    elapsed_seconds: float
    stop_reason: NotRequired[str]
    input_tokens: NotRequired[int]
    output_tokens: NotRequired[int]
    total_tokens: NotRequired[int]


class LLMCallStats(TypedDict, total=False):
    """Aggregated metadata over every prompt of one analysis."""

    provider: str
    model: str
    calls: int
    elapsed_seconds: float
    input_tokens: NotRequired[int]
    output_tokens: NotRequired[int]


def summarize_call_results(results: List[LLMCallResult]) -> LLMCallStats:
    stats: LLMCallStats = {
        "provider": results[0].get("provider", "") if results else "",
        "model": results[0].get("model", "") if results else "",
        "calls": len(results),
        "elapsed_seconds": sum(r.get("elapsed_seconds", 0.0) for r in results),
    }
    input_tokens = [r["input_tokens"] for r in results if "input_tokens" in r]
    output_tokens = [r["output_tokens"] for r in results if "output_tokens" in r]
    if input_tokens:
        stats["input_tokens"] = sum(input_tokens)
    if output_tokens:
        stats["output_tokens"] = sum(output_tokens)
    return stats
