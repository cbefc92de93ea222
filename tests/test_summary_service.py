from pr_impact.domains.diff.models import ADDITION, DiffHunk, DiffLine, FileDiff
from pr_impact.domains.prompt.templates import Language, PromptBuilder, PrMetadata
from pr_impact.domains.summary.service import SummaryService


class _FakeLLMClient:
    def __init__(self, responses) -> None:
        self._responses = list(responses)
        self.prompts = []
        self.provider_name = "anthropic"
        self.model_name = "claude-sonnet-4-5-20250929"

    def generate_text_with_stats(self, prompt: str):
        self.prompts.append(prompt)
        return {
            "content": self._responses.pop(0),
            "provider": self.provider_name,
            "model": self.model_name,
            "elapsed_seconds": 0.5,
            "input_tokens": 10,
            "output_tokens": 2,
        }


def _diff(path: str) -> FileDiff:
    return FileDiff(
        old_path=path,
        new_path=path,
        hunks=[DiffHunk(header="@@ -1,0 +1,1 @@", lines=[DiffLine(ADDITION, "x = 1")])],
    )


def _service(llm) -> SummaryService:
    return SummaryService(
        llm_client=llm,
        prompt_builder=PromptBuilder(),
        language=Language.JAPANESE,
    )


def test_summarize_builds_overall_and_file_summaries() -> None:
    llm = _FakeLLMClient(
        [
            "設定読み込みを整理しました。\n\n理由: 重複コードの削減。",
            "a.py の変更",
            "b.py の変更",
        ]
    )

    outcome = _service(llm).summarize([_diff("a.py"), _diff("b.py")], PrMetadata(title="Refactor"))

    summary = outcome.result
    assert summary.overall_summary.startswith("設定読み込み")
    assert summary.reason == "理由: 重複コードの削減。"
    assert [(s.path, s.summary) for s in summary.file_summaries] == [
        ("a.py", "a.py の変更"),
        ("b.py", "b.py の変更"),
    ]
    assert len(llm.prompts) == 3
    assert "## File: b.py" in llm.prompts[2]
    assert outcome.stats["calls"] == 3
    assert outcome.stats["input_tokens"] == 30


def test_check_consistency_parses_rating() -> None:
    llm = _FakeLLMClient(["Rating: Low\n- Description does not mention the new endpoint"])

    outcome = _service(llm).check_consistency([_diff("a.py")], PrMetadata(title="Fix typo"))

    assert outcome.result.is_consistent is False
    assert outcome.result.warnings == ["Description does not mention the new endpoint"]
    assert outcome.result.to_dict()["is_consistent"] is False
