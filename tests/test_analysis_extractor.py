from pr_impact.domains.analysis.extractor import (
    extract_analysis,
    extract_file_path,
    is_specific_section_header,
    split_name_description,
    strip_list_prefix,
)
from pr_impact.domains.analysis.models import BreakingChangeSeverity, RiskLevel
from pr_impact.domains.prompt.templates import Language


_JAPANESE_RESPONSE = """### 要約
認証モジュールのトークン検証を書き換えました。
セッションの有効期限も短縮しています。

### 影響モジュール
- auth: トークン検証ロジックの変更
- session：有効期限の短縮
- metrics

### 破壊的変更
- `src/auth/token.py` verify() の戻り値が変わりました（重大）
- 設定キー名の変更

### リスク
- 既存セッションが無効になる可能性
- なし

### リスクレベル: High
"""


def test_japanese_response_is_fully_extracted() -> None:
    result = extract_analysis(_JAPANESE_RESPONSE)

    assert [(m.name, m.description) for m in result.affected_modules] == [
        ("auth", "トークン検証ロジックの変更"),
        ("session", "有効期限の短縮"),
        ("metrics", ""),
    ]
    assert len(result.breaking_changes) == 2
    critical, warning = result.breaking_changes
    assert critical.severity is BreakingChangeSeverity.CRITICAL
    assert critical.file_path == "src/auth/token.py"
    assert warning.severity is BreakingChangeSeverity.WARNING
    assert warning.file_path == ""
    assert result.risk_warnings == ["既存セッションが無効になる可能性"]
    assert result.llm_risk_level is RiskLevel.HIGH
    assert result.summary == "認証モジュールのトークン検証を書き換えました。\nセッションの有効期限も短縮しています。"


def test_none_items_are_suppressed() -> None:
    text = "### 破壊的変更\n- なし\n\n### リスク\n- なし\n"

    result = extract_analysis(text)

    assert result.breaking_changes == []
    assert result.risk_warnings == []


def test_english_none_items_are_suppressed() -> None:
    text = "## Breaking Changes\n- none\n- None\n\n## Risk Warnings\n- NONE\n"

    result = extract_analysis(text, Language.ENGLISH)

    assert result.breaking_changes == []
    assert result.risk_warnings == []


def test_critical_keyword_marks_breaking_change() -> None:
    text = "## BREAKING_CHANGES\n- Removed `api/v1.py` endpoint (critical)\n- Renamed a flag\n"

    result = extract_analysis(text, Language.ENGLISH)

    assert [c.severity for c in result.breaking_changes] == [
        BreakingChangeSeverity.CRITICAL,
        BreakingChangeSeverity.WARNING,
    ]
    assert result.breaking_changes[0].file_path == "api/v1.py"


def test_explicit_risk_level_beats_fallback_phrases() -> None:
    text = "This is a low risk refactor, not a medium risk one.\n\nリスクレベル: High\n"

    assert extract_analysis(text).llm_risk_level is RiskLevel.HIGH


def test_risk_level_prefers_high_within_one_line() -> None:
    assert extract_analysis("Risk Level: Medium to High").llm_risk_level is RiskLevel.HIGH


def test_risk_level_falls_back_to_phrases() -> None:
    assert extract_analysis("Overall this is a medium risk change.").llm_risk_level is RiskLevel.MEDIUM
    assert extract_analysis("高リスクな変更です").llm_risk_level is RiskLevel.HIGH


def test_risk_level_matches_substrings_permissively() -> None:
    # "highlights" contains "high"
    assert extract_analysis("risk level: see highlights below").llm_risk_level is RiskLevel.HIGH


def test_risk_warnings_section_excludes_risk_level_header() -> None:
    text = "### リスクレベル: Medium\n- not a warning\n\n### リスク\n- flaky migration\n"

    result = extract_analysis(text, Language.JAPANESE)

    assert result.risk_warnings == ["flaky migration"]
    assert result.llm_risk_level is RiskLevel.MEDIUM


def test_list_item_mentioning_keyword_does_not_open_section() -> None:
    text = "- affected modules: none really\n- auth: changed\n"

    assert extract_analysis(text, Language.ENGLISH).affected_modules == []


def test_section_ends_at_next_header_like_line() -> None:
    text = "## Affected Modules\n- core: changed\nNotes:\n- not a module\n"

    result = extract_analysis(text, Language.ENGLISH)

    assert [m.name for m in result.affected_modules] == ["core"]


def test_japanese_keywords_are_ignored_for_english_output() -> None:
    text = "### 影響モジュール\n- auth: 変更\n"

    assert extract_analysis(text, Language.ENGLISH).affected_modules == []
    assert len(extract_analysis(text, Language.JAPANESE).affected_modules) == 1


def test_empty_input_gives_defaults() -> None:
    result = extract_analysis("")

    assert result.affected_modules == []
    assert result.breaking_changes == []
    assert result.risk_warnings == []
    assert result.llm_risk_level is RiskLevel.LOW
    assert result.summary == ""


def test_summary_falls_back_to_first_paragraph() -> None:
    text = "First line of prose.\nSecond line.\n\nLater paragraph."

    assert extract_analysis(text).summary == "First line of prose.\nSecond line."


def test_summary_falls_back_to_first_line_when_paragraph_is_only_headers() -> None:
    text = "## Changes:\n\nbody"

    assert extract_analysis(text).summary == "## Changes:"


def test_summary_result_serializes_with_string_enums() -> None:
    data = extract_analysis(_JAPANESE_RESPONSE).to_dict()

    assert data["llm_risk_level"] == "High"
    assert data["breaking_changes"][0]["severity"] == "Critical"
    assert data["affected_modules"][0] == {"name": "auth", "description": "トークン検証ロジックの変更"}


def test_helpers() -> None:
    assert strip_list_prefix("- item") == "item"
    assert strip_list_prefix("12. numbered item") == "numbered item"
    assert strip_list_prefix("• bullet") == "bullet"
    assert split_name_description("core - does things") == ("core", "does things")
    assert split_name_description("core — does things") == ("core", "does things")
    assert split_name_description("no separator") is None
    assert split_name_description(":leading") is None
    assert extract_file_path("see `Makefile`") == ""
    assert extract_file_path("see `setup.cfg` and `a/b`") == "setup.cfg"
    assert is_specific_section_header("## Summary", ("summary",))
    assert is_specific_section_header("SUMMARY:", ("summary",))
    assert not is_specific_section_header("- summary:", ("summary",))
