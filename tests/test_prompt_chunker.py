import pytest

from pr_impact.domains.diff.models import (
    ADDITION,
    CONTEXT,
    DELETION,
    DiffHunk,
    DiffLine,
    FileDiff,
    FileStatus,
    LineKind,
    LineOrigin,
)
from pr_impact.domains.prompt.chunker import (
    FILE_SEPARATOR,
    force_split,
    render_diffs,
    render_file_diff,
    split_diffs,
    split_file_blocks,
)


def _file(path: str, added_lines: int, *, width: int = 10) -> FileDiff:
    lines = [DiffLine(ADDITION, f"{path}-{i}".ljust(width, "x")) for i in range(added_lines)]
    return FileDiff(
        old_path=path,
        new_path=path,
        hunks=[DiffHunk(header=f"@@ -1,0 +1,{added_lines} @@", lines=lines)],
    )


def test_render_file_diff_uses_dev_null_for_missing_paths() -> None:
    diff = FileDiff(
        old_path=None,
        new_path="src/new.py",
        status=FileStatus.ADDED,
        hunks=[DiffHunk(header="@@ -0,0 +1,1 @@", lines=[DiffLine(ADDITION, "print(1)")])],
    )

    assert render_file_diff(diff) == (
        "--- /dev/null\n+++ src/new.py\n@@ -0,0 +1,1 @@\n+print(1)\n"
    )


def test_render_file_diff_prefixes_each_origin() -> None:
    diff = FileDiff(
        old_path="a.py",
        new_path="a.py",
        hunks=[
            DiffHunk(
                header="@@ -1,3 +1,3 @@",
                lines=[
                    DiffLine(CONTEXT, "keep"),
                    DiffLine(DELETION, "old"),
                    DiffLine(ADDITION, "new"),
                    DiffLine(LineOrigin(LineKind.OTHER, "\\"), " No newline at end of file"),
                ],
            )
        ],
    )

    rendered = render_file_diff(diff)

    assert rendered.splitlines()[3:] == [" keep", "-old", "+new", "  No newline at end of file"]


def test_small_diff_is_a_single_chunk_equal_to_full_text() -> None:
    diffs = [_file("a.py", 2), _file("b.py", 2)]

    chunks = split_diffs(diffs, max_chars=10_000)

    assert chunks == [render_diffs(diffs)]
    assert "\n\n--- b.py" in chunks[0]


def test_chunks_respect_budget_and_join_back_to_full_text() -> None:
    diffs = [_file(f"pkg/mod_{i}.py", 5) for i in range(6)]
    block_len = len(render_file_diff(diffs[0]))
    max_chars = block_len * 2 + 10

    chunks = split_diffs(diffs, max_chars=max_chars)

    assert len(chunks) > 1
    assert all(len(chunk) <= max_chars for chunk in chunks)
    assert FILE_SEPARATOR.join(chunks) == render_diffs(diffs)
    assert all(chunk.startswith("--- pkg/mod_") for chunk in chunks)


def test_deleted_line_that_looks_like_a_file_header_does_not_split_the_file() -> None:
    tricky = FileDiff(
        old_path="notes.md",
        new_path="notes.md",
        hunks=[
            DiffHunk(
                header="@@ -1,2 +1,0 @@",
                lines=[DiffLine(DELETION, "-- not a file header"), DiffLine(DELETION, "x" * 20)],
            )
        ],
    )
    diffs = [_file("a.py", 3), tricky]
    max_chars = max(len(render_file_diff(d)) for d in diffs) + 1

    chunks = split_diffs(diffs, max_chars=max_chars)

    assert chunks == [render_file_diff(diffs[0]), render_file_diff(tricky)]


def test_oversized_file_is_force_split_on_line_boundaries() -> None:
    big = _file("big.py", 40)
    small = _file("small.py", 1)
    max_chars = 100

    chunks = split_diffs([small, big], max_chars=max_chars)
    big_block = render_file_diff(big)

    assert chunks[0] == render_file_diff(small)
    assert "".join(chunks[1:]) == big_block
    assert all(len(chunk) <= max_chars for chunk in chunks)
    assert all(chunk.endswith("\n") for chunk in chunks)


def test_force_split_keeps_overlong_line_whole() -> None:
    text = "short\n" + "y" * 50 + "\nend\n"

    pieces = force_split(text, 10)

    assert pieces == ["short\n", "y" * 50 + "\n", "end\n"]


def test_force_split_only_breaks_after_newlines() -> None:
    text = "+aaaa\x0cbbbb\n+cc\u2028dd\n+ee\n"

    pieces = force_split(text, 6)

    assert pieces == ["+aaaa\x0cbbbb\n", "+cc\u2028dd\n", "+ee\n"]
    assert "".join(pieces) == text


def test_force_split_keeps_unterminated_last_line() -> None:
    assert force_split("a\nbb", 2) == ["a\n", "bb"]


def test_split_file_blocks_rejects_non_positive_budget() -> None:
    with pytest.raises(ValueError):
        split_file_blocks(["--- a\n+++ a\n"], 0)
