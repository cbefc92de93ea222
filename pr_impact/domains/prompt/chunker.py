from __future__ import annotations

from typing import Iterable, List

from pr_impact.domains.diff.models import FileDiff


DEFAULT_MAX_CHARS = 80_000
FILE_SEPARATOR = "\n"


def render_file_diff(diff: FileDiff) -> str:
    """Render one file as unified-diff text; every line ends with a newline."""
    old_path = diff.old_path or "/dev/null"
    new_path = diff.new_path or "/dev/null"

    parts = [f"--- {old_path}\n", f"+++ {new_path}\n"]
    for hunk in diff.hunks:
        parts.append(f"{hunk.header}\n")
        for line in hunk.lines:
            parts.append(f"{line.origin.prefix}{line.content}\n")
    return "".join(parts)


def render_file_blocks(diffs: Iterable[FileDiff]) -> List[str]:
    return [render_file_diff(diff) for diff in diffs]


def render_diffs(diffs: Iterable[FileDiff]) -> str:
    """All file blocks joined so that a blank line separates consecutive files."""
    return FILE_SEPARATOR.join(render_file_blocks(diffs))


def _lines_with_newline(text: str) -> List[str]:
    parts = text.split("\n")
    lines = [f"{part}\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def force_split(text: str, max_chars: int) -> List[str]:
    """Split on line boundaries; a single line longer than ``max_chars`` stays whole."""
    chunks: List[str] = []
    current = ""

    for line in _lines_with_newline(text):
        if current and len(current) + len(line) > max_chars:
            chunks.append(current)
            current = ""
        current += line

    if current:
        chunks.append(current)

    return chunks


def split_file_blocks(blocks: List[str], max_chars: int) -> List[str]:
    """Group rendered file blocks into chunks of at most ``max_chars`` characters.

    Files are kept whole whenever they fit; a file that alone exceeds the budget is
    force-split on line boundaries. Joining file-grouped chunks with ``FILE_SEPARATOR``
    gives back the full text, and force-split pieces of one file concatenate back to it.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    full_text = FILE_SEPARATOR.join(blocks)
    if len(full_text) <= max_chars:
        return [full_text]

    grouped: List[str] = []
    current = ""
    for index, block in enumerate(blocks):
        if index == 0:
            current = block
            continue

        candidate_len = len(current) + len(FILE_SEPARATOR) + len(block)
        if current and candidate_len > max_chars:
            grouped.append(current)
            current = block
        else:
            current = f"{current}{FILE_SEPARATOR}{block}"

    if current:
        grouped.append(current)

    chunks: List[str] = []
    for chunk in grouped:
        if len(chunk) <= max_chars:
            chunks.append(chunk)
        else:
            chunks.extend(force_split(chunk, max_chars))
    return chunks


def split_diffs(diffs: Iterable[FileDiff], max_chars: int = DEFAULT_MAX_CHARS) -> List[str]:
    return split_file_blocks(render_file_blocks(diffs), max_chars)
