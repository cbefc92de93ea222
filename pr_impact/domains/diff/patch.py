from __future__ import annotations

import logging
import re
from typing import List

from pr_impact.domains.diff.models import DiffHunk, DiffLine, FileDiff, FileStatus, LineKind, LineOrigin
from pr_impact.shared.types import GitHubPullRequestFile


logger = logging.getLogger(__name__)

_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")

_GITHUB_STATUS_MAP = {
    "added": FileStatus.ADDED,
    "removed": FileStatus.DELETED,
    "modified": FileStatus.MODIFIED,
    "changed": FileStatus.MODIFIED,
    "renamed": FileStatus.RENAMED,
}


def _patch_lines(patch: str) -> List[str]:
    # Only LF ends a line; form feeds and U+2028 stay inside the line content.
    lines = patch.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_patch(patch: str) -> List[DiffHunk]:
    """Parse unified diff hunks; anything before the first ``@@`` header is ignored."""
    hunks: List[DiffHunk] = []
    header: str | None = None
    lines: List[DiffLine] = []
    old_lineno = 0
    new_lineno = 0

    for raw_line in _patch_lines(patch):
        match = _HUNK_HEADER_RE.match(raw_line)
        if match:
            if header is not None:
                hunks.append(DiffHunk(header=header, lines=lines))
            header = raw_line
            lines = []
            old_lineno = int(match.group(1))
            new_lineno = int(match.group(2))
            continue

        if header is None:
            continue

        origin = LineOrigin.from_char(raw_line[:1] or " ")
        content = raw_line[1:]

        if origin.kind is LineKind.ADDITION:
            lines.append(DiffLine(origin, content, new_lineno=new_lineno))
            new_lineno += 1
        elif origin.kind is LineKind.DELETION:
            lines.append(DiffLine(origin, content, old_lineno=old_lineno))
            old_lineno += 1
        elif origin.kind is LineKind.CONTEXT:
            lines.append(
                DiffLine(origin, content, old_lineno=old_lineno, new_lineno=new_lineno)
            )
            old_lineno += 1
            new_lineno += 1
        else:
            # "\ No newline at end of file" and similar markers
            lines.append(DiffLine(origin, content))

    if header is not None:
        hunks.append(DiffHunk(header=header, lines=lines))

    return hunks


def file_diff_from_github(file: GitHubPullRequestFile) -> FileDiff:
    filename = file.get("filename")
    if not filename:
        raise ValueError("GitHub file entry is missing 'filename'")

    raw_status = file.get("status", "modified")
    status = _GITHUB_STATUS_MAP.get(raw_status, FileStatus.OTHER)
    old_path: str | None = file.get("previous_filename") or filename
    new_path: str | None = filename

    if status is FileStatus.ADDED:
        old_path = None
    elif status is FileStatus.DELETED:
        new_path = None

    patch = file.get("patch")
    if not patch:
        # binary files and very large diffs come without a patch
        logger.info("No patch content for %s (status=%s)", filename, raw_status)
        patch = ""

    return FileDiff(
        old_path=old_path,
        new_path=new_path,
        status=status,
        hunks=parse_patch(patch),
    )


def file_diffs_from_github(files: List[GitHubPullRequestFile]) -> List[FileDiff]:
    return [file_diff_from_github(file) for file in files]
