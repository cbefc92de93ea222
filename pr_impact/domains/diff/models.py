from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class FileStatus(str, Enum):
    ADDED = "Added"
    DELETED = "Deleted"
    MODIFIED = "Modified"
    RENAMED = "Renamed"
    OTHER = "Other"


class LineKind(str, Enum):
    ADDITION = "Addition"
    DELETION = "Deletion"
    CONTEXT = "Context"
    OTHER = "Other"


@dataclass(frozen=True)
class LineOrigin:
    """Origin marker of a diff line; ``char`` keeps the raw marker for ``OTHER``."""

    kind: LineKind
    char: str = ""

    @classmethod
    def from_char(cls, char: str) -> "LineOrigin":
        if char == "+":
            return cls(LineKind.ADDITION, "+")
        if char == "-":
            return cls(LineKind.DELETION, "-")
        if char == " ":
            return cls(LineKind.CONTEXT, " ")
        return cls(LineKind.OTHER, char)

    @property
    def prefix(self) -> str:
        if self.kind is LineKind.ADDITION:
            return "+"
        if self.kind is LineKind.DELETION:
            return "-"
        # context and unrecognized markers render as a space
        return " "


ADDITION = LineOrigin(LineKind.ADDITION, "+")
DELETION = LineOrigin(LineKind.DELETION, "-")
CONTEXT = LineOrigin(LineKind.CONTEXT, " ")


@dataclass(frozen=True)
class DiffLine:
    origin: LineOrigin
    content: str
    old_lineno: int | None = None
    new_lineno: int | None = None


@dataclass(frozen=True)
class DiffHunk:
    header: str
    lines: List[DiffLine] = field(default_factory=list)


@dataclass(frozen=True)
class FileDiff:
    old_path: str | None
    new_path: str | None
    status: FileStatus = FileStatus.MODIFIED
    hunks: List[DiffHunk] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.old_path is None and self.new_path is None:
            raise ValueError("FileDiff requires old_path or new_path")

    @property
    def display_path(self) -> str:
        return self.new_path or self.old_path or "(unknown)"
