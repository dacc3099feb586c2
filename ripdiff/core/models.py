"""Parsed unified-diff document model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class DiffLineKind(str, Enum):
    """Type of a single line inside a unified diff hunk."""

    CONTEXT = "context"
    ADD = "add"
    REMOVE = "remove"
    META = "meta"


@dataclass(frozen=True)
class DiffLine:
    """A parsed hunk line; line numbers are 0 on the side the line does not touch."""

    kind: DiffLineKind
    content: str
    old_line: int = 0
    new_line: int = 0


@dataclass(frozen=True)
class DiffHunk:
    header: str
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: Tuple[DiffLine, ...] = ()


@dataclass(frozen=True)
class DiffFile:
    """Parsed diff for a single file."""

    old_path: str = ""
    new_path: str = ""
    display_path: str = ""
    headers: Tuple[str, ...] = ()
    hunks: Tuple[DiffHunk, ...] = ()
    is_binary: bool = False
    additions: int = 0
    deletions: int = 0

    @property
    def syntax_path(self) -> str:
        """Path used to pick a tokenizer: the new path, else the old one."""
        return self.new_path or self.old_path


@dataclass(frozen=True)
class DiffDocument:
    """Parsed representation of a full ``git diff`` output."""

    files: Tuple[DiffFile, ...] = field(default_factory=tuple)

    @property
    def total_additions(self) -> int:
        return sum(file.additions for file in self.files)

    @property
    def total_deletions(self) -> int:
        return sum(file.deletions for file in self.files)
