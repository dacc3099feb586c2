"""Parser for ``git diff`` unified-diff output."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ripdiff.core.models import DiffDocument, DiffFile, DiffHunk, DiffLine, DiffLineKind
from ripdiff.utils.log import get_logger

logger = get_logger()

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

UNKNOWN_FILE_PATH = "(unknown file)"


class DiffParseError(ValueError):
    """Raised when diff text does not follow the unified-diff grammar."""

    def __init__(self, message: str, header: str = "") -> None:
        super().__init__(message)
        self.header = header


@dataclass
class _HunkBuilder:
    header: str
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: List[DiffLine] = field(default_factory=list)

    def build(self) -> DiffHunk:
        return DiffHunk(
            header=self.header,
            old_start=self.old_start,
            old_count=self.old_count,
            new_start=self.new_start,
            new_count=self.new_count,
            lines=tuple(self.lines),
        )


@dataclass
class _FileBuilder:
    old_path: str
    new_path: str
    headers: List[str] = field(default_factory=list)
    hunks: List[DiffHunk] = field(default_factory=list)
    is_binary: bool = False
    additions: int = 0
    deletions: int = 0

    def build(self) -> DiffFile:
        return DiffFile(
            old_path=self.old_path,
            new_path=self.new_path,
            display_path=choose_display_path(self.old_path, self.new_path),
            headers=tuple(self.headers),
            hunks=tuple(self.hunks),
            is_binary=self.is_binary,
            additions=self.additions,
            deletions=self.deletions,
        )


def parse_unified_diff(raw: str) -> DiffDocument:
    """Parse unified diff text into a :class:`DiffDocument`.

    Empty or whitespace-only input yields an empty document. A malformed
    ``@@`` line raises :class:`DiffParseError`.
    """
    normalized = raw.replace("\r\n", "\n")
    if not normalized.strip():
        return DiffDocument()

    lines = normalized.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    files: List[DiffFile] = []
    current_file: Optional[_FileBuilder] = None
    current_hunk: Optional[_HunkBuilder] = None
    old_cursor = 0
    new_cursor = 0

    def flush_hunk() -> None:
        nonlocal current_hunk
        if current_file is not None and current_hunk is not None:
            current_file.hunks.append(current_hunk.build())
        current_hunk = None

    def flush_file() -> None:
        nonlocal current_file
        if current_file is None:
            return
        flush_hunk()
        files.append(current_file.build())
        current_file = None

    for line in lines:
        if line.startswith("diff --git "):
            flush_file()
            old_path, new_path = parse_diff_git_paths(line)
            current_file = _FileBuilder(old_path=old_path, new_path=new_path, headers=[line])
            continue

        if current_file is None:
            continue

        if line.startswith("@@ "):
            flush_hunk()
            current_hunk = parse_hunk_header(line)
            old_cursor = current_hunk.old_start
            new_cursor = current_hunk.new_start
            continue

        if current_hunk is not None:
            diff_line, old_cursor, new_cursor = parse_hunk_line(line, old_cursor, new_cursor)
            if diff_line.kind == DiffLineKind.ADD:
                current_file.additions += 1
            elif diff_line.kind == DiffLineKind.REMOVE:
                current_file.deletions += 1
            current_hunk.lines.append(diff_line)
            continue

        current_file.headers.append(line)
        _apply_file_header_metadata(current_file, line)

    flush_file()
    logger.debug(
        "[parser] Parsed unified diff",
        extra={"files": len(files), "lines": len(lines)},
    )
    return DiffDocument(files=tuple(files))


def parse_diff_git_paths(line: str) -> Tuple[str, str]:
    """Extract old/new paths from a ``diff --git a/X b/Y`` line."""
    parts = line.split()
    if len(parts) >= 4:
        return parse_diff_path(parts[2]), parse_diff_path(parts[3])
    return "", ""


def parse_diff_path(path: str) -> str:
    """Drop ``a/``/``b/`` prefixes and map ``/dev/null`` to an empty path."""
    path = path.strip('"')
    if path == "/dev/null":
        return ""
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def parse_hunk_header(header: str) -> _HunkBuilder:
    match = _HUNK_RE.match(header)
    if match is None:
        raise DiffParseError(f"invalid hunk header: {header!r}", header=header)
    old_start, old_count, new_start, new_count = match.groups()
    return _HunkBuilder(
        header=header,
        old_start=int(old_start),
        old_count=int(old_count) if old_count is not None else 1,
        new_start=int(new_start),
        new_count=int(new_count) if new_count is not None else 1,
    )


def parse_hunk_line(line: str, old_cursor: int, new_cursor: int) -> Tuple[DiffLine, int, int]:
    """Classify one hunk line and return it with the advanced cursors."""
    if not line:
        return DiffLine(kind=DiffLineKind.META, content=""), old_cursor, new_cursor

    prefix = line[0]
    content = line[1:]
    if prefix == " ":
        diff_line = DiffLine(
            kind=DiffLineKind.CONTEXT,
            content=content,
            old_line=old_cursor,
            new_line=new_cursor,
        )
        return diff_line, old_cursor + 1, new_cursor + 1
    if prefix == "+":
        return DiffLine(kind=DiffLineKind.ADD, content=content, new_line=new_cursor), old_cursor, new_cursor + 1
    if prefix == "-":
        return DiffLine(kind=DiffLineKind.REMOVE, content=content, old_line=old_cursor), old_cursor + 1, new_cursor
    # "\ No newline at end of file" and anything unexpected are kept verbatim.
    return DiffLine(kind=DiffLineKind.META, content=line), old_cursor, new_cursor


def _apply_file_header_metadata(file: _FileBuilder, line: str) -> None:
    if line.startswith("--- "):
        file.old_path = parse_diff_path(line[4:].strip())
    elif line.startswith("+++ "):
        file.new_path = parse_diff_path(line[4:].strip())
    elif line.startswith("rename from "):
        file.old_path = line[len("rename from ") :].strip()
    elif line.startswith("rename to "):
        file.new_path = line[len("rename to ") :].strip()
    elif line.startswith("Binary files ") or line.startswith("GIT binary patch"):
        file.is_binary = True


def choose_display_path(old_path: str, new_path: str) -> str:
    if new_path:
        return new_path
    if old_path:
        return old_path
    return UNKNOWN_FILE_PATH
