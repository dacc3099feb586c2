"""Display-ready diff models shared by both layouts.

All models are immutable; a new model pair is built whenever the active
file changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class RenderedLineKind(str, Enum):
    """Visual category of a rendered line."""

    FILE_HEADER = "file_header"
    HUNK_HEADER = "hunk_header"
    CONTEXT = "context"
    ADD = "add"
    REMOVE = "remove"
    META = "meta"


class TokenRole(str, Enum):
    """Semantic role of a text run, mapped to a style by the theme palette."""

    OLD_LINE_NUMBER = "old_line_number"
    NEW_LINE_NUMBER = "new_line_number"
    LINE_NUMBER_ADD = "line_number_add"
    LINE_NUMBER_REMOVE = "line_number_remove"
    PREFIX_ADD = "prefix_add"
    PREFIX_REMOVE = "prefix_remove"
    PREFIX_CONTEXT = "prefix_context"
    FILE_HEADER = "file_header"
    HUNK_HEADER = "hunk_header"
    META = "meta"
    HATCH = "hatch"
    PLAIN = "plain"
    KEYWORD = "keyword"
    TYPE = "type"
    FUNCTION = "function"
    STRING = "string"
    NUMBER = "number"
    COMMENT = "comment"
    PUNCTUATION = "punctuation"


SYNTAX_ROLES = (
    TokenRole.PLAIN,
    TokenRole.KEYWORD,
    TokenRole.TYPE,
    TokenRole.FUNCTION,
    TokenRole.STRING,
    TokenRole.NUMBER,
    TokenRole.COMMENT,
    TokenRole.PUNCTUATION,
)


class IntralineMark(str, Enum):
    NONE = "none"
    ADDED = "added"
    REMOVED = "removed"


class SideRowKind(str, Enum):
    """Discriminant of :class:`SideBySideRenderedRow`."""

    SHARED = "shared"
    PAIRED = "paired"


class RowConstructionError(ValueError):
    """Raised when a side-by-side row violates the shared/paired contract."""


@dataclass(frozen=True)
class RenderedSegment:
    text: str
    role: TokenRole
    intraline: IntralineMark = IntralineMark.NONE


@dataclass(frozen=True)
class RenderedDiffLine:
    """One line of the unified layout."""

    kind: RenderedLineKind
    old_line: int = 0
    new_line: int = 0
    prefix: str = " "
    segments: Tuple[RenderedSegment, ...] = ()
    content_width: int = 0


@dataclass(frozen=True)
class RenderedFile:
    """Unified display model for one file diff."""

    title: str
    lines: Tuple[RenderedDiffLine, ...]
    old_num_width: int = 1
    new_num_width: int = 1
    max_content_width: int = 0


@dataclass(frozen=True)
class RenderedSideCell:
    """One pane's half of a paired side-by-side row."""

    kind: RenderedLineKind
    line_number: int = 0
    prefix: str = " "
    segments: Tuple[RenderedSegment, ...] = ()
    content_width: int = 0


@dataclass(frozen=True)
class SideBySideRenderedRow:
    """A row that either spans both panes or pairs a left and a right cell."""

    kind: SideRowKind
    shared: Optional[RenderedDiffLine] = None
    left: Optional[RenderedSideCell] = None
    right: Optional[RenderedSideCell] = None

    def __post_init__(self) -> None:
        if self.kind == SideRowKind.SHARED:
            if self.shared is None:
                raise RowConstructionError("shared row requires a line")
            if self.left is not None or self.right is not None:
                raise RowConstructionError("shared row cannot carry paired cells")
        else:
            if self.shared is not None:
                raise RowConstructionError("paired row cannot carry a shared line")
            if self.left is None and self.right is None:
                raise RowConstructionError("paired row requires at least one cell")

    @classmethod
    def shared_row(cls, line: RenderedDiffLine) -> "SideBySideRenderedRow":
        return cls(kind=SideRowKind.SHARED, shared=line)

    @classmethod
    def paired_row(
        cls,
        left: Optional[RenderedSideCell],
        right: Optional[RenderedSideCell],
    ) -> "SideBySideRenderedRow":
        return cls(kind=SideRowKind.PAIRED, left=left, right=right)

    @property
    def is_shared(self) -> bool:
        return self.kind == SideRowKind.SHARED


@dataclass(frozen=True)
class SideBySideRenderedFile:
    """Two-column display model for one file diff."""

    title: str
    rows: Tuple[SideBySideRenderedRow, ...]
    left_num_width: int = 1
    right_num_width: int = 1
    left_max_content_width: int = 0
    right_max_content_width: int = 0

    @property
    def max_content_width(self) -> int:
        return max(self.left_max_content_width, self.right_max_content_width)


def segments_text(segments: Tuple[RenderedSegment, ...]) -> str:
    return "".join(segment.text for segment in segments)


def line_text(line: RenderedDiffLine) -> str:
    """Concatenated display text of a rendered line."""
    return segments_text(line.segments)


def cell_text(cell: Optional[RenderedSideCell]) -> str:
    if cell is None:
        return ""
    return segments_text(cell.segments)
