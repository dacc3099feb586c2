"""Keep the same diff content in view when switching layouts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ripdiff.core.layout import clamp_int
from ripdiff.core.rendered import RenderedDiffLine, RenderedLineKind, SideBySideRenderedRow


@dataclass(frozen=True)
class ScrollAnchor:
    kind: RenderedLineKind
    old_line: int = 0
    new_line: int = 0


def anchor_for_rendered_line(line: RenderedDiffLine) -> ScrollAnchor:
    return ScrollAnchor(kind=line.kind, old_line=line.old_line, new_line=line.new_line)


def anchor_for_side_row(row: SideBySideRenderedRow) -> Optional[ScrollAnchor]:
    """Anchor for a side-by-side row; the right cell decides the kind when present."""
    if row.is_shared:
        return anchor_for_rendered_line(row.shared)
    if row.left is None and row.right is None:
        return None
    kind = RenderedLineKind.CONTEXT
    old_line = new_line = 0
    if row.right is not None:
        kind = row.right.kind
        new_line = row.right.line_number
    if row.left is not None:
        if row.right is None:
            kind = row.left.kind
        old_line = row.left.line_number
    return ScrollAnchor(kind=kind, old_line=old_line, new_line=new_line)


def _find_anchor_index(candidates: Sequence[Optional[ScrollAnchor]], anchor: ScrollAnchor) -> int:
    def find(match: Callable[[ScrollAnchor], bool]) -> int:
        for index, candidate in enumerate(candidates):
            if candidate is not None and match(candidate):
                return index
        return -1

    matchers: List[Callable[[ScrollAnchor], bool]] = []
    if anchor.old_line > 0 and anchor.new_line > 0:
        matchers.append(lambda c: c.old_line == anchor.old_line and c.new_line == anchor.new_line)

    if anchor.kind == RenderedLineKind.ADD and anchor.new_line > 0:
        matchers.append(lambda c: c.kind == RenderedLineKind.ADD and c.new_line == anchor.new_line)
    elif anchor.kind == RenderedLineKind.REMOVE and anchor.old_line > 0:
        matchers.append(lambda c: c.kind == RenderedLineKind.REMOVE and c.old_line == anchor.old_line)
    elif anchor.kind == RenderedLineKind.CONTEXT and anchor.old_line > 0 and anchor.new_line > 0:
        matchers.append(
            lambda c: c.kind == RenderedLineKind.CONTEXT
            and c.old_line == anchor.old_line
            and c.new_line == anchor.new_line
        )

    if anchor.old_line > 0:
        matchers.append(lambda c: c.old_line == anchor.old_line)
    if anchor.new_line > 0:
        matchers.append(lambda c: c.new_line == anchor.new_line)
    matchers.append(lambda c: c.kind == anchor.kind)

    for matcher in matchers:
        index = find(matcher)
        if index >= 0:
            return index
    return -1


def find_rendered_row_for_anchor(lines: Sequence[RenderedDiffLine], anchor: ScrollAnchor) -> int:
    """Index of the unified line best matching ``anchor``, or -1."""
    return _find_anchor_index([anchor_for_rendered_line(line) for line in lines], anchor)


def find_side_row_for_anchor(rows: Sequence[SideBySideRenderedRow], anchor: ScrollAnchor) -> int:
    """Index of the side-by-side row best matching ``anchor``, or -1."""
    return _find_anchor_index([anchor_for_side_row(row) for row in rows], anchor)


def map_offset_by_ratio(source_offset: int, source_rows: int, target_rows: int) -> int:
    """Map a row offset proportionally between two row counts, rounding to nearest."""
    if target_rows <= 0:
        return 0
    if source_rows <= 1:
        return clamp_int(source_offset, 0, target_rows - 1)
    clamped = clamp_int(source_offset, 0, source_rows - 1)
    mapped = (clamped * (target_rows - 1) + (source_rows - 1) // 2) // (source_rows - 1)
    return clamp_int(mapped, 0, target_rows - 1)
