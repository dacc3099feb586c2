"""Pure layout math for the unified and side-by-side diff views."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ripdiff.core.rendered import (
    RenderedDiffLine,
    RenderedFile,
    RenderedSideCell,
    SideBySideRenderedFile,
    SideBySideRenderedRow,
)

DIVIDER_WIDTH = 1
HATCH_GLYPH = "╱"
DIVIDER_GLYPH = "▏"


@dataclass(frozen=True)
class DividerMetrics:
    """Bounds for the divider offset, measured from the left edge."""

    available: int = 0
    min_offset: int = 0
    max_offset: int = 0


@dataclass(frozen=True)
class PaneLayout:
    left_pane_x: int = 0
    left_pane_width: int = 0
    left_gutter_width: int = 0
    left_content_width: int = 0
    divider_x: int = 0
    divider_width: int = 0
    right_pane_x: int = 0
    right_pane_width: int = 0
    right_gutter_width: int = 0
    right_content_width: int = 0


def clamp_int(value: int, lower: int, upper: int) -> int:
    if value < lower:
        return lower
    if value > upper:
        return upper
    return value


def clamp_split_ratio(ratio: float) -> float:
    if ratio < 0:
        return 0.0
    if ratio > 1:
        return 1.0
    return ratio


def rendered_gutter_width(rendered: Optional[RenderedFile], hide_change_signs: bool) -> int:
    """Width of ``old new +`` gutter columns in the unified layout."""
    if rendered is None:
        return 4 if hide_change_signs else 6
    width = max(1, rendered.old_num_width) + 1 + max(1, rendered.new_num_width) + 1
    if not hide_change_signs:
        width += 2
    return width


def side_gutter_width(num_width: int, hide_signs: bool) -> int:
    width = max(1, num_width) + 1
    if not hide_signs:
        width += 2
    return width


def _num_widths(side: Optional[SideBySideRenderedFile]) -> Tuple[int, int]:
    if side is None:
        return 1, 1
    return max(1, side.left_num_width), max(1, side.right_num_width)


def side_by_side_divider_metrics(
    total_width: int, side: Optional[SideBySideRenderedFile], hide_signs: bool
) -> DividerMetrics:
    if total_width <= 0:
        return DividerMetrics()
    left_num, right_num = _num_widths(side)
    available = max(0, total_width - DIVIDER_WIDTH)
    left_min = side_gutter_width(left_num, hide_signs) + 1
    right_min = side_gutter_width(right_num, hide_signs) + 1
    if left_min + right_min > available:
        center = available // 2
        return DividerMetrics(available=available, min_offset=center, max_offset=center)
    return DividerMetrics(available=available, min_offset=left_min, max_offset=available - right_min)


def side_by_side_pane_layout(
    total_width: int,
    side: Optional[SideBySideRenderedFile],
    hide_signs: bool,
    ratio: float,
) -> PaneLayout:
    """Split ``total_width`` into left pane, divider column and right pane."""
    if total_width <= 0:
        return PaneLayout()
    left_num, right_num = _num_widths(side)
    metrics = side_by_side_divider_metrics(total_width, side, hide_signs)
    available = metrics.available

    offset = available // 2
    if available > 0:
        offset = int(math.floor(available * clamp_split_ratio(ratio) + 1e-9))
    offset = clamp_int(offset, metrics.min_offset, metrics.max_offset)

    left_gutter = side_gutter_width(left_num, hide_signs)
    right_gutter = side_gutter_width(right_num, hide_signs)
    left_width = offset
    right_width = available - left_width

    def content_width(pane: int, gutter: int) -> int:
        if pane <= 0:
            return 0
        return max(1, pane - gutter)

    return PaneLayout(
        left_pane_x=0,
        left_pane_width=left_width,
        left_gutter_width=left_gutter,
        left_content_width=content_width(left_width, left_gutter),
        divider_x=offset,
        divider_width=DIVIDER_WIDTH,
        right_pane_x=offset + DIVIDER_WIDTH,
        right_pane_width=right_width,
        right_gutter_width=right_gutter,
        right_content_width=content_width(right_width, right_gutter),
    )


def divider_ratio_for_pointer(
    pointer_x: int,
    drag_offset: int,
    total_width: int,
    side: Optional[SideBySideRenderedFile],
    hide_signs: bool,
) -> float:
    """Convert a dragged pointer column into a split ratio."""
    metrics = side_by_side_divider_metrics(total_width, side, hide_signs)
    offset = clamp_int(pointer_x - drag_offset, metrics.min_offset, metrics.max_offset)
    if metrics.available <= 0:
        return 0.5
    return offset / metrics.available


def rendered_max_content_width(
    rendered: Optional[RenderedFile], side: Optional[SideBySideRenderedFile]
) -> int:
    width = 0
    if rendered is not None:
        width = rendered.max_content_width
    if side is not None:
        width = max(width, side.max_content_width)
    return width


def side_by_side_max_scroll_x(
    side: Optional[SideBySideRenderedFile], hide_signs: bool, viewport_width: int, ratio: float
) -> int:
    if side is None or viewport_width <= 0:
        return 0
    panes = side_by_side_pane_layout(viewport_width, side, hide_signs, ratio)
    left_scroll = max(0, max(1, side.left_max_content_width) - panes.left_content_width)
    right_scroll = max(0, max(1, side.right_max_content_width) - panes.right_content_width)
    return max(left_scroll, right_scroll)


def side_by_side_state_gutter_width(
    rendered: Optional[RenderedFile],
    side: Optional[SideBySideRenderedFile],
    hide_signs: bool,
    viewport_width: int,
    ratio: float,
) -> int:
    """Gutter width that makes the unified scroll formula yield the pane scroll limit.

    ``max_content - (viewport - gutter)`` then equals
    :func:`side_by_side_max_scroll_x`.
    """
    if viewport_width <= 0:
        return 0
    max_content = rendered_max_content_width(rendered, side)
    max_scroll = side_by_side_max_scroll_x(side, hide_signs, viewport_width, ratio)
    visible = clamp_int(max_content - max_scroll, 0, viewport_width)
    return max(0, viewport_width - visible)


def wrapped_line_row_count(line: RenderedDiffLine, wrap_width: int) -> int:
    if wrap_width <= 0 or line.content_width <= 0:
        return 1
    return max(1, -(-line.content_width // wrap_width))


def wrapped_content_height(lines: Sequence[RenderedDiffLine], wrap_width: int) -> int:
    if not lines:
        return 1
    return max(1, sum(wrapped_line_row_count(line, wrap_width) for line in lines))


def wrapped_line_at_row(
    lines: Sequence[RenderedDiffLine], wrap_width: int, row: int
) -> Optional[Tuple[RenderedDiffLine, int]]:
    """Return ``(line, wrap_offset)`` for a display row, or ``None`` past the end."""
    if row < 0:
        return None
    remaining = row
    for line in lines:
        count = wrapped_line_row_count(line, wrap_width)
        if remaining < count:
            return line, remaining
        remaining -= count
    return None


def wrapped_side_cell_row_count(cell: Optional[RenderedSideCell], wrap_width: int) -> int:
    if cell is None or wrap_width <= 0 or cell.content_width <= 0:
        return 1
    return max(1, -(-cell.content_width // wrap_width))


def wrapped_side_row_count(row: SideBySideRenderedRow, panes: PaneLayout, full_width: int) -> int:
    if row.is_shared:
        return wrapped_line_row_count(row.shared, max(1, full_width))
    left = wrapped_side_cell_row_count(row.left, max(1, panes.left_content_width))
    right = wrapped_side_cell_row_count(row.right, max(1, panes.right_content_width))
    return max(left, right)


def wrapped_side_content_height(
    rows: Sequence[SideBySideRenderedRow], panes: PaneLayout, full_width: int
) -> int:
    if not rows:
        return 1
    return max(1, sum(wrapped_side_row_count(row, panes, full_width) for row in rows))


def wrapped_side_row_at_row(
    rows: Sequence[SideBySideRenderedRow], panes: PaneLayout, full_width: int, row_index: int
) -> Optional[Tuple[SideBySideRenderedRow, int]]:
    if row_index < 0:
        return None
    remaining = row_index
    for row in rows:
        count = wrapped_side_row_count(row, panes, full_width)
        if remaining < count:
            return row, remaining
        remaining -= count
    return None
