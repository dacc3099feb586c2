"""Turn a :class:`DiffViewState` into terminal cell draw instructions.

:func:`render_diff_view` is pure: it reads the state and returns a list of
:class:`FillRect` / :class:`DrawGlyph` instructions. A :class:`DrawSurface`
replays them; :class:`CellCanvas` is the in-memory surface used by the
print command and the textual widget.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from rich.segment import Segment
from rich.style import Style
from rich.text import Text
from textual.strip import Strip

from ripdiff.core.layout import (
    DIVIDER_GLYPH,
    HATCH_GLYPH,
    PaneLayout,
    rendered_gutter_width,
    side_by_side_pane_layout,
    wrapped_line_at_row,
    wrapped_side_cell_row_count,
    wrapped_side_row_at_row,
)
from ripdiff.core.render_model import build_meta_rendered_file, build_side_by_side_from_rendered, line_number_text
from ripdiff.core.rendered import (
    RenderedDiffLine,
    RenderedFile,
    RenderedLineKind,
    RenderedSegment,
    RenderedSideCell,
    SideBySideRenderedFile,
    SideBySideRenderedRow,
    TokenRole,
)
from ripdiff.core.theme import DiffPalette, IntralineStyle
from ripdiff.core.view_state import DiffViewState
from ripdiff.utils.text_cells import grapheme_width, graphemes_with_widths, iter_graphemes

EMPTY_VIEW_MESSAGE = "No diff content to display."


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersect(self, other: "Rect") -> "Rect":
        x = max(self.x, other.x)
        y = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        return Rect(x, y, max(0, right - x), max(0, bottom - y))

    def contains_span(self, x: int, y: int, width: int) -> bool:
        return self.y <= y < self.bottom and x >= self.x and x + width <= self.right


@dataclass(frozen=True)
class FillRect:
    x: int
    y: int
    width: int
    height: int
    style: Style


@dataclass(frozen=True)
class DrawGlyph:
    x: int
    y: int
    text: str
    style: Style
    width: int = 1


DrawInstruction = Union[FillRect, DrawGlyph]


class DrawSurface(Protocol):
    @property
    def clip(self) -> Rect:
        ...

    def fill_rect(self, x: int, y: int, width: int, height: int, style: Style) -> None:
        ...

    def draw_glyph(self, x: int, y: int, text: str, style: Style) -> None:
        ...


def paint(instructions: Sequence[DrawInstruction], surface: DrawSurface) -> None:
    """Replay draw instructions onto a surface."""
    for instruction in instructions:
        if isinstance(instruction, FillRect):
            surface.fill_rect(instruction.x, instruction.y, instruction.width, instruction.height, instruction.style)
        else:
            surface.draw_glyph(instruction.x, instruction.y, instruction.text, instruction.style)


def horizontal_scroll_x_for_line(kind: RenderedLineKind, scroll_x: int) -> int:
    """Hunk headers stay pinned to the left edge."""
    if kind == RenderedLineKind.HUNK_HEADER:
        return 0
    return scroll_x


def line_number_roles(kind: RenderedLineKind) -> Tuple[TokenRole, TokenRole]:
    if kind == RenderedLineKind.ADD:
        return TokenRole.LINE_NUMBER_ADD, TokenRole.LINE_NUMBER_ADD
    if kind == RenderedLineKind.REMOVE:
        return TokenRole.LINE_NUMBER_REMOVE, TokenRole.LINE_NUMBER_REMOVE
    return TokenRole.OLD_LINE_NUMBER, TokenRole.NEW_LINE_NUMBER


def side_line_number_role(kind: RenderedLineKind, is_left: bool) -> TokenRole:
    if kind == RenderedLineKind.ADD:
        return TokenRole.LINE_NUMBER_ADD
    if kind == RenderedLineKind.REMOVE:
        return TokenRole.LINE_NUMBER_REMOVE
    return TokenRole.OLD_LINE_NUMBER if is_left else TokenRole.NEW_LINE_NUMBER


def prefix_role(kind: RenderedLineKind) -> TokenRole:
    if kind == RenderedLineKind.ADD:
        return TokenRole.PREFIX_ADD
    if kind == RenderedLineKind.REMOVE:
        return TokenRole.PREFIX_REMOVE
    return TokenRole.PREFIX_CONTEXT


def display_prefix(kind: RenderedLineKind, prefix: str, hide_change_signs: bool) -> str:
    if hide_change_signs and kind in (RenderedLineKind.ADD, RenderedLineKind.REMOVE):
        return " "
    return prefix or " "


def divider_overlay_layout(panes: PaneLayout, viewport_width: int) -> Tuple[str, int, str, int]:
    """Texts and positions of the ``← N `` / ``N →`` pane size labels."""
    if viewport_width <= 0:
        return "", 0, "", 0

    left_number = str(max(0, panes.left_pane_width))
    right_text = str(max(0, panes.right_pane_width))

    available_left = panes.divider_x
    if available_left <= 0:
        left_text = ""
        left_x = panes.divider_x
    else:
        # Keep the rightmost digits when space is short.
        use_padding = available_left >= 2
        digit_slots = available_left - 1 if use_padding else available_left
        digit_slots = min(digit_slots, len(left_number))
        left_text = left_number[len(left_number) - digit_slots :] if digit_slots > 0 else ""
        if left_text:
            with_arrow = "← " + left_text
            required = len(with_arrow) + (1 if use_padding else 0)
            if required <= available_left:
                left_text = with_arrow
        if use_padding and left_text:
            left_text += " "
        left_x = panes.divider_x - len(left_text)

    right_x = panes.divider_x + panes.divider_width
    if right_x >= viewport_width:
        return left_text, left_x, "", right_x
    max_right = viewport_width - right_x
    with_arrow = right_text + " →"
    if len(with_arrow) <= max_right:
        right_text = with_arrow
    elif len(right_text) > max_right:
        right_text = right_text[:max_right]
    return left_text, left_x, right_text, right_x


class _Painter:
    """Collects instructions, dropping anything outside the clip rect."""

    def __init__(self, palette: DiffPalette, clip: Rect, intraline_style: IntralineStyle):
        self.palette = palette
        self.clip = clip
        self.intraline_style = intraline_style
        self.instructions: List[DrawInstruction] = []

    def fill(self, x: int, y: int, width: int, height: int, style: Optional[Style]) -> None:
        if style is None or width <= 0 or height <= 0:
            return
        area = Rect(x, y, width, height).intersect(self.clip)
        if area.width <= 0 or area.height <= 0:
            return
        self.instructions.append(FillRect(area.x, area.y, area.width, area.height, style))

    def glyph(self, x: int, y: int, text: str, style: Style, width: int) -> None:
        if self.clip.contains_span(x, y, width):
            self.instructions.append(DrawGlyph(x, y, text, style, width))

    def text(self, x: int, y: int, value: str, style: Style, limit: int) -> None:
        """Draw ``value`` from ``x``, stopping before column ``limit``."""
        for grapheme, width in graphemes_with_widths(value):
            if x + width > limit:
                return
            if grapheme != " ":
                self.glyph(x, y, grapheme, style, width)
            x += width

    def role_text(self, x: int, y: int, value: str, role: TokenRole, limit: int) -> None:
        self.text(x, y, value, self.palette.style_for_role(role), limit)

    def segments(
        self,
        y: int,
        start_x: int,
        visible_width: int,
        segments: Sequence[RenderedSegment],
        scroll_x: int,
    ) -> None:
        if visible_width <= 0:
            return
        end_x = start_x + visible_width
        column = 0
        for segment in segments:
            style = self.palette.style_for_segment(segment, self.intraline_style)
            for grapheme in iter_graphemes(segment.text):
                width = grapheme_width(grapheme)
                next_column = column + width
                if next_column <= scroll_x:
                    column = next_column
                    continue
                if column >= scroll_x + visible_width:
                    return
                draw_x = start_x + (column - scroll_x)
                # A wide cluster straddling either edge is skipped, never split.
                if draw_x >= start_x and draw_x + width <= end_x:
                    self.glyph(draw_x, y, grapheme, style, width)
                column = next_column


def _content_models(state: DiffViewState) -> Tuple[RenderedFile, SideBySideRenderedFile]:
    rendered = state.rendered
    if rendered is None:
        rendered = build_meta_rendered_file("Diff", [EMPTY_VIEW_MESSAGE])
    side = state.side_by_side
    if side is None:
        side = build_side_by_side_from_rendered(rendered)
    return rendered, side


def render_diff_view(
    state: DiffViewState,
    palette: DiffPalette,
    width: int,
    height: int,
    *,
    clip: Optional[Rect] = None,
    now: Optional[float] = None,
    intraline_style: IntralineStyle = IntralineStyle.BACKGROUND,
) -> List[DrawInstruction]:
    """Draw the visible rows of ``state`` into a ``width`` x ``height`` area."""
    if width <= 0 or height <= 0:
        return []
    bounds = Rect(0, 0, width, height)
    area = bounds if clip is None else bounds.intersect(clip)
    if area.width <= 0 or area.height <= 0:
        return []

    painter = _Painter(palette, area, intraline_style)
    painter.fill(0, 0, width, height, palette.base)

    rendered, side = _content_models(state)
    scroll_y = max(0, state.scroll_y)
    scroll_x = 0 if state.hard_wrap else max(0, state.scroll_x)
    visible_start, visible_end = area.y, area.bottom

    if state.is_side_by_side:
        _render_side_by_side(painter, state, side, width, visible_start, visible_end, scroll_y, scroll_x, now)
    else:
        _render_unified(painter, state, rendered, width, visible_start, visible_end, scroll_y, scroll_x)
    return painter.instructions


def _render_unified(
    painter: _Painter,
    state: DiffViewState,
    rendered: RenderedFile,
    width: int,
    visible_start: int,
    visible_end: int,
    scroll_y: int,
    scroll_x: int,
) -> None:
    palette = painter.palette
    gutter_width = rendered_gutter_width(rendered, state.hide_change_signs)
    wrap_width = max(1, width - gutter_width)

    for row in range(visible_start, visible_end):
        content_row = scroll_y + row
        continuation = False
        if state.hard_wrap:
            found = wrapped_line_at_row(rendered.lines, wrap_width, content_row)
            if found is None:
                continue
            line, wrap_row = found
            content_scroll = wrap_row * wrap_width
            continuation = wrap_row > 0
        else:
            if content_row >= len(rendered.lines):
                continue
            line = rendered.lines[content_row]
            content_scroll = horizontal_scroll_x_for_line(line.kind, scroll_x)

        painter.fill(0, row, width, 1, palette.line_style(line.kind))
        painter.fill(0, row, min(gutter_width, width), 1, palette.gutter_style(line.kind))
        _render_unified_gutter(painter, state, rendered, row, line, continuation, width)
        if gutter_width < width:
            painter.segments(row, gutter_width, width - gutter_width, line.segments, content_scroll)


def _render_unified_gutter(
    painter: _Painter,
    state: DiffViewState,
    rendered: RenderedFile,
    row: int,
    line: RenderedDiffLine,
    continuation: bool,
    width: int,
) -> None:
    old_width = max(1, rendered.old_num_width)
    new_width = max(1, rendered.new_num_width)
    old_number = 0 if continuation else line.old_line
    new_number = 0 if continuation else line.new_line
    prefix = " " if continuation else line.prefix
    old_role, new_role = line_number_roles(line.kind)

    x = 0
    painter.role_text(x, row, line_number_text(old_number, old_width), old_role, width)
    x += old_width + 1
    painter.role_text(x, row, line_number_text(new_number, new_width), new_role, width)
    x += new_width + 1
    if not state.hide_change_signs:
        shown = display_prefix(line.kind, prefix, state.hide_change_signs)
        painter.role_text(x, row, shown, prefix_role(line.kind), width)


def _render_side_by_side(
    painter: _Painter,
    state: DiffViewState,
    side: SideBySideRenderedFile,
    width: int,
    visible_start: int,
    visible_end: int,
    scroll_y: int,
    scroll_x: int,
    now: Optional[float],
) -> None:
    palette = painter.palette
    panes = side_by_side_pane_layout(width, side, state.hide_change_signs, state.split_ratio)

    for row in range(visible_start, visible_end):
        content_row = scroll_y + row
        wrap_row = 0
        if state.hard_wrap:
            found = wrapped_side_row_at_row(side.rows, panes, width, content_row)
            if found is None:
                continue
            item, wrap_row = found
        else:
            if content_row >= len(side.rows):
                continue
            item = side.rows[content_row]

        if item.is_shared:
            line = item.shared
            painter.fill(0, row, width, 1, palette.line_style(line.kind))
            if state.hard_wrap:
                content_scroll = wrap_row * max(1, width)
            else:
                content_scroll = horizontal_scroll_x_for_line(line.kind, scroll_x)
            painter.segments(row, 0, width, line.segments, content_scroll)
            continue

        _render_side_cell(
            painter, state, row, panes.left_pane_x, panes.left_pane_width, panes.left_gutter_width,
            max(1, side.left_num_width), item.left, True, wrap_row, scroll_x,
        )
        _render_side_cell(
            painter, state, row, panes.right_pane_x, panes.right_pane_width, panes.right_gutter_width,
            max(1, side.right_num_width), item.right, False, wrap_row, scroll_x,
        )
        _render_side_divider(painter, state, row, panes, item, width)

    if state.divider_overlay_visible(now):
        overlay_row = visible_start + (visible_end - visible_start) // 3
        _render_divider_overlay(painter, panes, overlay_row, width)


def _render_side_cell(
    painter: _Painter,
    state: DiffViewState,
    row: int,
    pane_x: int,
    pane_width: int,
    gutter_width: int,
    num_width: int,
    cell: Optional[RenderedSideCell],
    is_left: bool,
    wrap_row: int,
    scroll_x: int,
) -> None:
    if pane_width <= 0:
        return
    palette = painter.palette
    pane_end = pane_x + pane_width

    if cell is None:
        hatch = palette.style_for_role(TokenRole.HATCH)
        for x in range(pane_x, pane_end):
            painter.glyph(x, row, HATCH_GLYPH, hatch, 1)
        return

    painter.fill(pane_x, row, pane_width, 1, palette.line_style(cell.kind))
    painter.fill(pane_x, row, min(gutter_width, pane_width), 1, palette.gutter_style(cell.kind))

    visible_width = max(1, pane_width - gutter_width)
    if state.hard_wrap and wrap_row >= wrapped_side_cell_row_count(cell, visible_width):
        return

    continuation = wrap_row > 0
    number = 0 if continuation else cell.line_number
    prefix = " " if continuation else cell.prefix

    x = pane_x
    painter.role_text(x, row, line_number_text(number, num_width), side_line_number_role(cell.kind, is_left), pane_end)
    x += num_width + 1
    if not state.hide_change_signs:
        shown = display_prefix(cell.kind, prefix, state.hide_change_signs)
        painter.role_text(x, row, shown, prefix_role(cell.kind), pane_end)

    content_scroll = wrap_row * visible_width if state.hard_wrap else scroll_x
    painter.segments(row, pane_x + gutter_width, pane_width - gutter_width, cell.segments, content_scroll)


def _render_side_divider(
    painter: _Painter,
    state: DiffViewState,
    row: int,
    panes: PaneLayout,
    item: SideBySideRenderedRow,
    width: int,
) -> None:
    if panes.divider_width <= 0 or not 0 <= panes.divider_x < width:
        return
    palette = painter.palette
    if item.right is None:
        style = palette.style_for_role(TokenRole.HATCH)
        if state.divider_dragging:
            style = style + palette.divider_active
        painter.glyph(panes.divider_x, row, HATCH_GLYPH, style, 1)
        return

    style = palette.divider_active if state.divider_dragging else palette.divider
    gutter = palette.gutter_style(item.right.kind)
    if gutter is not None:
        style = gutter + style
    painter.glyph(panes.divider_x, row, DIVIDER_GLYPH, style, 1)


def _render_divider_overlay(painter: _Painter, panes: PaneLayout, row: int, width: int) -> None:
    if panes.divider_width <= 0:
        return
    left_text, left_x, right_text, right_x = divider_overlay_layout(panes, width)
    style = painter.palette.overlay
    if left_text:
        painter.fill(left_x, row, len(left_text), 1, style)
        painter.text(left_x, row, left_text, style, width)
    if 0 <= panes.divider_x < width:
        painter.fill(panes.divider_x, row, 1, 1, style)
        painter.glyph(panes.divider_x, row, DIVIDER_GLYPH, style, 1)
    if right_text:
        painter.fill(right_x, row, len(right_text), 1, style)
        painter.text(right_x, row, right_text, style, width)


_CONTINUATION = ""


class CellCanvas:
    """A grid of styled terminal cells implementing :class:`DrawSurface`.

    Wide glyphs occupy their cell plus a continuation cell to the right.
    """

    def __init__(self, width: int, height: int, style: Optional[Style] = None):
        self.width = max(0, width)
        self.height = max(0, height)
        blank = style or Style.null()
        self._cells: List[List[Tuple[str, Style]]] = [
            [(" ", blank) for _ in range(self.width)] for _ in range(self.height)
        ]

    @property
    def clip(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    def cell(self, x: int, y: int) -> Tuple[str, Style]:
        return self._cells[y][x]

    def _release(self, x: int, y: int) -> None:
        """Blank out any wide glyph that overlaps column ``x``."""
        row = self._cells[y]
        text = row[x][0]
        if text == _CONTINUATION and x > 0:
            _, head_style = row[x - 1]
            row[x - 1] = (" ", head_style)
        elif grapheme_width(text) == 2 and x + 1 < self.width and row[x + 1][0] == _CONTINUATION:
            row[x + 1] = (" ", row[x + 1][1])

    def fill_rect(self, x: int, y: int, width: int, height: int, style: Style) -> None:
        area = Rect(x, y, width, height).intersect(self.clip)
        for row in range(area.y, area.bottom):
            for col in range(area.x, area.right):
                self._release(col, row)
                _, existing = self._cells[row][col]
                self._cells[row][col] = (" ", existing + style)

    def draw_glyph(self, x: int, y: int, text: str, style: Style) -> None:
        width = grapheme_width(text)
        if not self.clip.contains_span(x, y, width):
            return
        row = self._cells[y]
        for col in range(x, x + width):
            self._release(col, y)
        _, existing = row[x]
        combined = Style(bgcolor=existing.bgcolor) + style if existing.bgcolor else style
        row[x] = (text, combined)
        for col in range(x + 1, x + width):
            row[col] = (_CONTINUATION, combined)

    def _row_runs(self, y: int) -> List[Tuple[str, Style]]:
        runs: List[Tuple[str, Style]] = []
        for text, style in self._cells[y]:
            if text == _CONTINUATION:
                continue
            if runs and runs[-1][1] == style:
                runs[-1] = (runs[-1][0] + text, style)
            else:
                runs.append((text, style))
        return runs

    def to_lines(self) -> List[Text]:
        lines: List[Text] = []
        for y in range(self.height):
            line = Text(no_wrap=True)
            for text, style in self._row_runs(y):
                line.append(text, style)
            lines.append(line)
        return lines

    def to_strips(self) -> List[Strip]:
        return [
            Strip([Segment(text, style) for text, style in self._row_runs(y)], self.width)
            for y in range(self.height)
        ]

    def plain_text(self) -> str:
        rows = []
        for y in range(self.height):
            rows.append("".join(text for text, _ in self._cells[y]).rstrip())
        return "\n".join(rows)


def render_to_canvas(
    state: DiffViewState,
    palette: DiffPalette,
    width: int,
    height: int,
    *,
    now: Optional[float] = None,
    intraline_style: IntralineStyle = IntralineStyle.BACKGROUND,
) -> CellCanvas:
    """Render ``state`` into a fresh :class:`CellCanvas`."""
    canvas = CellCanvas(width, height)
    paint(render_diff_view(state, palette, width, height, now=now, intraline_style=intraline_style), canvas)
    return canvas
