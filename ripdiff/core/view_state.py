"""Scroll, viewport and divider state for one diff view.

The state owns no rendering; hosts call :meth:`DiffViewState.set_viewport`
with the drawable size and then hand the state to the cell renderer.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ripdiff.core.anchors import (
    anchor_for_rendered_line,
    anchor_for_side_row,
    find_rendered_row_for_anchor,
    find_side_row_for_anchor,
    map_offset_by_ratio,
)
from ripdiff.core.layout import (
    PaneLayout,
    clamp_int,
    clamp_split_ratio,
    divider_ratio_for_pointer,
    rendered_gutter_width,
    rendered_max_content_width,
    side_by_side_divider_metrics,
    side_by_side_pane_layout,
    side_by_side_state_gutter_width,
    wrapped_content_height,
    wrapped_side_content_height,
)
from ripdiff.core.render_model import build_side_by_side_from_rendered
from ripdiff.core.rendered import RenderedFile, SideBySideRenderedFile
from ripdiff.utils.log import get_logger

logger = get_logger()

OVERLAY_HOLD_SECONDS = 1.0
DEFAULT_SPLIT_RATIO = 0.5


class LayoutMode(str, Enum):
    UNIFIED = "unified"
    SIDE_BY_SIDE = "side_by_side"

    @property
    def label(self) -> str:
        return "Side-by-side" if self == LayoutMode.SIDE_BY_SIDE else "Unified"


@dataclass(frozen=True)
class _ToggleMemory:
    source_mode: LayoutMode
    target_mode: LayoutMode
    source_offset: int
    target_offset: int
    rendered_id: int


class DiffViewState:
    """Mutable view state for the diff viewer.

    Every mutation clamps ``scroll_x``/``scroll_y`` into range, so any
    sequence of operations leaves the state valid.
    """

    def __init__(
        self,
        rendered: Optional[RenderedFile] = None,
        side_by_side: Optional[SideBySideRenderedFile] = None,
        *,
        layout_mode: LayoutMode = LayoutMode.UNIFIED,
        hard_wrap: bool = False,
        hide_change_signs: bool = False,
        split_ratio: float = DEFAULT_SPLIT_RATIO,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.rendered = rendered
        self.side_by_side = side_by_side
        if self.side_by_side is None and rendered is not None:
            self.side_by_side = build_side_by_side_from_rendered(rendered)
        self.scroll_x = 0
        self.scroll_y = 0
        self.viewport_width = 0
        self.viewport_height = 0
        self.split_ratio = clamp_split_ratio(split_ratio)
        self.layout_mode = LayoutMode(layout_mode)
        self.hard_wrap = hard_wrap
        self.hide_change_signs = hide_change_signs
        self.on_change = on_change

        self.divider_dragging = False
        self.divider_drag_offset = 0
        self.overlay_visible_until = 0.0
        self.overlay_ping = 0

        self._gutter_override: Optional[int] = None
        self._toggle_memory: Optional[_ToggleMemory] = None
        self._overlay_lock = threading.Lock()
        self._overlay_timer: Optional[threading.Timer] = None

    # Content

    def set_rendered(self, rendered: RenderedFile) -> None:
        self.set_rendered_pair(rendered, build_side_by_side_from_rendered(rendered))

    def set_rendered_pair(self, rendered: RenderedFile, side_by_side: SideBySideRenderedFile) -> None:
        """Replace both models; scroll returns to the origin, the split ratio is kept."""
        self.rendered = rendered
        self.side_by_side = side_by_side
        self.divider_dragging = False
        self.divider_drag_offset = 0
        self.overlay_visible_until = 0.0
        self._stop_overlay_timer()
        self._toggle_memory = None
        self.scroll_x = 0
        self.scroll_y = 0
        self.clamp()

    @property
    def is_side_by_side(self) -> bool:
        return self.layout_mode == LayoutMode.SIDE_BY_SIDE

    # Geometry

    def set_viewport(self, width: int, height: int, gutter_width: Optional[int] = None) -> None:
        self.viewport_width = max(0, width)
        self.viewport_height = max(0, height)
        self._gutter_override = gutter_width
        self.clamp()

    def gutter_width(self) -> int:
        if self._gutter_override is not None:
            return max(0, self._gutter_override)
        if self.is_side_by_side:
            return side_by_side_state_gutter_width(
                self.rendered,
                self.side_by_side,
                self.hide_change_signs,
                self.viewport_width,
                self.split_ratio,
            )
        return rendered_gutter_width(self.rendered, self.hide_change_signs)

    def pane_layout(self) -> PaneLayout:
        return side_by_side_pane_layout(
            self.viewport_width, self.side_by_side, self.hide_change_signs, self.split_ratio
        )

    def unified_wrap_width(self) -> int:
        return max(1, self.viewport_width - rendered_gutter_width(self.rendered, self.hide_change_signs))

    def total_display_rows(self, mode: Optional[LayoutMode] = None) -> int:
        """Number of display rows for ``mode`` (default: current), honouring hard wrap."""
        mode = self.layout_mode if mode is None else mode
        if mode == LayoutMode.SIDE_BY_SIDE:
            side = self.side_by_side
            if side is None or not side.rows:
                return 0
            if not self.hard_wrap or self.viewport_width <= 0:
                return len(side.rows)
            return wrapped_side_content_height(side.rows, self.pane_layout(), self.viewport_width)

        rendered = self.rendered
        if rendered is None or not rendered.lines:
            return 0
        if not self.hard_wrap or self.viewport_width <= 0:
            return len(rendered.lines)
        return wrapped_content_height(rendered.lines, self.unified_wrap_width())

    def max_scroll_y(self) -> int:
        if self.viewport_height <= 0:
            return 0
        return max(0, self.total_display_rows() - self.viewport_height)

    def max_scroll_x(self) -> int:
        if self.hard_wrap or self.viewport_width <= 0:
            return 0
        max_content = rendered_max_content_width(self.rendered, self.side_by_side)
        if max_content <= 0:
            return 0
        code_width = max(0, self.viewport_width - self.gutter_width())
        return max(0, max_content - code_width)

    # Scrolling

    def clamp(self) -> None:
        self.scroll_y = clamp_int(self.scroll_y, 0, self.max_scroll_y())
        self.scroll_x = clamp_int(self.scroll_x, 0, self.max_scroll_x())

    def move_y(self, delta: int) -> None:
        self.scroll_y += delta
        self.clamp()

    def move_x(self, delta: int) -> None:
        self.scroll_x += delta
        self.clamp()

    def _page_step(self) -> int:
        if self.viewport_height <= 1:
            return 1
        return self.viewport_height - 1

    def _half_page_step(self) -> int:
        return max(1, self.viewport_height // 2)

    def page_up(self) -> None:
        self.move_y(-self._page_step())

    def page_down(self) -> None:
        self.move_y(self._page_step())

    def half_page_up(self) -> None:
        self.move_y(-self._half_page_step())

    def half_page_down(self) -> None:
        self.move_y(self._half_page_step())

    def go_top(self) -> None:
        self.scroll_y = 0
        self.clamp()

    def go_bottom(self) -> None:
        self.scroll_y = self.max_scroll_y()
        self.clamp()

    # Divider

    def set_split_ratio(self, ratio: float) -> None:
        self.split_ratio = clamp_split_ratio(ratio)
        self.clamp()

    def start_divider_drag(self, pointer_x: int) -> bool:
        """Begin a drag when ``pointer_x`` lands on the divider column."""
        if not self.is_side_by_side or self.side_by_side is None or self.viewport_width <= 0:
            return False
        panes = self.pane_layout()
        if panes.divider_width <= 0:
            return False
        if not panes.divider_x <= pointer_x < panes.divider_x + panes.divider_width:
            return False
        self.divider_dragging = True
        self.divider_drag_offset = pointer_x - panes.divider_x
        return True

    def drag_divider_to(self, pointer_x: int) -> None:
        if not self.divider_dragging:
            return
        if not self.is_side_by_side or self.side_by_side is None:
            self.stop_divider_drag()
            return
        ratio = divider_ratio_for_pointer(
            pointer_x,
            self.divider_drag_offset,
            self.viewport_width,
            self.side_by_side,
            self.hide_change_signs,
        )
        self.set_split_ratio(ratio)
        self.mark_divider_resized()

    def stop_divider_drag(self) -> bool:
        """End a drag; returns whether one was in progress."""
        was_dragging = self.divider_dragging
        self.divider_dragging = False
        self.divider_drag_offset = 0
        if was_dragging:
            self.mark_divider_resized()
        return was_dragging

    def shift_split(self, delta: int) -> bool:
        """Move the divider ``delta`` columns; returns whether it moved."""
        if delta == 0 or not self.is_side_by_side or self.side_by_side is None:
            return False
        if self.viewport_width <= 0:
            return False
        metrics = side_by_side_divider_metrics(self.viewport_width, self.side_by_side, self.hide_change_signs)
        current = self.pane_layout().divider_x
        target = clamp_int(current + delta, metrics.min_offset, metrics.max_offset)
        if target == current:
            return False
        ratio = target / metrics.available if metrics.available > 0 else DEFAULT_SPLIT_RATIO
        self.set_split_ratio(ratio)
        self.mark_divider_resized()
        return True

    def reset_split(self) -> bool:
        if not self.is_side_by_side or self.split_ratio == DEFAULT_SPLIT_RATIO:
            return False
        self.set_split_ratio(DEFAULT_SPLIT_RATIO)
        self.mark_divider_resized()
        return True

    def mark_divider_resized(self, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        self.overlay_visible_until = now + OVERLAY_HOLD_SECONDS
        self._schedule_overlay_refresh()

    def divider_overlay_visible(self, now: Optional[float] = None) -> bool:
        if self.divider_dragging:
            return True
        if self.overlay_visible_until <= 0:
            return False
        now = time.monotonic() if now is None else now
        return now < self.overlay_visible_until

    def _schedule_overlay_refresh(self) -> None:
        with self._overlay_lock:
            if self._overlay_timer is not None:
                self._overlay_timer.cancel()
            timer = threading.Timer(OVERLAY_HOLD_SECONDS, self._on_overlay_expired)
            timer.daemon = True
            self._overlay_timer = timer
            timer.start()

    def _on_overlay_expired(self) -> None:
        with self._overlay_lock:
            self.overlay_ping += 1
            if self._overlay_timer is threading.current_thread():
                self._overlay_timer = None
        callback = self.on_change
        if callback is not None:
            callback()

    def _stop_overlay_timer(self) -> None:
        with self._overlay_lock:
            if self._overlay_timer is not None:
                self._overlay_timer.cancel()
                self._overlay_timer = None

    def close(self) -> None:
        self._stop_overlay_timer()

    # Mode toggles

    def toggle_hard_wrap(self) -> None:
        self.hard_wrap = not self.hard_wrap
        self.scroll_x = 0
        self.clamp()

    def toggle_change_signs(self) -> None:
        self.hide_change_signs = not self.hide_change_signs
        self._gutter_override = None
        self.clamp()

    def toggle_layout_mode(self) -> LayoutMode:
        """Switch layouts while keeping the same content at the top of the view."""
        source = self.layout_mode
        target = LayoutMode.UNIFIED if source == LayoutMode.SIDE_BY_SIDE else LayoutMode.SIDE_BY_SIDE
        source_offset = self.scroll_y

        memory = self._toggle_memory
        if (
            memory is not None
            and memory.rendered_id == id(self.rendered)
            and memory.source_mode == target
            and memory.target_mode == source
            and memory.target_offset == source_offset
        ):
            target_offset = memory.source_offset
        else:
            target_offset = self._map_offset_for_toggle(source, target, source_offset)

        self.layout_mode = target
        self._gutter_override = None
        self.divider_dragging = False
        self.divider_drag_offset = 0
        self.scroll_y = target_offset
        self.clamp()

        self._toggle_memory = _ToggleMemory(
            source_mode=source,
            target_mode=target,
            source_offset=source_offset,
            target_offset=self.scroll_y,
            rendered_id=id(self.rendered),
        )
        logger.debug(
            "[view_state] Toggled layout",
            extra={"layout_mode": target.value, "source_offset": source_offset, "target_offset": self.scroll_y},
        )
        return target

    def _map_offset_for_toggle(self, source: LayoutMode, target: LayoutMode, source_offset: int) -> int:
        source_offset = max(0, source_offset)
        target_rows = self.total_display_rows(target)
        if not self.hard_wrap:
            anchor = None
            if source == LayoutMode.SIDE_BY_SIDE and self.side_by_side and self.side_by_side.rows:
                rows = self.side_by_side.rows
                anchor = anchor_for_side_row(rows[clamp_int(source_offset, 0, len(rows) - 1)])
            elif source == LayoutMode.UNIFIED and self.rendered and self.rendered.lines:
                lines = self.rendered.lines
                anchor = anchor_for_rendered_line(lines[clamp_int(source_offset, 0, len(lines) - 1)])
            if anchor is not None:
                if target == LayoutMode.SIDE_BY_SIDE and self.side_by_side is not None:
                    index = find_side_row_for_anchor(self.side_by_side.rows, anchor)
                elif target == LayoutMode.UNIFIED and self.rendered is not None:
                    index = find_rendered_row_for_anchor(self.rendered.lines, anchor)
                else:
                    index = -1
                if index >= 0:
                    return clamp_int(index, 0, max(0, target_rows - 1))
        return map_offset_by_ratio(source_offset, self.total_display_rows(source), target_rows)
