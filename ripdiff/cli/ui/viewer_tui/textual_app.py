"""Textual app for browsing a diff."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from rich.markup import escape
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.strip import Strip
from textual.widget import Widget
from textual.widgets import Static

from ripdiff.core.cell_renderer import render_to_canvas
from ripdiff.core.session import DiffSession
from ripdiff.core.theme import DiffPalette, IntralineStyle, Theme, get_theme_manager
from ripdiff.utils.log import get_logger

logger = get_logger()

WHEEL_STEP = 3
HORIZONTAL_STEP = 4


def viewer_title_text(session: DiffSession) -> Text:
    """Title bar: the viewer title plus the active file's +/- counts."""
    title = Text(session.viewer_title(), style="bold")
    file = session.active_file
    if file is not None:
        if file.additions:
            title.append(f" +{file.additions}", style="green")
        if file.deletions:
            title.append(f" -{file.deletions}", style="red")
    return title


def viewer_status_text(session: DiffSession, theme_name: str) -> str:
    state = session.view_state
    files, additions, deletions = session.totals()
    parts = [
        state.layout_mode.label,
        "wrap" if state.hard_wrap else "nowrap",
        theme_name,
        f"{files} files +{additions} -{deletions}",
        "n/p files  v layout  w wrap  t theme  q quit",
    ]
    return "  |  ".join(parts)


class DiffViewWidget(Widget, can_focus=True):
    """Draws the session's view state through the cell renderer."""

    DEFAULT_CSS = """
    DiffViewWidget {
        height: 1fr;
        width: 1fr;
    }
    """

    def __init__(
        self,
        session: DiffSession,
        palette: DiffPalette,
        intraline_style: IntralineStyle = IntralineStyle.BACKGROUND,
        *,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(id=id)
        self.session = session
        self.palette = palette
        self.intraline_style = intraline_style
        self._generation = 0
        self._strips: List[Strip] = []
        self._canvas_key: Optional[Tuple[int, int, int]] = None

    @property
    def state(self):
        return self.session.view_state

    def redraw(self) -> None:
        self._generation += 1
        self.refresh()

    def _ensure_strips(self) -> List[Strip]:
        width, height = self.size.width, self.size.height
        key = (width, height, self._generation)
        if self._canvas_key != key:
            self.state.set_viewport(width, height)
            canvas = render_to_canvas(self.state, self.palette, width, height, intraline_style=self.intraline_style)
            self._strips = canvas.to_strips()
            self._canvas_key = key
        return self._strips

    def render_line(self, y: int) -> Strip:
        strips = self._ensure_strips()
        if 0 <= y < len(strips):
            return strips[y]
        return Strip.blank(self.size.width)

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button != 1:
            return
        if self.state.start_divider_drag(event.x):
            self.capture_mouse()
            self.redraw()
            event.stop()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if not self.state.divider_dragging:
            return
        self.state.drag_divider_to(event.x)
        self.redraw()
        event.stop()

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self.state.stop_divider_drag():
            self.release_mouse()
            self.redraw()
            event.stop()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.state.move_y(WHEEL_STEP)
        self.redraw()
        event.stop()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.state.move_y(-WHEEL_STEP)
        self.redraw()
        event.stop()


class DiffViewerApp(App[None]):
    CSS = """
    #title {
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    #status {
        color: $text-muted;
        padding: 0 1;
        height: 1;
    }
    """

    BINDINGS = [
        ("q", "close", "Quit"),
        ("escape", "close", "Quit"),
        ("j", "scroll_down", "Down"),
        ("down", "scroll_down", "Down"),
        ("k", "scroll_up", "Up"),
        ("up", "scroll_up", "Up"),
        ("h", "scroll_left", "Left"),
        ("left", "scroll_left", "Left"),
        ("l", "scroll_right", "Right"),
        ("right", "scroll_right", "Right"),
        ("pagedown", "page_down", "Page down"),
        ("space", "page_down", "Page down"),
        ("pageup", "page_up", "Page up"),
        ("ctrl+d", "half_page_down", "Half page down"),
        ("ctrl+u", "half_page_up", "Half page up"),
        ("g", "go_top", "Top"),
        ("home", "go_top", "Top"),
        ("G", "go_bottom", "Bottom"),
        ("end", "go_bottom", "Bottom"),
        ("w", "toggle_wrap", "Wrap"),
        ("v", "toggle_layout", "Side-by-side"),
        ("ctrl+h", "shift_split(-1)", "Split left"),
        ("ctrl+l", "shift_split(1)", "Split right"),
        ("=", "reset_split", "Reset split"),
        ("c", "toggle_signs", "Change signs"),
        ("i", "toggle_intraline_style", "Intraline style"),
        ("t", "cycle_theme", "Theme"),
        ("n", "move_file(1)", "Next file"),
        ("]", "move_file(1)", "Next file"),
        ("p", "move_file(-1)", "Prev file"),
        ("[", "move_file(-1)", "Prev file"),
        ("s", "summary", "Summary"),
        ("r", "reload", "Reload"),
    ]

    def __init__(
        self,
        session: DiffSession,
        theme_name: str = "dark",
        intraline_style: IntralineStyle = IntralineStyle.BACKGROUND,
        reload: Optional[Callable[[], str]] = None,
    ) -> None:
        super().__init__()
        self._session = session
        self._reload = reload
        manager = get_theme_manager()
        if not manager.set_theme(theme_name):
            logger.warning("[viewer_tui] Unknown theme %r; keeping %s", theme_name, manager.current.name)
        self._palette = manager.palette
        self._intraline_style = intraline_style

    @property
    def view(self) -> DiffViewWidget:
        return self.query_one("#diff_view", DiffViewWidget)

    def compose(self) -> ComposeResult:
        yield Static("", id="title")
        yield DiffViewWidget(self._session, self._palette, self._intraline_style, id="diff_view")
        yield Static("", id="status")

    def on_mount(self) -> None:
        self._session.view_state.on_change = self._on_state_ping
        get_theme_manager().add_listener(self._on_theme_changed)
        self.view.focus()
        self._refresh_chrome()

    def on_unmount(self) -> None:
        get_theme_manager().remove_listener(self._on_theme_changed)
        self._session.view_state.on_change = None
        self._session.close()

    def _on_state_ping(self) -> None:
        # Runs on the overlay timer thread.
        self.call_from_thread(self.view.redraw)

    def _on_theme_changed(self, theme: Theme, palette: DiffPalette) -> None:
        self._palette = palette
        self.view.palette = self._palette
        self.view.redraw()

    def _refresh_chrome(self) -> None:
        self.query_one("#title", Static).update(viewer_title_text(self._session))
        status = viewer_status_text(self._session, get_theme_manager().current.name)
        self.query_one("#status", Static).update(status)

    def _after_action(self) -> None:
        self.view.redraw()
        self._refresh_chrome()

    def action_close(self) -> None:
        self.exit()

    def action_scroll_down(self) -> None:
        self._session.view_state.move_y(1)
        self._after_action()

    def action_scroll_up(self) -> None:
        self._session.view_state.move_y(-1)
        self._after_action()

    def action_scroll_left(self) -> None:
        self._session.view_state.move_x(-HORIZONTAL_STEP)
        self._after_action()

    def action_scroll_right(self) -> None:
        self._session.view_state.move_x(HORIZONTAL_STEP)
        self._after_action()

    def action_page_down(self) -> None:
        self._session.view_state.page_down()
        self._after_action()

    def action_page_up(self) -> None:
        self._session.view_state.page_up()
        self._after_action()

    def action_half_page_down(self) -> None:
        self._session.view_state.half_page_down()
        self._after_action()

    def action_half_page_up(self) -> None:
        self._session.view_state.half_page_up()
        self._after_action()

    def action_go_top(self) -> None:
        self._session.view_state.go_top()
        self._after_action()

    def action_go_bottom(self) -> None:
        self._session.view_state.go_bottom()
        self._after_action()

    def action_toggle_wrap(self) -> None:
        self._session.view_state.toggle_hard_wrap()
        self._after_action()

    def action_toggle_layout(self) -> None:
        self._session.view_state.toggle_layout_mode()
        self._after_action()

    def action_shift_split(self, delta: int) -> None:
        if self._session.view_state.shift_split(delta):
            self._after_action()

    def action_reset_split(self) -> None:
        if self._session.view_state.reset_split():
            self._after_action()

    def action_toggle_signs(self) -> None:
        self._session.view_state.toggle_change_signs()
        self._after_action()

    def action_toggle_intraline_style(self) -> None:
        view = self.view
        if view.intraline_style == IntralineStyle.BACKGROUND:
            view.intraline_style = IntralineStyle.UNDERLINE
        else:
            view.intraline_style = IntralineStyle.BACKGROUND
        self._after_action()

    def action_cycle_theme(self) -> None:
        theme = get_theme_manager().cycle()
        self.notify(f"Theme: {theme.display_name}")
        self._after_action()

    def action_move_file(self, delta: int) -> None:
        path = self._session.move_file_cursor(delta)
        logger.debug("[viewer_tui] Moved file cursor", extra={"file_path": path, "delta": delta})
        self._after_action()

    def action_summary(self) -> None:
        self._session.show_summary()
        self._after_action()

    def action_reload(self) -> None:
        if self._reload is None:
            self.notify("Diff was read from stdin; nothing to reload")
            return
        try:
            raw = self._reload()
        except (OSError, ValueError) as exc:
            logger.warning("[viewer_tui] Reload failed: %s: %s", type(exc).__name__, exc)
            self.notify(f"Reload failed: {escape(str(exc))}", severity="error")
            return
        if not self._session.load(raw):
            self.notify(escape(self._session.error_message()), severity="error")
        self._after_action()


def run_diff_viewer_tui(
    session: DiffSession,
    theme_name: str = "dark",
    intraline_style: IntralineStyle = IntralineStyle.BACKGROUND,
    reload: Optional[Callable[[], str]] = None,
) -> None:
    """Run the Textual diff viewer."""
    app = DiffViewerApp(session, theme_name=theme_name, intraline_style=intraline_style, reload=reload)
    app.run()
