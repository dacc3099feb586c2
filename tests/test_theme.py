"""Tests for themes and diff palettes."""

from ripdiff.core.rendered import IntralineMark, RenderedLineKind, RenderedSegment, TokenRole
from ripdiff.core.theme import (
    BUILTIN_THEMES,
    THEME_DARK,
    DiffPalette,
    IntralineStyle,
    ThemeManager,
    next_theme_name,
    palette_for_theme_name,
)


def test_every_builtin_theme_builds_a_palette():
    for theme in BUILTIN_THEMES.values():
        palette = DiffPalette.from_theme(theme)
        for role in TokenRole:
            assert palette.style_for_role(role) is not None
        assert palette.line_style(RenderedLineKind.ADD).bgcolor is not None
        assert palette.line_style(RenderedLineKind.REMOVE).bgcolor is not None


def test_context_lines_have_no_line_background():
    palette = palette_for_theme_name("dark")

    assert palette.line_style(RenderedLineKind.CONTEXT) is None
    assert palette.gutter_style(RenderedLineKind.CONTEXT) is not None


def test_unknown_theme_falls_back_to_dark():
    assert palette_for_theme_name("no-such-theme") == DiffPalette.from_theme(THEME_DARK)


def test_intraline_overlay_modes():
    palette = palette_for_theme_name("dark")
    marked = RenderedSegment("x", TokenRole.KEYWORD, IntralineMark.ADDED)

    background = palette.style_for_segment(marked, IntralineStyle.BACKGROUND)
    underline = palette.style_for_segment(marked, IntralineStyle.UNDERLINE)

    assert background.bgcolor is not None
    assert background.bold
    assert underline.underline
    assert palette.intraline_overlay(IntralineMark.NONE, IntralineStyle.BACKGROUND) is None


def test_next_theme_name_cycles():
    assert next_theme_name("dark") == "light"
    assert next_theme_name("nord") == "dark"
    assert next_theme_name("unknown") == "dark"


def test_theme_manager_switches_and_notifies():
    manager = ThemeManager()
    seen = []
    manager.add_listener(lambda theme, palette: seen.append((theme.name, palette)))

    assert manager.set_theme("nord")
    assert not manager.set_theme("missing")
    assert manager.current.name == "nord"
    assert seen == [("nord", manager.palette)]


def test_setting_the_current_theme_does_not_notify():
    manager = ThemeManager("light")
    seen = []
    manager.add_listener(lambda theme, palette: seen.append(theme.name))

    assert manager.set_theme("light")
    assert seen == []


def test_palette_is_built_once_per_theme():
    manager = ThemeManager()
    first = manager.palette
    manager.cycle()
    manager.set_theme("dark")

    assert manager.palette is first


def test_cycle_visits_every_theme():
    manager = ThemeManager()
    visited = [manager.cycle().name for _ in BUILTIN_THEMES]

    assert visited == ["light", "monokai", "dracula", "nord", "dark"]


def test_broken_listener_does_not_block_others():
    manager = ThemeManager()
    seen = []

    def broken(theme, palette):
        raise RuntimeError("boom")

    manager.add_listener(broken)
    manager.add_listener(lambda theme, palette: seen.append(theme.name))
    manager.set_theme("monokai")
    manager.remove_listener(broken)
    manager.set_theme("dracula")

    assert seen == ["monokai", "dracula"]
