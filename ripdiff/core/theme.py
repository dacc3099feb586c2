"""Theme system for ripdiff.

Themes are sets of semantic colors; :class:`DiffPalette` turns the current
theme into rich styles for every token role and line kind.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from rich.color import Color, ColorTriplet, blend_rgb
from rich.style import Style

from ripdiff.core.rendered import IntralineMark, RenderedLineKind, RenderedSegment, TokenRole
from ripdiff.utils.log import get_logger

logger = get_logger()


class IntralineStyle(str, Enum):
    """How intraline changes are emphasised."""

    BACKGROUND = "background"
    UNDERLINE = "underline"


@dataclass
class DiffThemeColors:
    """Theme color definitions - all semantic color slots, as hex strings."""

    background: str = "#1e1e2e"
    text: str = "#d4d4d4"
    muted: str = "#8a8a8a"
    disabled: str = "#5a5a5a"

    primary: str = "#56b6c2"
    secondary: str = "#61afef"
    accent: str = "#c678dd"

    success: str = "#98c379"
    error: str = "#e06c75"
    warning: str = "#e5c07b"
    info: str = "#61afef"


@dataclass
class Theme:
    """Complete theme definition."""

    name: str
    display_name: str
    description: str
    colors: DiffThemeColors = field(default_factory=DiffThemeColors)


# === Predefined themes ===

THEME_DARK = Theme(
    name="dark",
    display_name="Dark",
    description="Default dark theme with cyan accents",
    colors=DiffThemeColors(),
)

THEME_LIGHT = Theme(
    name="light",
    display_name="Light",
    description="Light theme for bright terminals",
    colors=DiffThemeColors(
        background="#fafafa",
        text="#383a42",
        muted="#7f848e",
        disabled="#b0b0b0",
        primary="#0184bc",
        secondary="#4078f2",
        accent="#a626a4",
        success="#50a14f",
        error="#e45649",
        warning="#c18401",
        info="#4078f2",
    ),
)

THEME_MONOKAI = Theme(
    name="monokai",
    display_name="Monokai",
    description="Monokai-inspired color scheme",
    colors=DiffThemeColors(
        background="#272822",
        text="#f8f8f2",
        muted="#75715e",  # Monokai comment
        disabled="#49483e",
        primary="#66d9ef",  # Monokai cyan
        secondary="#a6e22e",  # Monokai green
        accent="#f92672",  # Monokai pink
        success="#a6e22e",
        error="#f92672",
        warning="#e6db74",  # Monokai yellow
        info="#66d9ef",
    ),
)

THEME_DRACULA = Theme(
    name="dracula",
    display_name="Dracula",
    description="Dracula color scheme",
    colors=DiffThemeColors(
        background="#282a36",
        text="#f8f8f2",
        muted="#6272a4",  # Dracula comment
        disabled="#44475a",
        primary="#bd93f9",  # Dracula purple
        secondary="#50fa7b",  # Dracula green
        accent="#ff79c6",  # Dracula pink
        success="#50fa7b",
        error="#ff5555",
        warning="#f1fa8c",
        info="#8be9fd",  # Dracula cyan
    ),
)

THEME_NORD = Theme(
    name="nord",
    display_name="Nord",
    description="Arctic, bluish color scheme",
    colors=DiffThemeColors(
        background="#2e3440",  # Nord polar night
        text="#d8dee9",
        muted="#7b88a1",
        disabled="#4c566a",
        primary="#88c0d0",  # Nord frost
        secondary="#81a1c1",
        accent="#b48ead",  # Nord purple
        success="#a3be8c",
        error="#bf616a",
        warning="#ebcb8b",
        info="#81a1c1",
    ),
)

# Theme registry
BUILTIN_THEMES: Dict[str, Theme] = {
    "dark": THEME_DARK,
    "light": THEME_LIGHT,
    "monokai": THEME_MONOKAI,
    "dracula": THEME_DRACULA,
    "nord": THEME_NORD,
}


# === Palette ===

_GUTTER_DARKEN = 0.08
_BLACK = ColorTriplet(0, 0, 0)


def _rgb(value: str) -> ColorTriplet:
    return Color.parse(value).get_truecolor()


def _blend(base: ColorTriplet, other: ColorTriplet, amount: float) -> ColorTriplet:
    return blend_rgb(base, other, amount)


def _darken(base: ColorTriplet, amount: float) -> ColorTriplet:
    return blend_rgb(base, _BLACK, amount)


def _color(triplet: ColorTriplet) -> Color:
    return Color.from_triplet(triplet)


@dataclass(frozen=True)
class DiffPalette:
    """Rich styles for one theme, keyed by token role and line kind."""

    base: Style
    role_styles: Dict[TokenRole, Style]
    line_styles: Dict[RenderedLineKind, Style]
    gutter_styles: Dict[RenderedLineKind, Style]
    intraline_styles: Dict[Tuple[IntralineMark, IntralineStyle], Style]
    overlay: Style
    divider: Style
    divider_active: Style

    @classmethod
    def from_theme(cls, theme: Theme) -> "DiffPalette":
        c = theme.colors
        background = _rgb(c.background)
        text = _rgb(c.text)
        muted = _rgb(c.muted)
        disabled = _rgb(c.disabled)
        success = _rgb(c.success)
        error = _rgb(c.error)
        info = _rgb(c.info)

        add_bg = _blend(background, success, 0.14)
        remove_bg = _blend(background, error, 0.14)
        hunk_bg = _blend(background, info, 0.10)
        header_bg = _blend(background, _rgb(c.primary), 0.11)
        line_number_fg = _blend(muted, disabled, 0.35)
        hatch_fg = _blend(background, disabled, 0.26)

        role_styles = {
            TokenRole.OLD_LINE_NUMBER: Style(color=_color(line_number_fg)),
            TokenRole.NEW_LINE_NUMBER: Style(color=_color(line_number_fg)),
            TokenRole.LINE_NUMBER_ADD: Style(color=c.success),
            TokenRole.LINE_NUMBER_REMOVE: Style(color=c.error),
            TokenRole.PREFIX_ADD: Style(color=c.success),
            TokenRole.PREFIX_REMOVE: Style(color=c.error),
            TokenRole.PREFIX_CONTEXT: Style(color=c.muted),
            TokenRole.FILE_HEADER: Style(color=c.primary, bold=True),
            TokenRole.HUNK_HEADER: Style(color=_color(_blend(muted, info, 0.35))),
            TokenRole.META: Style(color=c.warning, italic=True),
            TokenRole.HATCH: Style(color=_color(hatch_fg)),
            TokenRole.PLAIN: Style(color=c.text),
            TokenRole.KEYWORD: Style(color=c.accent, bold=True),
            TokenRole.TYPE: Style(color=c.primary),
            TokenRole.FUNCTION: Style(color=c.secondary),
            TokenRole.STRING: Style(color=c.success),
            TokenRole.NUMBER: Style(color=c.accent),
            TokenRole.COMMENT: Style(color=c.muted, italic=True),
            TokenRole.PUNCTUATION: Style(color=c.text),
        }
        line_styles = {
            RenderedLineKind.FILE_HEADER: Style(bgcolor=_color(header_bg)),
            RenderedLineKind.HUNK_HEADER: Style(bgcolor=_color(hunk_bg)),
            RenderedLineKind.ADD: Style(bgcolor=_color(add_bg)),
            RenderedLineKind.REMOVE: Style(bgcolor=_color(remove_bg)),
        }
        gutter_styles = {
            RenderedLineKind.CONTEXT: Style(bgcolor=_color(_darken(background, _GUTTER_DARKEN))),
            RenderedLineKind.ADD: Style(bgcolor=_color(_darken(add_bg, _GUTTER_DARKEN))),
            RenderedLineKind.REMOVE: Style(bgcolor=_color(_darken(remove_bg, _GUTTER_DARKEN))),
        }
        intraline_styles = {
            (IntralineMark.ADDED, IntralineStyle.BACKGROUND): Style(
                bgcolor=_color(_blend(background, success, 0.28))
            ),
            (IntralineMark.REMOVED, IntralineStyle.BACKGROUND): Style(
                bgcolor=_color(_blend(background, error, 0.28))
            ),
            (IntralineMark.ADDED, IntralineStyle.UNDERLINE): Style(underline=True),
            (IntralineMark.REMOVED, IntralineStyle.UNDERLINE): Style(underline=True),
        }
        return cls(
            base=Style(color=c.text, bgcolor=c.background),
            role_styles=role_styles,
            line_styles=line_styles,
            gutter_styles=gutter_styles,
            intraline_styles=intraline_styles,
            overlay=Style(color=_color(text), bgcolor=_color(_blend(background, muted, 0.45)), bold=True),
            divider=Style(color=_color(_blend(background, line_number_fg, 0.35))),
            divider_active=Style(color=_color(_blend(background, text, 0.9))),
        )

    def style_for_role(self, role: TokenRole) -> Style:
        return self.role_styles.get(role, Style.null())

    def line_style(self, kind: RenderedLineKind) -> Optional[Style]:
        return self.line_styles.get(kind)

    def gutter_style(self, kind: RenderedLineKind) -> Optional[Style]:
        return self.gutter_styles.get(kind)

    def intraline_overlay(self, mark: IntralineMark, mode: IntralineStyle) -> Optional[Style]:
        if mark == IntralineMark.NONE:
            return None
        return self.intraline_styles.get((mark, mode))

    def style_for_segment(
        self, segment: RenderedSegment, intraline_style: IntralineStyle = IntralineStyle.BACKGROUND
    ) -> Style:
        style = self.style_for_role(segment.role)
        overlay = self.intraline_overlay(segment.intraline, intraline_style)
        if overlay is not None:
            style = style + overlay
        return style


def palette_for_theme_name(name: str) -> DiffPalette:
    """Palette for a built-in theme, falling back to the dark theme."""
    theme = BUILTIN_THEMES.get(name)
    if theme is None:
        logger.warning("[theme] Unknown theme %r; using dark", name)
        theme = THEME_DARK
    return DiffPalette.from_theme(theme)


# === Current theme ===


def next_theme_name(name: str) -> str:
    """Name of the built-in theme after ``name``, wrapping around."""
    names = list(BUILTIN_THEMES)
    if name not in names:
        return names[0]
    return names[(names.index(name) + 1) % len(names)]


ThemeListener = Callable[[Theme, DiffPalette], None]


class ThemeManager:
    """Tracks the active theme and hands out its palette.

    Palettes are built once per theme. Listeners are called with the new
    theme and palette whenever the theme changes.
    """

    def __init__(self, theme_name: str = THEME_DARK.name) -> None:
        self._current = BUILTIN_THEMES.get(theme_name, THEME_DARK)
        self._palettes: Dict[str, DiffPalette] = {}
        self._listeners: List[ThemeListener] = []

    @property
    def current(self) -> Theme:
        return self._current

    @property
    def palette(self) -> DiffPalette:
        palette = self._palettes.get(self._current.name)
        if palette is None:
            palette = DiffPalette.from_theme(self._current)
            self._palettes[self._current.name] = palette
        return palette

    def set_theme(self, theme_name: str) -> bool:
        """Switch to a built-in theme. Unknown names leave the theme unchanged."""
        theme = BUILTIN_THEMES.get(theme_name)
        if theme is None:
            logger.debug("[theme] Ignoring unknown theme %r", theme_name)
            return False
        if theme is not self._current:
            self._current = theme
            self._notify_listeners()
        return True

    def cycle(self) -> Theme:
        self.set_theme(next_theme_name(self._current.name))
        return self._current

    def add_listener(self, callback: ThemeListener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: ThemeListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self) -> None:
        palette = self.palette
        for listener in list(self._listeners):
            try:
                listener(self._current, palette)
            except (RuntimeError, ValueError, TypeError, AttributeError) as exc:
                logger.warning(
                    "[theme] Theme listener failed: %s: %s",
                    type(exc).__name__,
                    exc,
                    extra={"theme": self._current.name},
                )


_theme_manager: Optional[ThemeManager] = None


def get_theme_manager() -> ThemeManager:
    """Get the process-wide theme manager."""
    global _theme_manager
    if _theme_manager is None:
        _theme_manager = ThemeManager()
    return _theme_manager


__all__ = [
    "BUILTIN_THEMES",
    "DiffPalette",
    "DiffThemeColors",
    "IntralineStyle",
    "Theme",
    "ThemeListener",
    "ThemeManager",
    "get_theme_manager",
    "next_theme_name",
    "palette_for_theme_name",
]
