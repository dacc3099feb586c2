"""Main CLI entry point for ripdiff.

This module provides the command-line interface for viewing diff text
produced by ``git diff``.
"""

import os
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ripdiff import __version__
from ripdiff.core.cell_renderer import render_to_canvas
from ripdiff.core.config import ViewerConfig, config_manager, get_viewer_config, save_viewer_config
from ripdiff.core.models import DiffDocument
from ripdiff.core.parser import DiffParseError, parse_unified_diff
from ripdiff.core.session import DiffSession
from ripdiff.core.theme import BUILTIN_THEMES, IntralineStyle, palette_for_theme_name
from ripdiff.core.view_state import LayoutMode
from ripdiff.utils.log import enable_file_logging, get_logger

console = Console()
logger = get_logger()

DEFAULT_PRINT_WIDTH = 100


def _reads_stdin(diff_file: Optional[str]) -> bool:
    return diff_file is None or diff_file == "-"


def file_reader(diff_file: str) -> Callable[[], str]:
    """Re-read ``diff_file`` on each call; ``OSError`` propagates to the caller."""
    path = Path(diff_file)
    return lambda: path.read_text(encoding="utf-8", errors="replace")


def read_diff_text(diff_file: Optional[str]) -> str:
    """Read diff text from ``diff_file``, or stdin for ``None`` / ``-``."""
    if _reads_stdin(diff_file):
        return click.get_text_stream("stdin").read()
    try:
        return file_reader(diff_file)()
    except OSError as e:
        raise click.ClickException(f"Cannot read {diff_file}: {e}") from e


def reattach_terminal_stdin() -> None:
    """Point fd 0 back at the controlling terminal after a piped diff was read.

    The viewer reads keys from fd 0, which is the drained pipe otherwise.
    """
    try:
        tty_fd = os.open("/dev/tty", os.O_RDONLY)
    except OSError as e:
        raise click.ClickException(
            "The viewer needs a terminal for keyboard input; "
            "pass the diff as a file or use `ripdiff print`."
        ) from e
    try:
        os.dup2(tty_fd, 0)
    finally:
        os.close(tty_fd)
    logger.debug("[cli] Reattached terminal to stdin")


def parse_or_fail(raw: str) -> DiffDocument:
    try:
        return parse_unified_diff(raw)
    except DiffParseError as e:
        logger.warning(
            "[cli] Failed to parse diff: %s",
            e,
            extra={"header": e.header},
        )
        raise click.ClickException(f"Failed to parse diff: {e}") from e


def _config_with_overrides(
    side_by_side: bool,
    wrap: bool,
    no_signs: bool = False,
    theme: Optional[str] = None,
) -> ViewerConfig:
    config = get_viewer_config()
    update: dict = {}
    if side_by_side:
        update["layout_mode"] = LayoutMode.SIDE_BY_SIDE.value
    if wrap:
        update["hard_wrap"] = True
    if no_signs:
        update["hide_change_signs"] = True
    if theme:
        update["theme"] = theme
    return config.model_copy(update=update) if update else config


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write debug logs to this file")
@click.pass_context
def cli(ctx: click.Context, log_file: Optional[str]) -> None:
    """ripdiff - terminal viewer for git diffs"""
    if log_file:
        path = enable_file_logging(Path(log_file))
        logger.info("[cli] Starting CLI invocation", extra={"log_file": str(path)})

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(name="view")
@click.argument("diff_file", required=False)
@click.option("--staged", is_flag=True, help="Label the diff as staged changes")
@click.option("--side-by-side", is_flag=True, help="Start in side-by-side layout")
@click.option("--wrap", is_flag=True, help="Start with hard wrap enabled")
def view_cmd(diff_file: Optional[str], staged: bool, side_by_side: bool, wrap: bool) -> None:
    """Browse a diff in the interactive viewer"""
    from ripdiff.cli.ui.viewer_tui.textual_app import run_diff_viewer_tui

    config = _config_with_overrides(side_by_side, wrap)
    raw = read_diff_text(diff_file)
    if _reads_stdin(diff_file) and not sys.stdin.isatty():
        reattach_terminal_stdin()
    session = DiffSession(staged=staged, config=config)
    if not session.load(raw):
        logger.info("[cli] Opening viewer with parse error", extra={"error": session.load_error})

    reload: Optional[Callable[[], str]] = None
    if not _reads_stdin(diff_file):
        reload = file_reader(diff_file)

    run_diff_viewer_tui(
        session,
        theme_name=config.theme,
        intraline_style=IntralineStyle(config.intraline_style),
        reload=reload,
    )


@cli.command(name="print")
@click.argument("diff_file", required=False)
@click.option("--width", type=click.IntRange(min=10), default=None, help="Render width in columns")
@click.option("--side-by-side", is_flag=True, help="Render side by side")
@click.option("--wrap", is_flag=True, help="Hard wrap long lines")
@click.option("--no-signs", is_flag=True, help="Hide +/- change signs")
@click.option("--theme", type=click.Choice(sorted(BUILTIN_THEMES)), default=None, help="Theme to render with")
def print_cmd(
    diff_file: Optional[str],
    width: Optional[int],
    side_by_side: bool,
    wrap: bool,
    no_signs: bool,
    theme: Optional[str],
) -> None:
    """Render every file of a diff to the terminal"""
    config = _config_with_overrides(side_by_side, wrap, no_signs, theme)
    document = parse_or_fail(read_diff_text(diff_file))
    render_width = width or console.width or DEFAULT_PRINT_WIDTH
    palette = palette_for_theme_name(config.theme)
    intraline_style = IntralineStyle(config.intraline_style)

    if not document.files:
        console.print("[dim]No changes.[/dim]")
        return

    session = DiffSession(config=config)
    session.load_document(document)
    for path in session.ordered_paths:
        session.select_file(path)
        state = session.view_state
        state.set_viewport(render_width, 1)
        rows = max(1, state.total_display_rows())
        state.set_viewport(render_width, rows)

        console.rule(f"[bold]{escape(path)}[/bold]")
        canvas = render_to_canvas(state, palette, render_width, rows, intraline_style=intraline_style)
        for line in canvas.to_lines():
            console.print(line, soft_wrap=True, crop=False)
    session.close()


@cli.command(name="stats")
@click.argument("diff_file", required=False)
def stats_cmd(diff_file: Optional[str]) -> None:
    """Show touched files with additions and deletions"""
    document = parse_or_fail(read_diff_text(diff_file))

    table = Table(show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    for file in document.files:
        name = file.display_path
        if file.is_binary:
            name = f"{name} (binary)"
        table.add_row(escape(name), str(file.additions), str(file.deletions))
    table.add_section()
    table.add_row(
        f"{len(document.files)} files",
        str(document.total_additions),
        str(document.total_deletions),
    )
    console.print(table)


@cli.command(name="themes")
@click.argument("name", required=False)
def themes_cmd(name: Optional[str]) -> None:
    """List themes, or save NAME as the default theme"""
    if name is not None:
        theme = BUILTIN_THEMES.get(name)
        if theme is None:
            raise click.ClickException(f"Unknown theme: {name}. Available: {', '.join(BUILTIN_THEMES)}")
        stored = config_manager.get_viewer_config()
        save_viewer_config(stored.model_copy(update={"theme": name}))
        console.print(f"Theme switched to [bold]{theme.display_name}[/bold]")
        return

    current = get_viewer_config().theme
    for theme_name, theme in BUILTIN_THEMES.items():
        marker = "*" if theme_name == current else " "
        console.print(f"{marker} [bold]{theme_name}[/bold] - {theme.display_name}: {theme.description}")


@cli.command(name="config")
def config_cmd() -> None:
    """Show current configuration"""
    config = get_viewer_config()

    console.print("\n[bold]Viewer Configuration[/bold]\n")
    console.print(f"Version: {__version__}")
    console.print(f"Config File: {config_manager.config_path}")
    console.print(f"Theme: {config.theme}")
    console.print(f"Layout: {config.layout_mode}")
    console.print(f"Hard Wrap: {config.hard_wrap}")
    console.print(f"Hide Change Signs: {config.hide_change_signs}")
    console.print(f"Intraline: {config.intraline_enabled} ({config.intraline_style})")
    console.print(f"Intraline Max Cells: {config.intraline_max_cells}")
    console.print(f"Tab Width: {config.tab_width}")
    console.print(f"Split Ratio: {config.split_ratio}\n")


@cli.command(name="version")
def version_cmd() -> None:
    """Show version information"""
    console.print(f"ripdiff version {__version__}")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except SystemExit:
        raise
    except (
        RuntimeError,
        ValueError,
        TypeError,
        OSError,
        click.ClickException,
    ) as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        logger.warning(
            "[cli] Fatal error in main CLI entrypoint: %s: %s",
            type(e).__name__,
            e,
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
