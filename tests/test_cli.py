"""CLI command surface tests."""

from types import SimpleNamespace

import click
import pytest
from click.testing import CliRunner

from ripdiff import __version__
from ripdiff.cli import cli as cli_module
from ripdiff.cli.cli import cli, read_diff_text, reattach_terminal_stdin
from ripdiff.core.config import get_viewer_config
from ripdiff.core.layout import DIVIDER_GLYPH
from diff_samples import MALFORMED_DIFF, SAMPLE_DIFF


def _write(tmp_path, text: str, name: str = "change.diff"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_stats_lists_files(tmp_path):
    result = CliRunner().invoke(cli, ["stats", _write(tmp_path, SAMPLE_DIFF)])

    assert result.exit_code == 0, result.output
    assert "src/app.py" in result.output
    assert "logo.png (binary)" in result.output
    assert "3 files" in result.output


def test_stats_reads_stdin():
    result = CliRunner().invoke(cli, ["stats", "-"], input=SAMPLE_DIFF)

    assert result.exit_code == 0, result.output
    assert "README.md" in result.output


def test_print_renders_each_file(tmp_path):
    result = CliRunner().invoke(cli, ["print", "--width", "60", _write(tmp_path, SAMPLE_DIFF)])

    assert result.exit_code == 0, result.output
    assert "src/app.py" in result.output
    assert "value = compute(alpha)" in result.output
    assert "Binary file changed" in result.output


def test_print_side_by_side(tmp_path):
    result = CliRunner().invoke(
        cli, ["print", "--width", "61", "--side-by-side", _write(tmp_path, SAMPLE_DIFF)]
    )

    assert result.exit_code == 0, result.output
    assert DIVIDER_GLYPH in result.output


def test_print_empty_diff(tmp_path):
    result = CliRunner().invoke(cli, ["print", _write(tmp_path, "")])

    assert result.exit_code == 0
    assert "No changes." in result.output


def test_parse_error_is_reported(tmp_path):
    result = CliRunner().invoke(cli, ["print", _write(tmp_path, MALFORMED_DIFF)])

    assert result.exit_code == 1
    assert "Failed to parse diff" in result.output


def test_missing_file_is_reported(tmp_path):
    result = CliRunner().invoke(cli, ["stats", str(tmp_path / "nope.diff")])

    assert result.exit_code == 1
    assert "Cannot read" in result.output


def test_themes_marks_current():
    result = CliRunner().invoke(cli, ["themes"])

    assert result.exit_code == 0
    assert "* dark" in result.output
    assert "nord" in result.output


def test_config_and_version():
    config_result = CliRunner().invoke(cli, ["config"])
    assert config_result.exit_code == 0
    assert "Theme: dark" in config_result.output

    version_result = CliRunner().invoke(cli, ["version"])
    assert f"ripdiff version {__version__}" in version_result.output


def test_read_diff_text_from_file(tmp_path):
    assert read_diff_text(_write(tmp_path, "abc")) == "abc"


def test_themes_saves_default_theme():
    runner = CliRunner()
    result = runner.invoke(cli, ["themes", "nord"])

    assert result.exit_code == 0, result.output
    assert "Theme switched to Nord" in result.output
    assert get_viewer_config().theme == "nord"
    assert "* nord" in runner.invoke(cli, ["themes"]).output


def test_themes_rejects_unknown_name():
    result = CliRunner().invoke(cli, ["themes", "sepia"])

    assert result.exit_code == 1
    assert "Unknown theme: sepia" in result.output


def _capture_viewer(monkeypatch):
    from ripdiff.cli.ui.viewer_tui import textual_app

    launched = {}

    def fake_run(session, **kwargs):
        launched["session"] = session
        launched.update(kwargs)

    monkeypatch.setattr(textual_app, "run_diff_viewer_tui", fake_run)
    return launched


def test_view_reattaches_terminal_after_piped_diff(monkeypatch):
    launched = _capture_viewer(monkeypatch)
    reattached = []
    monkeypatch.setattr(cli_module, "reattach_terminal_stdin", lambda: reattached.append(True))

    result = CliRunner().invoke(cli, ["view"], input=SAMPLE_DIFF)

    assert result.exit_code == 0, result.output
    assert reattached == [True]
    assert launched["reload"] is None
    assert launched["session"].active_path == "src/app.py"


def test_view_reload_of_missing_file_raises_os_error(tmp_path, monkeypatch):
    launched = _capture_viewer(monkeypatch)
    path = _write(tmp_path, SAMPLE_DIFF)

    result = CliRunner().invoke(cli, ["view", path])
    assert result.exit_code == 0, result.output
    assert launched["reload"]() == SAMPLE_DIFF

    (tmp_path / "change.diff").unlink()
    with pytest.raises(OSError):
        launched["reload"]()


def test_reattach_terminal_stdin_dups_tty_onto_fd_zero(monkeypatch):
    calls = []
    fake_os = SimpleNamespace(
        O_RDONLY=0,
        open=lambda path, flags: calls.append(("open", path)) or 42,
        dup2=lambda fd, target: calls.append(("dup2", fd, target)),
        close=lambda fd: calls.append(("close", fd)),
    )
    monkeypatch.setattr(cli_module, "os", fake_os)

    reattach_terminal_stdin()

    assert calls == [("open", "/dev/tty"), ("dup2", 42, 0), ("close", 42)]


def test_reattach_without_terminal_is_reported(monkeypatch):
    def no_tty(path, flags):
        raise OSError("no tty")

    monkeypatch.setattr(cli_module, "os", SimpleNamespace(O_RDONLY=0, open=no_tty))

    with pytest.raises(click.ClickException, match="needs a terminal"):
        reattach_terminal_stdin()
