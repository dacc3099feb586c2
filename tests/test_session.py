"""Tests for the viewer session."""

import pytest

from ripdiff.core.config import ViewerConfig
from ripdiff.core.rendered import line_text
from ripdiff.core.session import EMPTY_HEADING, DiffSession
from ripdiff.core.view_state import LayoutMode
from diff_samples import MALFORMED_DIFF, SAMPLE_DIFF, no_tokenizer


@pytest.fixture
def session():
    session = DiffSession(tokenizer_factory=no_tokenizer)
    yield session
    session.close()


def _texts(session: DiffSession):
    return [line_text(line) for line in session.view_state.rendered.lines]


def test_load_selects_first_file(session):
    assert session.load(SAMPLE_DIFF)

    assert session.ordered_paths == ["src/app.py", "README.md", "logo.png"]
    assert session.active_path == "src/app.py"
    assert session.viewer_title() == "src/app.py"
    assert session.view_state.rendered.title == "src/app.py"
    assert session.totals() == (3, 4, 1)


def test_move_file_cursor_wraps(session):
    session.load(SAMPLE_DIFF)

    assert session.move_file_cursor(1) == "README.md"
    assert session.move_file_cursor(-2) == "logo.png"
    assert session.move_file_cursor(1) == "src/app.py"
    assert session.active_file.display_path == "src/app.py"


def test_switching_files_resets_scroll(session):
    session.load(SAMPLE_DIFF)
    session.view_state.set_viewport(30, 3)
    session.view_state.go_bottom()
    assert session.view_state.scroll_y > 0

    session.move_file_cursor(1)
    assert session.view_state.scroll_y == 0


def test_rendered_pairs_are_cached(session):
    session.load(SAMPLE_DIFF)

    assert session.rendered_pair("src/app.py") is session.rendered_pair("src/app.py")
    assert session.rendered_pair("missing") is None
    assert not session.select_file("missing")


def test_empty_diff_shows_empty_state(session):
    assert session.load("")

    assert session.active_path is None
    assert session.viewer_title() == "Diff"
    assert _texts(session)[0] == EMPTY_HEADING
    assert session.move_file_cursor(1) is None


def test_parse_error_without_previous_model(session):
    assert not session.load(MALFORMED_DIFF)

    assert session.viewer_title() == "Error"
    assert _texts(session)[0] == "Failed to load git diff:"
    assert "Press r to retry." in _texts(session)


def test_parse_error_keeps_previous_model(session):
    session.load(SAMPLE_DIFF)
    rendered = session.view_state.rendered

    assert not session.load(MALFORMED_DIFF)
    assert session.active_path == "src/app.py"
    assert session.view_state.rendered is rendered
    assert session.load_error


def test_summary_uses_section_label(session):
    session.load(SAMPLE_DIFF, staged=True)
    session.show_summary()

    assert session.viewer_title() == "Staged changes"
    texts = _texts(session)
    assert "Touched files: 3" in texts
    assert "Additions: +4" in texts


def test_summary_of_empty_section(session):
    session.load("")
    session.show_summary()

    assert "No unstaged files in this diff." in _texts(session)


def test_config_drives_initial_view_state():
    config = ViewerConfig(layout_mode="side_by_side", hard_wrap=True, split_ratio=0.3)
    session = DiffSession(config=config, tokenizer_factory=no_tokenizer)

    assert session.view_state.layout_mode == LayoutMode.SIDE_BY_SIDE
    assert session.view_state.hard_wrap
    assert session.view_state.split_ratio == 0.3
    session.close()
