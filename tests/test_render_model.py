"""Tests for building unified render models."""

from ripdiff.core.parser import parse_unified_diff
from ripdiff.core.render_model import (
    BINARY_FILE_MESSAGE,
    RenderOptions,
    build_meta_rendered_file,
    build_rendered_file,
    build_segments,
    line_number_text,
    message_to_rendered,
)
from ripdiff.core.rendered import IntralineMark, RenderedLineKind, TokenRole, line_text
from diff_samples import SAMPLE_DIFF, no_tokenizer, word_tokenizer_factory


def _sample_files():
    return parse_unified_diff(SAMPLE_DIFF).files


def test_unified_lines_follow_the_hunks():
    rendered = build_rendered_file(_sample_files()[0], no_tokenizer)

    assert rendered.title == "src/app.py"
    assert [line.kind for line in rendered.lines] == [
        RenderedLineKind.HUNK_HEADER,
        RenderedLineKind.CONTEXT,
        RenderedLineKind.REMOVE,
        RenderedLineKind.ADD,
        RenderedLineKind.CONTEXT,
        RenderedLineKind.CONTEXT,
        RenderedLineKind.HUNK_HEADER,
        RenderedLineKind.CONTEXT,
        RenderedLineKind.ADD,
        RenderedLineKind.CONTEXT,
        RenderedLineKind.META,
    ]
    assert line_text(rendered.lines[0]) == "@@ -1,4 +1,4 @@"
    assert [line.prefix for line in rendered.lines[1:4]] == [" ", "-", "+"]


def test_one_rendered_line_per_parsed_line():
    for file in _sample_files():
        rendered = build_rendered_file(file, no_tokenizer)
        if not file.hunks:
            assert len(rendered.lines) == 1
            continue
        expected = sum(1 + len(hunk.lines) for hunk in file.hunks)
        assert len(rendered.lines) == expected


def test_number_widths_and_content_width():
    rendered = build_rendered_file(_sample_files()[0], no_tokenizer)

    assert rendered.old_num_width == 2
    assert rendered.new_num_width == 2
    assert rendered.max_content_width == len("@@ -10,2 +10,3 @@ def helper():")


def test_intraline_marks_on_changed_pair():
    rendered = build_rendered_file(_sample_files()[0], no_tokenizer)
    removed, added = rendered.lines[2], rendered.lines[3]

    assert [(segment.text, segment.intraline) for segment in removed.segments] == [
        ("value = compute(", IntralineMark.NONE),
        ("alpha", IntralineMark.REMOVED),
        (")", IntralineMark.NONE),
    ]
    assert [segment.text for segment in added.segments if segment.intraline == IntralineMark.ADDED] == ["beta"]


def test_intraline_can_be_disabled():
    options = RenderOptions(intraline_enabled=False)
    rendered = build_rendered_file(_sample_files()[0], no_tokenizer, options)

    for line in rendered.lines:
        assert all(segment.intraline == IntralineMark.NONE for segment in line.segments)


def test_binary_file_renders_meta_message():
    rendered = build_rendered_file(_sample_files()[2], no_tokenizer)

    assert len(rendered.lines) == 1
    assert rendered.lines[0].kind == RenderedLineKind.META
    assert line_text(rendered.lines[0]) == BINARY_FILE_MESSAGE


def test_tokenizer_roles_reach_segments():
    raw = "diff --git a/m.py b/m.py\n--- a/m.py\n+++ b/m.py\n@@ -1 +1 @@\n def run\n"
    file = parse_unified_diff(raw).files[0]
    rendered = build_rendered_file(file, word_tokenizer_factory)

    segments = rendered.lines[1].segments
    assert segments[0].text == "def"
    assert segments[0].role == TokenRole.KEYWORD
    assert line_text(rendered.lines[1]) == "def run"


def test_build_segments_expands_tabs_to_tab_stops():
    segments, width = build_segments("\tx", None, tab_width=4)
    assert "".join(segment.text for segment in segments) == "    x"
    assert width == 5

    segments, width = build_segments("ab\tc", None, tab_width=4)
    assert "".join(segment.text for segment in segments) == "ab  c"
    assert width == 5


def test_build_segments_measures_wide_text():
    _, width = build_segments("日本", None)
    assert width == 4

    assert build_segments("", None) == ((), 0)


def test_line_number_text():
    assert line_number_text(0, 3) == "   "
    assert line_number_text(42, 4) == "  42"


def test_meta_rendered_file_helpers():
    empty = build_meta_rendered_file("Empty", [])
    assert len(empty.lines) == 1
    assert empty.lines[0].kind == RenderedLineKind.META

    message = message_to_rendered("Error", "first\r\nsecond\nthird")
    assert [line_text(line) for line in message.lines] == ["first", "second", "third"]
    assert message.title == "Error"
