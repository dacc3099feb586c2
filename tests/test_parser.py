"""Tests for unified diff parsing."""

import pytest

from ripdiff.core.models import DiffLineKind
from ripdiff.core.parser import (
    UNKNOWN_FILE_PATH,
    DiffParseError,
    choose_display_path,
    parse_diff_path,
    parse_unified_diff,
)
from diff_samples import DELETED_FILE_DIFF, MALFORMED_DIFF, SAMPLE_DIFF


def test_parse_sample_diff_files_and_paths():
    document = parse_unified_diff(SAMPLE_DIFF)

    assert [file.display_path for file in document.files] == ["src/app.py", "README.md", "logo.png"]
    app, readme, logo = document.files
    assert app.old_path == "src/app.py"
    assert readme.old_path == ""
    assert readme.new_path == "README.md"
    assert logo.is_binary
    assert logo.hunks == ()


def test_parse_counts_additions_and_deletions():
    document = parse_unified_diff(SAMPLE_DIFF)
    app = document.files[0]

    assert (app.additions, app.deletions) == (2, 1)
    assert document.total_additions == 4
    assert document.total_deletions == 1


def test_parse_assigns_line_numbers():
    hunk = parse_unified_diff(SAMPLE_DIFF).files[0].hunks[0]
    numbered = [(line.kind, line.old_line, line.new_line) for line in hunk.lines]

    assert numbered == [
        (DiffLineKind.CONTEXT, 1, 1),
        (DiffLineKind.REMOVE, 2, 0),
        (DiffLineKind.ADD, 0, 2),
        (DiffLineKind.CONTEXT, 3, 3),
        (DiffLineKind.CONTEXT, 4, 4),
    ]
    assert hunk.lines[1].content == "value = compute(alpha)"


def test_parse_keeps_no_newline_marker_as_meta():
    hunk = parse_unified_diff(SAMPLE_DIFF).files[0].hunks[1]

    assert hunk.header == "@@ -10,2 +10,3 @@ def helper():"
    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (10, 2, 10, 3)
    assert hunk.lines[-1].kind == DiffLineKind.META
    assert hunk.lines[-1].content == "\\ No newline at end of file"
    assert hunk.lines[2].old_line == 11
    assert hunk.lines[2].new_line == 12


def test_line_numbers_increase_within_each_side():
    for file in parse_unified_diff(SAMPLE_DIFF).files:
        for hunk in file.hunks:
            old = [line.old_line for line in hunk.lines if line.old_line]
            new = [line.new_line for line in hunk.lines if line.new_line]
            assert old == sorted(old)
            assert new == sorted(new)


def test_hunk_counts_default_to_one():
    raw = "diff --git a/a b/a\n--- a/a\n+++ b/a\n@@ -5 +5 @@\n-x\n+y\n"
    hunk = parse_unified_diff(raw).files[0].hunks[0]

    assert (hunk.old_count, hunk.new_count) == (1, 1)
    assert hunk.lines[0].old_line == 5


def test_empty_input_is_an_empty_document():
    assert parse_unified_diff("").files == ()
    assert parse_unified_diff("  \n\n").files == ()


def test_text_before_first_file_is_ignored():
    document = parse_unified_diff("warning: something\n" + SAMPLE_DIFF)
    assert len(document.files) == 3


def test_crlf_line_endings_are_normalized():
    document = parse_unified_diff(SAMPLE_DIFF.replace("\n", "\r\n"))
    assert document.files[0].hunks[0].lines[0].content == "import os"


def test_deleted_file_uses_old_path():
    file = parse_unified_diff(DELETED_FILE_DIFF).files[0]

    assert file.new_path == ""
    assert file.display_path == "gone.txt"
    assert file.deletions == 2


def test_rename_without_hunks():
    raw = (
        "diff --git a/old.py b/new.py\n"
        "similarity index 100%\n"
        "rename from old.py\n"
        "rename to new.py\n"
    )
    file = parse_unified_diff(raw).files[0]

    assert (file.old_path, file.new_path, file.display_path) == ("old.py", "new.py", "new.py")
    assert file.hunks == ()


def test_malformed_hunk_header_raises():
    with pytest.raises(DiffParseError) as exc_info:
        parse_unified_diff(MALFORMED_DIFF)

    assert exc_info.value.header == "@@ bad header @@"
    assert isinstance(exc_info.value, ValueError)


def test_path_helpers():
    assert parse_diff_path("a/src/x.py") == "src/x.py"
    assert parse_diff_path("/dev/null") == ""
    assert parse_diff_path('"b/with space.txt"') == "with space.txt"
    assert choose_display_path("", "") == UNKNOWN_FILE_PATH
    assert choose_display_path("old", "") == "old"
