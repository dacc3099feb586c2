"""Tests for the side-by-side render model."""

import pytest

from ripdiff.core.parser import parse_unified_diff
from ripdiff.core.render_model import (
    build_rendered_pair,
    build_side_by_side_from_rendered,
    build_side_by_side_rendered_file,
    message_to_rendered,
)
from ripdiff.core.rendered import (
    RenderedLineKind,
    RowConstructionError,
    SideBySideRenderedRow,
    SideRowKind,
    cell_text,
)
from diff_samples import DELETED_FILE_DIFF, MIXED_BLOCK_DIFF, SAMPLE_DIFF, no_tokenizer


def _side(raw: str, index: int = 0):
    return build_side_by_side_rendered_file(parse_unified_diff(raw).files[index], no_tokenizer)


def test_mixed_change_block_rows():
    side = _side(MIXED_BLOCK_DIFF)
    rows = side.rows

    assert len(rows) == 6
    assert rows[0].is_shared
    assert rows[0].shared.kind == RenderedLineKind.HUNK_HEADER

    assert (cell_text(rows[1].left), cell_text(rows[1].right)) == ("one", "uno")
    assert (rows[1].left.line_number, rows[1].right.line_number) == (1, 1)
    assert cell_text(rows[2].left) == "two"
    assert rows[2].right is None

    assert rows[3].left.kind == RenderedLineKind.CONTEXT
    assert (rows[3].left.line_number, rows[3].right.line_number) == (3, 2)

    assert rows[4].is_shared
    assert rows[4].shared.kind == RenderedLineKind.META

    assert rows[5].left is None
    assert cell_text(rows[5].right) == "four"
    assert rows[5].right.line_number == 3


def test_all_removed_file_has_no_right_cells():
    side = _side(DELETED_FILE_DIFF)

    paired = [row for row in side.rows if not row.is_shared]
    assert [cell_text(row.left) for row in paired] == ["x", "y"]
    assert all(row.right is None for row in paired)
    assert side.left_num_width == 1
    assert side.right_num_width == 1


def test_side_widths_track_each_pane():
    side = _side(SAMPLE_DIFF)

    assert side.left_num_width == 2
    assert side.right_num_width == 2
    assert side.max_content_width == len("@@ -10,2 +10,3 @@ def helper():")


def test_pair_models_share_segments():
    file = parse_unified_diff(SAMPLE_DIFF).files[0]
    rendered, side = build_rendered_pair(file, no_tokenizer)

    removed = rendered.lines[2]
    assert side.rows[2].left.segments == removed.segments
    assert side.rows[2].right.segments == rendered.lines[3].segments


def test_context_rows_carry_both_numbers():
    side = _side(SAMPLE_DIFF)
    context = [row for row in side.rows if not row.is_shared and row.left and row.left.kind == RenderedLineKind.CONTEXT]

    assert [(row.left.line_number, row.right.line_number) for row in context] == [
        (1, 1),
        (3, 3),
        (4, 4),
        (10, 10),
        (11, 12),
    ]


def test_side_by_side_from_rendered_uses_shared_rows():
    rendered = message_to_rendered("Error", "one\ntwo")
    side = build_side_by_side_from_rendered(rendered)

    assert len(side.rows) == 2
    assert all(row.kind == SideRowKind.SHARED for row in side.rows)
    assert side.title == "Error"


def test_row_construction_is_validated():
    with pytest.raises(RowConstructionError):
        SideBySideRenderedRow(kind=SideRowKind.SHARED)
    with pytest.raises(RowConstructionError):
        SideBySideRenderedRow.paired_row(None, None)
