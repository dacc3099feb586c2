"""Tests for scroll anchors used when switching layouts."""

from ripdiff.core.anchors import (
    ScrollAnchor,
    anchor_for_side_row,
    find_rendered_row_for_anchor,
    find_side_row_for_anchor,
    map_offset_by_ratio,
)
from ripdiff.core.parser import parse_unified_diff
from ripdiff.core.render_model import build_rendered_pair
from ripdiff.core.rendered import RenderedLineKind
from diff_samples import SAMPLE_DIFF, no_tokenizer


def _pair():
    return build_rendered_pair(parse_unified_diff(SAMPLE_DIFF).files[0], no_tokenizer)


def test_right_cell_decides_kind_of_paired_row():
    _, side = _pair()
    anchor = anchor_for_side_row(side.rows[2])

    assert anchor == ScrollAnchor(kind=RenderedLineKind.ADD, old_line=2, new_line=2)


def test_left_only_row_keeps_remove_kind():
    _, side = build_rendered_pair(
        parse_unified_diff("diff --git a/a b/a\n--- a/a\n+++ b/a\n@@ -1,1 +0,0 @@\n-x\n").files[0],
        no_tokenizer,
    )
    assert anchor_for_side_row(side.rows[1]).kind == RenderedLineKind.REMOVE


def test_context_anchor_maps_between_layouts():
    rendered, side = _pair()
    anchor = ScrollAnchor(kind=RenderedLineKind.CONTEXT, old_line=3, new_line=3)

    assert find_rendered_row_for_anchor(rendered.lines, anchor) == 4
    assert find_side_row_for_anchor(side.rows, anchor) == 3


def test_add_anchor_finds_paired_row():
    rendered, side = _pair()
    anchor = ScrollAnchor(kind=RenderedLineKind.ADD, new_line=11)

    assert find_rendered_row_for_anchor(rendered.lines, anchor) == 8
    assert find_side_row_for_anchor(side.rows, anchor) == 7


def test_header_anchor_falls_back_to_kind():
    rendered, _ = _pair()
    anchor = ScrollAnchor(kind=RenderedLineKind.HUNK_HEADER)

    assert find_rendered_row_for_anchor(rendered.lines, anchor) == 0


def test_missing_anchor_returns_minus_one():
    rendered, _ = _pair()
    anchor = ScrollAnchor(kind=RenderedLineKind.FILE_HEADER)

    assert find_rendered_row_for_anchor(rendered.lines, anchor) == -1


def test_map_offset_by_ratio():
    assert map_offset_by_ratio(5, 11, 21) == 10
    assert map_offset_by_ratio(10, 11, 21) == 20
    assert map_offset_by_ratio(3, 1, 5) == 3
    assert map_offset_by_ratio(7, 10, 0) == 0
    assert map_offset_by_ratio(50, 10, 5) == 4
