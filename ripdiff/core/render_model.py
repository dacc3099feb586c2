"""Build display models from parsed diff files.

One pass over a :class:`DiffFile` produces both the unified
:class:`RenderedFile` and the two-column :class:`SideBySideRenderedFile`,
so both layouts share tokenization and intraline masks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ripdiff.core.intraline import DEFAULT_MAX_CELLS, Mask, MaskPair, pair_change_block
from ripdiff.core.models import DiffFile, DiffHunk, DiffLine, DiffLineKind
from ripdiff.core.rendered import (
    IntralineMark,
    RenderedDiffLine,
    RenderedFile,
    RenderedLineKind,
    RenderedSegment,
    RenderedSideCell,
    SideBySideRenderedFile,
    SideBySideRenderedRow,
    TokenRole,
    cell_text,
    line_text,
)
from ripdiff.core.tokenizer import (
    Token,
    Tokenizer,
    TokenizerFactory,
    pygments_tokenizer_factory,
    tokenize_line,
)
from ripdiff.utils.log import get_logger
from ripdiff.utils.text_cells import grapheme_width, iter_graphemes

logger = get_logger()

BINARY_FILE_MESSAGE = "Binary file changed"
NO_CONTENT_MESSAGE = "No displayable content"

_PREFIXES = {
    DiffLineKind.CONTEXT: " ",
    DiffLineKind.ADD: "+",
    DiffLineKind.REMOVE: "-",
    DiffLineKind.META: " ",
}

_RENDERED_KINDS = {
    DiffLineKind.CONTEXT: RenderedLineKind.CONTEXT,
    DiffLineKind.ADD: RenderedLineKind.ADD,
    DiffLineKind.REMOVE: RenderedLineKind.REMOVE,
    DiffLineKind.META: RenderedLineKind.META,
}


@dataclass(frozen=True)
class RenderOptions:
    """Knobs that change how content turns into segments."""

    tab_width: int = 4
    intraline_enabled: bool = True
    intraline_max_cells: int = DEFAULT_MAX_CELLS


DEFAULT_RENDER_OPTIONS = RenderOptions()


def line_number_text(number: int, width: int) -> str:
    """Right-align a line number in ``width`` columns; 0 renders blank."""
    if number <= 0:
        return " " * max(0, width)
    return str(number).rjust(width)


def _digits(number: int) -> int:
    return len(str(max(1, number)))


def _merge_segments(segments: Iterable[RenderedSegment]) -> List[RenderedSegment]:
    merged: List[RenderedSegment] = []
    for segment in segments:
        if not segment.text:
            continue
        if merged and merged[-1].role == segment.role and merged[-1].intraline == segment.intraline:
            previous = merged[-1]
            merged[-1] = RenderedSegment(previous.text + segment.text, segment.role, segment.intraline)
        else:
            merged.append(segment)
    return merged


def _apply_mask(tokens: Sequence[Token], mask: Optional[Mask], mark: IntralineMark) -> List[RenderedSegment]:
    """Split tokens at mask boundaries; ``mask`` is indexed by grapheme."""
    if mask is None:
        return [RenderedSegment(text, role) for text, role in tokens if text]

    segments: List[RenderedSegment] = []
    index = 0
    for text, role in tokens:
        run: List[str] = []
        run_marked = False
        for grapheme in iter_graphemes(text):
            marked = index < len(mask) and mask[index]
            index += 1
            if run and marked != run_marked:
                segments.append(
                    RenderedSegment("".join(run), role, mark if run_marked else IntralineMark.NONE)
                )
                run = []
            run.append(grapheme)
            run_marked = marked
        if run:
            segments.append(RenderedSegment("".join(run), role, mark if run_marked else IntralineMark.NONE))
    return segments


def _expand_tabs(segments: Sequence[RenderedSegment], tab_width: int) -> Tuple[List[RenderedSegment], int]:
    """Expand tabs to the next tab stop and measure the result in cells."""
    tab_width = max(1, tab_width)
    expanded: List[RenderedSegment] = []
    column = 0
    for segment in segments:
        parts: List[str] = []
        for grapheme in iter_graphemes(segment.text):
            if grapheme == "\t":
                spaces = tab_width - column % tab_width
                parts.append(" " * spaces)
                column += spaces
            else:
                parts.append(grapheme)
                column += grapheme_width(grapheme)
        expanded.append(RenderedSegment("".join(parts), segment.role, segment.intraline))
    return _merge_segments(expanded), column


def build_segments(
    content: str,
    tokenizer: Optional[Tokenizer],
    mask: Optional[Mask] = None,
    mark: IntralineMark = IntralineMark.NONE,
    tab_width: int = 4,
) -> Tuple[Tuple[RenderedSegment, ...], int]:
    """Tokenize, mark and tab-expand one line of content.

    Returns the segments and their width in terminal cells.
    """
    if not content:
        return (), 0
    tokens = tokenize_line(tokenizer, content)
    segments, width = _expand_tabs(_apply_mask(tokens, mask, mark), tab_width)
    return tuple(segments), width


def _meta_segments(text: str, tab_width: int) -> Tuple[Tuple[RenderedSegment, ...], int]:
    if not text:
        return (), 0
    segments, width = _expand_tabs([RenderedSegment(text, TokenRole.META)], tab_width)
    return tuple(segments), width


def _hunk_header_line(hunk: DiffHunk, tab_width: int) -> RenderedDiffLine:
    segments, width = _expand_tabs([RenderedSegment(hunk.header, TokenRole.HUNK_HEADER)], tab_width)
    return RenderedDiffLine(
        kind=RenderedLineKind.HUNK_HEADER,
        segments=tuple(segments),
        content_width=width,
    )


def _meta_line(text: str, tab_width: int = 4) -> RenderedDiffLine:
    segments, width = _meta_segments(text, tab_width)
    return RenderedDiffLine(kind=RenderedLineKind.META, segments=segments, content_width=width)


class _PairBuilder:
    """Accumulates unified lines and side-by-side rows for one file."""

    def __init__(self, tokenizer: Optional[Tokenizer], options: RenderOptions):
        self.tokenizer = tokenizer
        self.options = options
        self.lines: List[RenderedDiffLine] = []
        self.rows: List[SideBySideRenderedRow] = []

    def _segments(
        self, line: DiffLine, mask: Optional[Mask] = None
    ) -> Tuple[Tuple[RenderedSegment, ...], int]:
        if line.kind == DiffLineKind.META:
            return _meta_segments(line.content, self.options.tab_width)
        mark = IntralineMark.NONE
        if mask is not None:
            mark = IntralineMark.ADDED if line.kind == DiffLineKind.ADD else IntralineMark.REMOVED
        return build_segments(line.content, self.tokenizer, mask, mark, self.options.tab_width)

    def _rendered(self, line: DiffLine, segments: Tuple[RenderedSegment, ...], width: int) -> RenderedDiffLine:
        return RenderedDiffLine(
            kind=_RENDERED_KINDS[line.kind],
            old_line=line.old_line,
            new_line=line.new_line,
            prefix=_PREFIXES[line.kind],
            segments=segments,
            content_width=width,
        )

    @staticmethod
    def _cell(
        line: DiffLine, number: int, segments: Tuple[RenderedSegment, ...], width: int
    ) -> RenderedSideCell:
        return RenderedSideCell(
            kind=_RENDERED_KINDS[line.kind],
            line_number=number,
            prefix=_PREFIXES[line.kind],
            segments=segments,
            content_width=width,
        )

    def add_shared(self, line: RenderedDiffLine) -> None:
        self.lines.append(line)
        self.rows.append(SideBySideRenderedRow.shared_row(line))

    def add_context(self, line: DiffLine) -> None:
        segments, width = self._segments(line)
        self.lines.append(self._rendered(line, segments, width))
        self.rows.append(
            SideBySideRenderedRow.paired_row(
                self._cell(line, line.old_line, segments, width),
                self._cell(line, line.new_line, segments, width),
            )
        )

    def add_meta(self, line: DiffLine) -> None:
        segments, width = self._segments(line)
        self.add_shared(self._rendered(line, segments, width))

    def add_change_block(self, removes: Sequence[DiffLine], adds: Sequence[DiffLine]) -> None:
        masks: List[Optional[MaskPair]] = []
        if self.options.intraline_enabled and removes and adds:
            masks = pair_change_block(
                [line.content for line in removes],
                [line.content for line in adds],
                max_cells=self.options.intraline_max_cells,
            )

        def mask_for(index: int, side: int) -> Optional[Mask]:
            if index >= len(masks) or masks[index] is None:
                return None
            return masks[index][side]

        left_cells: List[RenderedSideCell] = []
        right_cells: List[RenderedSideCell] = []
        for index, line in enumerate(removes):
            segments, width = self._segments(line, mask_for(index, 0))
            self.lines.append(self._rendered(line, segments, width))
            left_cells.append(self._cell(line, line.old_line, segments, width))
        for index, line in enumerate(adds):
            segments, width = self._segments(line, mask_for(index, 1))
            self.lines.append(self._rendered(line, segments, width))
            right_cells.append(self._cell(line, line.new_line, segments, width))

        for index in range(max(len(left_cells), len(right_cells))):
            left = left_cells[index] if index < len(left_cells) else None
            right = right_cells[index] if index < len(right_cells) else None
            self.rows.append(SideBySideRenderedRow.paired_row(left, right))

    def add_hunk(self, hunk: DiffHunk) -> None:
        self.add_shared(_hunk_header_line(hunk, self.options.tab_width))
        lines = hunk.lines
        index = 0
        while index < len(lines):
            line = lines[index]
            if line.kind == DiffLineKind.CONTEXT:
                self.add_context(line)
                index += 1
            elif line.kind == DiffLineKind.META:
                self.add_meta(line)
                index += 1
            else:
                removes: List[DiffLine] = []
                while index < len(lines) and lines[index].kind == DiffLineKind.REMOVE:
                    removes.append(lines[index])
                    index += 1
                adds: List[DiffLine] = []
                while index < len(lines) and lines[index].kind == DiffLineKind.ADD:
                    adds.append(lines[index])
                    index += 1
                self.add_change_block(removes, adds)


def _rendered_file(title: str, lines: Sequence[RenderedDiffLine]) -> RenderedFile:
    return RenderedFile(
        title=title,
        lines=tuple(lines),
        old_num_width=_digits(max((line.old_line for line in lines), default=0)),
        new_num_width=_digits(max((line.new_line for line in lines), default=0)),
        max_content_width=max((line.content_width for line in lines), default=0),
    )


def _side_by_side_file(title: str, rows: Sequence[SideBySideRenderedRow]) -> SideBySideRenderedFile:
    left_number = right_number = 0
    left_width = right_width = 0
    for row in rows:
        if row.is_shared:
            left_width = max(left_width, row.shared.content_width)
            right_width = max(right_width, row.shared.content_width)
            continue
        if row.left is not None:
            left_number = max(left_number, row.left.line_number)
            left_width = max(left_width, row.left.content_width)
        if row.right is not None:
            right_number = max(right_number, row.right.line_number)
            right_width = max(right_width, row.right.content_width)
    return SideBySideRenderedFile(
        title=title,
        rows=tuple(rows),
        left_num_width=_digits(left_number),
        right_num_width=_digits(right_number),
        left_max_content_width=left_width,
        right_max_content_width=right_width,
    )


def build_rendered_pair(
    file: DiffFile,
    tokenizer_factory: TokenizerFactory = pygments_tokenizer_factory,
    options: RenderOptions = DEFAULT_RENDER_OPTIONS,
) -> Tuple[RenderedFile, SideBySideRenderedFile]:
    """Build the unified and side-by-side models for ``file`` in one pass."""
    builder = _PairBuilder(tokenizer_factory(file.syntax_path), options)
    if not file.hunks:
        message = BINARY_FILE_MESSAGE if file.is_binary else NO_CONTENT_MESSAGE
        builder.add_shared(_meta_line(message, options.tab_width))
    for hunk in file.hunks:
        builder.add_hunk(hunk)

    logger.debug(
        "[render_model] Built rendered pair",
        extra={"file_path": file.display_path, "lines": len(builder.lines), "rows": len(builder.rows)},
    )
    return (
        _rendered_file(file.display_path, builder.lines),
        _side_by_side_file(file.display_path, builder.rows),
    )


def build_rendered_file(
    file: DiffFile,
    tokenizer_factory: TokenizerFactory = pygments_tokenizer_factory,
    options: RenderOptions = DEFAULT_RENDER_OPTIONS,
) -> RenderedFile:
    return build_rendered_pair(file, tokenizer_factory, options)[0]


def build_side_by_side_rendered_file(
    file: DiffFile,
    tokenizer_factory: TokenizerFactory = pygments_tokenizer_factory,
    options: RenderOptions = DEFAULT_RENDER_OPTIONS,
) -> SideBySideRenderedFile:
    return build_rendered_pair(file, tokenizer_factory, options)[1]


def build_meta_rendered_file(title: str, body_lines: Iterable[str]) -> RenderedFile:
    """Wrap informational text (empty state, errors, summaries) as a file model."""
    lines = [_meta_line(text) for text in body_lines] or [_meta_line("")]
    return _rendered_file(title, lines)


def build_side_by_side_from_rendered(rendered: RenderedFile) -> SideBySideRenderedFile:
    """Show a unified model in the two-column layout, one shared row per line."""
    return SideBySideRenderedFile(
        title=rendered.title,
        rows=tuple(SideBySideRenderedRow.shared_row(line) for line in rendered.lines),
        left_num_width=rendered.old_num_width,
        right_num_width=rendered.new_num_width,
        left_max_content_width=rendered.max_content_width,
        right_max_content_width=rendered.max_content_width,
    )


def message_to_rendered(title: str, text: str) -> RenderedFile:
    return build_meta_rendered_file(title, text.replace("\r\n", "\n").split("\n"))


__all__ = [
    "BINARY_FILE_MESSAGE",
    "NO_CONTENT_MESSAGE",
    "RenderOptions",
    "DEFAULT_RENDER_OPTIONS",
    "build_meta_rendered_file",
    "build_rendered_file",
    "build_rendered_pair",
    "build_segments",
    "build_side_by_side_from_rendered",
    "build_side_by_side_rendered_file",
    "cell_text",
    "line_number_text",
    "line_text",
    "message_to_rendered",
]
