"""Word-level change highlighting between a removed and an added line.

Masks are per grapheme cluster: ``True`` marks a cluster that belongs to a
changed chunk.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ripdiff.utils.text_cells import split_graphemes

DEFAULT_MAX_CELLS = 250_000
SUPPRESS_RATIO = 0.70

_BRACKETS = frozenset("()[]{}")

Mask = List[bool]
MaskPair = Tuple[Mask, Mask]


@dataclass(frozen=True)
class _Chunk:
    text: str
    start: int
    end: int


def _chunk_class(grapheme: str) -> str:
    first = grapheme[0]
    if first.isalnum():
        return "word"
    if first.isspace():
        return "space"
    if first in _BRACKETS:
        return "bracket"
    return "symbol"


def _chunks(graphemes: Sequence[str]) -> List[_Chunk]:
    chunks: List[_Chunk] = []
    start = 0
    while start < len(graphemes):
        kind = _chunk_class(graphemes[start])
        end = start + 1
        if kind != "bracket":
            while end < len(graphemes) and _chunk_class(graphemes[end]) == kind:
                end += 1
        chunks.append(_Chunk("".join(graphemes[start:end]), start, end))
        start = end
    return chunks


def _mark(mask: Mask, chunks: Sequence[_Chunk]) -> None:
    for chunk in chunks:
        for index in range(chunk.start, chunk.end):
            mask[index] = True


def intraline_change_masks(
    old: str, new: str, max_cells: int = DEFAULT_MAX_CELLS
) -> Optional[MaskPair]:
    """Return per-grapheme change masks for ``old`` and ``new``.

    Returns ``None`` when the chunk comparison would exceed ``max_cells``
    table entries; callers treat that as "no highlighting".
    """
    old_graphemes = split_graphemes(old)
    new_graphemes = split_graphemes(new)
    old_mask = [False] * len(old_graphemes)
    new_mask = [False] * len(new_graphemes)

    old_chunks = _chunks(old_graphemes)
    new_chunks = _chunks(new_graphemes)

    prefix = 0
    limit = min(len(old_chunks), len(new_chunks))
    while prefix < limit and old_chunks[prefix].text == new_chunks[prefix].text:
        prefix += 1

    suffix = 0
    while (
        suffix < limit - prefix
        and old_chunks[len(old_chunks) - 1 - suffix].text
        == new_chunks[len(new_chunks) - 1 - suffix].text
    ):
        suffix += 1

    core_old = old_chunks[prefix : len(old_chunks) - suffix]
    core_new = new_chunks[prefix : len(new_chunks) - suffix]

    if not core_old or not core_new:
        _mark(old_mask, core_old)
        _mark(new_mask, core_new)
        return old_mask, new_mask

    if len(core_old) * len(core_new) > max_cells:
        return None

    rows, cols = len(core_old), len(core_new)
    # dp[o][n] = LCS length of core_old[o:] and core_new[n:].
    dp = [[0] * (cols + 1) for _ in range(rows + 1)]
    for o in range(rows - 1, -1, -1):
        row, below = dp[o], dp[o + 1]
        old_text = core_old[o].text
        for n in range(cols - 1, -1, -1):
            if old_text == core_new[n].text:
                row[n] = below[n + 1] + 1
            else:
                row[n] = below[n] if below[n] >= row[n + 1] else row[n + 1]

    o = n = 0
    while o < rows and n < cols:
        if core_old[o].text == core_new[n].text:
            o += 1
            n += 1
        elif dp[o + 1][n] >= dp[o][n + 1]:
            _mark(old_mask, (core_old[o],))
            o += 1
        else:
            _mark(new_mask, (core_new[n],))
            n += 1
    _mark(old_mask, core_old[o:])
    _mark(new_mask, core_new[n:])
    return old_mask, new_mask


def changed_ratio(mask: Sequence[bool]) -> float:
    if not mask:
        return 0.0
    return sum(1 for flag in mask if flag) / len(mask)


def pair_change_block(
    removes: Sequence[str],
    adds: Sequence[str],
    max_cells: int = DEFAULT_MAX_CELLS,
) -> List[Optional[MaskPair]]:
    """Compute masks for the positional pairs of one change block.

    The result has one entry per index ``0..min(len(removes), len(adds)) - 1``;
    ``None`` means the pair is drawn without intraline marks.
    """
    pairs: List[Optional[MaskPair]] = []
    for old, new in zip(removes, adds):
        if bool(old) != bool(new):
            pairs.append(None)
            continue
        masks = intraline_change_masks(old, new, max_cells=max_cells)
        if masks is None:
            pairs.append(None)
            continue
        old_mask, new_mask = masks
        if changed_ratio(old_mask) >= SUPPRESS_RATIO or changed_ratio(new_mask) >= SUPPRESS_RATIO:
            pairs.append(None)
            continue
        pairs.append(masks)
    return pairs


__all__ = [
    "DEFAULT_MAX_CELLS",
    "SUPPRESS_RATIO",
    "Mask",
    "MaskPair",
    "changed_ratio",
    "intraline_change_masks",
    "pair_change_block",
]
