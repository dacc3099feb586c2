"""Grapheme and terminal cell helpers.

Every horizontal measurement in ripdiff is done in terminal cells over
grapheme clusters: a cluster is never split, and each cluster occupies at
least one cell so cursor and scroll arithmetic stays monotonic.

Clusters are approximated with wcwidth: zero-width characters (combining
marks, variation selectors, joiners) stay with the character before them,
a character after a zero-width joiner continues the cluster, and regional
indicators pair up into flags.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterator, List, Tuple

import wcwidth

_EMOJI_PRESENTATION = "\ufe0f"
_ZERO_WIDTH_JOINER = "\u200d"


def _is_regional_indicator(char: str) -> bool:
    return 0x1F1E6 <= ord(char) <= 0x1F1FF


def _extends_cluster(cluster: str, char: str) -> bool:
    if cluster.endswith(_ZERO_WIDTH_JOINER):
        return True
    if wcwidth.wcwidth(char) == 0:
        return True
    # Two regional indicators form one flag.
    return len(cluster) == 1 and _is_regional_indicator(cluster) and _is_regional_indicator(char)


def iter_graphemes(text: str) -> Iterator[str]:
    """Iterate over grapheme clusters without materialising a list."""
    cluster = ""
    for char in text:
        if cluster and _extends_cluster(cluster, char):
            cluster += char
            continue
        if cluster:
            yield cluster
        cluster = char
    if cluster:
        yield cluster


def split_graphemes(text: str) -> List[str]:
    """Split text into grapheme clusters."""
    return list(iter_graphemes(text))


@lru_cache(maxsize=4096)
def grapheme_width(grapheme: str) -> int:
    """Return the cell width of one grapheme cluster (minimum 1)."""
    if not grapheme:
        return 0
    width = wcwidth.wcwidth(grapheme[0])
    if width <= 0:
        # Lone combining marks and control characters still take a cell when drawn.
        width = max((wcwidth.wcwidth(char) for char in grapheme), default=0)
    if width == 1 and _EMOJI_PRESENTATION in grapheme:
        width = 2
    if width <= 0:
        return 1
    return min(width, 2)


def graphemes_with_widths(text: str) -> List[Tuple[str, int]]:
    """Split text into ``(cluster, width)`` pairs."""
    return [(grapheme, grapheme_width(grapheme)) for grapheme in iter_graphemes(text)]
