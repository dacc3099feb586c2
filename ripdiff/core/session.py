"""UI-agnostic viewer session: the parsed diff, per-file models and view state."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ripdiff.core.config import ViewerConfig
from ripdiff.core.models import DiffDocument, DiffFile
from ripdiff.core.parser import DiffParseError, parse_unified_diff
from ripdiff.core.render_model import (
    build_meta_rendered_file,
    build_rendered_pair,
    message_to_rendered,
)
from ripdiff.core.rendered import RenderedFile, SideBySideRenderedFile
from ripdiff.core.tokenizer import TokenizerFactory, pygments_tokenizer_factory
from ripdiff.core.view_state import DiffViewState, LayoutMode
from ripdiff.utils.log import get_logger

logger = get_logger()

EMPTY_HEADING = "No staged or unstaged changes."
EMPTY_DETAILS = "Make edits or stage files, then press r to refresh."

RenderedPair = Tuple[RenderedFile, SideBySideRenderedFile]


class DiffSession:
    """Holds one loaded diff and drives a :class:`DiffViewState` through it."""

    def __init__(
        self,
        staged: bool = False,
        config: Optional[ViewerConfig] = None,
        tokenizer_factory: TokenizerFactory = pygments_tokenizer_factory,
    ):
        self.staged = staged
        self.config = config or ViewerConfig()
        self.tokenizer_factory = tokenizer_factory
        self.document = DiffDocument()
        self.ordered_paths: List[str] = []
        self.active_path: Optional[str] = None
        self.load_error: Optional[str] = None
        self._files: Dict[str, DiffFile] = {}
        self._pairs: Dict[str, RenderedPair] = {}
        self._loaded = False
        self._showing_summary = False
        self.view_state = DiffViewState(
            layout_mode=LayoutMode(self.config.layout_mode),
            hard_wrap=self.config.hard_wrap,
            hide_change_signs=self.config.hide_change_signs,
            split_ratio=self.config.split_ratio,
        )

    @property
    def section_label(self) -> str:
        return "Staged" if self.staged else "Unstaged"

    @property
    def active_file(self) -> Optional[DiffFile]:
        if self.active_path is None:
            return None
        return self._files.get(self.active_path)

    def load(self, raw_text: str, staged: Optional[bool] = None) -> bool:
        """Parse ``raw_text`` and show its first file.

        On a parse error the previous model stays on screen when there is
        one, otherwise an error message is shown. Returns success.
        """
        if staged is not None:
            self.staged = staged
        try:
            document = parse_unified_diff(raw_text)
        except DiffParseError as exc:
            self.load_error = str(exc)
            logger.warning(
                "[session] Failed to parse diff: %s",
                exc,
                extra={"header": exc.header},
            )
            if not self._loaded:
                self.active_path = None
                self.view_state.set_rendered(message_to_rendered("Error", self.error_message()))
            return False

        self.load_document(document)
        return True

    def load_document(self, document: DiffDocument) -> None:
        """Replace the loaded diff with an already parsed ``document``."""
        self.load_error = None
        self._loaded = True
        self.document = document
        self._files = {file.display_path: file for file in document.files}
        self.ordered_paths = [file.display_path for file in document.files]
        self._pairs = {}
        self.active_path = None
        self._showing_summary = False
        logger.debug(
            "[session] Loaded diff",
            extra={"files": len(self.ordered_paths), "section": self.section_label},
        )

        if self.ordered_paths:
            self.select_file(self.ordered_paths[0])
        else:
            self.view_state.set_rendered(build_meta_rendered_file("Diff", [EMPTY_HEADING, "", EMPTY_DETAILS]))

    def rendered_pair(self, path: str) -> Optional[RenderedPair]:
        """Models for ``path``, built on first use and cached."""
        pair = self._pairs.get(path)
        if pair is not None:
            return pair
        file = self._files.get(path)
        if file is None:
            return None
        pair = build_rendered_pair(file, self.tokenizer_factory, self.config.render_options())
        self._pairs[path] = pair
        return pair

    def select_file(self, path: str) -> bool:
        pair = self.rendered_pair(path)
        if pair is None:
            return False
        self.active_path = path
        self._showing_summary = False
        self.view_state.set_rendered_pair(*pair)
        return True

    def move_file_cursor(self, delta: int) -> Optional[str]:
        """Select the file ``delta`` steps away, wrapping around both ends."""
        if not self.ordered_paths:
            return None
        if self.active_path in self.ordered_paths:
            index = (self.ordered_paths.index(self.active_path) + delta) % len(self.ordered_paths)
        else:
            index = len(self.ordered_paths) - 1 if delta < 0 else 0
        path = self.ordered_paths[index]
        self.select_file(path)
        return path

    def totals(self) -> Tuple[int, int, int]:
        """``(files, additions, deletions)`` for the loaded diff."""
        return (
            len(self.document.files),
            self.document.total_additions,
            self.document.total_deletions,
        )

    def viewer_title(self) -> str:
        if self._showing_summary:
            return f"{self.section_label} changes"
        if self.active_path is not None:
            return self.active_path
        if self.load_error:
            return "Error"
        return "Diff"

    def error_message(self) -> str:
        message = (self.load_error or "").strip() or "Unknown error"
        return f"Failed to load git diff:\n\n{message}\n\nPress r to retry."

    def summary_rendered(self) -> RenderedFile:
        files, additions, deletions = self.totals()
        section = self.section_label
        lines = [
            f"Section: {section}",
            f"Touched files: {files}",
            f"Additions: +{additions}",
            f"Deletions: -{deletions}",
            "",
            "Use n/p to jump between files in this section.",
        ]
        if files == 0:
            lines.extend(["", f"No {section.lower()} files in this diff."])
        return build_meta_rendered_file(f"{section} changes", lines)

    def show_summary(self) -> None:
        self.active_path = None
        self._showing_summary = True
        self.view_state.set_rendered(self.summary_rendered())

    def close(self) -> None:
        self.view_state.close()
