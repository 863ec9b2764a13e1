from __future__ import annotations

import logging
from pathlib import Path

from .block_store import BlockStore
from .config import AppConfig
from .formatter import format_markdown
from .preview import create_preview_parser, render_block
from .reconciler import ContentReconciler
from .renderer_docx import render_text
from .scroll_sync import Scheduler, ScrollSynchronizer
from .segmenter import segment, segment_async
from .utils import read_markdown, write_markdown

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """A document could not be read, written or exported."""


class EditorSession:
    """One open document: its blocks, flattened text and pane synchronizer."""

    def __init__(self, config: AppConfig | None = None, scheduler: Scheduler | None = None) -> None:
        self.config = config or AppConfig()
        self.store = BlockStore()
        self.reconciler = ContentReconciler(self.store)
        self.sync = ScrollSynchronizer(self.config.sync, scheduler)
        self.current_file: Path | None = None
        self._preview_md = create_preview_parser()

    @property
    def is_dirty(self) -> bool:
        return self.store.dirty

    @property
    def text(self) -> str:
        return self.reconciler.text

    @property
    def char_count(self) -> int:
        return self.reconciler.char_count

    def render_preview(self, index: int) -> str:
        """HTML for the preview-pane row showing block ``index``."""
        return render_block(self.store[index], self._preview_md)

    def open(self, path: str | Path) -> None:
        path = Path(path)
        text = self._read(path)
        self._load(segment(text, self.config.segmenter))
        self.current_file = path
        logger.info("Loaded %s (%d blocks)", path, len(self.store))

    async def open_async(self, path: str | Path) -> None:
        path = Path(path)
        text = self._read(path)
        self._load(await segment_async(text, self.config.segmenter))
        self.current_file = path
        logger.info("Loaded %s (%d blocks)", path, len(self.store))

    def restore(self) -> bool:
        """Reload the current file, discarding every edit."""
        if self.current_file is None:
            return False
        self._load(segment(self._read(self.current_file), self.config.segmenter))
        logger.info("Restored %s", self.current_file)
        return True

    def format(self) -> bool:
        """Reformat the document and rebuild its blocks; True when the text changed."""
        original = self.text
        formatted = format_markdown(original)
        dirty = self.store.dirty
        self._load(segment(formatted, self.config.segmenter))
        changed = self.text != original
        self.store.dirty = dirty or changed
        return changed

    def save(self) -> bool:
        if self.current_file is None or not self.text:
            return False
        self._write(self.current_file, self.text)
        self.store.mark_clean()
        logger.info("Saved %s", self.current_file)
        return True

    def save_as(self, path: str | Path) -> bool:
        if not self.text:
            return False
        path = Path(path)
        self._write(path, self.text)
        self.current_file = path
        self.store.mark_clean()
        logger.info("Saved as %s", path)
        return True

    def export_docx(self, path: str | Path) -> None:
        if not self.text:
            raise DocumentError("Nothing to export: open a markdown file first.")
        try:
            render_text(self.text, path, self.config.segmenter)
        except OSError as exc:
            raise DocumentError(f"Failed to export {path}: {exc}") from exc
        logger.info("Exported %s", path)

    def _load(self, blocks) -> None:
        self.store.load(blocks)
        self.sync.reset()

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return read_markdown(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentError(f"Failed to read {path}: {exc}") from exc

    @staticmethod
    def _write(path: Path, text: str) -> None:
        try:
            write_markdown(path, text)
        except OSError as exc:
            raise DocumentError(f"Failed to save {path}: {exc}") from exc
