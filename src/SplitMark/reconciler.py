from __future__ import annotations

from typing import Callable, Iterable

from .block_store import BlockStore
from .model import Block

BLOCK_SEPARATOR = "\n\n"


def reconcile(blocks: Iterable[Block]) -> str:
    """Flatten blocks into document text, one blank line between blocks."""
    parts = [block.content.strip() for block in blocks]
    return BLOCK_SEPARATOR.join(part for part in parts if part)


class ContentReconciler:
    """Keeps the flattened text of a store current across mutations."""

    def __init__(self, store: BlockStore) -> None:
        self.text = reconcile(store)
        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._on_change)

    @property
    def char_count(self) -> int:
        return len(self.text)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, store: BlockStore) -> None:
        self.text = reconcile(store)
