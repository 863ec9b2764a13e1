from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Iterator, List

from .model import Block

logger = logging.getLogger(__name__)

Listener = Callable[["BlockStore"], None]


@dataclass(frozen=True)
class BlockCallbacks:
    """Mutation callbacks bound to one block index, for a pane row."""

    on_edit: Callable[[str], bool]
    on_delete: Callable[[], bool]
    on_merge_next: Callable[[], bool]


class BlockStore:
    """Ordered, mutable sequence of blocks.

    Mutations that would break the store's constraints (deleting the only
    block, merging past the end, touching an index outside the store) are
    ignored and return ``False``. Every successful mutation marks the store
    dirty and notifies the subscribers in order.
    """

    def __init__(self, blocks: Iterable[Block] = ()) -> None:
        self._blocks: List[Block] = list(blocks)
        self._listeners: List[Listener] = []
        self.dirty = False

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __getitem__(self, index: int) -> Block:
        return self._blocks[index]

    @property
    def blocks(self) -> tuple[Block, ...]:
        return tuple(self._blocks)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self, blocks: Iterable[Block]) -> None:
        """Replace every block, e.g. after opening or reformatting a file."""
        self._blocks = list(blocks)
        self.dirty = False
        self._notify()

    def mark_clean(self) -> None:
        self.dirty = False

    def edit(self, index: int, new_content: str) -> bool:
        if not self._valid(index):
            return False
        block = self._blocks[index]
        if block.content == new_content:
            return False
        self._blocks[index] = replace(block, content=new_content)
        self._changed()
        return True

    def delete(self, index: int) -> bool:
        if len(self._blocks) <= 1 or not self._valid(index):
            return False
        del self._blocks[index]
        self._changed()
        return True

    def merge_next(self, index: int) -> bool:
        if not self._valid(index) or index >= len(self._blocks) - 1:
            return False
        first, second = self._blocks[index], self._blocks[index + 1]
        self._blocks[index] = replace(
            first,
            content=f"{first.content.strip()}\n{second.content.strip()}",
            end_line=max(first.end_line, second.end_line),
        )
        del self._blocks[index + 1]
        self._changed()
        return True

    def bind(self, index: int) -> BlockCallbacks:
        return BlockCallbacks(
            on_edit=lambda content: self.edit(index, content),
            on_delete=lambda: self.delete(index),
            on_merge_next=lambda: self.merge_next(index),
        )

    def _valid(self, index: int) -> bool:
        if 0 <= index < len(self._blocks):
            return True
        logger.debug("Ignoring mutation of block %d (store has %d)", index, len(self._blocks))
        return False

    def _changed(self) -> None:
        self.dirty = True
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
