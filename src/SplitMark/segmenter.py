from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import List, Sequence

from markdown_it import MarkdownIt

from .atoms import FORMULA_FENCE, MATH, classify, fill_gap, sort_atoms
from .config import SegmenterConfig
from .html_tables import merge_html_tables, refine_html_atoms
from .lines import is_blank, join_range, split_lines
from .markdown_parser import parse_markdown
from .model import Atom, Block, Node

logger = logging.getLogger(__name__)


class BlockBuilder:
    """Materialize sorted atoms into blocks, filling the gaps between them."""

    def __init__(self, lines: Sequence[str]) -> None:
        self.lines = lines
        self.blocks: List[Block] = []
        self.last_line = 0

    def add(self, index: int, atom: Atom) -> None:
        start = atom.start_line
        end = min(atom.end_line, len(self.lines))
        if start - 1 > self.last_line:
            self._add_gap(self.last_line + 1, start - 1, "gap")
            self.last_line = start - 1

        # Overlapping atoms lose the lines already emitted.
        actual_start = max(start, self.last_line + 1)
        if end >= actual_start:
            content = join_range(self.lines, actual_start, end)
            if not is_blank(content):
                self.blocks.append(
                    Block(
                        id=f"block-{index}-{actual_start}",
                        content=content,
                        start_line=actual_start,
                        end_line=end,
                        block_type=atom.kind,
                    )
                )
            self.last_line = end

    def finish(self) -> List[Block]:
        if self.last_line < len(self.lines):
            self._add_gap(self.last_line + 1, len(self.lines), "gap-end")
            self.last_line = len(self.lines)
        return self.blocks

    def _add_gap(self, start: int, end: int, prefix: str) -> None:
        for n, atom in enumerate(fill_gap(start, end, self.lines)):
            content = join_range(self.lines, atom.start_line, atom.end_line)
            if is_blank(content):
                continue
            self.blocks.append(
                Block(
                    id=f"{prefix}-{atom.start_line}-{n}",
                    content=content,
                    start_line=atom.start_line,
                    end_line=atom.end_line,
                    block_type=atom.kind,
                )
            )


def build_blocks(atoms: Sequence[Atom], lines: Sequence[str]) -> List[Block]:
    builder = BlockBuilder(lines)
    for index, atom in enumerate(atoms):
        builder.add(index, atom)
    return builder.finish()


def collect_atoms(root: Node, lines: Sequence[str], config: SegmenterConfig | None = None) -> List[Atom]:
    """Classify, sort and refine the atoms of a parsed document."""
    config = config or SegmenterConfig()
    atoms = sort_atoms(classify(root, lines))
    atoms = refine_html_atoms(atoms, lines)
    atoms = merge_html_tables(atoms, lines, max_gap=config.html_table_merge_gap)
    return sort_atoms(atoms)


def segment(text: str, config: SegmenterConfig | None = None, md: MarkdownIt | None = None) -> List[Block]:
    """Split markdown text into ordered, non-overlapping blocks."""
    config = config or SegmenterConfig()
    if is_blank(text):
        return []
    lines = split_lines(text)
    atoms = collect_atoms(parse_markdown(text, md), lines, config)
    blocks = build_blocks(atoms, lines)
    if config.balance_formula_fences:
        blocks = balance_formula_fences(blocks)
    logger.debug("Segmented %d lines into %d blocks", len(lines), len(blocks))
    return blocks


async def segment_async(
    text: str, config: SegmenterConfig | None = None, md: MarkdownIt | None = None
) -> List[Block]:
    """Same as :func:`segment`, yielding to the event loop between chunks of atoms."""
    config = config or SegmenterConfig()
    if is_blank(text):
        return []
    lines = split_lines(text)
    atoms = collect_atoms(parse_markdown(text, md), lines, config)
    await asyncio.sleep(0)

    builder = BlockBuilder(lines)
    for index, atom in enumerate(atoms):
        builder.add(index, atom)
        if (index + 1) % config.chunk_size == 0:
            await asyncio.sleep(0)
    blocks = builder.finish()
    if config.balance_formula_fences:
        blocks = balance_formula_fences(blocks)
    logger.debug("Segmented %d lines into %d blocks", len(lines), len(blocks))
    return blocks


def _bare_fences(content: str) -> int:
    return sum(1 for line in content.splitlines() if line.strip() == FORMULA_FENCE)


def balance_formula_fences(blocks: Sequence[Block]) -> List[Block]:
    """Merge a block holding an unclosed ``$$`` with its successors until it closes."""
    balanced: List[Block] = []
    k = 0
    while k < len(blocks):
        current = replace(blocks[k])
        count = _bare_fences(current.content)
        while count % 2 and k + 1 < len(blocks):
            k += 1
            following = blocks[k]
            current.content = f"{current.content}\n{following.content}"
            current.end_line = following.end_line
            current.block_type = MATH
            count = _bare_fences(current.content)
        balanced.append(current)
        k += 1
    return balanced
