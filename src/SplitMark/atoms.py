"""Turn parser nodes and uncovered line ranges into atoms.

An atom is the smallest line range that may become a block. Opaque nodes
(tables, code, raw HTML, math, front matter, footnotes, rules) stay whole,
containers contribute their children, and paragraphs or headings spanning
several lines are split into one atom per line. Block formulas delimited by
``$$`` are never split, neither inside a paragraph nor inside a gap.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from .lines import line_at
from .model import COMPLEX_TYPES, CONTAINER_TYPES, TEXT_TYPES, Atom, Node

FORMULA_FENCE = "$$"

LINE = "line"
MATH = "math"

_QUOTE_PREFIX = re.compile(r"^(?:>\s?)+")
# A closing fence may carry an equation number: ``$$ (1)``.
_CLOSING_FENCE = re.compile(r"\$\$\s*(?:\([^)\s]+\))?$")


def formula_text(line: str) -> str:
    """Line text with surrounding whitespace and blockquote markers removed."""
    return _QUOTE_PREFIX.sub("", line.strip()).strip()


def closes_formula(text: str) -> bool:
    return _CLOSING_FENCE.search(text) is not None


def formula_spans(start: int, end: int, lines: Sequence[str]) -> List[tuple[int, int]]:
    """Split ``start..end`` into per-line ranges, keeping ``$$`` formulas whole.

    A line starting with the fence is a one-line formula when it also ends
    with the fence (optionally followed by an equation number) and is longer
    than the fence alone. Otherwise it opens a formula that runs to the first
    later line closing it. An unterminated opener is treated as an ordinary
    line. Blockquote markers in front of the fence are ignored.
    """
    spans: List[tuple[int, int]] = []
    current = start
    while current <= end:
        text = formula_text(line_at(lines, current))
        if text.startswith(FORMULA_FENCE):
            if len(text) > len(FORMULA_FENCE) and closes_formula(text):
                spans.append((current, current))
                current += 1
                continue
            closing = _find_closing_fence(current + 1, end, lines)
            if closing is not None:
                spans.append((current, closing))
                current = closing + 1
                continue
        spans.append((current, current))
        current += 1
    return spans


def _find_closing_fence(start: int, end: int, lines: Sequence[str]) -> int | None:
    for number in range(start, end + 1):
        if closes_formula(formula_text(line_at(lines, number))):
            return number
    return None


def fill_gap(start: int, end: int, lines: Sequence[str]) -> List[Atom]:
    """One atom per line of ``start..end``, formulas absorbed into one atom."""
    return [_span_atom(lo, hi, lines) for lo, hi in formula_spans(start, end, lines)]


def _span_atom(start: int, end: int, lines: Sequence[str]) -> Atom:
    if end > start or formula_text(line_at(lines, start)).startswith(FORMULA_FENCE):
        return Atom(start, end, MATH)
    return Atom(start, end, LINE)


def classify(node: Node, lines: Sequence[str]) -> List[Atom]:
    """Classify ``node`` and its descendants into atoms, in document order."""
    atoms: List[Atom] = []
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, CONTAINER_TYPES):
            stack.extend(reversed(current.children))
            continue
        position = current.position
        if position is None:
            continue
        start, end = position.start_line, position.end_line
        if isinstance(current, COMPLEX_TYPES):
            atoms.append(Atom(start, end, current.kind))
        elif isinstance(current, TEXT_TYPES) and end > start:
            atoms.extend(fill_gap(start, end, lines))
        else:
            atoms.append(Atom(start, end, current.kind))
    return atoms


def sort_atoms(atoms: Sequence[Atom]) -> List[Atom]:
    return sorted(atoms, key=lambda atom: (atom.start_line, atom.end_line))
