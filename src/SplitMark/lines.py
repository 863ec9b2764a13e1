from __future__ import annotations

import re
from typing import List, Sequence

_LINE_BREAK = re.compile(r"\r\n?|\n")


def split_lines(text: str) -> List[str]:
    """Split document text into physical lines (line N is ``lines[N - 1]``)."""
    if not text:
        return []
    return _LINE_BREAK.split(text)


def line_at(lines: Sequence[str], number: int) -> str:
    if 1 <= number <= len(lines):
        return lines[number - 1]
    return ""


def join_range(lines: Sequence[str], start: int, end: int) -> str:
    """Join the inclusive 1-indexed range ``start..end``, clipped to the document."""
    first = max(start, 1)
    last = min(end, len(lines))
    if last < first:
        return ""
    return "\n".join(lines[first - 1 : last])


def is_blank(text: str) -> bool:
    return not text.strip()
