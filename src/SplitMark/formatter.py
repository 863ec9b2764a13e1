from __future__ import annotations

import re

from .atoms import FORMULA_FENCE

_INLINE_BLOCK_FORMULA = re.compile(r"\$\$([^$\n]+?)\$\$")
_BLANK_RUN = re.compile(r"\n{3,}")


def format_markdown(text: str) -> str:
    """Normalize a document so every block formula stands alone.

    One-line ``$$x$$`` formulas are expanded to the multi-line form, bare
    ``$$`` fences get a blank line before the opening and after the closing
    one, runs of blank lines collapse to one and the text is stripped.
    """
    content = text.replace("\r\n", "\n")
    content = _INLINE_BLOCK_FORMULA.sub(lambda m: f"\n\n$$\n{m.group(1)}\n$$\n\n", content)
    content = "\n".join(_pad_fences(content.split("\n")))
    content = _BLANK_RUN.sub("\n\n", content)
    return content.strip()


def _pad_fences(lines: list[str]) -> list[str]:
    padded = list(lines)
    in_formula = False
    i = 0
    while i < len(padded):
        if padded[i].strip() == FORMULA_FENCE:
            if not in_formula:
                if i > 0 and padded[i - 1].strip():
                    padded.insert(i, "")
                    i += 1
                in_formula = True
            else:
                if i + 1 < len(padded) and padded[i + 1].strip():
                    padded.insert(i + 1, "")
                in_formula = False
        i += 1
    return padded
