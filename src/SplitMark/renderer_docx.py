from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from docx import Document as DocxDocument
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from markdown_it import MarkdownIt

from . import docx_format
from .atoms import FORMULA_FENCE, formula_text
from .config import SegmenterConfig
from .markdown_parser import create_parser
from .model import Block
from .segmenter import segment

_HEADING = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
_LIST_ITEM = re.compile(r"^\s*(?:([-*+])|\d+[.)])\s+(.*)$")
_QUOTE = re.compile(r"^\s*>\s?(.*)$")
_TABLE_SEPARATOR_CELL = re.compile(r"^:?-+:?$")
_CODE_FENCES = ("```", "~~~")
_EQUATION_NUMBER = re.compile(r"(?<=\$\$)\s*\(([^)\s]+)\)$")

LATEX_TO_UNICODE = {
    r"\pi": "π",
    r"\alpha": "α",
    r"\beta": "β",
    r"\gamma": "γ",
    r"\delta": "δ",
    r"\theta": "θ",
    r"\lambda": "λ",
    r"\mu": "μ",
    r"\sigma": "σ",
    r"\omega": "ω",
    r"\cdot": "·",
    r"\times": "×",
    r"\leq": "≤",
    r"\geq": "≥",
}


@dataclass
class RenderState:
    md: MarkdownIt
    equation_counter: int = 0


def render_blocks(blocks: Iterable[Block], output_path: str | Path) -> None:
    output_path = Path(output_path)
    state = RenderState(md=create_parser())
    docx = DocxDocument()
    docx_format.apply_page_layout(docx)

    for block in blocks:
        _dispatch_block(docx, block, state)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    docx.save(output_path)


def render_text(text: str, output_path: str | Path, config: SegmenterConfig | None = None) -> None:
    render_blocks(segment(text, config), output_path)


def _dispatch_block(docx: DocxDocument, block: Block, state: RenderState) -> None:
    content = block.content.strip()
    if not content or block.block_type == "yaml":
        return
    if block.block_type == "math":
        _render_formula(docx, content, state)
    elif block.block_type == "code":
        _render_code(docx, _strip_code_fences(content))
    elif block.block_type == "html":
        _render_code(docx, content)
    elif block.block_type == "table":
        _render_table(docx, content)
    elif block.block_type == "thematicBreak":
        _render_rule(docx)
    else:
        for line in content.splitlines():
            if line.strip():
                _render_line(docx, line, state)


def _render_line(docx: DocxDocument, line: str, state: RenderState) -> None:
    heading = _HEADING.match(line)
    if heading:
        docx.add_heading(heading.group(2), level=len(heading.group(1)))
        return

    stripped = line.strip()
    if stripped.startswith(FORMULA_FENCE) and stripped.endswith(FORMULA_FENCE) and len(stripped) > 4:
        _render_formula(docx, stripped, state)
        return

    style = None
    text = line
    item = _LIST_ITEM.match(line)
    quote = _QUOTE.match(line)
    if item:
        style = "List Bullet" if item.group(1) else "List Number"
        text = item.group(2)
    elif quote:
        style = "Quote"
        text = quote.group(1)

    paragraph = docx.add_paragraph(style=style)
    _add_inline_runs(paragraph, text, state.md)
    docx_format.apply_body_paragraph_format(paragraph)


def _add_inline_runs(paragraph, text: str, md: MarkdownIt) -> None:
    bold = False
    italic = False
    for token in md.parseInline(text.strip()):
        for child in token.children or []:
            if child.type == "text":
                docx_format.set_run_font(paragraph.add_run(child.content), bold=bold, italic=italic)
            elif child.type in {"softbreak", "hardbreak"}:
                paragraph.add_run(" ")
            elif child.type == "strong_open":
                bold = True
            elif child.type == "strong_close":
                bold = False
            elif child.type == "em_open":
                italic = True
            elif child.type == "em_close":
                italic = False
            elif child.type == "code_inline":
                docx_format.set_run_font(paragraph.add_run(child.content), code=True)
            elif child.type in {"math_inline", "math_single"}:
                docx_format.set_run_font(paragraph.add_run(_latex_to_plain_text(child.content)), italic=True)
            elif child.type == "image":
                alt = child.content or child.attrGet("src") or ""
                docx_format.set_run_font(paragraph.add_run(f"[{alt}]"), italic=True)


def _render_code(docx: DocxDocument, code: str) -> None:
    paragraph = docx.add_paragraph()
    paragraph.add_run(code)
    docx_format.apply_code_paragraph_format(paragraph)


def _render_formula(docx: DocxDocument, content: str, state: RenderState) -> None:
    body, label = _formula_body(content)
    if label is None:
        state.equation_counter += 1
        label = str(state.equation_counter)
    paragraph = docx.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _append_math(paragraph, _latex_to_plain_text(body))
    number = paragraph.add_run(f"\t({label})")
    docx_format.set_run_font(number)


def _render_table(docx: DocxDocument, content: str) -> None:
    rows = _table_rows(content)
    if not rows:
        return
    col_count = max(len(row) for row in rows)
    table = docx.add_table(rows=len(rows), cols=col_count)
    table.style = "Table Grid"
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    for r_idx, row in enumerate(rows):
        for c_idx, cell_text in enumerate(row):
            cell = table.cell(r_idx, c_idx)
            cell.text = cell_text
            for run in cell.paragraphs[0].runs:
                docx_format.set_run_font(run, bold=r_idx == 0)


def _render_rule(docx: DocxDocument) -> None:
    paragraph = docx.add_paragraph()
    run = paragraph.add_run("—" * 10)
    docx_format.set_run_font(run)
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER


def _table_rows(content: str) -> list[list[str]]:
    rows: list[list[str]] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        cells = [cell.strip() for cell in stripped.strip("|").split("|")]
        if all(_TABLE_SEPARATOR_CELL.match(cell) for cell in cells):
            continue
        rows.append(cells)
    return rows


def _strip_code_fences(content: str) -> str:
    lines = content.splitlines()
    if lines and lines[0].lstrip().startswith(_CODE_FENCES):
        lines = lines[1:]
        if lines and lines[-1].strip().startswith(_CODE_FENCES):
            lines = lines[:-1]
    return "\n".join(lines)


def _formula_body(content: str) -> tuple[str, str | None]:
    """Formula text without fences or quote markers, and its explicit number if any."""
    body = "\n".join(formula_text(line) for line in content.splitlines()).strip()
    label = None
    eqno = _EQUATION_NUMBER.search(body)
    if eqno:
        label = eqno.group(1)
        body = body[: eqno.start()].rstrip()
    if body.startswith(FORMULA_FENCE):
        body = body[len(FORMULA_FENCE) :]
    if body.endswith(FORMULA_FENCE):
        body = body[: -len(FORMULA_FENCE)]
    return " ".join(line.strip() for line in body.splitlines() if line.strip()), label


def _latex_to_plain_text(expr: str) -> str:
    """Convert a small subset of LaTeX commands to Unicode glyphs for DOCX text."""
    text = expr.strip()
    for latex, uni in LATEX_TO_UNICODE.items():
        text = text.replace(latex, uni)
    return text


def _append_math(paragraph, text: str) -> None:
    """Insert a simple Word math object into the paragraph."""
    omath = OxmlElement("m:oMath")
    run = OxmlElement("m:r")
    text_el = OxmlElement("m:t")
    text_el.text = text
    run.append(text_el)
    omath.append(run)
    paragraph._p.append(omath)
