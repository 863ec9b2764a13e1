from __future__ import annotations

from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Cm, Pt

A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297

FONT_NAME = "Times New Roman"
CODE_FONT_NAME = "Courier New"
FONT_SIZE_PT = 12
CODE_FONT_SIZE_PT = 10
LINE_SPACING_PT = 16

MARGIN_CM = 2.0


def apply_page_layout(doc) -> None:
    """A4 page with equal margins."""
    section = doc.sections[0]
    section.page_height = Cm(A4_HEIGHT_MM / 10)
    section.page_width = Cm(A4_WIDTH_MM / 10)
    section.left_margin = Cm(MARGIN_CM)
    section.right_margin = Cm(MARGIN_CM)
    section.top_margin = Cm(MARGIN_CM)
    section.bottom_margin = Cm(MARGIN_CM)


def set_run_font(run, bold: bool = False, italic: bool = False, code: bool = False) -> None:
    run.font.name = CODE_FONT_NAME if code else FONT_NAME
    run.font.size = Pt(CODE_FONT_SIZE_PT if code else FONT_SIZE_PT)
    run.bold = bold
    run.italic = italic


def apply_body_paragraph_format(paragraph) -> None:
    paragraph.alignment = WD_ALIGN_PARAGRAPH.LEFT
    paragraph.paragraph_format.space_before = Pt(0)
    paragraph.paragraph_format.space_after = Pt(LINE_SPACING_PT / 2)
    paragraph.paragraph_format.line_spacing = Pt(LINE_SPACING_PT)


def apply_code_paragraph_format(paragraph) -> None:
    paragraph.alignment = WD_ALIGN_PARAGRAPH.LEFT
    paragraph.paragraph_format.space_before = Pt(0)
    paragraph.paragraph_format.space_after = Pt(LINE_SPACING_PT / 2)
    paragraph.paragraph_format.left_indent = Cm(0.5)
    for run in paragraph.runs:
        set_run_font(run, code=True)
