from __future__ import annotations

import re

from markdown_it import MarkdownIt
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from mdit_py_plugins.texmath import texmath_plugin

from .model import Block

# Block starts that only render as such when a blank line precedes them.
_BLOCK_STARTS = [
    re.compile(r"(?m)^([^\n]+)\n(#+ )"),
    re.compile(r"(?m)^([^\n]+)\n( {0,3}[-*+]\s+)"),
    re.compile(r"(?m)^([^\n]+)\n( {0,3}\d+\.\s+)"),
    re.compile(r"(?m)^([^\n]+)\n( {0,3}```)"),
    re.compile(r"(?m)^([^\n]+)\n( {0,3}>)"),
]
_BLANK_RUN = re.compile(r"\n{3,}")
_WHITESPACE_LINE = re.compile(r"(?m)^[ \t]+$")


def create_preview_parser() -> MarkdownIt:
    return (
        MarkdownIt("commonmark")
        .use(texmath_plugin)
        .use(footnote_plugin)
        .use(tasklists_plugin)
        .enable(["table", "strikethrough"])
    )


def prepare_preview(text: str) -> str:
    content = text.replace("\r\n", "\n")
    for pattern in _BLOCK_STARTS:
        content = pattern.sub(r"\1\n\n\2", content)
    content = _WHITESPACE_LINE.sub("", content)
    return _BLANK_RUN.sub("\n\n", content)


def markdown_to_html(text: str, md: MarkdownIt | None = None) -> str:
    md = md or create_preview_parser()
    html = md.render(prepare_preview(text))
    return html.replace("<p></p>", "").replace("<p>\n</p>", "")


def render_block(block: Block, md: MarkdownIt | None = None) -> str:
    """HTML for one row of the preview pane."""
    return markdown_to_html(block.content, md)
