from __future__ import annotations

from typing import Callable, Iterable, List

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.front_matter import front_matter_plugin
from mdit_py_plugins.texmath import texmath_plugin

from .model import (
    Blockquote,
    Code,
    FootnoteDefinition,
    Heading,
    Html,
    ListItem,
    ListNode,
    Math,
    Node,
    Other,
    Paragraph,
    Position,
    Root,
    Table,
    Text,
    ThematicBreak,
    Yaml,
)

_NODE_TYPES: dict[str, type[Node]] = {
    "bullet_list": ListNode,
    "ordered_list": ListNode,
    "list_item": ListItem,
    "blockquote": Blockquote,
    "paragraph": Paragraph,
    "heading": Heading,
    "table": Table,
    "fence": Code,
    "code_block": Code,
    "html_block": Html,
    "math_block": Math,
    "math_block_eqno": Math,
    "amsmath": Math,
    "front_matter": Yaml,
    "footnote": FootnoteDefinition,
    "hr": ThematicBreak,
    "inline": Text,
    "text": Text,
}

# Wrappers whose children belong directly to the enclosing node.
_FLATTENED_TYPES = {"footnote_block"}


def create_parser() -> MarkdownIt:
    md = (
        MarkdownIt("commonmark")
        .use(texmath_plugin)
        .use(front_matter_plugin)
        .use(footnote_plugin)
        .enable(["table", "strikethrough"])
    )
    _map_math_blocks(md)
    return md


def _map_math_blocks(md: MarkdownIt) -> None:
    """Make the texmath block rules record the source lines of their tokens."""
    for rule in md.block.ruler.__rules__:
        if rule.name.startswith("math_block"):
            md.block.ruler.at(rule.name, _with_line_map(rule.fn), {"alt": list(rule.alt)})


def _with_line_map(rule_fn: Callable) -> Callable:
    def wrapped(state: StateBlock, start_line: int, end_line: int, silent: bool) -> bool:
        first_token = len(state.tokens)
        matched = rule_fn(state, start_line, end_line, silent)
        if matched and not silent:
            for token in state.tokens[first_token:]:
                if token.map is None:
                    token.map = [start_line, max(state.line, start_line + 1)]
        return matched

    return wrapped


def parse_markdown(text: str, md: MarkdownIt | None = None) -> Root:
    """Parse markdown into the block-level node tree used by the segmenter."""
    md = md or create_parser()
    tree = SyntaxTreeNode(md.parse(text))
    root = Root(children=_convert_children(tree.children))
    root.position = _span(root.children)
    return root


def _convert_children(children: Iterable[SyntaxTreeNode]) -> List[Node]:
    nodes: List[Node] = []
    for child in children:
        if child.type in _FLATTENED_TYPES:
            nodes.extend(_convert_children(child.children))
        else:
            nodes.append(_convert(child))
    return nodes


def _convert(node: SyntaxTreeNode) -> Node:
    node_type = node.type
    cls = _NODE_TYPES.get(node_type)
    if cls is None:
        converted: Node = Other(name=node_type)
    elif cls is ListNode:
        converted = ListNode(ordered=node_type == "ordered_list")
    elif cls is Heading:
        converted = Heading(level=_heading_level(node.tag))
    elif cls is Code:
        converted = Code(language=node.info.strip() or None)
    elif cls is FootnoteDefinition:
        converted = FootnoteDefinition(label=node.meta.get("label"))
    else:
        converted = cls()

    converted.position = _position(node)
    # Inline content is never split further, so its token children are skipped.
    if cls is not Text:
        converted.children = _convert_children(node.children)
    if converted.position is None:
        converted.position = _span(converted.children)
    return converted


def _position(node: SyntaxTreeNode) -> Position | None:
    token_map = node.map
    if not token_map:
        return None
    begin, end = token_map
    return Position(start_line=begin + 1, end_line=max(begin + 1, end))


def _span(nodes: Iterable[Node]) -> Position | None:
    positions = [n.position for n in nodes if n.position is not None]
    if not positions:
        return None
    return Position(
        start_line=min(p.start_line for p in positions),
        end_line=max(p.end_line for p in positions),
    )


def _heading_level(tag: str) -> int:
    if len(tag) == 2 and tag[0] == "h" and tag[1].isdigit():
        return int(tag[1])
    return 1
