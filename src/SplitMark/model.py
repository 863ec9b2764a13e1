from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List


@dataclass
class Block:
    """One editable unit of the document, with its original line provenance."""

    id: str
    content: str
    start_line: int
    end_line: int
    block_type: str = "line"


@dataclass(frozen=True)
class Position:
    start_line: int
    end_line: int


@dataclass(frozen=True)
class Atom:
    """Line range produced during segmentation, before it becomes a Block."""

    start_line: int
    end_line: int
    kind: str = "line"


@dataclass
class Node:
    """Base class for markdown syntax nodes handed over by the parser."""

    kind: ClassVar[str] = "node"

    position: Position | None = None
    children: List["Node"] = field(default_factory=list)


@dataclass
class Root(Node):
    kind: ClassVar[str] = "root"


@dataclass
class ListNode(Node):
    kind: ClassVar[str] = "list"

    ordered: bool = False


@dataclass
class ListItem(Node):
    kind: ClassVar[str] = "listItem"


@dataclass
class Blockquote(Node):
    kind: ClassVar[str] = "blockquote"


@dataclass
class Paragraph(Node):
    kind: ClassVar[str] = "paragraph"


@dataclass
class Heading(Node):
    kind: ClassVar[str] = "heading"

    level: int = 1


@dataclass
class Table(Node):
    kind: ClassVar[str] = "table"


@dataclass
class Code(Node):
    kind: ClassVar[str] = "code"

    language: str | None = None


@dataclass
class Html(Node):
    kind: ClassVar[str] = "html"


@dataclass
class Math(Node):
    kind: ClassVar[str] = "math"


@dataclass
class Yaml(Node):
    kind: ClassVar[str] = "yaml"


@dataclass
class Toml(Node):
    kind: ClassVar[str] = "toml"


@dataclass
class FootnoteDefinition(Node):
    kind: ClassVar[str] = "footnoteDefinition"

    label: str | None = None


@dataclass
class ThematicBreak(Node):
    kind: ClassVar[str] = "thematicBreak"


@dataclass
class Text(Node):
    kind: ClassVar[str] = "text"


@dataclass
class Other(Node):
    """Any parser node without a dedicated variant."""

    kind: ClassVar[str] = "other"

    name: str = ""


CONTAINER_TYPES = (Root, ListNode, ListItem, Blockquote)
COMPLEX_TYPES = (Table, Code, Html, Math, Yaml, Toml, FootnoteDefinition, ThematicBreak)
TEXT_TYPES = (Paragraph, Heading)
