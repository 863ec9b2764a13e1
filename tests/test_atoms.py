from SplitMark.atoms import classify, fill_gap, formula_spans, formula_text, sort_atoms
from SplitMark.model import (
    Atom,
    Blockquote,
    Code,
    Heading,
    ListItem,
    ListNode,
    Other,
    Paragraph,
    Position,
    Root,
    Table,
    Text,
)


def test_formula_spans_keep_multiline_formula_whole():
    lines = ["text", "$$", "x = 1", "$$", "after"]
    assert formula_spans(1, 5, lines) == [(1, 1), (2, 4), (5, 5)]


def test_formula_spans_single_line_formula():
    lines = ["$$x^2$$", "next"]
    assert formula_spans(1, 2, lines) == [(1, 1), (2, 2)]


def test_formula_spans_fence_with_content_on_open_and_close_lines():
    lines = ["  $$ a +", "b $$"]
    assert formula_spans(1, 2, lines) == [(1, 2)]


def test_formula_spans_unterminated_fence_falls_back_to_lines():
    lines = ["$$", "a", "b"]
    assert formula_spans(1, 3, lines) == [(1, 1), (2, 2), (3, 3)]


def test_formula_spans_do_not_look_past_range_end():
    lines = ["$$", "a", "$$"]
    assert formula_spans(1, 2, lines) == [(1, 1), (2, 2)]


def test_fill_gap_tags_formula_atoms():
    lines = ["a", "$$", "b", "$$", "", "$$ c $$"]
    assert fill_gap(1, 6, lines) == [
        Atom(1, 1, "line"),
        Atom(2, 4, "math"),
        Atom(5, 5, "line"),
        Atom(6, 6, "math"),
    ]


def test_classify_applies_rules_in_order():
    lines = [
        "# Title",  # 1
        "",
        "a",  # 3
        "$$",
        "x",
        "$$",  # 6
        "",
        "- item",  # 8
        "",
        "```",  # 10
        "code",
        "",
        "```",  # 13
        "",
        "| a |",  # 15
        "|---|",
        "| 1 |",  # 17
    ]
    root = Root(
        children=[
            Heading(position=Position(1, 1)),
            Paragraph(position=Position(3, 6), children=[Text(position=Position(3, 6))]),
            ListNode(
                position=Position(8, 8),
                children=[ListItem(position=Position(8, 8), children=[Paragraph(position=Position(8, 8))])],
            ),
            Code(position=Position(10, 13)),
            Other(name="unknown"),
            Table(position=Position(15, 17)),
        ]
    )
    assert classify(root, lines) == [
        Atom(1, 1, "heading"),
        Atom(3, 3, "line"),
        Atom(4, 6, "math"),
        Atom(8, 8, "paragraph"),
        Atom(10, 13, "code"),
        Atom(15, 17, "table"),
    ]


def test_classify_empty_container_yields_nothing():
    root = Root(children=[ListNode(position=Position(1, 1), children=[ListItem(position=Position(1, 1))])])
    assert classify(root, ["-"]) == []


def test_classify_handles_deep_nesting_without_recursion():
    innermost = Paragraph(position=Position(1, 1))
    node = innermost
    for _ in range(5000):
        node = Blockquote(position=Position(1, 1), children=[node])
    assert classify(Root(children=[node]), ["> deep"]) == [Atom(1, 1, "paragraph")]


def test_sort_atoms_orders_by_start_then_end():
    atoms = [Atom(5, 6), Atom(1, 3), Atom(1, 1)]
    assert sort_atoms(atoms) == [Atom(1, 1), Atom(1, 3), Atom(5, 6)]


def test_formula_spans_accept_equation_numbers_and_quote_markers():
    assert formula_spans(1, 4, ["$$", "x = 1", "$$ (1)", "after"]) == [(1, 3), (4, 4)]
    assert formula_spans(1, 3, ["> $$", "> x = 1", "> $$"]) == [(1, 3)]
    assert formula_spans(1, 1, ["$$x$$ (2)"]) == [(1, 1)]


def test_formula_text_strips_quote_markers():
    assert formula_text("  > > $$ ") == "$$"
    assert formula_text("plain") == "plain"
