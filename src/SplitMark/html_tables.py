from __future__ import annotations

import re
from typing import List, Sequence

from .atoms import fill_gap
from .lines import join_range
from .model import Atom

HTML = "html"

TABLE_OPEN_TAG = "<table"
TABLE_CLOSE_TAG = "</table>"

# Fragments of one table may be separated by at most this many lines.
DEFAULT_MERGE_GAP = 2

_TABLE_START = re.compile(r"^<table(?:[\s>]|$)")


def starts_table(text: str) -> bool:
    return _TABLE_START.match(text.strip()) is not None


def _mentions_table(text: str) -> bool:
    return TABLE_OPEN_TAG in text or TABLE_CLOSE_TAG in text


def refine_html_atoms(atoms: Sequence[Atom], lines: Sequence[str]) -> List[Atom]:
    """Cut raw-HTML atoms so that every ``<table>`` starts and ends its own atom.

    Lines before a table opening and after a table closing are re-split like a
    gap; HTML without table tags is left untouched.
    """
    refined: List[Atom] = []
    for atom in atoms:
        if atom.kind != HTML:
            refined.append(atom)
            continue
        atom_lines = list(lines[atom.start_line - 1 : atom.end_line])
        if not _mentions_table("\n".join(atom_lines)):
            refined.append(atom)
            continue

        offset = 0
        for k, line in enumerate(atom_lines):
            if k > offset and starts_table(line):
                refined.extend(fill_gap(atom.start_line + offset, atom.start_line + k - 1, lines))
                offset = k
            if TABLE_CLOSE_TAG in line and k < len(atom_lines) - 1:
                refined.append(Atom(atom.start_line + offset, atom.start_line + k, HTML))
                offset = k + 1

        rest_start = atom.start_line + offset
        if rest_start <= atom.end_line:
            if _mentions_table("\n".join(atom_lines[offset:])):
                refined.append(Atom(rest_start, atom.end_line, HTML))
            else:
                refined.extend(fill_gap(rest_start, atom.end_line, lines))
    return refined


def merge_html_tables(
    atoms: Sequence[Atom], lines: Sequence[str], max_gap: int = DEFAULT_MERGE_GAP
) -> List[Atom]:
    """Collapse a table spread over consecutive raw-HTML atoms into one atom.

    An HTML atom that opens a table without closing it absorbs the HTML atoms
    that follow it (each starting at most ``max_gap`` lines after the previous
    one ends) up to the one containing ``</table>``. Without a closing tag the
    atoms are kept as they are.
    """
    merged: List[Atom] = []
    i = 0
    while i < len(atoms):
        atom = atoms[i]
        if atom.kind == HTML:
            content = join_range(lines, atom.start_line, atom.end_line)
            if starts_table(content):
                last_line = atom.end_line
                found_end = TABLE_CLOSE_TAG in content
                j = i + 1
                while (
                    not found_end
                    and j < len(atoms)
                    and atoms[j].kind == HTML
                    and atoms[j].start_line <= last_line + max_gap
                ):
                    last_line = atoms[j].end_line
                    found_end = TABLE_CLOSE_TAG in join_range(lines, atoms[j].start_line, atoms[j].end_line)
                    j += 1
                if found_end and j > i + 1:
                    merged.append(Atom(atom.start_line, last_line, HTML))
                    i = j
                    continue
        merged.append(atom)
        i += 1
    return merged
