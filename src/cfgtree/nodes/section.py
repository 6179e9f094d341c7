"""
Section node: a nested associative array.

    'database' => [
        'driver' => 'mysql',
    ],
"""

from __future__ import annotations

from collections.abc import Iterable

from .. import render
from ..config import get_config
from ..dom import Node, ParentNode


class Section(ParentNode):
    """Keyed array block holding child nodes."""

    type = "section"

    def __init__(self, start: int, end: int, raw: dict[int, str] | None = None):
        super().__init__(start, end, raw)
        self.quote = get_config().layout.key_quote
        self.arrow = " => "
        self.suffix = ""  # trailing comment (and whitespace) on the opening line
        self.close_suffix = ""
        self.comma = True  # closing `],` rather than `]`

    def padding(self) -> int:
        return get_config().layout.section_padding

    def opening_line(self) -> str:
        key = f"{self.quote}{self.name}{self.quote}"
        return render.open_line(self.line_indent(), key, self.arrow, self.suffix)

    def closing_line(self) -> str:
        comma = self.comma or not self.is_last_child
        indent = self.close_lead if self.close_lead is not None else self.line_indent()
        return render.close_line(indent, self.close_suffix, comma)

    @classmethod
    def wrap(cls, nodes: Iterable[Node]) -> list[Node]:
        """
        Fold a flat, scope-tagged node list into a tree.

        Nodes with an empty scope are returned as they are, in order. Every
        other node is grouped under the section named by the first element of
        its scope: the most recent parsed Section with that key, or a new
        empty Section when none was parsed. Groups are wrapped recursively.
        """
        result: list[Node] = []
        groups: dict[str, tuple[Section, list[Node]]] = {}
        order: list[tuple[Section, list[Node]]] = []

        for node in nodes:
            if not node.scope:
                result.append(node)
                if isinstance(node, Section):
                    groups[node.key] = (node, [])
                    order.append(groups[node.key])
                continue

            head, rest = node.scope[0], node.scope[1:]
            if head not in groups:
                groups[head] = (cls.make_empty(head), [])
                order.append(groups[head])
                result.append(groups[head][0])
            node.scope = rest
            groups[head][1].append(node)

        for section, members in order:
            for child in cls.wrap(members):
                section.add_child(child, silent=True)
            section.observe_indent()

        return result
