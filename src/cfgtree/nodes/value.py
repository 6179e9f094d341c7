"""
Value node: one `'key' => payload,` entry.

The payload is opaque text classified only by its surface syntax (see
scanner.classify). List arrays with more than `layout.inline_array_limit`
elements render as a block, everything else on a single line.

Values parsed from a multi-line layout keep that layout (`head` plus
`verbatim` continuation lines) until the payload is reassigned.
"""

from __future__ import annotations

from typing import Any

from .. import render, scanner
from ..config import get_config
from ..dom import Node


class Value(Node):
    """Leaf scalar, list array or expression."""

    type = "value"

    def __init__(self, start: int, end: int, raw: dict[int, str] | None = None):
        super().__init__(start, end, raw)
        self.payload: str | None = None
        self.quote = get_config().layout.key_quote
        self.arrow = " => "
        self.suffix = ""  # trailing line comment and whitespace
        self.comma = True  # source had a trailing comma; only the last entry may drop it
        self.head: str | None = None  # text after the arrow on the first line of a multi-line layout
        self.verbatim: list[str] | None = None  # continuation lines, relative to own indentation

    @property
    def value(self) -> str | None:
        return self.payload

    @property
    def data_type(self) -> str:
        return scanner.classify(self.payload)

    def elements(self) -> list[str]:
        if self.payload is None:
            return []
        return scanner.array_elements(self.payload.strip())

    def add(self, literal: str | None) -> Value:
        """Soft assignment: only fills a value that has no payload at all."""
        if self.payload is None:
            self.set(literal)
        return self

    def set(self, literal: str | None) -> Value:
        """Hard assignment. Bare strings are quoted, None empties the value."""
        if literal is None:
            self.payload = None
        else:
            self.payload = scanner.quote_literal(str(literal), get_config().layout.key_quote)
        self.head = None
        self.verbatim = None
        self._reflow_tree()
        return self

    def lines(self) -> list[str]:
        indent = self.line_indent()
        key = f"{self.quote}{self.name}{self.quote}"

        if self.head is not None:
            first = f"{render.pad(indent)}{key}{self.arrow}{self.head}"
            return [first, *render.reindent(self.verbatim or [], indent)]

        if self.data_type == scanner.ARRAY:
            elements = self.elements()
            if len(elements) > get_config().layout.inline_array_limit:
                step = self.parent.step_unit if self.parent is not None else get_config().layout.indent_width
                return render.array_block(indent, step, key, self.arrow, elements, self.suffix)

        payload = "null" if self.payload is None else self.payload
        comma = self.comma or not self.is_last_child
        return [render.entry_line(indent, key, self.arrow, payload, self.suffix, comma)]

    def replicate(self) -> Value:
        duplicate = super().replicate()
        assert isinstance(duplicate, Value)
        if self.verbatim is not None:
            duplicate.verbatim = list(self.verbatim)
        return duplicate

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "value": self.payload,
            "data_type": self.data_type,
        }
