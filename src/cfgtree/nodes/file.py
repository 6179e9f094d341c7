"""
File node: root of the tree.

Owns the whole source: lines above the data block (`before`), the block
itself from `return [` (line `start`) to `];` (line `end`), and the lines
after it (`after`), which are passed through untouched.
"""

from __future__ import annotations

from pathlib import Path

from .. import render
from ..dom import ParentNode


class File(ParentNode):
    """Root parent node; its children are the top-level entries."""

    type = "file"

    def __init__(self, start: int, end: int, raw: dict[int, str] | None = None):
        super().__init__(start, end, raw)
        self.filename = ""
        self.location: Path | None = None
        self.before: list[str] = []
        self.after: list[str] = []
        self.opening = "return ["
        self.closing = "];"
        self.newline = "\n"
        self.final_newline = True
        self.compact = False  # parsed as `return [];` on one line

    @classmethod
    def make_empty(cls, filename: str = ""):
        """A new document: `<?php`, blank line, empty `return [];` block."""
        file = super().make_empty("")
        file.filename = filename
        file.before = ["<?php", ""]
        file.move_to(len(file.before))
        file.reflow()
        return file

    @property
    def name(self) -> str:
        return self.filename

    @property
    def path(self) -> str:
        return ""

    def line_indent(self) -> str:
        return render.leading(self.raw.get(self.start, ""))

    def opening_line(self) -> str:
        return self.opening

    def closing_line(self) -> str:
        return self.closing

    def reflow(self) -> File:
        if self.compact and not self.children:
            self.end = self.start
            return self
        self.compact = False
        super().reflow()
        return self

    def render(self) -> dict[int, str]:
        if self.compact:
            return {self.start: self.raw[self.start]}
        return super().render()

    def output(self) -> list[str]:
        """All lines of the file with the data block re-rendered."""
        block = render.fill_gaps(self.render(), self.start, self.end)
        return [*self.before, *block.values(), *self.after]
