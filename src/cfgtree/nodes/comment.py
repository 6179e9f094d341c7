"""
Comment nodes.

Comment is a run of `//` (or `#`) lines. RichComment is a `/* ... */` block,
usually the framework-style header:

    /*
    |--------------------------------------------------------------------------
    | Application Name
    |--------------------------------------------------------------------------
    |
    | This value is the name of your application.
    |
    */

Neither has a natural key: both get a synthetic `comment_<hex>` key and are
skipped by path lookups.

Parsed comments render their source lines as they were until the text is
reassigned.
"""

from __future__ import annotations

import re
import secrets
from typing import Any

from .. import render
from ..config import get_config
from ..dom import Node

# Separator lines inside a block comment: |-----, ======, *****
RULE_PATTERN = re.compile(r"^[-=*]{3,}$")


def synthetic_key() -> str:
    return f"comment_{secrets.token_hex(4)}"


def _relative(raw: dict[int, str]) -> list[str]:
    lines = list(raw.values())
    return render.relative(lines, len(render.leading(lines[0])))


class Comment(Node):
    """Consecutive line comments rendered one `// text` line per label line."""

    type = "comment"
    addressable = False

    def __init__(self, start: int, end: int, raw: dict[int, str] | None = None):
        super().__init__(start, end, raw)
        self._label = ""
        self.marker = get_config().comments.line_marker
        self.spaced = True  # one space between marker and text
        self.verbatim: list[str] | None = None  # parsed lines, relative to own indentation

    @classmethod
    def make_empty(cls, label: str):
        node = super().make_empty(synthetic_key())
        node._label = label
        node.end = node.start + node.height() - 1
        return node

    @classmethod
    def from_lines(cls, raw: dict[int, str]) -> Comment:
        """Build a comment from consecutive `//` lines."""
        node = cls.make(min(raw), max(raw), raw)
        node.key = synthetic_key()
        node.verbatim = _relative(raw)

        texts = [line.strip() for line in raw.values()]
        node.marker = "#" if texts[0].startswith("#") else "//"
        bodies = [text[len(node.marker):] if text.startswith(node.marker) else text for text in texts]

        first = next((body for body in bodies if body), "")
        node.spaced = not first or first.startswith(" ")
        if node.spaced:
            bodies = [body[1:] if body.startswith(" ") else body for body in bodies]
        node._label = "\n".join(bodies)
        return node

    @property
    def label(self) -> str:
        return self._label

    def set_label(self, label: str) -> Comment:
        self._label = label
        self.verbatim = None
        self._reflow_tree()
        return self

    def lines(self) -> list[str]:
        if self.verbatim is not None:
            return render.reindent(self.verbatim, self.line_indent())
        return render.comment_lines(self.line_indent(), self._label, self.marker, self.spaced)

    def replicate(self) -> Comment:
        duplicate = super().replicate()
        assert isinstance(duplicate, Comment)
        duplicate.key = synthetic_key()
        if self.verbatim is not None:
            duplicate.verbatim = list(self.verbatim)
        return duplicate

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "label": self._label}


class RichComment(Comment):
    """Block comment with a title line and a description body."""

    type = "richcomment"

    def __init__(self, start: int, end: int, raw: dict[int, str] | None = None):
        super().__init__(start, end, raw)
        self._description = ""

    @classmethod
    def make_empty(cls, label: str, description: str = ""):
        node = super().make_empty(label)
        node._description = description
        node.end = node.start + node.height() - 1
        return node

    @classmethod
    def from_lines(cls, raw: dict[int, str]) -> RichComment:
        """Build from the lines of one `/* ... */` block, keeping its exact layout."""
        node = cls.make(min(raw), max(raw), raw)
        node.key = synthetic_key()

        lines = list(raw.values())
        node.verbatim = _relative(raw)

        text = "\n".join(line.strip() for line in lines).strip()
        text = text.removeprefix("/*").lstrip("*")
        text = text.removesuffix("*/")

        label = ""
        description: list[str] = []
        for line in text.split("\n"):
            line = line.strip()
            if line.startswith(("|", "*")):
                line = line[1:]
            line = line.removeprefix(" ").rstrip()
            if RULE_PATTERN.match(line.strip()):
                continue
            if not label:
                label = line.strip()
                continue
            description.append(line)

        while description and not description[0].strip():
            description.pop(0)
        while description and not description[-1].strip():
            description.pop()

        node._label = label
        node._description = "\n".join(description)
        return node

    @property
    def description(self) -> str:
        return self._description

    def set_description(self, description: str) -> RichComment:
        self._description = description
        self.verbatim = None
        self._reflow_tree()
        return self

    def lines(self) -> list[str]:
        indent = self.line_indent()
        if self.verbatim is not None:
            return render.reindent(self.verbatim, indent)
        return render.banner_lines(indent, self._label, self._description, get_config().comments.banner_width)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "description": self._description}
