"""
Parser for `return [ ... ];` configuration blocks.

Single linear pass over the scanned lines of the data block. A stack of open
Sections gives every node its scope (the keys of the sections enclosing it);
Section.wrap() then folds the flat, scope-tagged list into a tree.

Structure:
- Blank lines become the next node's margin (or a section's tail), text kept
- `//` runs become Comment, `/* ... */` blocks become RichComment
- `'key' => [` opens a Section when the block holds keyed entries (or nothing),
  otherwise the whole block is a multi-line list Value
- `'key' => payload,` is a Value; inline associative arrays become Sections.
  A payload may also start on the line below the arrow
- Lines of any other shape cannot be represented and are skipped with a warning
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from . import render, scanner
from .config import get_config
from .dom import Node
from .errors import StructureNotFoundError
from .nodes.comment import Comment, RichComment
from .nodes.file import File
from .nodes.section import Section
from .nodes.value import Value
from .scanner import Line

logger = logging.getLogger(__name__)


def extract_block(lines: Sequence[str]) -> tuple[int, int]:
    """Line numbers of `return [` and of the last `];`."""
    start = next((i for i, line in enumerate(lines) if scanner.RETURN_PATTERN.search(line)), None)
    end = next(
        (i for i in range(len(lines) - 1, -1, -1) if scanner.END_PATTERN.search(lines[i].strip())),
        None,
    )
    if start is None or end is None or end < start:
        raise StructureNotFoundError("Could not locate return block in config")
    return start, end


def parse(content: Mapping[int, str] | Sequence[str]) -> list[Node]:
    """
    Parse lines of a data block into a flat, document-ordered node list.

    A mapping keeps its absolute line numbers; a sequence is numbered from 0.
    Each node's `scope` holds the keys of its enclosing sections.
    """
    nodes = _BlockParser(scanner.scan(content)).run()
    logger.debug("Parsed %d nodes", len(nodes))
    return nodes


def load(lines: Sequence[str], filename: str = "") -> File:
    """Build the document tree for a whole file."""
    lines = list(lines)
    start, end = extract_block(lines)

    file = File.make(start, end, {n: lines[n] for n in range(start, end + 1)})
    file.filename = filename
    file.before = lines[:start]
    file.after = lines[end + 1:]

    if start == end:
        # `return [];` on one line
        match = scanner.RETURN_PATTERN.search(lines[start])
        assert match is not None
        file.opening = lines[start][: match.end()]
        remainder = lines[start][match.end():].strip()
        if not remainder.startswith("]"):
            logger.warning("Ignoring inline content of single-line block: %s", remainder)
            remainder = "];"
        file.closing = remainder
        file.compact = True
        content: dict[int, str] = {}
    else:
        file.opening = lines[start]
        file.closing = lines[end]
        content = {n: lines[n] for n in range(start + 1, end)}

    for node in Section.wrap(parse(content)):
        file.add_child(node, silent=True)

    tail: list[str] = []
    for n in range(end - 1, start, -1):
        if lines[n].strip():
            break
        tail.insert(0, lines[n])
    file.tail = len(tail)
    file.tail_blanks = tail

    file.observe_indent()
    file.reflow()
    logger.debug("Loaded block %d-%d with %d top-level nodes", start, end, len(file.children))
    return file


class _BlockParser:
    """Single-pass state machine over scanned lines."""

    def __init__(self, tokens: list[Line]):
        self.tokens = tokens
        self.nodes: list[Node] = []
        self.stack: list[tuple[Section, int]] = []  # open sections with their token position
        self.blanks: list[str] = []  # text of the blank lines seen since the last node

    @property
    def scope(self) -> tuple[str, ...]:
        return tuple(section.key for section, _ in self.stack)

    def run(self) -> list[Node]:
        pos = 0
        while pos < len(self.tokens):
            token = self.tokens[pos]
            if token.kind == scanner.BLANK:
                self.blanks.append(token.text)
                pos += 1
            elif token.kind == scanner.COMMENT:
                pos = self._comment(pos)
            elif token.kind == scanner.BLOCK:
                pos = self._block(pos)
            elif token.kind == scanner.OPEN:
                pos = self._open(pos)
            elif token.kind == scanner.CLOSE:
                pos = self._close(pos)
            elif token.kind == scanner.ENTRY:
                pos = self._entry(pos)
            else:
                logger.warning("Skipping unsupported line %d: %s", token.index + 1, token.text.strip())
                pos += 1

        if self.stack:
            section, _ = self.stack[-1]
            raise StructureNotFoundError(
                f"Array '{section.key}' opened at line {section.start + 1} is never closed"
            )
        return self.nodes

    def _emit(self, node: Node, token: Line) -> None:
        node.margin = len(self.blanks)
        node.blanks = self.blanks
        node.lead = render.leading(token.text)
        node.scope = self.scope
        self.blanks = []
        self.nodes.append(node)

    def _raw(self, first: int, last: int) -> dict[int, str]:
        return {t.index: t.text for t in self.tokens[first: last + 1]}

    # -- comments --------------------------------------------------------

    def _comment(self, pos: int) -> int:
        last = pos
        while last + 1 < len(self.tokens) and self.tokens[last + 1].kind == scanner.COMMENT:
            last += 1
        self._emit(Comment.from_lines(self._raw(pos, last)), self.tokens[pos])
        return last + 1

    def _block(self, pos: int) -> int:
        last = self._block_end(pos)
        self._emit(RichComment.from_lines(self._raw(pos, last)), self.tokens[pos])
        return last + 1

    def _block_end(self, pos: int) -> int:
        first = self.tokens[pos].text
        if "*/" in first[first.index("/*") + 2:]:
            return pos
        for last in range(pos + 1, len(self.tokens)):
            if "*/" in self.tokens[last].text:
                return last
        raise StructureNotFoundError(f"Block comment at line {self.tokens[pos].index + 1} is never closed")

    # -- arrays ----------------------------------------------------------

    def _inspect(self, pos: int) -> tuple[int, bool, bool]:
        """Find the line closing the array opened at pos; report keyed entries and bare elements."""
        depth = self.tokens[pos].delta
        keyed = False
        elements = False
        cursor = pos + 1
        while cursor < len(self.tokens):
            token = self.tokens[cursor]
            if token.kind == scanner.BLOCK:
                cursor = self._block_end(cursor) + 1
                continue
            if token.kind in (scanner.BLANK, scanner.COMMENT):
                cursor += 1
                continue
            if depth == 1 and token.kind == scanner.ENTRY and not token.rest:
                keyed = True
                cursor = self._entry_end(cursor) + 1
                continue
            if depth == 1:
                if token.kind in (scanner.OPEN, scanner.ENTRY):
                    keyed = True
                elif token.kind == scanner.OTHER:
                    elements = True
            depth += token.delta
            if depth <= 0:
                return cursor, keyed, elements
            cursor += 1
        raise StructureNotFoundError(
            f"Array '{self.tokens[pos].key}' opened at line {self.tokens[pos].index + 1} is never closed"
        )

    def _open(self, pos: int) -> int:
        token = self.tokens[pos]
        close, keyed, elements = self._inspect(pos)
        if elements:
            # lists and mixed arrays stay opaque
            return self._multiline(pos, close)

        section = Section.make(token.index, self.tokens[close].index, {})
        self._assign_key(section, token)
        section.suffix = token.suffix
        self._emit(section, token)
        self.stack.append((section, pos))
        return pos + 1

    def _close(self, pos: int) -> int:
        token = self.tokens[pos]
        if not self.stack:
            logger.warning("Skipping unmatched closing bracket at line %d", token.index + 1)
            return pos + 1

        section, opened = self.stack.pop()
        section.end = token.index
        section.tail = len(self.blanks)
        section.tail_blanks = self.blanks
        section.close_lead = render.leading(token.text)
        section.close_suffix = token.suffix
        section.comma = token.code.rstrip().endswith(",")
        section.raw = self._raw(opened, pos)
        self.blanks = []
        return pos + 1

    # -- values ----------------------------------------------------------

    def _entry(self, pos: int) -> int:
        token = self.tokens[pos]
        delta = token.delta
        if delta > 0 or not token.rest:
            # payload continues on the following lines
            return self._multiline(pos, self._entry_end(pos))
        if delta < 0:
            logger.warning("Skipping unbalanced entry at line %d: %s", token.index + 1, token.text.strip())
            return pos + 1

        payload = token.rest
        if payload.endswith(","):
            payload = payload[:-1].rstrip()

        raw = {token.index: token.text}
        if scanner.is_associative(payload) and self._inline(token, payload, raw):
            return pos + 1

        value = Value.make(token.index, token.index, raw)
        self._assign_key(value, token)
        value.suffix = token.suffix
        value.payload = payload
        value.comma = token.rest.endswith(",")
        if self._blocks(value):
            # keep a layout the renderer would not reproduce
            value.head = token.rest + token.suffix
            value.verbatim = []
        self._emit(value, token)
        return pos + 1

    @staticmethod
    def _blocks(value: Value) -> bool:
        limit = get_config().layout.inline_array_limit
        return value.data_type == scanner.ARRAY and len(value.elements()) > limit

    def _entry_end(self, pos: int) -> int:
        """
        Last line of an entry whose payload runs past its key line.

        An open bracket ends when it is balanced again. A payload starting
        below the arrow ends at the first balanced line with a trailing comma,
        or before the next entry or closing bracket.
        """
        first = self.tokens[pos]
        depth = first.delta
        last = pos
        for cursor in range(pos + 1, len(self.tokens)):
            token = self.tokens[cursor]
            if token.kind in (scanner.BLANK, scanner.COMMENT, scanner.BLOCK):
                continue
            if depth == 0 and (token.delta < 0 or token.kind in (scanner.ENTRY, scanner.OPEN)):
                return last
            depth += token.delta
            last = cursor
            if depth <= 0 and (first.rest or token.code.endswith(",")):
                return cursor
        if not first.rest:
            return last
        raise StructureNotFoundError(
            f"Value '{self.tokens[pos].key}' at line {self.tokens[pos].index + 1} is never closed"
        )

    def _multiline(self, pos: int, last: int) -> int:
        """Value spanning lines pos..last; its layout is kept verbatim."""
        first = self.tokens[pos]
        span = self.tokens[pos: last + 1]
        raw = self._raw(pos, last)

        fragments = [first.rest]
        fragments += [t.code for t in span[1:] if t.kind not in (scanner.BLANK, scanner.COMMENT, scanner.BLOCK)]
        payload = scanner.collapse(fragments)

        has_comments = any(t.kind in (scanner.COMMENT, scanner.BLOCK) or t.suffix.strip() for t in span)
        if not has_comments and scanner.is_associative(payload) and self._inline(first, payload, raw):
            return last + 1

        value = Value.make(first.index, span[-1].index, raw)
        self._assign_key(value, first)
        value.payload = payload
        value.head = first.rest + first.suffix
        value.verbatim = render.relative([t.text for t in span[1:]], first.indent)
        self._emit(value, first)
        return last + 1

    def _inline(self, token: Line, payload: str, raw: dict[int, str]) -> bool:
        """Expand an inline associative array into Section nodes. False if it has unkeyed elements."""
        nodes = _inline_nodes(token.key or "", token.quote, payload, self.scope, token.index)
        if nodes is None:
            return False

        section = nodes[0]
        assert isinstance(section, Section)
        section.raw = raw
        section.arrow = token.arrow
        section.suffix = token.suffix
        section.verbatim = render.relative(list(raw.values()), token.indent)
        self._emit(section, token)
        self.nodes.extend(nodes[1:])
        return True

    @staticmethod
    def _assign_key(node: Section | Value, token: Line) -> None:
        node.key = token.key or ""
        node.quote = token.quote
        node.arrow = token.arrow


def _inline_nodes(
    key: str, quote: str, payload: str, scope: tuple[str, ...], line: int
) -> list[Node] | None:
    """Section followed by its (recursively expanded) children, or None for unkeyed arrays."""
    pairs = []
    for element in scanner.array_elements(payload):
        arrow = scanner.find_arrow(element)
        if arrow is None:
            return None
        key_text = element[:arrow].strip()
        if not scanner.is_quoted(key_text):
            return None
        pairs.append((key_text[1:-1], key_text[0], element[arrow + 2:].strip()))

    section = Section.make(line, line, {})
    section.key = key
    section.quote = quote
    section.scope = scope
    nodes: list[Node] = [section]

    inner = scope + (key,)
    for child_key, child_quote, child_payload in pairs:
        nested = None
        if scanner.is_associative(child_payload):
            nested = _inline_nodes(child_key, child_quote, child_payload, inner, line)
        if nested is None:
            value = Value.make(line, line, {})
            value.key = child_key
            value.quote = child_quote
            value.payload = child_payload
            value.scope = inner
            nested = [value]
        nested[0].margin = 0
        nodes.extend(nested)
    return nodes
