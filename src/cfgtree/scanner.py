"""
Line scanner for array-literal configuration blocks.

Classifies each source line into one of a handful of kinds and provides the
string-aware helpers the parser and Value rely on: trailing comment stripping,
bracket balance, top-level element splitting and payload classification.
Quotes are honoured everywhere, so a `]`, `,` or `//` inside a string literal
never counts.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

# 'key' => rest   or   "key" => rest
KEY_PATTERN = re.compile(
    r"""^(?P<indent>\s*)(?P<quote>['"])(?P<key>(?:\\.|(?!(?P=quote)).)*)(?P=quote)"""
    r"""(?P<arrow>\s*=>\s*)(?P<rest>.*)$"""
)

# Closing bracket of a nested array, with or without trailing comma
CLOSE_PATTERN = re.compile(r"^\s*\]\s*,?$")

# Data block delimiters
RETURN_PATTERN = re.compile(r"return\s*\[", re.IGNORECASE)
END_PATTERN = re.compile(r"\]\s*;\s*$")

NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
CALL_HEAD_PATTERN = re.compile(r"^\\?[A-Za-z_][\w\\]*\s*\(")
CLASS_PATTERN = re.compile(r"^\\?[\w\\]+::class$")

# Line kinds
BLANK = "blank"
COMMENT = "comment"
BLOCK = "block"
OPEN = "open"
CLOSE = "close"
ENTRY = "entry"
OTHER = "other"

# Payload data types
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
ARRAY = "array"
FUNCTION = "function"
CLASS = "class"
STRING = "string"


@dataclass
class Line:
    """A classified source line."""
    index: int
    text: str
    kind: str
    code: str = ""  # text without its trailing line comment
    suffix: str = ""  # trailing whitespace and line comment
    key: str | None = None
    quote: str = "'"
    arrow: str = " => "
    rest: str = ""  # code after the arrow

    @property
    def indent(self) -> int:
        return len(self.text) - len(self.text.lstrip())

    @property
    def delta(self) -> int:
        """Net number of brackets/parentheses this line leaves open."""
        return bracket_delta(self.code)


def _code_chars(text: str) -> Iterator[tuple[int, str]]:
    """Yield (index, char) for every character outside string literals."""
    quote: str | None = None
    escaped = False
    for i, ch in enumerate(text):
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
            continue
        yield i, ch


def split_comment(text: str) -> tuple[str, str]:
    """Split a line into (code, trailing `//` comment). Trailing whitespace stays in the suffix."""
    for i, ch in _code_chars(text):
        if ch == "/" and text.startswith("//", i):
            code = text[:i].rstrip()
            return code, text[len(code):]
    code = text.rstrip()
    return code, text[len(code):]


def bracket_delta(code: str) -> int:
    delta = 0
    for _, ch in _code_chars(code):
        if ch in "[(":
            delta += 1
        elif ch in "])":
            delta -= 1
    return delta


def split_elements(inner: str) -> list[str]:
    """Split the inside of an array literal on top-level commas."""
    parts: list[str] = []
    depth = 0
    last = 0
    for i, ch in _code_chars(inner):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(inner[last:i].strip())
            last = i + 1
    parts.append(inner[last:].strip())
    return [part for part in parts if part]


def find_arrow(text: str) -> int | None:
    """Index of the first top-level `=>`, or None."""
    depth = 0
    for i, ch in _code_chars(text):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "=" and depth == 0 and text.startswith("=>", i):
            return i
    return None


def _closes_at_end(text: str, opening: int) -> bool:
    """True if the bracket at `opening` is matched by the last character of text."""
    depth = 0
    for i, ch in _code_chars(text):
        if i < opening:
            continue
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
            if depth == 0:
                return i == len(text) - 1
    return False


def is_array(payload: str) -> bool:
    return payload.startswith("[") and _closes_at_end(payload, 0)


def array_elements(payload: str) -> list[str]:
    if not is_array(payload):
        return []
    return split_elements(payload[1:-1])


def is_associative(payload: str) -> bool:
    """Array literal with at least one explicit key => value element."""
    return any(find_arrow(element) is not None for element in array_elements(payload))


def is_quoted(text: str) -> bool:
    """Whole text is a single string literal."""
    if len(text) < 2 or text[0] not in ("'", '"') or text[-1] != text[0]:
        return False
    return next(_code_chars(text), None) is None


def _is_call(text: str) -> bool:
    match = CALL_HEAD_PATTERN.match(text)
    return match is not None and _closes_at_end(text, match.end() - 1)


def classify(payload: str | None) -> str:
    """Classify a payload by surface syntax. Order matters: `null` before string, etc."""
    if payload is None:
        return NULL
    text = payload.strip()
    if NUMBER_PATTERN.match(text):
        return NUMBER
    lowered = text.lower()
    if lowered in ("true", "false"):
        return BOOLEAN
    if lowered == "null":
        return NULL
    if is_array(text) and not is_associative(text):
        return ARRAY
    if _is_call(text):
        return FUNCTION
    if CLASS_PATTERN.match(text):
        return CLASS
    return STRING


def quote_literal(text: str, quote: str = "'") -> str:
    """Wrap a bare string literal in quotes; anything else is returned untouched."""
    stripped = text.strip()
    if classify(stripped) != STRING or is_quoted(stripped) or is_array(stripped):
        return text
    escaped = stripped.replace("\\", "\\\\").replace(quote, "\\" + quote)
    return f"{quote}{escaped}{quote}"


def collapse(fragments: Sequence[str]) -> str:
    """Join the code of a multi-line payload into its single-line form."""
    text = " ".join(fragment.strip() for fragment in fragments if fragment.strip())
    text = re.sub(r"([\[(])\s+", r"\1", text)
    text = re.sub(r",?\s*([\])])", r"\1", text)
    return text.rstrip(",").rstrip()


def scan_line(index: int, text: str) -> Line:
    """Classify one line of the data block."""
    stripped = text.strip()
    if not stripped:
        return Line(index, text, BLANK)
    if stripped.startswith(("//", "#")):
        return Line(index, text, COMMENT)
    if stripped.startswith("/*"):
        return Line(index, text, BLOCK)

    code, suffix = split_comment(text)
    match = KEY_PATTERN.match(code)
    if match:
        rest = match.group("rest").strip()
        return Line(
            index,
            text,
            OPEN if rest == "[" else ENTRY,
            code=code,
            suffix=suffix,
            key=match.group("key"),
            quote=match.group("quote"),
            arrow=match.group("arrow"),
            rest=rest,
        )
    if CLOSE_PATTERN.match(code):
        return Line(index, text, CLOSE, code=code, suffix=suffix)
    return Line(index, text, OTHER, code=code, suffix=suffix)


def numbered(content: Mapping[int, str] | Sequence[str]) -> list[tuple[int, str]]:
    """(line number, text) pairs; mappings keep their absolute line numbers."""
    if isinstance(content, Mapping):
        return sorted(content.items())
    return list(enumerate(content))


def scan(content: Mapping[int, str] | Sequence[str]) -> list[Line]:
    return [scan_line(index, text) for index, text in numbered(content)]
