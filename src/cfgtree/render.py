"""
Formatting primitives shared by the node renderers.

Renderers work on plain line lists; Node.render() anchors them at the node's
`start` to produce the absolute line map.

Indentation is either a column count (spaces) or the exact whitespace prefix
observed in the source, which keeps tab-indented blocks intact.
"""

from __future__ import annotations

from collections.abc import Sequence


def pad(indent: int | str) -> str:
    return indent if isinstance(indent, str) else " " * indent


def leading(line: str) -> str:
    """Whitespace prefix of a line."""
    return line[: len(line) - len(line.lstrip())]


def entry_line(indent: int | str, key: str, arrow: str, payload: str, suffix: str = "", comma: bool = True) -> str:
    """`'name' => payload,` at the given indentation. `key` is already quoted."""
    return f"{pad(indent)}{key}{arrow}{payload}{',' if comma else ''}{suffix}"


def open_line(indent: int | str, key: str, arrow: str, suffix: str = "") -> str:
    return f"{pad(indent)}{key}{arrow}[{suffix}"


def close_line(indent: int | str, suffix: str = "", comma: bool = True) -> str:
    return f"{pad(indent)}]{',' if comma else ''}{suffix}"


def array_block(
    indent: int | str, step: int | str, key: str, arrow: str, elements: Sequence[str], suffix: str = ""
) -> list[str]:
    """
    Multi-line array value: opening line, one element per line, closing `],`.

    Every element but the last carries a trailing comma.
    """
    lines = [open_line(indent, key, arrow, suffix)]
    inner = pad(indent) + pad(step)
    last = len(elements) - 1
    for i, element in enumerate(elements):
        comma = "," if i < last else ""
        lines.append(f"{inner}{element}{comma}")
    lines.append(close_line(indent))
    return lines


def comment_lines(indent: int | str, label: str, marker: str = "//", spaced: bool = True) -> list[str]:
    lines = []
    for text in label.split("\n"):
        body = f" {text}" if text and spaced else text
        lines.append(f"{pad(indent)}{marker}{body}")
    return lines


def banner_lines(indent: int | str, label: str, description: str, width: int) -> list[str]:
    """
    Header block:

        /*
        |-----------
        | Label
        |-----------
        |
        | Description lines
        |
        */
    """
    prefix = pad(indent)
    rule = f"{prefix}|{'-' * width}"
    lines = [f"{prefix}/*", rule, f"{prefix}| {label}".rstrip(), rule]
    if description:
        lines.append(f"{prefix}|")
        for text in description.split("\n"):
            lines.append(f"{prefix}| {text}".rstrip())
        lines.append(f"{prefix}|")
    lines.append(f"{prefix}*/")
    return lines


def relative(lines: Sequence[str], indent: int) -> list[str]:
    """
    Strip `indent` leading columns from each line (fully left-strip shallower lines).

    Whitespace-only lines are kept as they are.
    """
    result = []
    for line in lines:
        if not line.strip():
            result.append(line)
        elif line[:indent].strip():
            result.append(line.lstrip())
        else:
            result.append(line[indent:])
    return result


def reindent(lines: Sequence[str], indent: int | str) -> list[str]:
    """Inverse of relative(): prefix lines holding text with `indent`."""
    return [f"{pad(indent)}{line}" if line.strip() else line for line in lines]


def place(lines: Sequence[str], start: int) -> dict[int, str]:
    """Anchor a line list at an absolute line number."""
    return {start + i: line for i, line in enumerate(lines)}


def fill_gaps(line_map: dict[int, str], start: int, end: int) -> dict[int, str]:
    """Dense line map from start to end; lines no node renders are blank."""
    return {n: line_map.get(n, "") for n in range(start, end + 1)}


def blank_run(texts: Sequence[str], count: int) -> list[str]:
    """`count` blank lines, reusing the source text while it still has that many."""
    return list(texts) if len(texts) == count else [""] * count
