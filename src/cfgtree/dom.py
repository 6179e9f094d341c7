"""
DOM - Document Object Model for array-literal configuration files.

Every element of the data block is a Node. Nodes are line-addressed: `start`
and `end` are absolute output line numbers, recomputed by ParentNode.reflow()
from the order of `children` plus each child's margin and height. Every
structural mutation reflows the whole tree before returning.

Margins belong to positions in the sibling list: a swap exchanges them, and a
removed node leaves its spacing to the sibling that takes its place.

A parent holding `verbatim` source lines is folded: it renders those lines
and its descendants all sit on its first line until something inside changes.

Key invariant: comment nodes carry a synthetic key and are never returned by
path lookups, but they sit in the same ordered sibling list as data nodes.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from . import render
from .config import get_config
from .errors import RootResolutionError, UnsupportedOperationError

if TYPE_CHECKING:
    from .nodes.file import File
    from .nodes.section import Section
    from .nodes.value import Value

logger = logging.getLogger(__name__)


class Node(ABC):
    """A single addressable unit of the data block."""

    type = "node"
    addressable = True  # comments opt out of path lookup

    def __init__(self, start: int, end: int, raw: dict[int, str] | None = None):
        self.key = ""
        self.start = start
        self.end = end
        self.raw: dict[int, str] = dict(raw or {})
        self.created = False
        self.parent: ParentNode | None = None
        self.margin: int | None = None  # blank lines above the node
        self.blanks: list[str] = []  # source text of those blank lines
        self.lead: str | None = None  # indentation seen in the source
        self.scope: tuple[str, ...] = ()  # enclosing section keys, set by the parser for wrap()

    @classmethod
    def make(cls, start: int, end: int, raw: dict[int, str]):
        return cls(start, end, raw)

    @classmethod
    def make_empty(cls, key: str):
        """A node that does not exist in the source yet."""
        node = cls(0, 0, {})
        node.key = key
        node.created = True
        return node

    # -- identity --------------------------------------------------------

    @property
    def name(self) -> str:
        """Last segment of the node's path. Keys are stored per level, so this is the key itself."""
        return self.key

    @property
    def path(self) -> str:
        if self.parent is not None and self.parent.path:
            return f"{self.parent.path}.{self.key}"
        return self.key

    def is_type_of(self, type: str) -> bool:
        return self.type == type.lower()

    def root(self) -> File:
        current: Node | None = self
        while current is not None:
            if current.type == "file":
                return current  # type: ignore[return-value]
            current = current.parent
        raise RootResolutionError(f"Node '{self.path}' is not attached to a file")

    # -- geometry --------------------------------------------------------

    def depths(self) -> dict[int, int]:
        """Leading whitespace of each raw line."""
        return {n: len(line) - len(line.lstrip()) for n, line in self.raw.items()}

    def padding(self) -> int:
        return 0

    def height(self) -> int:
        """Number of lines the node renders to."""
        return len(self.lines())

    def scale(self) -> int:
        """Vertical footprint: margin plus rendered span."""
        return (self.margin or 0) + (self.end - self.start + 1)

    def line_indent(self) -> str:
        """Leading whitespace of the node's own lines."""
        if self.lead is not None:
            return self.lead
        return self.parent.indent if self.parent is not None else ""

    # -- rendering -------------------------------------------------------

    @abstractmethod
    def lines(self) -> list[str]:
        """The node's rendered lines, without the blank lines above it."""
        ...

    def render(self) -> dict[int, str]:
        return render.place(self.lines(), self.start)

    def blank_lines(self) -> dict[int, str]:
        """The margin above the node, anchored before `start`."""
        margin = self.margin or 0
        return render.place(render.blank_run(self.blanks, margin), self.start - margin)

    # -- state -----------------------------------------------------------

    @property
    def is_new(self) -> bool:
        return self.created

    @property
    def exists(self) -> bool:
        return not self.created

    @property
    def is_folded(self) -> bool:
        """Inside a section that is still rendered from its source text."""
        parent = self.parent
        while parent is not None:
            if parent.verbatim is not None:
                return True
            parent = parent.parent
        return False

    def is_dirty(self) -> bool:
        """New, or rendering no longer reproduces the lines it was parsed from."""
        if self.is_new:
            return True
        if self.is_folded:
            return False
        return list(self.raw.values()) != self.lines()

    # -- relations -------------------------------------------------------

    def is_(self, node: Node) -> bool:
        return self is node

    @property
    def is_root(self) -> bool:
        """Top-level entry of the data block."""
        return self.parent is not None and self.parent.type == "file"

    @property
    def is_sub_node(self) -> bool:
        return self.parent is not None

    def is_child_of(self, parent: ParentNode) -> bool:
        return self.parent is parent

    def is_sibling_of(self, node: Node) -> bool:
        return self.parent is not None and self.parent is node.parent

    def _index(self) -> int:
        assert self.parent is not None
        for i, child in enumerate(self.parent.children):
            if child is self:
                return i
        raise UnsupportedOperationError(f"Node '{self.key}' is not among its parent's children")

    def siblings(self) -> list[Node]:
        if self.parent is None:
            return []
        return [child for child in self.parent.children if child is not self]

    def siblings_before(self) -> list[Node]:
        if self.parent is None:
            return []
        return self.parent.children[: self._index()]

    def siblings_after(self) -> list[Node]:
        if self.parent is None:
            return []
        return self.parent.children[self._index() + 1:]

    @property
    def is_first_child(self) -> bool:
        return self.parent is not None and self.parent.children[0] is self

    @property
    def is_last_child(self) -> bool:
        return self.parent is not None and self.parent.children[-1] is self

    def is_next_before(self, node: Node) -> bool:
        """`node` sits directly before this one."""
        before = self.siblings_before()
        return bool(before) and before[-1] is node

    def is_next_after(self, node: Node) -> bool:
        """`node` sits directly after this one."""
        after = self.siblings_after()
        return bool(after) and after[0] is node

    # -- reordering ------------------------------------------------------

    def move_to(self, line: int) -> Node:
        """Relocate to `line`, keeping the span."""
        span = self.end - self.start
        self.start = line
        self.end = line + span
        return self

    def move_up(self) -> Node:
        before = self.siblings_before()
        if before and self.parent is not None:
            self.parent.swap_children(self, before[-1])
        return self

    def move_down(self) -> Node:
        after = self.siblings_after()
        if after and self.parent is not None:
            self.parent.swap_children(after[0], self)
        return self

    def keep_start(self) -> Node:
        siblings = self.siblings()
        return self.before(siblings[0]) if siblings else self

    def keep_end(self) -> Node:
        siblings = self.siblings()
        return self.after(siblings[-1]) if siblings else self

    def before(self, target: Node | str) -> Node:
        """Place directly before `target`. Unknown or foreign targets leave the node in place."""
        sibling = self._sibling(target)
        if sibling is None:
            return self

        down = self._index() < sibling._index()
        while not self.is_next_after(sibling):
            if down:
                self.move_down()
                if self.is_last_child:
                    break
            else:
                self.move_up()
                if self.is_first_child:
                    break
        return self

    def after(self, target: Node | str) -> Node:
        """Place directly after `target`. Unknown or foreign targets leave the node in place."""
        sibling = self._sibling(target)
        if sibling is None:
            return self

        down = self._index() < sibling._index()
        while not self.is_next_before(sibling):
            if down:
                self.move_down()
                if self.is_last_child:
                    break
            else:
                self.move_up()
                if self.is_first_child:
                    break
        return self

    def _sibling(self, target: Node | str) -> Node | None:
        if isinstance(target, str):
            if self.parent is None:
                return None
            found = self.parent.get_child(target)
        else:
            found = target
        if found is None or found is self or not self.is_sibling_of(found):
            return None
        return found

    # -- cross-scope moves -----------------------------------------------

    def cut(self, target: ParentNode | str) -> Node:
        """Detach from the current parent and append to `target` (a parent or absolute path)."""
        if isinstance(target, str) and isinstance(self, ParentNode) and self.path:
            if target == self.path or target.startswith(self.path + "."):
                raise UnsupportedOperationError(f"Cannot move '{self.path}' into its own subtree")
        parent = self._target_parent(target)
        if isinstance(self, ParentNode) and any(node is self for node in parent.ancestry()):
            raise UnsupportedOperationError(f"Cannot move '{self.path}' into its own subtree")

        source = self.parent.path if self.parent is not None else None
        if self.parent is not None:
            self.parent.remove_child(self)
        self._forget_layout()
        parent.add_child(self)
        logger.debug("Cut %s from '%s' into '%s'", self.key, source, parent.path)
        return self

    def copy(self, target: ParentNode | str) -> Node:
        """Append a duplicate of this node to `target`; returns the duplicate."""
        parent = self._target_parent(target)
        duplicate = self.replicate()
        duplicate._forget_layout()
        parent.add_child(duplicate)
        logger.debug("Copied %s into '%s'", self.key, parent.path)
        return duplicate

    def _forget_layout(self) -> None:
        """Drop source spacing and indentation before the node is placed elsewhere."""
        self.margin = None
        self.blanks = []
        for node in self.depth_first():
            node.lead = None
            if isinstance(node, ParentNode):
                node.close_lead = None

    def _target_parent(self, target: ParentNode | str) -> ParentNode:
        if isinstance(target, str):
            return self.root().section(target)
        return target

    # -- editing ---------------------------------------------------------

    def rename(self, name: str) -> Node:
        """Replace the last key segment. Re-select the node by its new path afterwards."""
        self.key = name
        self._reflow_tree()
        return self

    def remove(self) -> ParentNode:
        if self.parent is None:
            raise UnsupportedOperationError(f"Node '{self.key}' has no parent to be removed from")
        return self.parent.remove_child(self)

    def replicate(self) -> Node:
        """Detached copy, raw lines and range included."""
        duplicate = copy.copy(self)
        duplicate.raw = dict(self.raw)
        duplicate.parent = None
        return duplicate

    def with_comment(self, label: str, description: str | None = None) -> Node:
        """
        Bind a comment directly above this node.

        An existing comment immediately before the node is replaced. A
        description turns the comment into a RichComment header block.
        """
        from .nodes.comment import Comment, RichComment

        if self.parent is None:
            raise UnsupportedOperationError(f"Node '{self.key}' has no parent to hold a comment")

        before = self.siblings_before()
        if before and isinstance(before[-1], Comment):
            before[-1].remove()

        if description is None:
            comment = Comment.make_empty(label)
        else:
            comment = RichComment.make_empty(label, description)
        comment.margin, comment.blanks = self.margin or 0, self.blanks
        self.margin, self.blanks = 0, []
        self.parent.add_child(comment, index=self._index())
        return self

    # -- layout ----------------------------------------------------------

    def _reflow_tree(self) -> None:
        """Relayout after a mutation; sections around the change drop their source text."""
        top: Node = self
        while True:
            if isinstance(top, ParentNode):
                top.verbatim = None
            if top.parent is None:
                break
            top = top.parent
        if isinstance(top, ParentNode):
            top.reflow()

    def depth_first(self) -> Iterator[Node]:
        """Traverse tree depth-first, yielding self then children."""
        yield self

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "start": self.start,
            "end": self.end,
            "raw": dict(self.raw),
            "depths": self.depths(),
            "key": self.key,
            "path": self.path,
            "name": self.name,
            "is_root": self.is_root,
            "is_sub_node": self.is_sub_node,
            "parent_key": self.parent.key if self.parent is not None else None,
            "was_created": self.is_new,
            "is_dirty": self.is_dirty(),
            "render": self.render(),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.path or self.key!r} {self.start}-{self.end}>"


class ParentNode(Node):
    """A node owning an ordered list of children (Section, File)."""

    def __init__(self, start: int, end: int, raw: dict[int, str] | None = None):
        super().__init__(start, end, raw)
        self.children: list[Node] = []
        self.tail = 0  # blank lines before the closing line
        self.tail_blanks: list[str] = []
        self.step: str | None = None  # observed indentation of children relative to own line
        self.close_lead: str | None = None
        self.verbatim: list[str] | None = None  # source lines, kept until the subtree changes

    @property
    def step_unit(self) -> str:
        if self.step is not None:
            return self.step
        return render.pad(get_config().layout.indent_width)

    @property
    def indent(self) -> str:
        """Leading whitespace of the children's lines."""
        return self.line_indent() + self.step_unit

    def height(self) -> int:
        return self.end - self.start + 1

    def ancestry(self) -> Iterator[ParentNode]:
        """Self, then each parent up to the top."""
        current: ParentNode | None = self
        while current is not None:
            yield current
            current = current.parent

    def depth_first(self) -> Iterator[Node]:
        yield self
        for child in self.children:
            yield from child.depth_first()

    # -- children --------------------------------------------------------

    def add_child(self, node: Node, silent: bool = False, index: int | None = None) -> Node:
        """Append (or insert at `index`) a child and return it. Unless silent, the tree is reflowed."""
        if node.parent is not None and node.parent is not self:
            node.parent.remove_child(node)
        if node.margin is None:
            node.margin = self._margin_for(node)
        node.parent = self
        if index is None:
            self.children.append(node)
        else:
            self.children.insert(index, node)
        if not silent:
            self._reflow_tree()
        return node

    def remove_child(self, node: Node) -> ParentNode:
        """
        Detach `node`. The sibling moving into its position keeps the wider of
        the two margins, or the removed one when it becomes the first child.
        """
        index = next((i for i, child in enumerate(self.children) if child is node), None)
        if index is not None:
            del self.children[index]
            if index < len(self.children):
                heir = self.children[index]
                if index == 0 or (node.margin or 0) > (heir.margin or 0):
                    heir.margin, heir.blanks = node.margin, node.blanks
        if node.parent is self:
            node.parent = None
        self._reflow_tree()
        return self

    def get_child(self, key: str) -> Node | None:
        """Direct child with this key; comments never match."""
        for child in self.children:
            if child.addressable and child.key == key:
                return child
        return None

    def swap_children(self, a: Node, b: Node) -> ParentNode:
        positions = {id(child): i for i, child in enumerate(self.children)}
        i, j = positions.get(id(a)), positions.get(id(b))
        if i is None or j is None:
            return self
        self.children[i], self.children[j] = b, a
        a.margin, b.margin = b.margin, a.margin
        a.blanks, b.blanks = b.blanks, a.blanks
        self._reflow_tree()
        return self

    def _margin_for(self, node: Node) -> int:
        if not self.children:
            return 0
        spacing = Counter(child.margin for child in self.children[1:] if child.margin is not None)
        prevailing = spacing.most_common(1)[0][0] if spacing else 0
        return max(node.padding(), self.children[-1].padding(), prevailing)

    def observe_indent(self) -> None:
        """Adopt the indentation step the source uses for this node's children."""
        if self.step is not None or not self.children:
            return
        child = self.children[0]
        if self.start not in self.raw or child.lead is None:
            return
        own = render.leading(self.raw[self.start])
        if len(child.lead) > len(own) and child.lead.startswith(own):
            self.step = child.lead[len(own):]

    # -- layout ----------------------------------------------------------

    def reflow(self) -> ParentNode:
        """
        Recompute every descendant's line range from child order.

        Children are laid out after the opening line: each one takes its
        margin of blank lines, then its own height. Nested parents recurse.
        The closing line follows the last child plus `tail` blank lines.
        A folded parent keeps the height of its source text instead.
        """
        if self.verbatim is not None:
            for node in self.depth_first():
                if node is not self:
                    node.start = node.end = self.start
            self.end = self.start + len(self.verbatim) - 1
            return self

        cursor = self.start + 1
        for child in self.children:
            if child.margin is None:
                child.margin = 0
            cursor += child.margin
            child.move_to(cursor)
            if isinstance(child, ParentNode):
                child.reflow()
            else:
                child.end = cursor + child.height() - 1
            cursor = child.end + 1
        self.end = cursor + self.tail
        return self

    @abstractmethod
    def opening_line(self) -> str:
        """Line that opens the block (`'key' => [` or `return [`)."""
        ...

    @abstractmethod
    def closing_line(self) -> str:
        ...

    def render(self) -> dict[int, str]:
        if self.verbatim is not None:
            return render.place(render.reindent(self.verbatim, self.line_indent()), self.start)
        output = {self.start: self.opening_line()}
        for child in self.children:
            output.update(child.blank_lines())
            output.update(child.render())
        tail = render.blank_run(self.tail_blanks, self.tail)
        output.update(render.place(tail, self.end - self.tail))
        output[self.end] = self.closing_line()
        return output

    def lines(self) -> list[str]:
        return list(render.fill_gaps(self.render(), self.start, self.end).values())

    def replicate(self) -> ParentNode:
        duplicate = super().replicate()
        assert isinstance(duplicate, ParentNode)
        duplicate.children = []
        for child in self.children:
            clone = child.replicate()
            clone.parent = duplicate
            duplicate.children.append(clone)
        return duplicate

    # -- selection -------------------------------------------------------

    def find(self, path: str) -> Node | None:
        """Look a dotted path up without creating anything."""
        node: Node | None = self
        for segment in path.split("."):
            if not isinstance(node, ParentNode):
                return None
            node = node.get_child(segment)
            if node is None:
                return None
        return node

    def section(self, path: str) -> ParentNode:
        """Section at `path`, creating missing sections along the way. "" is self."""
        if not path:
            return self
        return self._resolve(path, terminal_value=False)  # type: ignore[return-value]

    def value(self, path: str, literal: str | None = None) -> Value:
        """
        Value at `path`, creating it (and missing sections) if absent.

        A literal is a soft assignment: it only lands if the value is empty.
        """
        node = self._resolve(path, terminal_value=True)
        if literal is not None:
            node.add(literal)  # type: ignore[attr-defined]
        return node  # type: ignore[return-value]

    def _resolve(self, path: str, terminal_value: bool) -> Node:
        from .nodes.section import Section
        from .nodes.value import Value

        if not path:
            raise UnsupportedOperationError("A value needs a non-empty path")

        segments = path.split(".")
        current: Node = self
        for i, segment in enumerate(segments):
            assert isinstance(current, ParentNode)
            wanted: type[Section] | type[Value] = Section
            if terminal_value and i == len(segments) - 1:
                wanted = Value
            child = current.get_child(segment)
            if child is None:
                child = current.add_child(wanted.make_empty(segment))
            elif not isinstance(child, wanted):
                raise UnsupportedOperationError(
                    f"'{child.path}' is a {child.type}, not a {wanted.type}"
                )
            current = child
        return current

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "indent": self.indent,
            "children": [child.to_dict() for child in self.children],
        }
