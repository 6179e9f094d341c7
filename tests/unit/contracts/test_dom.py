"""
Data model contract tests.

Pin down relations, ordering, reflow and selection that every node type
honours, independent of how it renders.
"""

import pytest

from cfgtree.document import loads
from cfgtree.dom import Node, ParentNode
from cfgtree.errors import RootResolutionError, UnsupportedOperationError
from cfgtree.nodes.section import Section
from cfgtree.nodes.value import Value

FLAT = """<?php

return [
    'a' => 1,
    'b' => 2,
    'c' => 3,
];
"""

SPACED = """return [
    'a' => 1,

    'b' => 2,

    'c' => 3,
];
"""

NESTED = """<?php

return [
    'a' => 1,
    'x' => [
        'z' => 2,
    ],
];
"""


def keys(parent):
    return [child.key for child in parent.children]


@pytest.fixture
def flat():
    return loads(FLAT)


@pytest.fixture
def nested():
    return loads(NESTED)


class TestRelations:
    def test_root_and_parent(self, flat):
        a = flat.find("a")
        assert a.root() is flat
        assert a.parent is flat
        assert a.is_child_of(flat)
        assert a.is_root
        assert a.is_sub_node

    def test_nested_node_is_not_root(self, nested):
        z = nested.find("x.z")
        assert not z.is_root
        assert z.root() is nested
        assert z.path == "x.z"
        assert z.name == "z"

    def test_siblings(self, flat):
        a, b, c = flat.children
        assert a.is_sibling_of(b)
        assert b.siblings() == [a, c]
        assert b.siblings_before() == [a]
        assert b.siblings_after() == [c]
        assert a.is_first_child and not a.is_last_child
        assert c.is_last_child

    def test_next_before_and_after(self, flat):
        a, b, c = flat.children
        assert b.is_next_before(a)
        assert b.is_next_after(c)
        assert not a.is_next_after(c)

    def test_identity(self, flat):
        assert flat.find("a").is_(flat.children[0])
        assert not flat.find("a").is_(flat.find("b"))

    def test_type(self, flat):
        assert flat.is_type_of("file")
        assert flat.find("a").is_type_of("Value")

    def test_depths(self, flat):
        assert flat.find("a").depths() == {3: 4}

    def test_detached_node(self):
        node = Value.make_empty("orphan")
        assert not node.is_sub_node
        assert not node.is_root
        assert node.siblings() == []
        with pytest.raises(RootResolutionError):
            node.root()
        with pytest.raises(UnsupportedOperationError):
            node.remove()

    def test_base_nodes_are_abstract(self):
        with pytest.raises(TypeError):
            Node(0, 0)
        with pytest.raises(TypeError):
            ParentNode(0, 0)

    def test_unsupported_operation_is_attribute_error(self):
        with pytest.raises(AttributeError):
            Value.make_empty("orphan").remove()


class TestState:
    def test_parsed_nodes_are_clean(self, nested):
        assert all(not node.is_dirty() for node in nested.depth_first())
        assert all(node.exists for node in nested.depth_first())

    def test_new_node_is_dirty(self, flat):
        node = flat.value("d", "4")
        assert node.is_new
        assert not node.exists
        assert node.is_dirty()

    def test_changed_node_is_dirty(self, flat):
        flat.find("b").set("20")
        assert flat.find("b").is_dirty()
        assert not flat.find("a").is_dirty()

    def test_moved_node_is_not_dirty(self, flat):
        flat.find("c").move_up()
        assert not flat.find("c").is_dirty()
        assert flat.is_dirty()


class TestOrdering:
    def test_move_up_then_keep_start(self, flat):
        flat.find("b").move_up()
        assert keys(flat) == ["b", "a", "c"]
        flat.find("c").keep_start()
        assert keys(flat) == ["c", "b", "a"]

    def test_positions_follow_order(self, flat):
        flat.find("b").move_up()
        assert flat.find("b").start == 3
        assert flat.find("a").start == 4
        assert flat.output()[3:5] == ["    'b' => 2,", "    'a' => 1,"]

    def test_move_up_at_top_is_noop(self, flat):
        flat.find("a").move_up()
        assert keys(flat) == ["a", "b", "c"]

    def test_move_down_at_bottom_is_noop(self, flat):
        flat.find("c").move_down()
        assert keys(flat) == ["a", "b", "c"]

    def test_move_down(self, flat):
        flat.find("a").move_down()
        assert keys(flat) == ["b", "a", "c"]

    def test_keep_end(self, flat):
        flat.find("a").keep_end()
        assert keys(flat) == ["b", "c", "a"]

    def test_before_by_key(self, flat):
        flat.find("a").before("c")
        assert keys(flat) == ["b", "a", "c"]

    def test_after_node(self, flat):
        flat.find("c").after(flat.find("a"))
        assert keys(flat) == ["a", "c", "b"]

    def test_unknown_target_is_noop(self, flat):
        flat.find("a").after("missing")
        assert keys(flat) == ["a", "b", "c"]

    def test_foreign_target_is_noop(self, flat, nested):
        flat.find("a").before(nested.find("x"))
        assert keys(flat) == ["a", "b", "c"]

    def test_self_target_is_noop(self, flat):
        a = flat.find("a")
        assert a.before(a) is a
        assert keys(flat) == ["a", "b", "c"]

    def test_only_child(self, nested):
        z = nested.find("x.z")
        assert z.keep_start() is z
        assert z.keep_end() is z


class TestSpacing:
    def test_move_up_keeps_spacing_in_place(self):
        file = loads(SPACED)
        file.find("b").move_up()
        assert file.output() == [
            "return [",
            "    'b' => 2,",
            "",
            "    'a' => 1,",
            "",
            "    'c' => 3,",
            "];",
        ]
        assert not any(node.is_dirty() for node in file.children)

    def test_keep_end_keeps_spacing_in_place(self):
        file = loads(SPACED)
        file.find("a").keep_end()
        assert keys(file) == ["b", "c", "a"]
        assert file.output()[1:6] == ["    'b' => 2,", "", "    'c' => 3,", "", "    'a' => 1,"]

    def test_removing_first_child_leaves_no_leading_blank(self):
        file = loads("return [\n    'a' => 1,\n\n    'b' => 2,\n];\n")
        file.find("a").remove()
        assert file.output() == ["return [", "    'b' => 2,", "];"]

    def test_removing_keeps_the_wider_gap(self):
        file = loads("return [\n    'a' => 1,\n\n    'b' => 2,\n    'c' => 3,\n];\n")
        file.find("b").remove()
        assert file.output() == ["return [", "    'a' => 1,", "", "    'c' => 3,", "];"]

    def test_cut_leaves_spacing_behind(self):
        file = loads(SPACED)
        file.find("a").cut("box")
        assert file.output()[:4] == ["return [", "    'b' => 2,", "", "    'c' => 3,"]


class TestReflow:
    def test_idempotent(self, nested):
        nested.find("x").value("new", "1")
        ranges = [(n.start, n.end) for n in nested.depth_first()]
        nested.reflow()
        nested.reflow()
        assert [(n.start, n.end) for n in nested.depth_first()] == ranges

    def test_growth_shifts_followers(self, flat):
        flat.find("a").set("[1, 2, 3, 4, 5]")
        assert flat.find("a").end - flat.find("a").start == 6
        assert flat.find("b").start == 10
        assert flat.end == 12

    def test_scale_includes_margin(self):
        file = loads("return [\n    'a' => 1,\n\n    'b' => 2,\n];\n")
        assert file.find("a").scale() == 1
        assert file.find("b").scale() == 2


class TestCrossScope:
    def test_cut_creates_missing_sections(self, nested):
        a = nested.find("a")
        a.cut("x.y")
        assert nested.find("a") is None
        assert nested.find("x.y.a") is a
        assert a.path == "x.y.a"
        assert nested.output() == [
            "<?php",
            "",
            "return [",
            "    'x' => [",
            "        'z' => 2,",
            "",
            "        'y' => [",
            "            'a' => 1,",
            "        ],",
            "    ],",
            "];",
        ]

    def test_cut_to_parent_node(self, nested):
        z = nested.find("x.z")
        z.cut(nested)
        assert keys(nested) == ["a", "x", "z"]
        assert nested.find("x").children == []

    def test_cut_into_own_subtree_raises(self, nested):
        with pytest.raises(UnsupportedOperationError):
            nested.find("x").cut("x.inner")

    def test_copy(self, nested):
        a = nested.find("a")
        duplicate = a.copy("x")
        assert duplicate is not a
        assert nested.find("a") is a
        assert nested.find("x.a") is duplicate
        assert duplicate.value == "1"
        assert keys(nested.find("x")) == ["z", "a"]

    def test_copy_section_is_deep(self, nested):
        duplicate = nested.find("x").copy(nested.section("backup"))
        assert duplicate.path == "backup.x"
        assert nested.find("backup.x.z") is not nested.find("x.z")


class TestEditing:
    def test_rename(self, flat):
        a = flat.find("a")
        a.rename("alpha")
        assert flat.find("alpha") is a
        assert flat.find("a") is None
        assert flat.output()[3] == "    'alpha' => 1,"

    def test_remove(self, flat):
        assert flat.find("b").remove() is flat
        assert keys(flat) == ["a", "c"]
        assert flat.find("c").start == 4
        assert flat.end == 5


class TestSelection:
    def test_find_missing(self, nested):
        assert nested.find("missing") is None
        assert nested.find("x.missing") is None

    def test_find_through_value(self, nested):
        assert nested.find("a.deeper") is None

    def test_section_empty_path_is_self(self, nested):
        assert nested.section("") is nested

    def test_section_creates(self, nested):
        created = nested.section("p.q")
        assert isinstance(created, Section)
        assert created.is_new
        assert created.path == "p.q"

    def test_value_through_value_raises(self, nested):
        with pytest.raises(UnsupportedOperationError):
            nested.value("a.b")

    def test_section_where_value_lives_raises(self, nested):
        with pytest.raises(UnsupportedOperationError):
            nested.section("a")

    def test_value_where_section_lives_raises(self, nested):
        with pytest.raises(UnsupportedOperationError):
            nested.value("x")

    def test_depth_first_order(self, nested):
        assert [n.key for n in nested.depth_first()] == ["", "a", "x", "z"]


class TestToDict:
    def test_value_dict(self, flat):
        data = flat.find("a").to_dict()
        assert data["type"] == "value"
        assert (data["start"], data["end"]) == (3, 3)
        assert data["raw"] == {3: "    'a' => 1,"}
        assert data["depths"] == {3: 4}
        assert data["key"] == "a"
        assert data["path"] == "a"
        assert data["is_root"] is True
        assert data["was_created"] is False
        assert data["is_dirty"] is False
        assert data["render"] == {3: "    'a' => 1,"}
        assert data["value"] == "1"
        assert data["data_type"] == "number"

    def test_parent_dict_nests_children(self, nested):
        data = nested.to_dict()
        assert data["type"] == "file"
        assert [child["key"] for child in data["children"]] == ["a", "x"]
        assert data["children"][1]["children"][0]["parent_key"] == "x"
