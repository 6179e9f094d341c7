"""
Unit tests for the File root node.
"""

from cfgtree.document import loads
from cfgtree.nodes.file import File


class TestMakeEmpty:
    def test_empty_document(self):
        file = File.make_empty("app.php")
        assert file.name == "app.php"
        assert file.path == ""
        assert file.is_new
        assert file.output() == ["<?php", "", "return [", "];"]

    def test_build_from_scratch(self):
        file = File.make_empty()
        file.value("name", "Demo")
        file.value("mail.host", "localhost")
        file.value("mail.port", "25")
        assert file.output() == [
            "<?php",
            "",
            "return [",
            "    'name' => 'Demo',",
            "",
            "    'mail' => [",
            "        'host' => 'localhost',",
            "        'port' => 25,",
            "    ],",
            "];",
        ]


class TestRoot:
    def test_root_is_self(self):
        file = File.make_empty()
        assert file.root() is file
        assert not file.is_root
        assert not file.is_sub_node

    def test_lines_outside_block_untouched(self):
        source = "<?php\n\nuse Foo\\Bar;\n\nreturn [\n    'a' => 1,\n];\n\n// generated\n"
        file = loads(source)
        file.find("a").set("2")
        assert file.output() == [
            "<?php",
            "",
            "use Foo\\Bar;",
            "",
            "return [",
            "    'a' => 2,",
            "];",
            "",
            "// generated",
        ]

    def test_indented_block(self):
        file = loads("<?php\n\n    return [\n        'a' => 1,\n    ];\n")
        assert file.line_indent() == "    "
        file.value("b", "2")
        assert file.output()[4] == "        'b' => 2,"

    def test_tail_kept(self):
        source = "return [\n    'a' => 1,\n\n];\n"
        file = loads(source)
        assert file.tail == 1
        file.value("b", "2")
        assert file.output() == ["return [", "    'a' => 1,", "    'b' => 2,", "", "];"]
