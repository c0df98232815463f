"""Tests for raw-mode generation of imported plugins."""

import pytest
from pydantic import ValidationError

from mzforge.core.generator import RawBodyNotFound, generate, generate_raw, locate_body
from mzforge.core.parser import parse_plugin

BODY = """

(function() {
  'use strict';
  var x = 1;    // odd   spacing kept
	var tabbed = true;
})();
"""

IMPORTED = """// Banner comment
/*:
 * @target MZ
 * @plugindesc Old description
 *
 * @param speed
 * @type number
 * @default 3
 */""" + BODY


class TestGenerateRaw:
    """Tests for generate_raw."""

    def test_body_kept_byte_for_byte(self):
        plugin = parse_plugin(IMPORTED, "Imported.js")
        plugin.meta.description = "New description"

        output = generate_raw(plugin)

        assert output.startswith("// Banner comment\n/*:\n")
        assert output.endswith(BODY)
        assert " * @plugindesc New description\n" in output
        assert "Old description" not in output

    def test_absent_version_not_added(self):
        """Fields the source never declared stay out of the regenerated header."""
        plugin = parse_plugin(IMPORTED, "Imported.js")
        plugin.meta.description = "New description"

        output = generate_raw(plugin)

        assert plugin.meta.version == ""
        assert "@version" not in output
        assert output.startswith("// Banner comment\n/*:\n * @target MZ\n * @plugindesc New description\n *\n")

    def test_header_edits_applied(self):
        plugin = parse_plugin(IMPORTED, "Imported.js")
        plugin.parameters[0].default = 7
        assert " * @default 7\n" in generate_raw(plugin)

    def test_without_raw_source_falls_back(self, sample_plugin):
        assert generate_raw(sample_plugin) == generate(sample_plugin)

    def test_code_between_blocks_falls_back(self):
        source = "/*:\n * @plugindesc A\n */\nvar x = 1;\n/*:ja\n * @plugindesc B\n */\nrun();\n"
        plugin = parse_plugin(source, "Mixed.js")
        assert generate_raw(plugin) == generate(plugin)

    def test_empty_body_falls_back(self):
        plugin = parse_plugin("/*:\n * @plugindesc A\n */\n\n", "Empty.js")
        assert generate_raw(plugin) == generate(plugin)

    def test_raw_source_is_immutable(self):
        plugin = parse_plugin(IMPORTED, "Imported.js")
        with pytest.raises(ValidationError):
            plugin.raw_source = "replaced"


class TestLocateBody:
    """Tests for locate_body."""

    def test_split(self):
        preamble, body = locate_body(IMPORTED)
        assert preamble == "// Banner comment\n"
        assert body == BODY

    def test_struct_blocks_are_part_of_header(self):
        source = "/*:\n */\n\n/*~struct~Pos:\n * @param x\n */\nrun();"
        assert locate_body(source) == ("", "\nrun();")

    @pytest.mark.parametrize("source", [
        "run();",
        "/*:\n */\ncode();\n/*:ja\n */\nmore();",
        "/*:\n */\n   \n",
    ])
    def test_not_found(self, source):
        with pytest.raises(RawBodyNotFound):
            locate_body(source)
