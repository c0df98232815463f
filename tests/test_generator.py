"""Tests for the code generator."""

from unittest.mock import patch

from mzforge.core.generator import (
    CUSTOM_CODE_MARKER,
    generate,
    generate_command_skeleton,
    generate_header,
    generate_parameter_comment,
)
from mzforge.core.param_types import ParamType
from mzforge.models.plugin import (
    Command,
    LocalizedContent,
    NoteParam,
    Parameter,
    PluginDefinition,
    PluginMeta,
    Struct,
)


def _lines(code):
    return code.split("\n")


class TestGenerateMinimal:
    """Tests for the smallest possible plugin."""

    def test_exact_output(self):
        plugin = PluginDefinition(meta=PluginMeta(name="Hello", description="Says hello", author="Me"))
        expected = (
            "/*:\n"
            " * @target MZ\n"
            " * @plugindesc Says hello\n"
            " * @version 1.0.0\n"
            " * @author Me\n"
            " *\n"
            " */\n"
            "\n"
            "(() => {\n"
            "    'use strict';\n"
            "\n"
            "    const PLUGIN_NAME = 'Hello';\n"
            "\n"
            "    // Custom plugin code goes here\n"
            "\n"
            "})();\n"
        )
        assert generate(plugin) == expected

    def test_deterministic(self, sample_plugin):
        """Same definition, same text."""
        assert generate(sample_plugin) == generate(sample_plugin)

    def test_parameter_order_only_moves_its_own_lines(self, sample_plugin):
        """Reordering parameters reorders their @param blocks and const lines, nothing else."""
        before = _lines(generate(sample_plugin))
        sample_plugin.parameters.reverse()
        after = _lines(generate(sample_plugin))

        def regions(lines):
            first = next(i for i, line in enumerate(lines) if line.startswith(" * @param "))
            header = range(first, lines.index(" * @command ShowMessage"))
            consts = [i for i, line in enumerate(lines) if line.startswith("    const ") and "params[" in line]
            return set(header) | set(consts)

        moved = regions(before)
        assert moved == regions(after)
        assert [l for i, l in enumerate(before) if i not in moved] == [
            l for i, l in enumerate(after) if i not in moved
        ]
        assert sorted(before[i] for i in moved) == sorted(after[i] for i in moved)
        assert [l for l in after if l.startswith(" * @param ")][:6] == [
            " * @param message",
            " * @param steps",
            " * @param startPos",
            " * @param mode",
            " * @param showWindow",
            " * @param speed",
        ]


class TestHeader:
    """Tests for the annotation blocks."""

    def test_metadata_order(self, sample_plugin):
        lines = _lines(generate(sample_plugin))
        order = [
            " * @target MZ",
            " * @plugindesc Sample plugin",
            " * @version 1.2.0",
            " * @author Tester",
            " * @help",
            " * @base CoreLib",
            " * @param speed",
            " * @command ShowMessage",
        ]
        positions = [lines.index(line) for line in order]
        assert positions == sorted(positions)

    def test_help_lines(self, sample_plugin):
        code = generate(sample_plugin)
        assert " * @help\n * Line one\n *\n *   Indented line\n" in code

    def test_parameter_annotations(self, sample_plugin):
        code = generate(sample_plugin)
        assert (
            " * @param speed\n"
            " * @text Move Speed\n"
            " * @type number\n"
            " * @min 1\n"
            " * @max 10\n"
            " * @default 5\n"
        ) in code
        assert " * @on Show\n * @off Hide\n * @default true\n" in code
        assert " * @option Fast\n * @value fast\n * @option Slow\n * @value slow\n" in code
        assert " * @type struct<Position>\n" in code
        assert " * @type number[]\n * @default []\n" in code
        assert " * @type multiline_string\n" in code

    def test_command_block(self, sample_plugin):
        code = generate(sample_plugin)
        assert (
            " * @command ShowMessage\n"
            " * @text Show Message\n"
            " * @desc Shows a message\n"
            " *\n"
            " * @arg text\n"
            " * @type string\n"
            " * @default Hi\n"
        ) in code

    def test_struct_block_after_main_header(self, sample_plugin):
        code = generate(sample_plugin)
        assert "/*~struct~Position:\n * @param x\n * @type number\n * @default 0\n" in code
        assert code.index("/*~struct~Position:") > code.index(" */")

    def test_localized_block(self):
        plugin = PluginDefinition(meta=PluginMeta(
            name="Loc",
            localizations={"ja": LocalizedContent(description="説明", help="ヘルプ")},
        ))
        assert "/*:ja\n * @plugindesc 説明\n * @help\n * ヘルプ\n */" in generate(plugin)

    def test_empty_localization_skipped(self):
        plugin = PluginDefinition(meta=PluginMeta(name="Loc", localizations={"ja": LocalizedContent()}))
        assert "/*:ja" not in generate(plugin)

    def test_note_params(self):
        plugin = PluginDefinition(meta=PluginMeta(
            name="Notes",
            note_params=[NoteParam(name="Portrait", dir="img/pictures/", data="actors", require=True)],
        ))
        assert (
            " * @noteParam Portrait\n"
            " * @noteDir img/pictures/\n"
            " * @noteType file\n"
            " * @noteData actors\n"
            " * @noteRequire 1\n"
        ) in generate(plugin)

    def test_multiline_desc_flattened(self):
        plugin = PluginDefinition(
            meta=PluginMeta(name="P"),
            parameters=[Parameter(name="p", desc="first\nsecond")],
        )
        assert " * @desc first second\n" in generate(plugin)

    def test_header_only(self, sample_plugin):
        header = generate_header(sample_plugin)
        assert header.startswith("/*:")
        assert "PLUGIN_NAME" not in header
        assert "/*~struct~Position:" in header


class TestBody:
    """Tests for the generated IIFE body."""

    def test_parameter_parsing(self, sample_plugin):
        code = generate(sample_plugin)
        assert "    const params = PluginManager.parameters(PLUGIN_NAME);\n" in code
        assert "    const speed = Number(params['speed'] || 5);\n" in code
        assert "    const showwindow = params['showWindow'] !== 'false';\n" in code
        assert "    const mode = params['mode'] || 'fast';\n" in code
        assert "    const startpos = parsePositionStruct(params['startPos']);\n" in code
        assert "    const steps = JSON.parse(params['steps'] || '[]').map(Number);\n" in code
        assert "    const message = params['message'] || 'Hello';\n" in code

    def test_struct_converter(self, sample_plugin):
        code = generate(sample_plugin)
        assert (
            "    const parsePositionStruct = (json) => {\n"
            "        const raw = JSON.parse(json || '{}');\n"
            "        return {\n"
            "            'x': Number(raw['x'] || 0),\n"
            "            'y': Number(raw['y'] || 0),\n"
            "        };\n"
            "    };\n"
        ) in code

    def test_command_registration(self, sample_plugin):
        code = generate(sample_plugin)
        assert (
            "    PluginManager.registerCommand(PLUGIN_NAME, 'ShowMessage', function(args) {\n"
            "        const text = args['text'] || 'Hi';\n"
            "\n"
            "        // TODO: Implement command logic\n"
            "        console.log('ShowMessage called with:', { text });\n"
            "    });\n"
        ) in code

    def test_command_handled_by_custom_code_not_duplicated(self, sample_plugin):
        sample_plugin.custom_code = (
            "PluginManager.registerCommand(PLUGIN_NAME, 'ShowMessage', args => {\n"
            "    $gameMessage.add(args.text);\n"
            "});"
        )
        code = generate(sample_plugin)
        assert code.count("registerCommand(PLUGIN_NAME, 'ShowMessage'") == 1
        assert "// Register plugin commands" not in code

    def test_custom_code_indented(self):
        plugin = PluginDefinition(meta=PluginMeta(name="P"), custom_code="const a = 1;\n\nif (a) {\n    go();\n}")
        code = generate(plugin)
        assert (
            f"    {CUSTOM_CODE_MARKER}\n"
            "    const a = 1;\n"
            "\n"
            "    if (a) {\n"
            "        go();\n"
            "    }\n"
            "\n"
            "})();\n"
        ) in code

    def test_identifier_collisions_get_suffix(self):
        """Names mapping to the same identifier never declare one const twice."""
        plugin = PluginDefinition(
            meta=PluginMeta(name="P"),
            parameters=[Parameter(name="max hp"), Parameter(name="Max_HP"), Parameter(name="params")],
        )
        code = generate(plugin)
        assert "const maxHp = params['max hp']" in code
        assert "const maxHp2 = params['Max_HP']" in code
        assert "const params2 = params['params']" in code

    def test_reserved_words_not_used_as_names(self):
        """Names that camelCase to a JS keyword get a trailing underscore."""
        plugin = PluginDefinition(
            meta=PluginMeta(name="P"),
            parameters=[Parameter(name="Switch", type=ParamType.SWITCH), Parameter(name="class")],
            commands=[Command(name="Run", args=[Parameter(name="default"), Parameter(name="new")])],
        )
        code = generate(plugin)
        assert "const switch_ = Number(params['Switch'] || 0);" in code
        assert "const class_ = params['class'] || '';" in code
        assert "const default_ = args['default'] || '';" in code
        assert "const new_ = args['new'] || '';" in code
        assert "{ default_, new_ }" in code
        assert "const switch =" not in code

    def test_section_divider_not_parsed(self):
        plugin = PluginDefinition(
            meta=PluginMeta(name="P"),
            parameters=[Parameter(name="--- Window ---"), Parameter(name="width", type=ParamType.NUMBER)],
        )
        code = generate(plugin)
        assert " * @param --- Window ---" in code
        assert "params['--- Window ---']" not in code
        assert "const width = Number(params['width'] || 0);" in code

    def test_undefined_struct_passes_through(self):
        """A dangling struct reference degrades to the raw string."""
        plugin = PluginDefinition(
            meta=PluginMeta(name="P"),
            parameters=[Parameter(name="ref", type=ParamType.STRUCT, struct_type="Missing")],
        )
        code = generate(plugin)
        assert "const ref = params['ref'];" in code
        assert " * @type struct<Missing>" in code

    def test_cyclic_structs_get_no_converter(self):
        node = Struct(name="Node", parameters=[Parameter(name="next", type=ParamType.STRUCT, struct_type="Node")])
        plugin = PluginDefinition(
            meta=PluginMeta(name="P"),
            parameters=[Parameter(name="head", type=ParamType.STRUCT, struct_type="Node")],
            structs=[node],
        )
        code = generate(plugin)
        assert "parseNodeStruct" not in code
        assert "const head = params['head'];" in code


class TestGenerationFaults:
    """Tests for the never-raise contract."""

    def test_fault_becomes_diagnostic_comment(self, sample_plugin):
        with patch("mzforge.core.generator._generate_body", side_effect=RuntimeError("boom")):
            assert generate(sample_plugin) == "// mzforge: generation failed: boom\n"

    def test_header_fault(self, sample_plugin):
        with patch("mzforge.core.generator._main_header", side_effect=KeyError("x")):
            assert generate_header(sample_plugin).startswith("// mzforge: generation failed:")


class TestSnippets:
    """Tests for the insertion helpers."""

    def test_command_skeleton(self):
        skeleton = generate_command_skeleton(Command(name="Open"))
        assert skeleton.startswith("// --- Open ---\nPluginManager.registerCommand(PLUGIN_NAME, 'Open', function(args) {")
        assert skeleton.endswith("});")

    def test_parameter_comment(self):
        param = Parameter(name="Window Width", type=ParamType.NUMBER)
        assert generate_parameter_comment(param) == (
            "// Parameter 'Window Width' (number) is available as: windowWidth"
        )
