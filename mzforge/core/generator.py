"""Code generator - renders a PluginDefinition as an annotated MZ plugin file.

Output layout:

    /*:            main header (metadata, @param blocks, @command blocks, @help)
    /*:ja          one block per localization
    /*~struct~X:   one block per struct
    (() => { ... })();   body: typed parameter parsing, commands, custom code

Generation is a pure function of the definition: the same definition always
renders the same text.
"""

import logging
import re
from typing import Dict, List, Optional, Set

from mzforge.constants import DEFAULT_PLUGIN_NAME
from mzforge.core.param_types import (
    ParamType,
    annotation_default,
    element_type,
    format_number,
    format_type,
    parse_expression,
    struct_cycles,
)
from mzforge.models.plugin import Command, Parameter, PluginDefinition, Struct
from mzforge.utils.js_text import camel_case, js_string

logger = logging.getLogger(__name__)

INDENT = "    "
CUSTOM_CODE_MARKER = "// ========== Custom Plugin Code =========="

# Any annotation block: /*: /*:ja /*~struct~Name: /*~struct~Name:ja
ANNOTATION_BLOCK = re.compile(r"/\*(?::[A-Za-z_-]*|~struct~\w+:[A-Za-z_-]*)[\s\S]*?\*/")


class RawBodyNotFound(Exception):
    """The body of an imported plugin cannot be located unambiguously."""


def generate(plugin: PluginDefinition) -> str:
    """Generate a complete plugin file.

    Never raises: internal failures are rendered as a single diagnostic comment.
    """
    try:
        return "\n\n".join(_header_blocks(plugin) + [_generate_body(plugin)]) + "\n"
    except Exception as e:
        logger.error(f"Failed to generate plugin '{plugin.meta.name}': {e}")
        return _diagnostic(e)


def generate_header(plugin: PluginDefinition) -> str:
    """Generate only the annotation blocks (quick preview)."""
    try:
        return "\n\n".join(_header_blocks(plugin)) + "\n"
    except Exception as e:
        logger.error(f"Failed to generate header for '{plugin.meta.name}': {e}")
        return _diagnostic(e)


def generate_raw(plugin: PluginDefinition) -> str:
    """Regenerate the annotation blocks and keep the imported body untouched.

    Falls back to full generation when the plugin has no raw source or its body
    cannot be located unambiguously.
    """
    if not plugin.raw_source:
        logger.warning(f"Raw mode requested for '{plugin.meta.name}' without raw source, regenerating")
        return generate(plugin)

    try:
        preamble, body = locate_body(plugin.raw_source)
    except RawBodyNotFound as e:
        logger.warning(f"Raw body not found for '{plugin.meta.name}' ({e}), regenerating")
        return generate(plugin)

    try:
        return preamble + "\n\n".join(_header_blocks(plugin)) + body
    except Exception as e:
        logger.error(f"Failed to generate raw plugin '{plugin.meta.name}': {e}")
        return _diagnostic(e)


def locate_body(raw_source: str) -> tuple[str, str]:
    """Split imported source into (preamble, body) around its annotation blocks.

    The preamble is any text before the first annotation block (banner
    comments); the body is everything after the last one, byte for byte.

    Raises:
        RawBodyNotFound: no annotation block, code between annotation blocks,
            or an empty body
    """
    blocks = list(ANNOTATION_BLOCK.finditer(raw_source))
    if not blocks:
        raise RawBodyNotFound("no annotation block")

    for previous, current in zip(blocks, blocks[1:]):
        if raw_source[previous.end():current.start()].strip():
            raise RawBodyNotFound("code between annotation blocks")

    body = raw_source[blocks[-1].end():]
    if not body.strip():
        raise RawBodyNotFound("empty body")

    return raw_source[:blocks[0].start()], body


def generate_command_skeleton(cmd: Command) -> str:
    """Command registration skeleton for insertion into custom code."""
    return "\n".join([
        f"// --- {cmd.name} ---",
        f"PluginManager.registerCommand(PLUGIN_NAME, {js_string(cmd.name)}, function(args) {{",
        f"{INDENT}// TODO: Implement {cmd.name} logic",
        "});",
    ])


def generate_parameter_comment(param: Parameter) -> str:
    """Usage hint for a parameter, for insertion into custom code."""
    return f"// Parameter '{param.name}' ({param.type.value}) is available as: {camel_case(param.name)}"


def is_section_divider(name: str) -> bool:
    """Parameters named like '--- Window ---' only group others in the editor."""
    return "---" in name or "===" in name


def _flat(value: str) -> str:
    # Single-line tags end at the line break
    return " ".join(value.splitlines())


def _diagnostic(error: Exception) -> str:
    message = str(error).replace("\n", " ") or type(error).__name__
    return f"// mzforge: generation failed: {message}\n"


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------


def _header_blocks(plugin: PluginDefinition) -> List[str]:
    blocks = [_main_header(plugin)]
    blocks.extend(_localized_headers(plugin))
    blocks.extend(_struct_block(struct) for struct in plugin.structs)
    return blocks


def _main_header(plugin: PluginDefinition) -> str:
    meta = plugin.meta
    lines = ["/*:"]

    if meta.target:
        lines.append(f" * @target {meta.target}")
    if meta.description:
        lines.append(f" * @plugindesc {_flat(meta.description)}")
    if meta.version:
        lines.append(f" * @version {meta.version}")
    if meta.author:
        lines.append(f" * @author {meta.author}")
    if meta.url:
        lines.append(f" * @url {meta.url}")
    if meta.help:
        lines.extend(_help_lines(meta.help))

    for dep in meta.dependencies:
        lines.append(f" * @base {dep}")
    for name in meta.order_after:
        lines.append(f" * @orderAfter {name}")
    for name in meta.order_before:
        lines.append(f" * @orderBefore {name}")

    for note in meta.note_params:
        lines.append(f" * @noteParam {note.name}")
        if note.dir:
            lines.append(f" * @noteDir {note.dir}")
        if note.type:
            lines.append(f" * @noteType {note.type}")
        if note.data:
            lines.append(f" * @noteData {note.data}")
        if note.require is not None:
            lines.append(f" * @noteRequire {1 if note.require else 0}")

    lines.append(" *")

    for param in plugin.parameters:
        lines.extend(_parameter_block(param, "param"))
        lines.append(" *")

    for cmd in plugin.commands:
        lines.extend(_command_block(cmd))
        lines.append(" *")

    lines.append(" */")
    return "\n".join(lines)


def _help_lines(help_text: str) -> List[str]:
    lines = [" * @help"]
    for help_line in help_text.split("\n"):
        lines.append(f" * {help_line}".rstrip())
    return lines


def _localized_headers(plugin: PluginDefinition) -> List[str]:
    blocks = []
    for lang, content in plugin.meta.localizations.items():
        if not content.description and not content.help:
            continue
        lines = [f"/*:{lang}"]
        if content.description:
            lines.append(f" * @plugindesc {_flat(content.description)}")
        if content.help:
            lines.extend(_help_lines(content.help))
        lines.append(" */")
        blocks.append("\n".join(lines))
    return blocks


def _struct_block(struct: Struct) -> str:
    lines = [f"/*~struct~{struct.name}:"]
    for field in struct.parameters:
        lines.extend(_parameter_block(field, "param"))
        lines.append(" *")
    lines.append(" */")
    return "\n".join(lines)


def _command_block(cmd: Command) -> List[str]:
    lines = [f" * @command {cmd.name}"]
    if cmd.text and cmd.text != cmd.name:
        lines.append(f" * @text {_flat(cmd.text)}")
    if cmd.desc:
        lines.append(f" * @desc {_flat(cmd.desc)}")
    for arg in cmd.args:
        lines.append(" *")
        lines.extend(_parameter_block(arg, "arg"))
    return lines


def _parameter_block(param: Parameter, tag: str) -> List[str]:
    prefix = " * "
    lines = [f"{prefix}@{tag} {param.name}"]

    if param.text and param.text != param.name:
        lines.append(f"{prefix}@text {_flat(param.text)}")
    if param.desc:
        lines.append(f"{prefix}@desc {_flat(param.desc)}")
    if param.parent:
        lines.append(f"{prefix}@parent {param.parent}")

    lines.append(f"{prefix}@type {format_type(param)}")

    # Attributes of arrays follow their element type
    kind = element_type(param) if param.type is ParamType.ARRAY else param.type

    if kind is ParamType.BOOLEAN:
        if param.on_label:
            lines.append(f"{prefix}@on {param.on_label}")
        if param.off_label:
            lines.append(f"{prefix}@off {param.off_label}")

    if kind is ParamType.NUMBER:
        if param.min is not None:
            lines.append(f"{prefix}@min {format_number(param.min)}")
        if param.max is not None:
            lines.append(f"{prefix}@max {format_number(param.max)}")
        if param.decimals is not None:
            lines.append(f"{prefix}@decimals {param.decimals}")

    if kind is ParamType.FILE and param.dir:
        lines.append(f"{prefix}@dir {param.dir}")

    if kind is ParamType.SELECT and param.options:
        for opt in param.options:
            lines.append(f"{prefix}@option {opt.text}")
            if opt.value != opt.text:
                lines.append(f"{prefix}@value {opt.value}")

    default = annotation_default(param.default)
    if default != "":
        lines.append(f"{prefix}@default {default}")

    return lines


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------


class _Names:
    """Hands out JS identifiers that are unique within one scope."""

    def __init__(self, reserved: Optional[Set[str]] = None):
        self._used: Set[str] = set(reserved or ())

    def take(self, name: str) -> str:
        base = camel_case(name)
        candidate = base
        suffix = 2
        while candidate in self._used:
            candidate = f"{base}{suffix}"
            suffix += 1
        self._used.add(candidate)
        return candidate


def _generate_body(plugin: PluginDefinition) -> str:
    lines = ["(() => {", f"{INDENT}'use strict';", ""]

    plugin_name = plugin.meta.name or DEFAULT_PLUGIN_NAME
    lines.append(f"{INDENT}const PLUGIN_NAME = {js_string(plugin_name)};")
    lines.append("")

    converters = _struct_converters(plugin)
    names = _Names({"PLUGIN_NAME", "params", *converters.values()})

    if converters:
        lines.append(f"{INDENT}// Struct converters")
        for struct in plugin.structs:
            if struct.name in converters:
                lines.extend(_converter_function(struct, converters))
        lines.append("")

    parsed = [p for p in plugin.parameters if not is_section_divider(p.name)]
    if plugin.parameters:
        lines.append(f"{INDENT}// Parse plugin parameters")
        lines.append(f"{INDENT}const params = PluginManager.parameters(PLUGIN_NAME);")
        lines.append("")
        for param in parsed:
            accessor = f"params[{js_string(param.name)}]"
            expr = parse_expression(param, accessor, converters)
            lines.append(f"{INDENT}const {names.take(param.name)} = {expr};")
        lines.append("")

    custom_code = plugin.custom_code or ""
    pending = [
        cmd for cmd in plugin.commands
        if f"registerCommand(PLUGIN_NAME, {js_string(cmd.name)}" not in custom_code
    ]
    if pending:
        lines.append(f"{INDENT}// Register plugin commands")
        for cmd in pending:
            lines.append("")
            lines.extend(_command_registration(cmd, converters))
        lines.append("")

    if custom_code.strip():
        lines.append(f"{INDENT}{CUSTOM_CODE_MARKER}")
        for custom_line in custom_code.strip("\n").split("\n"):
            lines.append(f"{INDENT}{custom_line}".rstrip() if custom_line.strip() else "")
        lines.append("")
    else:
        lines.append(f"{INDENT}// Custom plugin code goes here")
        lines.append("")

    lines.append("})();")
    return "\n".join(lines)


def _command_registration(cmd: Command, converters: Dict[str, str]) -> List[str]:
    inner = INDENT * 2
    names = _Names({"args"})
    lines = [f"{INDENT}PluginManager.registerCommand(PLUGIN_NAME, {js_string(cmd.name)}, function(args) {{"]
    arg_names = []
    for arg in cmd.args:
        var = names.take(arg.name)
        arg_names.append(var)
        expr = parse_expression(arg, f"args[{js_string(arg.name)}]", converters)
        lines.append(f"{inner}const {var} = {expr};")
    if cmd.args:
        lines.append("")
    lines.append(f"{inner}// TODO: Implement command logic")
    lines.append(f"{inner}console.log({js_string(cmd.name + ' called with:')}, {{ {', '.join(arg_names)} }});")
    lines.append(f"{INDENT}}});")
    return lines


def _struct_converters(plugin: PluginDefinition) -> Dict[str, str]:
    """Converter function names for structs that can be converted recursively.

    Structs on a reference cycle get no converter; parameters referencing them
    fall back to passing the raw JSON string through.
    """
    cyclic = struct_cycles(plugin.structs)
    converters: Dict[str, str] = {}
    used: Set[str] = set()
    for struct in plugin.structs:
        if struct.name in cyclic or struct.name in converters:
            continue
        stem = camel_case(struct.name).rstrip("_")
        base = "parse" + stem[:1].upper() + stem[1:] + "Struct"
        name = base
        suffix = 2
        while name in used:
            name = f"{base}{suffix}"
            suffix += 1
        used.add(name)
        converters[struct.name] = name
    return converters


def _converter_function(struct: Struct, converters: Dict[str, str]) -> List[str]:
    inner = INDENT * 2
    lines = [
        f"{INDENT}const {converters[struct.name]} = (json) => {{",
        f"{inner}const raw = JSON.parse(json || '{{}}');",
        f"{inner}return {{",
    ]
    for field in struct.parameters:
        expr = parse_expression(field, f"raw[{js_string(field.name)}]", converters)
        lines.append(f"{inner}{INDENT}{js_string(field.name)}: {expr},")
    lines.append(f"{inner}}};")
    lines.append(f"{INDENT}}};")
    return lines
