"""Plugin importer - reads an annotated MZ plugin file back into a PluginDefinition."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from mzforge.constants import DEFAULT_PLUGIN_NAME
from mzforge.core.generator import ANNOTATION_BLOCK
from mzforge.core.param_types import (
    TYPE_SPECS,
    ParamType,
    coerce_default,
    illegal_fields,
    resolve_type,
    to_number,
)
from mzforge.models.plugin import (
    Command,
    LocalizedContent,
    NoteParam,
    Parameter,
    PluginDefinition,
    PluginMeta,
    SelectOption,
    Struct,
)

logger = logging.getLogger(__name__)

_HEADER = re.compile(r"/\*:([A-Za-z_-]*)([\s\S]*?)\*/")
_STRUCT = re.compile(r"/\*~struct~(\w+):([A-Za-z_-]*)([\s\S]*?)\*/")
_TAG = re.compile(r"^@(\w+)\s*(.*)$")
_LINE_PREFIX = re.compile(r"^\s*\*? ?")
_PLUGIN_NAME_CONST = re.compile(r"const\s+PLUGIN_NAME\s*=\s*['\"]([^'\"]+)['\"]")

_META_TAGS = {
    "target", "plugindesc", "version", "author", "url", "help",
    "base", "orderAfter", "orderBefore",
    "noteParam", "noteDir", "noteType", "noteData", "noteRequire",
}

_OWN_MARKER = re.compile(r"^[ \t]*//\s*=+\s*Custom Plugin Code\s*=+[ \t]*$", re.MULTILINE | re.IGNORECASE)
_PLACEHOLDER = "// Custom plugin code goes here"
_CUSTOM_MARKERS = [
    re.compile(r"//\s*custom\s*(plugin)?\s*code", re.IGNORECASE),
    re.compile(r"//\s*your\s*code\s*here", re.IGNORECASE),
    re.compile(r"//\s*implementation", re.IGNORECASE),
    re.compile(r"//\s*main\s*(plugin)?\s*logic", re.IGNORECASE),
    re.compile(r"//\s*---+\s*custom", re.IGNORECASE),
]
_PARAM_LINES = [
    re.compile(r"const\s+\w+\s*=\s*(?:params|parameters|param)\[[\"']"),
    re.compile(r"PluginManager\.parameters\("),
    re.compile(r"PluginManagerEx\.createParameter\("),
]
_IIFE_OPEN = re.compile(r"^\s*\(\s*(?:\(\s*\)\s*=>|function\s*\(\s*\))\s*\{")
_IIFE_CLOSE = re.compile(r"\}\s*\)\s*\(\s*\)\s*;?\s*$")


class HeaderParseError(Exception):
    """An annotation block is opened but never closed."""


@dataclass
class HeaderDeclarations:
    """Load-order declarations read from a plugin's main header."""

    dependencies: List[str] = field(default_factory=list)
    order_after: List[str] = field(default_factory=list)
    order_before: List[str] = field(default_factory=list)


def parse_plugin(content: str, filename: Optional[str] = None) -> PluginDefinition:
    """Parse plugin source text into a definition that keeps the source as raw_source.

    Args:
        content: Full plugin file text
        filename: Optional file name; its stem is the plugin name the engine uses

    Returns:
        PluginDefinition
    """
    headers = _all_headers(content)
    main_lang = "" if "" in headers else ("en" if "en" in headers else None)
    entries = _tokenize(headers[main_lang]) if main_lang is not None else []

    meta, parameters, commands = _read_declarations(entries)
    meta.name = _plugin_name(content, filename)

    for lang, block in headers.items():
        if lang == main_lang:
            continue
        loc_meta, _, _ = _read_declarations(_tokenize(block))
        meta.localizations[lang] = LocalizedContent(description=loc_meta.description, help=loc_meta.help)

    body = extract_body(content)
    plugin = PluginDefinition(
        meta=meta,
        parameters=parameters,
        commands=commands,
        structs=_parse_structs(content),
        custom_code=extract_custom_code(body),
        raw_source=content,
    )
    logger.debug(
        f"Parsed plugin '{meta.name}': {len(parameters)} params, "
        f"{len(commands)} commands, {len(plugin.structs)} structs"
    )
    return plugin


def scan_header(content: str) -> HeaderDeclarations:
    """Read only the dependency and order declarations of the main header.

    Raises:
        HeaderParseError: the main header is never closed
    """
    start = content.find("/*:")
    if start != -1 and content.find("*/", start + 3) == -1:
        raise HeaderParseError("unterminated annotation block")

    declarations = HeaderDeclarations()
    match = _HEADER.search(content)
    if not match:
        return declarations

    for tag, value in _tokenize(match.group(2)):
        if not value:
            continue
        if tag == "base":
            declarations.dependencies.append(value)
        elif tag == "orderAfter":
            declarations.order_after.append(value)
        elif tag == "orderBefore":
            declarations.order_before.append(value)
    return declarations


def extract_body(content: str) -> str:
    """Everything after the last annotation block."""
    blocks = list(ANNOTATION_BLOCK.finditer(content))
    if not blocks:
        return content.strip()
    return content[blocks[-1].end():].strip()


def extract_custom_code(body: str) -> str:
    """Find the hand-written part of a plugin body.

    Tries, in order: the generator's own custom-code marker, other common
    marker comments, the code after the last registerCommand block, the code
    after the parameter parsing lines, and finally the whole unwrapped body.
    """
    if not body:
        return ""

    inner = unwrap_iife(body)
    working = inner if inner is not None else body

    own = _OWN_MARKER.search(working)
    if own:
        return working[own.end():].strip()
    if working.rstrip().endswith(_PLACEHOLDER) and _looks_generated(working):
        return ""

    for marker in _CUSTOM_MARKERS:
        match = marker.search(working)
        if match:
            return working[match.start():].strip()

    last_register = working.rfind("PluginManager.registerCommand")
    if last_register != -1:
        end = _find_block_end(working[last_register:])
        if end != -1:
            after = working[last_register + end:].strip()
            if after:
                return after

    last_param_line = -1
    for marker in _PARAM_LINES:
        for match in marker.finditer(working):
            line_end = working.find("\n", match.start())
            if line_end > last_param_line:
                last_param_line = line_end
    if last_param_line != -1 and last_register == -1:
        after = working[last_param_line + 1:].strip()
        if after:
            return after

    return working.strip()


def unwrap_iife(code: str) -> Optional[str]:
    """Return the dedented inside of `(() => { ... })();`, or None if not wrapped."""
    opening = _IIFE_OPEN.match(code)
    closing = _IIFE_CLOSE.search(code)
    if not opening or not closing or closing.start() <= opening.end():
        return None

    lines = code[opening.end():closing.start()].split("\n")
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    min_indent = min(indents) if indents else 0
    return "\n".join(line[min_indent:] for line in lines).strip()


def _looks_generated(code: str) -> bool:
    # Only boilerplate precedes the placeholder comment
    return "PLUGIN_NAME" in code or "'use strict'" in code


def _find_block_end(code: str) -> int:
    """Offset just past the `});` closing the first braced block in code."""
    depth = 0
    quote = ""
    for i, char in enumerate(code):
        prev = code[i - 1] if i > 0 else ""
        if char in ("'", '"', "`") and prev != "\\":
            if not quote:
                quote = char
            elif char == quote:
                quote = ""
            continue
        if quote:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                close = re.match(r"\s*\)\s*;?", code[i + 1:])
                return i + 1 + (close.end() if close else 0)
    return -1


def _plugin_name(content: str, filename: Optional[str]) -> str:
    if filename:
        return Path(filename).stem
    match = _PLUGIN_NAME_CONST.search(content)
    if match:
        return match.group(1)
    return DEFAULT_PLUGIN_NAME


def _all_headers(content: str) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for match in _HEADER.finditer(content):
        headers.setdefault(match.group(1), match.group(2))
    return headers


def _tokenize(block: str) -> List[Tuple[str, str]]:
    """Split an annotation block into (tag, value) entries.

    `@help` keeps every following line up to the next tag as its value.
    """
    entries: List[Tuple[str, List[str]]] = []
    for raw_line in block.split("\n"):
        line = _LINE_PREFIX.sub("", raw_line, count=1).rstrip()
        match = _TAG.match(line)
        if match:
            entries.append((match.group(1), [match.group(2)]))
        elif entries and entries[-1][0] == "help":
            entries[-1][1].append(line)

    result = []
    for tag, lines in entries:
        if tag == "help":
            result.append((tag, "\n".join(lines).strip()))
        else:
            result.append((tag, lines[0].strip()))
    return result


def _read_declarations(entries: List[Tuple[str, str]]) -> Tuple[PluginMeta, List[Parameter], List[Command]]:
    meta = PluginMeta(target="", version="")
    parameters: List[Parameter] = []
    commands: List[Command] = []

    current: Optional[dict] = None
    current_list: Optional[List[Parameter]] = None
    command: Optional[dict] = None

    def close_current():
        nonlocal current
        if current is not None and current_list is not None:
            current_list.append(_build_parameter(current))
        current = None

    def close_command():
        nonlocal command
        if command is not None:
            commands.append(Command(**command))
        command = None

    for tag, value in entries:
        if tag in _META_TAGS:
            _apply_meta(meta, tag, value)
        elif tag == "param":
            close_current()
            close_command()
            current, current_list = {"name": value}, parameters
        elif tag == "command":
            close_current()
            close_command()
            command = {"name": value, "text": value, "desc": "", "args": []}
        elif tag == "arg":
            close_current()
            if command is not None:
                current, current_list = {"name": value}, command["args"]
        elif current is not None:
            _apply_param_tag(current, tag, value)
        elif command is not None and tag in ("text", "desc"):
            command[tag] = value

    close_current()
    close_command()
    return meta, parameters, commands


def _apply_meta(meta: PluginMeta, tag: str, value: str) -> None:
    if tag == "plugindesc":
        meta.description = value
    elif tag in ("target", "version", "author", "url", "help"):
        setattr(meta, tag, value)
    elif tag == "base" and value:
        meta.dependencies.append(value)
    elif tag == "orderAfter" and value:
        meta.order_after.append(value)
    elif tag == "orderBefore" and value:
        meta.order_before.append(value)
    elif tag == "noteParam":
        meta.note_params.append(NoteParam(name=value))
    elif meta.note_params:
        note = meta.note_params[-1]
        if tag == "noteDir":
            note.dir = value
        elif tag == "noteType":
            note.type = value
        elif tag == "noteData":
            note.data = value
        elif tag == "noteRequire":
            note.require = value.strip().lower() in ("1", "true")


def _apply_param_tag(current: dict, tag: str, value: str) -> None:
    if tag == "option":
        current.setdefault("options", []).append({"text": value, "value": value})
    elif tag == "value":
        if current.get("options"):
            current["options"][-1]["value"] = value
    elif tag in ("text", "desc", "type", "default", "min", "max", "decimals", "dir", "parent", "on", "off"):
        current[tag] = value


def _build_parameter(raw: dict) -> Parameter:
    type_keyword = raw.get("type") or "string"
    annotation = resolve_type(type_keyword)
    param = Parameter(
        name=raw["name"],
        text=raw.get("text") or raw["name"],
        desc=raw.get("desc", ""),
        type=annotation.type,
        struct_type=annotation.struct_type,
        array_type=annotation.array_type,
        default=coerce_default(annotation.type, raw["default"]) if "default" in raw else "",
        parent=raw.get("parent") or None,
        dir=raw.get("dir") or None,
        on_label=raw.get("on") or None,
        off_label=raw.get("off") or None,
    )

    if annotation.type not in (ParamType.STRUCT, ParamType.ARRAY) and type_keyword != TYPE_SPECS[annotation.type].keyword:
        param.raw_type = type_keyword
    for name in ("min", "max"):
        if name in raw:
            setattr(param, name, to_number(raw[name]))
    if "decimals" in raw:
        decimals = to_number(raw["decimals"])
        param.decimals = int(decimals) if decimals is not None else None
    if raw.get("options"):
        param.options = [SelectOption(**opt) for opt in raw["options"]]

    # Drop attributes that do not belong to the declared type
    for name in illegal_fields(param):
        setattr(param, name, None)
    return param


def _parse_structs(content: str) -> List[Struct]:
    structs: List[Struct] = []
    seen = set()
    for match in _STRUCT.finditer(content):
        name, lang, block = match.group(1), match.group(2), match.group(3)
        if lang or name in seen:
            continue
        seen.add(name)
        # Struct blocks hold plain @param entries
        _, fields, _ = _read_declarations(_tokenize(block))
        structs.append(Struct(name=name, parameters=fields))
    return structs
