"""Parameter type system - the closed set of MZ parameter kinds.

Every ParamType member has exactly one TypeSpec entry. The generator, the
validator and the importer all look types up in TYPE_SPECS, so supporting a
new kind means adding one enum member and one table entry.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, Iterable, Mapping, NamedTuple, Optional, Set, Union

from mzforge.utils.js_text import js_string

if TYPE_CHECKING:
    from mzforge.models.plugin import Parameter, Struct


class ParamType(str, Enum):
    """Parameter kinds understood by the MZ plugin manager."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    VARIABLE = "variable"
    SWITCH = "switch"
    ACTOR = "actor"
    CLASS = "class"
    SKILL = "skill"
    ITEM = "item"
    WEAPON = "weapon"
    ARMOR = "armor"
    ENEMY = "enemy"
    TROOP = "troop"
    STATE = "state"
    ANIMATION = "animation"
    TILESET = "tileset"
    COMMON_EVENT = "common_event"
    FILE = "file"
    NOTE = "note"
    COLOR = "color"
    TEXT = "text"
    STRUCT = "struct"
    ARRAY = "array"


class ParseKind(str, Enum):
    """How the generated boilerplate converts the raw parameter string."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON_TEXT = "json_text"
    STRUCT = "struct"
    ARRAY = "array"


@dataclass(frozen=True)
class TypeSpec:
    """Generation and validation rules for one parameter kind."""

    keyword: str
    parse: ParseKind
    fields: FrozenSet[str] = frozenset()


# Optional Parameter fields whose presence depends on the declared type
OPTIONAL_FIELDS = (
    "min",
    "max",
    "decimals",
    "options",
    "struct_type",
    "array_type",
    "dir",
    "on_label",
    "off_label",
)
# Legal for every type
COMMON_FIELDS = frozenset({"parent", "raw_type"})

_NUMERIC_FIELDS = frozenset({"min", "max", "decimals"})


def _database(keyword: str) -> TypeSpec:
    return TypeSpec(keyword, ParseKind.NUMBER)


TYPE_SPECS: dict[ParamType, TypeSpec] = {
    ParamType.STRING: TypeSpec("string", ParseKind.TEXT),
    ParamType.NUMBER: TypeSpec("number", ParseKind.NUMBER, _NUMERIC_FIELDS),
    ParamType.BOOLEAN: TypeSpec("boolean", ParseKind.BOOLEAN, frozenset({"on_label", "off_label"})),
    ParamType.SELECT: TypeSpec("select", ParseKind.TEXT, frozenset({"options"})),
    ParamType.VARIABLE: _database("variable"),
    ParamType.SWITCH: _database("switch"),
    ParamType.ACTOR: _database("actor"),
    ParamType.CLASS: _database("class"),
    ParamType.SKILL: _database("skill"),
    ParamType.ITEM: _database("item"),
    ParamType.WEAPON: _database("weapon"),
    ParamType.ARMOR: _database("armor"),
    ParamType.ENEMY: _database("enemy"),
    ParamType.TROOP: _database("troop"),
    ParamType.STATE: _database("state"),
    ParamType.ANIMATION: _database("animation"),
    ParamType.TILESET: _database("tileset"),
    ParamType.COMMON_EVENT: _database("common_event"),
    ParamType.FILE: TypeSpec("file", ParseKind.TEXT, frozenset({"dir"})),
    ParamType.NOTE: TypeSpec("note", ParseKind.JSON_TEXT),
    ParamType.COLOR: TypeSpec("color", ParseKind.NUMBER),
    ParamType.TEXT: TypeSpec("multiline_string", ParseKind.TEXT),
    ParamType.STRUCT: TypeSpec("struct", ParseKind.STRUCT, frozenset({"struct_type"})),
    ParamType.ARRAY: TypeSpec("array", ParseKind.ARRAY, frozenset({"array_type", "struct_type"})),
}

_missing = set(ParamType) - set(TYPE_SPECS)
if _missing:
    raise RuntimeError(f"TYPE_SPECS is missing entries for: {sorted(t.value for t in _missing)}")

DATABASE_TYPES = frozenset(
    t for t, spec in TYPE_SPECS.items()
    if spec.parse is ParseKind.NUMBER and t not in (ParamType.NUMBER, ParamType.COLOR)
)

# Keywords accepted when importing annotations written by other tools
_ALIASES = {
    "num": ParamType.NUMBER,
    "bool": ParamType.BOOLEAN,
    "combo": ParamType.SELECT,
    "multiline_string": ParamType.TEXT,
    "text": ParamType.TEXT,
}
_KEYWORDS = {spec.keyword: t for t, spec in TYPE_SPECS.items()}
_STRUCT_KEYWORD = re.compile(r"^struct\s*<\s*(\w+)\s*>$", re.IGNORECASE)

Number = Union[int, float]


class TypeAnnotation(NamedTuple):
    """A resolved `@type` keyword."""

    type: ParamType
    struct_type: Optional[str] = None
    array_type: Optional[ParamType] = None


def resolve_type(keyword: str) -> TypeAnnotation:
    """Resolve an `@type` keyword such as `number`, `struct<Pos>` or `actor[]`.

    Unknown keywords resolve to STRING, which is how the engine treats them.
    """
    keyword = (keyword or "").strip()
    if keyword.endswith("[]"):
        inner = resolve_type(keyword[:-2])
        element = inner.type if inner.type is not ParamType.ARRAY else ParamType.STRING
        return TypeAnnotation(ParamType.ARRAY, inner.struct_type, element)

    match = _STRUCT_KEYWORD.match(keyword)
    if match:
        return TypeAnnotation(ParamType.STRUCT, match.group(1))

    lowered = keyword.lower()
    if lowered == "struct":
        return TypeAnnotation(ParamType.STRUCT)
    if lowered in _ALIASES:
        return TypeAnnotation(_ALIASES[lowered])
    return TypeAnnotation(_KEYWORDS.get(lowered, ParamType.STRING))


def element_type(param: Parameter) -> ParamType:
    """Element kind of an array parameter."""
    if param.array_type is not None:
        return param.array_type
    return ParamType.STRUCT if param.struct_type else ParamType.STRING


def legal_fields(param: Parameter) -> FrozenSet[str]:
    """Optional fields that may be populated for the parameter's declared type."""
    spec = TYPE_SPECS[param.type]
    fields = spec.fields | COMMON_FIELDS
    if param.type is ParamType.ARRAY:
        element = element_type(param)
        if element is not ParamType.ARRAY:
            fields = fields | TYPE_SPECS[element].fields
    return fields


def refers_to_struct(param: Parameter) -> bool:
    """Whether the parameter holds a struct or an array of structs."""
    if param.type is ParamType.STRUCT:
        return True
    return param.type is ParamType.ARRAY and element_type(param) is ParamType.STRUCT


def struct_cycles(structs: Iterable[Struct]) -> Set[str]:
    """Names of structs that reach themselves through struct-typed fields."""
    edges: dict[str, Set[str]] = {}
    for struct in structs:
        refs = edges.setdefault(struct.name, set())
        for field in struct.parameters:
            if refers_to_struct(field) and field.struct_type:
                refs.add(field.struct_type)

    cyclic: Set[str] = set()
    for start, refs in edges.items():
        stack = list(refs)
        seen: Set[str] = set()
        while stack:
            name = stack.pop()
            if name == start:
                cyclic.add(start)
                break
            if name in seen or name not in edges:
                continue
            seen.add(name)
            stack.extend(edges[name])
    return cyclic


def populated_fields(param: Parameter) -> list[str]:
    """Optional fields that currently hold a value."""
    return [
        name for name in OPTIONAL_FIELDS
        if getattr(param, name) not in (None, "", [])
    ]


def illegal_fields(param: Parameter) -> list[str]:
    """Populated optional fields that do not belong to the declared type."""
    allowed = legal_fields(param)
    return [name for name in populated_fields(param) if name not in allowed]


def format_type(param: Parameter) -> str:
    """Render the `@type` annotation value for a parameter."""
    if param.type is ParamType.STRUCT:
        return f"struct<{param.struct_type}>" if param.struct_type else "struct"

    if param.type is ParamType.ARRAY:
        element = element_type(param)
        if element is ParamType.STRUCT:
            return f"struct<{param.struct_type}>[]" if param.struct_type else "struct[]"
        if element is ParamType.ARRAY:
            return "string[]"
        return f"{TYPE_SPECS[element].keyword}[]"

    # Keep the original spelling (e.g. `combo`, `num`) while it still means the same type
    if param.raw_type and resolve_type(param.raw_type).type is param.type:
        return param.raw_type
    return TYPE_SPECS[param.type].keyword


def format_number(value: Number) -> str:
    """Render a number without a trailing `.0` for integral floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_default(value: Union[bool, Number, str, None]) -> str:
    """Render a default value for the `@default` annotation."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    return "" if value is None else str(value)


def annotation_default(value: Union[bool, Number, str, None]) -> str:
    """Render a default for a single-line `@default` tag.

    Text spanning several lines is written as a JSON string literal, which
    `coerce_default` decodes again on import.
    """
    if isinstance(value, str) and ("\n" in value or "\r" in value):
        return json.dumps(value, ensure_ascii=False)
    return format_default(value)


def to_number(text: str) -> Optional[Number]:
    """Parse annotation text as an int or float, or None when not numeric."""
    text = text.strip()
    if re.fullmatch(r"-?\d+", text):
        return int(text)
    if re.fullmatch(r"-?(\d+\.\d*|\.\d+|\d+)([eE][-+]?\d+)?", text):
        return float(text)
    return None


def coerce_default(param_type: ParamType, text: str) -> Union[bool, Number, str]:
    """Convert an imported `@default` string to the value kind of its type."""
    parse = TYPE_SPECS[param_type].parse
    if parse is ParseKind.NUMBER:
        number = to_number(text)
        return number if number is not None else text
    if parse is ParseKind.BOOLEAN:
        lowered = text.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    if parse in (ParseKind.TEXT, ParseKind.JSON_TEXT):
        return _decode_multiline(text)
    return text


def _decode_multiline(text: str) -> str:
    # Only JSON literals that expand to several lines were written by annotation_default
    stripped = text.strip()
    if len(stripped) < 2 or not (stripped.startswith('"') and stripped.endswith('"')):
        return text
    try:
        decoded = json.loads(stripped)
    except json.JSONDecodeError:
        return text
    if isinstance(decoded, str) and ("\n" in decoded or "\r" in decoded):
        return decoded
    return text


def js_default(param_type: ParamType, value: Union[bool, Number, str, None]) -> str:
    """Render a default value as a JS literal for the parse fallback."""
    parse = TYPE_SPECS[param_type].parse
    if isinstance(value, bool):
        return "true" if value else "false"
    if parse is ParseKind.NUMBER:
        if isinstance(value, (int, float)):
            return format_number(value)
        number = to_number(str(value or ""))
        return format_number(number) if number is not None else "0"
    if isinstance(value, (int, float)):
        return js_string(format_number(value))
    return js_string("" if value is None else value)


def default_is_true(value: Union[bool, Number, str, None]) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def parse_expression(
    param: Parameter,
    accessor: str,
    converters: Mapping[str, str],
) -> str:
    """Build the JS expression converting a raw parameter string to its value.

    Args:
        param: Parameter (or command argument / struct field) to convert
        accessor: JS expression holding the raw string, e.g. `params['speed']`
        converters: Struct name -> generated converter function name. Struct
            references missing from this map are passed through untouched.
    """
    parse = TYPE_SPECS[param.type].parse

    if parse is ParseKind.NUMBER:
        return f"Number({accessor} || {js_default(param.type, param.default)})"
    if parse is ParseKind.BOOLEAN:
        if default_is_true(param.default):
            return f"{accessor} !== 'false'"
        return f"{accessor} === 'true'"
    if parse is ParseKind.JSON_TEXT:
        return f"JSON.parse({accessor} || '\"\"')"
    if parse is ParseKind.STRUCT:
        converter = converters.get(param.struct_type or "")
        return f"{converter}({accessor})" if converter else accessor
    if parse is ParseKind.ARRAY:
        return f"JSON.parse({accessor} || '[]'){_element_map(param, converters)}"
    return f"{accessor} || {js_default(param.type, param.default)}"


def _element_map(param: Parameter, converters: Mapping[str, str]) -> str:
    element = element_type(param)
    parse = TYPE_SPECS[element].parse
    if parse is ParseKind.NUMBER:
        return ".map(Number)"
    if parse is ParseKind.BOOLEAN:
        return ".map(e => e === 'true')"
    if parse is ParseKind.JSON_TEXT:
        return ".map(e => JSON.parse(e))"
    if parse is ParseKind.STRUCT:
        converter = converters.get(param.struct_type or "")
        return f".map({converter})" if converter else ""
    return ""
