"""Helpers for struct-typed default values.

The engine stores struct values as JSON objects whose values are all strings,
e.g. {"x":"100","visible":"true"}.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Literal

from mzforge.core.param_types import format_default
from mzforge.models.plugin import Struct


@dataclass
class StructDefaultCheck:
    status: Literal["valid", "warning", "error"]
    errors: List[str] = field(default_factory=list)


def build_struct_default(struct: Struct, values: Dict[str, str]) -> str:
    """JSON default for a struct from field values; empty values are omitted."""
    data = {}
    for param in struct.parameters:
        value = values.get(param.name)
        if value not in (None, ""):
            data[param.name] = value
    if not data:
        return ""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def _load_object(text: str):
    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError("expected an object")
    return parsed


def parse_struct_default(text: str) -> Dict[str, str]:
    """Field values of a JSON struct default; empty for blank or malformed input."""
    if not text or text.strip() in ("", "{}"):
        return {}
    try:
        parsed = _load_object(text)
    except ValueError:
        return {}
    return {key: value if isinstance(value, str) else json.dumps(value) for key, value in parsed.items()}


def validate_struct_default(text: str, struct: Struct) -> StructDefaultCheck:
    if not text or text.strip() in ("", "{}"):
        return StructDefaultCheck("valid")
    try:
        parsed = _load_object(text)
    except json.JSONDecodeError:
        return StructDefaultCheck("error", ["Invalid JSON: check syntax"])
    except ValueError:
        return StructDefaultCheck("error", ["Invalid JSON: expected an object"])

    names = {param.name for param in struct.parameters}
    unknown = [key for key in parsed if key not in names]
    if unknown:
        return StructDefaultCheck("warning", [f"Unknown fields: {', '.join(unknown)}"])
    return StructDefaultCheck("valid")


def fill_from_struct_defaults(struct: Struct) -> Dict[str, str]:
    """Field values taken from each field's own default."""
    values = {}
    for param in struct.parameters:
        text = format_default(param.default)
        if text != "":
            values[param.name] = text
    return values
