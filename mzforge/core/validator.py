"""Plugin validator - structural checks that decide whether a definition can be exported."""

import logging
import re
from typing import Iterable, List, Optional

from mzforge.core.generator import is_section_divider
from mzforge.core.param_types import (
    ParamType,
    element_type,
    illegal_fields,
    refers_to_struct,
    struct_cycles,
)
from mzforge.models.plugin import Parameter, PluginDefinition
from mzforge.models.reports import ValidationResult
from mzforge.utils.js_text import is_identifier

logger = logging.getLogger(__name__)

_VERSION = re.compile(r"^\d+\.\d+\.\d+$")


def validate(plugin: PluginDefinition, known_plugins: Optional[Iterable[str]] = None) -> ValidationResult:
    """Validate a plugin definition.

    Args:
        plugin: Definition to check
        known_plugins: Plugin names present in the project. Dependencies are
            only cross-checked when this is provided.

    Returns:
        ValidationResult; `valid` is False iff there is at least one error
    """
    try:
        return _run_checks(plugin, known_plugins)
    except Exception as e:
        logger.error(f"Validation of '{plugin.meta.name}' failed: {e}")
        return ValidationResult(valid=False, errors=[f"Validation could not complete: {str(e) or type(e).__name__}"])


def _run_checks(plugin: PluginDefinition, known_plugins: Optional[Iterable[str]]) -> ValidationResult:
    errors: List[str] = []
    warnings: List[str] = []
    meta = plugin.meta

    if not meta.name or not meta.name.strip():
        errors.append("Plugin name is required")
    elif not is_identifier(meta.name):
        errors.append(f"Plugin name '{meta.name}' must contain only letters, digits and underscores")

    if not meta.description.strip():
        warnings.append("Plugin description is empty")
    if not meta.help.strip():
        warnings.append("Plugin help text is empty")
    if meta.version and not _VERSION.match(meta.version):
        warnings.append(f"Version '{meta.version}' is not in MAJOR.MINOR.PATCH form")

    if known_plugins is not None:
        known = set(known_plugins)
        for dep in meta.dependencies:
            if dep not in known:
                warnings.append(f"Dependency '{dep}' was not found in the project")

    struct_names = plugin.struct_names()

    _check_scope(plugin.parameters, "Parameter", struct_names, errors, warnings)

    _check_duplicates(plugin.commands, "Command", errors)
    for cmd in plugin.commands:
        if not cmd.name or not is_identifier(cmd.name):
            errors.append(f"Command name '{cmd.name}' must be a valid identifier")
        _check_scope(cmd.args, f"Command '{cmd.name}' argument", struct_names, errors, warnings)

    _check_duplicates(plugin.structs, "Struct", errors)
    for struct in plugin.structs:
        if not struct.name or not is_identifier(struct.name):
            errors.append(f"Struct name '{struct.name}' must be a valid identifier")
        _check_scope(struct.parameters, f"Struct '{struct.name}' field", struct_names, errors, warnings)

    for name in sorted(struct_cycles(plugin.structs)):
        errors.append(f"Struct '{name}' references itself through its fields")

    logger.debug(f"Validated '{meta.name}': {len(errors)} errors, {len(warnings)} warnings")
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _check_duplicates(items, label: str, errors: List[str]) -> None:
    """One error per entry whose id or name repeats an earlier entry in the same scope."""
    seen_ids = set()
    seen_names = set()
    for item in items:
        if item.id in seen_ids:
            errors.append(f"{label} '{item.name}' has a duplicate id '{item.id}'")
        elif item.name in seen_names:
            errors.append(f"{label} name '{item.name}' is used more than once")
        seen_ids.add(item.id)
        seen_names.add(item.name)


def _check_scope(
    params: List[Parameter],
    label: str,
    struct_names: set,
    errors: List[str],
    warnings: List[str],
) -> None:
    _check_duplicates(params, label, errors)
    for param in params:
        _check_parameter(param, label, struct_names, errors, warnings)


def _check_parameter(
    param: Parameter,
    label: str,
    struct_names: set,
    errors: List[str],
    warnings: List[str],
) -> None:
    where = f"{label} '{param.name}'"

    if not param.name or not param.name.strip():
        errors.append(f"{label} name is required")
        return
    if not is_identifier(param.name) and not is_section_divider(param.name):
        warnings.append(f"{where} is not a valid JS identifier")

    for field in illegal_fields(param):
        errors.append(f"{where} has '{field}' which does not apply to type '{param.type.value}'")

    kind = element_type(param) if param.type is ParamType.ARRAY else param.type

    if kind is ParamType.NUMBER:
        if param.min is not None and param.max is not None and param.min > param.max:
            errors.append(f"{where} min ({param.min}) is greater than max ({param.max})")
        if param.decimals is not None and param.decimals < 0:
            errors.append(f"{where} decimals must not be negative")
        if param.type is ParamType.NUMBER and isinstance(param.default, (int, float)) \
                and not isinstance(param.default, bool):
            if param.min is not None and param.default < param.min:
                errors.append(f"{where} default {param.default} is below min {param.min}")
            if param.max is not None and param.default > param.max:
                errors.append(f"{where} default {param.default} is above max {param.max}")

    if refers_to_struct(param):
        if not param.struct_type:
            errors.append(f"{where} is a struct but names no struct type")
        elif param.struct_type not in struct_names:
            errors.append(f"{where} references undefined struct '{param.struct_type}'")

    if kind is ParamType.SELECT:
        if not param.options:
            warnings.append(f"{where} is a select without options")
        for opt in param.options or []:
            if not opt.value.strip():
                errors.append(f"{where} has an option '{opt.text}' with an empty value")
