"""Data models for plugin definitions and analysis reports."""

from .plugin import (
    Command,
    LocalizedContent,
    NoteParam,
    Parameter,
    PluginDefinition,
    PluginMeta,
    SelectOption,
    Struct,
    new_command,
    new_parameter,
    new_plugin,
    new_struct,
)
from .reports import (
    Conflict,
    ConflictReport,
    DependencyIssue,
    DependencyReport,
    ProjectScanResult,
    ValidationResult,
)

__all__ = [
    "Command",
    "LocalizedContent",
    "NoteParam",
    "Parameter",
    "PluginDefinition",
    "PluginMeta",
    "SelectOption",
    "Struct",
    "new_command",
    "new_parameter",
    "new_plugin",
    "new_struct",
    "Conflict",
    "ConflictReport",
    "DependencyIssue",
    "DependencyReport",
    "ProjectScanResult",
    "ValidationResult",
]
