"""mzforge - RPG Maker MZ plugin definition toolkit.

Imports are lazy so that the CLI and the analyzers do not pull in FastAPI or
the model layer unless they are used.
"""

__version__ = "1.0.0"

__all__ = [
    "PluginDefinition",
    "generate",
    "generate_raw",
    "parse_plugin",
    "validate",
    "detect_conflicts",
    "analyze_dependencies",
    "EditingSession",
    "ScanService",
]


def __getattr__(name):
    if name == "PluginDefinition":
        from mzforge.models.plugin import PluginDefinition
        return PluginDefinition
    if name in ("generate", "generate_raw"):
        from mzforge.core import generator
        return getattr(generator, name)
    if name == "parse_plugin":
        from mzforge.core.parser import parse_plugin
        return parse_plugin
    if name == "validate":
        from mzforge.core.validator import validate
        return validate
    if name in ("detect_conflicts", "analyze_dependencies"):
        from mzforge import analysis
        return getattr(analysis, name)
    if name == "EditingSession":
        from mzforge.services.editing_session import EditingSession
        return EditingSession
    if name == "ScanService":
        from mzforge.project.scan_service import ScanService
        return ScanService
    raise AttributeError(f"module 'mzforge' has no attribute {name!r}")
