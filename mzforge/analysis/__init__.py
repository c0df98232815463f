"""Project-wide analyzers: method override conflicts and load-order dependencies."""

from .conflict_detector import detect_conflicts
from .dependency_analyzer import analyze_dependencies
from .override_extractor import MethodTouch, extract_overrides, extract_touches
from .sources import PluginSource

__all__ = [
    "detect_conflicts",
    "analyze_dependencies",
    "MethodTouch",
    "extract_overrides",
    "extract_touches",
    "PluginSource",
]
