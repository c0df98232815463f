"""Global constants for the mzforge plugin toolkit."""

import os
from pathlib import Path

# Repository root (used to resolve relative project paths)
FORGE_ROOT = Path(__file__).resolve().parent.parent

# Default RPG Maker MZ project scanned by `manage_plugins.py scan` and the API
_project_env = os.getenv("MZFORGE_PROJECT_PATH", "")
if _project_env:
    _project_path = Path(_project_env)
    DEFAULT_PROJECT_PATH = _project_path if _project_path.is_absolute() else (FORGE_ROOT / _project_path).resolve()
else:
    DEFAULT_PROJECT_PATH = None

# Plugin directory inside a project, and the plugin manifest the engine loads
PLUGINS_SUBDIR = os.getenv("MZFORGE_PLUGINS_SUBDIR", "js/plugins")
PLUGINS_MANIFEST = "js/plugins.js"

# Load order source: "listing" (sorted directory listing) or "manifest" (js/plugins.js)
LOAD_ORDER = os.getenv("MZFORGE_LOAD_ORDER", "listing")

# Defaults for freshly created plugins
DEFAULT_AUTHOR = os.getenv("MZFORGE_DEFAULT_AUTHOR", "")
DEFAULT_TARGET = os.getenv("MZFORGE_DEFAULT_TARGET", "MZ")
DEFAULT_PLUGIN_NAME = "NewPlugin"

# Export file format version for .mzparams parameter bundles
PARAM_EXPORT_VERSION = 1
