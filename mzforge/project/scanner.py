"""Project scanner - lists and reads the plugin files of an RPG Maker MZ project."""

import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from mzforge.analysis.sources import PluginSource
from mzforge.constants import LOAD_ORDER, PLUGINS_MANIFEST, PLUGINS_SUBDIR

logger = logging.getLogger(__name__)

_MANIFEST_ARRAY = re.compile(r"\$plugins\s*=\s*(\[[\s\S]*\])\s*;?")


class ProjectScanError(Exception):
    """The plugin file list of a project cannot be obtained."""


class ProjectScanner:
    """Lists plugin files of a project in load order and reads them.

    Load order is either the sorted directory listing ("listing") or the
    `$plugins` array of js/plugins.js ("manifest"), followed by any plugin
    files the manifest does not list.
    """

    EXTENSION = ".js"

    def __init__(self, project_path: Union[str, Path], load_order: Optional[str] = None):
        self.project_path = Path(project_path)
        self.plugins_dir = self.project_path / PLUGINS_SUBDIR
        self.load_order = load_order or LOAD_ORDER

    def list_plugin_files(self) -> List[str]:
        """File names of the project's plugins, in load order.

        Raises:
            ProjectScanError: plugin directory missing or not listable
        """
        if not self.plugins_dir.is_dir():
            raise ProjectScanError(f"Plugin directory not found: {self.plugins_dir}")

        try:
            files = [
                item.name for item in sorted(self.plugins_dir.iterdir())
                if item.is_file() and item.suffix == self.EXTENSION and not item.name.startswith("_")
            ]
        except OSError as e:
            raise ProjectScanError(f"Cannot list {self.plugins_dir}: {e}") from e

        if self.load_order == "manifest":
            files = self._manifest_order(files)

        logger.debug(f"Found {len(files)} plugin file(s) in {self.plugins_dir}")
        return files

    def read_plugin(self, filename: str) -> str:
        """Read one plugin file as UTF-8 text."""
        with open(self.plugins_dir / filename, "r", encoding="utf-8") as f:
            return f.read()

    def collect_sources(self) -> List[PluginSource]:
        """Read every plugin file. Files that fail to read carry their error."""
        sources = []
        for filename in self.list_plugin_files():
            name = Path(filename).stem
            try:
                sources.append(PluginSource(name=name, text=self.read_plugin(filename), filename=filename))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read {filename}: {e}")
                sources.append(PluginSource(name=name, filename=filename, error=str(e)))
        return sources

    def _manifest_order(self, files: List[str]) -> List[str]:
        """Reorder files by the enabled entries of js/plugins.js."""
        manifest_file = self.project_path / PLUGINS_MANIFEST
        try:
            with open(manifest_file, "r", encoding="utf-8") as f:
                match = _MANIFEST_ARRAY.search(f.read())
            entries = json.loads(match.group(1)) if match else []
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Cannot read {manifest_file}, using directory order: {e}")
            return files

        available = {Path(name).stem: name for name in files}
        ordered = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            filename = available.pop(entry.get("name", ""), None)
            # Disabled plugins are not loaded by the engine
            if filename and entry.get("status", True):
                ordered.append(filename)
        # Files present on disk but absent from the manifest
        ordered.extend(name for name in files if Path(name).stem in available)
        return ordered
