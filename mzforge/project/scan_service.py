"""Scan service - runs both project analyzers and keeps the latest result."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from mzforge.analysis import analyze_dependencies, detect_conflicts
from mzforge.models.reports import ProjectScanResult
from mzforge.project.scanner import ProjectScanner

logger = logging.getLogger(__name__)


class ScanService:
    """On-demand project rescans.

    Each rescan reads one snapshot of the plugin directory and feeds it to the
    conflict detector and the dependency analyzer. The last completed scan
    replaces the previous result.
    """

    def __init__(self, load_order: Optional[str] = None):
        self.load_order = load_order
        self._latest: Optional[ProjectScanResult] = None

    @property
    def latest(self) -> Optional[ProjectScanResult]:
        return self._latest

    def rescan(self, project_path: Union[str, Path]) -> ProjectScanResult:
        """Scan a project.

        Raises:
            ProjectScanError: the plugin files cannot be listed
        """
        scanner = ProjectScanner(project_path, self.load_order)
        sources = scanner.collect_sources()

        result = ProjectScanResult(
            project_path=str(scanner.project_path),
            scanned_at=datetime.now(),
            files=[source.filename for source in sources],
            conflicts=detect_conflicts(sources),
            dependencies=analyze_dependencies(sources),
        )
        self._latest = result
        logger.info(
            f"Scanned {result.project_path}: {len(sources)} files, "
            f"conflicts={result.conflicts.health}, dependencies={result.dependencies.health}"
        )
        return result

    def clear(self) -> None:
        self._latest = None
