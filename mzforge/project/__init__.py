"""Access to RPG Maker MZ project directories."""

from .scan_service import ScanService
from .scanner import ProjectScanError, ProjectScanner

__all__ = ["ScanService", "ProjectScanError", "ProjectScanner"]
