"""Dependency injection container for services."""

import logging

from mzforge.project.scan_service import ScanService
from mzforge.services.editing_session import EditingSession

logger = logging.getLogger(__name__)

# ============================================================================
# Global service instances (singletons exposed via functions for easier testing/mocking)
# ============================================================================

_scan_service_instance = None
_editing_session_instance = None


def get_scan_service() -> ScanService:
    """Get scan service (singleton)."""
    global _scan_service_instance
    if _scan_service_instance is None:
        _scan_service_instance = ScanService()
        logger.info("Created ScanService instance")
    return _scan_service_instance


def get_editing_session() -> EditingSession:
    """Get the editing session used by the CLI (singleton)."""
    global _editing_session_instance
    if _editing_session_instance is None:
        _editing_session_instance = EditingSession()
        logger.info("Created EditingSession instance")
    return _editing_session_instance


def reset_services():
    """Reset all service instances (only for testing)."""
    global _scan_service_instance, _editing_session_instance

    _scan_service_instance = None
    _editing_session_instance = None
    logger.info("Reset all service instances")
