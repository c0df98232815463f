"""Project scan endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mzforge.constants import DEFAULT_PROJECT_PATH
from mzforge.dependencies import get_scan_service
from mzforge.models.reports import ProjectScanResult
from mzforge.project.scanner import ProjectScanError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/project", tags=["project"])


class ScanRequest(BaseModel):
    """Request body for scanning a project."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project_path: Optional[str] = Field(
        default=None, description="Project root; defaults to MZFORGE_PROJECT_PATH"
    )


@router.post("/scan", response_model=ProjectScanResult)
async def scan_project(body: ScanRequest):
    """Run the conflict and dependency analyzers over a project's plugins."""
    project_path = body.project_path or DEFAULT_PROJECT_PATH
    if not project_path:
        raise HTTPException(status_code=400, detail="No project path given and MZFORGE_PROJECT_PATH is not set")

    try:
        return get_scan_service().rescan(project_path)
    except ProjectScanError as e:
        logger.error(f"Project scan failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/scan/latest", response_model=ProjectScanResult)
async def latest_scan():
    """Result of the most recent scan."""
    result = get_scan_service().latest
    if result is None:
        raise HTTPException(status_code=404, detail="No project has been scanned yet")
    return result
